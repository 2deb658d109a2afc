import argparse
import logging
import sys
from pathlib import Path

from .. import config
from ..models.face_engine import FaceEngine
from ..pipeline.censor_image import censor_image
from ..services.censor_service import CensorService, OverlapMode
from ..services.detection_service import DetectionService
from ..services.pixel_buffer_service import PixelBufferService

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="face-censor",
        description="Detect faces in an image and pixelate them.",
    )
    parser.add_argument("input", type=Path, help="Image to censor")
    parser.add_argument("output", type=Path, help="Where to write the censored image (PNG keeps alpha)")
    parser.add_argument("--block-size", type=int, default=config.DEFAULT_BLOCK_SIZE,
                        help=f"Pixelation block size in pixels (default: {config.DEFAULT_BLOCK_SIZE})")
    parser.add_argument("--overlap", choices=[m.value for m in OverlapMode], default=config.OVERLAP_MODE,
                        help="How overlapping faces interact (default: %(default)s)")
    parser.add_argument("--min-confidence", type=float, default=config.DET_CONF_THR,
                        help="Drop detections below this score (default: %(default)s)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log block progress")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config.configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    if args.block_size <= 0:
        logger.error(f"Block size must be positive, got {args.block_size}")
        return 1

    pixel_buffer_service = PixelBufferService()
    try:
        buffer = pixel_buffer_service.load(args.input)

        engine = FaceEngine()
        engine.load()
        detection_service = DetectionService(engine, min_confidence=args.min_confidence)

        censored, detections = censor_image(
            buffer,
            detection_service,
            censor_service=CensorService(overlap_mode=args.overlap),
            block_size=args.block_size,
        )
        pixel_buffer_service.save(censored, args.output)
    except Exception as err:
        logger.error(f"Processing failed: {err}")
        return 1

    logger.info(f"Censored {len(detections)} face(s) → {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
