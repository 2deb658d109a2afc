"""
Censor Image Pipeline
Detects faces in one image and pixelates them, without touching the input buffer.
"""

from typing import List, Tuple
import logging

from .. import config
from ..models.pixel_buffer import PixelBuffer
from ..models.region import Detection
from ..services.censor_service import CensorService, OverlapMode
from ..services.detection_service import DetectionService

logger = logging.getLogger(__name__)


def censor_image(
    buffer: PixelBuffer,
    detection_service: DetectionService,
    *,
    censor_service: CensorService = None,
    block_size: int = config.DEFAULT_BLOCK_SIZE,
    overlap_mode: OverlapMode = None,
) -> Tuple[PixelBuffer, List[Detection]]:
    """
    Detect faces in *buffer* and return a censored copy.

    Args:
        buffer: Decoded source image; left unchanged.
        detection_service: Must wrap a READY face engine.
        censor_service: Renders the censored copy.
        block_size: Pixelation block edge in pixels.
        overlap_mode: How overlapping faces interact.

    Returns:
        (censored copy, detections used)

    Raises:
        RuntimeError: the face engine is not ready.
        ValueError: block_size is not a positive integer.
    """
    censor_service = censor_service or CensorService()
    logger.info(f"Image loaded: {buffer.width}x{buffer.height} pixels")

    detections = detection_service.detect_faces(buffer)
    if not detections:
        logger.info("No faces detected, image left unchanged")

    censored = censor_service.render(buffer, detections, block_size, overlap_mode=overlap_mode)
    return censored, detections
