from __future__ import annotations
from collections.abc import Mapping
from typing import Any, Iterable, List
import logging

from .. import config
from ..models.face_engine import FaceEngine
from ..models.pixel_buffer import PixelBuffer
from ..models.region import Detection, Rectangle
from ..repositories.face_engine_repository import FaceEngineRepository

logger = logging.getLogger(__name__)


def _field(obj: Any, name: str):
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _to_rectangle(box: Any) -> Rectangle | None:
    """Accepts x/y/width/height boxes (mapping or object) and (x1, y1, x2, y2) sequences."""
    if isinstance(box, Rectangle):
        return box
    values = [_field(box, k) for k in ("x", "y", "width", "height")]
    if all(v is not None for v in values):
        try:
            return Rectangle(*(float(v) for v in values))
        except (TypeError, ValueError):
            return None
    # a string is iterable too; "1234" must not become a box
    if isinstance(box, (str, bytes, Mapping)):
        return None
    try:
        if len(box) != 4:
            return None
        x1, y1, x2, y2 = (float(v) for v in box)
    except (TypeError, ValueError):
        return None
    return Rectangle.from_corners(x1, y1, x2, y2)


def normalize_detection(raw: Any) -> Detection | None:
    """
    Convert one detector record into a Detection.

    Supported shapes:
        • Detection (passed through)
        • InsightFace Face: `bbox` = (x1, y1, x2, y2), `det_score`
        • {"box": {...}, "score": s}
        • {"detection": {"box": {...}, "score": s}}
    The nested record is searched first, then the outer one.
    Returns None when no bounding box can be found; never invents one.
    """
    if isinstance(raw, Detection):
        return raw

    nested = _field(raw, "detection")
    sources = [raw] if nested is None else [nested, raw]

    fallback_score = None
    for source in sources:
        rect, score = _box_and_score(source)
        if fallback_score is None:
            fallback_score = score
        if rect is not None:
            if score is None:
                score = fallback_score
            return Detection(rectangle=rect, confidence=float(score) if score is not None else None)
    return None


def _box_and_score(source: Any):
    bbox = _field(source, "bbox")
    if bbox is not None:
        return _to_rectangle(bbox), _field(source, "det_score")
    box = _field(source, "box")
    rect = _to_rectangle(box) if box is not None else None
    return rect, _field(source, "score")


class DetectionService:
    """
    Business logic on top of the raw face engine:
    readiness check, detection, normalization to canonical Detections.
    """

    def __init__(self, engine: FaceEngine, min_confidence: float = None):
        self.engine = engine
        self.face_engine_repository = FaceEngineRepository(engine)
        self.min_confidence = config.DET_CONF_THR if min_confidence is None else min_confidence

    @property
    def ready(self) -> bool:
        return self.engine.ready

    def normalize(self, raw_detections: Iterable[Any]) -> List[Detection]:
        detections: List[Detection] = []
        for index, raw in enumerate(raw_detections, 1):
            detection = normalize_detection(raw)
            if detection is None:
                logger.warning(f"Face {index} has no bounding box, skipping: {raw!r}")
                continue
            if detection.confidence is not None and detection.confidence < self.min_confidence:
                logger.debug(f"Face {index} below confidence threshold ({detection.confidence:.3f}), skipping")
                continue
            detections.append(detection)
        return detections

    def detect_faces(self, buffer: PixelBuffer) -> List[Detection]:
        """
        Raises:
            RuntimeError: the engine is not READY.
        """
        raw = self.face_engine_repository.infer_faces(buffer)
        detections = self.normalize(raw)
        logger.info(f"Found {len(detections)} face(s)")
        for index, det in enumerate(detections, 1):
            rect = det.rectangle
            confidence = f"{det.confidence:.3f}" if det.confidence is not None else "N/A"
            logger.info(
                f"  Face {index}: x={rect.x:.0f}, y={rect.y:.0f}, "
                f"width={rect.width:.0f}, height={rect.height:.0f}, confidence={confidence}"
            )
        return detections
