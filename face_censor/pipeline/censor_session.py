from __future__ import annotations
from typing import List, Optional
import logging
import threading
import uuid

from .. import config
from ..models.pixel_buffer import PixelBuffer
from ..models.region import Detection
from ..services.censor_service import CensorService
from ..services.block_pixelator import validate_block_size
from ..services.censor_strategy import ProgressCallback

logger = logging.getLogger(__name__)


class CensorSession:
    """
    State for one uploaded image.

    • `original` is a read-only copy of the decoded image and is the only
      input of every render; outputs are never fed back in.
    • A render replaces `output` under a lock, so readers see either the
      previous or the new image, never a half-censored one.
    """

    def __init__(
        self,
        original: PixelBuffer,
        session_id: str = None,
        censor_service: CensorService = None,
        block_size: int = None,
    ):
        self.session_id = session_id or str(uuid.uuid4())
        self.original = original.frozen()
        self.censor_service = censor_service or CensorService()
        self.block_size = validate_block_size(
            block_size if block_size is not None else config.DEFAULT_BLOCK_SIZE
        )
        self.detections: Optional[List[Detection]] = None
        self._output: Optional[PixelBuffer] = None
        self._lock = threading.Lock()

    @property
    def output(self) -> Optional[PixelBuffer]:
        with self._lock:
            return self._output

    @property
    def has_detections(self) -> bool:
        return self.detections is not None

    def apply(
        self,
        detections: List[Detection],
        block_size: int = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> PixelBuffer:
        """Store fresh detections and render them."""
        with self._lock:
            block_size = block_size if block_size is not None else self.block_size
            return self._render(list(detections), block_size, on_progress)

    def rerender(self, block_size: int, on_progress: Optional[ProgressCallback] = None) -> PixelBuffer:
        """
        Re-run the censor with a new block size against the original image.

        Raises:
            RuntimeError: apply() has not been called yet.
            ValueError: block_size is not a positive integer.
        """
        with self._lock:
            if self.detections is None:
                raise RuntimeError("No detections yet; apply the censor before changing the block size")
            logger.info(f"Re-applying pixelation with new pixel size: {block_size}px")
            return self._render(self.detections, block_size, on_progress)

    def _render(
        self,
        detections: List[Detection],
        block_size: int,
        on_progress: Optional[ProgressCallback],
    ) -> PixelBuffer:
        # state changes only after a successful render
        output = self.censor_service.render(self.original, detections, block_size, on_progress=on_progress)
        self.detections = detections
        self._output = output
        self.block_size = block_size
        return output

    def clear(self) -> None:
        """Drop detections and output; the original stays until the session is discarded."""
        with self._lock:
            self.detections = None
            self._output = None
