from __future__ import annotations
from enum import Enum
from typing import Any, Callable, List
import logging
import threading
import time
import numpy as np

from .. import config

logger = logging.getLogger(__name__)


class DetectorState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


def _select_ctx_id(ctx_id: int) -> int:
    """
    Pick the InsightFace device index.
    Priority: CUDA -> CPU. MPS (Apple Silicon) is not supported by InsightFace.
    """
    import torch

    if torch.cuda.is_available():
        logger.info(f"FaceEngine using CUDA (ctx_id={ctx_id})")
        return ctx_id
    logger.info("FaceEngine using CPU (ctx_id=-1)")
    return -1


def insightface_backend(model_name: str, ctx_id: int, det_size: int):
    """Build and prepare InsightFace's FaceAnalysis (RetinaFace detector only)."""
    from insightface.app import FaceAnalysis

    app = FaceAnalysis(name=model_name, allowed_modules=["detection"])
    app.prepare(ctx_id=_select_ctx_id(ctx_id), det_size=(det_size, det_size))
    return app


class FaceEngine:
    """
    Explicit-lifecycle wrapper around a face detection backend.

    States: UNLOADED -> LOADING -> READY | FAILED. Construct once, call
    load() during start-up, and check `ready` before asking for detections.
    The backend is any object exposing `.get(bgr_pixels) -> list[raw_face]`.
    """

    def __init__(
        self,
        model_name: str = None,
        ctx_id: int = None,
        det_size: int = None,
        backend_factory: Callable[[str, int, int], Any] = insightface_backend,
    ):
        self.model_name = model_name or config.FACE_ENGINE_MODEL
        self.ctx_id = config.FACE_ENGINE_CTX_ID if ctx_id is None else ctx_id
        self.det_size = det_size or config.FACE_ENGINE_DET_SIZE
        self._backend_factory = backend_factory
        self._backend = None
        self._state = DetectorState.UNLOADED
        self._error: BaseException | None = None
        self._lock = threading.Lock()

    @property
    def state(self) -> DetectorState:
        return self._state

    @property
    def ready(self) -> bool:
        return self._state is DetectorState.READY

    @property
    def error(self) -> BaseException | None:
        return self._error

    def load(self) -> DetectorState:
        """
        Load the model. Idempotent once READY; a FAILED engine may be retried.
        Raises the backend's exception after moving to FAILED.
        """
        with self._lock:
            if self._state is DetectorState.READY:
                return self._state
            self._state = DetectorState.LOADING
            self._error = None
            logger.info(f"Loading face detection model '{self.model_name}'...")
            start = time.perf_counter()
            try:
                self._backend = self._backend_factory(self.model_name, self.ctx_id, self.det_size)
            except Exception as err:
                self._state = DetectorState.FAILED
                self._error = err
                logger.error(f"Error loading face detection model: {err}")
                raise
            self._state = DetectorState.READY
            logger.info(f"Model loaded successfully in {time.perf_counter() - start:.2f}s")
            return self._state

    def infer(self, bgr_pixels: np.ndarray) -> List[Any]:
        if not self.ready:
            raise RuntimeError(f"Face engine is not ready (state={self._state.value})")
        return list(self._backend.get(bgr_pixels))
