from typing import Any, List
import numpy as np

from ..models.face_engine import FaceEngine
from ..models.pixel_buffer import PixelBuffer


class FaceEngineRepository:
    """
    Thin wrapper around FaceEngine that feeds it BGR pixels and returns raw detector records.
    """

    def __init__(self, engine: FaceEngine):
        self.engine = engine

    def infer_faces(self, buffer: PixelBuffer) -> List[Any]:
        img_bgr = np.ascontiguousarray(buffer.pixels[:, :, 2::-1])
        return self.engine.infer(img_bgr)
