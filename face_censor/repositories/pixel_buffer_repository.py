from pathlib import Path
from typing import Union
from io import BytesIO
import base64
import numpy as np
import cv2
from PIL import Image as PILImage

from ..models.pixel_buffer import PixelBuffer


class PixelBufferRepository:
    """
    Handles decode/encode and file I/O for PixelBuffer entities.
    """

    @staticmethod
    def _to_rgba(arr: np.ndarray) -> np.ndarray:
        # 16-bit PNG/TIFF → 8-bit
        if arr.dtype == np.uint16:
            arr = (arr // 257).astype(np.uint8)
        elif arr.dtype != np.uint8:
            raise ValueError(f"Unsupported image depth: {arr.dtype}")

        if arr.ndim == 2:
            return cv2.cvtColor(arr, cv2.COLOR_GRAY2RGBA)
        channels = arr.shape[2]
        if channels == 1:
            return cv2.cvtColor(arr[:, :, 0], cv2.COLOR_GRAY2RGBA)
        if channels == 3:
            return cv2.cvtColor(arr, cv2.COLOR_BGR2RGBA)
        if channels == 4:
            return cv2.cvtColor(arr, cv2.COLOR_BGRA2RGBA)
        raise ValueError(f"Unsupported channel count: {channels}")

    def decode(self, data: bytes) -> PixelBuffer:
        # cv2.imdecode raises cv2.error on an empty buffer instead of returning None
        if not data:
            raise ValueError("Empty image data")
        arr = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
        if arr is None:
            raise ValueError("Could not decode image data")
        return PixelBuffer(pixels=np.ascontiguousarray(self._to_rgba(arr)))

    def load(self, path: Union[str, Path]) -> PixelBuffer:
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Image not found or unreadable: {path}")
        return self.decode(path.read_bytes())

    @staticmethod
    def encode_png(buffer: PixelBuffer) -> bytes:
        out = BytesIO()
        PILImage.fromarray(np.ascontiguousarray(buffer.pixels)).save(out, format="PNG")
        return out.getvalue()

    def save(self, buffer: PixelBuffer, path: Union[str, Path]) -> None:
        path = Path(path)
        pil_image = PILImage.fromarray(np.ascontiguousarray(buffer.pixels))
        # JPEG has no alpha channel
        if path.suffix.lower() in {".jpg", ".jpeg"}:
            pil_image = pil_image.convert("RGB")
        pil_image.save(path)

    def to_data_url(self, buffer: PixelBuffer) -> str:
        base64_string = base64.b64encode(self.encode_png(buffer)).decode("utf-8")
        return f"data:image/png;base64,{base64_string}"
