from pathlib import Path
from typing import Union

from ..models.pixel_buffer import PixelBuffer
from ..repositories.pixel_buffer_repository import PixelBufferRepository


class PixelBufferService:
    """I/O helpers.  No censoring logic, no InsightFace imports."""

    def __init__(self):
        self.pixel_buffer_repository = PixelBufferRepository()

    def load(self, path: Union[str, Path]) -> PixelBuffer:
        """Load a single image from disk into an RGBA PixelBuffer."""
        return self.pixel_buffer_repository.load(path)

    def decode(self, data: bytes) -> PixelBuffer:
        """Decode uploaded image bytes (any OpenCV-readable format)."""
        return self.pixel_buffer_repository.decode(data)

    def save(self, buffer: PixelBuffer, path: Union[str, Path]) -> None:
        self.pixel_buffer_repository.save(buffer, path)

    def encode_png(self, buffer: PixelBuffer) -> bytes:
        return self.pixel_buffer_repository.encode_png(buffer)

    def to_data_url(self, buffer: PixelBuffer) -> str:
        """PNG data URL, for JSON previews."""
        return self.pixel_buffer_repository.to_data_url(buffer)

