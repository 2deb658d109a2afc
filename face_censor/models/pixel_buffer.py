from __future__ import annotations
from dataclasses import dataclass
import numpy as np


@dataclass(frozen=True)
class PixelBuffer:
    """
    Simple data object: RGBA pixels, 8 bits per channel, row-major, no padding.
    No OpenCV logic outside the repository layer.
    """
    pixels: np.ndarray  # Shape (H, W, 4), dtype uint8, RGBA order.

    def __post_init__(self):
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"PixelBuffer expects uint8 pixels, got {self.pixels.dtype}")
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f"PixelBuffer expects shape (H, W, 4), got {self.pixels.shape}")

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def writable(self) -> bool:
        return bool(self.pixels.flags.writeable)

    @classmethod
    def from_bytes(cls, data: bytes, width: int, height: int) -> PixelBuffer:
        """Wrap interleaved RGBA8 bytes of length width * height * 4."""
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid buffer dimensions {width}x{height}")
        expected = width * height * 4
        if len(data) != expected:
            raise ValueError(f"Expected {expected} bytes for a {width}x{height} RGBA buffer, got {len(data)}")
        arr = np.frombuffer(data, dtype=np.uint8).reshape(height, width, 4).copy()
        return cls(pixels=arr)

    @classmethod
    def blank(cls, width: int, height: int, rgba=(0, 0, 0, 255)) -> PixelBuffer:
        arr = np.empty((height, width, 4), dtype=np.uint8)
        arr[:, :] = rgba
        return cls(pixels=arr)

    def to_bytes(self) -> bytes:
        return np.ascontiguousarray(self.pixels).tobytes()

    def copy(self) -> PixelBuffer:
        """Writable deep copy, used as the scratch buffer of a render pass."""
        return PixelBuffer(pixels=self.pixels.copy())

    def frozen(self) -> PixelBuffer:
        """Read-only deep copy; pixelating it in place raises."""
        arr = self.pixels.copy()
        arr.setflags(write=False)
        return PixelBuffer(pixels=arr)
