from __future__ import annotations
from dataclasses import dataclass
from typing import Union

Number = Union[int, float]


@dataclass(frozen=True)
class Rectangle:
    """Detector-space box. Coordinates and extent may be fractional."""
    x: Number
    y: Number
    width: Number
    height: Number

    @classmethod
    def from_corners(cls, x1: Number, y1: Number, x2: Number, y2: Number) -> Rectangle:
        return cls(x=x1, y=y1, width=x2 - x1, height=y2 - y1)


@dataclass(frozen=True)
class Region:
    """
    Validated, integer, in-bounds rectangle of a PixelBuffer.
    Only RegionClipper should build these.
    """
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height


@dataclass(frozen=True)
class Detection:
    rectangle: Rectangle
    confidence: float | None = None  # reported only, never used by the transform

