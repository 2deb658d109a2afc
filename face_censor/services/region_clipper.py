from __future__ import annotations
import math
import logging

from ..models.region import Number, Rectangle, Region

logger = logging.getLogger(__name__)


def round_half_up(value: Number) -> int:
    """
    Round to the nearest integer, ties towards +inf (2.5 -> 3, -2.5 -> -2).
    The built-in round() rounds ties to even, which would move sampling boundaries.
    """
    return int(math.floor(value + 0.5))


class RegionClipper:
    """
    Turns a detector rectangle into a Region that lies fully inside the buffer.
    Pure: no state, no side effects.
    """

    @staticmethod
    def clip(rect: Rectangle, buffer_width: int, buffer_height: int) -> Region | None:
        """
        Args:
            rect (Rectangle): Possibly fractional, possibly out-of-bounds box.
            buffer_width (int): Width of the target PixelBuffer.
            buffer_height (int): Height of the target PixelBuffer.

        Returns:
            The clipped Region, or None when nothing of the rectangle is left
            (zero/negative size, entirely outside the buffer, or NaN/inf
            coordinates).
        """
        if not all(math.isfinite(v) for v in (rect.x, rect.y, rect.width, rect.height)):
            logger.debug(f"Rectangle {rect} has non-finite coordinates, skipping")
            return None

        x = max(0, round_half_up(rect.x))
        y = max(0, round_half_up(rect.y))
        width = min(round_half_up(rect.width), buffer_width - x)
        height = min(round_half_up(rect.height), buffer_height - y)

        if width <= 0 or height <= 0:
            logger.debug(f"Rectangle {rect} clipped to {width}x{height}, skipping")
            return None
        return Region(x=x, y=y, width=width, height=height)
