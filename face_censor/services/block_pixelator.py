from __future__ import annotations
from typing import Optional
import logging
import math
import numbers

from ..models.pixel_buffer import PixelBuffer
from ..models.region import Region
from .censor_strategy import CensorStrategy, ProgressCallback

logger = logging.getLogger(__name__)


def validate_block_size(block_size) -> int:
    # bool is an int subclass; True would silently mean 1
    if isinstance(block_size, bool) or not isinstance(block_size, numbers.Integral):
        raise ValueError(f"Block size must be an integer, got {block_size!r}")
    if block_size <= 0:
        raise ValueError(f"Block size must be positive, got {block_size}")
    return int(block_size)


def count_blocks(region: Region, block_size: int) -> int:
    return math.ceil(region.width / block_size) * math.ceil(region.height / block_size)


class BlockPixelator(CensorStrategy):
    """
    Block pixelation: every block_size x block_size block of the region is
    filled with the RGBA value of one pixel near the block's center.
    """

    name = "pixelation"

    def __init__(self, block_size: int):
        self.block_size = validate_block_size(block_size)

    def apply(
        self,
        buffer: PixelBuffer,
        region: Region,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        pixelate(buffer, region, self.block_size, on_progress=on_progress)

    def work_units(self, region: Region) -> int:
        return count_blocks(region, self.block_size)


def pixelate(
    buffer: PixelBuffer,
    region: Region,
    block_size: int,
    on_progress: Optional[ProgressCallback] = None,
) -> None:
    """
    Pixelate `region` of `buffer` in place.

    Blocks are anchored at the region origin and visited row-major; edge
    blocks are truncated to the region. The sample pixel of a block at
    (bx, by) is (bx + block_size // 2, by + block_size // 2), clamped to the
    last row/column of the region, and all four channels are copied.

    Args:
        buffer (PixelBuffer): Writable buffer to mutate.
        region (Region): In-bounds region (see RegionClipper).
        block_size (int): Positive block edge in pixels.
        on_progress: Optional callback receiving (done_blocks, total_blocks).

    Raises:
        ValueError: block_size is not a positive integer, or the buffer is read-only.
    """
    block_size = validate_block_size(block_size)
    if not buffer.writable:
        raise ValueError("Refusing to pixelate a read-only buffer; render into a copy")

    pixels = buffer.pixels
    half = block_size // 2
    right, bottom = region.right, region.bottom

    total_blocks = count_blocks(region, block_size)
    log_every = max(1, total_blocks // 10)
    done = 0

    for by in range(region.y, bottom, block_size):
        sample_y = min(by + half, bottom - 1)
        block_bottom = min(by + block_size, bottom)
        for bx in range(region.x, right, block_size):
            sample_x = min(bx + half, right - 1)
            # copy before broadcasting; the sample lies inside the block being filled
            sample = pixels[sample_y, sample_x].copy()
            pixels[by:block_bottom, bx:min(bx + block_size, right)] = sample

            done += 1
            if on_progress is not None:
                on_progress(done, total_blocks)
            if done % log_every == 0:
                logger.debug(f"Progress: {round(done / total_blocks * 100)}% ({done}/{total_blocks} blocks)")
