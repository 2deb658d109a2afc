from __future__ import annotations
from enum import Enum
from typing import List, Optional, Sequence
import logging
import time

from .. import config
from ..models.pixel_buffer import PixelBuffer
from ..models.region import Detection, Region
from .block_pixelator import BlockPixelator
from .censor_strategy import CensorStrategy, ProgressCallback
from .region_clipper import RegionClipper

logger = logging.getLogger(__name__)


class OverlapMode(str, Enum):
    # Regions are applied in order on one scratch buffer; an overlapping
    # later region samples pixels already censored by an earlier one.
    COMPOUND = "compound"
    # Every region samples from the untouched original.
    ISOLATED = "isolated"


class CensorService:
    """
    Applies a censor strategy to every detection of an image.

    • Never mutates the buffer it is given: renders into a copy and returns it.
    • Rectangles that clip to nothing are skipped, not errors.
    """

    def __init__(self, clipper: RegionClipper = None, overlap_mode: OverlapMode | str = None):
        self.clipper = clipper or RegionClipper()
        self.overlap_mode = OverlapMode(overlap_mode or config.OVERLAP_MODE)

    def clip_all(self, detections: Sequence[Detection], width: int, height: int) -> List[Region]:
        regions = []
        for index, det in enumerate(detections, 1):
            region = self.clipper.clip(det.rectangle, width, height)
            if region is None:
                logger.warning(f"Face {index} has invalid dimensions after clipping, skipping")
                continue
            regions.append(region)
        return regions

    def render(
        self,
        original: PixelBuffer,
        detections: Sequence[Detection],
        block_size: int,
        *,
        strategy: CensorStrategy = None,
        overlap_mode: OverlapMode | str = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> PixelBuffer:
        """
        Args:
            original: Source of truth; read only.
            detections: Detector output, already normalized.
            block_size: Positive block edge; ignored if `strategy` is given.
            strategy: Censor modality, defaults to BlockPixelator(block_size).
            overlap_mode: Overrides the service default.
            on_progress: Receives (done_blocks, total_blocks) across all regions.

        Returns:
            A new PixelBuffer with every region censored.

        Raises:
            ValueError: block_size is not a positive integer.
        """
        strategy = strategy or BlockPixelator(block_size)
        mode = OverlapMode(overlap_mode) if overlap_mode is not None else self.overlap_mode

        start = time.perf_counter()
        output = original.copy()
        regions = self.clip_all(detections, original.width, original.height)
        logger.info(f"Applying {strategy.name} to {len(regions)} face(s) ({mode.value} overlaps)")

        total = sum(strategy.work_units(r) for r in regions)
        offset = 0

        def _report(done: int, _region_total: int) -> None:
            on_progress(offset + done, total)

        callback = _report if on_progress is not None else None
        for index, region in enumerate(regions, 1):
            logger.debug(
                f"Processing face {index}/{len(regions)} at ({region.x}, {region.y}) - "
                f"{region.width}x{region.height}"
            )
            target = output.pixels[region.y:region.bottom, region.x:region.right]
            if mode is OverlapMode.ISOLATED:
                scratch = PixelBuffer(
                    pixels=original.pixels[region.y:region.bottom, region.x:region.right].copy()
                )
                strategy.apply(scratch, Region(0, 0, region.width, region.height), on_progress=callback)
                target[...] = scratch.pixels
            else:
                strategy.apply(output, region, on_progress=callback)
            offset += strategy.work_units(region)

        logger.info(f"Pixelation completed in {time.perf_counter() - start:.2f}s")
        return output
