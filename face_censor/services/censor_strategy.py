from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Callable, Optional

from ..models.pixel_buffer import PixelBuffer
from ..models.region import Region

ProgressCallback = Callable[[int, int], None]  # (done_blocks, total_blocks)


class CensorStrategy(ABC):
    """Base class for censor modalities applied to one Region of a buffer."""

    name: str = "abstract"

    @abstractmethod
    def apply(
        self,
        buffer: PixelBuffer,
        region: Region,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        """
        Overwrite `region` of `buffer` in place.

        Args:
            buffer: Writable buffer; must never be the retained original.
            region: Already clipped to the buffer bounds.
            on_progress: Optional (done, total) callback.
        """
        pass

    def work_units(self, region: Region) -> int:
        """Number of progress steps apply() reports for `region`."""
        return 1
