"""
Locate the active detection window in a folded histogram.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple
import numpy as np

from .errors import ConfigurationError


@dataclass(frozen=True)
class PartitionSums:
    c1: int
    d1: int
    c2: int

    @property
    def total(self) -> int:
        return self.c1 + self.d1 + self.c2

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.c1, self.d1, self.c2)


@dataclass(frozen=True)
class PeakWindow:
    start: int
    width: int
    sums: PartitionSums

    @property
    def end(self) -> int:
        """Exclusive upper index of the window."""
        return self.start + self.width


def partition_bounds(start: int, width: int) -> Tuple[int, int, int, int]:
    """
    Split ``[start, start + width)`` into C1, D1, C2.

    Returns ``(start, d1_start, c2_start, end)``. Each part is
    ``width // 3`` long; any remainder stays in C2.
    """
    part = width // 3
    return start, start + part, start + 2 * part, start + width


def partition_sums(histogram: np.ndarray, start: int, width: int) -> PartitionSums:
    """Sum the three parts of a window by absolute bin position."""
    lo, b1, b2, hi = partition_bounds(start, width)
    return PartitionSums(
        c1=int(np.sum(histogram[lo:b1])),
        d1=int(np.sum(histogram[b1:b2])),
        c2=int(np.sum(histogram[b2:hi])),
    )


def window_sums(histogram: np.ndarray, width: int) -> np.ndarray:
    """
    Running sum of every window ``[s, s + width)`` that fits in the histogram.

    Element ``s`` of the result is the count in the window starting at bin
    ``s``; there are ``len(histogram) - width + 1`` of them. Windows do not
    wrap around the end of the period.
    """
    n = len(histogram)
    if width <= 0:
        raise ConfigurationError(f"window width must be positive, got {width}")
    if width > n:
        raise ConfigurationError(f"window width {width} exceeds histogram length {n}")
    cumulative = np.concatenate(([0], np.cumsum(histogram, dtype=np.int64)))
    return cumulative[width:] - cumulative[:-width]


def locate_peak_window(histogram: np.ndarray, width: int = 3_000) -> PeakWindow:
    """
    Find the window of ``width`` bins holding the most counts.

    Ties go to the lowest start index. The C1/D1/C2 sums are recomputed
    from the histogram for the chosen window.

    Raises
    ------
    ConfigurationError
        If ``width`` exceeds the histogram length.
    """
    sums = window_sums(histogram, width)
    # argmax returns the first occurrence of the maximum
    start = int(np.argmax(sums))
    return PeakWindow(start=start, width=width, sums=partition_sums(histogram, start, width))
