"""
Guard-band filtering of the C1/D1/C2 partition.

Counts that fall within half a guard band of a sub-bin edge are dropped
before the partition is re-summed. Sub-bin edges lie on an absolute grid
of ``subbin_ps`` picoseconds, independent of where the window starts.
"""
from __future__ import annotations

from enum import Enum
import numpy as np

from .errors import ConfigurationError
from .peak_window import PartitionSums, PeakWindow, partition_bounds


class BoundaryCase(str, Enum):
    ABSOLUTE_FIRST = "absolute_first"  # bin 0 of the histogram
    WINDOW_LAST = "window_last"        # last bin inside the window
    INTERIOR = "interior"


def classify_index(i: int, start: int, end: int) -> BoundaryCase:
    """Classify bin ``i`` of the window ``[start, end)``."""
    if i == 0:
        return BoundaryCase.ABSOLUTE_FIRST
    if i == end - 1:
        return BoundaryCase.WINDOW_LAST
    return BoundaryCase.INTERIOR


def exclude(i: int, start: int, end: int, half_guard: int, subbin_ps: int = 1_000) -> bool:
    """
    Return True when bin ``i`` lies inside a guard band.

    Interior bins are dropped when they sit less than ``half_guard`` after a
    sub-bin edge or more than ``subbin_ps - half_guard`` into the sub-bin.
    Bin 0 only loses the trailing margin and the last bin of the window only
    the leading margin; neither falls back to the interior rule.
    """
    pos = i % subbin_ps
    case = classify_index(i, start, end)
    if case is BoundaryCase.ABSOLUTE_FIRST:
        return pos > subbin_ps - half_guard
    if case is BoundaryCase.WINDOW_LAST:
        return pos < half_guard
    return pos < half_guard or pos > subbin_ps - half_guard


def guard_mask(start: int, end: int, half_guard: int, subbin_ps: int = 1_000) -> np.ndarray:
    """Boolean keep-mask over ``[start, end)``, vectorized form of ``exclude``."""
    idx = np.arange(start, end)
    pos = idx % subbin_ps
    excluded = (pos < half_guard) | (pos > subbin_ps - half_guard)
    if end > start:
        if start == 0:
            excluded[0] = pos[0] > subbin_ps - half_guard
        if end - 1 != 0:
            excluded[-1] = pos[-1] < half_guard
    return ~excluded


def guard_banded_sums(
    histogram: np.ndarray,
    window: PeakWindow,
    guard_ps: int,
    subbin_ps: int = 1_000,
) -> PartitionSums:
    """
    Re-sum the window's C1/D1/C2 parts after removing guard-band bins.

    ``guard_ps = 0`` (or 1) keeps every bin and reproduces ``window.sums``.
    """
    if guard_ps < 0:
        raise ConfigurationError(f"guard_ps must be >= 0, got {guard_ps}")
    if subbin_ps <= 0:
        raise ConfigurationError(f"subbin_ps must be positive, got {subbin_ps}")
    half = guard_ps // 2
    lo, b1, b2, hi = partition_bounds(window.start, window.width)
    keep = guard_mask(lo, hi, half, subbin_ps)
    counts = np.where(keep, histogram[lo:hi], 0)
    return PartitionSums(
        c1=int(np.sum(counts[: b1 - lo])),
        d1=int(np.sum(counts[b1 - lo: b2 - lo])),
        c2=int(np.sum(counts[b2 - lo:])),
    )
