"""
Fold absolute timestamps into one repetition period.
"""
from __future__ import annotations

from typing import Iterable, List, Tuple
import numpy as np

from .errors import ConfigurationError


def fold_timestamps(times: np.ndarray, period_ps: int) -> np.ndarray:
    """
    Map timestamps (ps) to bin indices in ``[0, period_ps)``.

    Values are truncated toward zero before folding. Negative values wrap
    with floored modulo, so -1 ps lands in the last bin. The modulo is taken
    on doubles, which is exact for any finite input, so timestamps beyond
    the int64 range still land in their true bin.
    """
    if period_ps <= 0:
        raise ConfigurationError(f"period_ps must be positive, got {period_ps}")
    times = np.asarray(times, dtype=float)
    if not np.all(np.isfinite(times)):
        raise ValueError("timestamps must be finite")
    return np.mod(np.trunc(times), period_ps).astype(np.int64)


def accumulate_histogram(chunks: Iterable[np.ndarray], period_ps: int = 32_000) -> np.ndarray:
    """
    Count timestamps per picosecond bin, one chunk at a time.

    Only the ``period_ps`` counters are held across chunks, so memory does
    not grow with the number of timestamps. Returns a read-only ``int64``
    array whose sum equals the number of timestamps seen.
    """
    if period_ps <= 0:
        raise ConfigurationError(f"period_ps must be positive, got {period_ps}")
    histogram = np.zeros(period_ps, dtype=np.int64)
    for chunk in chunks:
        indices = fold_timestamps(chunk, period_ps)
        histogram += np.bincount(indices, minlength=period_ps)
    histogram.flags.writeable = False
    return histogram


def build_histogram(times: np.ndarray, period_ps: int = 32_000) -> np.ndarray:
    """Count an in-memory array of timestamps per picosecond bin."""
    return accumulate_histogram([times], period_ps)


def nonzero_bins(histogram: np.ndarray) -> List[Tuple[int, int]]:
    """List ``(bin, count)`` for every occupied bin, in bin order."""
    occupied = np.flatnonzero(histogram)
    return [(int(i), int(histogram[i])) for i in occupied]
