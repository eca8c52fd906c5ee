"""
Guard-band width sweep.

Re-runs the guard-banded aggregation for every candidate width and keeps
the width with the lowest BER and, independently, the width with the
highest visibility. Candidates whose metric is undefined never win; among
equal values the first candidate seen is kept.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union
import numpy as np

from .errors import ConfigurationError
from .guard_band import guard_banded_sums
from .metrics import MetricConvention, compute_metrics
from .peak_window import PeakWindow


@dataclass(frozen=True)
class GuardBandOptimum:
    guard_ps: int
    value: float


@dataclass(frozen=True)
class GuardBandSweep:
    records: List[Dict[str, Any]]
    best_ber: Optional[GuardBandOptimum]
    best_visibility: Optional[GuardBandOptimum]


def sweep_guard_band(
    histogram: np.ndarray,
    window: PeakWindow,
    min_ps: int = 100,
    max_ps: int = 300,
    step_ps: int = 1,
    subbin_ps: int = 1_000,
    convention: Union[MetricConvention, str] = MetricConvention.ERROR_FRACTION,
) -> GuardBandSweep:
    """
    Sweep guard-band widths over ``[min_ps, max_ps]`` in steps of ``step_ps``.

    Parameters
    ----------
    histogram : np.ndarray
        Folded histogram.
    window : PeakWindow
        Window from ``locate_peak_window``.
    min_ps, max_ps : int
        Inclusive sweep bounds in picoseconds.
    step_ps : int
        Increment between candidates.
    subbin_ps : int
        Sub-bin grid width.
    convention : MetricConvention or str
        Metric convention used for every candidate.

    Returns
    -------
    GuardBandSweep
        Per-candidate records plus the two optima.
    """
    if step_ps <= 0:
        raise ConfigurationError(f"step_ps must be positive, got {step_ps}")
    if min_ps < 0 or min_ps > max_ps:
        raise ConfigurationError(f"invalid sweep range [{min_ps}, {max_ps}]")

    records: List[Dict[str, Any]] = []
    best_ber: Optional[GuardBandOptimum] = None
    best_vis: Optional[GuardBandOptimum] = None
    for guard_ps in range(min_ps, max_ps + 1, step_ps):
        sums = guard_banded_sums(histogram, window, guard_ps, subbin_ps=subbin_ps)
        m = compute_metrics(sums, convention)
        records.append({
            "guard_ps": guard_ps,
            "c1": sums.c1,
            "d1": sums.d1,
            "c2": sums.c2,
            "ber": m.ber,
            "visibility": m.visibility,
        })
        if m.ber is not None and (best_ber is None or m.ber < best_ber.value):
            best_ber = GuardBandOptimum(guard_ps=guard_ps, value=m.ber)
        if m.visibility is not None and (best_vis is None or m.visibility > best_vis.value):
            best_vis = GuardBandOptimum(guard_ps=guard_ps, value=m.visibility)

    return GuardBandSweep(records=records, best_ber=best_ber, best_visibility=best_vis)
