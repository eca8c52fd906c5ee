"""
End-to-end BER/visibility analysis of a folded timestamp histogram.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging
import numpy as np

from .config import AnalysisConfig, DEFAULT_CONFIG
from .guard_band import guard_banded_sums
from .histogram import build_histogram
from .metrics import Metrics, compute_metrics, format_metric
from .optimizer import GuardBandSweep, sweep_guard_band
from .peak_window import PartitionSums, PeakWindow, locate_peak_window

SCHEMA_VERSION = "1.0"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisResult:
    label: str
    window: PeakWindow
    unfiltered: PartitionSums
    filtered: PartitionSums
    metrics_unfiltered: Metrics
    metrics_filtered: Metrics
    n_events: int
    guard_ps: int
    convention: str

    def summary_line(self) -> str:
        """Five comma-separated fields: label, BER1, V1, BER2, V2."""
        return ",".join([
            self.label,
            format_metric(self.metrics_unfiltered.ber),
            format_metric(self.metrics_unfiltered.visibility),
            format_metric(self.metrics_filtered.ber),
            format_metric(self.metrics_filtered.visibility),
        ])


def _warn_undefined(stage: str, metrics: Metrics, sums: PartitionSums) -> None:
    if not metrics.defined:
        logger.warning(
            "%s metrics undefined (insufficient data): C1=%d D1=%d C2=%d",
            stage, sums.c1, sums.d1, sums.c2,
        )


def analyze_histogram(
    histogram: np.ndarray,
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> AnalysisResult:
    """
    Locate the peak window and compute metrics with and without guard bands.
    """
    window = locate_peak_window(histogram, config.window_ps)
    logger.info(
        "peak window [%d, %d) C1=%d D1=%d C2=%d",
        window.start, window.end, window.sums.c1, window.sums.d1, window.sums.c2,
    )
    filtered = guard_banded_sums(histogram, window, config.guard_ps, subbin_ps=config.subbin_ps)
    m1 = compute_metrics(window.sums, config.metric_convention)
    m2 = compute_metrics(filtered, config.metric_convention)
    _warn_undefined("unfiltered", m1, window.sums)
    _warn_undefined("guard-banded", m2, filtered)
    return AnalysisResult(
        label=config.label,
        window=window,
        unfiltered=window.sums,
        filtered=filtered,
        metrics_unfiltered=m1,
        metrics_filtered=m2,
        n_events=int(np.sum(histogram)),
        guard_ps=config.guard_ps,
        convention=config.convention,
    )


def analyze_timestamps(
    times: np.ndarray,
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> AnalysisResult:
    """Fold timestamps into a histogram and analyze it."""
    return analyze_histogram(build_histogram(times, config.period_ps), config)


def optimize_guard_band(
    histogram: np.ndarray,
    result: AnalysisResult,
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> GuardBandSweep:
    """Run the guard-band sweep over the configured range for an analyzed window."""
    return sweep_guard_band(
        histogram,
        result.window,
        min_ps=config.sweep_min_ps,
        max_ps=config.sweep_max_ps,
        step_ps=config.sweep_step_ps,
        subbin_ps=config.subbin_ps,
        convention=config.metric_convention,
    )


def build_report(
    result: AnalysisResult,
    config: AnalysisConfig,
    source: Optional[str] = None,
    sweep: Optional[GuardBandSweep] = None,
    ingest: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Assemble a JSON-serializable report. Undefined metrics become ``null``.
    """
    report: Dict[str, Any] = {
        "schema_version": SCHEMA_VERSION,
        "generated_utc": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "source": source,
        "label": result.label,
        "parameters": config.to_dict(),
        "n_events": result.n_events,
        "window": {
            "start_ps": result.window.start,
            "end_ps": result.window.end,
            "width_ps": result.window.width,
        },
        "unfiltered": {
            "sums": asdict(result.unfiltered),
            "ber": result.metrics_unfiltered.ber,
            "visibility": result.metrics_unfiltered.visibility,
        },
        "guard_banded": {
            "guard_ps": result.guard_ps,
            "sums": asdict(result.filtered),
            "ber": result.metrics_filtered.ber,
            "visibility": result.metrics_filtered.visibility,
        },
    }
    if ingest is not None:
        report["ingest"] = ingest
    if sweep is not None:
        report["guard_band_sweep"] = {
            "best_ber": asdict(sweep.best_ber) if sweep.best_ber else None,
            "best_visibility": asdict(sweep.best_visibility) if sweep.best_visibility else None,
            "records": sweep.records,
        }
    return report
