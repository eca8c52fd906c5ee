from __future__ import annotations
from typing import Any, Dict, Optional, Sequence
import numpy as np
import matplotlib.pyplot as plt

from .guard_band import guard_mask
from .optimizer import GuardBandSweep
from .peak_window import PeakWindow, partition_bounds


def _extract(records: Sequence[Dict[str, Any]], key: str) -> np.ndarray:
    # undefined metrics are stored as None; plot them as gaps
    return np.array([np.nan if r[key] is None else r[key] for r in records], dtype=float)


def plot_histogram(
    histogram: np.ndarray,
    window: PeakWindow,
    out_path: str,
    guard_ps: Optional[int] = None,
    subbin_ps: int = 1_000,
    margin_ps: int = 1_000,
) -> str:
    """
    Plot the folded histogram around the peak window.

    Parameters
    ----------
    histogram : np.ndarray
        Folded histogram (one bin per picosecond).
    window : PeakWindow
        Window located by ``locate_peak_window``.
    out_path : str
        Output PNG path.
    guard_ps : int, optional
        If given, shade the bins removed by the guard band.
    subbin_ps : int
        Sub-bin grid width used for the guard band.
    margin_ps : int
        Extra bins shown on each side of the window.

    Returns
    -------
    str
        Path to the written figure.
    """
    lo = max(0, window.start - margin_ps)
    hi = min(len(histogram), window.end + margin_ps)
    bins = np.arange(lo, hi)

    plt.figure(figsize=(10, 4))
    plt.plot(bins, histogram[lo:hi], lw=0.6, color="k", label="counts")
    start, b1, b2, end = partition_bounds(window.start, window.width)
    for (a, b), name, color in zip(
        ((start, b1), (b1, b2), (b2, end)),
        ("C1", "D1", "C2"),
        ("tab:blue", "tab:red", "tab:blue"),
    ):
        plt.axvspan(a, b, alpha=0.12, color=color)
        plt.text((a + b) / 2, 1.0, name, ha="center", va="bottom",
                 transform=plt.gca().get_xaxis_transform())
    if guard_ps is not None and guard_ps > 1:
        keep = guard_mask(start, end, guard_ps // 2, subbin_ps)
        dropped = np.arange(start, end)[~keep]
        if dropped.size:
            plt.vlines(dropped, 0, histogram[dropped], colors="tab:orange", lw=0.6,
                       label=f"guard band ({guard_ps} ps)")
    plt.xlabel("Time within period (ps)")
    plt.ylabel("Counts")
    plt.title(f"Folded histogram, window [{window.start}, {window.end}) ps")
    plt.legend(loc="upper right")
    plt.savefig(out_path, dpi=200, bbox_inches="tight")
    plt.close()
    return out_path


def plot_guard_band_sweep(sweep: GuardBandSweep, out_path: str) -> str:
    """Plot BER and visibility against guard-band width."""
    guard = _extract(sweep.records, "guard_ps")
    ber = _extract(sweep.records, "ber")
    vis = _extract(sweep.records, "visibility")

    fig, ax_ber = plt.subplots()
    ax_ber.plot(guard, ber, color="tab:red", label="BER")
    ax_ber.set_xlabel("Guard band (ps)")
    ax_ber.set_ylabel("BER", color="tab:red")
    ax_vis = ax_ber.twinx()
    ax_vis.plot(guard, vis, color="tab:blue", label="Visibility")
    ax_vis.set_ylabel("Visibility", color="tab:blue")
    if sweep.best_ber is not None:
        ax_ber.axvline(sweep.best_ber.guard_ps, color="tab:red", ls="--", lw=0.8)
    if sweep.best_visibility is not None:
        ax_vis.axvline(sweep.best_visibility.guard_ps, color="tab:blue", ls=":", lw=0.8)
    ax_ber.set_title("Guard-band sweep")
    fig.savefig(out_path, dpi=200, bbox_inches="tight")
    plt.close(fig)
    return out_path
