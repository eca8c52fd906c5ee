from __future__ import annotations
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .analysis import analyze_histogram, build_report, optimize_guard_band
from .config import AnalysisConfig, DEFAULT_CONFIG
from .errors import OutputError, QkdBerError
from .histogram import nonzero_bins
from .metrics import MetricConvention, format_metric
from .plotting import plot_guard_band_sweep, plot_histogram
from .timetags import IngestPolicy, load_histogram

logger = logging.getLogger(__name__)

PROG = "qkd-ber"

EXAMPLES = """\
Examples:
  qkd-ber timestamps_1.csv
  qkd-ber timestamps_1.csv --guard-ps 150 --label M2
  qkd-ber timestamps_1.csv --optimize --sweep-min-ps 50 --sweep-max-ps 400
  qkd-ber timestamps_1.csv --outdir out --plot --optimize
"""


def build_parser() -> argparse.ArgumentParser:
    d = DEFAULT_CONFIG
    p = argparse.ArgumentParser(
        prog=PROG,
        description=(
            "Estimate BER and visibility from detector timestamps folded modulo "
            "the repetition period. Prints: label,BER1,V1,BER2,V2 (unfiltered, "
            "then guard-banded)."
        ),
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("input", help="CSV file: header line, then <timestamp_ps>,<value> rows")

    g = p.add_argument_group("histogram and window")
    g.add_argument("--period-ps", type=int, default=d.period_ps,
                   help=f"Repetition period / histogram length in ps (default: {d.period_ps})")
    g.add_argument("--window-ps", type=int, default=d.window_ps,
                   help=f"Peak-search window width in ps (default: {d.window_ps})")
    g.add_argument("--subbin-ps", type=int, default=d.subbin_ps,
                   help=f"Sub-bin grid for guard bands in ps (default: {d.subbin_ps})")
    g.add_argument("--guard-ps", type=int, default=d.guard_ps,
                   help=f"Guard-band width in ps (default: {d.guard_ps})")

    o = p.add_argument_group("guard-band sweep")
    o.add_argument("--optimize", action="store_true",
                   help="Sweep guard-band width and print the best BER and visibility")
    o.add_argument("--sweep-min-ps", type=int, default=d.sweep_min_ps,
                   help=f"Smallest guard band swept (default: {d.sweep_min_ps})")
    o.add_argument("--sweep-max-ps", type=int, default=d.sweep_max_ps,
                   help=f"Largest guard band swept (default: {d.sweep_max_ps})")
    o.add_argument("--sweep-step-ps", type=int, default=d.sweep_step_ps,
                   help=f"Sweep increment (default: {d.sweep_step_ps})")

    m = p.add_argument_group("output")
    m.add_argument("--label", default=d.label,
                   help=f"Group label printed first on the result line (default: {d.label})")
    m.add_argument("--convention", choices=[c.value for c in MetricConvention], default=d.convention,
                   help=f"BER/visibility convention (default: {d.convention})")
    m.add_argument("--policy", choices=[c.value for c in IngestPolicy], default=d.policy,
                   help=f"Malformed-row handling: stop or skip (default: {d.policy})")
    m.add_argument("--dump-histogram", action="store_true",
                   help="Also print every occupied bin as bin,count")
    m.add_argument("--outdir", type=str, default=None,
                   help="Write reports/latest.json (and figures with --plot) here")
    m.add_argument("--plot", action="store_true",
                   help="Write histogram (and sweep) figures; requires --outdir")
    m.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr")
    return p


def _config_from_args(args: argparse.Namespace) -> AnalysisConfig:
    return AnalysisConfig(
        period_ps=args.period_ps,
        window_ps=args.window_ps,
        subbin_ps=args.subbin_ps,
        guard_ps=args.guard_ps,
        sweep_min_ps=args.sweep_min_ps,
        sweep_max_ps=args.sweep_max_ps,
        sweep_step_ps=args.sweep_step_ps,
        label=args.label,
        convention=args.convention,
        policy=args.policy,
    )


def _write_outputs(args, config, histogram, result, sweep, summary) -> None:
    """Write ``reports/latest.json`` and, with ``--plot``, the figures."""
    outdir = Path(args.outdir)
    (outdir / "reports").mkdir(parents=True, exist_ok=True)
    report = build_report(
        result,
        config,
        source=str(args.input),
        sweep=sweep,
        ingest=summary.to_dict(),
    )
    if args.plot:
        (outdir / "figures").mkdir(exist_ok=True)
        artifacts = {
            "histogram_plot": Path(plot_histogram(
                histogram, result.window, str(outdir / "figures" / "histogram.png"),
                guard_ps=config.guard_ps, subbin_ps=config.subbin_ps,
            )).name,
        }
        if sweep is not None:
            artifacts["guard_band_sweep_plot"] = Path(plot_guard_band_sweep(
                sweep, str(outdir / "figures" / "guard_band_sweep.png"),
            )).name
        report["artifacts"] = artifacts
    report_path = outdir / "reports" / "latest.json"
    with open(report_path, "w") as f:
        json.dump(report, f, indent=2)
        f.write("\n")
    logger.info("Wrote: %s", report_path)


def _run(args: argparse.Namespace) -> List[str]:
    """Execute one analysis and return the stdout lines."""
    config = _config_from_args(args)
    histogram, summary = load_histogram(args.input, config.period_ps, policy=config.ingest_policy)
    if summary.stopped_early:
        logger.warning("%s: ingestion stopped at line %d", args.input, summary.malformed_lines[-1])

    result = analyze_histogram(histogram, config)
    lines = [result.summary_line()]

    sweep = None
    if args.optimize:
        sweep = optimize_guard_band(histogram, result, config)
        for name, best in (("best_ber", sweep.best_ber), ("best_visibility", sweep.best_visibility)):
            if best is None:
                lines.append(f"{name},{format_metric(None)},{format_metric(None)}")
            else:
                lines.append(f"{name},{best.guard_ps},{format_metric(best.value)}")

    if args.dump_histogram:
        lines.extend(f"{i},{n}" for i, n in nonzero_bins(histogram))

    if args.outdir is not None:
        try:
            _write_outputs(args, config, histogram, result, sweep, summary)
        except OSError as exc:
            raise OutputError(f"could not write to {args.outdir}: {exc}") from exc

    return lines


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.plot and args.outdir is None:
        parser.error("--plot requires --outdir")

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        lines = _run(args)
    except QkdBerError as exc:
        print(f"{PROG}: error: {exc}", file=sys.stderr)
        return 1
    for line in lines:
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
