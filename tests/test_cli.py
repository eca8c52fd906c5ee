"""Tests for the qkd-ber command line."""
import json
import subprocess
import sys

import pytest

from qkd_ber_lab.run import build_parser, main


SAMPLE_CSV = """timestamp,channel
10100.7,1
42100.2,1
74100.0,2
106100.9,1
11500.5,2
12500.0,1
44500.3,1
76500.1,1
108500.8,2
10010.4,1
"""


def test_main_help():
    """Module entry point prints help with examples."""
    result = subprocess.run(
        [sys.executable, "-m", "qkd_ber_lab.run", "--help"],
        capture_output=True,
        text=True,
        check=False,
    )
    assert result.returncode == 0
    assert "usage: qkd-ber" in result.stdout
    assert "--guard-ps" in result.stdout
    assert "--optimize" in result.stdout
    assert "Examples:" in result.stdout
    assert "default:" in result.stdout


def test_primary_output_line(write_csv, capsys):
    path = write_csv(SAMPLE_CSV)
    assert main([str(path)]) == 0
    out = capsys.readouterr().out
    assert out == "M,0.100000,9.000000,0.111111,8.000000\n"


def test_label_and_guard_flags(write_csv, capsys):
    path = write_csv(SAMPLE_CSV)
    assert main([str(path), "--label", "G2", "--guard-ps", "0"]) == 0
    assert capsys.readouterr().out == "G2,0.100000,9.000000,0.100000,9.000000\n"


def test_complementary_convention_flag(write_csv, capsys):
    path = write_csv(SAMPLE_CSV)
    assert main([str(path), "--convention", "complementary"]) == 0
    assert capsys.readouterr().out == "M,0.900000,0.111111,0.888889,0.125000\n"


def test_optimize_prints_optima(write_csv, capsys):
    path = write_csv(SAMPLE_CSV)
    assert main([str(path), "--optimize"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "M,0.100000,9.000000,0.111111,8.000000"
    assert lines[1] == "best_ber,100,0.111111"
    assert lines[2] == "best_visibility,100,8.000000"


def test_dump_histogram(write_csv, capsys):
    path = write_csv(SAMPLE_CSV)
    assert main([str(path), "--dump-histogram"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[1:] == ["10010,1", "10100,4", "11500,1", "12500,4"]


def test_empty_data_prints_undefined(write_csv, capsys):
    path = write_csv("timestamp,channel\n")
    assert main([str(path)]) == 0
    assert capsys.readouterr().out == "M,undefined,undefined,undefined,undefined\n"


def test_strict_and_lenient_policies(write_csv, capsys):
    path = write_csv("timestamp,channel\nnot-a-number,1\n5000,1\n")
    assert main([str(path)]) == 0
    assert capsys.readouterr().out.startswith("M,undefined")
    assert main([str(path), "--policy", "lenient"]) == 0
    # one count, alone in C1, C2 or D1 of the earliest window
    assert "undefined" not in capsys.readouterr().out.split(",")[1]


def test_missing_argument_is_usage_error(capsys):
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 2
    assert "usage: qkd-ber" in capsys.readouterr().err


def test_extra_argument_is_usage_error(write_csv, capsys):
    path = write_csv(SAMPLE_CSV)
    with pytest.raises(SystemExit) as exc:
        main([str(path), str(path)])
    assert exc.value.code == 2
    assert "qkd-ber" in capsys.readouterr().err


def test_unreadable_input(tmp_path, capsys):
    missing = tmp_path / "timestamps_1.csv"
    assert main([str(missing)]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "timestamps_1.csv" in captured.err


def test_window_wider_than_period(write_csv, capsys):
    path = write_csv(SAMPLE_CSV)
    assert main([str(path), "--window-ps", "40000"]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "exceeds histogram length" in captured.err


def test_plot_requires_outdir(write_csv):
    path = write_csv(SAMPLE_CSV)
    with pytest.raises(SystemExit):
        main([str(path), "--plot"])


def test_outdir_writes_report_and_figures(write_csv, tmp_path, capsys):
    path = write_csv(SAMPLE_CSV)
    outdir = tmp_path / "out"
    assert main([str(path), "--outdir", str(outdir), "--plot", "--optimize"]) == 0
    assert capsys.readouterr().out.splitlines()[0] == "M,0.100000,9.000000,0.111111,8.000000"
    report = json.loads((outdir / "reports" / "latest.json").read_text())
    assert report["source"] == str(path)
    assert report["ingest"]["n_rows"] == 10
    assert report["guard_banded"]["sums"] == {"c1": 4, "d1": 1, "c2": 4}
    assert (outdir / "figures" / report["artifacts"]["histogram_plot"]).exists()
    assert (outdir / "figures" / report["artifacts"]["guard_band_sweep_plot"]).exists()


@pytest.mark.parametrize("policy", ["strict", "lenient"])
def test_non_utf8_header_is_accepted(tmp_path, capsys, policy):
    path = tmp_path / "latin1.csv"
    path.write_bytes(b"Time (\xb5s),ch\n5000,1\n")
    assert main([str(path), "--policy", policy, "--dump-histogram"]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out[-1] == "5000,1"


def test_outdir_is_a_file(write_csv, tmp_path, capsys):
    path = write_csv(SAMPLE_CSV)
    blocker = tmp_path / "out"
    blocker.write_text("not a directory\n")
    assert main([str(path), "--outdir", str(blocker)]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "qkd-ber: error: could not write to" in captured.err
    assert "Traceback" not in captured.err


def test_report_path_is_a_directory(write_csv, tmp_path, capsys):
    path = write_csv(SAMPLE_CSV)
    outdir = tmp_path / "out"
    (outdir / "reports" / "latest.json").mkdir(parents=True)
    assert main([str(path), "--outdir", str(outdir)]) == 1
    assert "could not write to" in capsys.readouterr().err


def test_parser_defaults():
    args = build_parser().parse_args(["in.csv"])
    assert args.period_ps == 32_000
    assert args.window_ps == 3_000
    assert args.guard_ps == 100
    assert (args.sweep_min_ps, args.sweep_max_ps, args.sweep_step_ps) == (100, 300, 1)
    assert args.label == "M"
    assert args.policy == "strict"
