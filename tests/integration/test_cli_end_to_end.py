# tests/integration/test_cli_end_to_end.py
"""End-to-end CLI runs writing the full artifact bundle."""

import json

import pandas as pd
import pytest

from alphasim.cli import main, run_self_checks


def _config(tmp_path, text):
    p = tmp_path / "cfg.yaml"
    p.write_text(text, encoding="utf-8")
    return p


SMALL = """
design:
  item_counts: {start: 3, stop: 5}
  correlations: [0.10, 0.25]
  sample_sizes: [1, 100]
simulation:
  replications: 12
  seed: 2024
"""


def test_cli_writes_bundle(tmp_path, capsys):
    out = tmp_path / "run"
    rc = main(
        [
            "--config",
            str(_config(tmp_path, SMALL)),
            "--out-dir",
            str(out),
            "--write-estimates",
            "--print-head",
            "3",
            "--log-level",
            "WARNING",
        ]
    )
    assert rc == 0

    names = sorted(p.name for p in out.iterdir())
    assert names == [
        "config_resolved.json",
        "estimates.csv",
        "failures.csv",
        "manifest.json",
        "percentage_good.png",
        "summary.csv",
    ]

    summary = pd.read_csv(out / "summary.csv")
    assert len(summary) == 3 * 2 * 2
    assert (summary["n_replications"] == 12).all()
    assert summary.loc[summary["sample_size"] == 1, "percentage"].isna().all()

    estimates = pd.read_csv(out / "estimates.csv")
    assert len(estimates) == 12 * 12
    assert estimates.loc[estimates["sample_size"] == 1, "alpha"].isna().all()

    manifest = json.loads((out / "manifest.json").read_text(encoding="utf-8"))
    assert {o["name"] for o in manifest["outputs"]} == {
        "config_resolved",
        "estimates",
        "failures",
        "percentage_good",
        "summary",
    }
    assert manifest["config"]["seed"] == 2024
    assert manifest["diagnostics"]["failed_estimates"] == 6 * 12

    stdout = capsys.readouterr().out
    diag = json.loads(stdout.splitlines()[0])
    assert diag["conditions"] == 12


def test_cli_is_reproducible(tmp_path):
    cfg = _config(tmp_path, SMALL)
    for name in ("a", "b"):
        assert main(["--config", str(cfg), "--out-dir", str(tmp_path / name), "--no-plots",
                     "--print-head", "0"]) == 0
    a = pd.read_csv(tmp_path / "a" / "summary.csv")
    b = pd.read_csv(tmp_path / "b" / "summary.csv")
    pd.testing.assert_frame_equal(a, b)


def test_cli_overrides_and_no_overwrite(tmp_path):
    cfg = _config(tmp_path, SMALL)
    out = tmp_path / "run"
    assert main(["--config", str(cfg), "--out-dir", str(out), "--no-plots", "--print-head", "0"]) == 0
    # non-empty out-dir without --overwrite: a timestamped subdirectory is used
    assert main(["--config", str(cfg), "--out-dir", str(out), "--no-plots", "--print-head", "0",
                 "--replications", "3", "--jobs", "2", "--executor", "thread"]) == 0
    subdirs = [p for p in out.iterdir() if p.is_dir()]
    assert len(subdirs) == 1
    s = pd.read_csv(subdirs[0] / "summary.csv")
    assert (s["n_replications"] == 3).all()
    assert not (out / "percentage_good.png").exists()


def test_cli_config_errors_exit_2(tmp_path, capsys):
    assert main(["--config", str(tmp_path / "missing.yaml")]) == 2
    bad = _config(tmp_path, "replications: 0\n")
    assert main(["--config", str(bad)]) == 2
    assert "ERROR" in capsys.readouterr().err


def test_cli_simulation_errors_exit_1(tmp_path, monkeypatch):
    def boom(cfg):
        raise ArithmeticError("numerical failure")

    monkeypatch.setattr("alphasim.cli.run_pipeline", boom)
    assert main(["--config", str(_config(tmp_path, SMALL)), "--print-head", "0"]) == 1


def test_self_checks_pass(capsys):
    run_self_checks()
    assert "self-checks passed" in capsys.readouterr().out
    assert main(["--self-check"]) == 0
