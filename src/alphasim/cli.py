from __future__ import annotations

"""
alphasim.cli
============

Command-line entry point for the Cronbach's alpha Monte Carlo study.

    alphasim --out-dir artifacts/run1
    alphasim --config configs/reference.yaml --jobs 8 --write-estimates
    alphasim --self-check

Without ``--config`` the reference design is used (k = 3..12,
r in {.10, .15, .20, .25}, N in {50, 100, 250, 500, 1000}, 1000 replications).

Exit codes: 0 success, 1 simulation failure, 2 invalid config or arguments.
"""

import argparse
import json
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, Sequence

import numpy as np
import pandas as pd

from alphasim.analysis.runner import SimulationResult, run_pipeline
from alphasim.core.config import SimulationConfig
from alphasim.core.covariance import build_equicorrelated_matrix
from alphasim.core.discretize import discretize
from alphasim.core.errors import AlphaSimError, InvalidParameterError
from alphasim.core.reliability import cronbach_alpha
from alphasim.core.sampling import sample_covariance_error, sample_multivariate_normal
from alphasim.io.config_loader import load_config
from alphasim.io.manifest import build_manifest, write_manifest
from alphasim.io.storage import atomic_write_csv, atomic_write_json, ensure_dir

LOG = logging.getLogger(__name__)

__all__ = ["build_parser", "main", "run_self_checks"]


# -------------------------
# Self-checks (fast, deterministic)
# -------------------------


def _approx(a: float, b: float, tol: float) -> bool:
    return abs(a - b) <= tol


def run_self_checks() -> None:
    """
    Fast, deterministic checks that validate:
    1) Identical items give alpha = 1.
    2) Independent items give alpha close to 0.
    3) Sample covariance of drawn data tracks the target matrix.
    4) Discretizer boundaries are left-closed and categories cover 1..5.
    """
    rng = np.random.default_rng(20240101)

    # 1) Identical items
    col = rng.integers(1, 6, size=(500, 1))
    a_identical = cronbach_alpha(np.repeat(col, 6, axis=1))
    if not _approx(a_identical, 1.0, 1e-9):
        raise AssertionError(f"identical items: expected alpha=1, got {a_identical:.12f}")

    # 2) Independent items, discretized
    x = sample_multivariate_normal(build_equicorrelated_matrix(6, 0.0), 20_000, rng)
    a_indep = cronbach_alpha(discretize(x))
    if not _approx(a_indep, 0.0, 0.05):
        raise AssertionError(f"independent items: expected alpha~0, got {a_indep:.4f}")

    # 3) Covariance convergence
    sigma = build_equicorrelated_matrix(4, 0.10)
    err = sample_covariance_error(sample_multivariate_normal(sigma, 200_000, rng), sigma)
    if not (err < 0.02):
        raise AssertionError(f"sample covariance deviates from target by {err:.4f}")

    # 4) Discretizer boundaries
    got = discretize(np.array([[-2.5, -2.0, -1.0, 0.0, 1.0, 2.0, 2.5]])).ravel().tolist()
    if got != [1, 2, 3, 3, 4, 5, 5]:
        raise AssertionError(f"discretizer boundary mismatch: {got}")

    print("self-checks passed (identical items, independence, covariance, discretizer).")


# -------------------------
# Artifact bundle
# -------------------------


def _now_stamp() -> str:
    return datetime.utcnow().strftime("%Y%m%d_%H%M%S")


def _repo_root_guess() -> Path:
    here = Path(__file__).resolve()
    parents = list(here.parents)
    # .../src/alphasim/cli.py -> repo root is 2 up
    return parents[2] if len(parents) >= 3 else here.parent


def _write_bundle(
    result: SimulationResult,
    out_dir: Path,
    *,
    write_estimates: bool,
    plots: bool,
    started: float,
    argv: Sequence[str],
) -> Dict[str, Path]:
    ensure_dir(out_dir)
    outputs: Dict[str, Path] = {}

    outputs["summary"] = out_dir / "summary.csv"
    atomic_write_csv(result.summary, outputs["summary"])

    outputs["failures"] = out_dir / "failures.csv"
    atomic_write_csv(result.failures, outputs["failures"])

    outputs["config_resolved"] = out_dir / "config_resolved.json"
    atomic_write_json(outputs["config_resolved"], result.config.to_dict())

    if write_estimates:
        agg = result.aggregated
        est = pd.concat(
            [agg.classified.assign(error=""), agg.failed.assign(alpha=np.nan, label="")],
            ignore_index=True,
        )
        est = est.sort_values(["item_count", "correlation", "sample_size", "replication_id"], kind="mergesort")
        outputs["estimates"] = out_dir / "estimates.csv"
        atomic_write_csv(
            est[["item_count", "correlation", "sample_size", "replication_id", "alpha", "label", "error"]],
            outputs["estimates"],
        )

    if plots:
        from alphasim.analysis.figures import plot_percentage_good

        outputs["percentage_good"] = plot_percentage_good(
            result.summary, out_dir / "percentage_good.png", threshold=result.config.threshold
        )

    manifest = build_manifest(
        result.config,
        started=started,
        finished=time.time(),
        outputs=outputs,
        diagnostics=result.diagnostics(),
        argv=argv,
        repo_root=_repo_root_guess(),
    )
    outputs["manifest"] = write_manifest(manifest, out_dir / "manifest.json")
    LOG.info("Run %s written to %s", manifest.run_id, out_dir)
    return outputs


# -------------------------
# CLI
# -------------------------


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="alphasim",
        description="Monte Carlo study of Cronbach's alpha on discretized Likert-type items.",
    )
    ap.add_argument("--config", type=str, default=None, help="Path to YAML config (defaults: reference grid).")
    ap.add_argument("--replications", type=int, default=None, help="Override replications per condition.")
    ap.add_argument("--seed", type=int, default=None, help="Override the root seed.")
    ap.add_argument("--jobs", type=int, default=None, help="Parallel workers (1 = inline).")
    ap.add_argument("--executor", choices=["process", "thread"], default=None)
    ap.add_argument("--threshold", type=float, default=None, help="Override the acceptability threshold.")
    ap.add_argument("--out-dir", type=str, default=None, help="Write the artifact bundle to this directory.")
    ap.add_argument("--overwrite", action="store_true", help="Overwrite outputs in out-dir if non-empty.")
    ap.add_argument("--write-estimates", action="store_true", help="Also write per-replication estimates.csv.")
    ap.add_argument("--no-plots", action="store_true", help="Skip percentage_good.png.")
    ap.add_argument("--print-head", type=int, default=10, help="Print first N rows of the summary.")
    ap.add_argument("--log-level", type=str, default="INFO", help="Logging level.")
    ap.add_argument("--self-check", action="store_true", help="Run fast statistical sanity checks and exit.")
    return ap


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    if args.self_check:
        run_self_checks()
        return 0

    started = time.time()

    config_path = Path(args.config).expanduser() if args.config else None
    if config_path is not None and not config_path.exists():
        print(f"ERROR: config path does not exist: {str(config_path)!r}", file=sys.stderr)
        return 2

    try:
        cfg: SimulationConfig = load_config(
            config_path,
            replications=args.replications,
            seed=args.seed,
            jobs=args.jobs,
            executor=args.executor,
            threshold=args.threshold,
        )
    except (InvalidParameterError, OSError) as e:
        LOG.exception("Config loading/validation failed.")
        print(f"ERROR: config loading/validation failed: {e}", file=sys.stderr)
        return 2

    out_dir: Path | None = Path(args.out_dir).expanduser() if args.out_dir else None
    if out_dir is not None and out_dir.exists() and any(out_dir.iterdir()) and not args.overwrite:
        out_dir = out_dir / f"run_{_now_stamp()}"

    try:
        result = run_pipeline(cfg)
    except (AlphaSimError, ArithmeticError, ValueError, OSError) as e:
        LOG.exception("Simulation failed.")
        print(f"ERROR: simulation failed: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result.diagnostics(), sort_keys=True))

    if out_dir is not None:
        try:
            _write_bundle(
                result,
                out_dir,
                write_estimates=bool(args.write_estimates),
                plots=not args.no_plots,
                started=started,
                argv=list(argv) if argv is not None else sys.argv[1:],
            )
        except (OSError, ValueError) as e:
            LOG.exception("Failed to write artifact bundle.")
            print(f"ERROR: failed to write outputs: {e}", file=sys.stderr)
            return 1
        print(f"[alphasim] outputs written to: {out_dir}", file=sys.stderr)

    if args.print_head and int(args.print_head) > 0:
        cols = ["item_count", "correlation", "sample_size", "good_count", "bad_count",
                "failed_count", "percentage"]
        with pd.option_context("display.width", 160, "display.max_columns", 200):
            print(result.summary[cols].head(int(args.print_head)))

    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
