from __future__ import annotations

"""
analysis.runner
===============

Simulation harness:
- run_condition      one condition, all replications (sampler -> discretizer -> alpha)
- iter_estimates     per-condition batches from a worker pool, in completion order
- run_simulation     every estimate of the grid, sorted
- run_pipeline       estimates -> classified results -> per-condition summary

Each replication draws from its own SeedSequence-derived Generator keyed on
(seed, condition, replication_id), so the result set is identical for
inline, thread and process execution and for any task ordering. Only the
scalar alpha leaves a replication; generated matrices are dropped at once.
"""

import logging
import time
from concurrent.futures import Future, ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Dict, Iterator, List, Sequence

import pandas as pd

from alphasim.core.conditions import Condition
from alphasim.core.config import SimulationConfig
from alphasim.core.covariance import build_equicorrelated_matrix
from alphasim.core.discretize import DEFAULT_CUT_POINTS, discretize
from alphasim.core.errors import DecompositionError, InsufficientDataError
from alphasim.core.reliability import cronbach_alpha
from alphasim.core.sampling import MultivariateNormalSampler, rng_for_replication

from .aggregate import AggregatedResults, classify_estimates, merge_batches
from .records import AlphaEstimate
from .summary import summarize

LOG = logging.getLogger(__name__)

__all__ = [
    "SimulationResult",
    "estimate_replication",
    "run_condition",
    "iter_estimates",
    "run_simulation",
    "run_pipeline",
]


def estimate_replication(
    sampler: MultivariateNormalSampler,
    condition: Condition,
    replication_id: int,
    *,
    seed: int,
    cut_points: Sequence[float] = DEFAULT_CUT_POINTS,
) -> AlphaEstimate:
    """Draw, discretize and estimate alpha for one replication."""
    rng = rng_for_replication(seed, condition, replication_id)
    sample = sampler.draw(condition.sample_size, rng)
    responses = discretize(sample, cut_points)
    del sample
    try:
        alpha = cronbach_alpha(responses)
    except InsufficientDataError as e:
        return AlphaEstimate.failed(condition, replication_id, e)
    return AlphaEstimate(condition, int(replication_id), alpha)


def run_condition(
    condition: Condition,
    *,
    replications: int,
    seed: int,
    cut_points: Sequence[float] = DEFAULT_CUT_POINTS,
) -> List[AlphaEstimate]:
    """
    All replications of one condition, ids ``1..replications``.

    The covariance matrix and its factor are built once here. A
    DecompositionError marks every replication of this condition failed.
    """
    sigma = build_equicorrelated_matrix(condition.item_count, condition.correlation)
    try:
        sampler = MultivariateNormalSampler(sigma)
    except DecompositionError as e:
        LOG.error("Covariance factorization failed for %s: %s", condition.label(), e)
        return [AlphaEstimate.failed(condition, r, e) for r in range(1, int(replications) + 1)]

    return [
        estimate_replication(sampler, condition, r, seed=seed, cut_points=cut_points)
        for r in range(1, int(replications) + 1)
    ]


# -------------------------
# Parallel-safe worker (must be top-level for ProcessPool pickling)
# -------------------------


def _run_condition_worker(
    item_count: int,
    correlation: float,
    sample_size: int,
    *,
    replications: int,
    seed: int,
    cut_points: Sequence[float],
) -> List[AlphaEstimate]:
    cond = Condition(item_count=item_count, correlation=correlation, sample_size=sample_size)
    return run_condition(cond, replications=replications, seed=seed, cut_points=tuple(cut_points))


def _log_batch(done: int, total: int, batch: List[AlphaEstimate]) -> None:
    if not batch or not LOG.isEnabledFor(logging.DEBUG):
        return
    n_failed = sum(1 for e in batch if not e.ok)
    LOG.debug(
        "(%d/%d) %s: %d valid, %d failed",
        done,
        total,
        batch[0].condition.label(),
        len(batch) - n_failed,
        n_failed,
    )


def iter_estimates(cfg: SimulationConfig) -> Iterator[List[AlphaEstimate]]:
    """
    Yield one batch of estimates per condition.

    Batches arrive in completion order when ``cfg.jobs > 1``; consumers must
    not rely on ordering (the aggregator sorts).
    """
    conditions = list(cfg.conditions())
    total = len(conditions)
    kwargs = dict(replications=cfg.replications, seed=cfg.seed, cut_points=tuple(cfg.cut_points))

    # Single-process path
    if cfg.jobs <= 1:
        for done, cond in enumerate(conditions, start=1):
            batch = run_condition(cond, **kwargs)
            _log_batch(done, total, batch)
            yield batch
        return

    # Parallel path
    Executor = ThreadPoolExecutor if cfg.executor == "thread" else ProcessPoolExecutor
    pool = Executor(max_workers=cfg.jobs)
    futs: List[Future] = []
    try:
        futs = [
            pool.submit(
                _run_condition_worker,
                cond.item_count,
                cond.correlation,
                cond.sample_size,
                **kwargs,
            )
            for cond in conditions
        ]
        for done, fut in enumerate(as_completed(futs), start=1):
            batch = fut.result()
            _log_batch(done, total, batch)
            yield batch
    except BaseException:
        # Abort (Ctrl-C, consumer stopped early, worker raised): drop pending work.
        for f in futs:
            f.cancel()
        pool.shutdown(wait=False, cancel_futures=True)
        raise
    pool.shutdown(wait=True)


def run_simulation(cfg: SimulationConfig) -> List[AlphaEstimate]:
    """Every estimate of the grid, sorted by condition key then replication id."""
    out: List[AlphaEstimate] = []
    for batch in iter_estimates(cfg):
        out.extend(batch)
    out.sort(key=lambda e: (e.condition.key, e.replication_id))
    return out


@dataclass
class SimulationResult:
    config: SimulationConfig
    aggregated: AggregatedResults
    summary: pd.DataFrame
    elapsed_sec: float

    @property
    def failures(self) -> pd.DataFrame:
        return self.aggregated.failures

    def diagnostics(self) -> Dict[str, object]:
        f = self.aggregated.failures
        return {
            "conditions": int(len(self.summary)),
            "replications": int(self.config.replications),
            "estimates": int(self.aggregated.n_estimates),
            "valid_estimates": int(len(self.aggregated.classified)),
            "failed_estimates": int(f["failed_count"].sum()) if not f.empty else 0,
            "conditions_with_failures": int((f["failed_count"] > 0).sum()) if not f.empty else 0,
            "conditions_without_percentage": int(self.summary["percentage"].isna().sum()),
            "elapsed_sec": float(self.elapsed_sec),
        }


def run_pipeline(cfg: SimulationConfig, *, ci_level: float = 0.95) -> SimulationResult:
    """Run the grid, classify each batch as it completes, then reduce."""
    LOG.info(
        "Running alpha simulation: conditions=%d replications=%d seed=%d jobs=%d executor=%s",
        cfg.n_conditions,
        cfg.replications,
        cfg.seed,
        cfg.jobs,
        cfg.executor,
    )
    t0 = time.time()
    batches = (classify_estimates(b, threshold=cfg.threshold) for b in iter_estimates(cfg))
    aggregated = merge_batches(batches, threshold=cfg.threshold)
    summary = summarize(aggregated, conditions=cfg.conditions(), ci_level=ci_level)
    elapsed = time.time() - t0

    n_failed = int(aggregated.failures["failed_count"].sum()) if not aggregated.failures.empty else 0
    if n_failed:
        LOG.warning("%d of %d replications failed and were excluded", n_failed, aggregated.n_estimates)
    LOG.info("Simulation finished in %.1fs (%d estimates)", elapsed, aggregated.n_estimates)
    return SimulationResult(config=cfg, aggregated=aggregated, summary=summary, elapsed_sec=elapsed)
