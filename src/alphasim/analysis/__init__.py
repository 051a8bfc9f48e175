"""
Analysis package: simulation runner, classification and summary.

Public API surface:

    Runner:
        run_condition, iter_estimates, run_simulation, run_pipeline

    Aggregation:
        classify_estimates, merge_batches, aggregate_estimates

    Summary:
        summarize, summary_rows, wilson_ci

Figures live in ``alphasim.analysis.figures`` (imports matplotlib).
"""

from .aggregate import (
    AggregatedResults,
    ClassifiedBatch,
    aggregate_estimates,
    classify_estimates,
    merge_batches,
)
from .ci import mc_standard_error, wilson_ci
from .records import AlphaEstimate
from .runner import (
    SimulationResult,
    estimate_replication,
    iter_estimates,
    run_condition,
    run_pipeline,
    run_simulation,
)
from .summary import SummaryRow, summarize, summary_rows

__all__ = [
    # records
    "AlphaEstimate",
    "SummaryRow",
    # runner
    "SimulationResult",
    "estimate_replication",
    "run_condition",
    "iter_estimates",
    "run_simulation",
    "run_pipeline",
    # aggregation
    "AggregatedResults",
    "ClassifiedBatch",
    "classify_estimates",
    "merge_batches",
    "aggregate_estimates",
    # summary
    "summarize",
    "summary_rows",
    "wilson_ci",
    "mc_standard_error",
]
