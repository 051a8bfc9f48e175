# tests/unit/analysis/test_summary.py
"""Per-condition reduction."""

import math

import pytest

from alphasim.analysis.aggregate import aggregate_estimates
from alphasim.analysis.records import AlphaEstimate
from alphasim.analysis.summary import summarize, summary_rows
from alphasim.core.conditions import Condition, ConditionSpace
from alphasim.core.errors import InsufficientDataError

C1 = Condition(3, 0.1, 50)
C2 = Condition(3, 0.1, 1)


def _aggregated():
    est = [AlphaEstimate(C1, r, a) for r, a in enumerate([0.9, 0.8, 0.75, 0.5], start=1)]
    est.append(AlphaEstimate.failed(C1, 5, InsufficientDataError("zero variance")))
    est += [AlphaEstimate.failed(C2, r, InsufficientDataError("N=1")) for r in (1, 2, 3)]
    return aggregate_estimates(est, threshold=0.70)


def test_counts_and_percentage():
    s = summarize(_aggregated()).set_index("sample_size")
    row = s.loc[50]
    assert row["good_count"] == 3
    assert row["bad_count"] == 1
    assert row["failed_count"] == 1
    assert row["n_valid"] == 4
    assert row["n_replications"] == 5
    assert row["percentage"] == pytest.approx(0.75)
    assert row["percentage_ci_low"] < 0.75 < row["percentage_ci_high"]
    assert row["alpha_mean"] == pytest.approx(0.7375)
    assert row["alpha_q0500"] == pytest.approx(0.775)


def test_all_failed_condition_has_missing_percentage():
    s = summarize(_aggregated()).set_index("sample_size")
    row = s.loc[1]
    assert row["good_count"] == 0
    assert row["bad_count"] == 0
    assert row["failed_count"] == 3
    assert math.isnan(row["percentage"])
    assert math.isnan(row["alpha_mean"])


def test_rows_follow_design_and_include_unseen_conditions():
    space = ConditionSpace([3], [0.1], [1, 50, 100])
    s = summarize(_aggregated(), conditions=space)
    assert s["sample_size"].tolist() == [1, 50, 100]
    unseen = s.iloc[2]
    assert unseen["n_replications"] == 0
    assert math.isnan(unseen["percentage"])


def test_results_outside_design_raise():
    with pytest.raises(ValueError, match="outside the design"):
        summarize(_aggregated(), conditions=ConditionSpace([3], [0.1], [50]))


def test_summary_rows_convert_missing_to_none():
    rows = {r.sample_size: r for r in summary_rows(summarize(_aggregated()))}
    assert rows[1].percentage is None
    assert rows[1].n_replications == 3
    assert rows[50].percentage == pytest.approx(0.75)
    assert rows[50].n_valid == 4
    assert rows[50].condition == C1


def test_invalid_quantile_raises():
    with pytest.raises(ValueError):
        summarize(_aggregated(), quantiles=(1.5,))
