# tests/unit/core/test_reliability.py
"""Cronbach's alpha estimator."""

import numpy as np
import pytest

from alphasim.core.errors import InsufficientDataError
from alphasim.core.reliability import cronbach_alpha


def test_identical_columns_give_one():
    col = np.array([[1], [2], [3], [4], [5], [2], [3]])
    assert cronbach_alpha(np.repeat(col, 4, axis=1)) == pytest.approx(1.0, abs=1e-12)


def test_hand_computed_example():
    x = np.array([[1, 2], [2, 3], [3, 3], [4, 5]], dtype=float)
    item_vars = x.var(axis=0, ddof=1).sum()
    total_var = x.sum(axis=1).var(ddof=1)
    expected = 2.0 * (1.0 - item_vars / total_var)
    assert cronbach_alpha(x) == pytest.approx(expected)


def test_independent_items_near_zero():
    x = np.random.default_rng(11).standard_normal((50_000, 6))
    assert abs(cronbach_alpha(x)) < 0.03


def test_equicorrelated_items_match_spearman_brown():
    k, r = 8, 0.3
    sigma = np.full((k, k), r)
    np.fill_diagonal(sigma, 1.0)
    x = np.random.default_rng(5).multivariate_normal(np.zeros(k), sigma, size=100_000)
    assert cronbach_alpha(x) == pytest.approx(k * r / (1 + (k - 1) * r), abs=0.01)


def test_alpha_can_be_negative():
    x = np.array([[1, 5], [2, 4], [3, 3], [4, 2], [5, 1], [1, 4]], dtype=float)
    assert cronbach_alpha(x) < 0.0


@pytest.mark.parametrize(
    "x",
    [
        np.ones((1, 4)),  # one respondent
        np.ones((10, 1)),  # one item
        np.full((10, 3), 3.0),  # zero total variance
        np.arange(10.0),  # not 2-D
        np.array([[1.0, np.nan], [2.0, 3.0]]),
    ],
)
def test_degenerate_inputs_raise(x):
    with pytest.raises(InsufficientDataError):
        cronbach_alpha(x)


def test_accepts_integer_category_matrices():
    x = np.array([[1, 2, 2], [3, 3, 4], [5, 4, 5], [2, 2, 1]], dtype=np.int8)
    a = cronbach_alpha(x)
    assert isinstance(a, float)
    assert 0.0 < a <= 1.0
