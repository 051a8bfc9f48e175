# tests/unit/core/test_covariance.py
"""Equicorrelated matrix construction."""

import numpy as np
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from alphasim.core.covariance import build_equicorrelated_matrix
from alphasim.core.errors import InvalidParameterError


def test_matches_reference_layout():
    sigma = build_equicorrelated_matrix(3, 0.2)
    expected = np.array([[1.0, 0.2, 0.2], [0.2, 1.0, 0.2], [0.2, 0.2, 1.0]])
    np.testing.assert_array_equal(sigma, expected)
    assert sigma.dtype == np.float64


@settings(max_examples=60, deadline=None)
@given(
    k=st.integers(min_value=2, max_value=40),
    r=st.floats(min_value=0.0, max_value=0.99, allow_nan=False, allow_infinity=False),
)
def test_symmetric_unit_diagonal_positive_definite(k, r):
    sigma = build_equicorrelated_matrix(k, r)
    assert sigma.shape == (k, k)
    np.testing.assert_array_equal(sigma, sigma.T)
    np.testing.assert_array_equal(np.diag(sigma), np.ones(k))
    off = sigma[~np.eye(k, dtype=bool)]
    assert np.all(off == r)
    # eigenvalues: 1 + (k-1) r once, 1 - r (k-1) times
    w = np.linalg.eigvalsh(sigma)
    assert w.min() > 0.0
    assert w.max() == pytest.approx(1.0 + (k - 1) * r, rel=1e-9, abs=1e-12)


def test_returned_matrix_is_read_only():
    sigma = build_equicorrelated_matrix(4, 0.1)
    with pytest.raises(ValueError):
        sigma[0, 1] = 0.5


@pytest.mark.parametrize(
    "k, r",
    [(1, 0.1), (0, 0.1), (True, 0.1), (3.0, 0.1), (3, 1.0), (3, -0.1), (3, float("nan")), (3, "x")],
)
def test_invalid_inputs_raise(k, r):
    with pytest.raises(InvalidParameterError):
        build_equicorrelated_matrix(k, r)
