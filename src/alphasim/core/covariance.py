# src/alphasim/core/covariance.py
"""Equicorrelated (compound-symmetry) correlation matrices."""

from __future__ import annotations

import math

import numpy as np

from .errors import InvalidParameterError

__all__ = ["build_equicorrelated_matrix"]


def build_equicorrelated_matrix(item_count: int, correlation: float) -> np.ndarray:
    """
    Return the ``item_count x item_count`` matrix with 1.0 on the diagonal and
    ``correlation`` everywhere else.

    For ``correlation`` in [0, 1) the matrix is positive definite for any
    dimension: its eigenvalues are ``1 + (k-1)r`` (once) and ``1 - r``.

    The returned array is read-only; callers share it across replications.
    """
    if isinstance(item_count, bool) or not isinstance(item_count, (int, np.integer)):
        raise InvalidParameterError(f"item_count must be an int, got {item_count!r}")
    k = int(item_count)
    if k < 2:
        raise InvalidParameterError(f"item_count must be >= 2, got {k}")

    try:
        r = float(correlation)
    except (TypeError, ValueError) as e:
        raise InvalidParameterError(f"correlation must be a number, got {correlation!r}") from e
    if not math.isfinite(r) or not (0.0 <= r < 1.0):
        raise InvalidParameterError(f"correlation must be finite and in [0, 1), got {correlation!r}")

    sigma = np.full((k, k), r, dtype=np.float64)
    np.fill_diagonal(sigma, 1.0)
    sigma.setflags(write=False)
    return sigma
