# src/alphasim/core/discretize.py
"""
Likert-style discretization of continuous item scores.

With the default cut points ``(-2, -1, 1, 2)`` the intervals are

    (-inf, -2) -> 1
    [-2,   -1) -> 2
    [-1,    1) -> 3
    [ 1,    2) -> 4
    [ 2, +inf) -> 5

A value equal to a cut point belongs to the interval that starts there.
"""

from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np

from .errors import InvalidParameterError

__all__ = [
    "DEFAULT_CUT_POINTS",
    "validate_cut_points",
    "discretize",
    "category_representatives",
]

DEFAULT_CUT_POINTS: Tuple[float, ...] = (-2.0, -1.0, 1.0, 2.0)


def validate_cut_points(cut_points: Sequence[float]) -> Tuple[float, ...]:
    try:
        cps = tuple(float(c) for c in cut_points)
    except (TypeError, ValueError) as e:
        raise InvalidParameterError(f"cut_points must be numbers, got {cut_points!r}") from e
    if len(cps) == 0:
        raise InvalidParameterError("cut_points must be non-empty")
    if not all(math.isfinite(c) for c in cps):
        raise InvalidParameterError(f"cut_points must be finite, got {cps!r}")
    if any(b <= a for a, b in zip(cps, cps[1:])):
        raise InvalidParameterError(f"cut_points must be strictly increasing, got {cps!r}")
    return cps


def discretize(x: np.ndarray, cut_points: Sequence[float] = DEFAULT_CUT_POINTS) -> np.ndarray:
    """Map continuous values to categories ``1..len(cut_points)+1`` elementwise."""
    cps = np.asarray(validate_cut_points(cut_points), dtype=np.float64)
    arr = np.asarray(x, dtype=np.float64)
    if np.isnan(arr).any():
        raise InvalidParameterError("cannot discretize NaN values")
    # side="right": a value equal to cps[i] lands in interval i+1 (left-closed).
    cats = np.searchsorted(cps, arr, side="right") + 1
    return cats.astype(np.int8 if cps.size < 127 else np.int64, copy=False)


def category_representatives(cut_points: Sequence[float] = DEFAULT_CUT_POINTS) -> np.ndarray:
    """
    One continuous point inside each category interval.

    Finite intervals use their midpoint; the two open-ended intervals sit one
    unit beyond the outermost cut point. ``discretize`` maps element ``i`` of
    the result to category ``i + 1``.
    """
    cps = validate_cut_points(cut_points)
    mids = [(a + b) / 2.0 for a, b in zip(cps, cps[1:])]
    return np.array([cps[0] - 1.0, *mids, cps[-1] + 1.0], dtype=np.float64)
