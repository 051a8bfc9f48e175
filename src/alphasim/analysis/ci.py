"""Confidence interval helpers for Monte Carlo proportions."""

from __future__ import annotations

from math import sqrt
from typing import Tuple

from scipy import stats as scipy_stats


def _z(level: float) -> float:
    if not (0.0 < level < 1.0):
        raise ValueError("level must lie in (0,1)")
    return float(scipy_stats.norm.ppf(1.0 - (1.0 - level) / 2.0))


def wilson_ci(successes: int, n: int, level: float = 0.95) -> Tuple[float, float]:
    """Wilson score interval for a binomial proportion."""
    if n <= 0:
        raise ValueError("Sample size n must be positive for Wilson CI")
    if successes < 0 or successes > n:
        raise ValueError("successes must lie in [0, n]")

    z = _z(level)
    p_hat = successes / n
    z2 = z * z
    denom = 1.0 + z2 / n
    center = (p_hat + z2 / (2.0 * n)) / denom
    margin = (z / denom) * sqrt(p_hat * (1.0 - p_hat) / n + z2 / (4.0 * n * n))
    lo = max(0.0, center - margin)
    hi = min(1.0, center + margin)
    return float(lo), float(hi)


def mc_standard_error(p: float, n: int) -> float:
    """Monte Carlo standard error of a proportion estimated from ``n`` replications."""
    if n <= 0:
        raise ValueError("n must be positive")
    if not (0.0 <= p <= 1.0):
        raise ValueError("p must lie in [0,1]")
    return float(sqrt(p * (1.0 - p) / n))


__all__ = ["wilson_ci", "mc_standard_error"]
