# src/alphasim/core/reliability.py
"""
Cronbach's alpha (classical, unstandardized).

    alpha = n / (n - 1) * (1 - sum(var(item_j)) / var(sum_j item_j))

Variances are sample variances (ddof=1). Degenerate inputs raise
InsufficientDataError instead of returning NaN/Inf.
"""

from __future__ import annotations

import math

import numpy as np

from .errors import InsufficientDataError

__all__ = ["cronbach_alpha"]


def cronbach_alpha(responses: np.ndarray) -> float:
    """
    Cronbach's alpha of an ``(N respondents, n items)`` response matrix.

    Raises
    ------
    InsufficientDataError
        If ``N < 2``, ``n < 2``, the input is not 2-D / finite, or the total
        score variance is zero.
    """
    x = np.asarray(responses, dtype=np.float64)
    if x.ndim != 2:
        raise InsufficientDataError(f"responses must be 2-D (respondents x items), got ndim={x.ndim}")
    n_resp, n_items = x.shape
    if n_resp < 2:
        raise InsufficientDataError(f"need at least 2 respondents, got {n_resp}")
    if n_items < 2:
        raise InsufficientDataError(f"need at least 2 items, got {n_items}")
    if not np.all(np.isfinite(x)):
        raise InsufficientDataError("responses contain non-finite values")

    item_vars = x.var(axis=0, ddof=1)
    total_var = float(x.sum(axis=1).var(ddof=1))
    if not math.isfinite(total_var) or total_var <= 0.0:
        raise InsufficientDataError(f"total score variance is zero (N={n_resp}, n={n_items})")

    alpha = (n_items / (n_items - 1.0)) * (1.0 - float(item_vars.sum()) / total_var)
    if not math.isfinite(alpha):
        raise InsufficientDataError("alpha is non-finite")
    return float(alpha)
