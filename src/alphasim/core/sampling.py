from __future__ import annotations

"""
core.sampling
=============

Zero-mean multivariate normal draws + per-replication RNG streams.

Key policies:
- Factorize once per condition; reuse the factor for every replication.
- Cholesky first. Eigen-decomposition only when Sigma is PSD but singular
  (tiny negative round-off clipped to zero). Anything else is a
  DecompositionError.
- Each (seed, condition, replication) owns an independent Generator, so
  results are identical across process/thread/inline execution and any
  task ordering.
"""

from typing import Tuple

import math

import numpy as np

from .conditions import Condition
from .errors import DecompositionError, InvalidParameterError

__all__ = [
    "rng_for_replication",
    "factorize_covariance",
    "MultivariateNormalSampler",
    "sample_multivariate_normal",
    "sample_covariance_error",
]

_SYM_TOL = 1e-10
_PSD_TOL = 1e-10


def rng_for_replication(seed: int, condition: Condition, replication_id: int) -> np.random.Generator:
    """
    Stable-per-cell RNG keyed by (seed, item_count, correlation, sample_size, replication_id).
    """
    if isinstance(seed, bool) or not isinstance(seed, (int, np.integer)) or int(seed) < 0:
        raise InvalidParameterError(f"seed must be an int >= 0, got {seed!r}")
    if isinstance(replication_id, bool) or not isinstance(replication_id, (int, np.integer)):
        raise InvalidParameterError(f"replication_id must be an int, got {replication_id!r}")
    ss = np.random.SeedSequence([int(seed), *condition.seed_words, int(replication_id)])
    return np.random.default_rng(ss)


def factorize_covariance(sigma: np.ndarray) -> Tuple[np.ndarray, str]:
    """
    Return ``(L, method)`` with ``L @ L.T == sigma``.

    ``method`` is ``"cholesky"`` or ``"eigh"``. Raises DecompositionError if
    sigma is not a finite, square, symmetric positive semi-definite matrix.
    """
    s = np.asarray(sigma, dtype=np.float64)
    if s.ndim != 2 or s.shape[0] != s.shape[1] or s.shape[0] == 0:
        raise DecompositionError(f"covariance must be a non-empty square matrix, got shape {s.shape}")
    if not np.all(np.isfinite(s)):
        raise DecompositionError("covariance contains non-finite entries")
    scale = max(1.0, float(np.max(np.abs(s))))
    if not np.allclose(s, s.T, rtol=0.0, atol=_SYM_TOL * scale):
        raise DecompositionError("covariance is not symmetric")

    try:
        return np.linalg.cholesky(s), "cholesky"
    except np.linalg.LinAlgError:
        pass

    # Singular-but-PSD path (e.g. perfectly correlated items).
    w, v = np.linalg.eigh(s)
    wmin = float(w.min())
    if wmin < -_PSD_TOL * scale:
        raise DecompositionError(
            f"covariance is not positive semi-definite (min eigenvalue={wmin:.3e})"
        )
    w = np.clip(w, 0.0, None)
    return v * np.sqrt(w)[None, :], "eigh"


class MultivariateNormalSampler:
    """Draws rows from N(0, sigma) using a factor computed once at construction."""

    def __init__(self, sigma: np.ndarray) -> None:
        factor, method = factorize_covariance(sigma)
        factor.setflags(write=False)
        self.factor = factor
        self.method = method
        self.dim = int(factor.shape[0])

    def draw(self, n: int, rng: np.random.Generator) -> np.ndarray:
        """Return an ``(n, dim)`` matrix of i.i.d. MVN rows."""
        if not isinstance(rng, np.random.Generator):
            raise TypeError(f"rng must be a numpy.random.Generator, got {type(rng).__name__}")
        if isinstance(n, bool) or not isinstance(n, (int, np.integer)) or int(n) < 1:
            raise InvalidParameterError(f"sample size must be an int >= 1, got {n!r}")
        z = rng.standard_normal(size=(int(n), self.dim))
        return z @ self.factor.T

    def __repr__(self) -> str:
        return f"MultivariateNormalSampler(dim={self.dim}, method={self.method!r})"


def sample_multivariate_normal(sigma: np.ndarray, n: int, rng: np.random.Generator) -> np.ndarray:
    """One-shot convenience: factorize ``sigma`` and draw ``n`` rows."""
    return MultivariateNormalSampler(sigma).draw(n, rng)


def sample_covariance_error(x: np.ndarray, sigma: np.ndarray) -> float:
    """Max absolute difference between the sample covariance of ``x`` and ``sigma``."""
    xs = np.asarray(x, dtype=np.float64)
    if xs.ndim != 2 or xs.shape[0] < 2:
        raise InvalidParameterError(f"need an (N>=2, n) matrix, got shape {xs.shape}")
    est = np.cov(xs, rowvar=False, ddof=1)
    err = float(np.max(np.abs(est - np.asarray(sigma, dtype=np.float64))))
    if not math.isfinite(err):
        raise DecompositionError("sample covariance is non-finite")
    return err
