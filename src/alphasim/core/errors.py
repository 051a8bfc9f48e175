# src/alphasim/core/errors.py
"""Exception hierarchy shared by every stage of the simulation pipeline."""

from __future__ import annotations

__all__ = [
    "AlphaSimError",
    "InvalidParameterError",
    "DecompositionError",
    "InsufficientDataError",
]


class AlphaSimError(Exception):
    """Base class for alphasim failures."""


class InvalidParameterError(AlphaSimError, ValueError):
    """Malformed condition or configuration input. Fatal; raised before sampling."""


class DecompositionError(AlphaSimError, ArithmeticError):
    """Covariance matrix could not be factorized (not symmetric PSD)."""


class InsufficientDataError(AlphaSimError, ArithmeticError):
    """Replication too small or degenerate to yield a reliability estimate."""
