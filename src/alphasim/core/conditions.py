# src/alphasim/core/conditions.py
"""
Simulation design grid.

A ``Condition`` is one cell of the design (item count x inter-item
correlation x sample size). ``ConditionSpace`` enumerates the Cartesian
product of the three axes lazily and in a fixed order:

    outer  item_count   ascending
    middle correlation  ascending
    inner  sample_size  ascending

The order only drives output labeling; seeding is keyed on condition values,
so results do not depend on it.
"""

from __future__ import annotations

import itertools
import math
from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence, Tuple

from .errors import InvalidParameterError

__all__ = [
    "DEFAULT_ITEM_COUNTS",
    "DEFAULT_CORRELATIONS",
    "DEFAULT_SAMPLE_SIZES",
    "Condition",
    "ConditionSpace",
    "iter_conditions",
]

DEFAULT_ITEM_COUNTS: Tuple[int, ...] = tuple(range(3, 13))
DEFAULT_CORRELATIONS: Tuple[float, ...] = (0.10, 0.15, 0.20, 0.25)
DEFAULT_SAMPLE_SIZES: Tuple[int, ...] = (50, 100, 250, 500, 1000)

# Correlations are keyed at this resolution for seeding and de-duplication.
_CORR_SCALE = 1_000_000


def _strict_int(x: object, name: str, *, min_value: int) -> int:
    if isinstance(x, bool):
        raise InvalidParameterError(f"{name} must be an int, got bool {x!r}")
    try:
        xi = int(x)  # type: ignore[arg-type]
    except (TypeError, ValueError) as e:
        raise InvalidParameterError(f"{name} must be an int, got {x!r}") from e
    if xi != x:
        raise InvalidParameterError(f"{name} must be integral (no silent coercion), got {x!r}")
    if xi < min_value:
        raise InvalidParameterError(f"{name} must be >= {min_value}, got {xi}")
    return xi


def _finite_float(x: object, name: str) -> float:
    if isinstance(x, bool):
        raise InvalidParameterError(f"{name} must be a number, got bool {x!r}")
    try:
        xf = float(x)  # type: ignore[arg-type]
    except (TypeError, ValueError) as e:
        raise InvalidParameterError(f"{name} must be a number, got {x!r}") from e
    if not math.isfinite(xf):
        raise InvalidParameterError(f"{name} must be finite, got {xf!r}")
    return xf


@dataclass(frozen=True, order=True)
class Condition:
    """One cell of the simulation grid."""

    item_count: int
    correlation: float
    sample_size: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "item_count", _strict_int(self.item_count, "item_count", min_value=2))
        object.__setattr__(self, "correlation", _finite_float(self.correlation, "correlation"))
        object.__setattr__(self, "sample_size", _strict_int(self.sample_size, "sample_size", min_value=1))

    @property
    def key(self) -> Tuple[int, float, int]:
        return (self.item_count, self.correlation, self.sample_size)

    @property
    def seed_words(self) -> Tuple[int, int, int]:
        """Integer words identifying this condition inside a SeedSequence."""
        return (self.item_count, int(round(self.correlation * _CORR_SCALE)), self.sample_size)

    def label(self) -> str:
        return f"k={self.item_count} r={self.correlation:.2f} N={self.sample_size}"


def _normalize_axis(values: Iterable[object], name: str, cast) -> Tuple:
    vals = [cast(v, f"{name}[{i}]") for i, v in enumerate(values)]
    if not vals:
        raise InvalidParameterError(f"{name} must be non-empty")
    if name == "correlations":
        keys = [round(v * _CORR_SCALE) for v in vals]
        if len(set(keys)) != len(keys):
            raise InvalidParameterError(f"{name} contains duplicates: {vals!r}")
    elif len(set(vals)) != len(vals):
        raise InvalidParameterError(f"{name} contains duplicates: {vals!r}")
    return tuple(sorted(vals))


class ConditionSpace:
    """Re-iterable Cartesian product of the three design axes."""

    def __init__(
        self,
        item_counts: Sequence[int] = DEFAULT_ITEM_COUNTS,
        correlations: Sequence[float] = DEFAULT_CORRELATIONS,
        sample_sizes: Sequence[int] = DEFAULT_SAMPLE_SIZES,
    ) -> None:
        self.item_counts: Tuple[int, ...] = _normalize_axis(
            item_counts, "item_counts", lambda v, n: _strict_int(v, n, min_value=2)
        )
        self.correlations: Tuple[float, ...] = _normalize_axis(correlations, "correlations", _finite_float)
        self.sample_sizes: Tuple[int, ...] = _normalize_axis(
            sample_sizes, "sample_sizes", lambda v, n: _strict_int(v, n, min_value=1)
        )

    def __iter__(self) -> Iterator[Condition]:
        for k, r, n in itertools.product(self.item_counts, self.correlations, self.sample_sizes):
            yield Condition(item_count=k, correlation=r, sample_size=n)

    def __len__(self) -> int:
        return len(self.item_counts) * len(self.correlations) * len(self.sample_sizes)

    def __contains__(self, cond: object) -> bool:
        if not isinstance(cond, Condition):
            return False
        return (
            cond.item_count in self.item_counts
            and cond.correlation in self.correlations
            and cond.sample_size in self.sample_sizes
        )

    def covariance_keys(self) -> Iterator[Tuple[int, float]]:
        """Distinct (item_count, correlation) pairs; one covariance matrix each."""
        return itertools.product(self.item_counts, self.correlations)

    def __repr__(self) -> str:
        return (
            f"ConditionSpace(item_counts={list(self.item_counts)}, "
            f"correlations={list(self.correlations)}, sample_sizes={list(self.sample_sizes)})"
        )


def iter_conditions(
    item_counts: Sequence[int] = DEFAULT_ITEM_COUNTS,
    correlations: Sequence[float] = DEFAULT_CORRELATIONS,
    sample_sizes: Sequence[int] = DEFAULT_SAMPLE_SIZES,
) -> Iterator[Condition]:
    return iter(ConditionSpace(item_counts, correlations, sample_sizes))
