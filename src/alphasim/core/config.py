# src/alphasim/core/config.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Tuple

import math

from .conditions import (
    DEFAULT_CORRELATIONS,
    DEFAULT_ITEM_COUNTS,
    DEFAULT_SAMPLE_SIZES,
    ConditionSpace,
)
from .covariance import build_equicorrelated_matrix
from .discretize import DEFAULT_CUT_POINTS, validate_cut_points
from .errors import InvalidParameterError

Executor = Literal["process", "thread"]

DEFAULT_REPLICATIONS = 1000
DEFAULT_THRESHOLD = 0.70
DEFAULT_SEED = 1337


# ---------------------------------------------------------------------
# Canonical config used by runner / cli / tests
# ---------------------------------------------------------------------
@dataclass
class SimulationConfig:
    item_counts: Tuple[int, ...] = DEFAULT_ITEM_COUNTS
    correlations: Tuple[float, ...] = DEFAULT_CORRELATIONS
    sample_sizes: Tuple[int, ...] = DEFAULT_SAMPLE_SIZES

    replications: int = DEFAULT_REPLICATIONS
    threshold: float = DEFAULT_THRESHOLD
    cut_points: Tuple[float, ...] = DEFAULT_CUT_POINTS

    seed: int = DEFAULT_SEED
    jobs: int = 1
    executor: Executor = "process"

    _space: ConditionSpace = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if isinstance(self.executor, str):
            self.executor = self.executor.lower().strip()  # type: ignore[assignment]
        try:
            self.item_counts = tuple(self.item_counts)
            self.correlations = tuple(self.correlations)
            self.sample_sizes = tuple(self.sample_sizes)
        except TypeError as e:
            raise InvalidParameterError(f"design axes must be sequences: {e}") from e
        self.cut_points = validate_cut_points(self.cut_points)
        validate_config(self)

    def conditions(self) -> ConditionSpace:
        return self._space

    @property
    def n_conditions(self) -> int:
        return len(self._space)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_counts": [int(x) for x in self._space.item_counts],
            "correlations": [float(x) for x in self._space.correlations],
            "sample_sizes": [int(x) for x in self._space.sample_sizes],
            "replications": int(self.replications),
            "threshold": float(self.threshold),
            "cut_points": [float(x) for x in self.cut_points],
            "seed": int(self.seed),
            "jobs": int(self.jobs),
            "executor": str(self.executor),
        }


def _is_int(x: Any) -> bool:
    return isinstance(x, int) and not isinstance(x, bool)


def validate_config(cfg: SimulationConfig) -> None:
    """Raise InvalidParameterError for anything that would fail later in the run."""
    # --- design axes ---
    space = ConditionSpace(cfg.item_counts, cfg.correlations, cfg.sample_sizes)
    for k, r in space.covariance_keys():
        build_equicorrelated_matrix(k, r)
    cfg._space = space

    # --- sizes ---
    if not _is_int(cfg.replications) or cfg.replications < 1:
        raise InvalidParameterError(f"replications must be a positive int, got {cfg.replications!r}")
    if not _is_int(cfg.seed) or cfg.seed < 0:
        raise InvalidParameterError(f"seed must be an int >= 0, got {cfg.seed!r}")
    if not _is_int(cfg.jobs) or cfg.jobs < 1:
        raise InvalidParameterError(f"jobs must be an int >= 1, got {cfg.jobs!r}")
    if cfg.executor not in ("process", "thread"):
        raise InvalidParameterError(f"executor must be 'process' or 'thread', got {cfg.executor!r}")

    # --- classification ---
    if isinstance(cfg.threshold, bool) or not isinstance(cfg.threshold, (int, float)):
        raise InvalidParameterError(f"threshold must be a number, got {cfg.threshold!r}")
    if not math.isfinite(float(cfg.threshold)) or float(cfg.threshold) > 1.0:
        raise InvalidParameterError(f"threshold must be finite and <= 1, got {cfg.threshold!r}")


__all__ = [
    "DEFAULT_REPLICATIONS",
    "DEFAULT_SEED",
    "DEFAULT_THRESHOLD",
    "Executor",
    "SimulationConfig",
    "validate_config",
]
