# src/alphasim/analysis/records.py
"""Per-replication result record produced by the simulation runner."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from alphasim.core.conditions import Condition

CONDITION_KEYS = ("item_count", "correlation", "sample_size")


@dataclass(frozen=True)
class AlphaEstimate:
    """
    One (condition, replication) outcome.

    ``alpha is None`` marks a failed replication; ``error`` then carries
    ``"<ExceptionType>: <message>"``. A failed estimate is never encoded as
    NaN/Inf in ``alpha``.
    """

    condition: Condition
    replication_id: int
    alpha: Optional[float] = None
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if self.alpha is None:
            if not self.error:
                raise ValueError("a failed AlphaEstimate must carry an error message")
            return
        a = float(self.alpha)
        if not math.isfinite(a):
            raise ValueError(f"alpha must be finite, got {self.alpha!r}")
        if self.error is not None:
            raise ValueError("a valid AlphaEstimate cannot carry an error")
        object.__setattr__(self, "alpha", a)

    @property
    def ok(self) -> bool:
        return self.alpha is not None

    @classmethod
    def failed(cls, condition: Condition, replication_id: int, exc: BaseException) -> "AlphaEstimate":
        return cls(condition, int(replication_id), None, f"{type(exc).__name__}: {exc}")

    def as_record(self) -> Dict[str, Any]:
        return {
            "item_count": self.condition.item_count,
            "correlation": self.condition.correlation,
            "sample_size": self.condition.sample_size,
            "replication_id": int(self.replication_id),
            "alpha": float("nan") if self.alpha is None else float(self.alpha),
            "ok": self.ok,
            "error": self.error or "",
        }


__all__ = ["CONDITION_KEYS", "AlphaEstimate"]
