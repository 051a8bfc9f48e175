from __future__ import annotations

"""
analysis.summary
================

Per-condition reduction of classified alpha estimates:

    good_count, bad_count      over valid estimates only
    percentage                 good / (good + bad); missing when no valid estimates
    failed_count               replications excluded from classification

plus Monte Carlo diagnostics (Wilson interval, standard error) and the
distribution of alpha (mean, sd, quantiles). Rows are sorted in design-grid
order (item_count, correlation, sample_size).
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

import math

import numpy as np
import pandas as pd

from alphasim.core.conditions import Condition

from .aggregate import GOOD, AggregatedResults
from .ci import mc_standard_error, wilson_ci
from .records import CONDITION_KEYS

__all__ = ["SummaryRow", "summarize", "summary_rows", "PLOT_COLUMNS"]

# Minimal contract consumed by plotting.
PLOT_COLUMNS = ("item_count", "correlation", "sample_size", "percentage")


def _q_label(qq: float) -> str:
    return f"q{int(round(qq * 1000.0)):04d}"


def _opt(x: Any) -> Optional[float]:
    if x is None:
        return None
    xf = float(x)
    return None if math.isnan(xf) else xf


@dataclass(frozen=True)
class SummaryRow:
    condition: Condition
    good_count: int
    bad_count: int
    failed_count: int
    percentage: Optional[float]
    percentage_ci_low: Optional[float] = None
    percentage_ci_high: Optional[float] = None
    alpha_mean: Optional[float] = None
    alpha_std: Optional[float] = None

    @property
    def n_valid(self) -> int:
        return self.good_count + self.bad_count

    @property
    def n_replications(self) -> int:
        return self.n_valid + self.failed_count

    @property
    def item_count(self) -> int:
        return self.condition.item_count

    @property
    def correlation(self) -> float:
        return self.condition.correlation

    @property
    def sample_size(self) -> int:
        return self.condition.sample_size


def _universe(aggregated: AggregatedResults, conditions: Optional[Iterable[Condition]]) -> List[Condition]:
    seen = [
        Condition(int(k), float(r), int(n))
        for k, r, n in aggregated.failures[list(CONDITION_KEYS)].itertuples(index=False, name=None)
    ]
    if conditions is None:
        return sorted(seen)
    expected = {c.key: c for c in conditions}
    extra = [c for c in seen if c.key not in expected]
    if extra:
        raise ValueError(
            f"results contain {len(extra)} condition(s) outside the design, e.g. {extra[0].label()}"
        )
    return sorted(expected.values())


def summarize(
    aggregated: AggregatedResults,
    *,
    conditions: Optional[Iterable[Condition]] = None,
    ci_level: float = 0.95,
    quantiles: Sequence[float] = (0.025, 0.5, 0.975),
) -> pd.DataFrame:
    """
    One row per condition.

    ``conditions`` (e.g. a ConditionSpace) fixes the output rows; conditions
    without any estimate then appear with zero counts and a missing
    percentage. Without it, the conditions present in ``aggregated`` are used.
    """
    q = sorted({round(float(qq), 12) for qq in quantiles})
    for qq in q:
        if not (0.0 <= qq <= 1.0):
            raise ValueError(f"Invalid quantile {qq!r}")

    keys = list(CONDITION_KEYS)
    groups: Dict[Any, pd.DataFrame] = {
        (int(k[0]), float(k[1]), int(k[2])): g
        for k, g in aggregated.classified.groupby(keys, sort=False)
    }
    failed_by_key = {
        (int(k), float(r), int(n)): int(c)
        for k, r, n, c in aggregated.failures[[*keys, "failed_count"]].itertuples(index=False, name=None)
    }

    rows: List[Dict[str, Any]] = []
    for cond in _universe(aggregated, conditions):
        g = groups.get(cond.key)
        alphas = (
            g["alpha"].to_numpy(dtype=float) if g is not None else np.empty(0, dtype=float)
        )
        good = int((g["label"] == GOOD).sum()) if g is not None else 0
        n_valid = int(alphas.size)
        bad = n_valid - good
        failed = failed_by_key.get(cond.key, 0)

        row: Dict[str, Any] = {
            "item_count": cond.item_count,
            "correlation": cond.correlation,
            "sample_size": cond.sample_size,
            "n_replications": n_valid + failed,
            "n_valid": n_valid,
            "good_count": good,
            "bad_count": bad,
            "failed_count": failed,
        }

        if n_valid > 0:
            pct = good / n_valid
            lo, hi = wilson_ci(good, n_valid, level=ci_level)
            row["percentage"] = float(pct)
            row["percentage_se"] = mc_standard_error(pct, n_valid)
            row["percentage_ci_low"] = lo
            row["percentage_ci_high"] = hi
            row["alpha_mean"] = float(alphas.mean())
            row["alpha_std"] = float(alphas.std(ddof=1)) if n_valid >= 2 else float("nan")
            qs = np.quantile(alphas, q)
            for qq, qv in zip(q, qs):
                row[f"alpha_{_q_label(qq)}"] = float(qv)
        else:
            for col in ("percentage", "percentage_se", "percentage_ci_low", "percentage_ci_high",
                        "alpha_mean", "alpha_std"):
                row[col] = float("nan")
            for qq in q:
                row[f"alpha_{_q_label(qq)}"] = float("nan")

        rows.append(row)

    df = pd.DataFrame(rows)
    if df.empty:
        return pd.DataFrame(columns=[*keys, "n_replications", "n_valid", "good_count", "bad_count",
                                     "failed_count", "percentage"])
    return df.sort_values(keys, kind="mergesort").reset_index(drop=True)


def summary_rows(summary: pd.DataFrame) -> List[SummaryRow]:
    """Typed view of a summary DataFrame; missing values become ``None``."""
    out: List[SummaryRow] = []
    for rec in summary.to_dict("records"):
        out.append(
            SummaryRow(
                condition=Condition(int(rec["item_count"]), float(rec["correlation"]), int(rec["sample_size"])),
                good_count=int(rec["good_count"]),
                bad_count=int(rec["bad_count"]),
                failed_count=int(rec["failed_count"]),
                percentage=_opt(rec.get("percentage")),
                percentage_ci_low=_opt(rec.get("percentage_ci_low")),
                percentage_ci_high=_opt(rec.get("percentage_ci_high")),
                alpha_mean=_opt(rec.get("alpha_mean")),
                alpha_std=_opt(rec.get("alpha_std")),
            )
        )
    return out
