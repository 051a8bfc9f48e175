"""
Classification of alpha estimates against the acceptability threshold.

Each estimate is mapped independently (``label = "good"`` if
``alpha >= threshold`` else ``"bad"``), so batches can be classified in any
order or in parallel and merged afterwards. Failed estimates are kept apart
and counted per condition.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List

import numpy as np
import pandas as pd

from alphasim.core.conditions import Condition
from alphasim.core.config import DEFAULT_THRESHOLD
from alphasim.core.errors import InvalidParameterError

from .records import CONDITION_KEYS, AlphaEstimate

__all__ = [
    "GOOD",
    "BAD",
    "ClassifiedBatch",
    "AggregatedResults",
    "classify_estimates",
    "merge_batches",
    "aggregate_estimates",
]

GOOD = "good"
BAD = "bad"

_CLASSIFIED_COLUMNS = [*CONDITION_KEYS, "replication_id", "alpha", "label"]
_FAILED_COLUMNS = [*CONDITION_KEYS, "replication_id", "error"]
_FAILURE_COUNT_COLUMNS = [*CONDITION_KEYS, "n_replications", "n_valid", "failed_count"]
_SORT_KEYS = [*CONDITION_KEYS, "replication_id"]


def _check_threshold(threshold: float) -> float:
    t = float(threshold)
    if not math.isfinite(t):
        raise InvalidParameterError(f"threshold must be finite, got {threshold!r}")
    return t


@dataclass
class ClassifiedBatch:
    """Classified valid estimates plus the failed ones from one batch."""

    classified: pd.DataFrame
    failed: pd.DataFrame
    conditions: List[Condition]


def classify_estimates(
    estimates: Iterable[AlphaEstimate],
    *,
    threshold: float = DEFAULT_THRESHOLD,
) -> ClassifiedBatch:
    """Label every valid estimate; set failed ones aside. Pure per-record mapping."""
    t = _check_threshold(threshold)
    ok_rows = []
    bad_rows = []
    seen = {}
    for e in estimates:
        seen.setdefault(e.condition.key, e.condition)
        c = e.condition
        if e.ok:
            ok_rows.append(
                (c.item_count, c.correlation, c.sample_size, int(e.replication_id), float(e.alpha))
            )
        else:
            bad_rows.append((c.item_count, c.correlation, c.sample_size, int(e.replication_id), str(e.error)))

    classified = pd.DataFrame.from_records(ok_rows, columns=_CLASSIFIED_COLUMNS[:-1])
    classified["label"] = np.where(classified["alpha"].to_numpy(dtype=float) >= t, GOOD, BAD)
    failed = pd.DataFrame.from_records(bad_rows, columns=_FAILED_COLUMNS)
    return ClassifiedBatch(classified=classified, failed=failed, conditions=list(seen.values()))


@dataclass
class AggregatedResults:
    """
    Merged classification output.

    classified  one row per valid estimate (condition keys, replication_id, alpha, label)
    failed      one row per failed estimate (condition keys, replication_id, error)
    failures    one row per condition seen: n_replications, n_valid, failed_count
    """

    classified: pd.DataFrame
    failed: pd.DataFrame
    failures: pd.DataFrame
    threshold: float

    @property
    def n_estimates(self) -> int:
        return int(len(self.classified) + len(self.failed))

    def failed_count(self, condition: Condition) -> int:
        f = self.failures
        m = (
            (f["item_count"] == condition.item_count)
            & (f["correlation"] == condition.correlation)
            & (f["sample_size"] == condition.sample_size)
        )
        if not m.any():
            raise KeyError(f"condition not present in results: {condition.label()}")
        return int(f.loc[m, "failed_count"].iloc[0])


def _coerce_key_dtypes(df: pd.DataFrame) -> pd.DataFrame:
    return df.astype({"item_count": "int64", "correlation": "float64", "sample_size": "int64"})


def merge_batches(
    batches: Iterable[ClassifiedBatch],
    *,
    threshold: float = DEFAULT_THRESHOLD,
) -> AggregatedResults:
    """
    Concatenate classified batches (any order) into one sorted result set.

    Raises ValueError if a (condition, replication_id) pair appears twice.
    """
    t = _check_threshold(threshold)
    classified_parts: List[pd.DataFrame] = []
    failed_parts: List[pd.DataFrame] = []
    conditions: dict = {}
    for b in batches:
        if not b.classified.empty:
            classified_parts.append(b.classified)
        if not b.failed.empty:
            failed_parts.append(b.failed)
        for c in b.conditions:
            conditions.setdefault(c.key, c)

    classified = (
        pd.concat(classified_parts, ignore_index=True)
        if classified_parts
        else pd.DataFrame(columns=_CLASSIFIED_COLUMNS)
    )
    failed = pd.concat(failed_parts, ignore_index=True) if failed_parts else pd.DataFrame(columns=_FAILED_COLUMNS)
    classified = _coerce_key_dtypes(classified).astype({"replication_id": "int64", "alpha": "float64"})
    failed = _coerce_key_dtypes(failed).astype({"replication_id": "int64"})

    classified = classified.sort_values(_SORT_KEYS, kind="mergesort").reset_index(drop=True)
    failed = failed.sort_values(_SORT_KEYS, kind="mergesort").reset_index(drop=True)

    both = pd.concat([classified[_SORT_KEYS], failed[_SORT_KEYS]], ignore_index=True)
    if both.duplicated().any():
        dup = both[both.duplicated(keep=False)].head(3).to_dict("records")
        raise ValueError(f"duplicate (condition, replication_id) pairs in results, e.g. {dup!r}")

    failures = _failure_counts(classified, failed, list(conditions.values()))
    return AggregatedResults(classified=classified, failed=failed, failures=failures, threshold=t)


def _failure_counts(
    classified: pd.DataFrame,
    failed: pd.DataFrame,
    conditions: List[Condition],
) -> pd.DataFrame:
    keys = list(CONDITION_KEYS)
    base = pd.DataFrame.from_records([c.key for c in conditions], columns=keys)
    n_valid = _coerce_key_dtypes(classified.groupby(keys, sort=False).size().rename("n_valid").reset_index())
    n_failed = _coerce_key_dtypes(failed.groupby(keys, sort=False).size().rename("failed_count").reset_index())

    out = _coerce_key_dtypes(base)
    out = out.merge(n_valid, on=keys, how="outer").merge(n_failed, on=keys, how="outer")
    out["n_valid"] = out["n_valid"].fillna(0).astype("int64")
    out["failed_count"] = out["failed_count"].fillna(0).astype("int64")
    out["n_replications"] = out["n_valid"] + out["failed_count"]
    out = _coerce_key_dtypes(out)
    return out[_FAILURE_COUNT_COLUMNS].sort_values(keys, kind="mergesort").reset_index(drop=True)


def aggregate_estimates(
    estimates: Iterable[AlphaEstimate],
    *,
    threshold: float = DEFAULT_THRESHOLD,
) -> AggregatedResults:
    """Classify a flat stream of estimates in one go."""
    return merge_batches([classify_estimates(estimates, threshold=threshold)], threshold=threshold)
