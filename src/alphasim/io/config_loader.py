from __future__ import annotations

"""
io.config_loader
================

YAML config parsing -> SimulationConfig.

Two schemas are accepted:

flat:
    item_counts: [3, 4, 5]          # or {start: 3, stop: 12} (inclusive)
    correlations: [0.10, 0.15]
    sample_sizes: [50, 100]
    replications: 1000
    seed: 1337
    threshold: 0.70
    cut_points: [-2, -1, 1, 2]
    jobs: 4
    executor: process

nested:
    design:     {item_counts, correlations, sample_sizes}
    simulation: {replications, seed, threshold, cut_points}
    execution:  {jobs, executor}

When no seed is given, ``ALPHASIM_SEED`` from the environment is used, then
the package default.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from alphasim.core.config import DEFAULT_SEED, SimulationConfig
from alphasim.core.errors import InvalidParameterError

LOG = logging.getLogger(__name__)

SEED_ENV_VAR = "ALPHASIM_SEED"

_NESTED_SECTIONS = ("design", "simulation", "execution")
_KNOWN_FLAT_KEYS = {
    "item_counts",
    "correlations",
    "sample_sizes",
    "replications",
    "seed",
    "threshold",
    "cut_points",
    "jobs",
    "executor",
}

__all__ = ["SEED_ENV_VAR", "load_yaml", "config_from_dict", "load_config"]


def load_yaml(path: str | Path) -> Dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            raw = f.read()
    except OSError as e:
        raise OSError(f"Could not read YAML config at path={str(path)!r}: {e}") from e

    try:
        obj = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        if mark is not None:
            loc = f"line={getattr(mark, 'line', '?')}, column={getattr(mark, 'column', '?')}"
            raise InvalidParameterError(f"YAML parse error in {str(path)!r} ({loc}): {e}") from e
        raise InvalidParameterError(f"YAML parse error in {str(path)!r}: {e}") from e

    if obj is None:
        return {}
    if not isinstance(obj, dict):
        raise InvalidParameterError(f"YAML config must parse to a mapping/dict, got {type(obj).__name__}")
    return dict(obj)


def _require_dict(x: Any, name: str) -> Dict[str, Any]:
    if not isinstance(x, Mapping):
        raise InvalidParameterError(f"Expected mapping for '{name}', got {type(x).__name__}")
    return dict(x)


def _i(x: Any, name: str) -> int:
    if isinstance(x, bool):
        raise InvalidParameterError(f"{name} must be an int, got bool {x!r}")
    try:
        v = int(x)
    except (TypeError, ValueError) as e:
        raise InvalidParameterError(f"{name} must be an int, got {x!r}") from e
    if v != x and not (isinstance(x, str) and x.strip().lstrip("-").isdigit()):
        raise InvalidParameterError(f"{name} must be integral, got {x!r}")
    return v


def _f(x: Any, name: str) -> float:
    if isinstance(x, bool):
        raise InvalidParameterError(f"{name} must be a number, got bool {x!r}")
    try:
        return float(x)
    except (TypeError, ValueError) as e:
        raise InvalidParameterError(f"{name} must be a number, got {x!r}") from e


def _int_axis(x: Any, name: str) -> List[int]:
    if isinstance(x, Mapping):
        g = _require_dict(x, name)
        if "start" not in g or "stop" not in g:
            raise InvalidParameterError(f"{name} range must define start and stop (inclusive)")
        start = _i(g["start"], f"{name}.start")
        stop = _i(g["stop"], f"{name}.stop")
        step = _i(g.get("step", 1), f"{name}.step")
        if step < 1 or stop < start:
            raise InvalidParameterError(f"{name} range must satisfy start <= stop and step >= 1")
        return list(range(start, stop + 1, step))
    if isinstance(x, (list, tuple)):
        return [_i(v, f"{name}[{i}]") for i, v in enumerate(x)]
    raise InvalidParameterError(f"{name} must be a list or a {{start, stop}} mapping, got {type(x).__name__}")


def _float_list(x: Any, name: str) -> List[float]:
    if not isinstance(x, (list, tuple)):
        raise InvalidParameterError(f"{name} must be a list, got {type(x).__name__}")
    return [_f(v, f"{name}[{i}]") for i, v in enumerate(x)]


def _flatten(d: Mapping[str, Any]) -> Dict[str, Any]:
    has_nested = any(isinstance(d.get(s), Mapping) for s in _NESTED_SECTIONS)
    if not has_nested:
        return dict(d)
    flat: Dict[str, Any] = {k: v for k, v in d.items() if k not in _NESTED_SECTIONS}
    for section in _NESTED_SECTIONS:
        if section in d:
            for k, v in _require_dict(d[section], section).items():
                if k in flat:
                    raise InvalidParameterError(f"'{k}' is defined both at top level and in '{section}'")
                flat[k] = v
    return flat


def _env_seed() -> Optional[int]:
    raw = os.environ.get(SEED_ENV_VAR)
    if raw is None or raw.strip() == "":
        return None
    return _i(raw.strip(), SEED_ENV_VAR)


def config_from_dict(d: Mapping[str, Any], **overrides: Any) -> SimulationConfig:
    """
    Build a validated SimulationConfig from a parsed mapping.

    ``overrides`` (CLI flags) win over file values; ``None`` overrides are ignored.
    """
    flat = _flatten(_require_dict(d, "config"))
    unknown = sorted(set(flat) - _KNOWN_FLAT_KEYS)
    if unknown:
        raise InvalidParameterError(f"Unknown config keys: {unknown}")
    for k, v in overrides.items():
        if k not in _KNOWN_FLAT_KEYS:
            raise InvalidParameterError(f"Unknown override: {k!r}")
        if v is not None:
            flat[k] = v

    kwargs: Dict[str, Any] = {}
    if "item_counts" in flat:
        kwargs["item_counts"] = tuple(_int_axis(flat["item_counts"], "item_counts"))
    if "correlations" in flat:
        kwargs["correlations"] = tuple(_float_list(flat["correlations"], "correlations"))
    if "sample_sizes" in flat:
        kwargs["sample_sizes"] = tuple(_int_axis(flat["sample_sizes"], "sample_sizes"))
    if "cut_points" in flat:
        kwargs["cut_points"] = tuple(_float_list(flat["cut_points"], "cut_points"))
    if "replications" in flat:
        kwargs["replications"] = _i(flat["replications"], "replications")
    if "threshold" in flat:
        kwargs["threshold"] = _f(flat["threshold"], "threshold")
    if "jobs" in flat:
        kwargs["jobs"] = _i(flat["jobs"], "jobs")
    if "executor" in flat:
        kwargs["executor"] = str(flat["executor"])

    if "seed" in flat:
        kwargs["seed"] = _i(flat["seed"], "seed")
    else:
        env_seed = _env_seed()
        kwargs["seed"] = env_seed if env_seed is not None else DEFAULT_SEED
        LOG.debug("No seed in config; using %s", kwargs["seed"])

    return SimulationConfig(**kwargs)


def load_config(path: Optional[str | Path] = None, **overrides: Any) -> SimulationConfig:
    """Load ``path`` (or the reference defaults when ``None``) and apply overrides."""
    d = load_yaml(path) if path is not None else {}
    return config_from_dict(d, **overrides)
