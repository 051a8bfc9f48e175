"""Run manifest: lineage and environment for one simulation run."""

from __future__ import annotations

import hashlib
import json
import platform as _platform
import subprocess
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd
import scipy
from pydantic import BaseModel, ConfigDict, Field

from alphasim.core.config import SimulationConfig

from .storage import atomic_write_text, sha256_file, to_jsonable

MANIFEST_SCHEMA_VERSION = "1"

__all__ = [
    "OutputFile",
    "RunManifest",
    "hash_config_for_run_id",
    "maybe_git_commit",
    "build_manifest",
    "write_manifest",
]


def _utc_stamp(ts: float) -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(ts))


class OutputFile(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    path: str
    sha256: str
    size_bytes: int


class RunManifest(BaseModel):
    """Reproducibility manifest for a single run."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    schema_version: str = Field(default=MANIFEST_SCHEMA_VERSION, frozen=True)
    run_id: str
    started_utc: str
    finished_utc: str
    elapsed_sec: float = Field(ge=0.0)
    argv: List[str] = Field(default_factory=list)
    python: str = Field(default_factory=lambda: sys.version.split()[0])
    platform: str = Field(
        default_factory=lambda: f"{_platform.system()}-{_platform.release()} ({_platform.machine()})"
    )
    versions: Dict[str, str] = Field(default_factory=dict)
    git_commit: Optional[str] = None
    config: Dict[str, Any] = Field(default_factory=dict)
    outputs: List[OutputFile] = Field(default_factory=list)
    diagnostics: Dict[str, Any] = Field(default_factory=dict)


def hash_config_for_run_id(cfg: SimulationConfig, argv: Sequence[str] = ()) -> str:
    # Stable and short; argv included since it encodes CLI intent.
    h = hashlib.blake2b(digest_size=10)
    h.update(json.dumps(list(argv), sort_keys=False).encode("utf-8"))
    h.update(json.dumps(cfg.to_dict(), sort_keys=True, default=str).encode("utf-8"))
    return h.hexdigest()


def maybe_git_commit(repo_root: Path) -> Optional[str]:
    try:
        out = subprocess.check_output(
            ["git", "rev-parse", "HEAD"],
            cwd=str(repo_root),
            stderr=subprocess.DEVNULL,
            text=True,
        ).strip()
        return out or None
    except (OSError, subprocess.CalledProcessError):
        return None


def _library_versions() -> Dict[str, str]:
    return {
        "numpy": getattr(np, "__version__", "unknown"),
        "pandas": getattr(pd, "__version__", "unknown"),
        "scipy": getattr(scipy, "__version__", "unknown"),
    }


def build_manifest(
    cfg: SimulationConfig,
    *,
    started: float,
    finished: float,
    outputs: Mapping[str, Path],
    diagnostics: Optional[Mapping[str, Any]] = None,
    argv: Sequence[str] = (),
    repo_root: Optional[Path] = None,
) -> RunManifest:
    """Hash every output file and collect run lineage."""
    files = [
        OutputFile(
            name=name,
            path=Path(p).name,
            sha256=sha256_file(Path(p)),
            size_bytes=Path(p).stat().st_size,
        )
        for name, p in sorted(outputs.items())
    ]
    return RunManifest(
        run_id=hash_config_for_run_id(cfg, argv),
        started_utc=_utc_stamp(started),
        finished_utc=_utc_stamp(finished),
        elapsed_sec=max(0.0, float(finished - started)),
        argv=list(argv),
        versions=_library_versions(),
        git_commit=maybe_git_commit(repo_root) if repo_root is not None else None,
        config=to_jsonable(cfg.to_dict()),
        outputs=files,
        diagnostics=to_jsonable(dict(diagnostics or {})),
    )


def write_manifest(manifest: RunManifest, path: Path) -> Path:
    payload = manifest.model_dump(mode="json")
    atomic_write_text(Path(path), json.dumps(payload, sort_keys=True, indent=2, ensure_ascii=False) + "\n")
    return Path(path)
