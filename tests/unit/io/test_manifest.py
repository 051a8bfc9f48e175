# tests/unit/io/test_manifest.py
"""Run manifest, artifact hashing and atomic writes."""

import hashlib
import json

import pandas as pd
import pytest
from pydantic import ValidationError

from alphasim.core.config import SimulationConfig
from alphasim.io.manifest import (
    RunManifest,
    build_manifest,
    hash_config_for_run_id,
    write_manifest,
)
from alphasim.io.storage import atomic_write_csv, atomic_write_json, sha256_file


def _cfg(**kw):
    return SimulationConfig(item_counts=[3], correlations=[0.1], sample_sizes=[50], replications=5, **kw)


def test_run_id_is_stable_and_config_sensitive():
    assert hash_config_for_run_id(_cfg()) == hash_config_for_run_id(_cfg())
    assert hash_config_for_run_id(_cfg()) != hash_config_for_run_id(_cfg(seed=2))
    assert hash_config_for_run_id(_cfg(), ["--jobs", "2"]) != hash_config_for_run_id(_cfg())
    assert len(hash_config_for_run_id(_cfg())) == 20


def test_atomic_writes_leave_no_tmp_files(tmp_path):
    atomic_write_csv(pd.DataFrame({"a": [1, 2]}), tmp_path / "sub" / "x.csv")
    atomic_write_json(tmp_path / "x.json", {"b": (1, 2)})
    assert sorted(p.name for p in tmp_path.rglob("*") if p.is_file()) == ["x.csv", "x.json"]
    assert json.loads((tmp_path / "x.json").read_text()) == {"b": [1, 2]}


def test_sha256_matches_hashlib(tmp_path):
    p = tmp_path / "blob.bin"
    p.write_bytes(b"alpha" * 1000)
    assert sha256_file(p) == hashlib.sha256(b"alpha" * 1000).hexdigest()


def test_build_and_write_manifest(tmp_path):
    out = tmp_path / "summary.csv"
    atomic_write_csv(pd.DataFrame({"percentage": [0.5]}), out)
    m = build_manifest(
        _cfg(),
        started=1_700_000_000.0,
        finished=1_700_000_002.5,
        outputs={"summary": out},
        diagnostics={"conditions": 1},
        argv=["--replications", "5"],
    )
    assert m.elapsed_sec == pytest.approx(2.5)
    assert m.started_utc == "2023-11-14T22:13:20Z"
    assert m.outputs[0].sha256 == sha256_file(out)
    assert m.outputs[0].path == "summary.csv"
    assert set(m.versions) == {"numpy", "pandas", "scipy"}
    assert m.config["replications"] == 5
    assert m.git_commit is None

    path = write_manifest(m, tmp_path / "manifest.json")
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["run_id"] == m.run_id
    assert payload["diagnostics"] == {"conditions": 1}
    assert RunManifest.model_validate(payload) == m


def test_manifest_is_frozen_and_validated():
    m = RunManifest(run_id="x", started_utc="a", finished_utc="b", elapsed_sec=0.0)
    with pytest.raises(ValidationError):
        m.run_id = "y"
    with pytest.raises(ValidationError):
        RunManifest(run_id="x", started_utc="a", finished_utc="b", elapsed_sec=-1.0)
