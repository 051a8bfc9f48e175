"""
Pytest bootstrap for src/ layout.

Ensures ./src is on sys.path for any pytest invocation, including ones
without an editable install.
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

repo_root = Path(__file__).resolve().parents[1]
src = repo_root / "src"
if src.is_dir():
    src_str = str(src)
    if src_str not in sys.path:
        # Put first so local src wins over any installed `alphasim`.
        sys.path.insert(0, src_str)


@pytest.fixture(autouse=True)
def _no_seed_env(monkeypatch):
    monkeypatch.delenv("ALPHASIM_SEED", raising=False)
