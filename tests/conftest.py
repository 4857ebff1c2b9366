from __future__ import annotations

from pathlib import Path

import pytest

from threadkeeper.store import NoteStore


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for key in ["THREADKEEPER_STORE_PATH", "THREADKEEPER_LOG_LEVEL", "THREADKEEPER_CONFIG"]:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "notes.jsonl"


@pytest.fixture
def store(store_path: Path) -> NoteStore:
    return NoteStore(store_path)
