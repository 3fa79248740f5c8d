# tests/conftest.py
import os, sys

import pytest

# Put the repo root (directory that contains vdb_store.py) on sys.path
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


@pytest.fixture
def store_dir(tmp_path, monkeypatch):
    """Isolated store directory; also clears VDB_STORE_DIR so tests never see the user's setting."""
    monkeypatch.delenv("VDB_STORE_DIR", raising=False)
    d = tmp_path / "save"
    return str(d)
