# -*- coding: utf-8 -*-
"""
VDB persistence: one JSON file per named store

    new(name)                   -> fresh, empty RecordStore (nothing written yet)
    load(name, store_dir=None)  -> RecordStore rebuilt from <store_dir>/<name>.json
    save(store, store_dir=None) -> writes the file, returns the 'saved_at' timestamp

Store directory resolution (first hit wins):
    1. explicit store_dir argument
    2. VDB_STORE_DIR environment variable
    3. "save" (relative to the current working directory)

File layout:
    {
      "saved_at": "2026-10-19T10:00:00",
      "name": "notebook",
      "row_max": 3,
      "rows": {"1": [{"name": "title", "value": {"type": "text", "value": "..."}}, ...], ...},
      "version": "1",
      "app_version": "vdb_persist/0.3.0"
    }

Only rows are written; load() rebuilds the indexes from them. save() rewrites the whole file
(tmp file + os.replace); there is no journaling or partial-write recovery.

Errors:
    StoreNotFound     load(): the file does not exist
    StoreFormatError  load(): the content is not JSON or not the expected structure
    StoreIOError      load()/save(): any other OS-level read/write failure
"""

# --- Imports -------------------------------------------------------------
# Standard Library Imports
from __future__ import annotations
import json
import logging
import os
from datetime import datetime
from typing import Optional

# PyPI and Third-Party Imports
# --none at this time at program startup--

# VDB Module Imports
from vdb_store import RecordStore, check_store_name

# --- Public API index and version, constants -------------------------------------------------
__version__ = "0.3.0"
__all__ = [
    "StoreError",
    "StoreNotFound",
    "StoreFormatError",
    "StoreIOError",
    "resolve_store_dir",
    "store_path",
    "new",
    "load",
    "save",
    "__version__",
]

DEFAULT_STORE_DIR = "save"
STORE_DIR_ENV = "VDB_STORE_DIR"
FILE_SUFFIX = ".json"

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Exceptions
# -----------------------------------------------------------------------------

class StoreError(Exception):
    """Base class for load/save failures."""


class StoreNotFound(StoreError, FileNotFoundError):
    """No file exists for this store name."""


class StoreFormatError(StoreError, ValueError):
    """File exists but its content is malformed."""


class StoreIOError(StoreError, OSError):
    """The file could not be read, created or written."""


# -----------------------------------------------------------------------------
# Paths
# -----------------------------------------------------------------------------

def resolve_store_dir(store_dir: Optional[str] = None) -> str:
    """Return the directory holding store files (argument, then $VDB_STORE_DIR, then 'save')."""
    if store_dir:
        return store_dir
    env_dir = (os.environ.get(STORE_DIR_ENV, "") or "").strip()
    return env_dir or DEFAULT_STORE_DIR


def store_path(name: str, store_dir: Optional[str] = None) -> str:
    """Deterministic file path for a logical store name."""
    check_store_name(name)
    return os.path.join(resolve_store_dir(store_dir), name + FILE_SUFFIX)


# -----------------------------------------------------------------------------
# Construction API
# -----------------------------------------------------------------------------

def new(name: str) -> RecordStore:
    """Create an empty store in memory; the file is not created until save()."""
    return RecordStore(name)


def load(name: str, store_dir: Optional[str] = None) -> RecordStore:
    """Read <store_dir>/<name>.json and rebuild a RecordStore (indexes recomputed from rows).

    Raises:
        StoreNotFound: no such file.
        StoreFormatError: not JSON, or not the expected structure.
        StoreIOError: any other read failure.
    """
    path = store_path(name, store_dir)
    try:
        with open(path, "r", encoding="utf-8") as f:
            blob = json.load(f)
    except FileNotFoundError as e:
        raise StoreNotFound(f"no store file at {path}") from e
    except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as e:
        raise StoreFormatError(f"{path}: not valid JSON ({e})") from e
    except OSError as e:
        raise StoreIOError(f"{path}: cannot read ({e})") from e

    try:
        store = RecordStore.from_dict(blob, name=name)
    except (ValueError, TypeError) as e:
        raise StoreFormatError(f"{path}: {e}") from e
    log.info("loaded store %r from %s (%d rows, row_max=%d)", name, path, len(store), store.row_max)
    return store


def save(store: RecordStore, store_dir: Optional[str] = None) -> str:
    """Prune empty rows, serialize the rows and write the whole file.

    The store directory is created if missing. Writes <path>.tmp then os.replace()s it
    onto the target.

    Returns:
        The ISO timestamp used as 'saved_at' in the file.

    Raises:
        StoreIOError: the directory or file could not be created/written.
    """
    store.prune_empty_rows()
    issues = store.check_invariants(raise_on_error=False)
    for issue in issues:
        log.error("store %r: %s", store.name, issue)

    path = store_path(store.name, store_dir)
    ts = datetime.now().isoformat(timespec="seconds")
    data = {"saved_at": ts}
    data.update(store.to_dict())
    data["app_version"] = f"vdb_persist/{__version__}"

    tmp = path + ".tmp"
    try:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp, path)
    except (OSError, ValueError) as e:
        # ValueError covers UnicodeEncodeError from text json cannot encode (lone surrogates)
        if os.path.exists(tmp):
            os.remove(tmp)
        raise StoreIOError(f"{path}: cannot write ({e})") from e
    log.info("saved store %r to %s (%d rows)", store.name, path, len(store))
    return ts
