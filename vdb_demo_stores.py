# -*- coding: utf-8 -*-
"""
Small helper module for building deterministic demo stores.

These helpers are intended for:
- Unit tests (pytest) exercising RecordStore queries, mutators and persistence.
- The notebook front end (`vdb_notebook.py --demo`).
- Manual experiments in a REPL.

They are deliberately tiny so you can see the whole layout at a glance.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Tuple

from vdb_store import RecordStore
from vdb_values import Entry


__version__ = "0.1.0"
__all__ = ["build_vocab_store", "build_notebook_store", "__version__"]


def build_vocab_store(name: str = "testdb") -> Tuple[RecordStore, Dict[str, int]]:
    """
    Build a two-word Spanish/English vocabulary store.

    Layout (row ids are deterministic but we also return them in a dict):

      disfrutar : set=es-en, name=disfrutar, value=to enjoy
      coche     : set=es-en, name=coche,     value=car, add_counter=2,
                  add_date=2013-11-22 12:00:00
    """
    db = RecordStore(name)
    disfrutar = db.add_row([
        Entry.text("set", "es-en"),
        Entry.text("name", "disfrutar"),
        Entry.text("value", "to enjoy"),
    ])
    coche = db.add_row([
        Entry.text("set", "es-en"),
        Entry.text("name", "coche"),
        Entry.text("value", "car"),
        Entry.integer("add_counter", 2),
        Entry.timestamp("add_date", datetime(2013, 11, 22, 12, 0, 0)),
    ])
    return db, {"disfrutar": disfrutar, "coche": coche}


def build_notebook_store(name: str = "notebook") -> Tuple[RecordStore, Dict[str, int]]:
    """
    Build a notebook store with three title/text notes, the shape vdb_notebook works on.
    """
    db = RecordStore(name)
    ids = {}
    for title, text in (("groceries", "milk, eggs"),
                        ("garage", "fix the bike"),
                        ("reading", "finish the novel")):
        ids[title] = db.add_row([Entry.text("title", title), Entry.text("text", text)])
    return db, ids
