#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
VDB Notebook, i.e. a tiny note-taking front end over the VDB record store

The program is run at the command line interface:
        python vdb_notebook.py [FLAGS]

        e.g., > python vdb_notebook.py
        e.g., > python vdb_notebook.py --name work --store-dir ~/notes
        e.g., > python vdb_notebook.py --about

Each note is one row with two entries, `title` and `text`. The store is loaded from
<store_dir>/<name>.json at startup (a fresh store is created if the file is missing) and
saved back on quit.

Menu:
    l) list entries
    e) enter new entry
    f) find entries (title contains)
    d) delete entry (exact title)
    q) save & quit   (an empty line also quits)

The notebook only uses the public store API (vdb_persist.load/save, add_row, find_*,
entries_from_row_ids, delete_rows); it never touches the store's internal maps.
"""

# --- Pragmas and Imports -------------------------------------------------------------
# Standard Library Imports
from __future__ import annotations
import argparse
import logging
import os
import platform
import sys
from typing import Callable, List, Optional

# PyPI and Third-Party Imports
# --none at this time at program startup --

# VDB Module Imports
import vdb_persist
from vdb_demo_stores import build_notebook_store
from vdb_predicates import Predicate
from vdb_store import RecordStore
from vdb_values import Entry


# --- Public API index, version, global variables and constants ----------------------------------------
__version__ = "0.3.0"
__all__ = [
    "main",
    "interactive_loop",
    "open_store",
    "list_entries",
    "add_note",
    "find_notes",
    "delete_note",
    "__version__",
]

DEFAULT_NAME = "notebook"
TITLE = "title"
TEXT = "text"
COMPONENTS = ("vdb_values", "vdb_predicates", "vdb_store", "vdb_persist", "vdb_demo_stores")


# --------------------------------------------------------------------------------------
# Versions
# --------------------------------------------------------------------------------------

def _module_version_and_path(modname: str) -> tuple[str, str]:
    """Return (version_string, path) for a module name, safely.
    - If module can't be imported -> ('-- unavailable (i.e., not found)', '<name>.py')
    - If no __version__ on module -> ('n/a', path)
    """
    try:
        import importlib  # pylint: disable=import-outside-toplevel
        m = importlib.import_module(modname)
    except ImportError:
        return "-- unavailable (i.e., not found)", f"{modname}.py"
    ver = getattr(m, "__version__", None)
    ver_str = str(ver) if ver is not None else "n/a"
    path = getattr(m, "__file__", f"{modname}.py")
    return ver_str, path


# --------------------------------------------------------------------------------------
# Notebook operations (no IO besides the store)
# --------------------------------------------------------------------------------------

def open_store(name: str, store_dir: Optional[str] = None, *, demo: bool = False) -> RecordStore:
    """Load the named store, or start a fresh one when no file exists yet.

    StoreFormatError and StoreIOError are not swallowed: a damaged file should not be
    silently replaced by an empty store on the next save.
    """
    if demo:
        store, _ids = build_notebook_store(name)
        logging.info("started demo notebook %r (%d notes)", name, len(store))
        return store
    try:
        return vdb_persist.load(name, store_dir)
    except vdb_persist.StoreNotFound:
        logging.info("no saved notebook %r yet; starting empty", name)
        return vdb_persist.new(name)


def list_entries(store: RecordStore) -> List[str]:
    """Return 'title: text' lines for every note, oldest first."""
    row_ids = store.find_row_ids_by_name(TITLE)
    lines = []
    for entries in store.entries_from_row_ids(row_ids, [TITLE, TEXT]):
        if len(entries) >= 2:
            lines.append(f"{entries[0].value}: {entries[1].value}")
        elif entries:
            lines.append(f"{entries[0].value}:")
    return lines


def add_note(store: RecordStore, title: str, text: str) -> Optional[int]:
    """Add a note; returns its row id, or None when the title is blank."""
    title = (title or "").strip()
    if not title:
        return None
    return store.add_row([Entry.text(TITLE, title), Entry.text(TEXT, (text or "").strip())])


def find_notes(store: RecordStore, needle: str) -> List[str]:
    """Return 'title: text' lines for notes whose title contains `needle`."""
    row_ids = store.find_row_ids_by_predicate([Predicate.contains(TITLE, needle)])
    return [f"{e[0].value}: {e[1].value}" if len(e) >= 2 else f"{e[0].value}:"
            for e in store.entries_from_row_ids(row_ids, [TITLE, TEXT]) if e]


def delete_note(store: RecordStore, title: str) -> int:
    """Delete every note with exactly this title. Returns the number of notes deleted."""
    title = (title or "").strip()
    if not title:
        return 0
    return store.delete_rows(store.find_row_ids_by_value(TITLE, title))


# --------------------------------------------------------------------------------------
# CLI (printing/input; menu)
# --------------------------------------------------------------------------------------

def print_menu() -> None:
    print()
    print("Main menu")
    print("---------")
    print("l) list entries")
    print("e) enter new entry")
    print("f) find entries")
    print("d) delete entry")
    print("q) save & quit")


def _ask(input_fn: Callable[[str], str], prompt: str) -> str:
    """Prompt once; end of input reads as an empty answer."""
    try:
        return input_fn(prompt)
    except EOFError:
        return ""


def interactive_loop(store: RecordStore, store_dir: Optional[str] = None,
                     input_fn: Optional[Callable[[str], str]] = None) -> int:
    """Menu loop. Saves the store on 'q', an empty line or end of input. Returns an exit code."""
    if input_fn is None:
        input_fn = input
    while True:
        print_menu()
        choice = _ask(input_fn, "> ").strip().lower()

        if choice == "l":
            lines = list_entries(store)
            print()
            if not lines:
                print("No entries.")
            for line in lines:
                print(line)

        elif choice == "e":
            title = _ask(input_fn, "Enter title:\n> ")
            if not title.strip():
                print("Abort.")
                continue
            text = _ask(input_fn, "Enter text:\n> ")
            row_id = add_note(store, title, text)
            logging.info("added note %r as row %s", title.strip(), row_id)

        elif choice == "f":
            needle = _ask(input_fn, "Enter part of a title:\n> ").strip()
            hits = find_notes(store, needle) if needle else []
            print()
            if not hits:
                print("No matches.")
            for line in hits:
                print(line)

        elif choice == "d":
            title = _ask(input_fn, "Enter title to delete:\n> ")
            if not title.strip():
                print("Abort.")
                continue
            n = delete_note(store, title)
            print(f"Deleted {n} entr{'y' if n == 1 else 'ies'}.")

        elif choice in ("", "q"):
            try:
                vdb_persist.save(store, store_dir)
            except vdb_persist.StoreIOError as e:
                print(f"[error] Could not save notebook: {e}")
                logging.error("save failed: %s", e, exc_info=True)
                return 1
            print(f"Saved {len(store)} entries to {vdb_persist.store_path(store.name, store_dir)}")
            return 0

        else:
            print(f"Unknown selection {choice!r}")


# --------------------------------------------------------------------------------------
# main()
# --------------------------------------------------------------------------------------

def main(argv: Optional[list[str]] = None) -> int:
    """
    Command-line entry point for the VDB notebook.

    Responsibilities
    ----------------
    - Configure logging (file + console).
    - Parse CLI flags (name/store-dir/demo/version/about).
    - Handle one-shot modes: --version / --about print and exit.
    - Otherwise open the store and run the interactive loop.

    Returns:
        0 on normal success, 1 if the store file cannot be read or written, 2 on bad flags.
    """
    # set up logging (one-time)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
            handlers=[logging.FileHandler("vdb_notebook.log", encoding="utf-8"),
                      logging.StreamHandler()])
    logging.info("vdb_notebook start v%s python=%s platform=%s",
                 __version__, sys.version.split()[0], platform.platform())

    p = argparse.ArgumentParser(prog="vdb_notebook.py")
    p.add_argument("--name", default=DEFAULT_NAME, help="Logical store name (file <store-dir>/<name>.json)")
    p.add_argument("--store-dir", default=None,
                   help=f"Directory for store files (default: ${vdb_persist.STORE_DIR_ENV} or "
                        f"'{vdb_persist.DEFAULT_STORE_DIR}')")
    p.add_argument("--demo", action="store_true", help="Start from a small preloaded demo notebook")
    p.add_argument("--version", action="store_true", help="Print just the notebook version")
    p.add_argument("--about", action="store_true", help="Print version and component info")

    try:
        args = p.parse_args(argv)
    except SystemExit as e:
        code = getattr(e, "code", 0)
        return 2 if code else 0

    if args.version:
        print(__version__)
        return 0

    if args.about:
        print("VDB Components:")
        print(f"  - vdb_notebook.py v{__version__} ({os.path.abspath(__file__)})")
        for name in COMPONENTS:
            ver, path = _module_version_and_path(name)
            print(f"  - {name} v{ver} ({path})")
        return 0

    try:
        store = open_store(args.name, args.store_dir, demo=args.demo)
    except (vdb_persist.StoreFormatError, vdb_persist.StoreIOError) as e:
        print(f"[error] Could not open notebook {args.name!r}: {e}")
        logging.error("open failed: %s", e)
        return 1
    except ValueError as e:
        print(f"[error] {e}")
        return 2

    return interactive_loop(store, args.store_dir)


if __name__ == "__main__":
    sys.exit(main())
