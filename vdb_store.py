# -*- coding: utf-8 -*-
"""
VDB record store (rows + secondary indexes)

This module implements the in-memory engine of VDB, a tiny embedded record store.

Terminology:
- "Row" -- an identity (RowId) plus an *ordered* list of Entries. A row with no entries is
   logically absent: it is never returned by a finder and never persisted.
- "Entry" -- a (name, value) pair, see vdb_values. Names may repeat within one row.
- "RowId" -- a positive int issued by a monotonic counter (row_max). Callers treat it as an
   opaque identity; ids are never handed out twice, not even after the row is deleted.
- "Secondary index" -- derived maps that accelerate lookups:
     _by_name[name]   -> set of row ids having at least one entry called `name`
     _by_value[entry] -> set of row ids holding that exact (name, value) entry

Structure:
    _rows      : Dict[int, List[Entry]]     authoritative
    _by_name   : Dict[str, Set[int]]        derived
    _by_value  : Dict[Entry, Set[int]]      derived

Only the mutators on RecordStore write these three maps. Each mutator unindexes the
affected row, changes its entry list, then indexes it again, so the indexes are always
recomputed from the row itself rather than patched slot by slot.

Queries:
- find_row_ids_by_predicate(predicates, max_results): the first predicate builds the candidate
  set (via _by_value when it is an EQUAL predicate, else a full scan), every later predicate
  filters the candidates. Callers order predicates from most to least selective.

Persistence:
- `to_dict()` / `from_dict()` serialize/restore rows and row_max. Indexes are never serialized;
   from_dict() rebuilds them by replaying every row. File IO lives in vdb_persist.
"""

# --- Imports -------------------------------------------------------------
# Standard Library Imports
from __future__ import annotations
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Set

# PyPI and Third-Party Imports
# --none at this time at program startup--

# VDB Module Imports
from vdb_values import Entry, to_value
from vdb_predicates import Predicate, PredicateKind, row_satisfies

# --- Public API index and version, constants -------------------------------------------------
__version__ = "0.3.0"
__all__ = ["RecordStore", "check_store_name", "FORMAT_VERSION", "__version__"]

FORMAT_VERSION = "1"

log = logging.getLogger(__name__)


def check_store_name(name: str) -> str:
    """Store names become file names in vdb_persist; reject blanks and path components."""
    if not isinstance(name, str) or not name.strip():
        raise ValueError("store name must be a non-empty string")
    if "/" in name or "\\" in name or name in (".", ".."):
        raise ValueError(f"store name must not contain path separators: {name!r}")
    return name


def _check_row_id(row_id: int) -> int:
    if isinstance(row_id, bool) or not isinstance(row_id, int):
        raise TypeError(f"row id must be int, got {type(row_id).__name__}")
    if row_id <= 0:
        raise ValueError(f"row id must be positive, got {row_id}")
    return row_id


def _check_entries(entries: Iterable[Entry]) -> List[Entry]:
    out = list(entries)
    for e in out:
        if not isinstance(e, Entry):
            raise TypeError(f"expected Entry, got {type(e).__name__}")
    return out


class RecordStore:
    """Rows of named values with a by-name and a by-exact-entry index.

    Key operations:
        - add_row(entries) -> row_id
        - add_entry / add_or_update_entry / remove_by_name / remove_by_row_id / delete_rows / delete_entry_all
        - find_row_ids_by_name / find_row_ids_by_value / find_first_row_id_by_* / find_all_row_ids
        - find_row_ids_by_predicate(predicates, max_results) and select(predicates, names)
        - entries_from_row_ids(row_ids, names)

    Example:
        >>> db = RecordStore("test-db")
        >>> cocina = db.add_row([Entry.text("word", "cocina"), Entry.text("translation", "kitchen")])
        >>> coche = db.add_row([Entry.text("word", "coche"), Entry.text("translation", "car")])
        >>> db.find_row_ids_by_predicate([Predicate.equal_string("word", "coche")])
        [2]
        >>> db.entries_from_row_ids([coche], ["translation"])[0][0].value.data
        'car'
        >>> db.delete_rows([cocina, coche])
        2
        >>> db.find_first_row_id_by_value("word", "coche") is None
        True

    The store is single-threaded; share it across threads only behind one external lock.
    """

    def __init__(self, name: str = "default") -> None:
        """Create an empty store. Nothing touches the disk until vdb_persist.save() is called.

        Args:
            name: logical store name; vdb_persist derives the file path from it.
        """
        self.name: str = check_store_name(name)
        self._row_max: int = 0
        self._rows: Dict[int, List[Entry]] = {}
        self._by_name: Dict[str, Set[int]] = {}
        self._by_value: Dict[Entry, Set[int]] = {}

    def __repr__(self) -> str:
        return f"RecordStore(name={self.name!r}, rows={len(self._rows)}, row_max={self._row_max})"

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, row_id: object) -> bool:
        return row_id in self._rows

    @property
    def row_max(self) -> int:
        """High-water mark of issued row ids (0 for a fresh store)."""
        return self._row_max

    # ------------------------- internals -------------------------

    def _next_id(self) -> int:
        """Return the next row id using the monotonic counter."""
        self._row_max += 1
        return self._row_max

    def _index_row(self, row_id: int) -> None:
        """Add index entries for every entry currently in the row."""
        for e in self._rows.get(row_id, ()):
            self._by_name.setdefault(e.name, set()).add(row_id)
            self._by_value.setdefault(e, set()).add(row_id)

    def _unindex_row(self, row_id: int) -> None:
        """Remove every index trace of the row's current entries; drop emptied index keys."""
        for e in self._rows.get(row_id, ()):
            ids = self._by_name.get(e.name)
            if ids is not None:
                ids.discard(row_id)
                if not ids:
                    del self._by_name[e.name]
            ids = self._by_value.get(e)
            if ids is not None:
                ids.discard(row_id)
                if not ids:
                    del self._by_value[e]

    def _replace_row(self, row_id: int, entries: List[Entry]) -> None:
        """Swap a row's entry list, keeping indexes in step. An empty list deletes the row."""
        self._unindex_row(row_id)
        if entries:
            self._rows[row_id] = entries
            self._index_row(row_id)
        else:
            self._rows.pop(row_id, None)

    def _insert_row(self, row_id: int, entries: List[Entry]) -> None:
        """Place a row under a known id (used by add_row and by from_dict replay)."""
        assert row_id not in self._rows, f"row {row_id} already present"
        if not entries:
            return
        self._rows[row_id] = entries
        self._index_row(row_id)
        if row_id > self._row_max:
            self._row_max = row_id

    def _entries_of(self, row_id: int) -> List[Entry]:
        # an index pointing at a missing row is a mutator bug, not a runtime condition
        assert row_id in self._rows, f"index references unknown row id {row_id}"
        return self._rows[row_id]

    # ------------------------- mutators --------------------------

    def add_row(self, entries: Iterable[Entry]) -> int:
        """Add a new row with the given entries and return its fresh row id.

        The id is always issued (so ids stay strictly increasing); a row with no entries is
        logically absent and is therefore not stored.
        """
        row = _check_entries(entries)
        row_id = self._next_id()
        self._insert_row(row_id, row)
        log.debug("add_row %s (%d entries) in %s", row_id, len(row), self.name)
        return row_id

    def add_entry(self, row_id: int, entry: Entry) -> None:
        """Append a single entry to a row, creating the row if needed. Does not check duplicates."""
        _check_row_id(row_id)
        _check_entries([entry])
        row = self._rows.setdefault(row_id, [])
        row.append(entry)
        self._by_name.setdefault(entry.name, set()).add(row_id)
        self._by_value.setdefault(entry, set()).add(row_id)
        if row_id > self._row_max:
            self._row_max = row_id
        log.debug("add_entry %s <- %s", row_id, entry)

    def add_or_update_entry(self, row_id: int, entry: Entry) -> None:
        """Upsert by name: every existing entry called entry.name is replaced by this single entry.

        If the row has no entry with that name (or does not exist), behaves like add_entry().
        """
        _check_row_id(row_id)
        _check_entries([entry])
        current = self._rows.get(row_id)
        if not current or not any(e.name == entry.name for e in current):
            self.add_entry(row_id, entry)
            return
        kept = [e for e in current if e.name != entry.name]
        kept.append(entry)
        self._replace_row(row_id, kept)
        log.debug("add_or_update_entry %s <- %s", row_id, entry)

    def remove_by_name(self, row_id: int, name: str) -> int:
        """Remove all entries called `name` from one row. Returns the number removed.

        A row left without entries is deleted (its id is never reissued).
        """
        current = self._rows.get(row_id)
        if not current:
            return 0
        kept = [e for e in current if e.name != name]
        removed = len(current) - len(kept)
        if removed:
            self._replace_row(row_id, kept)
            log.debug("remove_by_name %s %r: %d removed", row_id, name, removed)
        return removed

    def remove_by_row_id(self, row_id: int) -> bool:
        """Delete a row and all its index traces.

        Returns:
            True if deleted, False if `row_id` did not exist (deleting twice is a no-op).
        """
        if row_id not in self._rows:
            return False
        self._replace_row(row_id, [])
        log.debug("remove_by_row_id %s", row_id)
        return True

    def delete_rows(self, row_ids: Iterable[int]) -> int:
        """Delete several rows. Returns how many actually existed."""
        return sum(1 for rid in list(row_ids) if self.remove_by_row_id(rid))

    def delete_entry_all(self, name: str) -> int:
        """Delete every entry called `name` in the whole store. Returns the number of rows touched.

        Rows that still have other entries are kept; rows left empty are deleted.
        """
        touched = sorted(self._by_name.get(name, ()))
        for rid in touched:
            self.remove_by_name(rid, name)
        if touched:
            log.debug("delete_entry_all %r: %d rows", name, len(touched))
        return len(touched)

    def prune_empty_rows(self) -> List[int]:
        """Drop rows whose entry list is empty. Returns the pruned ids (normally none)."""
        empty = sorted(rid for rid, entries in self._rows.items() if not entries)
        for rid in empty:
            del self._rows[rid]
        if empty:
            log.warning("pruned %d empty rows from %s: %s", len(empty), self.name, empty)
        return empty

    # ------------------------- finders ---------------------------

    def find_row_ids_by_name(self, name: str) -> List[int]:
        """Row ids having at least one entry called `name` (sorted)."""
        return sorted(self._by_name.get(name, ()))

    def find_row_ids_by_value(self, name: str, value) -> List[int]:
        """Row ids holding exactly (name, value). For partial matches use predicates.

        `value` may be a Value or a plain str/int/datetime.
        """
        return sorted(self._by_value.get(Entry(name, to_value(value)), ()))

    def find_first_row_id_by_name(self, name: str) -> Optional[int]:
        """One row id having an entry called `name`, or None."""
        ids = self._by_name.get(name)
        return min(ids) if ids else None

    def find_first_row_id_by_value(self, name: str, value) -> Optional[int]:
        """One row id holding exactly (name, value), or None."""
        ids = self._by_value.get(Entry(name, to_value(value)))
        return min(ids) if ids else None

    def find_all_row_ids(self) -> List[int]:
        """Every live row id (sorted)."""
        return sorted(rid for rid, entries in self._rows.items() if entries)

    def get_first_entry(self, row_id: int, name: str) -> Optional[Entry]:
        """First entry called `name` in the row, or None."""
        for e in self._rows.get(row_id, ()):
            if e.name == name:
                return e
        return None

    def row_entries(self, row_id: int) -> List[Entry]:
        """Copy of a row's entries in storage order ([] if the row does not exist)."""
        return list(self._rows.get(row_id, ()))

    def entries_from_row_ids(self, row_ids: Iterable[int], names: Sequence[str] | str) -> List[List[Entry]]:
        """For each row id, the entries whose name is in `names`, ordered by `names`.

        Order follows `names` (not the row's storage order); entries sharing a name keep
        their relative storage order. Unknown rows or names contribute empty lists.
        """
        if isinstance(names, str):
            names = [names]
        out: List[List[Entry]] = []
        for rid in row_ids:
            entries = self._rows.get(rid, ())
            ordered: List[Entry] = []
            for n in names:
                ordered.extend(e for e in entries if e.name == n)
            out.append(ordered)
        return out

    # ------------------------- queries ---------------------------

    def find_row_ids_by_predicate(
        self,
        predicates: Sequence[Predicate],
        max_results: Optional[int] = None,
    ) -> List[int]:
        """Row ids satisfying *all* predicates, sorted and deduplicated.

        Like SQL "select ... where p0 and p1 ... limit max_results".

        - No predicates: every live row id.
        - predicates[0] builds the candidates: an index hit for EQUAL, a full scan otherwise.
        - predicates[1:] each filter the (already shrunk) candidates by scanning their entries.
        - The candidate list is truncated to max_results, then sorted and deduplicated.
        """
        if max_results is not None:
            if isinstance(max_results, bool) or not isinstance(max_results, int):
                raise TypeError("max_results must be an int or None")
            if max_results < 0:
                raise ValueError("max_results must be >= 0")
        preds = list(predicates)
        for p in preds:
            if not isinstance(p, Predicate):
                raise TypeError(f"expected Predicate, got {type(p).__name__}")

        if not preds:
            row_ids = self.find_all_row_ids()
            return row_ids if max_results is None else row_ids[:max_results]

        first = preds[0]
        if first.kind is PredicateKind.EQUAL:
            candidates = sorted(self._by_value.get(first.entry, ()))
        else:
            candidates = [rid for rid in sorted(self._rows) if row_satisfies(self._rows[rid], first)]

        for p in preds[1:]:
            candidates = [rid for rid in candidates if row_satisfies(self._entries_of(rid), p)]

        if max_results is not None:
            candidates = candidates[:max_results]
        return sorted(set(candidates))

    # alias (older callers may still use select_row_ids)
    select_row_ids = find_row_ids_by_predicate

    def select(
        self,
        predicates: Sequence[Predicate],
        names: Sequence[str] | str,
        max_results: Optional[int] = None,
    ) -> List[List[Entry]]:
        """Query, then project: entries_from_row_ids(find_row_ids_by_predicate(...), names)."""
        return self.entries_from_row_ids(self.find_row_ids_by_predicate(predicates, max_results), names)

    # ------------------------- persistence -----------------------

    def to_dict(self) -> dict:
        """Serialize rows and row_max. Indexes are not included."""
        return {
            "name": self.name,
            "row_max": self._row_max,
            "rows": {str(rid): [e.to_dict() for e in entries]
                     for rid, entries in sorted(self._rows.items()) if entries},
            "version": FORMAT_VERSION,
        }

    @classmethod
    def from_dict(cls, data: dict, *, name: Optional[str] = None) -> "RecordStore":
        """Restore a store, replaying every row through the indexing path.

        row_max is restored as max(persisted row_max, largest row id), so ids are never reused.

        Raises:
            ValueError: if `data` does not have the expected structure.
        """
        if not isinstance(data, dict):
            raise ValueError(f"store document must be an object, got {type(data).__name__}")
        rows = data.get("rows", {})
        if not isinstance(rows, dict):
            raise ValueError("'rows' must be an object keyed by row id")
        row_max = data.get("row_max", 0)
        if isinstance(row_max, bool) or not isinstance(row_max, int) or row_max < 0:
            raise ValueError(f"'row_max' must be a non-negative int, got {row_max!r}")

        store = cls(name or data.get("name") or "default")
        for key, raw_entries in rows.items():
            try:
                rid = _check_row_id(int(key))
            except (TypeError, ValueError) as e:
                raise ValueError(f"bad row id {key!r}") from e
            if rid in store._rows:
                raise ValueError(f"duplicate row id {rid}")
            if not isinstance(raw_entries, list):
                raise ValueError(f"row {rid}: entries must be a list")
            store._insert_row(rid, [Entry.from_dict(d) for d in raw_entries])
        store._row_max = max(store._row_max, row_max)
        return store

    def check_invariants(self, *, raise_on_error: bool = True) -> list[str]:
        """Validate the store's invariants. Return a list of human-readable issues.

        Checks:
          - every row id <= row_max and positive
          - no stored row is empty
          - _by_name / _by_value equal the indexes recomputed from _rows
        """
        issues: list[str] = []
        expected_name: Dict[str, Set[int]] = {}
        expected_value: Dict[Entry, Set[int]] = {}
        for rid, entries in self._rows.items():
            if rid <= 0 or rid > self._row_max:
                issues.append(f"row id {rid} outside 1..row_max ({self._row_max})")
            if not entries:
                issues.append(f"row {rid} has no entries")
            for e in entries:
                expected_name.setdefault(e.name, set()).add(rid)
                expected_value.setdefault(e, set()).add(rid)

        for name in set(expected_name) | set(self._by_name):
            have, want = self._by_name.get(name, set()), expected_name.get(name, set())
            if have != want:
                issues.append(f"_by_name[{name!r}] = {sorted(have)}, expected {sorted(want)}")
        for entry in set(expected_value) | set(self._by_value):
            have, want = self._by_value.get(entry, set()), expected_value.get(entry, set())
            if have != want:
                issues.append(f"_by_value[{entry}] = {sorted(have)}, expected {sorted(want)}")

        if raise_on_error and issues:
            raise AssertionError("RecordStore invariant violations:\n  - " + "\n  - ".join(issues))
        return issues
