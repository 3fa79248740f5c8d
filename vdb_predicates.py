# -*- coding: utf-8 -*-
"""
VDB predicates
vdb_predicates.py

A Predicate is a named comparison against the entries of a row:

    Predicate(kind=PredicateKind.EQUAL, entry=Entry.text("word", "coche"))

Kinds:
  EQUAL        name and value equal (kind-sensitive)
  STARTS_WITH  name equal and the entry's Text value starts with the predicate's Text
  CONTAINS     name equal and the entry's Text value contains the predicate's Text
  ANY          name equal; value ignored

A row satisfies a predicate if *any* of its entries matches. Composition of
several predicates into row-id result sets lives in RecordStore.find_row_ids_by_predicate(),
since only the store knows which indexes exist.
"""

# --- Pragmas and Imports -------------------------------------------------------------
# Standard Library Imports
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

# PyPI and Third-Party Imports
# --none at this time at program startup --

# VDB Module Imports
from vdb_values import Entry, Integer, Text, Value, contains, starts_with


# --- Public API index, version, global variables and constants -------------------------
__version__ = "0.3.0"
__all__ = ["PredicateKind", "Predicate", "matches", "row_satisfies", "__version__"]


class PredicateKind(Enum):
    EQUAL = "equal"
    STARTS_WITH = "starts_with"
    CONTAINS = "contains"
    ANY = "any"


@dataclass(frozen=True, slots=True)
class Predicate:
    """Comparison used by queries (RecordStore.find_row_ids_by_predicate / select).

    Examples:
        >>> a = Entry.text("mundo", "world")
        >>> matches(a, Predicate.equal_string("mundo", "world"))
        True
        >>> matches(a, Predicate.contains("mundo", "orl"))
        True
        >>> matches(a, Predicate.equal_string("mundo", "World"))
        False
    """
    kind: PredicateKind
    entry: Entry

    def __post_init__(self) -> None:
        if not isinstance(self.kind, PredicateKind):
            raise TypeError(f"kind must be a PredicateKind, got {self.kind!r}")
        if not isinstance(self.entry, Entry):
            raise TypeError(f"entry must be an Entry, got {type(self.entry).__name__}")

    @property
    def name(self) -> str:
        return self.entry.name

    # shortcuts -----------------------------------------------------------

    @classmethod
    def equal(cls, name: str, value: Value) -> "Predicate":
        return cls(PredicateKind.EQUAL, Entry(name, value))

    @classmethod
    def equal_string(cls, name: str, value: str) -> "Predicate":
        return cls(PredicateKind.EQUAL, Entry(name, Text(value)))

    @classmethod
    def equal_int(cls, name: str, value: int) -> "Predicate":
        return cls(PredicateKind.EQUAL, Entry(name, Integer(value)))

    @classmethod
    def starts_with(cls, name: str, value: str | Value) -> "Predicate":
        v = value if isinstance(value, Value) else Text(value)
        return cls(PredicateKind.STARTS_WITH, Entry(name, v))

    @classmethod
    def contains(cls, name: str, value: str | Value) -> "Predicate":
        v = value if isinstance(value, Value) else Text(value)
        return cls(PredicateKind.CONTAINS, Entry(name, v))

    @classmethod
    def any_with_name(cls, name: str) -> "Predicate":
        """Match every entry called `name`. The placeholder value is never compared."""
        return cls(PredicateKind.ANY, Entry(name, Text("")))


def matches(candidate: Entry, predicate: Predicate) -> bool:
    """True if a single entry satisfies the predicate."""
    if candidate.name != predicate.entry.name:
        return False
    kind = predicate.kind
    if kind is PredicateKind.EQUAL:
        return candidate.value == predicate.entry.value
    if kind is PredicateKind.STARTS_WITH:
        return starts_with(candidate.value, predicate.entry.value)
    if kind is PredicateKind.CONTAINS:
        return contains(candidate.value, predicate.entry.value)
    if kind is PredicateKind.ANY:
        return True
    raise AssertionError(f"unhandled predicate kind: {kind!r}")


def row_satisfies(entries: Iterable[Entry], predicate: Predicate) -> bool:
    """True if any entry of the row matches."""
    return any(matches(e, predicate) for e in entries)
