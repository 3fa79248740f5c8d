# -*- coding: utf-8 -*-
"""
VDB scalar values and entries
vdb_values.py

Purpose
-------
Every row in the record store is a small bag of *entries*; each entry is a
name plus one scalar *value*. This module holds that scalar model:

- Value kinds form a closed set: Text, Integer, Timestamp.
- Equality is structural and kind-sensitive, i.e., Text("5") != Integer(5).
- Partial string matching (starts_with / contains) is only defined between two
  Text values; every other combination simply answers False.
- Values and entries are frozen (hashable) so the store can key its by-value
  index directly on Entry objects.

Display:
    Timestamp -> "YYYY-MM-DD HH:MM"
    Integer   -> decimal
    Text      -> verbatim

Persistence:
    value_to_json()/value_from_json() and Entry.to_dict()/Entry.from_dict() give a
    JSON-safe discriminated form, e.g. {"type": "timestamp", "value": "2013-11-22 12:00:00"}.
"""

# --- Pragmas and Imports -------------------------------------------------------------
# Standard Library Imports
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar, Optional, Union

# PyPI and Third-Party Imports
# --none at this time at program startup --

# VDB Module Imports
# --none at this time at program startup --


# --- Public API index, version, global variables and constants -------------------------
__version__ = "0.3.0"
__all__ = [
    "Value",
    "Text",
    "Integer",
    "Timestamp",
    "Entry",
    "starts_with",
    "contains",
    "to_value",
    "value_to_json",
    "value_from_json",
    "TIMESTAMP_FORMAT",
    "__version__",
]

INT_MIN = -2**31
INT_MAX = 2**31 - 1
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"     # persisted form
DISPLAY_FORMAT = "%Y-%m-%d %H:%M"          # str() form
DATE_FORMAT = "%Y-%m-%d"


# -----------------------------------------------------------------------------
# Value kinds
# -----------------------------------------------------------------------------

class Value:
    """Common base of the three scalar kinds. Not instantiated directly.

    `kind` is the persisted discriminator ("text" | "integer" | "timestamp").
    """
    __slots__ = ()
    kind: ClassVar[str] = ""

    def date(self) -> Optional[str]:
        """Return 'YYYY-MM-DD' for timestamps, None for every other kind."""
        return None


@dataclass(frozen=True, slots=True)
class Text(Value):
    """A string value; the only kind that supports partial matching."""
    data: str
    kind: ClassVar[str] = "text"

    def __post_init__(self) -> None:
        if not isinstance(self.data, str):
            raise TypeError(f"Text expects str, got {type(self.data).__name__}")

    def __str__(self) -> str:
        return self.data


@dataclass(frozen=True, slots=True)
class Integer(Value):
    """A 32-bit signed integer value."""
    data: int
    kind: ClassVar[str] = "integer"

    def __post_init__(self) -> None:
        # bool is an int subclass; reject it so True never masquerades as Integer(1)
        if isinstance(self.data, bool) or not isinstance(self.data, int):
            raise TypeError(f"Integer expects int, got {type(self.data).__name__}")
        if not INT_MIN <= self.data <= INT_MAX:
            raise ValueError(f"Integer out of 32-bit range: {self.data}")

    def __str__(self) -> str:
        return str(self.data)


@dataclass(frozen=True, slots=True)
class Timestamp(Value):
    """A naive date+time value with second precision (microseconds are dropped)."""
    data: datetime
    kind: ClassVar[str] = "timestamp"

    def __post_init__(self) -> None:
        if not isinstance(self.data, datetime):
            raise TypeError(f"Timestamp expects datetime, got {type(self.data).__name__}")
        # the file format has no offset field, so aware datetimes would not survive a reload
        if self.data.tzinfo is not None:
            raise ValueError(f"Timestamp expects a naive datetime, got tzinfo={self.data.tzinfo!r}")
        if self.data.microsecond:
            object.__setattr__(self, "data", self.data.replace(microsecond=0))

    def __str__(self) -> str:
        return self.data.strftime(DISPLAY_FORMAT)

    def date(self) -> Optional[str]:
        return self.data.strftime(DATE_FORMAT)

    @classmethod
    def now(cls) -> "Timestamp":
        """Current local time as a Timestamp."""
        return cls(datetime.now())

    @classmethod
    def parse(cls, text: str) -> "Timestamp":
        """Parse 'YYYY-MM-DD HH:MM:SS'. Raises ValueError on any other shape."""
        return cls(datetime.strptime(text, TIMESTAMP_FORMAT))


ScalarValue = Union[Text, Integer, Timestamp]


def to_value(x: object) -> ScalarValue:
    """Wrap a plain Python scalar (str | int | datetime) into its Value kind; Values pass through."""
    if isinstance(x, Value):
        return x  # type: ignore[return-value]
    if isinstance(x, str):
        return Text(x)
    if isinstance(x, datetime):
        return Timestamp(x)
    if isinstance(x, int) and not isinstance(x, bool):
        return Integer(x)
    raise TypeError(f"no VDB value kind for {type(x).__name__}")


# -----------------------------------------------------------------------------
# Comparison helpers
# -----------------------------------------------------------------------------

def starts_with(a: Value, b: Value) -> bool:
    """True iff both are Text and a starts with b."""
    if isinstance(a, Text) and isinstance(b, Text):
        return a.data.startswith(b.data)
    return False


def contains(a: Value, b: Value) -> bool:
    """True iff both are Text and b is a substring of a."""
    if isinstance(a, Text) and isinstance(b, Text):
        return b.data in a.data
    return False


# -----------------------------------------------------------------------------
# JSON codec
# -----------------------------------------------------------------------------

def value_to_json(value: Value) -> dict:
    """JSON-safe discriminated form of a value."""
    if isinstance(value, Text):
        payload = value.data
    elif isinstance(value, Integer):
        payload = value.data
    elif isinstance(value, Timestamp):
        payload = value.data.strftime(TIMESTAMP_FORMAT)
    else:
        raise TypeError(f"not a VDB value: {value!r}")
    return {"type": value.kind, "value": payload}


def value_from_json(d: dict) -> ScalarValue:
    """Rehydrate a value from value_to_json() output.

    Raises:
        ValueError: unknown type tag, missing payload or payload of the wrong shape.
    """
    if not isinstance(d, dict):
        raise ValueError(f"value must be an object, got {type(d).__name__}")
    kind = d.get("type")
    if "value" not in d:
        raise ValueError(f"value object without payload: {d!r}")
    payload = d["value"]
    try:
        if kind == Text.kind:
            return Text(payload)
        if kind == Integer.kind:
            return Integer(payload)
        if kind == Timestamp.kind:
            if not isinstance(payload, str):
                raise TypeError("timestamp payload must be a string")
            return Timestamp.parse(payload)
    except TypeError as e:
        raise ValueError(f"bad {kind} payload {payload!r}: {e}") from e
    raise ValueError(f"unknown value type: {kind!r}")


# -----------------------------------------------------------------------------
# Entry
# -----------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Entry:
    """One named value inside a row. Comparable to column name + cell in a relational table.

    Two entries are equal iff both name and value are equal. Names may repeat within a row
    (e.g., several 'translation' entries for one word).
    """
    name: str
    value: ScalarValue

    def __post_init__(self) -> None:
        if not isinstance(self.name, str):
            raise TypeError(f"Entry name must be str, got {type(self.name).__name__}")
        if not isinstance(self.value, Value):
            raise TypeError(f"Entry value must be a VDB value, got {type(self.value).__name__}")

    def __str__(self) -> str:
        return f"{self.name}: {self.value}"

    @classmethod
    def text(cls, name: str, value: str) -> "Entry":
        return cls(name, Text(value))

    @classmethod
    def integer(cls, name: str, value: int) -> "Entry":
        return cls(name, Integer(value))

    @classmethod
    def timestamp(cls, name: str, value: datetime | str) -> "Entry":
        """Accepts a datetime or a 'YYYY-MM-DD HH:MM:SS' string."""
        if isinstance(value, str):
            return cls(name, Timestamp.parse(value))
        return cls(name, Timestamp(value))

    def to_dict(self) -> dict:
        """JSON-safe representation for persistence."""
        return {"name": self.name, "value": value_to_json(self.value)}

    @staticmethod
    def from_dict(d: dict) -> "Entry":
        """Rehydrate an Entry from its serialized form. Raises ValueError on bad shape."""
        if not isinstance(d, dict) or not isinstance(d.get("name"), str):
            raise ValueError(f"entry must be an object with a string 'name': {d!r}")
        return Entry(d["name"], value_from_json(d.get("value")))
