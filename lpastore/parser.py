"""Parsing of a list of changes into typed values, collecting field errors."""

from __future__ import annotations

import dataclasses
import datetime as dt
import re
from collections.abc import Callable, Iterable, MutableMapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from lpastore.models import Change, Date, FieldError, parse_time

Validator = Callable[[Any], list[FieldError]]

_INDEX = re.compile(r"[+-]?[0-9]+", re.ASCII)
_UNCHANGED = object()


class FieldKind(Enum):
    """How a change's values are decoded and compared with the existing value."""

    STRING = "string"
    INT = "int"
    TIME = "time"
    DATE = "date"


@dataclass(frozen=True)
class _Entry:
    key: str
    old: Any
    new: Any
    pos: int

    def source(self, after: str = "") -> str:
        return f"/changes/{self.pos}{after}"


def _read(target: Any, attr: str) -> Any:
    if isinstance(target, MutableMapping):
        return target[attr]
    return getattr(target, attr)


def _write(target: Any, attr: str, value: Any) -> None:
    if isinstance(target, MutableMapping):
        target[attr] = value
    else:
        setattr(target, attr, value)


def _decode(new: Any, kind: FieldKind) -> Any:
    if new is None:
        return _UNCHANGED
    if kind is FieldKind.INT:
        if isinstance(new, bool) or not isinstance(new, int):
            raise ValueError("expected an integer")
        return new
    if not isinstance(new, str):
        raise ValueError("expected a string")
    if kind is FieldKind.TIME:
        return parse_time(new)
    if kind is FieldKind.DATE:
        return Date.parse(new)
    return new


def _matches(old: Any, existing: Any, kind: FieldKind) -> bool:
    if kind is FieldKind.TIME:
        if old is None:
            return existing is None
        if not isinstance(old, str):
            return False
        try:
            old_time: dt.datetime = parse_time(old)
        except ValueError:
            return False
        return existing is not None and old_time == existing
    if kind is FieldKind.DATE:
        if old is None:
            return existing.is_zero()
        if not isinstance(old, str):
            return False
        try:
            old_date = Date.parse(old)
        except ValueError:
            old_date = Date()
        return old_date == existing
    if kind is FieldKind.INT:
        if old is None:
            return existing == 0
        return not isinstance(old, bool) and isinstance(old, int) and old == existing
    if old is None:
        return existing == ""
    return isinstance(old, str) and old == existing


class Parser:
    """Consumes changes field by field; every problem becomes a FieldError."""

    def __init__(self, changes: Iterable[Change] = ()) -> None:
        self._root = ""
        self._changes = [_Entry(c.key, c.old, c.new, pos) for pos, c in enumerate(changes)]
        self._errors: list[FieldError] = []

    @classmethod
    def _child(cls, root: str, entries: list[_Entry]) -> Parser:
        child = cls()
        child._root = root
        child._changes = list(entries)
        return child

    def consumed(self) -> list[FieldError]:
        """Add an error for every change not yet used, and return all errors."""
        self._errors.extend(
            FieldError(entry.source(), "unexpected change provided") for entry in self._changes
        )
        return list(self._errors)

    def out_of_range(self) -> list[FieldError]:
        """Add an out of range error for every remaining change, and return all errors."""
        self._errors.extend(
            FieldError(entry.source("/key"), "index out of range") for entry in self._changes
        )
        return list(self._errors)

    def errors(self) -> list[FieldError]:
        return list(self._errors)

    def field(
        self,
        key: str,
        target: Any,
        attr: str,
        kind: FieldKind = FieldKind.STRING,
        optional: bool = False,
        validator: Validator | None = None,
    ) -> Parser:
        """Set target.attr (or target[attr]) from the change with this key.

        The change's old value must match the current value. The validator, if
        given, receives the value after it is set.
        """
        for index, entry in enumerate(self._changes):
            if entry.key == key:
                break
        else:
            if not optional:
                self._errors.append(FieldError("/changes", f"missing {self._root}{key}"))
            return self

        del self._changes[index]

        if not _matches(entry.old, _read(target, attr), kind):
            self._errors.append(FieldError(entry.source("/old"), "does not match existing value"))
            return self

        try:
            value = _decode(entry.new, kind)
        except ValueError:
            self._errors.append(FieldError(entry.source("/new"), "unexpected type"))
            return self

        if value is not _UNCHANGED:
            _write(target, attr, value)

        if validator is not None:
            self._errors.extend(
                FieldError(entry.source("/new"), error.detail)
                for error in validator(_read(target, attr))
            )
        return self

    def each(self, fn: Callable[[int, Parser], Any], *required: int) -> Parser:
        """Run fn(index, parser) for each index in keys of the form /<index>/...

        Indexes given in required are visited even when no change names them.
        """
        grouped: dict[int, list[_Entry]] = {idx: [] for idx in required}
        for entry in self._changes:
            parts = entry.key.split("/", 2)
            if len(parts) != 3 or parts[0] != "" or not _INDEX.fullmatch(parts[1]):
                self._errors.append(FieldError(entry.source("/key"), "require index"))
                continue
            grouped.setdefault(int(parts[1]), []).append(
                dataclasses.replace(entry, key="/" + parts[2])
            )

        self._changes = []

        for idx in sorted(grouped):
            sub = Parser._child(f"{self._root}/{idx}", grouped[idx])
            fn(idx, sub)
            self._errors.extend(sub._errors)
        return self

    def prefix(
        self, prefix: str, fn: Callable[[Parser], Any], optional: bool = False
    ) -> Parser:
        """Run fn with a parser over the changes whose keys start with prefix."""
        matching: list[_Entry] = []
        remaining: list[_Entry] = []
        for entry in self._changes:
            if entry.key.startswith(prefix + "/"):
                matching.append(dataclasses.replace(entry, key=entry.key[len(prefix):]))
            else:
                remaining.append(entry)

        self._changes = remaining

        if not matching:
            if not optional:
                self._errors.append(
                    FieldError("/changes", f"missing {self._root}{prefix}/...")
                )
        else:
            sub = Parser._child(self._root + prefix, matching)
            fn(sub)
            self._errors.extend(sub._errors)
        return self


def changes(changes: Iterable[Change]) -> Parser:
    """A new Parser over a list of changes."""
    return Parser(changes)