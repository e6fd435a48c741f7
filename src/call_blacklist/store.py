"""Rule store — numbers and patterns with per-mode block flags.

Interfaces the matcher consumes, plus in-memory implementations:

  - RuleSource: ``query`` rules matching a normalized number, ``update`` flags
  - IdentityLookup: ``lookup`` a caller, ``None`` when nothing is known
"""

from __future__ import annotations
import re
from typing import Any, Iterable, Protocol

from .normalizer import Normalizer, is_input_regex
from .types import Identity, RuleEntry


# Columns a caller may set through update()
RULE_FIELDS = ("block_calls", "block_messages")


class RuleSource(Protocol):
    def query(self, number: str, use_regex: bool) -> list[RuleEntry]: ...
    def update(self, number: str, fields: dict[str, Any]) -> int: ...


class IdentityLookup(Protocol):
    def lookup(self, number: str) -> Identity | None: ...


def like_to_regex(pattern: str) -> re.Pattern:
    """Compile an SQL LIKE pattern ("%" any run, "_" one char) to a regex."""
    parts = []
    for c in pattern:
        if c == "%":
            parts.append(".*")
        elif c == "_":
            parts.append(".")
        else:
            parts.append(re.escape(c))
    return re.compile("".join(parts), re.DOTALL)


def check_fields(fields: dict[str, Any]) -> dict[str, bool]:
    unknown = set(fields) - set(RULE_FIELDS)
    if unknown:
        raise ValueError(f"Unknown rule fields: {sorted(unknown)}")
    return {k: bool(v) for k, v in fields.items()}


class RuleStore:
    """In-memory rule store, keyed by normalized number/pattern."""

    __slots__ = ("_rules", "_compiled")

    def __init__(self, entries: Iterable[RuleEntry] = ()) -> None:
        self._rules: dict[str, RuleEntry] = {}       # insertion order = scan order
        self._compiled: dict[str, re.Pattern] = {}
        for entry in entries:
            self._put(entry)

    def _put(self, entry: RuleEntry) -> None:
        self._rules[entry.number] = entry
        if entry.is_regex:
            self._compiled[entry.number] = like_to_regex(entry.number)

    # ------------------------------------------------------------------
    # RuleSource
    # ------------------------------------------------------------------

    def query(self, number: str, use_regex: bool) -> list[RuleEntry]:
        rows: list[RuleEntry] = []
        for key, entry in self._rules.items():
            if key == number and (use_regex or not entry.is_regex):
                rows.append(entry)
            elif use_regex and entry.is_regex and self._compiled[key].fullmatch(number):
                rows.append(entry)
        return rows

    def update(self, number: str, fields: dict[str, Any]) -> int:
        """Insert or update the entry for number.  Returns rows affected."""
        values = check_fields(fields)
        current = self._rules.get(number)
        if current is None:
            if not values:
                return 0
            current = RuleEntry(number, is_input_regex(number), False, False)
        self._put(RuleEntry(
            number=number,
            is_regex=current.is_regex,
            block_calls=values.get("block_calls", current.block_calls),
            block_messages=values.get("block_messages", current.block_messages),
        ))
        return 1

    # ------------------------------------------------------------------
    # Management
    # ------------------------------------------------------------------

    def delete(self, number: str) -> int:
        self._compiled.pop(number, None)
        return 1 if self._rules.pop(number, None) is not None else 0

    def entries(self) -> list[RuleEntry]:
        return list(self._rules.values())

    @property
    def size(self) -> int:
        return len(self._rules)

    def clear(self) -> None:
        self._rules.clear()
        self._compiled.clear()


class ContactBook:
    """Identity lookup over a fixed set of known numbers."""

    __slots__ = ("_normalizer", "_known")

    def __init__(self, numbers: Iterable[str] = (), normalizer: Normalizer | None = None) -> None:
        self._normalizer = normalizer or Normalizer()
        self._known: set[str] = set()
        for number in numbers:
            self.add(number)

    def add(self, number: str) -> None:
        self._known.add(self._normalizer.normalize(number).number)

    def lookup(self, number: str) -> Identity | None:
        if not number:
            return None
        normalized = self._normalizer.normalize(number).number
        return Identity(number=normalized, exists=normalized in self._known)
