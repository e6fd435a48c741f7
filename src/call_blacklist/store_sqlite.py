"""Persistent rule store backed by SQLite — survives process restarts.

Drop-in replacement for RuleStore when you need durability.  Pattern rows
are matched with SQLite's own LIKE, so "%" and "_" behave exactly as stored.

Usage:
    store = SqliteRuleStore(db_path="~/.call-blacklist/rules.db")
    store.update("+15551234567", {"block_calls": True})
    store.query("+15551234567", use_regex=True)
"""

from __future__ import annotations
import sqlite3
from pathlib import Path
from typing import Any

from .normalizer import is_input_regex
from .store import check_fields
from .types import RuleEntry, RuleStoreError


_SCHEMA = """
CREATE TABLE IF NOT EXISTS rules (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    number TEXT NOT NULL UNIQUE,
    is_regex INTEGER NOT NULL DEFAULT 0,
    block_calls INTEGER NOT NULL DEFAULT 0,
    block_messages INTEGER NOT NULL DEFAULT 0,
    created_at REAL NOT NULL DEFAULT (julianday('now'))
);
CREATE INDEX IF NOT EXISTS idx_rules_regex ON rules(is_regex);
"""

_COLUMNS = "number, is_regex, block_calls, block_messages"


def _entry(row: tuple) -> RuleEntry:
    number, is_regex, calls, messages = row
    return RuleEntry(number, bool(is_regex), bool(calls), bool(messages))


class SqliteRuleStore:
    """Persistent rule store."""

    __slots__ = ("_db",)

    def __init__(self, *, db_path: str | Path = "rules.db") -> None:
        db_path = Path(db_path).expanduser()
        db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._db = sqlite3.connect(str(db_path), check_same_thread=False)
            self._db.executescript(_SCHEMA)
        except sqlite3.Error as e:
            raise RuleStoreError(f"cannot open rule store {db_path}: {e}") from e

    def query(self, number: str, use_regex: bool) -> list[RuleEntry]:
        try:
            rows = self._db.execute(
                f"SELECT {_COLUMNS} FROM rules "
                "WHERE (number = ? AND (? OR is_regex = 0)) "
                "OR (? AND is_regex = 1 AND ? LIKE number) "
                "ORDER BY id",
                (number, int(use_regex), int(use_regex), number),
            ).fetchall()
        except sqlite3.Error as e:
            raise RuleStoreError(f"query failed for {number!r}: {e}") from e
        return [_entry(r) for r in rows]

    def update(self, number: str, fields: dict[str, Any]) -> int:
        """Insert or update the entry for number.  Returns rows affected."""
        values = check_fields(fields)
        try:
            if not values:
                row = self._db.execute(
                    "SELECT COUNT(*) FROM rules WHERE number = ?", (number,)
                ).fetchone()
                return row[0]

            cols = list(values)
            assignments = ", ".join(f"{c} = excluded.{c}" for c in cols)
            with self._db:
                cur = self._db.execute(
                    f"INSERT INTO rules (number, is_regex, {', '.join(cols)}) "
                    f"VALUES (?, ?, {', '.join('?' for _ in cols)}) "
                    f"ON CONFLICT(number) DO UPDATE SET {assignments}",
                    (number, int(is_input_regex(number)), *(int(values[c]) for c in cols)),
                )
            return cur.rowcount
        except sqlite3.Error as e:
            raise RuleStoreError(f"update failed for {number!r}: {e}") from e

    def delete(self, number: str) -> int:
        try:
            with self._db:
                cur = self._db.execute("DELETE FROM rules WHERE number = ?", (number,))
        except sqlite3.Error as e:
            raise RuleStoreError(f"delete failed for {number!r}: {e}") from e
        return cur.rowcount

    def entries(self) -> list[RuleEntry]:
        try:
            rows = self._db.execute(f"SELECT {_COLUMNS} FROM rules ORDER BY id").fetchall()
        except sqlite3.Error as e:
            raise RuleStoreError(f"listing rules failed: {e}") from e
        return [_entry(r) for r in rows]

    @property
    def size(self) -> int:
        try:
            return self._db.execute("SELECT COUNT(*) FROM rules").fetchone()[0]
        except sqlite3.Error as e:
            raise RuleStoreError(f"counting rules failed: {e}") from e

    def clear(self) -> None:
        try:
            with self._db:
                self._db.execute("DELETE FROM rules")
        except sqlite3.Error as e:
            raise RuleStoreError(f"clearing rules failed: {e}") from e

    def close(self) -> None:
        self._db.close()
