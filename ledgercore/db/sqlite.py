from __future__ import annotations

"""
SQLite KV backend
=================

One table, `kv(k BLOB PRIMARY KEY, v BLOB NOT NULL)`, ordered by memcmp on the
key. Prefix scans use the half-open range [prefix, prefix_end(prefix)); a
prefix of all 0xFF bytes has no upper bound and falls back to a `substr`
match.

The connection runs in autocommit mode. Single writes commit immediately and
`batch()` wraps its writes in one `BEGIN IMMEDIATE` transaction.

Connections are opened with `check_same_thread=False`; callers serialize
access. A write issued while a prefix cursor is still open on the same
connection may or may not be seen by that cursor.
"""

import os
import sqlite3
from contextlib import suppress
from typing import Iterator, Optional, Tuple

from ..errors import DatabaseError
from .kv import KV, Batch, prefix_end

MEMORY = ":memory:"

_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA temp_store=MEMORY",
    "PRAGMA cache_size=-16384",
)

_SCHEMA = "CREATE TABLE IF NOT EXISTS kv (k BLOB PRIMARY KEY, v BLOB NOT NULL)"
_UPSERT = "INSERT INTO kv(k, v) VALUES(?, ?) ON CONFLICT(k) DO UPDATE SET v=excluded.v"
_DELETE = "DELETE FROM kv WHERE k = ?"


class SQLiteBatch(Batch):
    __slots__ = ("_conn", "_open")

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._open = False

    def __enter__(self) -> "SQLiteBatch":
        if self._open:
            raise RuntimeError("batch already open")
        self._conn.execute("BEGIN IMMEDIATE")
        self._open = True
        return self

    def _check(self) -> None:
        if not self._open:
            raise RuntimeError("batch not open")

    def put(self, key: bytes, value: bytes) -> None:
        self._check()
        self._conn.execute(_UPSERT, (memoryview(key), memoryview(value)))

    def delete(self, key: bytes) -> None:
        self._check()
        self._conn.execute(_DELETE, (memoryview(key),))

    def commit(self) -> None:
        if self._open:
            self._open = False
            self._conn.execute("COMMIT")

    def rollback(self) -> None:
        if self._open:
            self._open = False
            self._conn.execute("ROLLBACK")

    def __exit__(self, exc_type, exc, tb) -> Optional[bool]:
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
        return None


class SQLiteKV(KV):
    """KV over a single sqlite3 connection. Build one with `open_sqlite_kv`."""

    __slots__ = ("_conn",)

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get(self, key: bytes) -> Optional[bytes]:
        row = self._conn.execute("SELECT v FROM kv WHERE k = ?", (memoryview(key),)).fetchone()
        return bytes(row[0]) if row is not None else None

    def has(self, key: bytes) -> bool:
        row = self._conn.execute("SELECT 1 FROM kv WHERE k = ? LIMIT 1", (memoryview(key),)).fetchone()
        return row is not None

    def iter_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        """Yield (key, value) for keys starting with `prefix`, ascending. The cursor closes with the generator."""
        hi = prefix_end(prefix)
        if not prefix:
            cur = self._conn.execute("SELECT k, v FROM kv ORDER BY k")
        elif hi is None:
            cur = self._conn.execute(
                "SELECT k, v FROM kv WHERE substr(k, 1, ?) = ? ORDER BY k",
                (len(prefix), memoryview(prefix)),
            )
        else:
            cur = self._conn.execute(
                "SELECT k, v FROM kv WHERE k >= ? AND k < ? ORDER BY k",
                (memoryview(prefix), memoryview(hi)),
            )
        try:
            for k, v in cur:
                yield bytes(k), bytes(v)
        finally:
            cur.close()

    def put(self, key: bytes, value: bytes) -> None:
        self._conn.execute(_UPSERT, (memoryview(key), memoryview(value)))

    def delete(self, key: bytes) -> None:
        self._conn.execute(_DELETE, (memoryview(key),))

    def batch(self) -> Batch:
        return SQLiteBatch(self._conn)

    def close(self) -> None:
        with suppress(sqlite3.ProgrammingError):
            self._conn.close()


def open_sqlite_kv(path: str, *, create: bool = True) -> SQLiteKV:
    """
    Open the SQLite KV at `path` (or MEMORY).

    With `create=False` a missing file raises FileNotFoundError instead of
    being created. A file that is not a usable database raises DatabaseError.
    """
    if path != MEMORY:
        if not create and not os.path.exists(path):
            raise FileNotFoundError(f"SQLite KV not found at {path}")
        parent = os.path.dirname(os.path.abspath(path))
        os.makedirs(parent, exist_ok=True)

    conn = sqlite3.connect(path, isolation_level=None, check_same_thread=False)
    try:
        for pragma in _PRAGMAS:
            conn.execute(pragma)
        conn.execute(_SCHEMA)
    except sqlite3.DatabaseError as e:
        conn.close()
        raise DatabaseError("cannot open SQLite KV", retryable=False, path=path, reason=str(e)).with_cause(e)
    return SQLiteKV(conn)


__all__ = ["SQLiteKV", "SQLiteBatch", "open_sqlite_kv", "MEMORY"]
