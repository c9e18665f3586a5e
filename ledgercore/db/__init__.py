from __future__ import annotations

"""
ledgercore.db
=============

Thin facade for key–value database backends used by ledger keepers.

Backends
--------
- SQLite (default, always available)
- CacheKV branches layered over any backend (transactions)

URIs
----
- "sqlite:///path/to/ledger.db"    → SQLite file
- "sqlite:///:memory:"             → in-memory SQLite (tests)
- "memory://"                      → alias of "sqlite:///:memory:"
- Bare paths ending in ".db"       → SQLite file

API
---
- open_kv(uri: str, create: bool = True) -> KV
    Open a KV store for general use.

The typed KV interface is defined in ledgercore.db.kv.

Example
-------
>>> from ledgercore.db import open_kv
>>> kv = open_kv("sqlite:///:memory:")
>>> with kv.batch() as b:
...     b.put(b"\\x01key", b"hello")
>>> kv.get(b"\\x01key")
b'hello'
"""

from typing import Tuple

from . import sqlite as _sqlite_backend
from .cachekv import CacheKV, branch
from .kv import KV, Batch, ReadOnlyKV, delete_many, prefix_end, put_many


def _parse_uri(uri: str) -> Tuple[str, str]:
    """
    Parse a DB URI into (backend, path_or_spec).

    Returns:
        ("sqlite", path) or ("memory", "")
    """
    u = uri.strip()
    if u.startswith("sqlite:///"):
        return ("sqlite", u[len("sqlite:///") :])
    if u.startswith("memory://"):
        return ("memory", "")
    if u.endswith(".db"):
        return ("sqlite", u)
    raise ValueError(f"Unsupported DB URI: {uri!r}. Use sqlite:///path/to.db or memory://")


def open_kv(uri: str, create: bool = True) -> KV:
    """
    Open a KV database by URI. See module docstring for supported forms.

    Args:
        uri: backend spec / path.
        create: create structures if missing.

    Raises:
        ValueError for invalid URIs.
        FileNotFoundError when `create=False` and the file is missing.
        DatabaseError when the file is not a usable SQLite database.
    """
    backend, spec = _parse_uri(uri)

    if backend == "memory":
        return _sqlite_backend.open_sqlite_kv(_sqlite_backend.MEMORY)

    path = spec or _sqlite_backend.MEMORY
    return _sqlite_backend.open_sqlite_kv(path, create=create)


__all__ = [
    # interfaces
    "KV",
    "ReadOnlyKV",
    "Batch",
    # branches
    "CacheKV",
    "branch",
    # helpers
    "open_kv",
    "prefix_end",
    "put_many",
    "delete_many",
]
