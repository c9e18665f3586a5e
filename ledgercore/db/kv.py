from __future__ import annotations

"""
KV interface & key-space helpers
================================

This module defines the backend-agnostic Key–Value interface used by ledger
keepers. Backends (sqlite, cache branches) implement this interface and the
batch semantics. This file is *pure interface + helpers* and contains no I/O.

Namespaces
----------
Each keeper owns a set of single-byte key prefixes and builds its own keys
(see `incentives.types.keys`). Keys are raw bytes and compare with memcmp
ordering, so a prefix scan yields records sorted by the bytes that follow the
prefix.

Iterators
---------
`iter_prefix(prefix: bytes)` yields `(key, value)` pairs in lexicographic order.
The returned object is a generator: backends release their cursor when it is
exhausted *or* closed. Callers that may stop early should wrap it in
`contextlib.closing(...)` so the cursor is released on every exit path:

>>> from contextlib import closing
>>> with closing(kv.iter_prefix(b"\\x01")) as it:
...     for k, v in it:
...         break

Batching
--------
`KV.batch()` returns a context manager. Use it to atomically put/delete:

>>> with kv.batch() as b:
...     b.put(b"\\x01a", b"1")
...     b.delete(b"\\x01b")

Typing
------
We expose Protocols (PEP 544) so backends can be duck-typed.
"""

from typing import Iterable, Iterator, Optional, Protocol, Tuple, runtime_checkable


def prefix_end(prefix: bytes) -> Optional[bytes]:
    """
    Return the smallest byte string that is strictly greater than all keys that have
    `prefix` as a prefix (the lexicographic upper bound). If no such value exists
    (i.e., prefix is empty or all 0xFF), return None.

    Example: b"ab\\x01" -> b"ab\\x02"; b"\\xff\\xff" -> None
    """
    if not prefix:
        return None
    p = bytearray(prefix)
    for i in range(len(p) - 1, -1, -1):
        if p[i] != 0xFF:
            p[i] += 1
            del p[i + 1 :]
            return bytes(p)
    return None


# ---------------------------------------------------------------------------
# KV protocols & Batch
# ---------------------------------------------------------------------------


@runtime_checkable
class ReadOnlyKV(Protocol):
    """Minimal read-only KV surface."""

    def get(self, key: bytes) -> Optional[bytes]:
        """Fetch value or None if missing."""
        ...

    def has(self, key: bytes) -> bool:
        """Return True if key exists (cheap if backend can avoid fetching value)."""
        ...

    def iter_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        """
        Iterate over (key, value) pairs whose key begins with `prefix`,
        in lexicographic byte-order of keys. The cursor is released when the
        generator is exhausted or closed.
        """
        ...

    def close(self) -> None:
        """Close resources (no-op for in-memory)."""
        ...


@runtime_checkable
class Batch(Protocol):
    """
    A write-batch context manager. Backend guarantees atomicity when exiting
    the context without exception. If an exception escapes, the batch is rolled back.
    """

    def put(self, key: bytes, value: bytes) -> None: ...
    def delete(self, key: bytes) -> None: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...

    def __enter__(self) -> "Batch": ...
    def __exit__(self, exc_type, exc, tb) -> Optional[bool]: ...


@runtime_checkable
class KV(ReadOnlyKV, Protocol):
    """Full RW KV surface."""

    def put(self, key: bytes, value: bytes) -> None:
        """Persist (key,value). Overwrites if exists."""
        ...

    def delete(self, key: bytes) -> None:
        """Remove key if present (idempotent)."""
        ...

    def batch(self) -> Batch:
        """Return a new write batch."""
        ...


# ---------------------------------------------------------------------------
# Portable helpers built atop the interface
# ---------------------------------------------------------------------------


def put_many(kv: KV, items: Iterable[Tuple[bytes, bytes]]) -> None:
    """Write many keys using a single batch."""
    with kv.batch() as b:
        for k, v in items:
            b.put(k, v)


def delete_many(kv: KV, keys: Iterable[bytes]) -> None:
    """Delete many keys using a single batch."""
    with kv.batch() as b:
        for k in keys:
            b.delete(k)


__all__ = [
    "ReadOnlyKV",
    "KV",
    "Batch",
    "prefix_end",
    "put_many",
    "delete_many",
]
