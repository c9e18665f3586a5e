from __future__ import annotations

"""
Cache branch over a KV
======================

`CacheKV` layers a write buffer over any `KV` (a SQLite store or another
`CacheKV`). Writes land in the buffer; reads consult the buffer first and fall
through to the parent. `write()` flushes every staged change to the parent in a
single parent batch, so a group of mutations spanning several namespaces
commits atomically or not at all. `discard()` drops the buffer.

Deletions are recorded as tombstones (`None`) so they shadow parent values for
reads and prefix scans until flushed.

Typical use
-----------
    with branch(kv) as cache:
        cache.delete(k1)
        cache.put(k2, v2)
    # flushed here; if the block raised, nothing reached `kv`

Prefix iteration merges the parent's ordered scan with the buffered keys, so a
branch observes its own writes in key order. The parent cursor is closed when
the merged generator is exhausted or closed.
"""

from contextlib import closing, contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

from .kv import KV, Batch

_MISSING = object()


class _CacheBatch(Batch):
    """Stages put/delete ops and applies them to the owning cache on commit."""

    __slots__ = ("_cache", "_ops", "_open")

    def __init__(self, cache: "CacheKV") -> None:
        self._cache = cache
        self._ops: List[Tuple[bytes, Optional[bytes]]] = []
        self._open = False

    def __enter__(self) -> "_CacheBatch":
        if self._open:
            raise RuntimeError("batch already open (nested batches not supported)")
        self._open = True
        return self

    def put(self, key: bytes, value: bytes) -> None:
        if not self._open:
            raise RuntimeError("batch not open")
        self._ops.append((bytes(key), bytes(value)))

    def delete(self, key: bytes) -> None:
        if not self._open:
            raise RuntimeError("batch not open")
        self._ops.append((bytes(key), None))

    def commit(self) -> None:
        if not self._open:
            return
        for k, v in self._ops:
            self._cache._dirty[k] = v
        self._ops.clear()
        self._open = False

    def rollback(self) -> None:
        self._ops.clear()
        self._open = False

    def __exit__(self, exc_type, exc, tb) -> Optional[bool]:
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
        return None


class CacheKV(KV):
    """
    Write-buffering branch of a parent KV.

    The branch does not own its parent: `close()` only drops pending writes.
    """

    __slots__ = ("_parent", "_dirty")

    def __init__(self, parent: KV) -> None:
        self._parent = parent
        self._dirty: Dict[bytes, Optional[bytes]] = {}

    @property
    def parent(self) -> KV:
        return self._parent

    # --- ReadOnlyKV ---

    def get(self, key: bytes) -> Optional[bytes]:
        v = self._dirty.get(key, _MISSING)
        if v is _MISSING:
            return self._parent.get(key)
        return v  # type: ignore[return-value]

    def has(self, key: bytes) -> bool:
        v = self._dirty.get(key, _MISSING)
        if v is _MISSING:
            return self._parent.has(key)
        return v is not None

    def iter_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        staged = sorted(
            (k, v) for k, v in self._dirty.items() if k.startswith(prefix)
        )
        with closing(self._parent.iter_prefix(prefix)) as parent_it:
            yield from _merge(parent_it, staged)

    def close(self) -> None:
        self.discard()

    # --- KV ---

    def put(self, key: bytes, value: bytes) -> None:
        self._dirty[bytes(key)] = bytes(value)

    def delete(self, key: bytes) -> None:
        self._dirty[bytes(key)] = None

    def batch(self) -> Batch:
        return _CacheBatch(self)

    # --- branch control ---

    def pending(self) -> int:
        """Number of staged keys (puts + tombstones)."""
        return len(self._dirty)

    def write(self) -> None:
        """Flush staged writes to the parent in one batch, in key order."""
        if not self._dirty:
            return
        with self._parent.batch() as b:
            for k in sorted(self._dirty):
                v = self._dirty[k]
                if v is None:
                    b.delete(k)
                else:
                    b.put(k, v)
        self._dirty.clear()

    def discard(self) -> None:
        self._dirty.clear()


def _merge(
    parent_it: Iterator[Tuple[bytes, bytes]],
    staged: List[Tuple[bytes, Optional[bytes]]],
) -> Iterator[Tuple[bytes, bytes]]:
    """Ordered merge of a parent scan with staged writes; staged entries win."""
    i = 0
    n = len(staged)
    for pk, pv in parent_it:
        while i < n and staged[i][0] < pk:
            sk, sv = staged[i]
            i += 1
            if sv is not None:
                yield sk, sv
        if i < n and staged[i][0] == pk:
            sk, sv = staged[i]
            i += 1
            if sv is not None:
                yield sk, sv
            continue
        yield pk, pv
    while i < n:
        sk, sv = staged[i]
        i += 1
        if sv is not None:
            yield sk, sv


@contextmanager
def branch(kv: KV) -> Iterator[CacheKV]:
    """
    Open a cache branch over `kv`. Staged writes are flushed when the block
    exits cleanly and discarded when it raises.
    """
    cache = CacheKV(kv)
    try:
        yield cache
    except BaseException:
        cache.discard()
        raise
    cache.write()


__all__ = ["CacheKV", "branch"]
