"""
CacheKV branch tests: read-through, tombstones, merged ordered scans, atomic
flush through the parent batch, and nesting.
"""
from __future__ import annotations

import pytest

from ledgercore.db import CacheKV, branch, open_kv


@pytest.fixture
def base():
    kv = open_kv("sqlite:///:memory:")
    kv.put(b"\x01a", b"A")
    kv.put(b"\x01c", b"C")
    kv.put(b"\x02z", b"Z")
    yield kv
    kv.close()


def test_reads_fall_through_to_parent(base):
    cache = CacheKV(base)
    assert cache.get(b"\x01a") == b"A"
    assert cache.has(b"\x01c")
    assert cache.get(b"\x01missing") is None
    assert cache.pending() == 0


def test_writes_stay_in_branch_until_write(base):
    cache = CacheKV(base)
    cache.put(b"\x01b", b"B")
    cache.delete(b"\x01a")

    assert cache.get(b"\x01b") == b"B"
    assert not cache.has(b"\x01a")
    assert base.get(b"\x01b") is None
    assert base.get(b"\x01a") == b"A"

    cache.write()
    assert base.get(b"\x01b") == b"B"
    assert base.get(b"\x01a") is None
    assert cache.pending() == 0


def test_iter_prefix_merges_staged_and_parent(base):
    cache = CacheKV(base)
    cache.put(b"\x01b", b"B")
    cache.put(b"\x01c", b"C2")
    cache.delete(b"\x01a")
    cache.put(b"\x01d", b"D")
    cache.put(b"\x02y", b"Y")

    assert list(cache.iter_prefix(b"\x01")) == [(b"\x01b", b"B"), (b"\x01c", b"C2"), (b"\x01d", b"D")]
    assert list(cache.iter_prefix(b"\x02")) == [(b"\x02y", b"Y"), (b"\x02z", b"Z")]


def test_delete_then_put_resurrects(base):
    cache = CacheKV(base)
    cache.delete(b"\x01a")
    cache.put(b"\x01a", b"A2")
    assert list(cache.iter_prefix(b"\x01a")) == [(b"\x01a", b"A2")]


def test_discard_drops_everything(base):
    cache = CacheKV(base)
    cache.put(b"\x01b", b"B")
    cache.discard()
    cache.write()
    assert base.get(b"\x01b") is None


def test_branch_context_flushes_or_discards(base):
    with branch(base) as cache:
        cache.put(b"\x01b", b"B")
    assert base.get(b"\x01b") == b"B"

    with pytest.raises(ValueError):
        with branch(base) as cache:
            cache.delete(b"\x01b")
            raise ValueError("abort")
    assert base.get(b"\x01b") == b"B"


def test_nested_branches_flush_into_parent_branch(base):
    outer = CacheKV(base)
    with branch(outer) as inner:
        inner.put(b"\x01x", b"X")
    assert outer.get(b"\x01x") == b"X"
    assert base.get(b"\x01x") is None
    outer.write()
    assert base.get(b"\x01x") == b"X"


def test_batch_on_branch(base):
    cache = CacheKV(base)
    with cache.batch() as b:
        b.put(b"\x01q", b"Q")
        b.delete(b"\x01c")
    assert cache.get(b"\x01q") == b"Q"
    assert not cache.has(b"\x01c")

    with pytest.raises(RuntimeError):
        with cache.batch() as b:
            b.put(b"\x01r", b"R")
            raise RuntimeError("rollback")
    assert cache.get(b"\x01r") is None


def test_flush_is_atomic_when_parent_batch_fails(base):
    class FailingBatch:
        def __init__(self, inner):
            self.inner = inner
            self.n = 0

        def __enter__(self):
            self.inner.__enter__()
            return self

        def put(self, k, v):
            self.n += 1
            if self.n == 2:
                raise OSError("disk full")
            self.inner.put(k, v)

        def delete(self, k):
            self.inner.delete(k)

        def __exit__(self, *exc):
            return self.inner.__exit__(*exc)

    class Parent:
        def __init__(self, kv):
            self.kv = kv

        def __getattr__(self, name):
            return getattr(self.kv, name)

        def batch(self):
            return FailingBatch(self.kv.batch())

    cache = CacheKV(Parent(base))
    cache.put(b"\x01m", b"M")
    cache.put(b"\x01n", b"N")
    with pytest.raises(OSError):
        cache.write()
    assert base.get(b"\x01m") is None
    assert base.get(b"\x01n") is None
    assert cache.pending() == 2
