from __future__ import annotations

from typing import Iterator, Tuple

import pytest

from incentives.keeper import Keeper
from ledgercore.db import open_kv
from ledgercore.db.kv import KV, Batch

# Contract addresses in ascending byte order.
ADDR_LOW = "0x0000000000000000000000000000000000000001"
ADDR_MID = "0x5fbdb2315678afecb367f032d93f642f64180aa3"
ADDR_HIGH = "0xffffffffffffffffffffffffffffffffffffff00"


class TrackingKV:
    """KV wrapper that records whether every prefix cursor it handed out was released."""

    def __init__(self, inner: KV) -> None:
        self.inner = inner
        self.opened = 0
        self.released = 0

    def get(self, key: bytes):
        return self.inner.get(key)

    def has(self, key: bytes) -> bool:
        return self.inner.has(key)

    def put(self, key: bytes, value: bytes) -> None:
        self.inner.put(key, value)

    def delete(self, key: bytes) -> None:
        self.inner.delete(key)

    def batch(self) -> Batch:
        return self.inner.batch()

    def close(self) -> None:
        self.inner.close()

    def iter_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        self.opened += 1
        try:
            yield from self.inner.iter_prefix(prefix)
        finally:
            self.released += 1


@pytest.fixture
def kv():
    store = open_kv("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def tracking_kv(kv):
    return TrackingKV(kv)


@pytest.fixture
def keeper(kv) -> Keeper:
    return Keeper(kv)
