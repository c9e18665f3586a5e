from __future__ import annotations

import pytest

from ledgercore.utils.bytes import (
    address_to_hex,
    ensure_len,
    from_hex,
    hex_to_address,
    is_hex_address,
    normalize_address,
    to_hex,
)

ADDR = "0x5FbDB2315678afecb367f032d93F642f64180aa3"


def test_hex_helpers():
    assert to_hex(b"\x01\x02") == "0x0102"
    assert to_hex(b"\x01", prefix=False) == "01"
    assert from_hex("0xabc") == b"\x0a\xbc"
    with pytest.raises(ValueError):
        from_hex("0xzz")
    with pytest.raises(ValueError):
        ensure_len(b"\x00", 2)


def test_is_hex_address():
    assert is_hex_address(ADDR)
    assert is_hex_address(ADDR[2:])
    assert not is_hex_address(ADDR[:-1])
    assert not is_hex_address(ADDR + "0")
    assert not is_hex_address("0x" + "g" * 40)


def test_hex_to_address_is_lenient():
    assert hex_to_address("0x01") == b"\x00" * 19 + b"\x01"
    long = "0x" + "aa" * 4 + "bb" * 20
    assert hex_to_address(long) == b"\xbb" * 20
    assert hex_to_address("not hex") == b"\x00" * 20
    assert hex_to_address(b"\x07") == b"\x00" * 19 + b"\x07"


def test_normalize_address():
    assert normalize_address(ADDR) == ADDR.lower()
    assert address_to_hex(b"\x00" * 20) == "0x" + "00" * 20
