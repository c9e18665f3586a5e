"""
ledgercore.utils.bytes
======================

Small helpers around byte handling:

- Hex helpers: to_hex/from_hex, 0x-prefix management
- Length guards: ensure_len
- Bytes-like normalization: b()
- 20-byte contract addresses: hex_to_address / address_to_hex / is_hex_address

Examples
--------
>>> to_hex(b"\\x01\\x02")
'0x0102'
>>> from_hex('0xdeadbeef')
b'\\xde\\xad\\xbe\\xef'
>>> hex_to_address("0x01").hex()
'0000000000000000000000000000000000000001'
"""

from __future__ import annotations

import re
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]

ADDRESS_LENGTH = 20

_HEX_ADDRESS = re.compile(r"^(0x|0X)?[0-9a-fA-F]{40}$")


# -----------------------
# Basic bytes/hex helpers
# -----------------------

def strip0x(s: str) -> str:
    return s[2:] if s.startswith(("0x", "0X")) else s


def to_hex(data: BytesLike, *, prefix: bool = True) -> str:
    """Return lowercase hex string of data."""
    if isinstance(data, (bytearray, memoryview)):
        data = bytes(data)
    if not isinstance(data, bytes):
        raise TypeError("to_hex expects bytes-like")
    h = data.hex()
    return f"0x{h}" if prefix else h


def from_hex(h: str) -> bytes:
    """Parse hex string with or without 0x prefix; ignores surrounding whitespace."""
    if not isinstance(h, str):
        raise TypeError("from_hex expects str")
    h = strip0x(h.strip())
    if len(h) % 2 == 1:  # pad leading zero if odd length
        h = "0" + h
    try:
        return bytes.fromhex(h)
    except ValueError as e:
        raise ValueError(f"invalid hex string: {e}") from e


def b(x: Union[BytesLike, str]) -> bytes:
    """
    Normalize input to bytes:
    - bytes/bytearray/memoryview → bytes
    - str → if startswith '0x' parse hex, else utf-8 encode
    """
    if isinstance(x, bytes):
        return x
    if isinstance(x, (bytearray, memoryview)):
        return bytes(x)
    if isinstance(x, str):
        return from_hex(x) if x.startswith(("0x", "0X")) else x.encode("utf-8")
    raise TypeError(f"unsupported type for b(): {type(x)!r}")


def ensure_len(data: BytesLike, n: int, *, name: str = "bytes") -> bytes:
    data_b = b(data)
    if len(data_b) != n:
        raise ValueError(f"{name} must be length {n}, got {len(data_b)}")
    return data_b


# -----------------------
# Contract addresses
# -----------------------

def is_hex_address(s: str) -> bool:
    """True for exactly 40 hex digits, optionally 0x-prefixed."""
    return isinstance(s, str) and bool(_HEX_ADDRESS.match(s))


def hex_to_address(s: Union[str, BytesLike]) -> bytes:
    """
    Lenient conversion to a 20-byte address.

    Hex input is decoded (odd lengths get a leading zero); short values are
    left-padded with zeros and long values keep their rightmost 20 bytes.
    Strings that are not hex at all decode to the zero address. Use
    `is_hex_address` first when strict validation is required.
    """
    if isinstance(s, str):
        try:
            raw = from_hex(s)
        except ValueError:
            raw = b""
    else:
        raw = bytes(s)
    if len(raw) > ADDRESS_LENGTH:
        raw = raw[-ADDRESS_LENGTH:]
    return raw.rjust(ADDRESS_LENGTH, b"\x00")


def address_to_hex(addr: BytesLike) -> str:
    """Lowercase 0x-prefixed hex of a 20-byte address."""
    return to_hex(ensure_len(addr, ADDRESS_LENGTH, name="address"))


def normalize_address(s: Union[str, BytesLike]) -> str:
    """Canonical lowercase 0x form of any accepted address input."""
    return address_to_hex(hex_to_address(s))


__all__ = [
    "BytesLike",
    "ADDRESS_LENGTH",
    "strip0x",
    "to_hex",
    "from_hex",
    "b",
    "ensure_len",
    "is_hex_address",
    "hex_to_address",
    "address_to_hex",
    "normalize_address",
]
