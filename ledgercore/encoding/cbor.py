from __future__ import annotations

"""
Canonical CBOR codec (deterministic)
------------------------------------

A small encoder/decoder following RFC 8949 "Deterministic Encoding" for the
subset of CBOR types ledger records use:

- None, bool
- int (arbitrary precision; tags 2/3 for bignums beyond 64-bit)
- bytes
- str (UTF-8)
- list/tuple
- dict (keys int/bytes/str; encoded with deterministic ordering)
- dataclasses (treated as maps of field name -> value)

Not supported in state records:
- float/Decimal (store fixed-point decimals as canonical strings instead)
- indefinite-length items
- simple values other than false/true/null

Deterministic map ordering: keys are sorted by the bytewise order of their own
encodings (RFC 8949 §4.2.1). The decoder rejects maps whose keys are not
strictly increasing, so every accepted byte string has exactly one encoding.

Public API:
- dumps(obj) -> bytes
- loads(b: bytes) -> object
"""

from dataclasses import asdict, is_dataclass
from typing import Any, Dict, List, Tuple

_U64_MAX = 0xFFFFFFFFFFFFFFFF

_SIMPLE_FALSE = 0xF4
_SIMPLE_TRUE = 0xF5
_SIMPLE_NULL = 0xF6


class EncodeError(TypeError):
    pass


class DecodeError(ValueError):
    pass


# ------------------------
# Encoder
# ------------------------

def _head(major: int, n: int) -> bytes:
    """Initial byte + argument for a non-negative integer length/value."""
    if n < 24:
        return bytes([(major << 5) | n])
    if n <= 0xFF:
        return bytes([(major << 5) | 24, n])
    if n <= 0xFFFF:
        return bytes([(major << 5) | 25]) + n.to_bytes(2, "big")
    if n <= 0xFFFFFFFF:
        return bytes([(major << 5) | 26]) + n.to_bytes(4, "big")
    if n <= _U64_MAX:
        return bytes([(major << 5) | 27]) + n.to_bytes(8, "big")
    raise OverflowError("argument too large for CBOR head")


def _magnitude(n: int) -> bytes:
    return n.to_bytes(max(1, (n.bit_length() + 7) // 8), "big")


def _encode_int(n: int) -> bytes:
    if n >= 0:
        if n <= _U64_MAX:
            return _head(0, n)
        mag = _magnitude(n)
        return _head(6, 2) + _head(2, len(mag)) + mag
    m = -1 - n
    if m <= _U64_MAX:
        return _head(1, m)
    mag = _magnitude(m)
    return _head(6, 3) + _head(2, len(mag)) + mag


def _encode(obj: Any) -> bytes:
    if is_dataclass(obj) and not isinstance(obj, type):
        obj = asdict(obj)

    if obj is None:
        return bytes([_SIMPLE_NULL])
    if obj is True:
        return bytes([_SIMPLE_TRUE])
    if obj is False:
        return bytes([_SIMPLE_FALSE])
    if isinstance(obj, int):
        return _encode_int(obj)
    if isinstance(obj, (bytes, bytearray, memoryview)):
        raw = bytes(obj)
        return _head(2, len(raw)) + raw
    if isinstance(obj, str):
        raw = obj.encode("utf-8", "strict")
        return _head(3, len(raw)) + raw
    if isinstance(obj, (list, tuple)):
        out = bytearray(_head(4, len(obj)))
        for item in obj:
            out += _encode(item)
        return bytes(out)
    if isinstance(obj, dict):
        pairs: List[Tuple[bytes, bytes]] = []
        for k, v in obj.items():
            if isinstance(k, bool) or not isinstance(k, (int, bytes, str)):
                raise EncodeError(f"unsupported map key type: {type(k).__name__}")
            pairs.append((_encode(k), _encode(v)))
        pairs.sort(key=lambda kv: kv[0])
        for i in range(1, len(pairs)):
            if pairs[i - 1][0] == pairs[i][0]:
                raise EncodeError("duplicate map keys after canonicalization")
        out = bytearray(_head(5, len(pairs)))
        for k_enc, v_enc in pairs:
            out += k_enc
            out += v_enc
        return bytes(out)

    raise EncodeError(f"unsupported type for canonical CBOR: {type(obj).__name__}")


def dumps(obj: Any) -> bytes:
    """Encode `obj` to canonical CBOR bytes with deterministic map ordering."""
    return _encode(obj)


# ------------------------
# Decoder (strict)
# ------------------------

class _Reader:
    __slots__ = ("buf", "pos")

    def __init__(self, data: bytes) -> None:
        self.buf = memoryview(data)
        self.pos = 0

    def take(self, k: int) -> bytes:
        end = self.pos + k
        if end > len(self.buf):
            raise DecodeError("truncated")
        out = self.buf[self.pos:end].tobytes()
        self.pos = end
        return out

    def head(self) -> Tuple[int, int]:
        ib = self.take(1)[0]
        major, ai = ib >> 5, ib & 0x1F
        if ai < 24:
            return major, ai
        if ai in (24, 25, 26, 27):
            width = 1 << (ai - 24)
            n = int.from_bytes(self.take(width), "big")
            # Preferred serialization: the shortest head must be used.
            if (ai == 24 and n < 24) or (ai > 24 and n < (1 << (8 * (width // 2)))):
                if major != 7:
                    raise DecodeError("non-minimal integer/length encoding")
            return major, n
        raise DecodeError("indefinite lengths are not allowed (deterministic only)")

    def item(self) -> Any:
        start = self.pos
        major, arg = self.head()

        if major == 0:
            return arg
        if major == 1:
            return -1 - arg
        if major == 2:
            return self.take(arg)
        if major == 3:
            try:
                return self.take(arg).decode("utf-8", "strict")
            except UnicodeDecodeError as e:
                raise DecodeError(f"invalid UTF-8: {e}") from e
        if major == 4:
            return [self.item() for _ in range(arg)]
        if major == 5:
            out: Dict[Any, Any] = {}
            last = None
            for _ in range(arg):
                k_start = self.pos
                key = self.item()
                k_enc = self.buf[k_start:self.pos].tobytes()
                if last is not None and k_enc <= last:
                    raise DecodeError("map keys not in deterministic (strictly increasing) order")
                last = k_enc
                if not isinstance(key, (int, bytes, str)):
                    raise DecodeError(f"unsupported map key type at decode: {type(key).__name__}")
                out[key] = self.item()
            return out
        if major == 6:
            if arg not in (2, 3):
                raise DecodeError(f"unsupported tag {arg}")
            m_major, m_len = self.head()
            if m_major != 2 or m_len == 0:
                raise DecodeError("invalid bignum magnitude")
            mag = self.take(m_len)
            n = int.from_bytes(mag, "big")
            if mag[0] == 0 or n <= _U64_MAX:
                raise DecodeError("non-canonical bignum")
            return n if arg == 2 else -1 - n
        if major == 7:
            ib = self.buf[start]
            if ib == _SIMPLE_FALSE:
                return False
            if ib == _SIMPLE_TRUE:
                return True
            if ib == _SIMPLE_NULL:
                return None
            raise DecodeError("floating point/simple values are not allowed")

        raise DecodeError(f"unknown major type: {major}")


def loads(b: bytes) -> Any:
    """
    Decode canonical CBOR bytes back to Python values, enforcing the same subset and
    ordering rules the encoder uses. Raises DecodeError on violations.
    """
    r = _Reader(bytes(b))
    obj = r.item()
    if r.pos != len(r.buf):
        raise DecodeError("trailing bytes")
    return obj


__all__ = ["dumps", "loads", "EncodeError", "DecodeError"]
