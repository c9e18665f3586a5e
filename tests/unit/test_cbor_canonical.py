"""
Canonical CBOR tests

- Encoding is deterministic (map key order independent).
- Decoding then re-encoding yields byte-identical CBOR.
- The decoder rejects every non-canonical form the encoder never produces.
"""
from __future__ import annotations

from typing import Any

import pytest

pytest.importorskip("hypothesis")
from hypothesis import given
from hypothesis import strategies as st

from ledgercore.encoding import DecodeError, EncodeError, cbor_dumps, cbor_loads


def test_known_vectors():
    assert cbor_dumps(0) == b"\x00"
    assert cbor_dumps(23) == b"\x17"
    assert cbor_dumps(24) == b"\x18\x18"
    assert cbor_dumps(-1) == b"\x20"
    assert cbor_dumps("a") == b"\x61a"
    assert cbor_dumps(b"\x01") == b"\x41\x01"
    assert cbor_dumps([1, 2]) == b"\x82\x01\x02"
    assert cbor_dumps(None) == b"\xf6"
    assert cbor_dumps(True) == b"\xf5"


def test_canonical_map_ordering_simple():
    a = cbor_dumps({"total_gas": 1, "contract": "x", "epochs": 2})
    b = cbor_dumps({"epochs": 2, "total_gas": 1, "contract": "x"})
    assert a == b
    # shorter encoded keys sort first
    assert cbor_dumps({"bb": 1, "a": 2}) == b"\xa2\x61a\x02\x62bb\x01"


def test_bignums_round_trip():
    for n in (2**64, -(2**64) - 1, 2**200):
        assert cbor_loads(cbor_dumps(n)) == n
    assert cbor_loads(cbor_dumps(2**64 - 1)) == 2**64 - 1


@pytest.mark.parametrize(
    "blob",
    [
        b"",                      # truncated
        b"\x18\x05",              # non-minimal head
        b"\x19\x00\x10",          # non-minimal 2-byte head
        b"\x5f\x41\x00\xff",      # indefinite bytes
        b"\xf9\x3c\x00",          # half float
        b"\xfb" + b"\x00" * 8,    # double
        b"\xa2\x62bb\x01\x61a\x02",  # map keys out of order
        b"\xa2\x61a\x01\x61a\x02",   # duplicate map keys
        b"\x01\x02",              # trailing bytes
        b"\xc1\x00",              # unsupported tag
        b"\xc2\x41\x01",          # bignum that fits in u64
        b"\x62\xff\xfe",          # invalid utf-8
    ],
)
def test_rejects_non_canonical(blob):
    with pytest.raises(DecodeError):
        cbor_loads(blob)


def test_rejects_unsupported_types():
    with pytest.raises(EncodeError):
        cbor_dumps(1.5)
    with pytest.raises(EncodeError):
        cbor_dumps({(1, 2): "tuple key"})
    with pytest.raises(EncodeError):
        cbor_dumps({True: "bool key"})


_scalars = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(min_value=-(2**130), max_value=2**130),
    st.binary(max_size=40),
    st.text(max_size=20),
)
_values = st.recursive(
    _scalars,
    lambda inner: st.one_of(
        st.lists(inner, max_size=5),
        st.dictionaries(st.one_of(st.text(max_size=8), st.integers(-1000, 1000)), inner, max_size=5),
    ),
    max_leaves=20,
)


@given(_values)
def test_roundtrip_is_stable(obj: Any):
    enc = cbor_dumps(obj)
    dec = cbor_loads(enc)
    assert dec == obj
    assert cbor_dumps(dec) == enc


@given(st.dictionaries(st.text(max_size=8), st.integers(), min_size=1, max_size=8))
def test_order_independence(obj):
    reordered = dict(reversed(list(obj.items())))
    assert cbor_dumps(obj) == cbor_dumps(reordered)
