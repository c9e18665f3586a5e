"""
ledgercore.encoding
===================

Public, stable encoding surface for ledger records:

- cbor.py: canonical CBOR dumps/loads (sorted map keys, deterministic)

Record types own their field layout (`to_cbor` / `from_cbor`); this package only
guarantees that equal values always encode to identical bytes.
"""

from __future__ import annotations

from .cbor import DecodeError, EncodeError
from .cbor import dumps as cbor_dumps
from .cbor import loads as cbor_loads

__all__ = [
    "cbor_dumps",
    "cbor_loads",
    "EncodeError",
    "DecodeError",
]
