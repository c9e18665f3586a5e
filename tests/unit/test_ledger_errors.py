from __future__ import annotations

import json

from ledgercore.errors import (
    ConfigError,
    CoreErrorCode,
    DatabaseError,
    DeserializationError,
    InternalError,
    LedgerError,
    Severity,
    StateInvariant,
    wrap,
)


def test_subclass_defaults():
    e = DeserializationError("bad record", key=b"\x01\x02")
    assert e.code == CoreErrorCode.DESERIALIZATION
    assert e.severity == Severity.CRITICAL
    assert e.retryable is False
    assert e.data == {"key": "0102"}
    assert str(e).startswith("LEDGER/DESERIALIZATION: bad record")

    assert DatabaseError().retryable is True
    assert StateInvariant().severity == Severity.CRITICAL


def test_with_context_and_cause_return_copies_of_same_type():
    base = DeserializationError("bad", reason="x")
    cause = ValueError("inner")
    enriched = base.with_context(key="0x01").with_cause(cause)

    assert type(enriched) is DeserializationError
    assert enriched.data == {"reason": "x", "key": "0x01"}
    assert enriched.cause is cause
    assert enriched.__cause__ is cause
    assert base.data == {"reason": "x"}
    assert base.cause is None


def test_to_dict_is_json_safe():
    e = ConfigError("nope", path="/tmp/x", extra={"nested": b"\xff"}).with_cause(KeyError("k"))
    d = e.to_dict(include_cause=True)
    json.dumps(d)
    assert d["code"] == "LEDGER/CONFIG"
    assert d["data"]["extra"] == {"nested": "ff"}
    assert d["cause"]["type"] == "KeyError"


def test_wrap():
    w = wrap(RuntimeError("boom"), op="flush")
    assert isinstance(w, InternalError)
    assert w.message == "boom"
    assert w.data == {"op": "flush"}
    assert isinstance(w.cause, RuntimeError)

    again = wrap(w, height=3)
    assert isinstance(again, LedgerError)
    assert again.data == {"op": "flush", "height": 3}
