"""
ledgercore.utils.dec
====================

Fixed-point decimals with 18 fractional digits, backed by `decimal.Decimal`.

Ledger amounts (allocation shares, meter totals) must add and subtract exactly
and encode to a single canonical string, so every value passes through
`to_dec`, which rejects NaN/infinity and anything with more than
`PRECISION` fractional digits. Arithmetic helpers run under a local context
wide enough that no rounding ever happens for in-range values.

>>> dec_str(to_dec("0.5"))
'0.500000000000000000'
>>> dec_str(sub(to_dec(1), to_dec("0.25")))
'0.750000000000000000'
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext
from typing import Iterable, Union

PRECISION = 18
# 256-bit integer part + fractional digits, with headroom
_CONTEXT_DIGITS = 96

QUANTUM = Decimal(1).scaleb(-PRECISION)
ZERO = Decimal(0).quantize(QUANTUM)
ONE = Decimal(1).quantize(QUANTUM)

DecLike = Union[Decimal, int, str]


def to_dec(value: DecLike) -> Decimal:
    """Parse `value` into an exact 18-digit fixed-point Decimal."""
    if isinstance(value, bool) or not isinstance(value, (Decimal, int, str)):
        raise TypeError(f"unsupported decimal input type: {type(value).__name__}")
    try:
        d = Decimal(value.strip()) if isinstance(value, str) else Decimal(value)
    except InvalidOperation as e:
        raise ValueError(f"invalid decimal: {value!r}") from e
    if not d.is_finite():
        raise ValueError(f"decimal must be finite, got {value!r}")
    with localcontext() as ctx:
        ctx.prec = _CONTEXT_DIGITS
        try:
            q = d.quantize(QUANTUM)
        except InvalidOperation as e:
            raise ValueError(f"decimal out of range: {value!r}") from e
        if q != d:
            raise ValueError(f"decimal {value!r} exceeds {PRECISION} fractional digits")
        return q


def dec_str(d: Decimal) -> str:
    """Canonical string: plain notation, exactly 18 fractional digits."""
    return format(to_dec(d), "f")


def add(a: Decimal, b: Decimal) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = _CONTEXT_DIGITS
        return (a + b).quantize(QUANTUM)


def sub(a: Decimal, b: Decimal) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = _CONTEXT_DIGITS
        return (a - b).quantize(QUANTUM)


def total(values: Iterable[Decimal]) -> Decimal:
    acc = ZERO
    for v in values:
        acc = add(acc, v)
    return acc


__all__ = [
    "PRECISION",
    "QUANTUM",
    "ZERO",
    "ONE",
    "DecLike",
    "to_dec",
    "dec_str",
    "add",
    "sub",
    "total",
]
