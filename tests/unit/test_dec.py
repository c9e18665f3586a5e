from __future__ import annotations

from decimal import Decimal

import pytest

from ledgercore.utils.dec import ONE, ZERO, add, dec_str, sub, to_dec, total


def test_to_dec_accepts_str_int_decimal():
    assert to_dec("0.5") == Decimal("0.5")
    assert to_dec(1) == ONE
    assert to_dec(Decimal("0.000000000000000001")) == Decimal("1e-18")
    assert to_dec("  0.25 ") == Decimal("0.25")


@pytest.mark.parametrize("bad", ["0.0000000000000000001", "NaN", "Infinity", "abc", ""])
def test_to_dec_rejects(bad):
    with pytest.raises(ValueError):
        to_dec(bad)


@pytest.mark.parametrize("bad", [0.5, True, None, b"1"])
def test_to_dec_rejects_types(bad):
    with pytest.raises(TypeError):
        to_dec(bad)


def test_dec_str_is_canonical():
    assert dec_str(to_dec("0.5")) == "0.500000000000000000"
    assert dec_str(to_dec("-1")) == "-1.000000000000000000"
    assert dec_str(to_dec("1E+3")) == "1000.000000000000000000"
    assert dec_str(ZERO) == "0.000000000000000000"


def test_arithmetic_is_exact():
    third = to_dec("0.333333333333333333")
    assert add(add(third, third), third) == to_dec("0.999999999999999999")
    assert sub(ONE, to_dec("0.75")) == to_dec("0.25")
    assert sub(to_dec("0.1"), to_dec("0.3")) == to_dec("-0.2")
    big = to_dec(2**200)
    assert add(big, to_dec("0.000000000000000001")) - big == Decimal("1e-18")


def test_total():
    assert total([]) == ZERO
    assert total(to_dec(x) for x in ("0.1", "0.2", "0.3")) == to_dec("0.6")
