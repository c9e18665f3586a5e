from __future__ import annotations

import pytest

from incentives.keeper import allocation_meter_discrepancies, assert_allocation_meters, expected_allocation_meters
from incentives.types import DecCoin, Incentive
from ledgercore.errors import StateInvariant

from .conftest import ADDR_LOW, ADDR_MID


def test_consistent_after_register_and_cancel(keeper):
    keeper.register_incentive(ADDR_LOW, [("uatom", "0.2"), ("uosmo", "0.3")], epochs=1)
    keeper.register_incentive(ADDR_MID, [("uatom", "0.5")], epochs=1)
    keeper.cancel_incentive(ADDR_LOW)

    assert allocation_meter_discrepancies(keeper) == []
    assert_allocation_meters(keeper)
    assert {d: c.amount for d, c in expected_allocation_meters(keeper).items()} == {
        "uatom": DecCoin.of("uatom", "0.5").amount
    }


def test_zero_meter_without_allocations_is_consistent(keeper):
    keeper.set_allocation_meter(DecCoin.of("uatom", 0))
    assert allocation_meter_discrepancies(keeper) == []


def test_tampered_meter_detected(keeper):
    keeper.register_incentive(ADDR_MID, [("uatom", "0.5")], epochs=1)
    keeper.set_allocation_meter(DecCoin.of("uatom", "0.4"))
    keeper.set_allocation_meter(DecCoin.of("ghost", "0.1"))

    rows = allocation_meter_discrepancies(keeper)
    assert rows == [
        {"denom": "ghost", "stored": "0.100000000000000000", "expected": "0.000000000000000000"},
        {"denom": "uatom", "stored": "0.400000000000000000", "expected": "0.500000000000000000"},
    ]

    with pytest.raises(StateInvariant) as ei:
        assert_allocation_meters(keeper)
    assert ei.value.data["discrepancies"] == rows


def test_missing_meter_detected(keeper):
    keeper.set_incentive(Incentive(contract=ADDR_LOW, allocations=[DecCoin.of("uatom", "0.1")], epochs=1))
    rows = allocation_meter_discrepancies(keeper)
    assert rows == [{"denom": "uatom", "stored": "0.000000000000000000", "expected": "0.100000000000000000"}]
