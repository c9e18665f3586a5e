from __future__ import annotations

import logging
from decimal import Decimal

import pytest

from incentives.errors import InvalidIncentive
from incentives.keeper import IncentiveStore
from incentives.types import DecCoin, Incentive, incentive_key
from ledgercore.encoding import cbor_dumps
from ledgercore.errors import DeserializationError, SerializationError
from ledgercore.utils.dec import ZERO

from .conftest import ADDR_HIGH, ADDR_LOW, ADDR_MID


def _inc(contract: str, *allocs, gas: int = 0) -> Incentive:
    return Incentive(
        contract=contract,
        allocations=[DecCoin.of(d, a) for d, a in allocs] or [DecCoin.of("aevmos", "0.1")],
        epochs=5,
        total_gas=gas,
    )


def test_get_missing_returns_zero_value(kv):
    store = IncentiveStore(kv)
    inc, found = store.get_incentive(ADDR_MID)
    assert found is False
    assert inc == Incentive()
    assert store.get_all_incentives() == []


def test_set_then_get_round_trip(kv):
    store = IncentiveStore(kv)
    inc = _inc(ADDR_MID, ("uatom", "0.5"), ("uosmo", "0.25"), gas=42)
    store.set_incentive(inc)

    got, found = store.get_incentive(ADDR_MID)
    assert found
    assert got == inc
    assert got.allocation_for("uosmo") == Decimal("0.25")


def test_one_record_per_contract(kv):
    store = IncentiveStore(kv)
    store.set_incentive(_inc(ADDR_MID, gas=1))
    store.set_incentive(_inc(ADDR_MID, gas=2))

    all_ = store.get_all_incentives()
    assert len(all_) == 1
    assert all_[0].total_gas == 2


def test_get_all_is_ordered_by_address_bytes(kv):
    store = IncentiveStore(kv)
    for addr in (ADDR_HIGH, ADDR_LOW, ADDR_MID):
        store.set_incentive(_inc(addr))

    assert [i.contract for i in store.get_all_incentives()] == [ADDR_LOW, ADDR_MID, ADDR_HIGH]


def test_iterate_stops_after_truthy_return(tracking_kv):
    store = IncentiveStore(tracking_kv)
    for addr in (ADDR_LOW, ADDR_MID, ADDR_HIGH):
        store.set_incentive(_inc(addr))

    seen = []

    def handler(inc: Incentive) -> bool:
        seen.append(inc.contract)
        return len(seen) == 2

    store.iterate_incentives(handler)
    assert seen == [ADDR_LOW, ADDR_MID]
    assert tracking_kv.opened == tracking_kv.released == 1


def test_iterate_releases_cursor_when_handler_raises(tracking_kv):
    store = IncentiveStore(tracking_kv)
    store.set_incentive(_inc(ADDR_LOW))
    store.set_incentive(_inc(ADDR_MID))

    def handler(inc: Incentive) -> bool:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        store.iterate_incentives(handler)
    assert tracking_kv.opened == tracking_kv.released == 1


def test_iterate_empty_store_visits_nothing(tracking_kv):
    store = IncentiveStore(tracking_kv)
    calls = []
    store.iterate_incentives(lambda inc: calls.append(inc))
    assert calls == []
    assert tracking_kv.released == 1


def test_is_registered_tracks_set_and_delete(kv):
    store = IncentiveStore(kv)
    inc = _inc(ADDR_MID, ("uatom", "0.5"))
    assert not store.is_incentive_registered(ADDR_MID)

    store.set_incentive(inc)
    assert store.is_incentive_registered(ADDR_MID)

    store.delete_incentive_and_update_allocation_meters(inc)
    assert not store.is_incentive_registered(ADDR_MID)


def test_short_hex_is_left_padded():
    assert incentive_key("0x01") == incentive_key(ADDR_LOW)


def test_lookup_accepts_short_and_mixed_case_hex(kv):
    store = IncentiveStore(kv)
    store.set_incentive(_inc(ADDR_LOW))
    store.set_incentive(_inc(ADDR_MID))
    assert store.get_incentive("0x1")[1]
    assert store.is_incentive_registered("0x" + ADDR_MID[2:].upper())


def test_delete_reconciles_meters_to_zero(kv):
    store = IncentiveStore(kv)
    inc = _inc(ADDR_MID, ("uatom", "0.5"), ("uosmo", "0.25"))
    store.set_incentive(inc)
    store.meters.set_allocation_meter(DecCoin.of("uatom", "0.5"))
    store.meters.set_allocation_meter(DecCoin.of("uosmo", "0.25"))

    store.delete_incentive_and_update_allocation_meters(inc)

    assert store.get_incentive(ADDR_MID) == (Incentive(), False)
    assert store.meters.get_allocation_meter("uatom") == (DecCoin("uatom", ZERO), True)
    assert store.meters.get_allocation_meter("uosmo") == (DecCoin("uosmo", ZERO), True)


def test_delete_subtracts_exactly_each_allocation(kv):
    store = IncentiveStore(kv)
    store.meters.set_allocation_meter(DecCoin.of("uatom", "0.9"))
    store.meters.set_allocation_meter(DecCoin.of("uosmo", "0.3"))
    inc = _inc(ADDR_LOW, ("uatom", "0.2"), ("uosmo", "0.1"))
    store.set_incentive(inc)

    store.delete_incentive_and_update_allocation_meters(inc)

    assert store.meters.get_allocation_meter("uatom")[0].amount == Decimal("0.7")
    assert store.meters.get_allocation_meter("uosmo")[0].amount == Decimal("0.2")


def test_delete_with_repeated_denom_subtracts_each_entry(kv):
    store = IncentiveStore(kv)
    store.meters.set_allocation_meter(DecCoin.of("uatom", "0.5"))
    inc = _inc(ADDR_MID, ("uatom", "0.1"), ("uatom", "0.1"))
    store.set_incentive(inc)

    store.delete_incentive_and_update_allocation_meters(inc)

    assert store.meters.get_allocation_meter("uatom")[0].amount == Decimal("0.3")


def test_delete_unregistered_still_decrements(kv, caplog):
    store = IncentiveStore(kv)
    inc = _inc(ADDR_MID, ("uatom", "0.5"))

    with caplog.at_level(logging.WARNING, logger="incentives.store"):
        store.delete_incentive_and_update_allocation_meters(inc)

    meter, found = store.meters.get_allocation_meter("uatom")
    assert found
    assert meter.amount == Decimal("-0.5")
    assert any("below zero" in r.getMessage() for r in caplog.records)


def test_set_total_gas_last_write_wins(kv, caplog):
    store = IncentiveStore(kv)
    inc = _inc(ADDR_MID)
    store.set_incentive(inc)

    store.set_incentive_total_gas(inc, 100)
    assert store.get_incentive(ADDR_MID)[0].total_gas == 100

    with caplog.at_level(logging.WARNING, logger="incentives.store"):
        store.set_incentive_total_gas(inc, 50)
    assert store.get_incentive(ADDR_MID)[0].total_gas == 50
    assert any("decreased" in r.getMessage() for r in caplog.records)


def test_set_total_gas_upserts_unregistered(kv):
    store = IncentiveStore(kv)
    inc = _inc(ADDR_HIGH)
    store.set_incentive_total_gas(inc, 7)
    got, found = store.get_incentive(ADDR_HIGH)
    assert found and got.total_gas == 7


def test_corrupt_record_raises_deserialization_error(kv):
    store = IncentiveStore(kv)
    kv.put(incentive_key(ADDR_MID), b"\xff\x00garbage")

    with pytest.raises(DeserializationError) as ei:
        store.get_incentive(ADDR_MID)
    assert ei.value.data["key"] == "0x01" + ADDR_MID[2:]
    assert ei.value.retryable is False

    with pytest.raises(DeserializationError):
        store.get_all_incentives()


def test_record_missing_field_is_corrupt(kv):
    kv.put(incentive_key(ADDR_LOW), cbor_dumps({"contract": ADDR_LOW, "allocations": []}))
    with pytest.raises(DeserializationError):
        IncentiveStore(kv).get_incentive(ADDR_LOW)


def test_unencodable_record_is_not_written(kv):
    store = IncentiveStore(kv)
    bad = _inc(ADDR_LOW)
    bad.epochs = None
    with pytest.raises(SerializationError) as ei:
        store.set_incentive(bad)
    assert ei.value.data["contract"] == ADDR_LOW
    assert not store.is_incentive_registered(ADDR_LOW)


@pytest.mark.parametrize("gas", [-5, (1 << 64)])
def test_set_total_gas_rejects_out_of_range(kv, gas):
    store = IncentiveStore(kv)
    inc = _inc(ADDR_MID, gas=3)
    store.set_incentive(inc)

    with pytest.raises(InvalidIncentive):
        store.set_incentive_total_gas(inc, gas)
    stored, _ = store.get_incentive(ADDR_MID)
    assert stored.total_gas == 3
    stored.validate()


def test_set_total_gas_leaves_caller_object_alone(kv):
    store = IncentiveStore(kv)
    inc = _inc(ADDR_MID)
    written = store.set_incentive_total_gas(inc, 42)
    assert written.total_gas == 42
    assert inc.total_gas == 0
    assert store.get_incentive(ADDR_MID)[0] == written


def test_deeply_nested_record_is_corrupt(kv):
    nested = b"\x81" * 100_000 + b"\x00"
    kv.put(incentive_key(ADDR_LOW), nested)
    with pytest.raises(DeserializationError):
        IncentiveStore(kv).get_incentive(ADDR_LOW)

    with pytest.raises(DeserializationError):
        DecCoin.from_cbor(nested)
