from __future__ import annotations

"""
Incentive store
===============

Incentive records live under `0x01 | address(20)`, one per contract, encoded
as canonical CBOR. Iteration walks the prefix in ascending address-byte order.

Deleting an incentive also releases its allocations from the per-denom meters.
Both namespaces are mutated inside a single cache branch over the bound KV, so
either the record disappears *and* every meter is decremented, or nothing is
written at all.
"""

from contextlib import closing
from dataclasses import replace
from typing import Callable, List, Optional, Tuple, Union

from ledgercore.db import branch
from ledgercore.db.kv import KV
from ledgercore.errors import DeserializationError
from ledgercore.logging import get_logger
from ledgercore.utils.bytes import BytesLike, to_hex
from ledgercore.utils.dec import sub

from ..config import IncentivesPolicy
from ..errors import InvalidIncentive, NegativeAllocationMeter, NonMonotonicGas
from ..types.coin import DecCoin
from ..types.incentive import MAX_UINT64, Incentive
from ..types.keys import PREFIX_INCENTIVE, incentive_key
from .allocation_meters import AllocationMeterLedger

log = get_logger("incentives.store")

IncentiveHandler = Callable[[Incentive], Optional[bool]]
Contract = Union[str, BytesLike]


class IncentiveStore:
    def __init__(self, kv: KV, policy: Optional[IncentivesPolicy] = None) -> None:
        self.kv = kv
        self.policy = policy or IncentivesPolicy()
        self.meters = AllocationMeterLedger(kv)

    # --- reads ---

    def get_all_incentives(self) -> List[Incentive]:
        incentives: List[Incentive] = []
        self.iterate_incentives(lambda inc: incentives.append(inc))
        return incentives

    def iterate_incentives(self, handler: IncentiveHandler) -> None:
        """
        Visit every incentive in ascending contract-key order. The walk stops as
        soon as `handler` returns a truthy value. The cursor is released on
        exhaustion, early stop, or when the handler raises.
        """
        with closing(self.kv.iter_prefix(PREFIX_INCENTIVE)) as it:
            for key, raw in it:
                if handler(_decode(key, raw)):
                    break

    def get_incentive(self, contract: Contract) -> Tuple[Incentive, bool]:
        key = incentive_key(contract)
        raw = self.kv.get(key)
        if raw is None:
            return Incentive(), False
        return _decode(key, raw), True

    def is_incentive_registered(self, contract: Contract) -> bool:
        return self.kv.has(incentive_key(contract))

    # --- writes ---

    def set_incentive(self, incentive: Incentive) -> None:
        self.kv.put(incentive_key(incentive.contract), incentive.to_cbor())
        log.debug("incentive set", extra={"contract": incentive.contract, "total_gas": incentive.total_gas})

    def set_incentive_total_gas(self, incentive: Incentive, gas: int) -> Incentive:
        """
        Upsert a copy of `incentive` with `total_gas` set to `gas` and return it.
        The caller's object is left untouched.
        """
        gas = int(gas)
        if gas < 0 or gas > MAX_UINT64:
            raise InvalidIncentive("total_gas out of uint64 range", contract=incentive.contract, details={"gas": gas})
        stored, found = self.get_incentive(incentive.contract)
        if found and gas < stored.total_gas:
            if self.policy.enforce_monotonic_gas:
                raise NonMonotonicGas(contract=incentive.contract, stored=stored.total_gas, requested=gas)
            log.warning(
                "total gas decreased",
                extra={"contract": incentive.contract, "stored": stored.total_gas, "requested": gas},
            )
        updated = replace(incentive, total_gas=gas)
        self.set_incentive(updated)
        return updated

    def delete_incentive_and_update_allocation_meters(self, incentive: Incentive) -> None:
        """
        Remove the incentive record and subtract each of its allocations from
        the matching meter. Registration is not checked. A denom listed twice
        is subtracted twice: the second read sees the first write.
        """
        with branch(self.kv) as cache:
            cache.delete(incentive_key(incentive.contract))
            meters = AllocationMeterLedger(cache)
            for al in incentive.allocations:
                meter, _ = meters.get_allocation_meter(al.denom)
                updated = sub(meter.amount, al.amount)
                if updated < 0:
                    if self.policy.forbid_negative_meters:
                        raise NegativeAllocationMeter(denom=al.denom, current=meter.amount, decrement=al.amount)
                    log.warning(
                        "allocation meter below zero",
                        extra={"denom": al.denom, "current": meter.amount, "decrement": al.amount},
                    )
                meters.set_allocation_meter(DecCoin(denom=al.denom, amount=updated))
        log.debug(
            "incentive deleted",
            extra={"contract": incentive.contract, "denoms": [al.denom for al in incentive.allocations]},
        )


def _decode(key: bytes, raw: bytes) -> Incentive:
    try:
        return Incentive.from_cbor(raw)
    except DeserializationError as e:
        raise e.with_context(key=to_hex(key)) from e.cause


__all__ = ["IncentiveStore", "IncentiveHandler"]
