from __future__ import annotations

"""
Incentives keeper
=================

Facade over the incentive store and the allocation-meter ledger, both bound to
one injected KV. The keeper holds no state of its own beyond that binding and
its policy, so constructing one is cheap and several may share a store.

Transactions
------------
`transaction()` yields a keeper bound to a cache branch of this keeper's KV.
Everything written through it is flushed in one batch when the block exits
cleanly and dropped when it raises. Transactions nest: an inner block flushes
into the outer branch, not into the base store.

    keeper = Keeper(open_kv("sqlite:///ledger.db"))
    with keeper.transaction() as tx:
        tx.register_incentive("0x…", [("aevmos", "0.5")], epochs=10)
        tx.add_incentive_gas("0x…", 21_000)
"""

from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional, Tuple

from ledgercore.db import branch
from ledgercore.db.kv import KV
from ledgercore.logging import get_logger
from ledgercore.utils.dec import ONE, add

from ..config import IncentivesPolicy
from ..errors import AllocationExceeded, IncentiveAlreadyRegistered, IncentiveNotRegistered, InvalidIncentive
from ..types.coin import CoinLike, DecCoin
from ..types.incentive import MAX_UINT64, Incentive, new_incentive
from .allocation_meters import AllocationMeterLedger, MeterHandler
from .incentives import Contract, IncentiveHandler, IncentiveStore

log = get_logger("incentives.keeper")


class Keeper:
    def __init__(self, kv: KV, *, policy: Optional[IncentivesPolicy] = None) -> None:
        self.kv = kv
        self.policy = policy or IncentivesPolicy()
        self.incentives = IncentiveStore(kv, self.policy)
        self.meters: AllocationMeterLedger = self.incentives.meters

    @contextmanager
    def transaction(self) -> Iterator["Keeper"]:
        with branch(self.kv) as cache:
            yield Keeper(cache, policy=self.policy)

    # --- incentive store ---

    def get_all_incentives(self) -> List[Incentive]:
        return self.incentives.get_all_incentives()

    def iterate_incentives(self, handler: IncentiveHandler) -> None:
        self.incentives.iterate_incentives(handler)

    def get_incentive(self, contract: Contract) -> Tuple[Incentive, bool]:
        return self.incentives.get_incentive(contract)

    def set_incentive(self, incentive: Incentive) -> None:
        self.incentives.set_incentive(incentive)

    def is_incentive_registered(self, contract: Contract) -> bool:
        return self.incentives.is_incentive_registered(contract)

    def set_incentive_total_gas(self, incentive: Incentive, gas: int) -> Incentive:
        return self.incentives.set_incentive_total_gas(incentive, gas)

    def delete_incentive_and_update_allocation_meters(self, incentive: Incentive) -> None:
        self.incentives.delete_incentive_and_update_allocation_meters(incentive)

    # --- allocation meters ---

    def get_allocation_meter(self, denom: str) -> Tuple[DecCoin, bool]:
        return self.meters.get_allocation_meter(denom)

    def set_allocation_meter(self, meter: DecCoin) -> None:
        self.meters.set_allocation_meter(meter)

    def iterate_allocation_meters(self, handler: MeterHandler) -> None:
        self.meters.iterate_allocation_meters(handler)

    def get_all_allocation_meters(self) -> List[DecCoin]:
        return self.meters.get_all_allocation_meters()

    # --- lifecycle ---

    def register_incentive(
        self,
        contract: str,
        allocations: Iterable[CoinLike],
        epochs: int,
        start_time: int = 0,
    ) -> Incentive:
        """
        Validate and store a new incentive, adding each allocation to its
        denom's meter. Fails without writing anything when the contract is
        already registered or a meter would pass 100%.
        """
        incentive = new_incentive(contract, allocations, epochs, start_time)
        incentive.validate()
        if self.is_incentive_registered(incentive.contract):
            raise IncentiveAlreadyRegistered(contract=incentive.contract)

        with self.transaction() as tx:
            for al in incentive.allocations:
                meter, _ = tx.get_allocation_meter(al.denom)
                updated = add(meter.amount, al.amount)
                if updated > ONE:
                    raise AllocationExceeded(denom=al.denom, current=meter.amount, requested=al.amount)
                tx.set_allocation_meter(DecCoin(denom=al.denom, amount=updated))
            tx.set_incentive(incentive)

        log.info(
            "incentive registered",
            extra={
                "contract": incentive.contract,
                "epochs": incentive.epochs,
                "allocations": [al.to_dict() for al in incentive.allocations],
            },
        )
        return incentive

    def cancel_incentive(self, contract: Contract) -> Incentive:
        incentive, found = self.get_incentive(contract)
        if not found:
            raise IncentiveNotRegistered(contract=_display(contract))
        self.delete_incentive_and_update_allocation_meters(incentive)
        log.info("incentive cancelled", extra={"contract": incentive.contract})
        return incentive

    def add_incentive_gas(self, contract: Contract, gas: int) -> Incentive:
        gas = int(gas)
        if gas < 0:
            raise InvalidIncentive("gas used cannot be negative", contract=_display(contract), details={"gas": gas})
        incentive, found = self.get_incentive(contract)
        if not found:
            raise IncentiveNotRegistered(contract=_display(contract))
        total = incentive.total_gas + gas
        if total > MAX_UINT64:
            raise InvalidIncentive("total_gas out of uint64 range", contract=incentive.contract)
        return self.set_incentive_total_gas(incentive, total)


def _display(contract: Contract) -> str:
    if isinstance(contract, str):
        return contract
    return "0x" + bytes(contract).hex()


__all__ = ["Keeper"]
