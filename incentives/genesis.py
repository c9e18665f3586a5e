from __future__ import annotations

"""
Genesis import/export for the incentives module.

Only incentives are carried in genesis. Allocation meters are derived data:
`init_genesis` rebuilds them from the allocation sums, so an imported state
always satisfies the meter invariant.

JSON shape:

    {"incentives": [
        {"contract": "0x…", "allocations": [{"denom": "aevmos", "amount": "0.5…"}],
         "epochs": 10, "start_time": 1700000000, "total_gas": 0},
        ...
    ]}
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from ledgercore.errors import GenesisError
from ledgercore.logging import get_logger
from ledgercore.utils.dec import ONE, ZERO, add, dec_str

from .errors import InvalidIncentive
from .keeper.keeper import Keeper
from .types.coin import DecCoin
from .types.incentive import Incentive
from .types.keys import incentive_key

log = get_logger("incentives.genesis")


@dataclass
class GenesisState:
    incentives: List[Incentive] = field(default_factory=list)

    def allocation_sums(self) -> Dict[str, Any]:
        sums: Dict[str, Any] = {}
        for inc in self.incentives:
            for al in inc.allocations:
                sums[al.denom] = add(sums.get(al.denom, ZERO), al.amount)
        return sums

    def validate(self) -> None:
        seen = set()
        for inc in self.incentives:
            try:
                inc.validate()
            except InvalidIncentive as e:
                raise GenesisError("invalid incentive in genesis", contract=inc.contract, reason=e.message).with_cause(e)
            key = incentive_key(inc.contract)
            if key in seen:
                raise GenesisError("duplicate incentive in genesis", contract=inc.contract)
            seen.add(key)
        for denom, amount in sorted(self.allocation_sums().items()):
            if amount > ONE:
                raise GenesisError("total allocation for denom exceeds 100%", denom=denom, total=dec_str(amount))

    def to_dict(self) -> Dict[str, Any]:
        return {"incentives": [inc.to_dict() for inc in self.incentives]}

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "GenesisState":
        if not isinstance(d, dict):
            raise GenesisError("genesis document must be a JSON object")
        try:
            return GenesisState(incentives=[Incentive.from_dict(x) for x in d.get("incentives", [])])
        except (KeyError, TypeError, ValueError) as e:
            raise GenesisError("malformed genesis document", reason=str(e)).with_cause(e)


def default_genesis() -> GenesisState:
    return GenesisState()


def init_genesis(keeper: Keeper, state: GenesisState) -> None:
    """
    Store every incentive and set each denom's meter to its allocation sum.
    The store must not hold incentives yet; everything is written atomically.
    """
    state.validate()
    if keeper.get_all_incentives():
        raise GenesisError("incentive store is not empty")

    with keeper.transaction() as tx:
        for inc in state.incentives:
            tx.set_incentive(inc)
        for denom, amount in sorted(state.allocation_sums().items()):
            tx.set_allocation_meter(DecCoin(denom=denom, amount=amount))

    log.info("genesis imported", extra={"incentives": len(state.incentives)})


def export_genesis(keeper: Keeper) -> GenesisState:
    state = GenesisState(incentives=keeper.get_all_incentives())
    log.info("genesis exported", extra={"incentives": len(state.incentives)})
    return state


__all__ = ["GenesisState", "default_genesis", "init_genesis", "export_genesis"]
