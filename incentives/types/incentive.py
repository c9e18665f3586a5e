from __future__ import annotations

"""
Incentive record
================

An incentive is attached to one contract and claims a share of each listed
denomination's emission. `total_gas` accumulates the gas spent on the contract
while the incentive is active; `epochs` counts the reward epochs left.

The zero value `Incentive()` (empty contract, no allocations) is what the
store returns alongside `found=False`.

Encoding is canonical CBOR:

    {"allocations": [[denom, "0.500000000000000000"], ...],
     "contract":    "0x…40 hex…",
     "epochs":      int,
     "start_time":  int,        # unix seconds
     "total_gas":   int}
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from ledgercore.encoding import DecodeError, cbor_dumps, cbor_loads
from ledgercore.errors import DeserializationError, SerializationError
from ledgercore.utils.bytes import hex_to_address, is_hex_address, strip0x
from ledgercore.utils.dec import ONE

from ..errors import InvalidIncentive
from .coin import CoinLike, DecCoin, as_dec_coin, is_valid_denom

MAX_UINT64 = (1 << 64) - 1


@dataclass
class Incentive:
    contract: str = ""
    allocations: List[DecCoin] = field(default_factory=list)
    epochs: int = 0
    start_time: int = 0
    total_gas: int = 0

    def __post_init__(self) -> None:
        self.allocations = [as_dec_coin(a) for a in self.allocations]

    # --- accessors ---

    def address(self) -> bytes:
        return hex_to_address(self.contract)

    def is_active(self) -> bool:
        return self.epochs > 0

    def allocation_for(self, denom: str) -> Optional[Decimal]:
        for al in self.allocations:
            if al.denom == denom:
                return al.amount
        return None

    def validate(self) -> None:
        """Stateless checks; raises InvalidIncentive."""
        if not is_hex_address(self.contract):
            raise InvalidIncentive("contract is not a 20-byte hex address", contract=self.contract)
        if not self.allocations:
            raise InvalidIncentive("incentive must have at least one allocation", contract=self.contract)
        seen = set()
        for al in self.allocations:
            if not is_valid_denom(al.denom):
                raise InvalidIncentive("invalid denom", contract=self.contract, details={"denom": al.denom})
            if al.denom in seen:
                raise InvalidIncentive("duplicate allocation denom", contract=self.contract, details={"denom": al.denom})
            seen.add(al.denom)
            if al.amount <= 0:
                raise InvalidIncentive(
                    "allocation amount must be positive",
                    contract=self.contract,
                    details={"denom": al.denom, "amount": str(al.amount)},
                )
            if al.amount > ONE:
                raise InvalidIncentive(
                    "allocation amount cannot exceed 100%",
                    contract=self.contract,
                    details={"denom": al.denom, "amount": str(al.amount)},
                )
        if self.epochs <= 0:
            raise InvalidIncentive("epochs must be positive", contract=self.contract, details={"epochs": self.epochs})
        if self.start_time < 0:
            raise InvalidIncentive("start_time cannot be negative", contract=self.contract)
        if not (0 <= self.total_gas <= MAX_UINT64):
            raise InvalidIncentive("total_gas out of uint64 range", contract=self.contract)

    # --- record encoding ---

    def to_cbor(self) -> bytes:
        try:
            return cbor_dumps(
                {
                    "contract": self.contract,
                    "allocations": [al.to_obj() for al in self.allocations],
                    "epochs": int(self.epochs),
                    "start_time": int(self.start_time),
                    "total_gas": int(self.total_gas),
                }
            )
        except (TypeError, ValueError) as e:
            raise SerializationError("unencodable incentive record", contract=self.contract, reason=str(e)).with_cause(e)

    @staticmethod
    def from_cbor(data: bytes) -> "Incentive":
        try:
            m = cbor_loads(data)
            if not isinstance(m, dict):
                raise TypeError("incentive record must be a map")
            contract = m["contract"]
            if not isinstance(contract, str):
                raise TypeError("contract must be a string")
            return Incentive(
                contract=contract,
                allocations=[DecCoin.from_obj(a) for a in m["allocations"]],
                epochs=_as_int(m.get("epochs", 0), "epochs"),
                start_time=_as_int(m.get("start_time", 0), "start_time"),
                total_gas=_as_int(m["total_gas"], "total_gas"),
            )
        except (DecodeError, KeyError, TypeError, ValueError, RecursionError) as e:
            raise DeserializationError("undecodable incentive record", reason=str(e)).with_cause(e)

    # --- JSON-friendly forms (genesis, CLI) ---

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contract": self.contract,
            "allocations": [al.to_dict() for al in self.allocations],
            "epochs": self.epochs,
            "start_time": self.start_time,
            "total_gas": self.total_gas,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Incentive":
        if not isinstance(d, dict):
            raise TypeError("incentive entry must be an object")
        allocations = d.get("allocations", [])
        if not isinstance(allocations, list):
            raise TypeError("allocations must be a list")
        return Incentive(
            contract=canonical_contract(str(d.get("contract", ""))),
            allocations=[DecCoin.from_dict(a) for a in allocations],
            epochs=int(d.get("epochs", 0)),
            start_time=int(d.get("start_time", 0)),
            total_gas=int(d.get("total_gas", 0)),
        )


def new_incentive(
    contract: str,
    allocations: Iterable[CoinLike],
    epochs: int,
    start_time: int = 0,
) -> Incentive:
    """Build an incentive with zero gas; the contract is normalized to lowercase 0x hex."""
    return Incentive(
        contract=canonical_contract(contract),
        allocations=list(allocations),
        epochs=int(epochs),
        start_time=int(start_time),
    )


def canonical_contract(contract: str) -> str:
    """Lowercase 0x form for well-formed hex addresses; anything else is returned as-is."""
    if not is_hex_address(contract):
        return contract
    return "0x" + strip0x(contract).lower()


def _as_int(v: Any, name: str) -> int:
    if isinstance(v, bool) or not isinstance(v, int):
        raise TypeError(f"{name} must be an integer")
    return v


__all__ = ["Incentive", "new_incentive", "canonical_contract", "MAX_UINT64"]
