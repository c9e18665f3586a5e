from __future__ import annotations

"""
Decimal coins: a denomination paired with an 18-digit fixed-point amount.

Used both for an incentive's allocations (the share of emission it claims per
denom) and for allocation meters (the aggregate share committed per denom).
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Sequence, Union

from ledgercore.encoding import DecodeError, cbor_dumps, cbor_loads
from ledgercore.errors import DeserializationError
from ledgercore.utils.dec import ZERO, DecLike, dec_str, to_dec

_DENOM_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9/:._-]{2,127}$")


def is_valid_denom(denom: str) -> bool:
    return isinstance(denom, str) and bool(_DENOM_RE.match(denom))


@dataclass(frozen=True)
class DecCoin:
    denom: str
    amount: Decimal = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_dec(self.amount))

    @staticmethod
    def of(denom: str, amount: DecLike) -> "DecCoin":
        return DecCoin(denom=denom, amount=to_dec(amount))

    def is_negative(self) -> bool:
        return self.amount < 0

    # --- plain-object forms ---

    def to_obj(self) -> list:
        """Compact form used inside CBOR records: [denom, "amount"]."""
        return [self.denom, dec_str(self.amount)]

    @staticmethod
    def from_obj(obj: Any) -> "DecCoin":
        if not isinstance(obj, list) or len(obj) != 2:
            raise ValueError("coin must be a [denom, amount] pair")
        denom, amount = obj
        if not isinstance(denom, str) or not isinstance(amount, str):
            raise ValueError("coin fields must be strings")
        return DecCoin(denom=denom, amount=to_dec(amount))

    def to_dict(self) -> Dict[str, str]:
        return {"denom": self.denom, "amount": dec_str(self.amount)}

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "DecCoin":
        if not isinstance(d, dict):
            raise TypeError("coin must be an object with denom and amount")
        return DecCoin(denom=str(d["denom"]), amount=to_dec(str(d["amount"])))

    # --- record encoding (allocation meters) ---

    def to_cbor(self) -> bytes:
        return cbor_dumps({"denom": self.denom, "amount": dec_str(self.amount)})

    @staticmethod
    def from_cbor(data: bytes) -> "DecCoin":
        try:
            m = cbor_loads(data)
            return DecCoin(denom=m["denom"], amount=to_dec(m["amount"]))
        except (DecodeError, KeyError, TypeError, ValueError, RecursionError) as e:
            raise DeserializationError("undecodable allocation meter", reason=str(e)).with_cause(e)

    def __str__(self) -> str:  # pragma: no cover - display
        return f"{dec_str(self.amount)}{self.denom}"


CoinLike = Union[DecCoin, Sequence[Any], Dict[str, Any]]


def as_dec_coin(value: CoinLike) -> DecCoin:
    """Accept a DecCoin, a (denom, amount) pair, or a {"denom", "amount"} mapping."""
    if isinstance(value, DecCoin):
        return value
    if isinstance(value, dict):
        return DecCoin.from_dict(value)
    denom, amount = value
    return DecCoin.of(denom, amount)


__all__ = ["DecCoin", "CoinLike", "as_dec_coin", "is_valid_denom"]
