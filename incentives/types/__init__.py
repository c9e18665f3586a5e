"""
Typed records and store keys for the incentives module.

- DecCoin    : (denom, 18-digit decimal amount); allocations and meters
- Incentive  : per-contract incentive record
- keys       : store prefixes and key builders
"""

from .coin import CoinLike, DecCoin, as_dec_coin, is_valid_denom
from .incentive import MAX_UINT64, Incentive, canonical_contract, new_incentive
from .keys import (
    MODULE_NAME,
    PREFIX_ALLOCATION_METER,
    PREFIX_GAS_METER,
    PREFIX_INCENTIVE,
    address_from_incentive_key,
    allocation_meter_key,
    denom_from_allocation_meter_key,
    incentive_key,
)

__all__ = [
    "CoinLike",
    "DecCoin",
    "as_dec_coin",
    "is_valid_denom",
    "Incentive",
    "new_incentive",
    "canonical_contract",
    "MAX_UINT64",
    "MODULE_NAME",
    "PREFIX_INCENTIVE",
    "PREFIX_GAS_METER",
    "PREFIX_ALLOCATION_METER",
    "incentive_key",
    "allocation_meter_key",
    "address_from_incentive_key",
    "denom_from_allocation_meter_key",
]
