"""
Store key layout for the incentives module.

    INCENTIVE        := 0x01 | address:20            -> cbor(Incentive)
    GAS_METER        := 0x02 | ...                   (reserved, unused here)
    ALLOCATION_METER := 0x03 | utf8(denom)           -> cbor(DecCoin)

Addresses are fixed-width, so a scan of the incentive prefix is ordered by the
raw address bytes. Denoms are variable-length UTF-8; a scan of the meter prefix
is ordered bytewise by denom.
"""

from __future__ import annotations

from typing import Union

from ledgercore.utils.bytes import ADDRESS_LENGTH, BytesLike, hex_to_address

MODULE_NAME = "incentives"

PREFIX_INCENTIVE = b"\x01"
PREFIX_GAS_METER = b"\x02"
PREFIX_ALLOCATION_METER = b"\x03"


def incentive_key(contract: Union[str, BytesLike]) -> bytes:
    return PREFIX_INCENTIVE + hex_to_address(contract)


def allocation_meter_key(denom: str) -> bytes:
    return PREFIX_ALLOCATION_METER + denom.encode("utf-8")


def address_from_incentive_key(key: bytes) -> bytes:
    if not key.startswith(PREFIX_INCENTIVE) or len(key) != 1 + ADDRESS_LENGTH:
        raise ValueError("not an incentive key")
    return key[1:]


def denom_from_allocation_meter_key(key: bytes) -> str:
    if not key.startswith(PREFIX_ALLOCATION_METER):
        raise ValueError("not an allocation meter key")
    return key[1:].decode("utf-8")


__all__ = [
    "MODULE_NAME",
    "PREFIX_INCENTIVE",
    "PREFIX_GAS_METER",
    "PREFIX_ALLOCATION_METER",
    "incentive_key",
    "allocation_meter_key",
    "address_from_incentive_key",
    "denom_from_allocation_meter_key",
]
