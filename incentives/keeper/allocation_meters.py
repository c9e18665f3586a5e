from __future__ import annotations

"""
Allocation meters
=================

One `DecCoin` per denomination under `0x03 | utf8(denom)`, holding the share
of that denom's emission committed to incentives in aggregate. A meter is
created implicitly on first write and is never deleted; it may sit at zero.

The ledger holds no cache: every read goes to the bound KV (the base store or
an open cache branch) and every write goes straight back to it.
"""

from contextlib import closing
from typing import Callable, List, Optional, Tuple

from ledgercore.db.kv import KV
from ledgercore.errors import DeserializationError
from ledgercore.logging import get_logger
from ledgercore.utils.bytes import to_hex

from ..types.coin import DecCoin
from ..types.keys import PREFIX_ALLOCATION_METER, allocation_meter_key, denom_from_allocation_meter_key

log = get_logger("incentives.meters")

MeterHandler = Callable[[DecCoin], Optional[bool]]


class AllocationMeterLedger:
    def __init__(self, kv: KV) -> None:
        self.kv = kv

    def get_allocation_meter(self, denom: str) -> Tuple[DecCoin, bool]:
        """Return `(meter, True)`, or a zero meter for `denom` and False when absent."""
        key = allocation_meter_key(denom)
        raw = self.kv.get(key)
        if raw is None:
            return DecCoin(denom=denom), False
        return _decode(key, raw), True

    def set_allocation_meter(self, meter: DecCoin) -> None:
        self.kv.put(allocation_meter_key(meter.denom), meter.to_cbor())
        log.debug("allocation meter set", extra={"denom": meter.denom, "amount": meter.amount})

    def iterate_allocation_meters(self, handler: MeterHandler) -> None:
        """Visit meters in ascending denom-byte order; a truthy return stops."""
        with closing(self.kv.iter_prefix(PREFIX_ALLOCATION_METER)) as it:
            for key, raw in it:
                if handler(_decode(key, raw)):
                    break

    def get_all_allocation_meters(self) -> List[DecCoin]:
        meters: List[DecCoin] = []
        self.iterate_allocation_meters(lambda m: meters.append(m))
        return meters


def _decode(key: bytes, raw: bytes) -> DecCoin:
    try:
        meter = DecCoin.from_cbor(raw)
    except DeserializationError as e:
        raise e.with_context(key=to_hex(key)) from e.cause
    expected = denom_from_allocation_meter_key(key)
    if meter.denom != expected:
        raise DeserializationError("allocation meter denom does not match its key", key=to_hex(key), denom=meter.denom)
    return meter


__all__ = ["AllocationMeterLedger", "MeterHandler"]
