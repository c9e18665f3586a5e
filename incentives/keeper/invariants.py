from __future__ import annotations

"""
Allocation-meter invariant
==========================

For every denom, the stored meter must equal the sum of that denom's
allocations over all stored incentives. A meter at zero with no allocations
behind it is consistent; so is a denom with allocations summing to zero and no
meter at all (which cannot happen through the keeper, since amounts are
positive).
"""

from typing import Dict, List

from ledgercore.errors import StateInvariant
from ledgercore.utils.dec import ZERO, add, dec_str

from ..types.coin import DecCoin
from .keeper import Keeper


def expected_allocation_meters(keeper: Keeper) -> Dict[str, DecCoin]:
    """Recompute meters from the stored incentives."""
    sums: Dict[str, DecCoin] = {}

    def visit(incentive) -> bool:
        for al in incentive.allocations:
            cur = sums.get(al.denom)
            sums[al.denom] = DecCoin(denom=al.denom, amount=add(cur.amount if cur else ZERO, al.amount))
        return False

    keeper.iterate_incentives(visit)
    return sums


def allocation_meter_discrepancies(keeper: Keeper) -> List[Dict[str, str]]:
    """
    Every denom whose stored meter disagrees with the recomputed sum, as
    `{"denom", "stored", "expected"}` rows sorted by denom.
    """
    expected = expected_allocation_meters(keeper)
    stored = {m.denom: m.amount for m in keeper.get_all_allocation_meters()}

    rows: List[Dict[str, str]] = []
    for denom in sorted(set(expected) | set(stored)):
        want = expected[denom].amount if denom in expected else ZERO
        have = stored.get(denom, ZERO)
        if want != have:
            rows.append({"denom": denom, "stored": dec_str(have), "expected": dec_str(want)})
    return rows


def assert_allocation_meters(keeper: Keeper) -> None:
    rows = allocation_meter_discrepancies(keeper)
    if rows:
        raise StateInvariant("allocation meters do not match incentive allocations", discrepancies=rows)


__all__ = [
    "expected_allocation_meters",
    "allocation_meter_discrepancies",
    "assert_allocation_meters",
]
