"""
incentives.keeper: stores and facade for incentive records and allocation meters.
"""

from .allocation_meters import AllocationMeterLedger
from .incentives import IncentiveStore
from .invariants import allocation_meter_discrepancies, assert_allocation_meters, expected_allocation_meters
from .keeper import Keeper

__all__ = [
    "AllocationMeterLedger",
    "IncentiveStore",
    "Keeper",
    "allocation_meter_discrepancies",
    "assert_allocation_meters",
    "expected_allocation_meters",
]
