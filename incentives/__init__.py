"""
Incentives - per-contract incentive records and allocation-meter accounting.

Incentives claim a share of a denomination's emission for one contract and
accumulate the gas spent on it. Allocation meters hold the per-denom sum of
those shares and are reconciled whenever an incentive is removed.

Public surface:
- Keeper (incentives.keeper), IncentivesPolicy (incentives.config)
- Incentive, DecCoin (incentives.types)
- GenesisState, init_genesis, export_genesis (incentives.genesis)
- errors (incentives.errors)
"""

from ledgercore.version import __version__

from .config import IncentivesPolicy
from .genesis import GenesisState, export_genesis, init_genesis
from .keeper import Keeper
from .types import DecCoin, Incentive

__all__ = [
    "__version__",
    "Keeper",
    "IncentivesPolicy",
    "Incentive",
    "DecCoin",
    "GenesisState",
    "init_genesis",
    "export_genesis",
]
