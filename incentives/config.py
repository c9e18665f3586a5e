from __future__ import annotations
"""
incentives.config: validation policy for the incentives keeper

Both flags are off by default, which keeps the keeper permissive: a lower
total gas overwrites a higher one, and a meter may be driven below zero by the
reconcile path. When a flag is off and the condition occurs the keeper logs a
warning and proceeds.

Environment overrides (optional):

  INCENTIVES_ENFORCE_MONOTONIC_GAS=1     # reject total_gas decreases
  INCENTIVES_FORBID_NEGATIVE_METERS=1    # reject meter decrements below zero

Or in the ledger config file:

  [incentives]
  enforce_monotonic_gas = true
  forbid_negative_meters = false

File values override defaults; environment overrides the file.
"""

import os
from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional

from ledgercore.config import Config, parse_bool

ENV_PREFIX = "INCENTIVES_"

_FLAGS = ("enforce_monotonic_gas", "forbid_negative_meters")


@dataclass(frozen=True)
class IncentivesPolicy:
    enforce_monotonic_gas: bool = False
    forbid_negative_meters: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_mapping(data: Mapping[str, Any], base: Optional["IncentivesPolicy"] = None) -> "IncentivesPolicy":
        """Unknown keys are rejected so a typo in a config file does not go unnoticed."""
        base = base or IncentivesPolicy()
        unknown = set(data) - set(_FLAGS)
        if unknown:
            raise ValueError(f"unknown incentives policy keys: {sorted(unknown)}")
        values = base.to_dict()
        for k, v in data.items():
            values[k] = _as_bool(v, k)
        return IncentivesPolicy(**values)

    @staticmethod
    def from_env(base: Optional["IncentivesPolicy"] = None, prefix: str = ENV_PREFIX) -> "IncentivesPolicy":
        base = base or IncentivesPolicy()
        values = base.to_dict()
        for flag in _FLAGS:
            raw = os.getenv(f"{prefix}{flag.upper()}")
            if raw is not None and raw.strip() != "":
                values[flag] = parse_bool(raw)
        return IncentivesPolicy(**values)

    @staticmethod
    def from_config(cfg: Config) -> "IncentivesPolicy":
        """`[incentives]` section of the ledger config, then INCENTIVES_* env."""
        return IncentivesPolicy.from_env(IncentivesPolicy.from_mapping(cfg.section("incentives")))


def _as_bool(v: Any, name: str) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        return parse_bool(v)
    if isinstance(v, int):
        return v != 0
    raise ValueError(f"{name} must be a boolean (got {v!r})")


__all__ = ["IncentivesPolicy", "ENV_PREFIX"]
