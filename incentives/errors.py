from __future__ import annotations
# incentives/errors.py
"""
Error types for the incentives module. These are lightweight, serializable,
and safe to surface in logs and CLI output.

Not-found is *not* an error here: getters return `(zero_value, False)`.
Corrupt stored records raise `ledgercore.errors.DeserializationError`.

Exports:
- IncentivesError (base)
- InvalidIncentive
- IncentiveAlreadyRegistered
- IncentiveNotRegistered
- AllocationExceeded
- NonMonotonicGas
- NegativeAllocationMeter
"""

import json
from typing import Any, Dict, Mapping, Optional


class IncentivesError(Exception):
    """Base class for incentives domain errors."""

    code: str = "INCENTIVES_ERROR"

    def __init__(self, message: str = "", *, details: Optional[Mapping[str, Any]] = None) -> None:
        self.message = message or self.__class__.__name__
        self.details = dict(details or {})
        super().__init__(self.__str__())

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.details:
            packed = json.dumps(self.details, sort_keys=True, separators=(",", ":"), default=str)
            return f"{self.code}: {self.message} [{packed}]"
        return f"{self.code}: {self.message}"


class InvalidIncentive(IncentivesError):
    """Incentive failed stateless validation (address, allocations, epochs)."""
    code = "INCENTIVES_INVALID"

    def __init__(
        self,
        message: str = "invalid incentive",
        *,
        contract: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        if contract is not None:
            d.setdefault("contract", contract)
        super().__init__(message, details=d)


class IncentiveAlreadyRegistered(IncentivesError):
    code = "INCENTIVES_ALREADY_REGISTERED"

    def __init__(self, *, contract: str, message: str = "incentive already registered") -> None:
        super().__init__(message, details={"contract": contract})


class IncentiveNotRegistered(IncentivesError):
    code = "INCENTIVES_NOT_REGISTERED"

    def __init__(self, *, contract: str, message: str = "incentive not registered") -> None:
        super().__init__(message, details={"contract": contract})


class AllocationExceeded(IncentivesError):
    """The total allocation for a denomination would exceed 100%."""
    code = "INCENTIVES_ALLOCATION_EXCEEDED"

    def __init__(
        self,
        *,
        denom: str,
        current: Any,
        requested: Any,
        message: str = "total allocation for denom exceeds 100%",
    ) -> None:
        super().__init__(
            message,
            details={"denom": denom, "current": str(current), "requested": str(requested)},
        )


class NonMonotonicGas(IncentivesError):
    """Raised only when `IncentivesPolicy.enforce_monotonic_gas` is on."""
    code = "INCENTIVES_NON_MONOTONIC_GAS"

    def __init__(self, *, contract: str, stored: int, requested: int) -> None:
        super().__init__(
            "total gas cannot decrease",
            details={"contract": contract, "stored": int(stored), "requested": int(requested)},
        )


class NegativeAllocationMeter(IncentivesError):
    """Raised only when `IncentivesPolicy.forbid_negative_meters` is on."""
    code = "INCENTIVES_NEGATIVE_METER"

    def __init__(self, *, denom: str, current: Any, decrement: Any) -> None:
        super().__init__(
            "allocation meter would become negative",
            details={"denom": denom, "current": str(current), "decrement": str(decrement)},
        )


__all__ = [
    "IncentivesError",
    "InvalidIncentive",
    "IncentiveAlreadyRegistered",
    "IncentiveNotRegistered",
    "AllocationExceeded",
    "NonMonotonicGas",
    "NegativeAllocationMeter",
]
