"""
ledgercore.errors
-----------------

A small, consistent error system for ledger infrastructure.

Design goals
------------
- One root `LedgerError` with machine-friendly `code` and optional `data`.
- Concrete subclasses for the infrastructure domains (config, codec, db, state).
- Non-invasive helpers to enrich errors with contextual fields.
- Safe JSON representation (`to_dict`) suitable for logs and CLI output.
- Clear separation of *retryable* vs *permanent* failures.

Domain modules define their own error families on top of plain exceptions
(see `incentives.errors`); this module covers what the substrate raises.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

# ---------------------------------------------------------------------------
# Error codes & classes
# ---------------------------------------------------------------------------


class Severity(IntEnum):
    """Optional severity hint for operators/metrics."""

    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50


class CoreErrorCode(str, Enum):
    # Generic
    INTERNAL = "LEDGER/INTERNAL"

    # Config / environment / startup
    CONFIG = "LEDGER/CONFIG"

    # Encoding / decoding
    SERIALIZATION = "LEDGER/SERIALIZATION"
    DESERIALIZATION = "LEDGER/DESERIALIZATION"

    # DB / storage
    DB = "LEDGER/DB"

    # Cross-entity state
    GENESIS = "LEDGER/GENESIS"
    STATE_INVARIANT = "LEDGER/STATE_INVARIANT"


@dataclass(eq=False)
class LedgerError(Exception):
    """
    Root error for ledger infrastructure.

    Attributes
    ----------
    code: str
        Machine-stable error code (see CoreErrorCode).
    message: str
        Human hint suitable for logs; avoid leaking secrets.
    data: dict
        Optional machine data (keys, denoms, sizes). Must be JSON-serializable.
    severity: Severity
        Optional severity hint (default ERROR).
    retryable: bool
        Whether the operation may succeed on retry without changing inputs.
    cause: Optional[BaseException]
        Wrapped original exception; not included in equality comparison.
    """

    code: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    severity: Severity = Severity.ERROR
    retryable: bool = False
    cause: Optional[BaseException] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        super().__init__(f"{getattr(self.code, 'value', self.code)}: {self.message}")

    # ---------------- Public API ----------------

    def with_context(self, **ctx: Any) -> "LedgerError":
        """Return a *new* error with extra context merged (does not mutate)."""
        err = self._clone()
        err.data = {**self.data, **_jsonmap(ctx)}
        return err

    def with_cause(self, exc: BaseException) -> "LedgerError":
        """Attach/replace the causal exception (returns a new instance)."""
        err = self._clone()
        err.data = dict(self.data)
        err.cause = exc
        err.__cause__ = exc
        return err

    def _clone(self) -> "LedgerError":
        # Subclasses have bespoke __init__ signatures; copy state without calling them.
        err = type(self).__new__(type(self))
        err.__dict__.update(self.__dict__)
        err.args = self.args
        return err

    def to_dict(self, include_cause: bool = False) -> Dict[str, Any]:
        """JSON-safe shape suitable for logs/CLI output."""
        out = {
            "code": str(getattr(self.code, "value", self.code)),
            "message": self.message,
            "data": _coerce_json(self.data),
            "severity": int(self.severity),
            "retryable": self.retryable,
        }
        if include_cause and self.cause is not None:
            out["cause"] = {
                "type": type(self.cause).__name__,
                "message": str(self.cause),
            }
        return out

    def __str__(self) -> str:  # pragma: no cover - human formatting
        code = getattr(self.code, "value", self.code)
        parts = [f"{code}: {self.message}"]
        if self.data:
            preview = ", ".join(f"{k}={_preview(v)}" for k, v in self.data.items())
            parts.append(f"[{preview}]")
        return " ".join(parts)


# Concrete subclasses (thin wrappers for ergonomics)
class InternalError(LedgerError):
    def __init__(self, message="internal error", **data: Any) -> None:
        super().__init__(
            code=CoreErrorCode.INTERNAL, message=message, data=_jsonmap(data)
        )


class ConfigError(LedgerError):
    def __init__(self, message="invalid configuration", **data: Any) -> None:
        super().__init__(
            code=CoreErrorCode.CONFIG,
            message=message,
            data=_jsonmap(data),
            retryable=False,
        )


class SerializationError(LedgerError):
    def __init__(self, message="serialization failed", **data: Any) -> None:
        super().__init__(
            code=CoreErrorCode.SERIALIZATION, message=message, data=_jsonmap(data)
        )


class DeserializationError(LedgerError):
    """A stored value failed to decode. Stored data is corrupt; never retried."""

    def __init__(self, message="deserialization failed", **data: Any) -> None:
        super().__init__(
            code=CoreErrorCode.DESERIALIZATION,
            message=message,
            data=_jsonmap(data),
            severity=Severity.CRITICAL,
            retryable=False,
        )


class DatabaseError(LedgerError):
    def __init__(
        self, message="database error", retryable: bool = True, **data: Any
    ) -> None:
        super().__init__(
            code=CoreErrorCode.DB,
            message=message,
            data=_jsonmap(data),
            retryable=retryable,
        )


class GenesisError(LedgerError):
    def __init__(self, message="invalid genesis", **data: Any) -> None:
        super().__init__(
            code=CoreErrorCode.GENESIS,
            message=message,
            data=_jsonmap(data),
            retryable=False,
        )


class StateInvariant(LedgerError):
    def __init__(self, message="state invariant broken", **data: Any) -> None:
        super().__init__(
            code=CoreErrorCode.STATE_INVARIANT,
            message=message,
            data=_jsonmap(data),
            severity=Severity.CRITICAL,
            retryable=False,
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

T = TypeVar("T", bound=LedgerError)


def wrap(exc: BaseException, *, as_: Type[T] = InternalError, **ctx: Any) -> T:
    """
    Wrap any exception into a LedgerError subclass, attaching context.
    If `exc` is already a LedgerError, returns a context-enriched copy.
    """
    if isinstance(exc, LedgerError):
        return exc.with_context(**ctx)  # type: ignore[return-value]
    err = as_(str(exc) or type(exc).__name__, **ctx)  # type: ignore[call-arg]
    return err.with_cause(exc)  # type: ignore[return-value]


def _jsonmap(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: _coerce_json(v) for k, v in data.items()}


def _coerce_json(v: Any) -> Any:
    # Keep JSON primitives; stringify the rest; hex-encode bytes.
    if v is None or isinstance(v, (bool, int, float, str)):
        return v
    if isinstance(v, (bytes, bytearray)):
        return v.hex()
    if isinstance(v, (list, tuple)):
        return [_coerce_json(i) for i in v]
    if isinstance(v, dict):
        return {str(k): _coerce_json(i) for k, i in v.items()}
    return str(v)


def _preview(v: Any, limit: int = 96) -> str:
    s = str(_coerce_json(v))
    return s if len(s) <= limit else s[:limit] + "…"


__all__ = [
    "Severity",
    "CoreErrorCode",
    "LedgerError",
    "InternalError",
    "ConfigError",
    "SerializationError",
    "DeserializationError",
    "DatabaseError",
    "GenesisError",
    "StateInvariant",
    "wrap",
]
