"""
ledgercore package.

Deterministic substrate for ledger modules: key–value persistence, canonical
encoding, fixed-point decimals, errors, structured logging and configuration.
Domain modules (e.g. `incentives`) build keepers on top of it.

Only re-exports the version here to keep import-time side effects near zero.
"""

from __future__ import annotations

from .version import __version__


def get_version() -> str:
    """Return the semantic version string for this package."""
    return __version__


__all__ = ["__version__", "get_version"]
