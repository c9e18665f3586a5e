"""
Version helpers for ledgercore.

- Exposes __version__ (PEP 440–compatible).
- LEDGER_VERSION env var is an authoritative override (useful for packaging
  pipelines); otherwise the installed distribution metadata is used, falling
  back to DEFAULT_VERSION for source checkouts.
"""

from __future__ import annotations

import os
import re
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

DEFAULT_VERSION = "0.1.0"
DIST_NAME = "incentives-ledger"

_SEMVER = re.compile(
    r"^v?(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)(?:[-+.].*)?$"
)


def _detect() -> str:
    env = os.environ.get("LEDGER_VERSION", "").strip()
    if env and _SEMVER.match(env):
        return env.lstrip("v")
    try:
        return _pkg_version(DIST_NAME)
    except PackageNotFoundError:
        return DEFAULT_VERSION


__version__ = _detect()

__all__ = ["__version__", "DEFAULT_VERSION", "DIST_NAME"]
