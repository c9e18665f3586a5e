"""
ledgercore configuration loader.

Layered config with clear precedence:
    1) Explicit overrides passed to `load()` (highest)
    2) Environment variables (LEDGER_*)
    3) Config file (TOML or JSON)
    4) Built-in defaults (lowest)

Typed dataclasses with validation and OS-specific default paths
(XDG / APPDATA / ~/Library).

This module configures only substrate concerns:
  - data & logs paths
  - database URI
  - logging level / format / file

Sections the substrate does not know (e.g. `[incentives]`) are kept verbatim in
`Config.sections` so domain modules can read their own settings from the same
file (see `incentives.config.IncentivesPolicy.from_config`).
"""

from __future__ import annotations

import json
import os
import platform
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import ConfigError

DEFAULT_DB_FILENAME = "ledger.db"
DEFAULT_LOG_LEVEL = "INFO"

_KNOWN_SECTIONS = ("paths", "db", "logging")


# ------------------------------
# Defaults & helpers
# ------------------------------

def _expand(p: str | Path) -> Path:
    return Path(p).expanduser().resolve()


def _os_default_data_root() -> Path:
    system = platform.system()
    if system == "Darwin":
        return _expand("~/Library/Application Support")
    if system == "Windows":
        appdata = os.environ.get("APPDATA") or os.environ.get("LOCALAPPDATA")
        return _expand(appdata) if appdata else _expand("~\\AppData\\Roaming")
    xdg = os.environ.get("XDG_DATA_HOME")
    return _expand(xdg) if xdg else _expand("~/.local/share")


def _default_data_dir() -> Path:
    return _os_default_data_root() / "incentives-ledger"


def parse_bool(v: str) -> bool:
    return v.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


# ------------------------------
# Typed configuration model
# ------------------------------

@dataclass
class PathsConfig:
    data_dir: Path
    logs_dir: Path

    @staticmethod
    def defaults() -> "PathsConfig":
        root = _default_data_dir()
        return PathsConfig(data_dir=root, logs_dir=root / "logs")


@dataclass
class DBConfig:
    uri: str  # e.g., sqlite:////home/user/.local/share/incentives-ledger/ledger.db

    @staticmethod
    def sqlite_default(paths: PathsConfig) -> "DBConfig":
        return DBConfig(uri=f"sqlite:///{paths.data_dir / DEFAULT_DB_FILENAME}")


@dataclass
class LoggingConfig:
    level: str = DEFAULT_LOG_LEVEL
    format: Optional[str] = None  # "json" | "text" | None (auto)
    file: Optional[str] = None    # relative to paths.logs_dir


@dataclass
class Config:
    paths: PathsConfig
    db: DBConfig
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    sections: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def section(self, name: str) -> Dict[str, Any]:
        return dict(self.sections.get(name) or {})


# ------------------------------
# File loader (TOML / JSON)
# ------------------------------

def load_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError("config file not found", path=str(path))
    suffix = path.suffix.lower()
    with path.open("rb") as f:
        if suffix in {".toml", ".tml"}:
            return tomllib.load(f)
        if suffix == ".json":
            return json.load(f)
    raise ConfigError("unsupported config format; use .toml or .json", path=str(path), suffix=suffix)


def merge_dict(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    """Nested dict merge: values in b override a."""
    out = dict(a)
    for k, v in b.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = merge_dict(out[k], v)
        else:
            out[k] = v
    return out


# ------------------------------
# Main loader
# ------------------------------

def load(config_file: Optional[str | Path] = None, **overrides: Any) -> Config:
    """
    Load the ledger configuration.

    Precedence: overrides > env > file > defaults.

    Parameters
    ----------
    config_file : str | Path | None
        Optional path to a TOML or JSON file with keys:
          paths:   { data_dir, logs_dir }
          db:      { uri }
          logging: { level, format, file }
        plus any domain sections (kept in `Config.sections`).

    overrides : Any
        Keyword overrides, e.g. load(db={"uri": "memory://"})
    """
    paths = PathsConfig.defaults()
    base: Dict[str, Any] = {
        "paths": {"data_dir": str(paths.data_dir), "logs_dir": str(paths.logs_dir)},
        "db": {"uri": ""},
        "logging": asdict(LoggingConfig()),
    }

    if config_file:
        base = merge_dict(base, load_file(_expand(config_file)))

    if "LEDGER_DATA_DIR" in os.environ:
        data_dir = _expand(os.environ["LEDGER_DATA_DIR"])
        base["paths"]["data_dir"] = str(data_dir)
        base["paths"]["logs_dir"] = str(data_dir / "logs")
    if "LEDGER_LOGS_DIR" in os.environ:
        base["paths"]["logs_dir"] = str(_expand(os.environ["LEDGER_LOGS_DIR"]))
    if "LEDGER_DB_URI" in os.environ:
        base["db"]["uri"] = os.environ["LEDGER_DB_URI"].strip()
    if "LEDGER_LOG_LEVEL" in os.environ:
        base["logging"]["level"] = os.environ["LEDGER_LOG_LEVEL"].strip()
    if "LEDGER_LOG_FORMAT" in os.environ:
        base["logging"]["format"] = os.environ["LEDGER_LOG_FORMAT"].strip().lower()
    if "LEDGER_LOG_FILE" in os.environ:
        base["logging"]["file"] = os.environ["LEDGER_LOG_FILE"].strip() or None

    if overrides:
        base = merge_dict(base, overrides)

    cfg = Config(
        paths=PathsConfig(
            data_dir=_expand(base["paths"]["data_dir"]),
            logs_dir=_expand(base["paths"]["logs_dir"]),
        ),
        db=DBConfig(uri=str(base["db"].get("uri") or "")),
        logging=LoggingConfig(
            level=str(base["logging"].get("level") or DEFAULT_LOG_LEVEL),
            format=base["logging"].get("format"),
            file=base["logging"].get("file"),
        ),
        sections={k: dict(v) for k, v in base.items() if k not in _KNOWN_SECTIONS and isinstance(v, dict)},
    )

    if not cfg.db.uri:
        cfg.db = DBConfig.sqlite_default(cfg.paths)

    _validate_config(cfg)
    return cfg


def _validate_config(cfg: Config) -> None:
    uri = cfg.db.uri
    if not (uri.startswith("sqlite:///") or uri.startswith("memory://") or uri.endswith(".db")):
        raise ConfigError("unsupported DB URI scheme; use sqlite:///path/to.db or memory://", uri=uri)
    if cfg.logging.format not in (None, "json", "text"):
        raise ConfigError("logging.format must be 'json' or 'text'", format=cfg.logging.format)
    if cfg.logging.level.upper() not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}:
        raise ConfigError("unknown logging.level", level=cfg.logging.level)


__all__ = [
    "Config",
    "PathsConfig",
    "DBConfig",
    "LoggingConfig",
    "load",
    "load_file",
    "merge_dict",
    "parse_bool",
]
