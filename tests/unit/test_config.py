from __future__ import annotations

import json
from pathlib import Path

import pytest

from ledgercore import config as lconfig
from ledgercore.errors import ConfigError

_ENV = (
    "LEDGER_DATA_DIR",
    "LEDGER_LOGS_DIR",
    "LEDGER_DB_URI",
    "LEDGER_LOG_LEVEL",
    "LEDGER_LOG_FORMAT",
    "LEDGER_LOG_FILE",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path: Path):
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg"))


def test_defaults_point_db_under_data_dir():
    cfg = lconfig.load()
    assert cfg.db.uri == f"sqlite:///{cfg.paths.data_dir / 'ledger.db'}"
    assert cfg.logging.level == "INFO"
    assert cfg.sections == {}


def test_file_then_env_then_overrides(tmp_path: Path, monkeypatch):
    f = tmp_path / "ledger.toml"
    f.write_text(
        '[db]\nuri = "memory://"\n\n[logging]\nlevel = "DEBUG"\nformat = "text"\n\n[incentives]\nenforce_monotonic_gas = true\n',
        encoding="utf-8",
    )
    cfg = lconfig.load(f)
    assert cfg.db.uri == "memory://"
    assert cfg.logging.level == "DEBUG"
    assert cfg.section("incentives") == {"enforce_monotonic_gas": True}

    monkeypatch.setenv("LEDGER_LOG_LEVEL", "WARNING")
    monkeypatch.setenv("LEDGER_DATA_DIR", str(tmp_path / "d"))
    cfg = lconfig.load(f, logging={"format": "json"})
    assert cfg.logging.level == "WARNING"
    assert cfg.logging.format == "json"
    assert cfg.paths.logs_dir == (tmp_path / "d" / "logs").resolve()


def test_json_file(tmp_path: Path):
    f = tmp_path / "ledger.json"
    f.write_text(json.dumps({"db": {"uri": "sqlite:///:memory:"}}), encoding="utf-8")
    assert lconfig.load(f).db.uri == "sqlite:///:memory:"


@pytest.mark.parametrize(
    "overrides",
    [
        {"db": {"uri": "postgres://x"}},
        {"logging": {"format": "xml"}},
        {"logging": {"level": "LOUD"}},
    ],
)
def test_validation(overrides):
    with pytest.raises(ConfigError):
        lconfig.load(**overrides)


def test_missing_and_unsupported_files(tmp_path: Path):
    with pytest.raises(ConfigError):
        lconfig.load(tmp_path / "absent.toml")
    bad = tmp_path / "ledger.ini"
    bad.write_text("[x]\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        lconfig.load(bad)


def test_parse_bool():
    assert lconfig.parse_bool(" Yes ")
    assert lconfig.parse_bool("on")
    assert not lconfig.parse_bool("0")
    assert not lconfig.parse_bool("")
