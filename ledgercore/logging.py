"""
ledgercore.logging
------------------

Structured logging with:
- JSON or concise colored text formats
- Context-local fields via `contextvars` (trace_id, component, command)
- Safe JSON serialization (datetimes, bytes → hex, Decimals/Paths → str)
- Simple setup on top of stdlib `logging`
- `trace_scope()` to stamp every record of one operation with a trace id

Usage
-----
    from ledgercore import logging as llog

    llog.configure(json=False, level="INFO")  # once at process start
    log = llog.get_logger(__name__)

    with llog.trace_scope():
        llog.bind(component="incentives")
        log.info("incentive registered", extra={"contract": "0xabc…"})

Environment
-----------
- LEDGER_LOG_FORMAT = json | text   (default: text on a TTY, json otherwise)
- LEDGER_LOG_LEVEL  = DEBUG | INFO | WARNING | ERROR

`configure_from_config()` applies the `[logging]` section of the ledger config
(where LEDGER_LOG_FILE also lands) instead of reading the environment here.
"""

from __future__ import annotations

import datetime as _dt
import io
import json
import logging
import os
import sys
import threading
import traceback
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, is_dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional

# ----------------------------
# Context
# ----------------------------

_LOG_CONTEXT: ContextVar[Dict[str, Any]] = ContextVar("_LOG_CONTEXT", default={})

DEFAULT_CONTEXT_KEYS = (
    "trace_id",
    "component",
    "command",
)

# Attributes every LogRecord carries; anything else came in through `extra=`.
_RECORD_ATTRS = frozenset(
    (
        "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
        "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName",
        "created", "msecs", "relativeCreated", "thread", "threadName",
        "processName", "process", "taskName", "message", "asctime",
    )
)


def context() -> Dict[str, Any]:
    """Return a *copy* of the active logging context."""
    return dict(_LOG_CONTEXT.get())


def bind(**fields: Any) -> None:
    """Merge fields into the active context."""
    cur = dict(_LOG_CONTEXT.get())
    cur.update({k: _coerce_value(v) for k, v in fields.items()})
    _LOG_CONTEXT.set(cur)


def clear_context() -> None:
    _LOG_CONTEXT.set({})


@contextmanager
def trace_scope(trace_id: Optional[str] = None):
    """
    Context manager that ensures a trace_id is present for the duration
    of the scope. Restores prior context on exit.
    """
    prev = dict(_LOG_CONTEXT.get())
    try:
        bind(trace_id=trace_id or short_uuid())
        yield
    finally:
        _LOG_CONTEXT.set(prev)


def short_uuid() -> str:
    return uuid.uuid4().hex[:12]


# ----------------------------
# JSON & Text formatters
# ----------------------------


def _coerce_value(v: Any) -> Any:
    if v is None or isinstance(v, (bool, int, float, str, list, dict)):
        return v
    if isinstance(v, (bytes, bytearray)):
        return v.hex()
    if isinstance(v, (Path, Decimal)):
        return str(v)
    if isinstance(v, _dt.datetime):
        if v.tzinfo is None:
            v = v.replace(tzinfo=_dt.timezone.utc)
        return v.isoformat()
    if isinstance(v, _dt.date):
        return v.isoformat()
    if is_dataclass(v) and not isinstance(v, type):
        return {k: _coerce_value(i) for k, i in asdict(v).items()}
    return str(v)


class _SafeJSONEncoder(json.JSONEncoder):
    def default(self, o: Any) -> Any:  # type: ignore[override]
        return _coerce_value(o)


def _utcnow_iso() -> str:
    return _dt.datetime.now(_dt.timezone.utc).isoformat(timespec="milliseconds")


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        k: v
        for k, v in record.__dict__.items()
        if not k.startswith("_") and k not in _RECORD_ATTRS
    }


_LEVEL_TO_INT = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "NOTSET": logging.NOTSET,
}

_RESET = "\x1b[0m"
_GREY = "\x1b[90m"
_CYAN = "\x1b[36m"
_LEVEL_COLOR = {
    logging.DEBUG: "\x1b[90m",
    logging.INFO: "\x1b[32m",
    logging.WARNING: "\x1b[33m",
    logging.ERROR: "\x1b[31m",
    logging.CRITICAL: "\x1b[1m\x1b[35m",
}


def _supports_color(stream: io.TextIOBase) -> bool:
    try:
        return stream.isatty() and os.environ.get("NO_COLOR") is None
    except (AttributeError, ValueError):
        return False


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": _utcnow_iso(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "pid": os.getpid(),
            "tid": threading.get_ident(),
        }
        payload.update(context())
        for k, v in _extras(record).items():
            payload.setdefault(k, _coerce_value(v))

        if record.exc_info:
            payload["err"] = "".join(
                traceback.format_exception(*record.exc_info)
            ).rstrip()

        return json.dumps(payload, cls=_SafeJSONEncoder, separators=(",", ":"))


class TextFormatter(logging.Formatter):
    """
    Human-friendly one-liner:
      2026-01-05T12:34:56.789+00:00 | INFO  | incentives.keeper | trace=abc123 | incentive registered contract=0x…
    With colors when supported.
    """

    def __init__(self, stream: io.TextIOBase):
        super().__init__()
        self._color = _supports_color(stream)

    def format(self, record: logging.LogRecord) -> str:
        ctx = context()
        ctx_str = " ".join(
            f"{k}={ctx[k]}" for k in DEFAULT_CONTEXT_KEYS if ctx.get(k) is not None
        )
        extras = " ".join(
            f"{k}={_coerce_value(v)}"
            for k, v in _extras(record).items()
            if k not in ctx
        )

        lvl = f"{record.levelname:<5}"
        name = record.name
        ts = _utcnow_iso()
        if self._color:
            lvl = f"{_LEVEL_COLOR.get(record.levelno, '')}{lvl}{_RESET}"
            name = f"{_CYAN}{name}{_RESET}"
            ts = f"{_GREY}{ts}{_RESET}"
            if ctx_str:
                ctx_str = f"{_GREY}{ctx_str}{_RESET}"

        line = f"{ts} | {lvl} | {name}"
        if ctx_str:
            line += f" | {ctx_str}"
        line += f" | {record.getMessage()}"
        if extras:
            line += f" {extras}"

        if record.exc_info:
            line += "\n" + "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return line


# ----------------------------
# Public setup API
# ----------------------------


def configure(
    *,
    json: Optional[bool] = None,
    level: str | int | None = None,
    stream: Optional[io.TextIOBase] = None,
    file_path: Optional[Path | str] = None,
    propagate_existing: bool = False,
) -> None:
    """
    Configure the root logger.

    Parameters
    ----------
    json : bool | None
        If None, determined by env LEDGER_LOG_FORMAT=(json|text) and TTY detection.
    level : str | int | None
        Minimum log level; None reads LEDGER_LOG_LEVEL (default INFO).
    stream : TextIO | None
        Stream for the console handler (default: the current sys.stderr).
    file_path : Path | str | None
        Optional file that additionally receives JSON logs.
    propagate_existing : bool
        If True, leave existing handlers in place.
    """
    stream = stream or sys.stderr
    chosen_json = _decide_json(json, stream)
    lvl = _coerce_level(level if level is not None else os.environ.get("LEDGER_LOG_LEVEL", "INFO"))

    root = logging.getLogger()
    root.setLevel(lvl)

    if not propagate_existing:
        for h in list(root.handlers):
            root.removeHandler(h)

    console = logging.StreamHandler(stream)
    console.setLevel(lvl)
    console.setFormatter(JSONFormatter() if chosen_json else TextFormatter(stream))
    root.addHandler(console)

    if file_path:
        p = Path(file_path).expanduser()
        p.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(p, encoding="utf-8")
        fh.setLevel(lvl)
        fh.setFormatter(JSONFormatter())
        root.addHandler(fh)


def configure_from_config(
    cfg: Any,
    *,
    level: str | int | None = None,
    stream: Optional[io.TextIOBase] = None,
) -> None:
    """
    Configure logging from `ledgercore.config.Config`: format, level and an
    optional JSON file under cfg.paths.logs_dir. `level` overrides the
    configured level.
    """
    log_cfg = cfg.logging
    fmt = (log_cfg.format or "").strip().lower()
    file_path = Path(cfg.paths.logs_dir) / log_cfg.file if log_cfg.file else None
    configure(
        json=True if fmt == "json" else False if fmt == "text" else None,
        level=level if level is not None else log_cfg.level,
        stream=stream,
        file_path=file_path,
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or "ledger")


# ----------------------------
# Internals
# ----------------------------


def _coerce_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return _LEVEL_TO_INT.get(level.strip().upper(), logging.INFO)


def _decide_json(json_flag: Optional[bool], stream: io.TextIOBase) -> bool:
    if json_flag is not None:
        return json_flag
    env = os.environ.get("LEDGER_LOG_FORMAT", "").strip().lower()
    if env in ("json", "text"):
        return env == "json"
    # Default: JSON in non-tty (services), text when interactive TTY
    return not _supports_color(stream)


__all__ = [
    "configure",
    "configure_from_config",
    "get_logger",
    "JSONFormatter",
    "TextFormatter",
    "bind",
    "clear_context",
    "context",
    "trace_scope",
    "short_uuid",
]
