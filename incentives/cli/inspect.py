from __future__ import annotations

"""
incentives.cli.inspect
----------------------

Inspect and maintain the incentives ledger stored in a ledger KV database:
- list registered incentives, or show one by contract
- list allocation meters
- check that every meter matches the sum of its allocations
- export / import genesis JSON

The database defaults to `db.uri` from the ledger config (LEDGER_DB_URI or the
config file); pass --db to override. Logging follows the `[logging]` section
and LEDGER_LOG_* variables, with --log-level overriding the level. Log lines go
to stderr, so --json output on stdout stays parseable.

Examples
--------
# Table of incentives
python -m incentives.cli.inspect list --db sqlite:///ledger.db

# One incentive as JSON
python -m incentives.cli.inspect show 0x5fbdb2315678afecb367f032d93f642f64180aa3 --json

# Meter invariant (exit code 1 on mismatch)
python -m incentives.cli.inspect check

# Genesis round trip
python -m incentives.cli.inspect export-genesis --out genesis.json
python -m incentives.cli.inspect import-genesis genesis.json --db sqlite:///fresh.db
"""

import json
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, NoReturn, Optional

import typer

from ledgercore import config as lconfig
from ledgercore import logging as llog
from ledgercore.db import open_kv
from ledgercore.errors import LedgerError
from ledgercore.utils.bytes import is_hex_address
from ledgercore.utils.dec import dec_str

from ..config import IncentivesPolicy
from ..genesis import GenesisState, export_genesis, init_genesis
from ..keeper import Keeper, allocation_meter_discrepancies
from ..types.incentive import Incentive

app = typer.Typer(
    name="incentives-inspect",
    add_completion=False,
    no_args_is_help=True,
    help="Inspect incentives and allocation meters in a ledger database.",
)

_DB_HELP = "Ledger DB URI (e.g., sqlite:///ledger.db). Defaults to the ledger config."

# -------------------- utils --------------------

def _width(default: int = 100) -> int:
    try:
        return shutil.get_terminal_size((default, 20)).columns
    except (OSError, ValueError):
        return default


def _pad(s: str, n: int) -> str:
    if len(s) <= n:
        return s + " " * (n - len(s))
    if n <= 4:
        return s[:n]
    return s[: n - 1] + "…"


def _echo_json(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2, sort_keys=True))


def _fail(msg: str, code: int = 2) -> NoReturn:
    typer.secho(msg, fg=typer.colors.RED, err=True)
    raise typer.Exit(code)


@contextmanager
def _open_keeper(db: Optional[str], *, create: bool = False) -> Iterator[Keeper]:
    try:
        cfg = lconfig.load()
        policy = IncentivesPolicy.from_config(cfg)
    except (LedgerError, ValueError) as e:
        _fail(f"config error: {e}")
    uri = db or cfg.db.uri
    try:
        kv = open_kv(uri, create=create)
    except (LedgerError, ValueError, FileNotFoundError) as e:
        _fail(f"cannot open database: {e}")
    try:
        yield Keeper(kv, policy=policy)
    finally:
        kv.close()


def _fmt_allocations(inc: Incentive) -> str:
    return ",".join(f"{dec_str(al.amount).rstrip('0').rstrip('.')}{al.denom}" for al in inc.allocations) or "-"


# -------------------- printing --------------------

def _print_incentives_table(rows: List[Incentive]) -> None:
    if not rows:
        typer.echo("No incentives registered.")
        return
    width = _width()
    cols = [
        ("CONTRACT", 42, lambda r: r.contract),
        ("EPOCHS", 7, lambda r: str(r.epochs)),
        ("START", 11, lambda r: str(r.start_time)),
        ("TOTAL_GAS", 14, lambda r: str(r.total_gas)),
        ("ALLOCATIONS", 24, _fmt_allocations),
    ]
    used = sum(w for _, w, _ in cols) + len(cols)
    if used < width:
        cols[-1] = ("ALLOCATIONS", cols[-1][1] + width - used, cols[-1][2])
    typer.secho(" ".join(_pad(n, w) for n, w, _ in cols), bold=True)
    for r in rows:
        typer.echo(" ".join(_pad(fn(r), w) for _, w, fn in cols))


def _print_meters_table(rows: List[Dict[str, str]]) -> None:
    if not rows:
        typer.echo("No allocation meters.")
        return
    name_w = max(12, max(len(r["denom"]) for r in rows))
    typer.secho(_pad("DENOM", name_w) + " " + "AMOUNT", bold=True)
    for r in rows:
        typer.echo(_pad(r["denom"], name_w) + " " + r["amount"])


# -------------------- commands --------------------

@app.command("list")
def cmd_list(
    db: Optional[str] = typer.Option(None, "--db", help=_DB_HELP),
    active: bool = typer.Option(False, "--active", help="Only incentives with epochs remaining."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """List incentives in contract-address order."""
    with _open_keeper(db) as keeper:
        rows = keeper.get_all_incentives()
    if active:
        rows = [r for r in rows if r.is_active()]
    if json_out:
        _echo_json([r.to_dict() for r in rows])
        return
    _print_incentives_table(rows)


@app.command("show")
def cmd_show(
    contract: str = typer.Argument(..., help="Contract address (0x-prefixed hex)."),
    db: Optional[str] = typer.Option(None, "--db", help=_DB_HELP),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    if not is_hex_address(contract):
        _fail(f"not a contract address: {contract}")
    with _open_keeper(db) as keeper:
        inc, found = keeper.get_incentive(contract)
    if not found:
        _fail(f"no incentive registered for {contract}", code=1)
    if json_out:
        _echo_json(inc.to_dict())
        return
    typer.secho(inc.contract, bold=True)
    typer.echo(f"  epochs:     {inc.epochs}")
    typer.echo(f"  start_time: {inc.start_time}")
    typer.echo(f"  total_gas:  {inc.total_gas}")
    typer.echo("  allocations:")
    for al in inc.allocations:
        typer.echo(f"    {al.denom}: {dec_str(al.amount)}")


@app.command("meters")
def cmd_meters(
    db: Optional[str] = typer.Option(None, "--db", help=_DB_HELP),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """List allocation meters in denom order."""
    with _open_keeper(db) as keeper:
        rows = [m.to_dict() for m in keeper.get_all_allocation_meters()]
    if json_out:
        _echo_json(rows)
        return
    _print_meters_table(rows)


@app.command("check")
def cmd_check(
    db: Optional[str] = typer.Option(None, "--db", help=_DB_HELP),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Exit 1 when any allocation meter disagrees with its incentives."""
    with _open_keeper(db) as keeper:
        rows = allocation_meter_discrepancies(keeper)
    if json_out:
        _echo_json({"ok": not rows, "discrepancies": rows})
    elif not rows:
        typer.secho("Allocation meters consistent.", fg=typer.colors.GREEN)
    else:
        typer.secho(f"{len(rows)} allocation meter(s) inconsistent:", fg=typer.colors.RED, bold=True)
        for r in rows:
            typer.echo(f"  {r['denom']}: stored={r['stored']} expected={r['expected']}")
    if rows:
        raise typer.Exit(1)


@app.command("export-genesis")
def cmd_export_genesis(
    db: Optional[str] = typer.Option(None, "--db", help=_DB_HELP),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Write to this file instead of stdout."),
    json_out: bool = typer.Option(False, "--json", help="Report the written file as JSON (stdout output is always JSON)."),
) -> None:
    with _open_keeper(db) as keeper:
        state = export_genesis(keeper)
    doc = state.to_dict()
    if out is None:
        _echo_json(doc)
        return
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(doc, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    if json_out:
        _echo_json({"written": str(out), "incentives": len(state.incentives)})
    else:
        typer.echo(f"Wrote {len(state.incentives)} incentive(s) to {out}")


@app.command("import-genesis")
def cmd_import_genesis(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Genesis JSON file."),
    db: Optional[str] = typer.Option(None, "--db", help=_DB_HELP),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    try:
        doc = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        _fail(f"invalid JSON in {path}: {e}")
    try:
        state = GenesisState.from_dict(doc)
        with _open_keeper(db, create=True) as keeper:
            init_genesis(keeper, state)
            meters = [m.to_dict() for m in keeper.get_all_allocation_meters()]
    except LedgerError as e:
        if json_out:
            _echo_json({"ok": False, "error": e.to_dict()})
            raise typer.Exit(1)
        _fail(f"genesis rejected: {e}", code=1)
    if json_out:
        _echo_json({"ok": True, "incentives": len(state.incentives), "allocation_meters": meters})
        return
    typer.echo(f"Imported {len(state.incentives)} incentive(s); {len(meters)} allocation meter(s) set.")


@app.callback()
def main(
    ctx: typer.Context,
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override the configured log level (logs go to stderr)."),
) -> None:
    try:
        cfg = lconfig.load()
    except LedgerError as e:
        _fail(f"config error: {e}")
    llog.configure_from_config(cfg, level=log_level)
    ctx.with_resource(llog.trace_scope())
    llog.bind(component="incentives-inspect", command=ctx.invoked_subcommand)


if __name__ == "__main__":
    app()
