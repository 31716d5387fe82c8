from __future__ import annotations

import signal
import sys
import threading
from typing import Optional
import typer
from rich.console import Console
from rich.markup import escape

from .accounts import parse_accounts
from .alerts import CHANNELS
from .config import Settings, load_settings
from .errors import HarvestError
from .extract import count_tickers
from .pipeline import harvest_one, make_scheduler


app = typer.Typer(add_completion=False, help="Ticker Tally - count cashtag mentions across tracked X/Twitter accounts")
console = Console()

accounts_app = typer.Typer(help="Manage tracked accounts")
run_app = typer.Typer(help="Run the aggregation scheduler")
app.add_typer(accounts_app, name="accounts")
app.add_typer(run_app, name="run")


def _settings(
    env_file: Optional[str],
    accounts: Optional[str] = None,
    workers: Optional[int] = None,
    fail_fast: Optional[bool] = None,
    interval_sec: Optional[int] = None,
) -> Settings:
    settings = load_settings(env_file)
    updates = {}
    if accounts:
        updates["accounts"] = parse_accounts(accounts)
    if workers is not None:
        updates["workers"] = workers
    if fail_fast is not None:
        updates["fail_fast"] = fail_fast
    if interval_sec is not None:
        updates["interval_sec"] = interval_sec
    return settings.model_copy(update=updates) if updates else settings


def _check_channel(channel: str) -> str:
    channel = (channel or "stdout").strip().lower()
    if channel not in CHANNELS:
        raise typer.BadParameter(f"channel must be one of {'|'.join(CHANNELS)}")
    return channel


def _install_stop_handlers(stop: threading.Event) -> None:
    def _handle(signum, frame):
        console.print("\n[yellow]Stopping after the current step...[/yellow]")
        stop.set()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)


@accounts_app.command("list")
def accounts_list(
    env_file: Optional[str] = typer.Option(None, help="Path to .env"),
):
    for handle in load_settings(env_file).accounts:
        typer.echo(handle)


@app.command()
def extract(
    text: Optional[str] = typer.Argument(None, help="Text to scan (reads stdin when omitted)"),
    file: Optional[str] = typer.Option(None, "--file", help="Read text from this file instead"),
):
    """Count cashtag mentions in a piece of text."""
    if file:
        with open(file, "r", encoding="utf-8") as f:
            text = f.read()
    elif text is None:
        text = sys.stdin.read()
    counts = count_tickers(text)
    if not counts:
        typer.echo("No ticker mentions found.")
        return
    for t, n in counts.items():
        typer.echo(f"{t}\t{n}")


@app.command()
def harvest(
    handle: str = typer.Argument(..., help="Account handle, with or without @"),
    env_file: Optional[str] = typer.Option(None, help="Path to .env"),
):
    """Harvest a single account once and print its ticker counts."""
    settings = _settings(env_file)
    try:
        counts = harvest_one(settings, handle.lstrip("@"))
    except HarvestError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)
    for t, n in counts.items():
        typer.echo(f"{t}\t{n}")


@run_app.command("once")
def run_once(
    accounts: Optional[str] = typer.Option(None, help="Comma-separated handles (overrides config)"),
    channel: str = typer.Option("stdout", help="stdout|telegram|discord|auto"),
    workers: Optional[int] = typer.Option(None, min=1, help="Concurrent browser sessions"),
    fail_fast: Optional[bool] = typer.Option(None, "--fail-fast/--keep-going", help="Abort the run on the first failed account"),
    env_file: Optional[str] = typer.Option(None, help="Path to .env"),
):
    settings = _settings(env_file, accounts=accounts, workers=workers, fail_fast=fail_fast)
    stop = threading.Event()
    _install_stop_handlers(stop)
    scheduler = make_scheduler(settings, channel=_check_channel(channel), stop=stop)
    try:
        report = scheduler.run_once()
    except HarvestError as e:
        console.print(f"[red]Run aborted:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)
    if settings.accounts and not report.sources:
        raise typer.Exit(code=1)


@run_app.command("daemon")
def run_daemon(
    accounts: Optional[str] = typer.Option(None, help="Comma-separated handles (overrides config)"),
    interval_sec: Optional[int] = typer.Option(None, min=0, help="Wait between runs (seconds)"),
    max_runs: Optional[int] = typer.Option(None, min=1, help="Stop after this many runs"),
    channel: str = typer.Option("stdout", help="stdout|telegram|discord|auto"),
    workers: Optional[int] = typer.Option(None, min=1, help="Concurrent browser sessions"),
    fail_fast: Optional[bool] = typer.Option(None, "--fail-fast/--keep-going", help="Abort a run on its first failed account"),
    env_file: Optional[str] = typer.Option(None, help="Path to .env"),
):
    settings = _settings(
        env_file, accounts=accounts, workers=workers, fail_fast=fail_fast, interval_sec=interval_sec
    )
    stop = threading.Event()
    _install_stop_handlers(stop)
    scheduler = make_scheduler(settings, channel=_check_channel(channel), stop=stop)
    console.print(f"Running every {settings.interval_sec}s; accounts={settings.accounts}")
    runs = scheduler.run_forever(max_runs=max_runs)
    console.print(f"Stopped after {runs} runs.")
