from __future__ import annotations

import threading

from rich.console import Console

from .alerts import deliver
from .config import Settings
from .harvest import make_harvester
from .renderer import Renderer
from .scheduler import Scheduler


console = Console()


def make_scheduler(
    settings: Settings,
    channel: str = "stdout",
    renderer: Renderer | None = None,
    stop: threading.Event | None = None,
) -> Scheduler:
    harvester = make_harvester(settings, renderer=renderer)
    return Scheduler(
        settings.accounts,
        harvester.harvest,
        interval_sec=settings.interval_sec,
        workers=settings.workers,
        fail_fast=settings.fail_fast,
        stop=stop,
        on_report=lambda report: deliver(settings, report, channel=channel),
    )


def harvest_one(settings: Settings, handle: str, renderer: Renderer | None = None) -> dict[str, int]:
    harvester = make_harvester(settings, renderer=renderer)
    console.print(f"[bold]Scraping account[/bold] @{handle}...")
    return harvester.harvest(handle)
