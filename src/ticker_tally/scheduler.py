from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
import math
import threading
import time
from typing import Callable, Optional

from rich.console import Console
from rich.markup import escape

from .alerts import send_stdout
from .models import HarvestFailure, RunReport


console = Console()

HarvestFn = Callable[[str, Optional[threading.Event]], dict[str, int]]


def merge_counts(tally: dict[str, int], counts: dict[str, int]) -> dict[str, int]:
    """Add ``counts`` into ``tally`` in place and return it."""
    for t, n in counts.items():
        if n <= 0:
            continue
        tally[t] = tally.get(t, 0) + n
    return tally


def elapsed_minutes(start: float, now: float) -> int:
    # Halves round up, unlike round().
    return int(math.floor((now - start) / 60 + 0.5))


@dataclass
class RunContext:
    """State owned by a single scheduled run."""

    run: int
    started: float
    tally: dict[str, int] = field(default_factory=dict)
    sources: list[str] = field(default_factory=list)
    failures: list[HarvestFailure] = field(default_factory=list)
    cancelled: bool = False

    def merge(self, source: str, counts: dict[str, int]) -> None:
        merge_counts(self.tally, counts)
        self.sources.append(source)

    def fail(self, source: str, err: Exception) -> HarvestFailure:
        f = HarvestFailure(
            source=source,
            phase=getattr(err, "phase", "harvest"),
            message=getattr(err, "message", None) or str(err),
        )
        self.failures.append(f)
        return f


class Scheduler:
    """Visits every source, tallies ticker mentions, reports, then waits.

    The wait between runs is measured from the end of one run's report to the
    start of the next. Setting `stop` ends the loop at the next source, scroll
    cycle or interval wait.
    """

    def __init__(
        self,
        sources: list[str],
        harvest: HarvestFn,
        interval_sec: float = 15 * 60,
        workers: int = 1,
        fail_fast: bool = False,
        clock: Callable[[], float] = time.monotonic,
        stop: threading.Event | None = None,
        on_report: Callable[[RunReport], None] | None = None,
    ):
        if workers < 1:
            raise ValueError("workers must be >= 1")
        self.sources = list(sources)
        self.harvest = harvest
        self.interval_sec = interval_sec
        self.workers = workers
        self.fail_fast = fail_fast
        self.clock = clock
        self.stop = stop or threading.Event()
        self.on_report = on_report
        self.runs = 0

    def _new_context(self) -> RunContext:
        self.runs += 1
        return RunContext(run=self.runs, started=self.clock())

    def _failed(self, ctx: RunContext, source: str, err: Exception) -> None:
        f = ctx.fail(source, err)
        console.print(f"[red]Error:[/red] @{f.source} failed during {f.phase}: {escape(f.message)}")
        if self.fail_fast:
            raise err

    def _run_sequential(self, ctx: RunContext) -> None:
        for source in self.sources:
            if self.stop.is_set():
                ctx.cancelled = True
                return
            console.print(f"[bold]Scraping account[/bold] @{source}...")
            try:
                counts = self.harvest(source, self.stop)
            except Exception as e:
                self._failed(ctx, source, e)
                continue
            ctx.merge(source, counts)

    def _harvest_guarded(self, source: str) -> dict[str, int] | None:
        if self.stop.is_set():
            return None
        console.print(f"[bold]Scraping account[/bold] @{source}...")
        return self.harvest(source, self.stop)

    def _run_pooled(self, ctx: RunContext) -> None:
        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            futures = [(s, pool.submit(self._harvest_guarded, s)) for s in self.sources]
            # Merge on this thread, in configuration order.
            for source, fut in futures:
                try:
                    counts = fut.result()
                except Exception as e:
                    try:
                        self._failed(ctx, source, e)
                    except Exception:
                        for _, pending in futures:
                            pending.cancel()
                        raise
                    continue
                if counts is None:
                    ctx.cancelled = True
                    continue
                ctx.merge(source, counts)

    def run_once(self) -> RunReport:
        ctx = self._new_context()
        if self.workers > 1 and len(self.sources) > 1:
            self._run_pooled(ctx)
        else:
            self._run_sequential(ctx)

        report = RunReport(
            run=ctx.run,
            tally=dict(ctx.tally),
            elapsed_minutes=elapsed_minutes(ctx.started, self.clock()),
            sources=list(ctx.sources),
            failures=list(ctx.failures),
            cancelled=ctx.cancelled,
        )
        self._emit(report)
        return report

    def _emit(self, report: RunReport) -> None:
        if self.on_report is None:
            send_stdout(report)
            return
        try:
            self.on_report(report)
        except Exception as e:
            console.print(f"[red]Report delivery failed:[/red] {escape(str(e))}")

    def run_forever(self, max_runs: int | None = None) -> int:
        """Run until `stop` is set (or `max_runs` runs completed). Returns runs done."""
        done = 0
        while not self.stop.is_set():
            try:
                self.run_once()
            except Exception as e:
                console.print(f"[red]Run aborted:[/red] {escape(str(e))}")
            done += 1
            if max_runs is not None and done >= max_runs:
                break
            console.print(f"\nScraping again in {self.interval_sec / 60:g} minutes...\n")
            if self.stop.wait(self.interval_sec):
                break
        return done
