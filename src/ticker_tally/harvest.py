from __future__ import annotations

from contextlib import ExitStack
import threading

from rich.console import Console

from .accounts import profile_url
from .config import Settings
from .errors import ExtractionFailure, NavigationFailure, ReadinessTimeout, SessionOpenFailure
from .extract import count_tickers_in_blocks
from .markup import article_texts
from .models import FORCED_STOP, CANCELLED
from .renderer import PlaywrightRenderer, Renderer
from .scroll import ScrollDetector


console = Console()


class Harvester:
    """Runs one navigate -> scroll -> extract pass per source.

    Errors are raised as `HarvestError` subclasses; the caller decides whether
    to skip the source or abort. The renderer session is always closed.
    """

    def __init__(
        self,
        renderer: Renderer,
        detector: ScrollDetector,
        base_url: str = "https://twitter.com",
        ready_selector: str = "article",
        ready_timeout_ms: int = 30_000,
        nav_timeout_ms: int = 0,
    ):
        self.renderer = renderer
        self.detector = detector
        self.base_url = base_url
        self.ready_selector = ready_selector
        self.ready_timeout_ms = ready_timeout_ms
        self.nav_timeout_ms = nav_timeout_ms

    def harvest(self, source: str, stop: threading.Event | None = None) -> dict[str, int]:
        url = profile_url(self.base_url, source)
        with ExitStack() as stack:
            try:
                session = stack.enter_context(self.renderer.open())
            except Exception as e:
                raise SessionOpenFailure(source, str(e)) from e

            try:
                session.navigate(url, timeout_ms=self.nav_timeout_ms)
            except Exception as e:
                raise NavigationFailure(source, f"{url}: {e}") from e

            console.print(f"Starting to scroll through @{source}'s timeline...")
            res = self.detector.run(session, source=source, stop=stop)
            if res.outcome == FORCED_STOP:
                console.print(
                    f"[yellow]@{source}: feed did not settle ({res.reason}); keeping what loaded[/yellow]"
                )
            elif res.outcome == CANCELLED:
                console.print(f"[yellow]@{source}: scrolling cancelled after {res.cycles} cycles[/yellow]")

            try:
                session.wait_for_selector(self.ready_selector, timeout_ms=self.ready_timeout_ms)
            except Exception as e:
                raise ReadinessTimeout(
                    source, f"no '{self.ready_selector}' within {self.ready_timeout_ms}ms: {e}"
                ) from e

            try:
                html = session.content()
                blocks = article_texts(html, self.ready_selector)
            except Exception as e:
                raise ExtractionFailure(source, str(e)) from e

        counts = count_tickers_in_blocks(blocks)
        console.print(f"  @{source}: {len(blocks)} posts, {sum(counts.values())} ticker mentions")
        return counts


def make_harvester(settings: Settings, renderer: Renderer | None = None) -> Harvester:
    if renderer is None:
        renderer = PlaywrightRenderer(headless=settings.headless)
    detector = ScrollDetector(
        step_px=settings.scroll_step_px,
        tick_ms=settings.scroll_tick_ms,
        settle_ms=settings.settle_ms,
        max_cycles=settings.max_scroll_cycles,
        max_duration_sec=settings.max_scroll_sec,
    )
    return Harvester(
        renderer,
        detector,
        base_url=settings.base_url,
        ready_selector=settings.ready_selector,
        ready_timeout_ms=settings.ready_timeout_ms,
        nav_timeout_ms=settings.nav_timeout_ms,
    )
