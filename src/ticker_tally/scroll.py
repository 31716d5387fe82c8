"""Infinite-scroll exhaustion detector.

One cycle is: scroll the whole current page in small increments (SCROLLING),
wait for lazy content (SETTLING), re-read the page height (MEASURING). The feed
is exhausted once a measurement does not exceed the previous one.

Cycles are capped by `max_cycles` and `max_duration_sec` (0 disables either);
hitting a cap returns a `forced_stop` result instead of looping forever.
"""

from __future__ import annotations

from enum import Enum
import threading
import time
from typing import Callable

from rich.console import Console

from .errors import HeightMeasurementFailure
from .models import CANCELLED, EXHAUSTED, FORCED_STOP, ScrollResult
from .renderer import RendererSession


console = Console()


class ScrollState(str, Enum):
    SCROLLING = "scrolling"
    SETTLING = "settling"
    MEASURING = "measuring"
    DONE = "done"


class ScrollDetector:
    def __init__(
        self,
        step_px: int = 100,
        tick_ms: int = 100,
        settle_ms: int = 3000,
        max_cycles: int = 200,
        max_duration_sec: float = 600,
        clock: Callable[[], float] = time.monotonic,
    ):
        if step_px <= 0:
            raise ValueError("step_px must be > 0")
        self.step_px = step_px
        self.tick_ms = tick_ms
        self.settle_ms = settle_ms
        self.max_cycles = max_cycles
        self.max_duration_sec = max_duration_sec
        self.clock = clock

    def _measure(self, session: RendererSession, source: str) -> int:
        try:
            return session.scroll_height()
        except Exception as e:
            raise HeightMeasurementFailure(source, f"could not read page height: {e}") from e

    def _over_time(self, started: float) -> bool:
        return bool(self.max_duration_sec) and (self.clock() - started) >= self.max_duration_sec

    def _scroll_pass(self, session: RendererSession, source: str, started: float) -> bool:
        """Scroll down until the distance covered reaches the current page height.

        Returns False when the time budget ran out before the bottom was reached.
        """
        scrolled = 0
        while True:
            try:
                session.scroll_by(self.step_px)
                session.pause(self.tick_ms)
            except Exception as e:
                raise HeightMeasurementFailure(source, f"scroll failed: {e}") from e
            scrolled += self.step_px
            if scrolled >= self._measure(session, source):
                return True
            if self._over_time(started):
                return False

    def run(
        self,
        session: RendererSession,
        source: str = "",
        stop: threading.Event | None = None,
    ) -> ScrollResult:
        started = self.clock()
        previous = self._measure(session, source)
        cycles = 0
        state = ScrollState.SCROLLING

        while state is not ScrollState.DONE:
            if stop is not None and stop.is_set():
                return ScrollResult(CANCELLED, cycles, previous, "stop requested")
            if self.max_cycles and cycles >= self.max_cycles:
                return ScrollResult(FORCED_STOP, cycles, previous, f"hit {self.max_cycles} scroll cycles")
            if self._over_time(started):
                return ScrollResult(FORCED_STOP, cycles, previous, f"hit {self.max_duration_sec}s scroll budget")

            if not self._scroll_pass(session, source, started):
                return ScrollResult(FORCED_STOP, cycles, previous, f"hit {self.max_duration_sec}s scroll budget mid-pass")
            state = ScrollState.SETTLING

            try:
                session.pause(self.settle_ms)
            except Exception as e:
                raise HeightMeasurementFailure(source, f"settle pause failed: {e}") from e
            state = ScrollState.MEASURING

            height = self._measure(session, source)
            cycles += 1
            if height > previous:
                previous = height
                state = ScrollState.SCROLLING
                console.print(f"  Scrolling... current height: {height}")
            else:
                state = ScrollState.DONE

        console.print(f"  Reached the end of @{source}'s timeline." if source else "  Reached the end of the timeline.")
        return ScrollResult(EXHAUSTED, cycles, previous)
