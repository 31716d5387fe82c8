"""Page renderer sessions.

The harvester only needs a handful of browser operations, so they sit behind a
small `RendererSession` interface. `PlaywrightRenderer` backs it with a real
Chromium; tests plug in scripted fakes.

Setup for the real renderer:
- `pip install playwright`
- `playwright install chromium`
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator

from rich.console import Console
from rich.markup import escape


console = Console()


class RendererSession(ABC):
    @abstractmethod
    def navigate(self, url: str, timeout_ms: int = 0) -> None:
        raise NotImplementedError

    @abstractmethod
    def evaluate(self, script: str, arg: Any = None) -> Any:
        raise NotImplementedError

    @abstractmethod
    def scroll_by(self, px: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def pause(self, ms: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def wait_for_selector(self, selector: str, timeout_ms: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def content(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        raise NotImplementedError

    def scroll_height(self) -> int:
        return int(self.evaluate("document.body.scrollHeight"))


class Renderer(ABC):
    @abstractmethod
    def new_session(self) -> RendererSession:
        raise NotImplementedError

    @contextmanager
    def open(self) -> Iterator[RendererSession]:
        """Yield a fresh session and close it on every exit path."""
        session = self.new_session()
        try:
            yield session
        finally:
            try:
                session.close()
            except Exception as e:
                # Never mask the harvest error that is already propagating.
                console.print(f"[yellow]Renderer close failed:[/yellow] {escape(str(e))}")


class PlaywrightSession(RendererSession):
    def __init__(self, playwright, browser, page):
        self._playwright = playwright
        self._browser = browser
        self.page = page

    def navigate(self, url: str, timeout_ms: int = 0) -> None:
        # timeout=0 disables Playwright's navigation timeout.
        self.page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)

    def evaluate(self, script: str, arg: Any = None) -> Any:
        if arg is None:
            return self.page.evaluate(script)
        return self.page.evaluate(script, arg)

    def scroll_by(self, px: int) -> None:
        self.page.evaluate("(d) => window.scrollBy(0, d)", int(px))

    def pause(self, ms: int) -> None:
        self.page.wait_for_timeout(ms)

    def wait_for_selector(self, selector: str, timeout_ms: int) -> None:
        self.page.wait_for_selector(selector, timeout=timeout_ms)

    def content(self) -> str:
        return self.page.content()

    def close(self) -> None:
        try:
            self._browser.close()
        finally:
            self._playwright.stop()


class PlaywrightRenderer(Renderer):
    """One Chromium browser per session.

    The sync API binds to the thread that started it, so every session starts
    its own Playwright instance and may live on a worker thread.
    """

    def __init__(
        self,
        headless: bool = True,
        viewport: dict | None = None,
        locale: str = "en-US",
    ):
        self.headless = headless
        self.viewport = viewport or {"width": 1280, "height": 800}
        self.locale = locale

    def new_session(self) -> RendererSession:
        # Lazy import so non-Playwright installs still work.
        try:
            from playwright.sync_api import sync_playwright  # type: ignore
        except Exception as e:  # pragma: no cover
            raise RuntimeError(
                "Playwright is not installed. Run: pip install playwright && playwright install chromium"
            ) from e

        p = sync_playwright().start()
        try:
            browser = p.chromium.launch(headless=self.headless)
            ctx = browser.new_context(viewport=self.viewport, locale=self.locale)
            page = ctx.new_page()
        except Exception:
            p.stop()
            raise
        return PlaywrightSession(p, browser, page)
