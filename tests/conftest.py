"""
Pytest Configuration
====================

Scripted renderer fakes shared by the scroll, harvest and scheduler tests.
"""

from ticker_tally.renderer import Renderer, RendererSession


SETTLE_MS = 3000


class FakeSession(RendererSession):
    """Renderer session driven by a list of page heights.

    The page "loads" the next height every time the settle pause elapses; the
    last height repeats once the list is used up.
    """

    def __init__(self, heights=(1000,), html="", fail_on=None, settle_ms=SETTLE_MS):
        self.heights = list(heights)
        self.idx = 0
        self.html = html
        self.fail_on = fail_on
        self.settle_ms = settle_ms

        self.navigated = []
        self.scrolled_px = 0
        self.pauses = []
        self.closed = 0

    def navigate(self, url, timeout_ms=0):
        if self.fail_on == "navigate":
            raise RuntimeError("net::ERR_NAME_NOT_RESOLVED")
        self.navigated.append((url, timeout_ms))

    def evaluate(self, script, arg=None):
        if "scrollHeight" in script:
            return self.scroll_height()
        return None

    def scroll_height(self):
        if self.fail_on == "height":
            raise RuntimeError("Target page, context or browser has been closed")
        return self.heights[self.idx]

    def scroll_by(self, px):
        self.scrolled_px += px

    def pause(self, ms):
        self.pauses.append(ms)
        if ms == self.settle_ms:
            self.idx = min(self.idx + 1, len(self.heights) - 1)

    def wait_for_selector(self, selector, timeout_ms):
        if self.fail_on == "ready":
            raise TimeoutError(f"waiting for locator('{selector}') failed")

    def content(self):
        if self.fail_on == "content":
            raise RuntimeError("page crashed")
        return self.html

    def close(self):
        self.closed += 1


class FakeRenderer(Renderer):
    """Hands out a new FakeSession per `open()`, built by `factory`."""

    def __init__(self, factory):
        self.factory = factory
        self.sessions = []

    def new_session(self):
        s = self.factory()
        self.sessions.append(s)
        return s


def articles(*texts):
    body = "".join(f"<article><div>{t}</div></article>" for t in texts)
    return f"<html><body><main>{body}</main></body></html>"
