"""
Tests for the per-account harvester.
"""

import threading

import pytest

from conftest import FakeRenderer, FakeSession, articles, SETTLE_MS
from ticker_tally.config import Settings
from ticker_tally.errors import (
    ExtractionFailure,
    HarvestError,
    HeightMeasurementFailure,
    NavigationFailure,
    ReadinessTimeout,
    SessionOpenFailure,
)
from ticker_tally.harvest import Harvester, make_harvester
from ticker_tally.scroll import ScrollDetector


def make_harvester_for(session):
    renderer = FakeRenderer(lambda: session)
    detector = ScrollDetector(settle_ms=SETTLE_MS, max_cycles=10, max_duration_sec=0)
    return Harvester(renderer, detector), renderer


class TestHarvestHappyPath:
    """Successful harvest passes."""

    def test_counts_across_articles(self):
        session = FakeSession(
            [500, 1200, 1200],
            html=articles("$AAPL breaking out", "$AAPL and $TSLA", "no tickers"),
        )
        harvester, _ = make_harvester_for(session)

        counts = harvester.harvest("Barchart")

        assert counts == {"$AAPL": 2, "$TSLA": 1}
        assert session.navigated == [("https://twitter.com/Barchart", 0)]
        assert session.closed == 1

    def test_text_outside_articles_is_ignored(self):
        html = "<html><body><nav>$SPY trending</nav>" + articles("$QQQ") + "</body></html>"
        session = FakeSession([400], html=html)
        harvester, _ = make_harvester_for(session)

        assert harvester.harvest("someone") == {"$QQQ": 1}

    def test_forced_stop_still_harvests_loaded_posts(self):
        session = FakeSession(range(100, 10_000, 100), html=articles("$NVDA"))
        harvester, _ = make_harvester_for(session)

        assert harvester.harvest("endless") == {"$NVDA": 1}
        assert session.closed == 1

    def test_each_harvest_opens_a_new_session(self):
        renderer = FakeRenderer(lambda: FakeSession([300], html=articles("$AMD")))
        harvester = Harvester(renderer, ScrollDetector(settle_ms=SETTLE_MS))

        harvester.harvest("a")
        harvester.harvest("b")

        assert len(renderer.sessions) == 2
        assert [s.closed for s in renderer.sessions] == [1, 1]

    def test_stop_during_settle_keeps_partial_counts(self):
        stop = threading.Event()

        class StoppingSession(FakeSession):
            def pause(self, ms):
                super().pause(ms)
                if ms == SETTLE_MS:
                    stop.set()

        session = StoppingSession([500, 1200, 1200], html=articles("$AAPL early post"))
        harvester, _ = make_harvester_for(session)

        assert harvester.harvest("Barchart", stop=stop) == {"$AAPL": 1}
        assert session.pauses.count(SETTLE_MS) == 1
        assert session.closed == 1


class TestHarvestFailures:
    """Each failure is classified and the session is still closed once."""

    def test_navigation_failure_closes_session(self):
        session = FakeSession([500], fail_on="navigate")
        harvester, _ = make_harvester_for(session)

        with pytest.raises(NavigationFailure) as exc:
            harvester.harvest("gone")

        assert session.closed == 1
        assert exc.value.source == "gone"
        assert exc.value.phase == "navigate"
        assert isinstance(exc.value, HarvestError)

    def test_readiness_timeout(self):
        session = FakeSession([500], fail_on="ready")
        harvester, _ = make_harvester_for(session)

        with pytest.raises(ReadinessTimeout) as exc:
            harvester.harvest("quiet")

        assert session.closed == 1
        assert "article" in str(exc.value)

    def test_height_failure_propagates(self):
        session = FakeSession([500], fail_on="height")
        harvester, _ = make_harvester_for(session)

        with pytest.raises(HeightMeasurementFailure):
            harvester.harvest("crashy")
        assert session.closed == 1

    def test_content_failure_is_extraction_failure(self):
        session = FakeSession([500], fail_on="content")
        harvester, _ = make_harvester_for(session)

        with pytest.raises(ExtractionFailure):
            harvester.harvest("broken")
        assert session.closed == 1

    def test_session_open_failure_is_classified(self):
        class BrokenRenderer(FakeRenderer):
            def new_session(self):
                raise RuntimeError("Executable doesn't exist at chromium")

        harvester = Harvester(BrokenRenderer(None), ScrollDetector(settle_ms=SETTLE_MS))

        with pytest.raises(SessionOpenFailure) as exc:
            harvester.harvest("anyone")

        assert exc.value.phase == "open"
        assert exc.value.source == "anyone"
        assert "Executable" in exc.value.message

    def test_close_error_does_not_mask_harvest_error(self):
        class LeakySession(FakeSession):
            def close(self):
                super().close()
                raise RuntimeError("browser already gone")

        session = LeakySession([500], fail_on="navigate")
        harvester, _ = make_harvester_for(session)

        with pytest.raises(NavigationFailure):
            harvester.harvest("gone")
        assert session.closed == 1


class TestMakeHarvester:
    """Wiring from Settings."""

    def test_settings_flow_into_harvester(self):
        settings = Settings(
            base_url="https://x.com",
            settle_ms=1500,
            max_scroll_cycles=7,
            ready_selector="[data-testid='tweet']",
            ready_timeout_ms=5000,
        )
        renderer = FakeRenderer(lambda: FakeSession([300]))
        h = make_harvester(settings, renderer=renderer)

        assert h.renderer is renderer
        assert h.base_url == "https://x.com"
        assert h.ready_selector == "[data-testid='tweet']"
        assert h.ready_timeout_ms == 5000
        assert h.detector.settle_ms == 1500
        assert h.detector.max_cycles == 7
