from __future__ import annotations


class HarvestError(Exception):
    """Base error for a failed harvest pass of one source."""

    phase = "harvest"

    def __init__(self, source: str, message: str):
        self.source = source
        self.message = message
        super().__init__(f"@{source} [{self.phase}] {message}")


class NavigationFailure(HarvestError):
    """Profile page could not be loaded."""

    phase = "navigate"


class ReadinessTimeout(HarvestError):
    """No content element appeared within the readiness bound."""

    phase = "ready"


class HeightMeasurementFailure(HarvestError):
    """Renderer stopped answering while scrolling (session died, page gone)."""

    phase = "scroll"


class ExtractionFailure(HarvestError):
    """Rendered markup could not be captured or parsed."""

    phase = "extract"


class SessionOpenFailure(HarvestError):
    """Renderer could not start a session (browser missing or failed to launch)."""

    phase = "open"
