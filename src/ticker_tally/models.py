from __future__ import annotations

from dataclasses import dataclass, field


EXHAUSTED = "exhausted"
FORCED_STOP = "forced_stop"
CANCELLED = "cancelled"


@dataclass
class ScrollResult:
    outcome: str
    cycles: int
    height: int
    reason: str | None = None

    @property
    def exhausted(self) -> bool:
        return self.outcome == EXHAUSTED


@dataclass
class HarvestFailure:
    source: str
    phase: str
    message: str


@dataclass
class RunReport:
    run: int
    tally: dict[str, int]
    elapsed_minutes: int

    sources: list[str] = field(default_factory=list)
    failures: list[HarvestFailure] = field(default_factory=list)
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return not self.failures and not self.cancelled

    def lines(self) -> list[str]:
        return [
            f"{t} was mentioned {n} times in the last {self.elapsed_minutes} minutes."
            for t, n in self.tally.items()
        ]

    def summary(self) -> str:
        if self.cancelled:
            return f"Run {self.run} cancelled after {len(self.sources)} accounts."
        if self.failures:
            failed = ", ".join(f"@{f.source} ({f.phase})" for f in self.failures)
            return f"Processed {len(self.sources)} accounts; {len(self.failures)} failed: {failed}"
        return "All accounts processed successfully!"
