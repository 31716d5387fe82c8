from __future__ import annotations

import re
from typing import Iterable


# Cashtag surface form only; no registry lookup.
TICKER_RE = re.compile(r"\$\w{3,4}")


def count_tickers(text: str | None) -> dict[str, int]:
    """Count cashtag mentions in ``text``.

    Matches are case-sensitive, non-overlapping and scanned left to right, so
    ``"$AAPL up, $AAPL again, $TSLA"`` gives ``{"$AAPL": 2, "$TSLA": 1}``.
    """
    counts: dict[str, int] = {}
    if not text:
        return counts
    for m in TICKER_RE.finditer(text):
        t = m.group(0)
        counts[t] = counts.get(t, 0) + 1
    return counts


def count_tickers_in_blocks(blocks: Iterable[str]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for block in blocks:
        for t, n in count_tickers(block).items():
            counts[t] = counts.get(t, 0) + n
    return counts
