from __future__ import annotations

import re

from bs4 import BeautifulSoup


def _clean_text(s: str) -> str:
    return re.sub(r"\s+", " ", (s or "").strip())


def article_texts(html: str, selector: str = "article") -> list[str]:
    """Return the visible text of every ``selector`` element, in document order.

    Text nodes are joined with a space so a cashtag link followed by plain text
    (``<a>$AMC</a>is up``) does not fuse into a longer token.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    return [_clean_text(el.get_text(" ", strip=True)) for el in soup.select(selector)]
