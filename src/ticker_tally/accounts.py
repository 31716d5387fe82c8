from __future__ import annotations

from pathlib import Path


DEFAULT_ACCOUNTS = (
    "Mr_Derivatives",
    "warrior_0719",
    "ChartingProdigy",
    "allstarcharts",
    "yuriymatso",
    "TriggerTrades",
    "AdamMancini4",
    "CordovaTrades",
    "Barchart",
    "RoyLMattox",
)


def normalize_handle(s: str) -> str:
    s = (s or "").strip()
    if s.startswith("@"):
        s = s[1:].strip()
    return s


def _dedupe(handles: list[str]) -> list[str]:
    # de-dupe while preserving order
    seen = set()
    out = []
    for h in handles:
        if not h or h in seen:
            continue
        seen.add(h)
        out.append(h)
    return out


def parse_accounts(s: str) -> list[str]:
    """Split a comma-separated handle list (``"@a, b,,c"`` -> ``["a", "b", "c"]``)."""
    return _dedupe([normalize_handle(x) for x in (s or "").split(",")])


def load_accounts(path: str = "./config/accounts.txt") -> list[str]:
    p = Path(path)
    if not p.exists():
        return []
    handles = []
    for ln in p.read_text(encoding="utf-8").splitlines():
        ln = ln.strip()
        if not ln or ln.startswith("#"):
            continue
        handles.append(normalize_handle(ln))
    return _dedupe(handles)


def profile_url(base_url: str, handle: str) -> str:
    return f"{base_url.rstrip('/')}/{normalize_handle(handle)}"
