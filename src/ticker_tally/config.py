from __future__ import annotations

from pydantic import BaseModel, Field
from dotenv import load_dotenv
import os
from pathlib import Path

from .accounts import DEFAULT_ACCOUNTS, load_accounts, parse_accounts


class Settings(BaseModel):
    accounts: list[str] = Field(default_factory=lambda: list(DEFAULT_ACCOUNTS))
    base_url: str = "https://twitter.com"

    # Scheduler
    interval_sec: int = 15 * 60
    workers: int = 1
    fail_fast: bool = False

    # Scroll detector
    scroll_step_px: int = 100
    scroll_tick_ms: int = 100
    settle_ms: int = 3000
    max_scroll_cycles: int = 200
    max_scroll_sec: int = 600

    # Harvester
    ready_selector: str = "article"
    ready_timeout_ms: int = 30_000
    nav_timeout_ms: int = 0
    headless: bool = True

    telegram_bot_token: str | None = None
    telegram_chat_id: str | None = None

    discord_webhook_url: str | None = None


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        v = int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e
    if v < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {v}")
    return v


def _env_bool(name: str, default: bool = False) -> bool:
    v = (os.getenv(name) or "").strip().lower()
    if not v:
        return default
    return v in ("1", "true", "yes", "y", "on")


def load_settings(env_file: str | None = None) -> Settings:
    # Load .env if present
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    accounts = parse_accounts(os.getenv("TALLY_ACCOUNTS") or "")
    if not accounts:
        accounts_file = os.getenv("TALLY_ACCOUNTS_FILE", "./config/accounts.txt")
        # An existing file is authoritative, even when every line is commented out.
        if Path(accounts_file).exists():
            accounts = load_accounts(accounts_file)
        else:
            accounts = list(DEFAULT_ACCOUNTS)

    return Settings(
        accounts=accounts,
        base_url=(os.getenv("TALLY_BASE_URL") or "https://twitter.com").rstrip("/"),
        interval_sec=_env_int("TALLY_INTERVAL_SEC", 15 * 60),
        workers=_env_int("TALLY_WORKERS", 1, minimum=1),
        fail_fast=_env_bool("TALLY_FAIL_FAST", False),
        scroll_step_px=_env_int("TALLY_SCROLL_STEP_PX", 100, minimum=1),
        scroll_tick_ms=_env_int("TALLY_SCROLL_TICK_MS", 100),
        settle_ms=_env_int("TALLY_SETTLE_MS", 3000),
        max_scroll_cycles=_env_int("TALLY_MAX_SCROLL_CYCLES", 200),
        max_scroll_sec=_env_int("TALLY_MAX_SCROLL_SEC", 600),
        ready_selector=(os.getenv("TALLY_READY_SELECTOR") or "article").strip(),
        ready_timeout_ms=_env_int("TALLY_READY_TIMEOUT_MS", 30_000),
        nav_timeout_ms=_env_int("TALLY_NAV_TIMEOUT_MS", 0),
        headless=_env_bool("TALLY_HEADLESS", True),
        telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN") or None,
        telegram_chat_id=os.getenv("TELEGRAM_CHAT_ID") or None,
        discord_webhook_url=os.getenv("DISCORD_WEBHOOK_URL") or None,
    )
