from __future__ import annotations

import requests
from rich.console import Console
from rich.markup import escape

from .models import RunReport
from .config import Settings


console = Console()

CHANNELS = ("stdout", "discord", "telegram", "auto")


def format_report(report: RunReport) -> str:
    lines = [f"[ticker-tally] run {report.run}"]
    lines.extend(report.lines() or ["No ticker mentions found."])
    lines.append(report.summary())
    return "\n".join(lines)


def send_stdout(report: RunReport) -> None:
    for ln in report.lines():
        console.print(ln, markup=False, highlight=False)
    style = "green" if report.ok else "yellow"
    console.print(f"[{style}]{escape(report.summary())}[/{style}]")


def send_discord(webhook_url: str, report: RunReport) -> None:
    content = format_report(report)
    # Discord has 2000 char limit; keep it small.
    content = content[:1900]
    r = requests.post(webhook_url, json={"content": content}, timeout=30)
    r.raise_for_status()


def send_telegram(bot_token: str, chat_id: str, report: RunReport) -> None:
    text = format_report(report)[:3500]
    url = f"https://api.telegram.org/bot{bot_token}/sendMessage"
    r = requests.post(url, json={"chat_id": chat_id, "text": text, "disable_web_page_preview": True}, timeout=30)
    r.raise_for_status()


def deliver(settings: Settings, report: RunReport, channel: str = "stdout") -> None:
    """Print the report and, for remote channels, post it as well."""
    if channel not in CHANNELS:
        raise ValueError(f"Unknown channel: {channel}")

    send_stdout(report)
    if channel == "stdout":
        return

    if channel == "discord":
        if not settings.discord_webhook_url:
            raise ValueError("DISCORD_WEBHOOK_URL not set")
        send_discord(settings.discord_webhook_url, report)
        return

    if channel == "telegram":
        if not (settings.telegram_bot_token and settings.telegram_chat_id):
            raise ValueError("TELEGRAM_BOT_TOKEN/TELEGRAM_CHAT_ID not set")
        send_telegram(settings.telegram_bot_token, settings.telegram_chat_id, report)
        return

    # auto: prefer telegram then discord else stdout only
    if settings.telegram_bot_token and settings.telegram_chat_id:
        send_telegram(settings.telegram_bot_token, settings.telegram_chat_id, report)
    elif settings.discord_webhook_url:
        send_discord(settings.discord_webhook_url, report)
