from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from oshi_calendar.calendar_math import parse_debug_today
from oshi_calendar.i18n import resolve_lang
from oshi_calendar.sheets import DEFAULT_REVALIDATE_SECONDS


@dataclass(frozen=True)
class Settings:
    telegram_bot_token: str
    sheet_csv_url: str
    preferences_path: Path
    feed_revalidate_seconds: int = DEFAULT_REVALIDATE_SECONDS
    default_lang: str = "ja"
    debug_today: datetime | None = None


def _required_env(name: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        raise ValueError(f"Missing required environment variable: {name}")
    return value.strip()


def load_settings() -> Settings:
    root = Path.cwd()

    token = _required_env("TELEGRAM_BOT_TOKEN")
    sheet_csv_url = _required_env("SHEET_CSV_URL")

    preferences_path = Path(
        os.getenv("PREFERENCES_PATH", root / "data" / "preferences.json")
    )
    revalidate = int(os.getenv("FEED_REVALIDATE_SECONDS", str(DEFAULT_REVALIDATE_SECONDS)))
    if revalidate < 0:
        raise ValueError("FEED_REVALIDATE_SECONDS must be a non-negative integer")

    # Example: DEBUG_TODAY_JST=2026-02-10
    debug_raw = os.getenv("DEBUG_TODAY_JST", "").strip()
    debug_today = parse_debug_today(debug_raw) if debug_raw else None

    return Settings(
        telegram_bot_token=token,
        sheet_csv_url=sheet_csv_url,
        preferences_path=preferences_path,
        feed_revalidate_seconds=revalidate,
        default_lang=resolve_lang(os.getenv("DEFAULT_LANG")),
        debug_today=debug_today,
    )
