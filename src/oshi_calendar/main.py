from __future__ import annotations

import logging
from pathlib import Path

from telegram.ext import Application

from oshi_calendar.bot_handlers import HandlerDependencies, build_handlers
from oshi_calendar.preferences_store import PreferencesStore
from oshi_calendar.settings import load_settings
from oshi_calendar.sheets import FeedClient

LOGGER = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # httpx request logs include the bot token in the URL.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def main() -> None:
    configure_logging()

    settings = load_settings()
    _ensure_parent(settings.preferences_path)

    feed = FeedClient(
        url=settings.sheet_csv_url,
        revalidate_seconds=settings.feed_revalidate_seconds,
    )
    store = PreferencesStore(settings.preferences_path)

    application = Application.builder().token(settings.telegram_bot_token).build()
    application.bot_data["settings"] = settings
    application.bot_data["handler_deps"] = HandlerDependencies(settings=settings, feed=feed, store=store)

    for handler in build_handlers():
        application.add_handler(handler)

    if settings.debug_today is not None:
        LOGGER.info("Reference date pinned to %s (JST)", settings.debug_today.date().isoformat())

    try:
        application.run_polling()
    finally:
        feed.close()


if __name__ == "__main__":
    main()
