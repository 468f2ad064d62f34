import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from oshi_calendar.bot_handlers import (
    HandlerDependencies,
    calendar_command,
    fav_command,
    load_preferences,
    oshionly_command,
    parse_command_argument,
    parse_month_argument,
    render_calendar_message,
    render_profile_message,
    render_search_results,
    render_today_message,
    render_upcoming_message,
    search_command,
    split_message,
    today_command,
)
from oshi_calendar.calendar_math import JST
from oshi_calendar.models import IdolRecord
from oshi_calendar.preferences_store import FAVORITES_KEY, PreferencesStore, user_key
from oshi_calendar.search_index import build_search_index, search
from oshi_calendar.settings import Settings
from oshi_calendar.sheets import FeedError
from oshi_calendar.views import build_calendar_view, build_home_view, build_profile_view

NOW = datetime(2026, 2, 10, tzinfo=JST)

ROSTER = [
    IdolRecord(
        id="1",
        slug="mina",
        birthday_mmdd="02-10",
        name_ja="ミナ",
        name_ko="미나",
        group_name="GroupX/GroupY",
        x_url="https://x.com/mina",
    ),
    IdolRecord(id="2", slug="aki", birthday_mmdd="03-01", name_ja="アキ"),
]


def test_parse_month_argument() -> None:
    assert parse_month_argument("3") == 3
    assert parse_month_argument("12月") == 12
    assert parse_month_argument("7월") == 7
    assert parse_month_argument("13") is None
    assert parse_month_argument("") is None
    assert parse_month_argument("march") is None


def test_parse_command_argument() -> None:
    assert parse_command_argument(["Group", "Y"]) == "Group Y"
    assert parse_command_argument(None) == ""


def test_split_message_respects_limit() -> None:
    text = "\n".join(["x" * 40] * 10)

    chunks = split_message(text, limit=100)

    assert all(len(chunk) <= 100 for chunk in chunks)
    assert "\n".join(chunks) == text
    assert split_message("short") == ["short"]


def test_render_today_message_includes_share_link() -> None:
    message = render_today_message(build_home_view(ROSTER, NOW), "ja", {"1"})

    assert "今日の誕生日 (1)" in message
    assert "02/10 (今日) ミナ [GroupX/GroupY] ★ /idol mina" in message
    assert "Xでお祝い🎂: https://x.com/intent/tweet?" in message


def test_render_today_message_empty() -> None:
    message = render_today_message(build_home_view(ROSTER[1:], NOW), "ko")

    assert "오늘의 생일 (0)" in message
    assert "표시할 데이터가 없습니다" in message


def test_render_upcoming_message_uses_inclusive_window() -> None:
    message = render_upcoming_message(build_home_view(ROSTER, NOW), "ja")

    assert message.splitlines() == [
        "直近30日の誕生日 (2)",
        "・02/10 (今日) ミナ [GroupX/GroupY] /idol mina",
        "・03/01 (+19日) アキ /idol aki",
    ]


def test_render_calendar_message() -> None:
    view = build_calendar_view(ROSTER, NOW, favorite_ids=set(), oshi_only=False)

    message = render_calendar_message(view, "ko")

    assert message.splitlines() == [
        "캘린더 (전체 보기)",
        "월 이동: 2월 3월",
        "",
        "2월 1명",
        "・02/10 (오늘) 미나 [GroupX/GroupY] /idol mina",
        "",
        "3월 1명",
        "・03/01 (+19일) アキ /idol aki",
    ]


def test_render_calendar_message_oshi_only_without_favorites() -> None:
    view = build_calendar_view(ROSTER, NOW, favorite_ids=set(), oshi_only=True)

    assert render_calendar_message(view, "ja").splitlines() == [
        "カレンダー (推しだけ表示)",
        "推しが未選択です",
        "/fav で推し登録",
    ]


def test_render_calendar_message_month_jump() -> None:
    view = build_calendar_view(ROSTER, NOW, favorite_ids=set(), oshi_only=False)

    message = render_calendar_message(view, "ja", month=3)

    assert "アキ" in message
    assert "ミナ" not in message


def test_render_profile_message() -> None:
    view = build_profile_view(ROSTER, "mina", NOW)

    message = render_profile_message(view, "ja", is_favorite=True)

    lines = message.splitlines()
    assert lines[0] == "ミナ ★"
    assert lines[1] == "誕生日: 02/10 (今日)"
    assert lines[2] == "グループ: GroupX (/group GroupX) / GroupY (/group GroupY)"
    assert lines[3] == "Xプロフィール: https://x.com/mina"
    assert lines[4].startswith("Xでお祝い🎂: https://x.com/intent/tweet?")


def test_render_search_results() -> None:
    results = search(build_search_index(ROSTER, "ja"), "groupy")

    assert render_search_results(results, "ja").splitlines() == [
        "1. グループ：GroupY (1人) /group GroupY",
        "2. ミナ /idol mina",
    ]
    assert render_search_results([], "ko") == "일치하는 결과가 없습니다"


@dataclass
class FakeUser:
    id: int


@dataclass
class FakeChat:
    id: int


@dataclass
class FakeMessage:
    replies: list[str] = field(default_factory=list)

    async def reply_text(self, text: str, **kwargs: Any) -> None:
        self.replies.append(text)


@dataclass
class FakeUpdate:
    effective_user: FakeUser
    effective_chat: FakeChat
    effective_message: FakeMessage


@dataclass
class FakeApplication:
    bot_data: dict[str, Any]


@dataclass
class FakeContext:
    application: FakeApplication
    args: list[str] = field(default_factory=list)


@dataclass
class FakeFeed:
    idols: list[IdolRecord]
    error: str | None = None

    def fetch_idols(self) -> list[IdolRecord]:
        if self.error:
            raise FeedError(self.error)
        return list(self.idols)


def _settings(tmp_path: Path) -> Settings:
    return Settings(
        telegram_bot_token="token",
        sheet_csv_url="https://sheets.example/csv",
        preferences_path=tmp_path / "preferences.json",
        debug_today=NOW,
    )


def _run(handler, tmp_path: Path, args: list[str] | None = None, feed: FakeFeed | None = None) -> tuple[FakeMessage, PreferencesStore]:
    settings = _settings(tmp_path)
    store = PreferencesStore(settings.preferences_path)
    deps = HandlerDependencies(settings=settings, feed=feed or FakeFeed(ROSTER), store=store)
    message = FakeMessage()
    update = FakeUpdate(effective_user=FakeUser(id=7), effective_chat=FakeChat(id=7), effective_message=message)
    context = FakeContext(application=FakeApplication(bot_data={"handler_deps": deps}), args=args or [])
    asyncio.run(handler(update, context))
    return message, store


def test_today_command_replies_with_today_list(tmp_path: Path) -> None:
    message, _store = _run(today_command, tmp_path)

    assert len(message.replies) == 1
    assert "ミナ" in message.replies[0]


def test_today_command_reports_feed_errors(tmp_path: Path) -> None:
    message, _store = _run(today_command, tmp_path, feed=FakeFeed([], error="CSV fetch failed: 500"))

    assert message.replies == ["データの取得に失敗しました: CSV fetch failed: 500"]


def test_fav_command_toggles_and_persists(tmp_path: Path) -> None:
    message, store = _run(fav_command, tmp_path, args=["aki"])

    assert message.replies == ["推しに追加しました：アキ"]
    assert store.get(user_key(7, FAVORITES_KEY)) == '["2"]'

    message, store = _run(fav_command, tmp_path, args=["aki"])

    assert message.replies == ["推しから外しました：アキ"]
    assert store.get(user_key(7, FAVORITES_KEY)) == "[]"


def test_oshionly_filters_calendar(tmp_path: Path) -> None:
    _run(fav_command, tmp_path, args=["aki"])
    _message, store = _run(oshionly_command, tmp_path)

    assert load_preferences(store, 7, "ja").oshi_only is True

    message, _store = _run(calendar_command, tmp_path)
    assert "アキ" in message.replies[0]
    assert "ミナ" not in message.replies[0]


def test_search_command_usage_and_results(tmp_path: Path) -> None:
    message, _store = _run(search_command, tmp_path)
    assert message.replies == ["使い方: /search キーワード"]

    message, _store = _run(search_command, tmp_path, args=["ｱｷ"])
    assert message.replies == ["1. アキ /idol aki"]


def test_split_message_wraps_overlong_lines() -> None:
    text = "y" * 250

    chunks = split_message(text, limit=100)

    assert [len(chunk) for chunk in chunks] == [100, 100, 50]
    assert "".join(chunks) == text


def test_split_message_keeps_text_after_overlong_line() -> None:
    chunks = split_message("a" * 120 + "\nnext", limit=100)

    assert chunks == ["a" * 100, "a" * 20 + "\nnext"]


def test_calendar_command_rejects_unknown_month(tmp_path: Path) -> None:
    message, _store = _run(calendar_command, tmp_path, args=["13"])
    assert message.replies == ["使い方: /calendar [月] (1〜12)"]

    message, _store = _run(calendar_command, tmp_path, args=["abc"])
    assert message.replies == ["使い方: /calendar [月] (1〜12)"]


def test_calendar_command_accepts_month_argument(tmp_path: Path) -> None:
    message, _store = _run(calendar_command, tmp_path, args=["2月"])

    assert len(message.replies) == 1
    assert message.replies[0].startswith("カレンダー (すべて)")
