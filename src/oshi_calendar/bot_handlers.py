from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Collection, Sequence
from dataclasses import dataclass
from datetime import datetime

from telegram import LinkPreviewOptions, Update
from telegram.ext import CallbackContext, CommandHandler

from oshi_calendar.calendar_math import JST
from oshi_calendar.i18n import (
    format_remaining_days,
    is_lang,
    mmdd_label,
    month_count_label,
    month_label,
    resolve_lang,
    t,
)
from oshi_calendar.models import IdolRecord, RankedIdol, display_name
from oshi_calendar.preferences_store import (
    FAVORITES_KEY,
    LANG_KEY,
    OSHI_ONLY_KEY,
    KeyValueStore,
    load_bool,
    load_string_array,
    save_bool,
    save_string_array,
    toggle_favorite,
    user_key,
)
from oshi_calendar.search_index import SearchIndexEntry, build_search_index, search
from oshi_calendar.settings import Settings
from oshi_calendar.sheets import FeedClient, FeedError
from oshi_calendar.views import (
    CalendarView,
    GroupView,
    HomeView,
    ProfileView,
    build_calendar_view,
    build_group_view,
    build_home_view,
    build_profile_view,
    favorite_idols,
    find_idol,
)
from oshi_calendar.x_intent import build_birthday_x_intent_url, build_detail_hbd_x_intent_url, can_post_birthday

LOGGER = logging.getLogger(__name__)

TELEGRAM_MESSAGE_LIMIT = 4096

_MONTH_ARG_RE = re.compile(r"(\d{1,2})\s*(?:月|월)?")


@dataclass(frozen=True)
class HandlerDependencies:
    settings: Settings
    feed: FeedClient
    store: KeyValueStore


@dataclass(frozen=True)
class UserPreferences:
    lang: str
    favorite_ids: list[str]
    oshi_only: bool


def reference_now(settings: Settings) -> datetime:
    if settings.debug_today is not None:
        return settings.debug_today
    return datetime.now(JST)


def load_preferences(store: KeyValueStore, user_id: int, default_lang: str) -> UserPreferences:
    stored_lang = store.get(user_key(user_id, LANG_KEY))
    return UserPreferences(
        lang=stored_lang if is_lang(stored_lang) else resolve_lang(default_lang),
        favorite_ids=load_string_array(store, user_key(user_id, FAVORITES_KEY)),
        oshi_only=load_bool(store, user_key(user_id, OSHI_ONLY_KEY), False),
    )


def parse_command_argument(args: Sequence[str] | None) -> str:
    return " ".join(args or ()).strip()


def parse_month_argument(raw: str) -> int | None:
    match = _MONTH_ARG_RE.fullmatch(raw.strip())
    if match is None:
        return None
    month = int(match.group(1))
    if month < 1 or month > 12:
        return None
    return month


def split_message(text: str, limit: int = TELEGRAM_MESSAGE_LIMIT) -> list[str]:
    chunks: list[str] = []
    current: list[str] = []
    size = 0

    for line in text.split("\n"):
        # Lines longer than the limit continue in the following chunks.
        pieces = [line[start : start + limit] for start in range(0, len(line), limit)] or [""]
        for piece in pieces:
            added = len(piece) + (1 if current else 0)
            if current and size + added > limit:
                chunks.append("\n".join(current))
                current, size = [], 0
                added = len(piece)
            current.append(piece)
            size += added

    if current:
        chunks.append("\n".join(current))
    return chunks


def _render_idol_line(item: RankedIdol, lang: str, favorite_ids: Collection[str] = ()) -> str:
    idol = item.idol
    parts = [
        mmdd_label(idol.birthday_mmdd),
        f"({format_remaining_days(lang, item.days_until)})",
        display_name(idol, lang),
    ]
    group = (idol.group_name or "").strip()
    if group:
        parts.append(f"[{group}]")
    if idol.id in favorite_ids:
        parts.append("★")
    parts.append(f"/idol {idol.slug}")
    return " ".join(parts)


def _render_section(
    title: str,
    items: Sequence[RankedIdol],
    lang: str,
    empty_text: str,
    favorite_ids: Collection[str] = (),
) -> list[str]:
    lines = [f"{title} ({len(items)})"]
    if not items:
        lines.append(empty_text)
        return lines
    for item in items:
        lines.append(f"・{_render_idol_line(item, lang, favorite_ids)}")
    return lines


def _share_line(idol: IdolRecord, lang: str) -> str:
    copy = t(lang)
    url = build_birthday_x_intent_url(
        lang=lang,
        idol_name=display_name(idol, lang),
        x_url=idol.x_url,
        source_url=idol.source_url,
    )
    return f"   {copy['hero']['celebrate_on_x']}: {url}"


def render_today_message(home: HomeView, lang: str, favorite_ids: Collection[str] = ()) -> str:
    copy = t(lang)
    lines = [copy["hero"]["eyebrow"], copy["site_name"], ""]
    lines.extend(_render_section(copy["hero"]["today_birthday"], home.today, lang, copy["home"]["empty"], favorite_ids))
    for item in home.today:
        if can_post_birthday(item.days_until):
            lines.append(display_name(item.idol, lang))
            lines.append(_share_line(item.idol, lang))
    return "\n".join(lines)


def render_yesterday_message(home: HomeView, lang: str, favorite_ids: Collection[str] = ()) -> str:
    copy = t(lang)
    return "\n".join(
        _render_section(copy["home"]["yesterday"], home.yesterday, lang, copy["home"]["yesterday_empty"], favorite_ids)
    )


def render_week_message(home: HomeView, lang: str, favorite_ids: Collection[str] = ()) -> str:
    copy = t(lang)
    return "\n".join(
        _render_section(copy["home"]["this_week"], home.this_week, lang, copy["home"]["empty"], favorite_ids)
    )


def render_upcoming_message(home: HomeView, lang: str, favorite_ids: Collection[str] = ()) -> str:
    copy = t(lang)
    lines = _render_section(
        copy["home"]["next_30_days"],
        home.next_30_visible,
        lang,
        copy["home"]["next_30_days_empty"],
        favorite_ids,
    )
    lines[0] = f"{copy['home']['next_30_days']} ({len(home.next_30_days)})"
    if home.next_30_more_count:
        lines.append(f"{copy['home']['more']}: +{home.next_30_more_count} (/calendar)")
    return "\n".join(lines)


def render_calendar_message(
    view: CalendarView,
    lang: str,
    favorite_ids: Collection[str] = (),
    *,
    month: int | None = None,
) -> str:
    copy = t(lang)
    mode = copy["calendar"]["oshi_only"] if view.oshi_only else copy["calendar"]["all"]
    lines = [f"{copy['calendar']['title']} ({mode})"]

    if view.oshi_only and not view.has_favorites:
        lines.append(copy["calendar"]["no_oshi"])
        lines.append(copy["calendar"]["add_oshi"])
        return "\n".join(lines)

    groups = view.groups if month is None else view.jump_to(month)
    if not groups:
        lines.append(copy["home"]["empty"])
        return "\n".join(lines)

    jump = " ".join(month_label(lang, value) for value in view.months)
    lines.append(f"{copy['calendar']['month_jump']}: {jump}")

    for group in groups:
        lines.append("")
        lines.append(f"{month_label(lang, group.month)} {month_count_label(lang, len(group.members))}")
        for item in group.members:
            lines.append(f"・{_render_idol_line(item, lang, favorite_ids)}")
    return "\n".join(lines)


def render_profile_message(view: ProfileView, lang: str, *, is_favorite: bool = False) -> str:
    copy = t(lang)
    idol = view.idol
    name = display_name(idol, lang)

    lines = [f"{name}{' ★' if is_favorite else ''}"]
    lines.append(
        f"{copy['profile']['birthday']}: {mmdd_label(idol.birthday_mmdd)}"
        f" ({format_remaining_days(lang, view.days_until)})"
    )
    if view.group_aliases:
        aliases = " / ".join(f"{alias} (/group {alias})" for alias in view.group_aliases)
        lines.append(f"{copy['profile']['group']}: {aliases}")

    x_profile = (idol.x_url or "").strip()
    if x_profile:
        lines.append(f"{copy['profile']['x_profile']}: {x_profile}")
    source = (idol.source_url or "").strip()
    if source:
        lines.append(f"{copy['profile']['source']}: {source}")

    share = build_detail_hbd_x_intent_url(
        lang=lang,
        idol_name=name,
        x_url=idol.x_url,
        source_url=idol.source_url,
    )
    lines.append(f"{copy['hero']['celebrate_on_x']}: {share}")
    return "\n".join(lines)


def render_search_results(results: Sequence[SearchIndexEntry], lang: str) -> str:
    copy = t(lang)
    if not results:
        return copy["search"]["empty"]

    lines: list[str] = []
    for index, entry in enumerate(results, start=1):
        if entry.kind == "group":
            members = copy["search"]["members"].format(count=entry.member_count)
            lines.append(f"{index}. {copy['group']['title']}{entry.label} ({members}) /group {entry.label}")
        else:
            lines.append(f"{index}. {entry.label} /idol {entry.slug}")
    return "\n".join(lines)


def render_group_message(view: GroupView, lang: str, favorite_ids: Collection[str] = ()) -> str:
    copy = t(lang)
    lines = [f"{copy['group']['title']}{view.alias} ({len(view.members)})"]
    if not view.members:
        lines.append(copy["home"]["empty"])
    for item in view.members:
        lines.append(f"・{_render_idol_line(item, lang, favorite_ids)}")
    return "\n".join(lines)


def _deps(context: CallbackContext) -> HandlerDependencies:
    return context.application.bot_data["handler_deps"]


def _user_id(update: Update) -> int:
    user = update.effective_user
    if user is not None:
        return user.id
    chat = update.effective_chat
    return chat.id if chat is not None else 0


async def _reply(update: Update, text: str) -> None:
    for chunk in split_message(text):
        await update.effective_message.reply_text(chunk, link_preview_options=LinkPreviewOptions(is_disabled=True))


async def _load_roster(update: Update, deps: HandlerDependencies, lang: str) -> list[IdolRecord] | None:
    try:
        return await asyncio.to_thread(deps.feed.fetch_idols)
    except FeedError as exc:
        LOGGER.exception("Roster feed failed")
        await _reply(update, f"{t(lang)['home']['error']}: {exc}")
        return None


async def help_command(update: Update, context: CallbackContext) -> None:
    deps = _deps(context)
    prefs = load_preferences(deps.store, _user_id(update), deps.settings.default_lang)
    copy = t(prefs.lang)
    await _reply(update, f"{copy['site_name']} - {copy['subtitle']}\n\n{copy['help']}")


async def _home_command(update: Update, context: CallbackContext, renderer) -> None:
    deps = _deps(context)
    prefs = load_preferences(deps.store, _user_id(update), deps.settings.default_lang)
    idols = await _load_roster(update, deps, prefs.lang)
    if idols is None:
        return

    home = build_home_view(idols, reference_now(deps.settings))
    await _reply(update, renderer(home, prefs.lang, set(prefs.favorite_ids)))


async def today_command(update: Update, context: CallbackContext) -> None:
    await _home_command(update, context, render_today_message)


async def yesterday_command(update: Update, context: CallbackContext) -> None:
    await _home_command(update, context, render_yesterday_message)


async def week_command(update: Update, context: CallbackContext) -> None:
    await _home_command(update, context, render_week_message)


async def upcoming_command(update: Update, context: CallbackContext) -> None:
    await _home_command(update, context, render_upcoming_message)


async def calendar_command(update: Update, context: CallbackContext) -> None:
    deps = _deps(context)
    prefs = load_preferences(deps.store, _user_id(update), deps.settings.default_lang)

    raw_month = parse_command_argument(context.args)
    month = parse_month_argument(raw_month)
    if raw_month and month is None:
        await _reply(update, t(prefs.lang)["calendar"]["usage"])
        return

    idols = await _load_roster(update, deps, prefs.lang)
    if idols is None:
        return

    view = build_calendar_view(
        idols,
        reference_now(deps.settings),
        favorite_ids=set(prefs.favorite_ids),
        oshi_only=prefs.oshi_only,
    )
    await _reply(update, render_calendar_message(view, prefs.lang, set(prefs.favorite_ids), month=month))


async def idol_command(update: Update, context: CallbackContext) -> None:
    deps = _deps(context)
    prefs = load_preferences(deps.store, _user_id(update), deps.settings.default_lang)
    copy = t(prefs.lang)

    slug = parse_command_argument(context.args)
    if not slug:
        await _reply(update, copy["profile"]["usage"])
        return

    idols = await _load_roster(update, deps, prefs.lang)
    if idols is None:
        return

    view = build_profile_view(idols, slug, reference_now(deps.settings))
    if view is None:
        await _reply(update, copy["profile"]["not_found"])
        return
    await _reply(update, render_profile_message(view, prefs.lang, is_favorite=view.idol.id in prefs.favorite_ids))


async def search_command(update: Update, context: CallbackContext) -> None:
    deps = _deps(context)
    prefs = load_preferences(deps.store, _user_id(update), deps.settings.default_lang)

    query = parse_command_argument(context.args)
    if not query:
        await _reply(update, t(prefs.lang)["search"]["usage"])
        return

    idols = await _load_roster(update, deps, prefs.lang)
    if idols is None:
        return

    base = idols
    if prefs.oshi_only:
        favorites = set(prefs.favorite_ids)
        base = [idol for idol in idols if idol.id in favorites]

    index = build_search_index(base, prefs.lang)
    await _reply(update, render_search_results(search(index, query), prefs.lang))


async def group_command(update: Update, context: CallbackContext) -> None:
    deps = _deps(context)
    prefs = load_preferences(deps.store, _user_id(update), deps.settings.default_lang)

    alias = parse_command_argument(context.args)
    if not alias:
        await _reply(update, t(prefs.lang)["group"]["usage"])
        return

    idols = await _load_roster(update, deps, prefs.lang)
    if idols is None:
        return

    view = build_group_view(idols, alias, reference_now(deps.settings))
    await _reply(update, render_group_message(view, prefs.lang, set(prefs.favorite_ids)))


async def fav_command(update: Update, context: CallbackContext) -> None:
    deps = _deps(context)
    user_id = _user_id(update)
    prefs = load_preferences(deps.store, user_id, deps.settings.default_lang)
    copy = t(prefs.lang)

    target = parse_command_argument(context.args)
    if not target:
        await _reply(update, copy["favorites"]["usage"])
        return

    idols = await _load_roster(update, deps, prefs.lang)
    if idols is None:
        return

    idol = find_idol(idols, target)
    if idol is None:
        await _reply(update, copy["profile"]["not_found"])
        return

    favorites, added = toggle_favorite(prefs.favorite_ids, idol.id)
    save_string_array(deps.store, user_key(user_id, FAVORITES_KEY), favorites)
    template = copy["favorites"]["added"] if added else copy["favorites"]["removed"]
    await _reply(update, template.replace("{NAME}", display_name(idol, prefs.lang)))


async def favs_command(update: Update, context: CallbackContext) -> None:
    deps = _deps(context)
    prefs = load_preferences(deps.store, _user_id(update), deps.settings.default_lang)
    copy = t(prefs.lang)

    if not prefs.favorite_ids:
        await _reply(update, f"{copy['calendar']['no_oshi']}\n{copy['calendar']['add_oshi']}")
        return

    idols = await _load_roster(update, deps, prefs.lang)
    if idols is None:
        return

    ranked = favorite_idols(idols, set(prefs.favorite_ids), reference_now(deps.settings))
    lines = _render_section(copy["favorites"]["title"], ranked, prefs.lang, copy["home"]["empty"], prefs.favorite_ids)
    await _reply(update, "\n".join(lines))


async def oshionly_command(update: Update, context: CallbackContext) -> None:
    deps = _deps(context)
    user_id = _user_id(update)
    prefs = load_preferences(deps.store, user_id, deps.settings.default_lang)
    copy = t(prefs.lang)

    enabled = not prefs.oshi_only
    save_bool(deps.store, user_key(user_id, OSHI_ONLY_KEY), enabled)
    await _reply(update, copy["favorites"]["oshi_only_on"] if enabled else copy["favorites"]["oshi_only_off"])


async def lang_command(update: Update, context: CallbackContext) -> None:
    deps = _deps(context)
    user_id = _user_id(update)
    prefs = load_preferences(deps.store, user_id, deps.settings.default_lang)

    requested = parse_command_argument(context.args).lower()
    if not is_lang(requested):
        await _reply(update, t(prefs.lang)["lang"]["usage"])
        return

    deps.store.set(user_key(user_id, LANG_KEY), requested)
    LOGGER.info("User %s switched language to %s", user_id, requested)
    await _reply(update, t(requested)["lang"]["changed"])


def build_handlers() -> list:
    return [
        CommandHandler("start", help_command),
        CommandHandler("help", help_command),
        CommandHandler("today", today_command),
        CommandHandler("yesterday", yesterday_command),
        CommandHandler("week", week_command),
        CommandHandler("upcoming", upcoming_command),
        CommandHandler("calendar", calendar_command),
        CommandHandler("idol", idol_command),
        CommandHandler("search", search_command),
        CommandHandler("group", group_command),
        CommandHandler("fav", fav_command),
        CommandHandler("favs", favs_command),
        CommandHandler("oshionly", oshionly_command),
        CommandHandler("lang", lang_command),
    ]
