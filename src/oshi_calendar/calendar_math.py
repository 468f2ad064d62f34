from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone

from oshi_calendar.models import MonthDay

# Asia/Tokyo observes no DST, so a fixed offset is exact. Re-targeting this to a
# DST-observing zone needs current_date_in_zone/start_of_civil_day rewritten.
JST = timezone(timedelta(hours=9), "JST")

SECONDS_PER_DAY = 86_400

_MMDD_RE = re.compile(r"(\d{2})-(\d{2})", re.ASCII)


def current_date_in_zone(now: datetime) -> date:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(JST).date()


def start_of_civil_day(day: date) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=JST)


def is_leap_year(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def parse_month_day(raw: object) -> MonthDay | None:
    if not isinstance(raw, str):
        return None

    match = _MMDD_RE.fullmatch(raw)
    if match is None:
        return None

    month = int(match.group(1))
    day = int(match.group(2))
    if month < 1 or month > 12:
        return None
    if day < 1 or day > 31:
        return None
    return MonthDay(month, day)


def format_month_day(day: date) -> str:
    return f"{day.month:02d}-{day.day:02d}"


def _civil_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def resolve_next_occurrence(month_day: MonthDay | None, today: date) -> date | None:
    if month_day is None:
        return None

    start_today = start_of_civil_day(today)

    if month_day == (2, 29):
        for year in range(today.year, date.max.year + 1):
            if is_leap_year(year):
                candidate = date(year, 2, 29)
                if start_of_civil_day(candidate) >= start_today:
                    return candidate
        return None

    candidate = _civil_date(today.year, month_day.month, month_day.day)
    if candidate is None:
        return None
    if start_of_civil_day(candidate) < start_today:
        candidate = _civil_date(today.year + 1, month_day.month, month_day.day)
    return candidate


def days_until_next_occurrence(raw: object, now: datetime) -> int | None:
    """Whole days from JST midnight of ``now`` to the next ``raw`` ("MM-DD").

    Returns ``None`` for malformed or non-existent dates instead of raising,
    including occurrences past the last representable year.
    """
    try:
        today = current_date_in_zone(now)
    except OverflowError:
        return None

    nxt = resolve_next_occurrence(parse_month_day(raw), today)
    if nxt is None:
        return None

    delta = start_of_civil_day(nxt) - start_of_civil_day(today)
    return round(delta.total_seconds() / SECONDS_PER_DAY)


def yesterday_month_day(now: datetime) -> str | None:
    try:
        yesterday = current_date_in_zone(now) - timedelta(days=1)
    except OverflowError:
        return None
    return format_month_day(yesterday)


def parse_debug_today(value: str) -> datetime:
    """Pin "now" to JST midnight of an ISO ``YYYY-MM-DD`` date."""
    return start_of_civil_day(date.fromisoformat(value.strip()))
