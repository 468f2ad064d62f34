from __future__ import annotations

from collections.abc import Collection, Iterable
from datetime import datetime

from oshi_calendar.calendar_math import days_until_next_occurrence, yesterday_month_day
from oshi_calendar.models import IdolRecord, RankedIdol

THIS_WEEK_MAX_DAYS = 6
NEXT_30_MAX_DAYS = 30


def attach_days_until(records: Iterable[IdolRecord], now: datetime) -> list[RankedIdol]:
    ranked: list[RankedIdol] = []
    for idol in records:
        days_until = days_until_next_occurrence(idol.birthday_mmdd, now)
        if days_until is None or days_until < 0:
            continue
        ranked.append(RankedIdol(idol=idol, days_until=days_until))
    return ranked


def proximity_key(item: RankedIdol) -> tuple[int, str, str]:
    return (item.days_until, item.idol.birthday_mmdd, item.idol.sort_key)


def sort_by_proximity(ranked: Iterable[RankedIdol]) -> list[RankedIdol]:
    return sorted(ranked, key=proximity_key)


def select_exactly_today(ranked: Iterable[RankedIdol]) -> list[RankedIdol]:
    return [item for item in ranked if item.days_until == 0]


def select_within_window(ranked: Iterable[RankedIdol], max_days_inclusive: int) -> list[RankedIdol]:
    """Upcoming birthdays from tomorrow up to ``max_days_inclusive``; today is left out."""
    return [item for item in ranked if 1 <= item.days_until <= max_days_inclusive]


def select_within_window_inclusive(ranked: Iterable[RankedIdol], max_days_inclusive: int) -> list[RankedIdol]:
    return [item for item in ranked if 0 <= item.days_until <= max_days_inclusive]


def select_this_week(ranked: Iterable[RankedIdol]) -> list[RankedIdol]:
    return select_within_window(ranked, THIS_WEEK_MAX_DAYS)


def select_next_30_days(ranked: Iterable[RankedIdol]) -> list[RankedIdol]:
    return select_within_window_inclusive(ranked, NEXT_30_MAX_DAYS)


def select_yesterday(records: Iterable[IdolRecord], now: datetime) -> list[RankedIdol]:
    target = yesterday_month_day(now)
    if target is None:
        return []
    matches = [RankedIdol(idol=idol, days_until=-1) for idol in records if idol.birthday_mmdd == target]
    matches.sort(key=lambda item: item.idol.sort_key)
    return matches


def filter_favorites(
    ranked: Iterable[RankedIdol],
    favorite_ids: Collection[str],
    *,
    enabled: bool,
) -> list[RankedIdol]:
    if not enabled:
        return list(ranked)
    return [item for item in ranked if item.idol.id in favorite_ids]
