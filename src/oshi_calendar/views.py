from __future__ import annotations

from collections.abc import Collection, Sequence
from dataclasses import dataclass
from datetime import datetime

from oshi_calendar.calendar_math import days_until_next_occurrence
from oshi_calendar.models import IdolRecord, MonthGroup, RankedIdol
from oshi_calendar.month_grouping import group_by_contiguous_month
from oshi_calendar.ranking import (
    attach_days_until,
    filter_favorites,
    select_exactly_today,
    select_next_30_days,
    select_this_week,
    select_yesterday,
    sort_by_proximity,
)
from oshi_calendar.search_index import members_of_group, split_group_aliases

HOME_LIST_LIMIT = 10


@dataclass(frozen=True)
class HomeView:
    today: list[RankedIdol]
    yesterday: list[RankedIdol]
    this_week: list[RankedIdol]
    next_30_days: list[RankedIdol]

    @property
    def next_30_visible(self) -> list[RankedIdol]:
        return self.next_30_days[:HOME_LIST_LIMIT]

    @property
    def next_30_more_count(self) -> int:
        return max(0, len(self.next_30_days) - HOME_LIST_LIMIT)


@dataclass(frozen=True)
class CalendarView:
    oshi_only: bool
    has_favorites: bool
    groups: list[MonthGroup]

    @property
    def months(self) -> list[int]:
        return [group.month for group in self.groups]

    def jump_to(self, month: int) -> list[MonthGroup]:
        """Groups from the first run of ``month`` onwards; empty if absent."""
        for index, group in enumerate(self.groups):
            if group.month == month:
                return self.groups[index:]
        return []


@dataclass(frozen=True)
class ProfileView:
    idol: IdolRecord
    days_until: int | None
    group_aliases: list[str]


@dataclass(frozen=True)
class GroupView:
    alias: str
    members: list[RankedIdol]


def ranked_roster(records: Sequence[IdolRecord], now: datetime) -> list[RankedIdol]:
    return sort_by_proximity(attach_days_until(records, now))


def build_home_view(records: Sequence[IdolRecord], now: datetime) -> HomeView:
    ranked = ranked_roster(records, now)
    return HomeView(
        today=select_exactly_today(ranked),
        yesterday=select_yesterday(records, now),
        this_week=select_this_week(ranked),
        next_30_days=select_next_30_days(ranked),
    )


def build_calendar_view(
    records: Sequence[IdolRecord],
    now: datetime,
    *,
    favorite_ids: Collection[str],
    oshi_only: bool,
) -> CalendarView:
    ranked = filter_favorites(ranked_roster(records, now), favorite_ids, enabled=oshi_only)
    return CalendarView(
        oshi_only=oshi_only,
        has_favorites=bool(favorite_ids),
        groups=group_by_contiguous_month(ranked),
    )


def find_idol(records: Sequence[IdolRecord], slug_or_id: str) -> IdolRecord | None:
    wanted = slug_or_id.strip()
    if not wanted:
        return None
    for idol in records:
        if idol.slug == wanted:
            return idol
    for idol in records:
        if idol.id == wanted:
            return idol
    return None


def build_profile_view(records: Sequence[IdolRecord], slug_or_id: str, now: datetime) -> ProfileView | None:
    idol = find_idol(records, slug_or_id)
    if idol is None:
        return None
    return ProfileView(
        idol=idol,
        days_until=days_until_next_occurrence(idol.birthday_mmdd, now),
        group_aliases=split_group_aliases(idol.group_name),
    )


def build_group_view(records: Sequence[IdolRecord], alias: str, now: datetime) -> GroupView:
    members = ranked_roster(members_of_group(records, alias), now)
    return GroupView(alias=alias.strip(), members=members)


def favorite_idols(records: Sequence[IdolRecord], favorite_ids: Collection[str], now: datetime) -> list[RankedIdol]:
    return filter_favorites(ranked_roster(records, now), favorite_ids, enabled=True)
