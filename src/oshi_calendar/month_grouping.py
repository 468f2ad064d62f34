from __future__ import annotations

from collections.abc import Iterable

from oshi_calendar.calendar_math import parse_month_day
from oshi_calendar.models import MonthGroup, RankedIdol


def group_by_contiguous_month(ranked: Iterable[RankedIdol]) -> list[MonthGroup]:
    """Split an already date-ordered sequence into runs of the same month.

    The input order is kept as-is. A month can show up twice if the sequence
    wraps past the same month again.
    """
    runs: list[tuple[int, list[RankedIdol]]] = []

    for item in ranked:
        month_day = parse_month_day(item.idol.birthday_mmdd)
        if month_day is None:
            continue

        if not runs or runs[-1][0] != month_day.month:
            runs.append((month_day.month, []))
        runs[-1][1].append(item)

    return [MonthGroup(month=month, members=tuple(members)) for month, members in runs]
