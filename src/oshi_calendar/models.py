from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple


DEFAULT_LANG = "ja"


class MonthDay(NamedTuple):
    month: int
    day: int


@dataclass(frozen=True)
class IdolRecord:
    id: str
    slug: str
    birthday_mmdd: str
    status: str = "active"
    name_ja: str | None = None
    name_ko: str | None = None
    group_name: str | None = None
    group_slug: str | None = None
    x_url: str | None = None
    source_url: str | None = None

    @property
    def sort_key(self) -> str:
        return self.slug or self.id


@dataclass(frozen=True)
class RankedIdol:
    idol: IdolRecord
    days_until: int


@dataclass(frozen=True)
class MonthGroup:
    month: int
    members: tuple[RankedIdol, ...]


def _clean(value: str | None) -> str:
    return (value or "").strip()


def display_name(idol: IdolRecord, lang: str) -> str:
    ja = _clean(idol.name_ja)
    ko = _clean(idol.name_ko)
    if lang == "ja":
        return ja or ko or idol.slug or idol.id
    return ko or ja or idol.slug or idol.id


def name_candidates(idol: IdolRecord) -> list[str]:
    seen: list[str] = []
    for value in (idol.name_ja, idol.name_ko, idol.slug):
        cleaned = _clean(value)
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen
