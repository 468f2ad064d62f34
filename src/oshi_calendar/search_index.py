from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable
from dataclasses import dataclass, field

from oshi_calendar.models import IdolRecord, display_name, name_candidates

MAX_RESULTS = 10

# Katakana small-a through small-ke; hiragana sits 0x60 code points lower.
_KATAKANA_START = 0x30A1
_KATAKANA_END = 0x30F6
_KANA_OFFSET = 0x60

_ALIAS_SEPARATOR_RE = re.compile(r"[/／]")


@dataclass(frozen=True)
class PerformerEntry:
    id: str
    slug: str
    label: str
    searchable_texts: frozenset[str]

    @property
    def kind(self) -> str:
        return "performer"


@dataclass(frozen=True)
class GroupEntry:
    alias_key: str
    label: str
    member_count: int
    group_labels: tuple[str, ...]
    searchable_texts: frozenset[str]

    @property
    def kind(self) -> str:
        return "group"


SearchIndexEntry = PerformerEntry | GroupEntry


@dataclass
class _GroupBucket:
    label: str
    member_count: int = 0
    group_labels: list[str] = field(default_factory=list)


def _fold_katakana(text: str) -> str:
    return "".join(
        chr(ord(ch) - _KANA_OFFSET) if _KATAKANA_START <= ord(ch) <= _KATAKANA_END else ch
        for ch in text
    )


def normalize_for_search(text: str) -> str:
    normalized = unicodedata.normalize("NFKC", text).strip().lower()
    return _fold_katakana(normalized)


def normalize_for_token(text: str) -> str:
    return unicodedata.normalize("NFKC", text).strip().lower()


def split_group_aliases(group_label: str | None) -> list[str]:
    raw = (group_label or "").strip()
    if not raw:
        return []

    aliases: list[str] = []
    for part in _ALIAS_SEPARATOR_RE.split(raw):
        cleaned = part.strip()
        if cleaned and cleaned not in aliases:
            aliases.append(cleaned)
    return aliases


def _performer_texts(idol: IdolRecord, lang: str, aliases: list[str]) -> frozenset[str]:
    names = [display_name(idol, lang), *name_candidates(idol)]
    group_label = (idol.group_name or "").strip()

    raw_texts: list[str] = [*names, *aliases]
    if group_label:
        raw_texts.append(group_label)
    for name in names:
        for alias in aliases:
            raw_texts.append(f"{name} {alias}")

    texts = {normalize_for_search(text) for text in raw_texts}
    texts.discard("")
    return frozenset(texts)


def build_search_index(records: Iterable[IdolRecord], lang: str) -> list[SearchIndexEntry]:
    performers: list[SearchIndexEntry] = []
    buckets: dict[str, _GroupBucket] = {}

    for idol in records:
        aliases = split_group_aliases(idol.group_name)
        performers.append(
            PerformerEntry(
                id=idol.id,
                slug=idol.slug,
                label=display_name(idol, lang),
                searchable_texts=_performer_texts(idol, lang, aliases),
            )
        )

        group_label = (idol.group_name or "").strip()
        for alias in aliases:
            key = normalize_for_search(alias)
            bucket = buckets.setdefault(key, _GroupBucket(label=alias))
            bucket.member_count += 1
            if group_label not in bucket.group_labels:
                bucket.group_labels.append(group_label)

    groups: list[SearchIndexEntry] = [
        GroupEntry(
            alias_key=key,
            label=bucket.label,
            member_count=bucket.member_count,
            group_labels=tuple(bucket.group_labels),
            searchable_texts=frozenset({key}),
        )
        for key, bucket in buckets.items()
    ]
    return [*performers, *groups]


def _match_rank(entry: SearchIndexEntry, query: str) -> int | None:
    best: int | None = None
    for text in entry.searchable_texts:
        position = text.find(query)
        if position == -1:
            continue
        rank = 0 if position == 0 else 1
        if best is None or rank < best:
            best = rank
        if best == 0:
            break
    return best


def search(index: Iterable[SearchIndexEntry], raw_query: str, *, limit: int = MAX_RESULTS) -> list[SearchIndexEntry]:
    query = normalize_for_search(raw_query)
    if not query:
        return []

    scored: list[tuple[int, str, SearchIndexEntry]] = []
    for entry in index:
        rank = _match_rank(entry, query)
        if rank is not None:
            scored.append((rank, entry.label, entry))

    scored.sort(key=lambda item: (item[0], item[1]))
    return [entry for _rank, _label, entry in scored[:limit]]


def members_of_group(records: Iterable[IdolRecord], alias: str) -> list[IdolRecord]:
    key = normalize_for_token(alias)
    if not key:
        return []
    return [
        idol
        for idol in records
        if key in (normalize_for_token(part) for part in split_group_aliases(idol.group_name))
    ]
