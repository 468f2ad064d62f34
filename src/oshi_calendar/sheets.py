from __future__ import annotations

import csv
import io
import logging
import time
from collections.abc import Callable

import httpx

from oshi_calendar.models import IdolRecord

LOGGER = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("id", "slug", "birthday_mmdd", "status")
OPTIONAL_COLUMNS = ("name_ja", "name_ko", "group_name", "group_slug", "x_url", "source_url")
LEGACY_NAME_COLUMN = "name"

DEFAULT_REVALIDATE_SECONDS = 600


class FeedError(RuntimeError):
    pass


def normalize_mmdd(raw: str) -> str | None:
    """Accept M-D, MM-DD, M/D or MM/DD and return zero-padded "MM-DD"."""
    value = raw.strip()
    if not value:
        return None

    if "-" in value:
        separator = "-"
    elif "/" in value:
        separator = "/"
    else:
        return None

    parts = [part.strip() for part in value.split(separator)]
    if len(parts) != 2:
        return None
    if not all(part.isascii() and part.isdigit() for part in parts):
        return None

    month, day = (int(part) for part in parts)
    if month < 1 or month > 12 or day < 1 or day > 31:
        return None
    return f"{month:02d}-{day:02d}"


def parse_csv(text: str) -> list[list[str]]:
    if text.startswith("\ufeff"):
        text = text[1:]

    rows: list[list[str]] = []
    for row in csv.reader(io.StringIO(text, newline="")):
        if not row or row == [""]:
            continue
        rows.append(row)
    return rows


def _cell(row: list[str], index: int) -> str:
    if index == -1 or index >= len(row):
        return ""
    return row[index].strip()


def rows_to_idols(rows: list[list[str]]) -> list[IdolRecord]:
    if not rows:
        return []

    header = [name.strip() for name in rows[0]]

    def idx(name: str) -> int:
        return header.index(name) if name in header else -1

    missing = [name for name in REQUIRED_COLUMNS if idx(name) == -1]
    if missing:
        raise FeedError(
            "Unexpected CSV header; required columns: id,slug,birthday_mmdd,status "
            f"(name_ja,name_ko recommended). Missing: {','.join(missing)}"
        )

    columns = {name: idx(name) for name in (*REQUIRED_COLUMNS, *OPTIONAL_COLUMNS, LEGACY_NAME_COLUMN)}

    idols: list[IdolRecord] = []
    for row in rows[1:]:
        status = _cell(row, columns["status"])
        if status.lower() != "active":
            continue

        birthday = normalize_mmdd(_cell(row, columns["birthday_mmdd"]))
        if birthday is None:
            continue

        idol_id = _cell(row, columns["id"])
        slug = _cell(row, columns["slug"])
        if not idol_id or not slug:
            continue

        optional = {name: _cell(row, columns[name]) or None for name in OPTIONAL_COLUMNS}
        if not optional["name_ja"] and not optional["name_ko"]:
            optional["name_ja"] = _cell(row, columns[LEGACY_NAME_COLUMN]) or None

        idols.append(
            IdolRecord(
                id=idol_id,
                slug=slug,
                birthday_mmdd=birthday,
                status=status,
                **optional,
            )
        )

    return idols


class FeedClient:
    """Fetches the published roster CSV and keeps it for ``revalidate_seconds``."""

    def __init__(
        self,
        *,
        url: str,
        revalidate_seconds: int = DEFAULT_REVALIDATE_SECONDS,
        client: httpx.Client | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not url.strip():
            raise FeedError("SHEET_CSV_URL is not set; configure the published CSV URL.")
        self._url = url.strip()
        self._revalidate_seconds = revalidate_seconds
        self._client = client or httpx.Client(timeout=httpx.Timeout(10.0), follow_redirects=True)
        self._clock = clock
        self._cached: list[IdolRecord] | None = None
        self._fetched_at = 0.0

    def fetch_idols(self) -> list[IdolRecord]:
        now = self._clock()
        if self._cached is not None and now - self._fetched_at < self._revalidate_seconds:
            return list(self._cached)

        idols = self._download()
        self._cached = idols
        self._fetched_at = now
        return list(idols)

    def _download(self) -> list[IdolRecord]:
        LOGGER.info("Fetching roster CSV from %s", self._url)
        try:
            response = self._client.get(self._url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise FeedError(
                f"CSV fetch failed: {exc.response.status_code} {exc.response.reason_phrase}"
            ) from exc
        except httpx.HTTPError as exc:
            raise FeedError(f"CSV fetch failed: {exc}") from exc

        LOGGER.info(
            "CSV fetch status %s (content-type %s)",
            response.status_code,
            response.headers.get("content-type"),
        )
        idols = rows_to_idols(parse_csv(response.text))
        LOGGER.info("Loaded %s active idols", len(idols))
        return idols

    def close(self) -> None:
        self._client.close()
