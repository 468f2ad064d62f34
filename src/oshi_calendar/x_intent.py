from __future__ import annotations

import re
import unicodedata
from collections.abc import Sequence
from urllib.parse import urlencode

from oshi_calendar.i18n import t

X_INTENT_BASE = "https://x.com/intent/tweet"
SITE_HASHTAG = "UndergroundIdolBD"

_HASH_MARKS_RE = re.compile(r"[#＃]")
_WHITESPACE_RE = re.compile(r"\s+")
# Letters, digits and underscore in any script.
_NON_TAG_RE = re.compile(r"[^\w]+")


def strip_for_hashtag(name: str) -> str:
    value = unicodedata.normalize("NFKC", name)
    value = _HASH_MARKS_RE.sub("", value)
    value = _WHITESPACE_RE.sub("", value)
    value = _NON_TAG_RE.sub("", value)
    return value.strip()


def build_x_intent_url(text: str, hashtags: Sequence[str] = (), url: str | None = None) -> str:
    params: dict[str, str] = {"text": text}
    if hashtags:
        params["hashtags"] = ",".join(hashtags)
    if url:
        params["url"] = url
    return f"{X_INTENT_BASE}?{urlencode(params)}"


def _context_link(x_url: str | None, source_url: str | None) -> str | None:
    return (source_url or "").strip() or (x_url or "").strip() or None


def _birthday_hashtags(idol_name: str) -> list[str]:
    return [SITE_HASHTAG, f"HBD_{strip_for_hashtag(idol_name)}"]


def build_birthday_x_intent_url(
    *,
    lang: str,
    idol_name: str,
    x_url: str | None = None,
    source_url: str | None = None,
) -> str:
    text = t(lang)["hero"]["tweet_template"].replace("{NAME}", idol_name)
    return build_x_intent_url(text, _birthday_hashtags(idol_name), _context_link(x_url, source_url))


def build_detail_hbd_x_intent_url(
    *,
    lang: str,
    idol_name: str,
    x_url: str | None = None,
    source_url: str | None = None,
) -> str:
    text = t(lang)["hero"]["detail_template"].replace("{NAME}", idol_name)
    return build_x_intent_url(text, _birthday_hashtags(idol_name), _context_link(x_url, source_url))


def can_post_birthday(days_until: int | None) -> bool:
    return days_until == 0
