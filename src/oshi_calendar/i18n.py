from __future__ import annotations

import re
from typing import Any

from oshi_calendar.models import DEFAULT_LANG

LANGUAGES = ("ja", "ko")

_MMDD_LABEL_RE = re.compile(r"(\d{2})-(\d{2})")

_COPY: dict[str, dict[str, Any]] = {
    "ja": {
        "site_name": "推しカレ",
        "subtitle": "今日、生まれた推しがいる",
        "home": {
            "today": "今日の誕生日",
            "this_week": "今週の誕生日",
            "yesterday": "昨日誕生日だったアイドル",
            "yesterday_empty": "昨日誕生日だったアイドルはいません",
            "next_30_days": "直近30日の誕生日",
            "next_30_days_empty": "直近30日以内の誕生日はありません",
            "more": "もっと見る",
            "empty": "該当するデータがありません",
            "error": "データの取得に失敗しました",
        },
        "calendar": {
            "title": "カレンダー",
            "month_jump": "月でジャンプ",
            "oshi_only": "推しだけ表示",
            "all": "すべて",
            "no_oshi": "推しが未選択です",
            "add_oshi": "/fav で推し登録",
            "usage": "使い方: /calendar [月] (1〜12)",
        },
        "hero": {
            "eyebrow": "OSHI CALENDAR",
            "today_birthday": "今日の誕生日",
            "celebrate_on_x": "Xでお祝い🎂",
            "tweet_template": "今日は{NAME}の誕生日！おめでとう🎂",
            "detail_template": "{NAME} 誕生日おめでとう🎂",
        },
        "profile": {
            "birthday": "誕生日",
            "group": "グループ",
            "x_profile": "Xプロフィール",
            "source": "出典",
            "not_found": "アイドルが見つかりません",
            "usage": "使い方: /idol スラッグ",
        },
        "group": {
            "title": "グループ：",
            "usage": "使い方: /group グループ名",
        },
        "search": {
            "usage": "使い方: /search キーワード",
            "empty": "一致する結果がありません",
            "members": "{count}人",
        },
        "favorites": {
            "added": "推しに追加しました：{NAME}",
            "removed": "推しから外しました：{NAME}",
            "usage": "使い方: /fav スラッグまたはID",
            "title": "推し一覧",
            "oshi_only_on": "カレンダーを推しだけ表示にしました",
            "oshi_only_off": "カレンダーをすべて表示にしました",
        },
        "lang": {
            "changed": "言語を日本語に切り替えました",
            "usage": "使い方: /lang ja または /lang ko",
        },
        "help": (
            "コマンド:\n"
            "/today - 今日の誕生日\n"
            "/yesterday - 昨日の誕生日\n"
            "/week - 今週の誕生日\n"
            "/upcoming - 直近30日の誕生日\n"
            "/calendar [月] - 月ごとのカレンダー\n"
            "/idol スラッグ - プロフィール\n"
            "/search キーワード - 名前・グループ検索\n"
            "/group グループ名 - グループのメンバー\n"
            "/fav スラッグ - 推し登録/解除\n"
            "/favs - 推し一覧\n"
            "/oshionly - カレンダーの推しだけ表示を切り替え\n"
            "/lang ja|ko - 表示言語"
        ),
    },
    "ko": {
        "site_name": "오시캘",
        "subtitle": "오늘 태어난 오시가 있다",
        "home": {
            "today": "오늘의 생일",
            "this_week": "이번 주 생일",
            "yesterday": "어제 생일이었던 아이돌",
            "yesterday_empty": "어제 생일이었던 아이돌이 없습니다",
            "next_30_days": "최근 30일 생일",
            "next_30_days_empty": "최근 30일 이내 생일이 없습니다",
            "more": "더 보기",
            "empty": "표시할 데이터가 없습니다",
            "error": "데이터를 불러오지 못했습니다",
        },
        "calendar": {
            "title": "캘린더",
            "month_jump": "월 이동",
            "oshi_only": "오시만 보기",
            "all": "전체 보기",
            "no_oshi": "오시가 선택되지 않았습니다",
            "add_oshi": "/fav 로 오시 등록",
            "usage": "사용법: /calendar [월] (1~12)",
        },
        "hero": {
            "eyebrow": "OSHI CALENDAR",
            "today_birthday": "오늘의 생일",
            "celebrate_on_x": "X로 축하🎂",
            "tweet_template": "오늘은 {NAME} 생일! 축하해요 🎂",
            "detail_template": "오늘은 {NAME} 생일 🎂",
        },
        "profile": {
            "birthday": "생일",
            "group": "그룹",
            "x_profile": "X 프로필",
            "source": "출처",
            "not_found": "아이돌을 찾을 수 없습니다",
            "usage": "사용법: /idol 슬러그",
        },
        "group": {
            "title": "그룹: ",
            "usage": "사용법: /group 그룹명",
        },
        "search": {
            "usage": "사용법: /search 키워드",
            "empty": "일치하는 결과가 없습니다",
            "members": "{count}명",
        },
        "favorites": {
            "added": "오시에 추가했습니다: {NAME}",
            "removed": "오시에서 제외했습니다: {NAME}",
            "usage": "사용법: /fav 슬러그 또는 ID",
            "title": "오시 목록",
            "oshi_only_on": "캘린더를 오시만 보기로 전환했습니다",
            "oshi_only_off": "캘린더를 전체 보기로 전환했습니다",
        },
        "lang": {
            "changed": "언어를 한국어로 전환했습니다",
            "usage": "사용법: /lang ja 또는 /lang ko",
        },
        "help": (
            "명령어:\n"
            "/today - 오늘의 생일\n"
            "/yesterday - 어제 생일\n"
            "/week - 이번 주 생일\n"
            "/upcoming - 최근 30일 생일\n"
            "/calendar [월] - 월별 캘린더\n"
            "/idol 슬러그 - 프로필\n"
            "/search 키워드 - 이름·그룹 검색\n"
            "/group 그룹명 - 그룹 멤버\n"
            "/fav 슬러그 - 오시 등록/해제\n"
            "/favs - 오시 목록\n"
            "/oshionly - 캘린더 오시만 보기 전환\n"
            "/lang ja|ko - 표시 언어"
        ),
    },
}


def is_lang(value: str | None) -> bool:
    return value in LANGUAGES


def resolve_lang(value: str | None) -> str:
    return value if value in LANGUAGES else DEFAULT_LANG


def t(lang: str) -> dict[str, Any]:
    return _COPY[resolve_lang(lang)]


def month_label(lang: str, month: int) -> str:
    if lang == "ko":
        return f"{month}월"
    return f"{month}月"


def month_count_label(lang: str, count: int) -> str:
    if lang == "ko":
        return f"{count}명"
    return f"{count}人"


def mmdd_label(mmdd: str) -> str:
    match = _MMDD_LABEL_RE.fullmatch(mmdd)
    if match is None:
        return mmdd
    return f"{match.group(1)}/{match.group(2)}"


def format_remaining_days(lang: str, days_until: int | None) -> str:
    if days_until is None:
        return ""
    if days_until == 0:
        return "오늘" if lang == "ko" else "今日"
    if days_until > 0:
        return f"+{days_until}일" if lang == "ko" else f"+{days_until}日"

    ago = abs(days_until)
    if ago == 1:
        return "어제" if lang == "ko" else "昨日"
    return f"{ago}일 전" if lang == "ko" else f"{ago}日前"
