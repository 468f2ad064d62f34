from oshi_calendar.i18n import (
    LANGUAGES,
    format_remaining_days,
    is_lang,
    mmdd_label,
    month_count_label,
    month_label,
    resolve_lang,
    t,
)


def test_languages() -> None:
    assert LANGUAGES == ("ja", "ko")
    assert is_lang("ko")
    assert not is_lang("en")
    assert resolve_lang("en") == "ja"
    assert t("fr") is t("ja")


def test_copy_dictionaries_share_keys() -> None:
    ja = t("ja")
    ko = t("ko")

    assert ja.keys() == ko.keys()
    for section, value in ja.items():
        if isinstance(value, dict):
            assert value.keys() == ko[section].keys(), section


def test_labels() -> None:
    assert month_label("ja", 3) == "3月"
    assert month_label("ko", 3) == "3월"
    assert month_count_label("ja", 5) == "5人"
    assert month_count_label("ko", 5) == "5명"
    assert mmdd_label("03-14") == "03/14"
    assert mmdd_label("3-14") == "3-14"


def test_format_remaining_days() -> None:
    assert format_remaining_days("ja", 0) == "今日"
    assert format_remaining_days("ko", 0) == "오늘"
    assert format_remaining_days("ja", 3) == "+3日"
    assert format_remaining_days("ko", 3) == "+3일"
    assert format_remaining_days("ja", -1) == "昨日"
    assert format_remaining_days("ko", -1) == "어제"
    assert format_remaining_days("ja", -4) == "4日前"
    assert format_remaining_days("ko", -4) == "4일 전"
    assert format_remaining_days("ja", None) == ""
