import json
from pathlib import Path

from oshi_calendar.preferences_store import (
    FAVORITES_KEY,
    OSHI_ONLY_KEY,
    PreferencesStore,
    load_bool,
    load_string_array,
    save_bool,
    save_string_array,
    toggle_favorite,
    user_key,
)


def test_roundtrip_favorites_and_flag_wire_shape(tmp_path: Path) -> None:
    path = tmp_path / "data" / "preferences.json"
    store = PreferencesStore(path)

    save_string_array(store, user_key(42, FAVORITES_KEY), ["id-1", "id-2"])
    save_bool(store, user_key(42, OSHI_ONLY_KEY), True)

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw["42:oshicale:favorites"] == '["id-1", "id-2"]'
    assert raw["42:oshi:calendar:oshiOnly"] == "1"

    reloaded = PreferencesStore(path)
    assert load_string_array(reloaded, user_key(42, FAVORITES_KEY)) == ["id-1", "id-2"]
    assert load_bool(reloaded, user_key(42, OSHI_ONLY_KEY), False) is True


def test_missing_values_fall_back(tmp_path: Path) -> None:
    store = PreferencesStore(tmp_path / "preferences.json")

    assert store.get("anything") is None
    assert load_string_array(store, FAVORITES_KEY) == []
    assert load_bool(store, OSHI_ONLY_KEY, True) is True


def test_invalid_favorites_payload_reads_as_empty(tmp_path: Path) -> None:
    store = PreferencesStore(tmp_path / "preferences.json")

    store.set(FAVORITES_KEY, '{"not": "a list"}')
    assert load_string_array(store, FAVORITES_KEY) == []

    store.set(FAVORITES_KEY, "[1, 2]")
    assert load_string_array(store, FAVORITES_KEY) == []

    store.set(FAVORITES_KEY, "not json")
    assert load_string_array(store, FAVORITES_KEY) == []


def test_flag_zero_reads_false(tmp_path: Path) -> None:
    store = PreferencesStore(tmp_path / "preferences.json")
    save_bool(store, OSHI_ONLY_KEY, False)

    assert store.get(OSHI_ONLY_KEY) == "0"
    assert load_bool(store, OSHI_ONLY_KEY, True) is False


def test_corrupt_file_is_swallowed(tmp_path: Path) -> None:
    path = tmp_path / "preferences.json"
    path.write_text("{broken", encoding="utf-8")
    store = PreferencesStore(path)

    assert store.get(FAVORITES_KEY) is None

    store.set(FAVORITES_KEY, '["a"]')
    assert load_string_array(store, FAVORITES_KEY) == ["a"]


def test_unwritable_store_does_not_raise(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory", encoding="utf-8")
    store = PreferencesStore(blocker / "preferences.json")

    store.set(FAVORITES_KEY, '["a"]')

    assert store.get(FAVORITES_KEY) is None


def test_toggle_favorite() -> None:
    favorites, added = toggle_favorite(["a"], "b")
    assert (favorites, added) == (["a", "b"], True)

    favorites, added = toggle_favorite(favorites, "a")
    assert (favorites, added) == (["b"], False)
