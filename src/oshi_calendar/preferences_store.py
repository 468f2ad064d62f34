from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

LOGGER = logging.getLogger(__name__)

FAVORITES_KEY = "oshicale:favorites"
OSHI_ONLY_KEY = "oshi:calendar:oshiOnly"
LANG_KEY = "oshicale:lang"


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class PreferencesStore:
    """String key-value store kept in one JSON object on disk."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}

        with self._path.open("r", encoding="utf-8") as file_obj:
            data = json.load(file_obj)

        if not isinstance(data, dict):
            return {}
        return {str(key): value for key, value in data.items() if isinstance(value, str)}

    def _save_atomic(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)

        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=self._path.parent,
            prefix=f".{self._path.name}.",
            delete=False,
        ) as temp_file:
            json.dump(data, temp_file, indent=2, sort_keys=True, ensure_ascii=False)
            temp_file.write("\n")
            temp_name = temp_file.name

        os.replace(temp_name, self._path)

    def get(self, key: str) -> str | None:
        try:
            return self._load().get(key)
        except (OSError, ValueError):
            LOGGER.warning("Preferences unreadable at %s; using defaults", self._path, exc_info=True)
            return None

    def set(self, key: str, value: str) -> None:
        try:
            data = self._load()
        except (OSError, ValueError):
            LOGGER.warning("Preferences unreadable at %s; starting fresh", self._path, exc_info=True)
            data = {}

        data[key] = value
        try:
            self._save_atomic(data)
        except OSError:
            LOGGER.warning("Could not write preferences to %s", self._path, exc_info=True)


def user_key(user_id: int, key: str) -> str:
    return f"{user_id}:{key}"


def load_string_array(store: KeyValueStore, key: str) -> list[str]:
    raw = store.get(key)
    if not raw:
        return []

    try:
        parsed = json.loads(raw)
    except ValueError:
        return []

    if isinstance(parsed, list) and all(isinstance(value, str) for value in parsed):
        return parsed
    return []


def save_string_array(store: KeyValueStore, key: str, values: list[str]) -> None:
    store.set(key, json.dumps(values, ensure_ascii=False))


def load_bool(store: KeyValueStore, key: str, fallback: bool) -> bool:
    raw = store.get(key)
    if raw is None:
        return fallback
    return raw == "1"


def save_bool(store: KeyValueStore, key: str, value: bool) -> None:
    store.set(key, "1" if value else "0")


def toggle_favorite(favorites: list[str], idol_id: str) -> tuple[list[str], bool]:
    """Return the new favorites list and whether ``idol_id`` is now a favorite."""
    if idol_id in favorites:
        return [value for value in favorites if value != idol_id], False
    return [*favorites, idol_id], True
