import json
import logging
import os
from typing import Dict, Optional

from config import DEFAULT_DISKS, DEFAULT_THEME, STORAGE_KEYS, THEMES, valid_disk_count
from errors import PersistenceUnavailable

logger = logging.getLogger(__name__)


def default_data_dir() -> str:
    # HANOI_DATA_DIR wins, then %APPDATA% on Windows, else ~/.towers_of_hanoi
    override = os.environ.get("HANOI_DATA_DIR")
    if override:
        return override
    base = os.environ.get("APPDATA")
    if base:
        return os.path.join(base, "TowersOfHanoi")
    return os.path.join(os.path.expanduser("~"), ".towers_of_hanoi")


class KeyValueStore:
    """String key to string value store. Failures raise PersistenceUnavailable."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data = dict(initial or {})

    def get(self, key):
        return self._data.get(key)

    def set(self, key, value):
        self._data[key] = value

    def remove(self, key):
        self._data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """All keys kept in one JSON object on disk, rewritten on every change."""

    def __init__(self, path: Optional[str] = None):
        self.path = path or os.path.join(default_data_dir(), "storage.json")

    def _read(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceUnavailable(f"could not read {self.path}: {e}") from e
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, str]) -> None:
        try:
            os.makedirs(os.path.dirname(os.path.abspath(self.path)), exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            raise PersistenceUnavailable(f"could not write {self.path}: {e}") from e

    def get(self, key):
        return self._read().get(key)

    def set(self, key, value):
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key):
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


class Preferences:
    """Score panel visibility, theme and preferred disk count.

    Every accessor degrades to the default (or to a no-op on write) when the
    store is unavailable.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    def _get(self, key: str) -> Optional[str]:
        try:
            return self.store.get(STORAGE_KEYS[key])
        except PersistenceUnavailable as e:
            logger.warning("Could not load %s: %s", key, e)
            return None

    def _set(self, key: str, value: str) -> None:
        try:
            self.store.set(STORAGE_KEYS[key], value)
        except PersistenceUnavailable as e:
            logger.warning("Could not save %s: %s", key, e)

    def load_disk_count(self) -> int:
        saved = self._get("disk_count")
        if saved:
            try:
                count = int(saved, 10)
            except ValueError:
                return DEFAULT_DISKS
            if valid_disk_count(count):
                return count
        return DEFAULT_DISKS

    def save_disk_count(self, count: int) -> None:
        self._set("disk_count", str(count))

    def load_theme(self) -> str:
        saved = self._get("theme")
        if saved and saved in THEMES:
            return saved
        return DEFAULT_THEME

    def save_theme(self, theme_id: str) -> None:
        self._set("theme", theme_id)

    def load_scores_visible(self) -> bool:
        return self._get("scores_visible") != "false"

    def save_scores_visible(self, visible: bool) -> None:
        self._set("scores_visible", "true" if visible else "false")
