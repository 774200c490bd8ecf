"""Client-side preference persistence.

The list view keeps a few small JSON documents (column widths, column
layout and the last used filters) in a key-value store. Stores are
injected so the engine runs without a UI host; failures surface as
:class:`~dealdesk.errors.PreferenceStoreError` and callers fall back to
defaults.
"""

from __future__ import annotations

import json
import logging
from copy import deepcopy
from pathlib import Path
from typing import Any, Protocol

from .errors import PreferenceStoreError

logger = logging.getLogger(__name__)

COLUMN_WIDTHS_KEY = "deals-column-widths"
COLUMN_LAYOUT_KEY = "deals-columns"
FILTERS_KEY = "deals-filters"

_CONFIG_DIRECTORY = Path.home() / ".dealdesk"


def default_preferences_path() -> Path:
    """Return the preference file used when no path is configured."""
    return _CONFIG_DIRECTORY / "preferences.json"


class PreferenceStore(Protocol):
    """Key-value storage for JSON-compatible preference documents."""

    def get(self, key: str) -> Any | None:
        """Return the stored value for *key* or ``None`` when absent."""

    def set(self, key: str, value: Any) -> None:
        """Store *value* under *key*."""


class MemoryPreferenceStore:
    """Preference store kept in a dictionary; used by tests and embedders."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        """Seed the store with a deep copy of *initial*."""
        self._data: dict[str, Any] = deepcopy(initial) if initial else {}

    def get(self, key: str) -> Any | None:
        return deepcopy(self._data.get(key))

    def set(self, key: str, value: Any) -> None:
        self._data[key] = deepcopy(value)

    def snapshot(self) -> dict[str, Any]:
        """Return a copy of everything stored."""
        return deepcopy(self._data)


class JsonFilePreferenceStore:
    """Preference store persisted as one JSON object on disk.

    Values are stored as JSON text per key, mirroring browser local
    storage, so a corrupt entry affects only its own key.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        """Use *path* or :func:`default_preferences_path`."""
        self._path = Path(path) if path is not None else default_preferences_path()
        self._entries: dict[str, str] = {}
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            with self._path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Failed to load preferences %s: %s", self._path, exc)
            return
        if not isinstance(data, dict):
            logger.warning("Ignoring preferences %s: expected an object", self._path)
            return
        self._entries = {str(k): v for k, v in data.items() if isinstance(v, str)}

    def get(self, key: str) -> Any | None:
        text = self._entries.get(key)
        if text is None:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise PreferenceStoreError(f"corrupt preference {key!r}: {exc}") from exc

    def set(self, key: str, value: Any) -> None:
        try:
            self._entries[key] = json.dumps(value, sort_keys=True)
        except (TypeError, ValueError) as exc:
            raise PreferenceStoreError(f"cannot serialise preference {key!r}") from exc
        self.flush()

    def flush(self) -> None:
        """Write all entries to disk atomically."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            with tmp_path.open("w", encoding="utf-8") as fh:
                json.dump(self._entries, fh, indent=2, sort_keys=True)
            tmp_path.replace(self._path)
        except OSError as exc:
            raise PreferenceStoreError(f"cannot write {self._path}: {exc}") from exc


def read_preference(store: PreferenceStore, key: str) -> Any | None:
    """Return stored value for *key*, logging and returning ``None`` on failure."""
    try:
        return store.get(key)
    except PreferenceStoreError as exc:
        logger.warning("Discarding preference %s: %s", key, exc)
        return None


def write_preference(store: PreferenceStore, key: str, value: Any) -> bool:
    """Persist *value* under *key*; return ``False`` and log on failure."""
    try:
        store.set(key, value)
    except PreferenceStoreError as exc:
        logger.warning("Failed to persist preference %s: %s", key, exc)
        return False
    return True
