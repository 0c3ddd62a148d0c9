"""Per-user key-value persistence for notifications and settings.

Callers get a ``KeyValueStore`` injected and address it with keys scoped by
user id; nothing here reaches for ambient global state.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

from .db.schema import ensure_schema

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """JSON-serializable values keyed by string."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...


class MemoryStore(KeyValueStore):
    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        # Round-trip through JSON so callers can't share mutable state
        self._data[key] = json.dumps(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class SQLiteStore(KeyValueStore):
    """Manages the kv_store table."""

    def __init__(self, db_path: str | Path = "~/.config/shelflife/shelflife.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def get(self, key: str) -> Any | None:
        row = self._get_conn().execute(
            "SELECT value FROM kv_store WHERE key = ?", (key,)
        ).fetchone()
        if row is None:
            return None
        return json.loads(row["value"])

    def set(self, key: str, value: Any) -> None:
        conn = self._get_conn()
        conn.execute(
            """INSERT INTO kv_store (key, value) VALUES (?, ?)
               ON CONFLICT(key) DO UPDATE SET
                   value = excluded.value,
                   updated_at = datetime('now', 'localtime')""",
            (key, json.dumps(value, ensure_ascii=False)),
        )
        conn.commit()

    def delete(self, key: str) -> None:
        conn = self._get_conn()
        conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        conn.commit()


@dataclass
class NotificationSettings:
    expiring_alerts: bool = True
    expired_alerts: bool = True
    recipe_suggestions: bool = True
    reminder_days: int = 3


class SettingsStore:
    """Loads and saves one user's notification settings."""

    def __init__(
        self,
        store: KeyValueStore,
        user_id: str,
        defaults: NotificationSettings | None = None,
    ) -> None:
        self._store = store
        self._user_id = user_id
        self._defaults = defaults or NotificationSettings()

    @property
    def key(self) -> str:
        return f"notificationSettings:{self._user_id}"

    def load(self) -> NotificationSettings:
        saved = self._store.get(self.key)
        merged = asdict(self._defaults)
        if isinstance(saved, dict):
            known = {f.name for f in fields(NotificationSettings)}
            merged.update({k: v for k, v in saved.items() if k in known})
        elif saved is not None:
            logger.warning("Ignoring malformed settings for user %s", self._user_id)
        return NotificationSettings(**merged)

    def save(self, settings: NotificationSettings) -> None:
        self._store.set(self.key, asdict(settings))

    def update(self, **changes: Any) -> NotificationSettings:
        """Apply a partial update and persist the result."""
        current = asdict(self.load())
        unknown = set(changes) - set(current)
        if unknown:
            raise ValueError(f"Unknown notification settings: {sorted(unknown)}")
        current.update(changes)
        settings = NotificationSettings(**current)
        self.save(settings)
        return settings

    def reset(self) -> NotificationSettings:
        self._store.delete(self.key)
        return self.load()
