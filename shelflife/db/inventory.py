"""Per-user food inventory CRUD operations."""

from __future__ import annotations

import logging
import sqlite3
from datetime import date, datetime, timedelta
from pathlib import Path

from ..dates import DateNormalizer, normalize
from ..expiry import EXPIRING_SOON_DAYS
from ..items import AnnotatedItem, RawItem, annotate
from .schema import ensure_schema

logger = logging.getLogger(__name__)

_UPDATABLE = ("item_name", "quantity", "raw_expiry", "context_hint")


class InventoryDB:
    """Manages the inventory table.

    Rows keep the raw expiry text next to its normalized form so a change of
    date policy can re-derive it.  Day offsets and statuses are never stored;
    they are computed on every read.
    """

    def __init__(
        self,
        db_path: str | Path = "~/.config/shelflife/shelflife.db",
        *,
        normalizer: DateNormalizer | None = None,
        soon_days: int = EXPIRING_SOON_DAYS,
    ) -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._normalizer = normalizer
        self._soon_days = soon_days

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _normalize(self, raw: str, hint: str) -> str:
        if self._normalizer is None:
            return normalize(raw, hint)
        return self._normalizer.normalize(raw, hint)

    def add_items(self, user_id: str, items: list[RawItem]) -> list[int]:
        """Insert extracted items into a user's inventory.

        Returns:
            List of inserted row IDs.
        """
        conn = self._get_conn()
        ids: list[int] = []
        for item in items:
            cur = conn.execute(
                """INSERT INTO inventory
                   (user_id, item_name, quantity, raw_expiry, expiry_date, context_hint)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (
                    user_id,
                    item.raw_name,
                    item.raw_quantity,
                    item.raw_expiry,
                    self._normalize(item.raw_expiry, item.context_hint),
                    item.context_hint,
                ),
            )
            ids.append(cur.lastrowid)
        conn.commit()
        logger.info("Added %d item(s) for user %s", len(ids), user_id)
        return ids

    def get_items(self, user_id: str) -> list[dict]:
        """Return a user's rows as stored."""
        conn = self._get_conn()
        rows = conn.execute(
            "SELECT * FROM inventory WHERE user_id = ? ORDER BY id", (user_id,)
        ).fetchall()
        return [dict(r) for r in rows]

    def get_inventory_with_metadata(
        self, user_id: str, today: date | datetime | None = None
    ) -> list[AnnotatedItem]:
        """Return a user's items annotated with days left and status."""
        if today is None:
            today = date.today()
        return [
            annotate(
                RawItem(
                    raw_name=row["item_name"],
                    raw_quantity=row["quantity"],
                    raw_expiry=row["raw_expiry"],
                    context_hint=row["context_hint"],
                ),
                today,
                normalizer=self._normalizer,
                soon_days=self._soon_days,
                item_id=str(row["id"]),
            )
            for row in self.get_items(user_id)
        ]

    def update_item(self, item_id: int, **changes: str) -> None:
        """Update editable fields; a new raw expiry is re-normalized."""
        unknown = set(changes) - set(_UPDATABLE)
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")
        if not changes:
            return

        conn = self._get_conn()
        row = conn.execute(
            "SELECT raw_expiry, context_hint FROM inventory WHERE id = ?", (item_id,)
        ).fetchone()
        if row is None:
            raise KeyError(f"No inventory item with id {item_id}")

        values = dict(changes)
        if "raw_expiry" in values or "context_hint" in values:
            values["expiry_date"] = self._normalize(
                values.get("raw_expiry", row["raw_expiry"]),
                values.get("context_hint", row["context_hint"]),
            )

        assignments = ", ".join(f"{col} = ?" for col in values)
        conn.execute(
            f"""UPDATE inventory
                SET {assignments}, updated_at = datetime('now', 'localtime')
                WHERE id = ?""",
            (*values.values(), item_id),
        )
        conn.commit()

    def delete_item(self, item_id: int) -> None:
        """Delete an inventory item by ID."""
        conn = self._get_conn()
        conn.execute("DELETE FROM inventory WHERE id = ?", (item_id,))
        conn.commit()

    def list_users(self) -> list[str]:
        conn = self._get_conn()
        rows = conn.execute(
            "SELECT DISTINCT user_id FROM inventory ORDER BY user_id"
        ).fetchall()
        return [r["user_id"] for r in rows]

    def renormalize(self) -> int:
        """Re-derive stored ``expiry_date`` values with the current date policy.

        Returns the number of rows that changed.
        """
        conn = self._get_conn()
        rows = conn.execute(
            "SELECT id, raw_expiry, context_hint, expiry_date FROM inventory"
        ).fetchall()
        changed: list[tuple[str, int]] = []
        for row in rows:
            fresh = self._normalize(row["raw_expiry"], row["context_hint"])
            if fresh != row["expiry_date"]:
                changed.append((fresh, row["id"]))
        if changed:
            conn.executemany(
                "UPDATE inventory SET expiry_date = ? WHERE id = ?", changed
            )
            conn.commit()
            logger.info("Re-normalized expiry of %d item(s)", len(changed))
        return len(changed)

    def get_items_expiring_on(self, target: date) -> list[dict]:
        """Return rows of every user whose normalized expiry is ``target``.

        This queries the stored column; call :meth:`renormalize` first when
        the date policy may have changed since the rows were written.
        """
        conn = self._get_conn()
        rows = conn.execute(
            "SELECT * FROM inventory WHERE expiry_date = ? ORDER BY user_id, id",
            (target.isoformat(),),
        ).fetchall()
        return [dict(r) for r in rows]

    def get_items_expiring_in(
        self, days_ahead: int = 1, today: date | None = None
    ) -> list[dict]:
        if today is None:
            today = date.today()
        return self.get_items_expiring_on(today + timedelta(days=days_ahead))
