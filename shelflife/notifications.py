"""Expiry notifications generated from annotated inventory items.

Generation is a pure function of (items, settings, reference date).  The
``NotificationCenter`` keeps one user's list in an injected key-value store;
notification ids embed the item id and the reference date, so refreshing
more than once a day does not produce duplicates.
"""

from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import asdict, dataclass, replace
from datetime import date, datetime
from typing import Iterable

from .expiry import TriggerKind, notification_trigger
from .items import AnnotatedItem
from .store import KeyValueStore, NotificationSettings

logger = logging.getLogger(__name__)


class Priority(enum.IntEnum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    URGENT = 4


@dataclass(frozen=True)
class _Template:
    type: str
    title: str
    priority: Priority


_TEMPLATES: dict[TriggerKind, _Template] = {
    TriggerKind.EXPIRED: _Template("expired", "Item Expired", Priority.URGENT),
    TriggerKind.TODAY: _Template("expiring", "Expires Today", Priority.HIGH),
    TriggerKind.TOMORROW: _Template("expiring", "Expires Tomorrow", Priority.MEDIUM),
    TriggerKind.REMINDER: _Template("expiring", "Expires Soon", Priority.LOW),
}


def _message(kind: TriggerKind, name: str, offset: int) -> str:
    if kind is TriggerKind.EXPIRED:
        n = abs(offset)
        return f"{name} has expired {n} day{'' if n == 1 else 's'} ago"
    if kind is TriggerKind.TODAY:
        return f"{name} expires today! Use it soon or consider making a recipe."
    if kind is TriggerKind.TOMORROW:
        return f"{name} expires tomorrow. Check out recipe suggestions!"
    return f"{name} expires in {offset} days. Time to plan a meal!"


@dataclass
class Notification:
    id: str
    type: str  # "expired" | "expiring" | "custom"
    title: str
    message: str
    priority: int = Priority.LOW
    item_id: str | None = None
    item_name: str | None = None
    days_left: int | None = None
    created_at: str = ""
    read: bool = False
    action_url: str | None = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["priority"] = int(self.priority)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Notification:
        return cls(
            id=data["id"],
            type=data.get("type", "custom"),
            title=data.get("title", ""),
            message=data.get("message", ""),
            priority=int(data.get("priority", Priority.LOW)),
            item_id=data.get("item_id"),
            item_name=data.get("item_name"),
            days_left=data.get("days_left"),
            created_at=data.get("created_at", ""),
            read=bool(data.get("read", False)),
            action_url=data.get("action_url"),
        )


def notification_for(
    item: AnnotatedItem,
    settings: NotificationSettings,
    today: date,
    now: datetime | None = None,
) -> Notification | None:
    """Return the single most specific notification for ``item``, if any."""
    if item.item_id is None:
        return None
    kind = notification_trigger(item.days_left, settings.reminder_days)
    if kind is None:
        return None
    if kind is TriggerKind.EXPIRED:
        if not settings.expired_alerts:
            return None
        action = "#inventory"
    else:
        if not settings.expiring_alerts:
            return None
        action = "#recipes" if settings.recipe_suggestions else "#inventory"

    template = _TEMPLATES[kind]
    created = now or datetime.now()
    return Notification(
        id=f"{kind.value}_{item.item_id}_{today.isoformat()}",
        type=template.type,
        title=template.title,
        message=_message(kind, item.item_name, item.days_left),
        priority=template.priority,
        item_id=item.item_id,
        item_name=item.item_name,
        days_left=item.days_left,
        created_at=created.isoformat(timespec="seconds"),
        action_url=action,
    )


def build_notifications(
    items: Iterable[AnnotatedItem],
    settings: NotificationSettings,
    today: date | datetime | None = None,
    now: datetime | None = None,
) -> list[Notification]:
    """Notifications for a snapshot of items, most urgent first."""
    if today is None:
        today = date.today()
    elif isinstance(today, datetime):
        today = today.date()
    result = []
    for item in items:
        notification = notification_for(item, settings, today, now)
        if notification is not None:
            result.append(notification)
    result.sort(key=lambda n: (-n.priority, n.days_left))
    return result


class NotificationCenter:
    """One user's notification list, persisted through a ``KeyValueStore``."""

    def __init__(self, store: KeyValueStore, user_id: str) -> None:
        self._store = store
        self._user_id = user_id
        self._notifications: list[Notification] = []

    @property
    def key(self) -> str:
        return f"notifications:{self._user_id}"

    @property
    def notifications(self) -> list[Notification]:
        return list(self._notifications)

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self._notifications if not n.read)

    def load(self) -> list[Notification]:
        saved = self._store.get(self.key) or []
        loaded: list[Notification] = []
        for entry in saved:
            try:
                loaded.append(Notification.from_dict(entry))
            except (KeyError, TypeError, ValueError):
                logger.warning("Dropping malformed notification for user %s: %r", self._user_id, entry)
        self._notifications = loaded
        return self.notifications

    def save(self) -> None:
        self._store.set(self.key, [n.to_dict() for n in self._notifications])

    def refresh(
        self,
        items: Iterable[AnnotatedItem],
        settings: NotificationSettings,
        today: date | datetime | None = None,
        now: datetime | None = None,
        *,
        complete: bool = False,
    ) -> list[Notification]:
        """Regenerate notifications for the given inventory snapshot.

        Notifications for items in the snapshot are replaced by the freshly
        generated ones; an unchanged id keeps its read flag.  With
        ``complete=True`` the snapshot is the user's whole inventory, so item
        notifications for items missing from it are dropped as well.  Custom
        notifications (no item id) are always kept.  Returns the
        notifications that were newly added.
        """
        items = list(items)
        snapshot_ids = {i.item_id for i in items if i.item_id is not None}
        fresh = build_notifications(items, settings, today, now)
        fresh_ids = {n.id for n in fresh}

        def keep(n: Notification) -> bool:
            if n.id in fresh_ids or n.item_id is None:
                return True
            if n.item_id in snapshot_ids:
                return False
            return not complete

        kept = [n for n in self._notifications if keep(n)]
        existing = {n.id for n in kept}
        added = [n for n in fresh if n.id not in existing]
        self._notifications = kept + added
        if added:
            logger.info("%d new notification(s) for user %s", len(added), self._user_id)
        return added

    def add(
        self,
        title: str,
        message: str,
        *,
        type: str = "custom",
        priority: int = Priority.LOW,
        item_id: str | None = None,
        item_name: str | None = None,
        days_left: int | None = None,
        action_url: str | None = None,
        now: datetime | None = None,
    ) -> Notification:
        notification = Notification(
            id=f"custom_{uuid.uuid4().hex[:12]}",
            type=type,
            title=title,
            message=message,
            priority=priority,
            item_id=item_id,
            item_name=item_name,
            days_left=days_left,
            created_at=(now or datetime.now()).isoformat(timespec="seconds"),
            action_url=action_url,
        )
        self._notifications.insert(0, notification)
        return notification

    def mark_read(self, notification_id: str) -> None:
        self._notifications = [
            replace(n, read=True) if n.id == notification_id else n
            for n in self._notifications
        ]

    def mark_all_read(self) -> None:
        self._notifications = [replace(n, read=True) for n in self._notifications]

    def remove(self, notification_id: str) -> None:
        self._notifications = [n for n in self._notifications if n.id != notification_id]

    def clear(self) -> None:
        self._notifications = []
