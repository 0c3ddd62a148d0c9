"""Day offsets and expiry status classification.

Every view that cares about freshness (badges, sorting, filters, summaries,
notifications) goes through the functions here so the thresholds live in
one place.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING, Iterable

from .dates import UNKNOWN

if TYPE_CHECKING:
    from .items import AnnotatedItem

# Status badge / notification window.
EXPIRING_SOON_DAYS = 3
# "Expiring" filter view and summary banding.
FILTER_EXPIRING_DAYS = 7
# Ingredients worth cooking first.
RECIPE_EXPIRING_DAYS = 3

FILTERS = ("all", "expiring", "expired")
SORT_KEYS = ("expiry", "name")


class ExpiryStatus(enum.Enum):
    UNKNOWN = "unknown"
    EXPIRED = "expired"
    EXPIRING_TODAY = "expiring-today"
    EXPIRING_SOON = "expiring-soon"
    FRESH = "fresh"


class TriggerKind(enum.Enum):
    """Notification triggers, most specific first."""

    EXPIRED = "expired"
    TODAY = "today"
    TOMORROW = "tomorrow"
    REMINDER = "reminder"


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def days_left(
    canonical: str | date | None, today: date | datetime | None = None
) -> int | None:
    """Whole calendar days from ``today`` until ``canonical``.

    Negative once expired.  Returns None when the expiry is unknown or not a
    canonical date.
    """
    if canonical is None:
        return None
    if isinstance(canonical, (date, datetime)):
        expiry = _as_date(canonical)
    else:
        if not canonical or canonical == UNKNOWN:
            return None
        try:
            expiry = date.fromisoformat(canonical)
        except ValueError:
            return None
    ref = _as_date(today) if today is not None else date.today()
    return (expiry - ref).days


def classify(offset: int | None, soon_days: int = EXPIRING_SOON_DAYS) -> ExpiryStatus:
    if offset is None:
        return ExpiryStatus.UNKNOWN
    if offset < 0:
        return ExpiryStatus.EXPIRED
    if offset == 0:
        return ExpiryStatus.EXPIRING_TODAY
    if offset <= soon_days:
        return ExpiryStatus.EXPIRING_SOON
    return ExpiryStatus.FRESH


def sort_key(offset: int | None) -> tuple[bool, int]:
    """Ascending by offset with unknown expiries last."""
    return (offset is None, offset if offset is not None else 0)


def matches_filter(
    offset: int | None, view: str, window: int = FILTER_EXPIRING_DAYS
) -> bool:
    """Filter predicate for the inventory views ``all``/``expiring``/``expired``."""
    if view == "all":
        return True
    if offset is None:
        return False
    if view == "expiring":
        return 0 <= offset <= window
    if view == "expired":
        return offset < 0
    raise ValueError(f"Unknown filter: {view!r} (choose from {', '.join(FILTERS)})")


def badge_label(offset: int | None) -> str:
    status = classify(offset)
    if status is ExpiryStatus.UNKNOWN:
        return "Unknown"
    if status is ExpiryStatus.EXPIRED:
        return "Expired"
    if status is ExpiryStatus.EXPIRING_TODAY:
        return "Today"
    return f"{offset}d left"


def notification_trigger(
    offset: int | None, reminder_days: int = EXPIRING_SOON_DAYS
) -> TriggerKind | None:
    if offset is None:
        return None
    if offset < 0:
        return TriggerKind.EXPIRED
    if offset == 0:
        return TriggerKind.TODAY
    if offset == 1:
        return TriggerKind.TOMORROW
    if offset <= reminder_days:
        return TriggerKind.REMINDER
    return None


def sort_items(
    items: Iterable[AnnotatedItem], by: str = "expiry"
) -> list[AnnotatedItem]:
    if by == "expiry":
        return sorted(items, key=lambda i: sort_key(i.days_left))
    if by == "name":
        return sorted(items, key=lambda i: i.item_name.casefold())
    raise ValueError(f"Unknown sort key: {by!r} (choose from {', '.join(SORT_KEYS)})")


def filter_items(
    items: Iterable[AnnotatedItem],
    view: str = "all",
    window: int = FILTER_EXPIRING_DAYS,
) -> list[AnnotatedItem]:
    return [i for i in items if matches_filter(i.days_left, view, window)]


@dataclass
class InventorySummary:
    total: int = 0
    fresh: int = 0
    expiring: int = 0
    expired: int = 0
    unknown: int = 0


def summarize(
    items: Iterable[AnnotatedItem], window: int = FILTER_EXPIRING_DAYS
) -> InventorySummary:
    """Count items per band: expired, expiring within ``window``, fresh, unknown."""
    summary = InventorySummary()
    for item in items:
        summary.total += 1
        offset = item.days_left
        if offset is None:
            summary.unknown += 1
        elif offset < 0:
            summary.expired += 1
        elif offset <= window:
            summary.expiring += 1
        else:
            summary.fresh += 1
    return summary


def expiring_ingredients(
    items: Iterable[AnnotatedItem], within_days: int = RECIPE_EXPIRING_DAYS
) -> list[str]:
    """Names of items still usable but expiring within ``within_days``, soonest first."""
    usable = [
        i for i in items
        if i.days_left is not None and 0 <= i.days_left <= within_days
    ]
    seen: set[str] = set()
    names: list[str] = []
    for item in sort_items(usable):
        if item.item_name not in seen:
            seen.add(item.item_name)
            names.append(item.item_name)
    return names
