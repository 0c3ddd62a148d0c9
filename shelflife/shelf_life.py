"""Typical shelf life for items extracted without a visible expiry date."""

from __future__ import annotations

from datetime import date, datetime, timedelta

DEFAULT_SHELF_LIFE_DAYS = 7

# Days from purchase, refrigerated where applicable
SHELF_LIFE_DAYS: dict[str, int] = {
    "bread": 3,
    "milk": 5,
    "eggs": 21,
    "yogurt": 7,
    "cheese": 14,
    "chicken": 3,
    "beef": 3,
    "fish": 2,
    "bananas": 5,
    "apples": 14,
    "lettuce": 7,
    "tomatoes": 5,
    "carrots": 14,
    "onions": 30,
    "potatoes": 30,
}


def shelf_life_days(item_name: str | None) -> int:
    if not item_name:
        return DEFAULT_SHELF_LIFE_DAYS
    return SHELF_LIFE_DAYS.get(item_name.strip().lower(), DEFAULT_SHELF_LIFE_DAYS)


def estimate_expiry(
    item_name: str | None, today: date | datetime | None = None
) -> str:
    """Estimated canonical expiry date for ``item_name`` bought ``today``."""
    if today is None:
        today = date.today()
    elif isinstance(today, datetime):
        today = today.date()
    return (today + timedelta(days=shelf_life_days(item_name))).isoformat()
