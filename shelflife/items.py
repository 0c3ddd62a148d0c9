"""Raw extracted records and their annotated form."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from .dates import UNKNOWN, DateNormalizer, normalize
from .expiry import EXPIRING_SOON_DAYS, ExpiryStatus, classify, days_left

UNKNOWN_ITEM = "Unknown Item"
DEFAULT_QUANTITY = "1"


def _text(value: Any, default: str) -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


@dataclass(frozen=True)
class RawItem:
    """One item as returned by the extraction API or typed by a user."""

    raw_name: str
    raw_quantity: str = DEFAULT_QUANTITY
    raw_expiry: str = UNKNOWN
    context_hint: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> RawItem:
        """Build from an extraction payload, tolerating the key variants models emit."""
        expiry = data.get("expiry_date") or data.get("expiryDate") or data.get("expiry")
        return cls(
            raw_name=_text(data.get("item_name") or data.get("name"), UNKNOWN_ITEM),
            raw_quantity=_text(data.get("quantity"), DEFAULT_QUANTITY),
            raw_expiry=_text(expiry, UNKNOWN),
            context_hint=_text(data.get("context_hint"), ""),
        )


@dataclass(frozen=True)
class AnnotatedItem:
    item_name: str
    quantity: str
    expiry_date: str  # YYYY-MM-DD or "unknown"
    days_left: int | None
    status: ExpiryStatus
    item_id: str | None = None

    def to_dict(self) -> dict:
        data = {
            "item_name": self.item_name,
            "quantity": self.quantity,
            "expiry_date": self.expiry_date,
            "days_left": self.days_left,
            "status": self.status.value,
        }
        if self.item_id is not None:
            data["id"] = self.item_id
        return data


def annotate(
    raw: RawItem,
    today: date | datetime | None = None,
    *,
    normalizer: DateNormalizer | None = None,
    soon_days: int = EXPIRING_SOON_DAYS,
    item_id: str | None = None,
) -> AnnotatedItem:
    """Run a raw record through normalization, offset and classification."""
    if normalizer is None:
        canonical = normalize(raw.raw_expiry, raw.context_hint)
    else:
        canonical = normalizer.normalize(raw.raw_expiry, raw.context_hint)
    offset = days_left(canonical, today)
    return AnnotatedItem(
        item_name=_text(raw.raw_name, UNKNOWN_ITEM),
        quantity=_text(raw.raw_quantity, DEFAULT_QUANTITY),
        expiry_date=canonical,
        days_left=offset,
        status=classify(offset, soon_days),
        item_id=item_id,
    )


def annotate_all(
    raws: list[RawItem],
    today: date | datetime | None = None,
    **kwargs,
) -> list[AnnotatedItem]:
    # Pin the reference date so a batch straddling midnight stays consistent
    if today is None:
        today = date.today()
    return [annotate(r, today, **kwargs) for r in raws]
