"""Tests for the raw -> annotated item pipeline."""

from datetime import date

import pytest

from shelflife.dates import UNKNOWN, DateNormalizer
from shelflife.expiry import ExpiryStatus
from shelflife.items import RawItem, annotate, annotate_all

REF = date(2025, 1, 10)


def test_annotate_known_date():
    item = annotate(RawItem("Milk", "1 liter", "11/01/2025"), REF)
    assert item.item_name == "Milk"
    assert item.quantity == "1 liter"
    assert item.expiry_date == "2025-01-11"
    assert item.days_left == 1
    assert item.status is ExpiryStatus.EXPIRING_SOON


def test_annotate_unknown_date():
    item = annotate(RawItem("Rice", "2 kg", "unknown"), REF)
    assert item.expiry_date == UNKNOWN
    assert item.days_left is None
    assert item.status is ExpiryStatus.UNKNOWN


def test_annotate_garbage_date_never_raises():
    item = annotate(RawItem("Cheese", "1", "EXP ??/??"), REF)
    assert item.expiry_date == UNKNOWN
    assert item.status is ExpiryStatus.UNKNOWN


def test_annotate_lot_number_after_date_is_unknown():
    item = annotate(RawItem("Milk", "1", "BEST BEFORE 15.06.2025 L 8812345678"), REF)
    assert item.expiry_date == UNKNOWN
    assert item.days_left is None


def test_annotate_expired():
    item = annotate(RawItem("Yogurt", "2", "2025-01-05"), REF)
    assert item.days_left == -5
    assert item.status is ExpiryStatus.EXPIRED


def test_annotate_blank_name_and_quantity():
    item = annotate(RawItem("  ", "", "unknown"), REF)
    assert item.item_name == "Unknown Item"
    assert item.quantity == "1"


def test_annotate_uses_normalizer_policy():
    raw = RawItem("Butter", "1", "03/09/25", context_hint="USE BY")
    default = annotate(raw, REF)
    labelled = annotate(raw, REF, normalizer=DateNormalizer(labelled_order="dmy"))
    assert default.expiry_date == "2025-03-09"
    assert labelled.expiry_date == "2025-09-03"


def test_annotate_soon_days():
    raw = RawItem("Eggs", "12", "2025-01-15")
    assert annotate(raw, REF).status is ExpiryStatus.FRESH
    assert annotate(raw, REF, soon_days=7).status is ExpiryStatus.EXPIRING_SOON


def test_to_dict_wire_format():
    item = annotate(RawItem("Milk", "1", "unknown"), REF, item_id="42")
    assert item.to_dict() == {
        "id": "42",
        "item_name": "Milk",
        "quantity": "1",
        "expiry_date": "unknown",
        "days_left": None,
        "status": "unknown",
    }


def test_annotated_item_is_immutable():
    item = annotate(RawItem("Milk", "1", "unknown"), REF)
    with pytest.raises(AttributeError):
        item.days_left = 3


def test_annotate_all():
    raws = [RawItem("A", "1", "2025-01-10"), RawItem("B", "1", "unknown")]
    items = annotate_all(raws, REF)
    assert [i.status for i in items] == [ExpiryStatus.EXPIRING_TODAY, ExpiryStatus.UNKNOWN]


class TestRawItemFromDict:
    def test_standard_keys(self):
        raw = RawItem.from_dict(
            {"item_name": "Milk", "quantity": "1 liter", "expiry_date": "03/09/25", "context_hint": "USE BY"}
        )
        assert raw == RawItem("Milk", "1 liter", "03/09/25", "USE BY")

    def test_alternate_keys(self):
        raw = RawItem.from_dict({"name": "Bread", "expiryDate": "2025-01-12"})
        assert raw.raw_name == "Bread"
        assert raw.raw_expiry == "2025-01-12"

    def test_defaults(self):
        raw = RawItem.from_dict({})
        assert raw == RawItem("Unknown Item", "1", "unknown", "")

    def test_numeric_quantity(self):
        raw = RawItem.from_dict({"item_name": "Eggs", "quantity": 12})
        assert raw.raw_quantity == "12"
