"""Food inventory expiry tracking: date normalization, expiry status, notifications."""

from .config import AppConfig, ExpiryConfig, load_config
from .dates import UNKNOWN, DateNormalizer, normalize, parse_date
from .expiry import (
    EXPIRING_SOON_DAYS,
    FILTER_EXPIRING_DAYS,
    RECIPE_EXPIRING_DAYS,
    ExpiryStatus,
    classify,
    days_left,
    matches_filter,
    sort_key,
)
from .items import AnnotatedItem, RawItem, annotate, annotate_all
from .notifications import Notification, NotificationCenter, build_notifications
from .store import KeyValueStore, MemoryStore, NotificationSettings, SettingsStore, SQLiteStore

__all__ = [
    "UNKNOWN",
    "DateNormalizer",
    "normalize",
    "parse_date",
    "EXPIRING_SOON_DAYS",
    "FILTER_EXPIRING_DAYS",
    "RECIPE_EXPIRING_DAYS",
    "ExpiryStatus",
    "classify",
    "days_left",
    "matches_filter",
    "sort_key",
    "RawItem",
    "AnnotatedItem",
    "annotate",
    "annotate_all",
    "Notification",
    "NotificationCenter",
    "build_notifications",
    "KeyValueStore",
    "MemoryStore",
    "SQLiteStore",
    "SettingsStore",
    "NotificationSettings",
    "AppConfig",
    "ExpiryConfig",
    "load_config",
]
