"""SQLite database module for per-user food inventory."""

from .inventory import InventoryDB
from .schema import ensure_schema

__all__ = [
    "InventoryDB",
    "ensure_schema",
]
