"""Extraction backend base class, response parsing, and factory."""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from datetime import date
from typing import TYPE_CHECKING

from ..dates import UNKNOWN
from ..items import DEFAULT_QUANTITY, UNKNOWN_ITEM, RawItem
from ..shelf_life import estimate_expiry

if TYPE_CHECKING:
    from ..config import AppConfig

logger = logging.getLogger(__name__)

PROMPT = """\
Analyze this image and extract food items with the following information:
1. Item name
2. Quantity/amount
3. Expiry date (if visible)

Copy the expiry date exactly as printed (for example 03/09/25 or 15.06.2025).
If a label such as "USE BY", "EXPIRES", "BEST BEFORE" or "EXP DATE" is printed
next to the date, put that label text in "context_hint".

Return a JSON array of objects with these EXACT fields and no other text:
- item_name: string
- quantity: string
- expiry_date: string (as printed, or "unknown" if not visible)
- context_hint: string (label printed next to the date, or "")

Omit "expiry_date" entirely only if the item has no date at all and you
cannot see its packaging.

Example:
[
  {"item_name": "Milk", "quantity": "1 liter", "expiry_date": "03/09/25", "context_hint": "USE BY"}
]
"""

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


class ExtractionBackend(ABC):
    """Abstract base for extracting food items from receipt or label photos."""

    @abstractmethod
    async def extract_items(self, image_paths: list[str]) -> list[RawItem]:
        """Extract raw item records from one or more images."""
        ...


def _fallback() -> list[RawItem]:
    return [RawItem(raw_name=UNKNOWN_ITEM, raw_quantity=DEFAULT_QUANTITY, raw_expiry=UNKNOWN)]


def parse_extraction_response(text: str | None, today: date | None = None) -> list[RawItem]:
    """Parse the JSON array from a model response.

    Items without any expiry field get an estimate from typical shelf life.
    An unusable response yields a single "Unknown Item" record.
    """
    if not text or not text.strip():
        logger.error("Empty extraction response")
        return _fallback()

    # Strip markdown fences if present
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        lines = [l for l in lines[1:] if not l.strip().startswith("```")]
        cleaned = "\n".join(lines)

    match = _JSON_ARRAY.search(cleaned)
    if match:
        cleaned = match.group(0)

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        logger.error("Could not parse extraction response as JSON: %.200s", text)
        return _fallback()

    entries = parsed if isinstance(parsed, list) else [parsed]
    items: list[RawItem] = []
    for entry in entries:
        if not isinstance(entry, dict):
            logger.warning("Skipping non-object entry: %r", entry)
            continue
        if not any(k in entry for k in ("expiry_date", "expiryDate", "expiry")):
            name = entry.get("item_name") or entry.get("name")
            entry = {**entry, "expiry_date": estimate_expiry(name, today)}
        items.append(RawItem.from_dict(entry))

    return items or _fallback()


def create_backend(config: AppConfig) -> ExtractionBackend:
    """Create an extraction backend based on configuration."""
    backend_name = config.vision.backend

    match backend_name:
        case "gemini":
            from .gemini import GeminiExtractionBackend

            return GeminiExtractionBackend(
                api_key=config.vision.gemini.api_key,
                model=config.vision.gemini.model,
            )
        case "claude":
            from .claude import ClaudeExtractionBackend

            return ClaudeExtractionBackend(
                api_key=config.vision.claude.api_key,
                model=config.vision.claude.model,
            )
        case _:
            raise ValueError(
                f"Unknown extraction backend: {backend_name!r} "
                f"(choose gemini or claude)"
            )
