"""Normalization of free-form expiry dates into canonical ``YYYY-MM-DD`` strings.

Dates come from a vision model reading receipts and labels, or from a user
typing into a form, so the order of day and month is not reliable.  The
rules are:

* ``DD/MM/YYYY`` when the first number cannot be a month,
* ``MM/DD/YYYY`` when the second number cannot be a month,
* when both could be a month, the larger one is taken as the day
  (``03/09/25`` is March 9th, ``09/03/25`` is March 9th too).

The last rule is a heuristic and can be wrong for genuinely ambiguous labels.
Anything that does not resolve to a real calendar date becomes ``UNKNOWN``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"

_SEPARATORS = ("/", "-", ".")
_NOISE = re.compile(r"[^\d/\-.]")

EXPIRY_LABELS = ("use by", "expires", "best before", "exp date")

_ORDERS = ("heuristic", "dmy", "mdy")


def has_expiry_label(context_hint: str | None) -> bool:
    """Return True if the hint mentions a printed expiry label like "USE BY"."""
    if not context_hint:
        return False
    lowered = context_hint.lower()
    return any(label in lowered for label in EXPIRY_LABELS)


def expand_year(value: int) -> int:
    """Expand a 2-digit year: 00-29 -> 2000s, 30-99 -> 1900s."""
    if value >= 100:
        return value
    if value <= 29:
        return 2000 + value
    return 1900 + value


@dataclass(frozen=True)
class DateNormalizer:
    """Date parsing policy.

    ``ambiguous_order`` decides the case where both leading numbers are
    valid months.  ``labelled_order``, when set, overrides it for dates whose
    context hint carries an expiry label.  Both default to the size
    heuristic, so a bare ``DateNormalizer()`` matches :func:`normalize`.
    """

    ambiguous_order: str = "heuristic"
    labelled_order: str | None = None

    def __post_init__(self) -> None:
        if self.ambiguous_order not in _ORDERS:
            raise ValueError(f"Unknown date order: {self.ambiguous_order!r}")
        if self.labelled_order is not None and self.labelled_order not in _ORDERS:
            raise ValueError(f"Unknown date order: {self.labelled_order!r}")

    def parse(self, raw: str | None, context_hint: str | None = "") -> date | None:
        """Parse ``raw`` into a date, or None if it can't be resolved."""
        if not raw or raw.strip().lower() == UNKNOWN:
            return None

        # "EXP. 12/05/2024" leaves a stray leading "."
        cleaned = _NOISE.sub("", raw).strip("".join(_SEPARATORS))
        parts: list[str] = []
        for sep in _SEPARATORS:
            if sep in cleaned:
                parts = cleaned.split(sep)
                break

        if len(parts) != 3 or not all(p.isdecimal() for p in parts):
            return None
        # Lot numbers next to the date get glued onto the year
        if any(len(p) > 4 for p in parts):
            return None

        first, second, third = (int(p) for p in parts)

        if len(parts[0]) == 4:
            # Already year-first (canonical form)
            year, month, day = first, second, third
        else:
            year = expand_year(third)
            day, month = self._day_month(first, second, context_hint)

        if not 1 <= month <= 12 or not 1 <= day <= 31:
            return None
        if not 1 <= year <= 9999:
            return None
        try:
            return date(year, month, day)
        except (ValueError, OverflowError):
            return None

    def normalize(self, raw: str | None, context_hint: str | None = "") -> str:
        """Return the canonical ``YYYY-MM-DD`` form of ``raw`` or ``UNKNOWN``."""
        parsed = self.parse(raw, context_hint)
        if parsed is None:
            if raw and raw.strip().lower() != UNKNOWN:
                logger.debug("Unparseable date %r", raw)
            return UNKNOWN
        return parsed.isoformat()

    def _day_month(
        self, first: int, second: int, context_hint: str | None
    ) -> tuple[int, int]:
        if first > 12 and second <= 12:
            return first, second
        if first <= 12 and second > 12:
            return second, first
        if first <= 12 and second <= 12:
            order = self.ambiguous_order
            if self.labelled_order is not None and has_expiry_label(context_hint):
                order = self.labelled_order
            if order == "dmy":
                return first, second
            if order == "mdy":
                return second, first
            if first > second:
                return first, second
            return second, first
        # Neither can be a month; the validation step rejects it.
        return first, second


_DEFAULT = DateNormalizer()


def parse_date(raw: str | None, context_hint: str | None = "") -> date | None:
    """Parse with the default policy."""
    return _DEFAULT.parse(raw, context_hint)


def normalize(raw: str | None, context_hint: str | None = "") -> str:
    """Normalize with the default policy.

    >>> normalize("03/09/25")
    '2025-03-09'
    >>> normalize("EXP: 29.02.2023")
    'unknown'
    """
    return _DEFAULT.normalize(raw, context_hint)


def format_for_display(canonical: str | None) -> str:
    """Format a canonical date like ``Sep 3, 2025``."""
    if not canonical or canonical == UNKNOWN:
        return "Unknown"
    try:
        d = date.fromisoformat(canonical)
    except ValueError:
        return "Invalid Date"
    return f"{d:%b} {d.day}, {d.year}"
