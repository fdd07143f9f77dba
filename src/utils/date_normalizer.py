"""Calendar-date canonicalization for concert records.

Every canonical concert carries its date as an ISO ``YYYY-MM-DD`` string,
whatever format the source used.  Ticketmaster already sends ISO local
dates; setlist.fm sends day-month-year (``05-03-2024``); locally created
records may be typed by hand in either form.

Both helpers return ``None`` when a value cannot be understood so that
callers decide how to recover (pass-through plus a warning for upstream
data, a validation error for user input).
"""

from __future__ import annotations

import re
from datetime import date, datetime

_DAY_FIRST_RE = re.compile(r"^\s*(\d{1,2})[-./](\d{1,2})[-./](\d{4})\s*$")
# A calendar date, optionally followed by a "T" or space separated time part.
_ISO_PREFIX_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})(?:[T ]\S.*)?$")


def day_first_to_iso(value: str | None) -> str | None:
    """Convert a ``DD-MM-YYYY`` date (``-``, ``.`` or ``/`` separators) to ISO.

    >>> day_first_to_iso("05-03-2024")
    '2024-03-05'
    >>> day_first_to_iso("31-02-2024") is None
    True
    """
    if not value:
        return None
    match = _DAY_FIRST_RE.match(value)
    if match is None:
        return None
    day, month, year = (int(part) for part in match.groups())
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def to_iso_date(value: str | date | datetime | None) -> str | None:
    """Canonicalize an ISO or day-first date (or date object) to ``YYYY-MM-DD``."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    text = value.strip()
    if not text:
        return None
    match = _ISO_PREFIX_RE.match(text)
    if match is None:
        return day_first_to_iso(text)
    try:
        return date.fromisoformat(match.group(1)).isoformat()
    except ValueError:
        return None
