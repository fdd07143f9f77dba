"""ConcertCritic domain models — re-exports all public model classes.

    - concert.py — canonical concert variants, identity, write-side inputs
    - query.py   — filter / pagination / source toggles for aggregation
"""

from __future__ import annotations

from src.models.concert import (
    GENERIC_GENRE,
    HISTORICAL,
    TBA,
    CanonicalConcert,
    ConcertBase,
    ConcertInput,
    ConcertSnapshot,
    ConcertKey,
    ConcertUpdate,
    HistoricalConcert,
    LiveEventConcert,
    LocalConcert,
    Origin,
    Review,
    ReviewInput,
)
from src.models.query import (
    DEFAULT_PAGE_SIZE,
    ConcertFilter,
    Pagination,
    SourceToggles,
)

__all__ = [
    # concert
    "CanonicalConcert",
    "ConcertBase",
    "ConcertInput",
    "ConcertSnapshot",
    "ConcertKey",
    "ConcertUpdate",
    "GENERIC_GENRE",
    "HISTORICAL",
    "HistoricalConcert",
    "LiveEventConcert",
    "LocalConcert",
    "Origin",
    "Review",
    "ReviewInput",
    "TBA",
    # query
    "ConcertFilter",
    "DEFAULT_PAGE_SIZE",
    "Pagination",
    "SourceToggles",
]
