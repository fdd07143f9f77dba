"""Value types describing one aggregation query.

``ConcertFilter``, ``Pagination`` and ``SourceToggles`` are the three inputs
of :meth:`ConcertAggregationService.query`.  Each provider translates them
into its own native search parameters.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.utils.date_normalizer import to_iso_date

DEFAULT_PAGE_SIZE = 20


class ConcertFilter(BaseModel):
    """Optional filters; ``None`` or empty means "no constraint"."""

    model_config = ConfigDict(frozen=True)

    search: str | None = None
    genre: str | None = None
    city: str | None = None
    start_date: str | None = None
    end_date: str | None = None

    @field_validator("search", "genre", "city", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _canonical_date(cls, value: Any) -> str | None:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        iso = to_iso_date(value) if isinstance(value, (str, date)) else None
        if iso is None:
            msg = f"Unrecognised date {value!r}"
            raise ValueError(msg)
        return iso


class Pagination(BaseModel):
    """Flat window ``[offset, offset + limit)`` over the merged result."""

    model_config = ConfigDict(frozen=True)

    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=0)
    offset: int = Field(default=0, ge=0)

    @property
    def end(self) -> int:
        return self.offset + self.limit

    @property
    def page_index(self) -> int:
        """0-based page number of ``offset`` at this page size (0 when limit is 0)."""
        if self.limit == 0:
            return 0
        return self.offset // self.limit


class SourceToggles(BaseModel):
    """Which external providers to include alongside the local catalog."""

    model_config = ConfigDict(frozen=True)

    include_live_provider: bool = False
    include_historical_provider: bool = False
