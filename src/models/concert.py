"""Canonical concert models shared by the catalog store and event providers.

A concert reaches callers from one of three origins: the local catalog,
the Ticketmaster live catalog, or the setlist.fm archive.  Rather than one
record type with many optional fields, :data:`CanonicalConcert` is a tagged
union over three variants sharing :class:`ConcertBase`; the ``origin``
field is the discriminator.  Origin-specific fields (rating aggregates,
setlists, ticketing metadata) live only on the variant they belong to.

Identity is carried internally as a :class:`ConcertKey` ``(origin,
native_id)`` pair and serialized to the prefixed external id
(``tm_123``, ``setlistfm_abc``) only through the computed ``id`` field.

All models are frozen.  On the wire they use camelCase aliases
(``imageUrl``, ``averageRating``, ``isHistorical``).
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

from src.utils.date_normalizer import to_iso_date

# Placeholder display values substituted by providers without concrete data.
TBA = "TBA"
HISTORICAL = "Historical"
GENERIC_GENRE = "Music"


class Origin(str, Enum):  # noqa: UP042
    """Which source produced a concert record."""

    LOCAL = "local"
    TICKETMASTER = "ticketmaster"
    SETLISTFM = "setlistfm"

    @property
    def id_prefix(self) -> str:
        return _ID_PREFIXES[self]


_ID_PREFIXES: dict[Origin, str] = {
    Origin.LOCAL: "",
    Origin.TICKETMASTER: "tm_",
    Origin.SETLISTFM: "setlistfm_",
}


@dataclass(frozen=True)
class ConcertKey:
    """Internal identity of a concert: its origin plus the source's own id.

    ``str(key)`` yields the namespaced external id.  Local records keep
    whatever id they were stored under, which for upserted provider records
    is the provider's prefixed id.
    """

    origin: Origin
    native_id: str

    def __str__(self) -> str:
        return f"{self.origin.id_prefix}{self.native_id}"

    @classmethod
    def parse(cls, raw_id: str) -> ConcertKey:
        """Recover the ``(origin, native_id)`` pair from an external id.

        Ids without a known provider prefix are treated as local ids.
        """
        for origin in (Origin.TICKETMASTER, Origin.SETLISTFM):
            prefix = origin.id_prefix
            if raw_id.startswith(prefix) and len(raw_id) > len(prefix):
                return cls(origin=origin, native_id=raw_id[len(prefix):])
        return cls(origin=Origin.LOCAL, native_id=raw_id)


_WIRE_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Canonical record variants
# ---------------------------------------------------------------------------

class ConcertBase(BaseModel):
    """Fields every canonical concert carries regardless of origin."""

    model_config = _WIRE_CONFIG

    origin: Origin
    native_id: str
    artist: str
    venue: str
    city: str
    date: str                           # ISO YYYY-MM-DD (pass-through if upstream was malformed)
    time: str = ""
    price: str = ""
    genre: str | None = None
    image_url: str | None = None
    ticket_url: str | None = None
    description: str | None = None
    is_historical: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def id(self) -> str:
        return str(self.key)

    @property
    def key(self) -> ConcertKey:
        return ConcertKey(origin=self.origin, native_id=self.native_id)


class LocalConcert(ConcertBase):
    """A concert persisted in the local catalog.

    Rating aggregates are populated only when at least one review is
    attached; otherwise every aggregate field, ``review_count`` included,
    stays ``None``.
    """

    origin: Literal[Origin.LOCAL] = Origin.LOCAL
    average_rating: float | None = None
    performance_rating: float | None = None
    sound_rating: float | None = None
    venue_rating: float | None = None
    value_rating: float | None = None
    review_count: int | None = None
    created_at: datetime.datetime | None = None
    updated_at: datetime.datetime | None = None

    @property
    def has_reviews(self) -> bool:
        return bool(self.review_count)


class LiveEventConcert(ConcertBase):
    """A live event from the Ticketmaster catalog (never persisted as-is)."""

    origin: Literal[Origin.TICKETMASTER] = Origin.TICKETMASTER
    venue_id: str | None = None
    attraction_id: str | None = None
    event_status: str | None = None
    timezone: str | None = None


class HistoricalConcert(ConcertBase):
    """An archived setlist from setlist.fm."""

    origin: Literal[Origin.SETLISTFM] = Origin.SETLISTFM
    is_historical: bool = True
    setlist: list[str] = Field(default_factory=list)
    artist_mbid: str | None = None
    venue_id: str | None = None
    tour_name: str | None = None
    concert_info: str | None = None
    last_updated: str | None = None


CanonicalConcert = Annotated[
    LocalConcert | LiveEventConcert | HistoricalConcert,
    Field(discriminator="origin"),
]


# ---------------------------------------------------------------------------
# Write-side inputs
# ---------------------------------------------------------------------------

def _require_iso_date(value: Any) -> str:
    iso = to_iso_date(value) if isinstance(value, (str, datetime.date)) else None
    if iso is None:
        msg = f"Unrecognised date {value!r}; expected YYYY-MM-DD or DD-MM-YYYY"
        raise ValueError(msg)
    return iso


class ConcertInput(BaseModel):
    """Data needed to create (or upsert) a local catalog record."""

    model_config = _WIRE_CONFIG

    artist: str = Field(min_length=1)
    venue: str = Field(min_length=1)
    city: str = Field(min_length=1)
    date: str
    time: str = ""
    price: str = ""
    genre: str | None = None
    image_url: str | None = None
    ticket_url: str | None = None
    description: str | None = None

    @field_validator("date", mode="before")
    @classmethod
    def _canonical_date(cls, value: Any) -> str:
        return _require_iso_date(value)

    @classmethod
    def from_concert(cls, concert: ConcertBase) -> ConcertSnapshot:
        """Copy the persistable fields of any canonical record."""
        return ConcertSnapshot(
            artist=concert.artist,
            venue=concert.venue,
            city=concert.city,
            date=concert.date,
            time=concert.time,
            price=concert.price,
            genre=concert.genre,
            image_url=concert.image_url,
            ticket_url=concert.ticket_url,
            description=concert.description,
        )


class ConcertSnapshot(ConcertInput):
    """A provider concert copied into the catalog on its first review.

    Unlike hand-typed input, the date is kept as the provider sent it when
    it cannot be canonicalized, matching the record the caller was shown.
    """

    @field_validator("date", mode="before")
    @classmethod
    def _canonical_date(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            return _require_iso_date(value)
        return to_iso_date(value) or value


class ConcertUpdate(BaseModel):
    """Partial update of a local catalog record; unset fields are left alone."""

    model_config = _WIRE_CONFIG

    artist: str | None = Field(default=None, min_length=1)
    venue: str | None = Field(default=None, min_length=1)
    city: str | None = Field(default=None, min_length=1)
    date: str | None = None
    time: str | None = None
    price: str | None = None
    genre: str | None = None
    image_url: str | None = None
    ticket_url: str | None = None
    description: str | None = None

    @field_validator("date", mode="before")
    @classmethod
    def _canonical_date(cls, value: Any) -> str | None:
        if value is None:
            return None
        return _require_iso_date(value)


class ReviewInput(BaseModel):
    """A user's review of one concert.  Ratings are 1–5."""

    model_config = _WIRE_CONFIG

    user_id: str = Field(min_length=1)
    concert_id: str = Field(min_length=1)
    overall_rating: int = Field(ge=1, le=5)
    performance_rating: int = Field(ge=1, le=5)
    sound_rating: int = Field(ge=1, le=5)
    venue_rating: int = Field(ge=1, le=5)
    value_rating: int = Field(ge=1, le=5)
    review_text: str = ""


class Review(ReviewInput):
    """A stored review."""

    id: str
    created_at: str
