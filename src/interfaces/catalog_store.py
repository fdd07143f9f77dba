"""Abstract base class for the persisted concert catalog.

The catalog holds locally created concerts (and provider concerts that were
upserted when first reviewed) together with their reviews.  Reads return
:class:`LocalConcert` records with rating aggregates joined in.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.concert import ConcertInput, ConcertUpdate, LocalConcert, Review, ReviewInput
from src.models.query import ConcertFilter


class ICatalogStore(ABC):
    """Contract for local concert persistence.

    All operations are async to support network-backed stores.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables/indices if they don't exist.  Called at startup."""

    @abstractmethod
    async def get_concerts(
        self,
        concert_filter: ConcertFilter,
        limit: int,
        offset: int = 0,
    ) -> list[LocalConcert]:
        """Return filtered concerts, newest-created first, with aggregates.

        Parameters
        ----------
        concert_filter:
            ``search`` matches artist/venue/city case-insensitively as a
            substring; ``genre`` matches exactly; ``city`` is a
            case-insensitive substring; date bounds are inclusive.
        limit, offset:
            Window applied after filtering and ordering.
        """

    @abstractmethod
    async def get_concert(self, concert_id: str) -> LocalConcert | None:
        """Fetch one concert (with aggregates) by its stored id."""

    @abstractmethod
    async def create_concert(self, data: ConcertInput) -> LocalConcert:
        """Insert a new concert under a freshly generated UUID."""

    @abstractmethod
    async def upsert_concert(self, concert_id: str, data: ConcertInput) -> LocalConcert:
        """Insert ``data`` under ``concert_id`` unless that id already exists.

        Existing records are left untouched.  Used by the review workflow to
        persist a provider concert under its namespaced id the first time it
        is reviewed.
        """

    @abstractmethod
    async def update_concert(self, concert_id: str, updates: ConcertUpdate) -> LocalConcert | None:
        """Apply a partial update; returns ``None`` if the id is unknown."""

    @abstractmethod
    async def delete_concert(self, concert_id: str) -> bool:
        """Delete a concert and its reviews; returns ``False`` if absent."""

    @abstractmethod
    async def create_review(self, review: ReviewInput) -> Review:
        """Store a review for an existing concert."""

    @abstractmethod
    async def get_reviews_for_concert(self, concert_id: str) -> list[Review]:
        """Return the concert's reviews, newest first."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
