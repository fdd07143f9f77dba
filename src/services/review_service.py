"""Review submission with upsert-on-write.

Provider concerts (``tm_…``, ``setlistfm_…``) are never stored when they are
merely listed.  The first time a user reviews one, the concert is written to
the local catalog under its namespaced id so the review has something to
reference.  From then on it is a local record and carries rating
aggregates; the aggregation merge prefers it over the provider's copy.

Only provider ids are upserted.  A local-style id that is not in the
catalog is an unknown concert whether or not a snapshot is supplied.
"""

from __future__ import annotations

import structlog

from src.interfaces.catalog_store import ICatalogStore
from src.models.concert import (
    ConcertBase,
    ConcertInput,
    ConcertKey,
    Origin,
    Review,
    ReviewInput,
)
from src.utils.errors import ConcertNotFoundError

logger = structlog.get_logger(logger_name=__name__)


class ReviewService:
    """Store reviews, persisting unknown provider concerts on first review."""

    def __init__(self, store: ICatalogStore) -> None:
        self._store = store

    async def submit_review(
        self,
        review: ReviewInput,
        concert: ConcertBase | ConcertInput | None = None,
    ) -> Review:
        """Store ``review``, upserting ``concert`` first if it is not yet local.

        Parameters
        ----------
        review:
            The review; ``review.concert_id`` is the concert's external id.
        concert:
            Snapshot of the reviewed concert.  Required when the concert is
            a provider concert not yet in the local catalog.  A provider
            record's date is stored as the provider sent it.

        Raises
        ------
        ConcertNotFoundError
            If the concert is unknown locally and either has a local-style
            id or no snapshot was supplied.
        """
        # The first review of a provider concert copies it into the catalog so
        # later queries serve the reviewed copy ahead of the provider record.
        existing = await self._store.get_concert(review.concert_id)
        if existing is None:
            key = ConcertKey.parse(review.concert_id)
            if key.origin is Origin.LOCAL or concert is None:
                raise ConcertNotFoundError(review.concert_id)
            await self._store.upsert_concert(review.concert_id, _snapshot_of(concert))
            logger.info(
                "review_concert_persisted",
                concert_id=review.concert_id,
                origin=key.origin.value,
            )

        return await self._store.create_review(review)

    async def reviews_for(self, concert_id: str) -> list[Review]:
        """Return the stored reviews for ``concert_id``, newest first."""
        return await self._store.get_reviews_for_concert(concert_id)


def _snapshot_of(concert: ConcertBase | ConcertInput) -> ConcertInput:
    if isinstance(concert, ConcertBase):
        return ConcertInput.from_concert(concert)
    return concert
