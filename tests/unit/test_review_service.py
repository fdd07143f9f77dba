"""Unit tests for review submission with upsert-on-write."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.catalog_store import ICatalogStore
from src.models.concert import (
    ConcertInput,
    HistoricalConcert,
    LiveEventConcert,
    ReviewInput,
)
from src.models.query import ConcertFilter, Pagination, SourceToggles
from src.providers.catalog.sqlite_catalog_store import SQLiteCatalogStore
from src.services.concert_aggregation_service import ConcertAggregationService
from src.services.review_service import ReviewService
from src.utils.errors import ConcertNotFoundError


def _review(concert_id: str, user_id: str = "u1", overall: int = 4) -> ReviewInput:
    return ReviewInput(
        user_id=user_id,
        concert_id=concert_id,
        overall_rating=overall,
        performance_rating=4,
        sound_rating=4,
        venue_rating=4,
        value_rating=4,
        review_text="Great night",
    )


class TestSubmitReview:
    @pytest.mark.asyncio
    async def test_provider_concert_is_persisted_on_first_review(
        self, catalog_store: SQLiteCatalogStore, live_concert: LiveEventConcert
    ) -> None:
        service = ReviewService(catalog_store)

        review = await service.submit_review(_review(live_concert.id), concert=live_concert)

        assert review.concert_id == "tm_123"
        stored = await catalog_store.get_concert("tm_123")
        assert stored is not None
        assert stored.artist == live_concert.artist
        assert stored.review_count == 1
        assert stored.average_rating == pytest.approx(4.0)

    @pytest.mark.asyncio
    async def test_existing_concert_is_not_overwritten(
        self, catalog_store: SQLiteCatalogStore, live_concert: LiveEventConcert
    ) -> None:
        service = ReviewService(catalog_store)
        await service.submit_review(_review(live_concert.id, user_id="u1"), concert=live_concert)

        renamed = live_concert.model_copy(update={"artist": "Renamed"})
        await service.submit_review(_review(live_concert.id, user_id="u2"), concert=renamed)

        stored = await catalog_store.get_concert("tm_123")
        assert stored.artist == "Daylight"
        assert stored.review_count == 2

    @pytest.mark.asyncio
    async def test_accepts_concert_input_snapshot(self, catalog_store: SQLiteCatalogStore) -> None:
        service = ReviewService(catalog_store)
        snapshot = ConcertInput(artist="Radiohead", venue="Brixton", city="London", date="05-03-2024")

        await service.submit_review(_review("setlistfm_abc"), concert=snapshot)

        stored = await catalog_store.get_concert("setlistfm_abc")
        assert stored.date == "2024-03-05"

    @pytest.mark.asyncio
    async def test_unknown_concert_without_snapshot(self) -> None:
        store = MagicMock(spec=ICatalogStore)
        store.get_concert = AsyncMock(return_value=None)
        service = ReviewService(store)

        with pytest.raises(ConcertNotFoundError):
            await service.submit_review(_review("tm_404"))
        store.upsert_concert.assert_not_called()
        store.create_review.assert_not_called()

    @pytest.mark.asyncio
    async def test_provider_date_that_failed_to_parse_is_kept(
        self, catalog_store: SQLiteCatalogStore, historical_concert: HistoricalConcert
    ) -> None:
        odd_date = historical_concert.model_copy(update={"date": "2024-??-??"})
        service = ReviewService(catalog_store)

        review = await service.submit_review(_review(odd_date.id), concert=odd_date)

        assert review.concert_id == "setlistfm_63de4613"
        stored = await catalog_store.get_concert("setlistfm_63de4613")
        assert stored.date == "2024-??-??"
        assert stored.time == "Historical"

    @pytest.mark.asyncio
    async def test_unknown_local_id_is_not_upserted(self, live_concert: LiveEventConcert) -> None:
        store = MagicMock(spec=ICatalogStore)
        store.get_concert = AsyncMock(return_value=None)
        service = ReviewService(store)

        with pytest.raises(ConcertNotFoundError):
            await service.submit_review(_review("0b5e-local"), concert=live_concert)
        store.upsert_concert.assert_not_called()
        store.create_review.assert_not_called()

    @pytest.mark.asyncio
    async def test_reviewed_concert_wins_over_provider_copy(
        self, catalog_store: SQLiteCatalogStore, live_concert: LiveEventConcert
    ) -> None:
        await ReviewService(catalog_store).submit_review(
            _review(live_concert.id), concert=live_concert
        )
        live = MagicMock()
        live.get_provider_name.return_value = "ticketmaster"
        live.options_for.return_value = None
        live.search = AsyncMock(return_value=[live_concert])
        aggregation = ConcertAggregationService(catalog_store, live_provider=live)

        results = await aggregation.query(
            ConcertFilter(), Pagination(), SourceToggles(include_live_provider=True)
        )

        assert [c.id for c in results] == ["tm_123"]
        assert results[0].review_count == 1


class TestReviewsFor:
    @pytest.mark.asyncio
    async def test_lists_reviews(self, catalog_store: SQLiteCatalogStore) -> None:
        created = await catalog_store.create_concert(
            ConcertInput(artist="A", venue="V", city="C", date="2024-01-01")
        )
        service = ReviewService(catalog_store)
        await service.submit_review(_review(created.id))

        reviews = await service.reviews_for(created.id)

        assert len(reviews) == 1
        assert reviews[0].review_text == "Great night"
