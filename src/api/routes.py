"""FastAPI API routes for ConcertCritic.

Provides the aggregated concert listing, local catalog CRUD, review
submission, direct provider lookups and a health check.  Service
dependencies are resolved from ``app.state`` via FastAPI's ``Depends``
using the ``Annotated`` pattern.

    Endpoint                                   Method  Description
    ──────────────────────────────────────────────────────────────────────
    /api/v1/concerts                           GET     Aggregated listing
    /api/v1/concerts                           POST    Create local concert
    /api/v1/concerts/{id}                      GET     Local concert by id
    /api/v1/concerts/{id}                      PUT     Partial update
    /api/v1/concerts/{id}                      DELETE  Delete with reviews
    /api/v1/concerts/{id}/reviews              GET     Reviews for a concert
    /api/v1/reviews                            POST    Submit review (upsert-on-write)
    /api/v1/ticketmaster/events                GET     Direct live search
    /api/v1/ticketmaster/events/{native_id}    GET     Direct live lookup
    /api/v1/setlistfm/events                   GET     Direct historical search
    /api/v1/setlistfm/artists/{mbid}/setlists  GET     Setlists for an artist
    /api/v1/health                             GET     Health + provider status
"""

from __future__ import annotations

from typing import Annotated, Literal

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from pydantic import ValidationError

from src.api.schemas import (
    ErrorResponse,
    HealthResponse,
    ReviewListResponse,
    SubmitReviewRequest,
)
from src.interfaces.catalog_store import ICatalogStore
from src.models.concert import CanonicalConcert, ConcertInput, ConcertUpdate, LocalConcert, Review
from src.models.query import ConcertFilter, Pagination, SourceToggles
from src.providers.event.setlistfm_provider import HistoricalSearchOptions, SetlistFmProvider
from src.providers.event.ticketmaster_provider import LiveEventSearchOptions, TicketmasterProvider
from src.services.concert_aggregation_service import ConcertAggregationService
from src.services.review_service import ReviewService
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_UPSTREAM_ERRORS = {502: {"model": ErrorResponse}}


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_aggregation_service(request: Request) -> ConcertAggregationService:
    return request.app.state.aggregation_service


def _get_catalog_store(request: Request) -> ICatalogStore:
    return request.app.state.catalog_store


def _get_review_service(request: Request) -> ReviewService:
    return request.app.state.review_service


def _get_live_provider(request: Request) -> TicketmasterProvider:
    return request.app.state.live_provider


def _get_historical_provider(request: Request) -> SetlistFmProvider:
    return request.app.state.historical_provider


AggregationDep = Annotated[ConcertAggregationService, Depends(_get_aggregation_service)]
CatalogDep = Annotated[ICatalogStore, Depends(_get_catalog_store)]
ReviewServiceDep = Annotated[ReviewService, Depends(_get_review_service)]
LiveProviderDep = Annotated[TicketmasterProvider, Depends(_get_live_provider)]
HistoricalProviderDep = Annotated[SetlistFmProvider, Depends(_get_historical_provider)]


# ---------------------------------------------------------------------------
# Aggregated listing
# ---------------------------------------------------------------------------


@router.get(
    "/concerts",
    response_model=list[CanonicalConcert],
    response_model_exclude_none=True,
    responses={422: {"model": ErrorResponse}},
    summary="List concerts from the catalog and optional external providers",
)
async def list_concerts(
    request: Request,
    service: AggregationDep,
    search: str | None = None,
    genre: str | None = None,
    city: str | None = None,
    limit: Annotated[int | None, Query(ge=0)] = None,
    offset: Annotated[int, Query(ge=0)] = 0,
    include_live_provider: Annotated[bool, Query(alias="includeLiveProvider")] = False,
    include_historical_provider: Annotated[
        bool, Query(alias="includeHistoricalProvider")
    ] = False,
    start_date: Annotated[str | None, Query(alias="startDate")] = None,
    end_date: Annotated[str | None, Query(alias="endDate")] = None,
) -> list[CanonicalConcert]:
    """Merged, deduplicated concerts: local first, then live, then historical."""
    try:
        concert_filter = ConcertFilter(
            search=search,
            genre=genre,
            city=city,
            start_date=start_date,
            end_date=end_date,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors()[0]["msg"]) from exc

    if limit is None:
        limit = request.app.state.default_page_size

    return await service.query(
        concert_filter,
        Pagination(limit=limit, offset=offset),
        SourceToggles(
            include_live_provider=include_live_provider,
            include_historical_provider=include_historical_provider,
        ),
    )


# ---------------------------------------------------------------------------
# Local catalog CRUD
# ---------------------------------------------------------------------------


@router.get(
    "/concerts/{concert_id}",
    response_model=LocalConcert,
    response_model_exclude_none=True,
    responses={404: {"model": ErrorResponse}},
    summary="Get a local concert",
)
async def get_concert(concert_id: str, store: CatalogDep) -> LocalConcert:
    """Return one catalog concert with its rating aggregates."""
    concert = await store.get_concert(concert_id)
    if concert is None:
        raise HTTPException(status_code=404, detail=f"Concert '{concert_id}' not found")
    return concert


@router.post(
    "/concerts",
    response_model=LocalConcert,
    response_model_exclude_none=True,
    status_code=201,
    summary="Create a local concert",
)
async def create_concert(body: ConcertInput, store: CatalogDep) -> LocalConcert:
    return await store.create_concert(body)


@router.put(
    "/concerts/{concert_id}",
    response_model=LocalConcert,
    response_model_exclude_none=True,
    responses={404: {"model": ErrorResponse}},
    summary="Update a local concert",
)
async def update_concert(concert_id: str, body: ConcertUpdate, store: CatalogDep) -> LocalConcert:
    """Apply the fields present in the body; absent fields are unchanged."""
    concert = await store.update_concert(concert_id, body)
    if concert is None:
        raise HTTPException(status_code=404, detail=f"Concert '{concert_id}' not found")
    return concert


@router.delete(
    "/concerts/{concert_id}",
    status_code=204,
    responses={404: {"model": ErrorResponse}},
    summary="Delete a local concert and its reviews",
)
async def delete_concert(concert_id: str, store: CatalogDep) -> Response:
    if not await store.delete_concert(concert_id):
        raise HTTPException(status_code=404, detail=f"Concert '{concert_id}' not found")
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------


@router.get(
    "/concerts/{concert_id}/reviews",
    response_model=ReviewListResponse,
    summary="List reviews for a concert",
)
async def list_reviews(concert_id: str, reviews: ReviewServiceDep) -> ReviewListResponse:
    stored = await reviews.reviews_for(concert_id)
    return ReviewListResponse(concert_id=concert_id, reviews=stored, total=len(stored))


@router.post(
    "/reviews",
    response_model=Review,
    status_code=201,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Submit a review, persisting an external concert on first review",
)
async def submit_review(body: SubmitReviewRequest, reviews: ReviewServiceDep) -> Review:
    """Store a review.

    Reviewing a ``tm_…`` or ``setlistfm_…`` concert for the first time
    requires the ``concert`` snapshot in the body; it is written to the
    local catalog under the same id.
    """
    review = await reviews.submit_review(body.to_review(), concert=body.concert)
    _logger.info("review_submitted", concert_id=review.concert_id, user_id=review.user_id)
    return review


# ---------------------------------------------------------------------------
# Direct provider access
# ---------------------------------------------------------------------------


@router.get(
    "/ticketmaster/events",
    response_model=list[CanonicalConcert],
    response_model_exclude_none=True,
    responses=_UPSTREAM_ERRORS,
    summary="Search the live event provider directly",
)
async def search_ticketmaster_events(
    provider: LiveProviderDep,
    keyword: str | None = None,
    city: str | None = None,
    state_code: Annotated[str | None, Query(alias="stateCode")] = None,
    country_code: Annotated[str | None, Query(alias="countryCode")] = None,
    classification_name: Annotated[str | None, Query(alias="classificationName")] = None,
    page: Annotated[int, Query(ge=0)] = 0,
    size: Annotated[int | None, Query(ge=1, le=200)] = None,
    sort: str | None = None,
    start_date_time: Annotated[str | None, Query(alias="startDateTime")] = None,
    end_date_time: Annotated[str | None, Query(alias="endDateTime")] = None,
    radius: Annotated[int | None, Query(ge=1)] = None,
    unit: Literal["miles", "km"] | None = None,
) -> list[CanonicalConcert]:
    return await provider.search(
        LiveEventSearchOptions(
            keyword=keyword,
            city=city,
            state_code=state_code,
            country_code=country_code,
            classification_name=classification_name,
            page=page,
            size=size,
            sort=sort,
            start_date_time=start_date_time,
            end_date_time=end_date_time,
            radius=radius,
            unit=unit,
        )
    )


@router.get(
    "/ticketmaster/events/{native_id}",
    response_model=CanonicalConcert,
    response_model_exclude_none=True,
    responses={404: {"model": ErrorResponse}, **_UPSTREAM_ERRORS},
    summary="Look up one live event by its Ticketmaster id",
)
async def get_ticketmaster_event(native_id: str, provider: LiveProviderDep) -> CanonicalConcert:
    event = await provider.get_event(native_id)
    if event is None:
        raise HTTPException(status_code=404, detail=f"Event '{native_id}' not found")
    return event


@router.get(
    "/setlistfm/events",
    response_model=list[CanonicalConcert],
    response_model_exclude_none=True,
    responses=_UPSTREAM_ERRORS,
    summary="Search the historical setlist archive directly",
)
async def search_setlistfm_events(
    provider: HistoricalProviderDep,
    artist_name: Annotated[str | None, Query(alias="artistName")] = None,
    artist_mbid: Annotated[str | None, Query(alias="artistMbid")] = None,
    city_name: Annotated[str | None, Query(alias="cityName")] = None,
    country_code: Annotated[str | None, Query(alias="countryCode")] = None,
    date: str | None = None,
    venue_name: Annotated[str | None, Query(alias="venueName")] = None,
    venue_id: Annotated[str | None, Query(alias="venueId")] = None,
    year: int | None = None,
    state: str | None = None,
    tour_name: Annotated[str | None, Query(alias="tourName")] = None,
    p: Annotated[int, Query(ge=1)] = 1,
) -> list[CanonicalConcert]:
    return await provider.search(
        HistoricalSearchOptions(
            artist_name=artist_name,
            artist_mbid=artist_mbid,
            city_name=city_name,
            country_code=country_code,
            date=date,
            venue_name=venue_name,
            venue_id=venue_id,
            year=year,
            state=state,
            tour_name=tour_name,
            page=p,
        )
    )


@router.get(
    "/setlistfm/artists/{artist_mbid}/setlists",
    response_model=list[CanonicalConcert],
    response_model_exclude_none=True,
    responses=_UPSTREAM_ERRORS,
    summary="List archived setlists for an artist (MusicBrainz id)",
)
async def get_artist_setlists(
    artist_mbid: str,
    provider: HistoricalProviderDep,
    p: Annotated[int, Query(ge=1)] = 1,
) -> list[CanonicalConcert]:
    return await provider.get_artist_setlists(artist_mbid, page=p)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider availability."""
    providers = dict(getattr(request.app.state, "provider_registry", {}))
    external = [v for k, v in providers.items() if k != "catalog"]
    status = "healthy" if all(external) else "degraded"

    config = getattr(request.app.state, "config", {})
    version = config.get("app", {}).get("version", "0.1.0")

    return HealthResponse(status=status, version=version, providers=providers)
