"""Concert aggregation service.

Reconciles the persisted local catalog with the optional live (Ticketmaster)
and historical (setlist.fm) providers into a single, deduplicated and
paginated list of canonical concerts.

One query runs these steps:

1. Read the local catalog with the filter applied server-side.
2. Fan out to the enabled providers concurrently; each provider translates
   the filter and the flat pagination window into its own native options.
3. Merge in source order (local, live, historical), dropping any provider
   record whose id has already been seen.  Local records always win.
4. Re-apply search and genre over the merged list with one matching rule,
   since every source filters natively in its own way.
5. Cut the flat ``[offset, offset + limit)`` window.

A provider that raises :class:`UpstreamError` contributes nothing and the
failure is logged; the local catalog is never skipped.

The flat window is an approximation: providers are asked for the page
that contains ``offset`` at their own page size, not for a globally
consistent slice of the merged result.
"""

from __future__ import annotations

from typing import Iterable

import structlog

from src.interfaces.catalog_store import ICatalogStore
from src.interfaces.event_provider import IConcertEventProvider
from src.models.concert import CanonicalConcert
from src.models.query import ConcertFilter, Pagination, SourceToggles
from src.utils.concurrency import gather_settled
from src.utils.logging import get_logger


def _matches_search(concert: CanonicalConcert, needle: str) -> bool:
    return any(needle in field.lower() for field in (concert.artist, concert.venue, concert.city))


def _matches_genre(concert: CanonicalConcert, needle: str) -> bool:
    return concert.genre is not None and needle in concert.genre.lower()


def merge_unique(
    local: Iterable[CanonicalConcert],
    *provider_batches: Iterable[CanonicalConcert],
) -> list[CanonicalConcert]:
    """Concatenate batches in order, keeping the first record seen per id."""
    merged: list[CanonicalConcert] = []
    seen: set[str] = set()
    for batch in (local, *provider_batches):
        for concert in batch:
            if concert.id in seen:
                continue
            seen.add(concert.id)
            merged.append(concert)
    return merged


def apply_post_merge_filter(
    concerts: list[CanonicalConcert], concert_filter: ConcertFilter
) -> list[CanonicalConcert]:
    """Case-insensitive substring match on artist/venue/city and on genre."""
    result = concerts
    if concert_filter.search:
        needle = concert_filter.search.lower()
        result = [c for c in result if _matches_search(c, needle)]
    if concert_filter.genre:
        needle = concert_filter.genre.lower()
        result = [c for c in result if _matches_genre(c, needle)]
    return result


class ConcertAggregationService:
    """Query the local catalog plus the toggled external providers.

    Parameters
    ----------
    store:
        The persisted catalog; always queried.
    live_provider:
        Optional live-event provider, consulted when
        ``SourceToggles.include_live_provider`` is set.
    historical_provider:
        Optional historical provider, consulted when
        ``SourceToggles.include_historical_provider`` is set.
    """

    def __init__(
        self,
        store: ICatalogStore,
        live_provider: IConcertEventProvider | None = None,
        historical_provider: IConcertEventProvider | None = None,
    ) -> None:
        self._store = store
        self._live = live_provider
        self._historical = historical_provider
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def query(
        self,
        concert_filter: ConcertFilter | None = None,
        pagination: Pagination | None = None,
        toggles: SourceToggles | None = None,
    ) -> list[CanonicalConcert]:
        """Return one page of merged, deduplicated concerts.

        Parameters
        ----------
        concert_filter:
            Optional search / genre / city / date constraints.
        pagination:
            Flat ``limit`` / ``offset`` window over the merged result.
        toggles:
            Which external providers to include.

        Returns
        -------
        list[CanonicalConcert]
            Local records first, then live events, then historical setlists.
            Empty when ``limit`` is 0 or ``offset`` is past the end.
        """
        concert_filter = concert_filter or ConcertFilter()
        pagination = pagination or Pagination()
        toggles = toggles or SourceToggles()

        if pagination.limit == 0:
            return []

        # Local rows up to the end of the window so the final slice is exact
        # whenever no provider is involved.
        local = await self._store.get_concerts(concert_filter, limit=pagination.end, offset=0)

        sources: list[tuple[str, IConcertEventProvider]] = []
        if toggles.include_live_provider and self._live is not None:
            sources.append((self._live.get_provider_name(), self._live))
        if toggles.include_historical_provider and self._historical is not None:
            sources.append((self._historical.get_provider_name(), self._historical))

        # Providers run concurrently. One that raises UpstreamError contributes an
        # empty batch and the query still answers from the remaining sources.
        provider_batches: list[list[CanonicalConcert]] = []
        if sources:
            provider_batches = await gather_settled(
                [p.search(p.options_for(concert_filter, pagination)) for _, p in sources],
                labels=[name for name, _ in sources],
                fallback=[],
                logger=self._logger,
            )

        # First occurrence wins, so a reviewed catalog copy shadows the provider
        # record with the same id. Search and genre are re-applied after the
        # merge because providers honour them only loosely.
        merged = merge_unique(local, *provider_batches)
        filtered = apply_post_merge_filter(merged, concert_filter)
        page = filtered[pagination.offset : pagination.end]

        self._logger.info(
            "aggregation_complete",
            local_count=len(local),
            provider_counts={name: len(batch) for (name, _), batch in zip(sources, provider_batches)},
            merged_count=len(merged),
            filtered_count=len(filtered),
            returned=len(page),
            offset=pagination.offset,
            limit=pagination.limit,
        )
        return page
