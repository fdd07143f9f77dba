"""Abstract base class for external concert event providers.

Defines the contract the aggregation engine relies on when it queries the
live ticketing catalog or the historical setlist archive.  Each provider
owns two responsibilities:

1. translating the engine's source-neutral filter and pagination into its
   own native search parameters (page numbering, parameter names), and
2. transforming its native response records into canonical concerts.

The adapter pattern keeps the engine free of provider details and lets
tests inject mock providers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from src.models.concert import CanonicalConcert
from src.models.query import ConcertFilter, Pagination

OptionsT = TypeVar("OptionsT")


class IConcertEventProvider(ABC, Generic[OptionsT]):
    """Contract for read-only external concert sources."""

    @abstractmethod
    def options_for(self, concert_filter: ConcertFilter, pagination: Pagination) -> OptionsT:
        """Translate an aggregation query into this provider's search options.

        Parameters
        ----------
        concert_filter:
            Source-neutral filter supplied by the caller.
        pagination:
            The caller's flat ``limit`` / ``offset`` window.  Providers map
            it onto their own page numbering (0- or 1-indexed).
        """

    @abstractmethod
    async def search(self, options: OptionsT) -> list[CanonicalConcert]:
        """Run one search call and return canonical concerts in response order.

        Returns an empty list when the provider is not configured or the
        upstream reports "not found".

        Raises
        ------
        src.utils.errors.UpstreamError
            On any other non-2xx response or transport failure.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier, e.g. ``"ticketmaster"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials for this provider are configured."""
