"""Ticketmaster Discovery API provider for live, on-sale concerts.

Implements :class:`IConcertEventProvider` over
``GET {base}/events.json``.  Every request is pinned to the ``music``
classification; an explicit genre is sent as an additional
``classificationName``.  Pages are 0-indexed on this API.

Native events are transformed into :class:`LiveEventConcert` records with
``tm_``-prefixed ids.  Events that cannot be transformed (missing name or
start date) are skipped with a warning rather than failing the request.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

import httpx

from src.config.settings import Settings
from src.interfaces.event_provider import IConcertEventProvider
from src.models.concert import GENERIC_GENRE, TBA, CanonicalConcert, LiveEventConcert
from src.models.query import ConcertFilter, Pagination
from src.providers.event.http_json import (
    as_object,
    fetch_json,
    objects_in,
    require_array,
    require_object,
)
from src.utils.date_normalizer import to_iso_date
from src.utils.logging import get_logger

_MUSIC_CLASSIFICATION = "music"
_PREFERRED_IMAGE_RATIO = "16_9"


@dataclass(frozen=True)
class LiveEventSearchOptions:
    """Native Discovery API search parameters.

    ``page`` is 0-indexed.  ``size`` and ``sort`` fall back to the
    configured defaults when left as ``None``.
    """

    keyword: str | None = None
    city: str | None = None
    state_code: str | None = None
    country_code: str | None = None
    classification_name: str | None = None
    page: int = 0
    size: int | None = None
    sort: str | None = None
    start_date_time: str | None = None
    end_date_time: str | None = None
    radius: int | None = None
    unit: Literal["miles", "km"] | None = None


# ---------------------------------------------------------------------------
# Transform helpers
# ---------------------------------------------------------------------------

def _first(items: Any) -> dict[str, Any] | None:
    objects = objects_in(items)
    return objects[0] if objects else None


def _best_image(images: Any) -> str | None:
    """Prefer a 16:9 image, otherwise the variant with the largest pixel area."""
    candidates = [img for img in objects_in(images) if isinstance(img.get("url"), str)]
    if not candidates:
        return None
    for image in candidates:
        if image.get("ratio") == _PREFERRED_IMAGE_RATIO:
            return image["url"]

    def _area(img: dict[str, Any]) -> int:
        width, height = img.get("width"), img.get("height")
        if not isinstance(width, int) or not isinstance(height, int):
            return 0
        return width * height

    return max(candidates, key=_area)["url"]


def _format_amount(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _format_price(price_range: dict[str, Any] | None) -> str:
    if not price_range or price_range.get("min") is None:
        return TBA
    low = price_range["min"]
    high = price_range.get("max")
    if high is None:
        high = low
    return f"${_format_amount(low)}-${_format_amount(high)}"


def _name_of(value: Any) -> str | None:
    name = as_object(value).get("name")
    return name if isinstance(name, str) and name else None


def _str_or_none(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value)


def _format_city(venue: dict[str, Any] | None) -> str:
    venue = as_object(venue)
    city_name = _name_of(venue.get("city"))
    if not city_name:
        return TBA
    region = as_object(venue.get("state")).get("stateCode") or as_object(
        venue.get("country")
    ).get("countryCode")
    return f"{city_name}, {region}" if region else city_name


def _pick_genre(classification: dict[str, Any] | None) -> str:
    classification = as_object(classification)
    return (
        _name_of(classification.get("genre"))
        or _name_of(classification.get("subGenre"))
        or GENERIC_GENRE
    )


class TicketmasterProvider(IConcertEventProvider[LiveEventSearchOptions]):
    """Live event provider backed by the Ticketmaster Discovery API.

    Parameters
    ----------
    settings:
        Application settings carrying the consumer key and base URL.
    http_client:
        Injected ``httpx.AsyncClient`` shared across providers.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient) -> None:
        self._consumer_key = settings.ticketmaster_consumer_key
        self._base_url = settings.ticketmaster_base_url.rstrip("/")
        self._default_size = settings.ticketmaster_default_page_size
        self._default_sort = settings.ticketmaster_default_sort
        self._timeout = settings.http_timeout_seconds
        self._http = http_client
        self._logger = get_logger(__name__)

    # -- Private helpers -------------------------------------------------------

    def _build_params(self, options: LiveEventSearchOptions) -> list[tuple[str, str]]:
        params: list[tuple[str, str]] = [
            ("apikey", self._consumer_key),
            ("classificationName", _MUSIC_CLASSIFICATION),
            ("size", str(options.size or self._default_size)),
            ("page", str(options.page)),
            ("sort", options.sort or self._default_sort),
        ]
        optional = (
            ("keyword", options.keyword),
            ("city", options.city),
            ("stateCode", options.state_code),
            ("countryCode", options.country_code),
            ("classificationName", options.classification_name),
            ("startDateTime", options.start_date_time),
            ("endDateTime", options.end_date_time),
            ("radius", options.radius),
            ("unit", options.unit),
        )
        params.extend((name, str(value)) for name, value in optional if value)
        return params

    async def _get(self, path: str, params: list[tuple[str, str]]) -> dict[str, Any] | None:
        return await fetch_json(
            self._http,
            f"{self._base_url}{path}",
            provider_name=self.get_provider_name(),
            logger=self._logger,
            params=params,
            timeout=self._timeout,
        )

    def transform_event(self, event: dict[str, Any]) -> LiveEventConcert:
        """Map one Discovery API event onto the canonical live-event shape.

        Raises ``KeyError`` / ``TypeError`` / ``ValueError`` when the event is
        not an object or has no id, no name or no start date.  Nested values
        of the wrong type are treated as absent.
        """
        if not isinstance(event, dict):
            msg = f"event is a {type(event).__name__}, expected an object"
            raise TypeError(msg)

        # Headliner and venue come from the first embedded attraction and venue.
        # Event-level classifications win over the attraction's own.
        embedded = as_object(event.get("_embedded"))
        venue = _first(embedded.get("venues")) or {}
        attraction = _first(embedded.get("attractions")) or {}
        classification = _first(event.get("classifications")) or _first(
            attraction.get("classifications")
        )
        dates = as_object(event.get("dates"))
        start = as_object(dates.get("start"))

        local_date = start.get("localDate")
        if not isinstance(local_date, str) or not local_date:
            msg = "event has no start date"
            raise ValueError(msg)
        iso_date = to_iso_date(local_date)
        if iso_date is None:
            self._logger.warning(
                "ticketmaster_unparseable_date",
                event_id=event.get("id"),
                raw_date=local_date,
            )
            iso_date = local_date

        # Events without an attraction (festival passes, parking) fall back to
        # the event title.
        artist = _name_of(attraction) or event["name"]
        if not isinstance(artist, str) or not artist:
            msg = "event has no name"
            raise ValueError(msg)
        venue_name = _name_of(venue) or TBA
        city_name = _name_of(venue.get("city"))
        description = f"{artist} at {venue_name}"
        if city_name:
            description += f" in {city_name}"

        local_time = start.get("localTime")
        ticket_url = event.get("url")
        timezone = dates.get("timezone")
        native_id = _str_or_none(event["id"])
        if not native_id:
            msg = "event has no id"
            raise ValueError(msg)

        return LiveEventConcert(
            native_id=native_id,
            artist=artist,
            venue=venue_name,
            city=_format_city(venue),
            date=iso_date,
            time=local_time if isinstance(local_time, str) and local_time else TBA,
            price=_format_price(_first(event.get("priceRanges"))),
            genre=_pick_genre(classification),
            image_url=_best_image(event.get("images")) or _best_image(attraction.get("images")),
            ticket_url=ticket_url if isinstance(ticket_url, str) else None,
            description=description,
            venue_id=_str_or_none(venue.get("id")),
            attraction_id=_str_or_none(attraction.get("id")),
            event_status=_str_or_none(as_object(dates.get("status")).get("code")),
            timezone=_str_or_none(timezone),
        )

    def _transform_all(self, events: list[Any]) -> list[CanonicalConcert]:
        concerts: list[CanonicalConcert] = []
        for event in events:
            try:
                concerts.append(self.transform_event(event))
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                self._logger.warning(
                    "ticketmaster_event_skipped",
                    event_id=event.get("id") if isinstance(event, dict) else None,
                    error=str(exc),
                )
        return concerts

    # -- IConcertEventProvider implementation ----------------------------------

    def options_for(
        self, concert_filter: ConcertFilter, pagination: Pagination
    ) -> LiveEventSearchOptions:
        """Map the aggregation query onto 0-indexed Discovery API options."""
        return LiveEventSearchOptions(
            keyword=concert_filter.search,
            city=concert_filter.city,
            classification_name=concert_filter.genre,
            page=pagination.page_index,
            size=pagination.limit or None,
            start_date_time=(
                f"{concert_filter.start_date}T00:00:00Z" if concert_filter.start_date else None
            ),
            end_date_time=(
                f"{concert_filter.end_date}T23:59:59Z" if concert_filter.end_date else None
            ),
        )

    async def search(self, options: LiveEventSearchOptions) -> list[CanonicalConcert]:
        """Search music events; returns ``[]`` when unconfigured or on 404.

        Raises :class:`UpstreamError` on HTTP failure or when ``_embedded``
        / ``events`` do not have the documented types.
        """
        if not self.is_available():
            self._logger.warning("ticketmaster_not_configured")
            return []

        data = await self._get("/events.json", self._build_params(options))
        if data is None:
            return []

        provider_name = self.get_provider_name()
        embedded = require_object(data, "_embedded", provider_name=provider_name)
        events = require_array(embedded, "events", provider_name=provider_name)
        concerts = self._transform_all(events)

        page = as_object(data.get("page"))
        self._logger.info(
            "ticketmaster_search_complete",
            keyword=options.keyword,
            page=page.get("number", options.page),
            total_elements=page.get("totalElements"),
            result_count=len(concerts),
        )
        return concerts

    async def get_event(self, event_id: str) -> LiveEventConcert | None:
        """Fetch a single event by its native Ticketmaster id."""
        if not self.is_available():
            self._logger.warning("ticketmaster_not_configured")
            return None

        data = await self._get(f"/events/{event_id}.json", [("apikey", self._consumer_key)])
        if data is None:
            return None
        try:
            return self.transform_event(data)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            self._logger.warning("ticketmaster_event_skipped", event_id=event_id, error=str(exc))
            return None

    def get_provider_name(self) -> str:
        """Return ``'ticketmaster'``."""
        return "ticketmaster"

    def is_available(self) -> bool:
        """Return ``True`` if a consumer key is configured."""
        return bool(self._consumer_key)
