"""setlist.fm REST API provider for historical concerts.

Implements :class:`IConcertEventProvider` over
``GET {base}/search/setlists`` and ``GET {base}/artist/{mbid}/setlists``.
Authentication is header based (``x-api-key``) and setlist.fm requires
both an ``Accept: application/json`` header and an identifying
``User-Agent``.  Pages (``p``) are 1-indexed.

Every returned record is a :class:`HistoricalConcert`.  setlist.fm reports
event dates as ``DD-MM-YYYY``; they are converted to ISO here, and a date
that cannot be parsed is passed through unchanged with a warning.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from src.config.settings import Settings
from src.interfaces.event_provider import IConcertEventProvider
from src.models.concert import GENERIC_GENRE, HISTORICAL, CanonicalConcert, HistoricalConcert
from src.models.query import ConcertFilter, Pagination
from src.providers.event.http_json import as_object, fetch_json, objects_in, require_array
from src.utils.date_normalizer import day_first_to_iso
from src.utils.logging import get_logger

_DOMESTIC_COUNTRY_CODE = "US"


@dataclass(frozen=True)
class HistoricalSearchOptions:
    """Native ``/search/setlists`` parameters.  ``page`` maps to 1-indexed ``p``."""

    artist_name: str | None = None
    artist_mbid: str | None = None
    city_name: str | None = None
    country_code: str | None = None
    date: str | None = None          # DD-MM-YYYY, as setlist.fm expects
    venue_name: str | None = None
    venue_id: str | None = None
    year: int | None = None
    state: str | None = None
    tour_name: str | None = None
    page: int = 1


def extract_setlist(setlist: dict[str, Any]) -> list[str]:
    """Flatten every set (encores included) into an ordered list of song names.

    Songs without a name (segues, tape intros) are dropped, as are entries
    that are not JSON objects.
    """
    sets = objects_in(as_object(setlist.get("sets")).get("set"))
    songs: list[str] = []
    for song_set in sets:
        for song in objects_in(song_set.get("song")):
            name = song.get("name")
            if isinstance(name, str) and name:
                songs.append(name)
    return songs


def _required_object(container: dict[str, Any], key: str) -> dict[str, Any]:
    value = container[key]
    if not isinstance(value, dict):
        msg = f"'{key}' is a {type(value).__name__}, expected an object"
        raise TypeError(msg)
    return value


def _required_text(container: dict[str, Any], key: str) -> str:
    value = container[key]
    if not isinstance(value, (str, int)) or isinstance(value, bool) or value == "":
        msg = f"'{key}' is missing or not a string"
        raise ValueError(msg)
    return str(value)


def _optional_text(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _format_city(city: dict[str, Any]) -> str:
    label = _required_text(city, "name")
    state_code = _optional_text(city.get("stateCode"))
    state = _optional_text(city.get("state"))
    if state_code:
        label += f", {state_code}"
    elif state:
        label += f", {state}"
    country_code = _optional_text(as_object(city.get("country")).get("code"))
    if country_code and country_code != _DOMESTIC_COUNTRY_CODE:
        label += f", {country_code}"
    return label


class SetlistFmProvider(IConcertEventProvider[HistoricalSearchOptions]):
    """Historical concert provider backed by the setlist.fm API."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient) -> None:
        self._api_key = settings.setlist_fm_api_key
        self._base_url = settings.setlist_fm_base_url.rstrip("/")
        self._user_agent = settings.setlist_fm_user_agent
        self._timeout = settings.http_timeout_seconds
        self._http = http_client
        self._logger = get_logger(__name__)

    # -- Private helpers -------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self._api_key,
            "Accept": "application/json",
            "User-Agent": self._user_agent,
        }

    @staticmethod
    def _build_params(options: HistoricalSearchOptions) -> list[tuple[str, str]]:
        params: list[tuple[str, str]] = [("p", str(options.page))]
        optional = (
            ("artistName", options.artist_name),
            ("artistMbid", options.artist_mbid),
            ("cityName", options.city_name),
            ("countryCode", options.country_code),
            ("date", options.date),
            ("venueName", options.venue_name),
            ("venueId", options.venue_id),
            ("year", options.year),
            ("state", options.state),
            ("tourName", options.tour_name),
        )
        params.extend((name, str(value)) for name, value in optional if value)
        return params

    async def _fetch_setlists(self, path: str, params: list[tuple[str, str]]) -> list[CanonicalConcert]:
        data = await fetch_json(
            self._http,
            f"{self._base_url}{path}",
            provider_name=self.get_provider_name(),
            logger=self._logger,
            params=params,
            headers=self._headers(),
            timeout=self._timeout,
        )
        if data is None:
            return []

        concerts: list[CanonicalConcert] = []
        setlists = require_array(data, "setlist", provider_name=self.get_provider_name())
        for setlist in setlists:
            try:
                concerts.append(self.transform_setlist(setlist))
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                self._logger.warning(
                    "setlistfm_setlist_skipped",
                    setlist_id=setlist.get("id") if isinstance(setlist, dict) else None,
                    error=str(exc),
                )

        self._logger.info(
            "setlistfm_search_complete",
            path=path,
            page=data.get("page"),
            total=data.get("total"),
            result_count=len(concerts),
        )
        return concerts

    def _convert_date(self, event_date: str) -> str:
        iso = day_first_to_iso(event_date)
        if iso is None:
            self._logger.warning("setlistfm_unparseable_date", raw_date=event_date)
            return event_date
        return iso

    def transform_setlist(self, setlist: dict[str, Any]) -> HistoricalConcert:
        """Map one setlist.fm setlist onto the canonical historical shape.

        Raises ``KeyError`` / ``TypeError`` / ``ValueError`` when the setlist,
        its artist, venue or city is missing or not an object.
        """
        if not isinstance(setlist, dict):
            msg = f"setlist is a {type(setlist).__name__}, expected an object"
            raise TypeError(msg)
        venue = _required_object(setlist, "venue")
        artist = _required_object(setlist, "artist")
        artist_name = _required_text(artist, "name")
        venue_name = _required_text(venue, "name")
        city = _format_city(_required_object(venue, "city"))
        songs = extract_setlist(setlist)
        tour_name = _optional_text(as_object(setlist.get("tour")).get("name"))

        description = f"{artist_name} performed at {venue_name} in {city}"
        if tour_name:
            description += f" ({tour_name})"
        if songs:
            description += f". Setlist included {len(songs)} songs."

        return HistoricalConcert(
            native_id=_required_text(setlist, "id"),
            artist=artist_name,
            venue=venue_name,
            city=city,
            date=self._convert_date(_required_text(setlist, "eventDate")),
            time=HISTORICAL,
            price=HISTORICAL,
            genre=GENERIC_GENRE,
            image_url=None,
            ticket_url=_optional_text(setlist.get("url")),
            description=description,
            setlist=songs,
            artist_mbid=_optional_text(artist.get("mbid")),
            venue_id=_optional_text(venue.get("id")),
            tour_name=tour_name,
            concert_info=_optional_text(setlist.get("info")),
            last_updated=_optional_text(setlist.get("lastUpdated")),
        )

    # -- IConcertEventProvider implementation ----------------------------------

    def options_for(
        self, concert_filter: ConcertFilter, pagination: Pagination
    ) -> HistoricalSearchOptions:
        """Map the aggregation query onto 1-indexed setlist.fm options."""
        return HistoricalSearchOptions(
            artist_name=concert_filter.search,
            city_name=concert_filter.city,
            page=pagination.page_index + 1,
        )

    async def search(self, options: HistoricalSearchOptions) -> list[CanonicalConcert]:
        """Search archived setlists; returns ``[]`` when unconfigured or on 404."""
        if not self.is_available():
            self._logger.warning("setlistfm_not_configured")
            return []
        return await self._fetch_setlists("/search/setlists", self._build_params(options))

    async def get_artist_setlists(self, artist_mbid: str, page: int = 1) -> list[CanonicalConcert]:
        """Return one page of setlists for the artist with MusicBrainz id ``artist_mbid``."""
        if not self.is_available():
            self._logger.warning("setlistfm_not_configured")
            return []
        return await self._fetch_setlists(f"/artist/{artist_mbid}/setlists", [("p", str(page))])

    def get_provider_name(self) -> str:
        return "setlistfm"

    def is_available(self) -> bool:
        return bool(self._api_key)
