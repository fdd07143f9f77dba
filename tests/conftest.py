"""Shared pytest fixtures for the ConcertCritic test suite."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Callable

import pytest
import pytest_asyncio

from src.config.settings import Settings
from src.models.concert import HistoricalConcert, LiveEventConcert, LocalConcert
from src.providers.catalog.sqlite_catalog_store import SQLiteCatalogStore

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Build a Settings instance that ignores any local .env file."""

    def _make(**overrides: Any) -> Settings:
        defaults: dict[str, Any] = {
            "ticketmaster_consumer_key": "tm-test-key",
            "setlist_fm_api_key": "sfm-test-key",
        }
        defaults.update(overrides)
        return Settings(_env_file=None, **defaults)

    return _make


# ---------------------------------------------------------------------------
# Catalog store
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def catalog_store(tmp_path: Path) -> SQLiteCatalogStore:
    """An initialized SQLite catalog in a temporary directory."""
    store = SQLiteCatalogStore(db_path=tmp_path / "catalog.db")
    await store.initialize()
    return store


# ---------------------------------------------------------------------------
# Upstream payloads
# ---------------------------------------------------------------------------

_TICKETMASTER_EVENT: dict[str, Any] = {
    "id": "123",
    "name": "The Midnight - Monsters Tour",
    "url": "https://www.ticketmaster.com/event/123",
    "images": [
        {"ratio": "3_2", "url": "https://img.example/3_2.jpg", "width": 305, "height": 203},
        {"ratio": "16_9", "url": "https://img.example/16_9.jpg", "width": 1024, "height": 576},
        {"ratio": "4_3", "url": "https://img.example/4_3.jpg", "width": 2048, "height": 1536},
    ],
    "dates": {
        "start": {"localDate": "2024-06-15", "localTime": "20:00:00"},
        "timezone": "America/Los_Angeles",
        "status": {"code": "onsale"},
    },
    "classifications": [
        {"genre": {"name": "Electronic"}, "subGenre": {"name": "Synthwave"}},
    ],
    "priceRanges": [{"type": "standard", "currency": "USD", "min": 35.0, "max": 75.5}],
    "_embedded": {
        "venues": [
            {
                "id": "KovZpZA7AAEA",
                "name": "The Fillmore",
                "city": {"name": "San Francisco"},
                "state": {"stateCode": "CA"},
                "country": {"countryCode": "US"},
            }
        ],
        "attractions": [{"id": "K8vZ917Gku7", "name": "The Midnight"}],
    },
}

_SETLIST: dict[str, Any] = {
    "id": "63de4613",
    "eventDate": "05-03-2024",
    "lastUpdated": "2024-03-06T10:00:00.000+0000",
    "artist": {"mbid": "a74b1b7f-71a5-4011-9441-d0b5e4122711", "name": "Radiohead"},
    "venue": {
        "id": "6bd6ca6e",
        "name": "O2 Academy Brixton",
        "city": {
            "id": "2643743",
            "name": "London",
            "state": "England",
            "stateCode": "ENG",
            "country": {"code": "GB", "name": "United Kingdom"},
        },
    },
    "tour": {"name": "In Rainbows Tour"},
    "sets": {
        "set": [
            {"song": [{"name": "15 Step"}, {"name": "Bodysnatchers"}, {"name": ""}]},
            {"encore": 1, "song": [{"name": "Reckoner"}]},
        ]
    },
    "info": "Broadcast on BBC radio",
    "url": "https://www.setlist.fm/setlist/radiohead/2024/o2-academy-brixton-london-63de4613.html",
}


@pytest.fixture
def ticketmaster_event() -> dict[str, Any]:
    """One Discovery API event with venue, attraction, images and price."""
    return copy.deepcopy(_TICKETMASTER_EVENT)


@pytest.fixture
def ticketmaster_response(ticketmaster_event: dict[str, Any]) -> dict[str, Any]:
    """A Discovery API ``/events.json`` page containing one event."""
    return {
        "_embedded": {"events": [ticketmaster_event]},
        "page": {"size": 20, "totalElements": 1, "totalPages": 1, "number": 0},
    }


@pytest.fixture
def setlist() -> dict[str, Any]:
    """One setlist.fm setlist (non-US city, tour, encore, unnamed song)."""
    return copy.deepcopy(_SETLIST)


@pytest.fixture
def setlistfm_response(setlist: dict[str, Any]) -> dict[str, Any]:
    """A ``/search/setlists`` page containing one setlist."""
    return {"type": "setlists", "itemsPerPage": 20, "page": 1, "total": 1, "setlist": [setlist]}


# ---------------------------------------------------------------------------
# Canonical records
# ---------------------------------------------------------------------------


@pytest.fixture
def local_concert() -> LocalConcert:
    """A reviewed local concert with populated aggregates."""
    return LocalConcert(
        native_id="c1",
        artist="The Midnight",
        venue="The Fillmore",
        city="San Francisco, CA",
        date="2024-06-15",
        time="20:00",
        price="$40",
        genre="Synthwave",
        average_rating=4.5,
        performance_rating=5.0,
        sound_rating=4.0,
        venue_rating=4.5,
        value_rating=4.0,
        review_count=2,
    )


@pytest.fixture
def live_concert() -> LiveEventConcert:
    return LiveEventConcert(
        native_id="123",
        artist="Daylight",
        venue="The Warfield",
        city="San Francisco, CA",
        date="2024-07-01",
        time="19:30:00",
        price="TBA",
        genre="Rock",
    )


@pytest.fixture
def historical_concert() -> HistoricalConcert:
    return HistoricalConcert(
        native_id="63de4613",
        artist="Radiohead",
        venue="O2 Academy Brixton",
        city="London, ENG, GB",
        date="2024-03-05",
        time="Historical",
        price="Historical",
        genre="Music",
        setlist=["15 Step", "Reckoner"],
    )
