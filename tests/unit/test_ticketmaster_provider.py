"""Unit tests for the Ticketmaster live event provider.

HTTP is served by ``httpx.MockTransport`` so the tests exercise the real
request building, status handling and JSON decoding.
"""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from src.models.concert import LiveEventConcert
from src.models.query import ConcertFilter, Pagination
from src.providers.event.ticketmaster_provider import (
    LiveEventSearchOptions,
    TicketmasterProvider,
)
from src.utils.errors import UpstreamError


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class _Recorder:
    """MockTransport handler returning a canned response and keeping requests."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response


class TestTicketmasterSearch:
    @pytest.mark.asyncio
    async def test_transforms_events(self, make_settings, ticketmaster_response) -> None:
        recorder = _Recorder(httpx.Response(200, json=ticketmaster_response))
        async with _client(recorder) as client:
            provider = TicketmasterProvider(make_settings(), client)
            results = await provider.search(LiveEventSearchOptions(keyword="midnight"))

        assert len(results) == 1
        concert = results[0]
        assert isinstance(concert, LiveEventConcert)
        assert concert.id == "tm_123"
        assert concert.artist == "The Midnight"
        assert concert.venue == "The Fillmore"
        assert concert.city == "San Francisco, CA"
        assert concert.date == "2024-06-15"
        assert concert.time == "20:00:00"
        assert concert.price == "$35-$75.5"
        assert concert.genre == "Electronic"
        assert concert.image_url == "https://img.example/16_9.jpg"
        assert concert.ticket_url == "https://www.ticketmaster.com/event/123"
        assert concert.description == "The Midnight at The Fillmore in San Francisco"
        assert concert.venue_id == "KovZpZA7AAEA"
        assert concert.event_status == "onsale"
        assert concert.is_historical is False

    @pytest.mark.asyncio
    async def test_request_parameters(self, make_settings, ticketmaster_response) -> None:
        recorder = _Recorder(httpx.Response(200, json=ticketmaster_response))
        async with _client(recorder) as client:
            provider = TicketmasterProvider(make_settings(), client)
            await provider.search(
                LiveEventSearchOptions(
                    keyword="midnight",
                    city="San Francisco",
                    classification_name="Rock",
                    page=2,
                    size=10,
                    start_date_time="2024-06-01T00:00:00Z",
                )
            )

        request = recorder.requests[0]
        assert request.url.path.endswith("/discovery/v2/events.json")
        params = request.url.params
        assert params["apikey"] == "tm-test-key"
        assert params.get_list("classificationName") == ["music", "Rock"]
        assert params["keyword"] == "midnight"
        assert params["city"] == "San Francisco"
        assert params["page"] == "2"
        assert params["size"] == "10"
        assert params["sort"] == "date,asc"
        assert params["startDateTime"] == "2024-06-01T00:00:00Z"
        assert "endDateTime" not in params

    @pytest.mark.asyncio
    async def test_default_size_from_settings(self, make_settings) -> None:
        recorder = _Recorder(httpx.Response(200, json={}))
        async with _client(recorder) as client:
            provider = TicketmasterProvider(
                make_settings(ticketmaster_default_page_size=50), client
            )
            assert await provider.search(LiveEventSearchOptions()) == []

        assert recorder.requests[0].url.params["size"] == "50"

    @pytest.mark.asyncio
    async def test_missing_key_returns_empty_without_request(self, make_settings) -> None:
        recorder = _Recorder(httpx.Response(500))
        async with _client(recorder) as client:
            provider = TicketmasterProvider(make_settings(ticketmaster_consumer_key=""), client)
            assert provider.is_available() is False
            assert await provider.search(LiveEventSearchOptions(keyword="x")) == []

        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_not_found_is_empty(self, make_settings) -> None:
        recorder = _Recorder(httpx.Response(404, json={"fault": "not found"}))
        async with _client(recorder) as client:
            provider = TicketmasterProvider(make_settings(), client)
            assert await provider.search(LiveEventSearchOptions()) == []

    @pytest.mark.asyncio
    async def test_server_error_raises_upstream_error(self, make_settings) -> None:
        recorder = _Recorder(httpx.Response(503))
        async with _client(recorder) as client:
            provider = TicketmasterProvider(make_settings(), client)
            with pytest.raises(UpstreamError) as exc_info:
                await provider.search(LiveEventSearchOptions())

        assert exc_info.value.status_code == 503
        assert exc_info.value.provider_name == "ticketmaster"

    @pytest.mark.asyncio
    async def test_transport_error_raises_upstream_error(self, make_settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            provider = TicketmasterProvider(make_settings(), client)
            with pytest.raises(UpstreamError):
                await provider.search(LiveEventSearchOptions())

    @pytest.mark.asyncio
    async def test_malformed_event_is_skipped(
        self, make_settings, ticketmaster_response, ticketmaster_event
    ) -> None:
        broken = dict(ticketmaster_event, id="999", dates={})
        ticketmaster_response["_embedded"]["events"].insert(0, broken)
        recorder = _Recorder(httpx.Response(200, json=ticketmaster_response))
        async with _client(recorder) as client:
            provider = TicketmasterProvider(make_settings(), client)
            results = await provider.search(LiveEventSearchOptions())

        assert [c.id for c in results] == ["tm_123"]


class TestTicketmasterGetEvent:
    @pytest.mark.asyncio
    async def test_found(self, make_settings, ticketmaster_event) -> None:
        recorder = _Recorder(httpx.Response(200, json=ticketmaster_event))
        async with _client(recorder) as client:
            provider = TicketmasterProvider(make_settings(), client)
            event = await provider.get_event("123")

        assert event is not None and event.id == "tm_123"
        assert recorder.requests[0].url.path.endswith("/events/123.json")

    @pytest.mark.asyncio
    async def test_missing(self, make_settings) -> None:
        recorder = _Recorder(httpx.Response(404))
        async with _client(recorder) as client:
            provider = TicketmasterProvider(make_settings(), client)
            assert await provider.get_event("nope") is None


class TestTransformEvent:
    @pytest.fixture
    def provider(self, make_settings) -> TicketmasterProvider:
        return TicketmasterProvider(make_settings(), httpx.AsyncClient())

    def test_placeholders_when_data_missing(self, provider, ticketmaster_event) -> None:
        event: dict[str, Any] = {
            "id": "77",
            "name": "Mystery Gig",
            "dates": {"start": {"localDate": "2024-09-01"}},
        }
        concert = provider.transform_event(event)
        assert concert.artist == "Mystery Gig"
        assert concert.venue == "TBA"
        assert concert.city == "TBA"
        assert concert.time == "TBA"
        assert concert.price == "TBA"
        assert concert.genre == "Music"
        assert concert.image_url is None
        assert concert.description == "Mystery Gig at TBA"

    def test_largest_image_without_16_9(self, provider, ticketmaster_event) -> None:
        ticketmaster_event["images"] = [
            {"ratio": "3_2", "url": "small", "width": 100, "height": 100},
            {"ratio": "4_3", "url": "large", "width": 800, "height": 600},
        ]
        assert provider.transform_event(ticketmaster_event).image_url == "large"

    def test_attraction_images_fallback(self, provider, ticketmaster_event) -> None:
        ticketmaster_event["images"] = []
        ticketmaster_event["_embedded"]["attractions"][0]["images"] = [
            {"ratio": "16_9", "url": "attraction-wide", "width": 640, "height": 360},
        ]
        assert provider.transform_event(ticketmaster_event).image_url == "attraction-wide"

    def test_sub_genre_fallback_and_country_code(self, provider, ticketmaster_event) -> None:
        ticketmaster_event["classifications"] = [{"subGenre": {"name": "Synthwave"}}]
        venue = ticketmaster_event["_embedded"]["venues"][0]
        del venue["state"]
        venue["country"] = {"countryCode": "GB"}
        concert = provider.transform_event(ticketmaster_event)
        assert concert.genre == "Synthwave"
        assert concert.city == "San Francisco, GB"

    def test_missing_start_date_raises(self, provider, ticketmaster_event) -> None:
        ticketmaster_event["dates"] = {"start": {}}
        with pytest.raises(ValueError):
            provider.transform_event(ticketmaster_event)


class TestOptionsFor:
    def test_zero_based_page_and_date_bounds(self, make_settings) -> None:
        provider = TicketmasterProvider(make_settings(), httpx.AsyncClient())
        options = provider.options_for(
            ConcertFilter(
                search="midnight",
                genre="rock",
                city="Austin",
                start_date="2024-06-01",
                end_date="2024-06-30",
            ),
            Pagination(limit=20, offset=45),
        )
        assert options.page == 2
        assert options.size == 20
        assert options.keyword == "midnight"
        assert options.classification_name == "rock"
        assert options.city == "Austin"
        assert options.start_date_time == "2024-06-01T00:00:00Z"
        assert options.end_date_time == "2024-06-30T23:59:59Z"

    def test_no_filter(self, make_settings) -> None:
        provider = TicketmasterProvider(make_settings(), httpx.AsyncClient())
        options = provider.options_for(ConcertFilter(), Pagination())
        assert options.page == 0
        assert options.keyword is None
        assert options.start_date_time is None


class TestMalformedPayloads:
    @pytest.mark.asyncio
    async def test_non_object_events_are_skipped(
        self, make_settings, ticketmaster_response
    ) -> None:
        ticketmaster_response["_embedded"]["events"][0:0] = [None, "event", 42, []]
        recorder = _Recorder(httpx.Response(200, json=ticketmaster_response))
        async with _client(recorder) as client:
            provider = TicketmasterProvider(make_settings(), client)
            results = await provider.search(LiveEventSearchOptions())

        assert [c.id for c in results] == ["tm_123"]

    @pytest.mark.parametrize(
        "payload",
        [
            {"_embedded": "oops"},
            {"_embedded": {"events": {"a": 1}}},
            {"_embedded": {"events": "none"}},
        ],
    )
    @pytest.mark.asyncio
    async def test_wrong_container_types_raise_upstream_error(
        self, make_settings, payload
    ) -> None:
        recorder = _Recorder(httpx.Response(200, json=payload))
        async with _client(recorder) as client:
            provider = TicketmasterProvider(make_settings(), client)
            with pytest.raises(UpstreamError):
                await provider.search(LiveEventSearchOptions())

    @pytest.mark.asyncio
    async def test_missing_embedded_and_bad_page_are_empty(self, make_settings) -> None:
        recorder = _Recorder(httpx.Response(200, json={"page": "zero"}))
        async with _client(recorder) as client:
            provider = TicketmasterProvider(make_settings(), client)
            assert await provider.search(LiveEventSearchOptions()) == []

    def test_wrongly_typed_nested_values_read_as_absent(
        self, make_settings, ticketmaster_event
    ) -> None:
        provider = TicketmasterProvider(make_settings(), httpx.AsyncClient())
        ticketmaster_event["_embedded"]["venues"] = ["v"]
        ticketmaster_event["_embedded"]["attractions"] = [None]
        ticketmaster_event["classifications"] = ["Rock"]
        ticketmaster_event["images"] = "none"
        ticketmaster_event["priceRanges"] = [{"min": 20}]
        ticketmaster_event["dates"]["status"] = "onsale"

        concert = provider.transform_event(ticketmaster_event)

        assert concert.artist == "The Midnight - Monsters Tour"
        assert concert.venue == "TBA"
        assert concert.city == "TBA"
        assert concert.genre == "Music"
        assert concert.image_url is None
        assert concert.price == "$20-$20"
        assert concert.event_status is None

    def test_string_venue_city_is_ignored(self, make_settings, ticketmaster_event) -> None:
        provider = TicketmasterProvider(make_settings(), httpx.AsyncClient())
        ticketmaster_event["_embedded"]["venues"][0]["city"] = "San Francisco"

        concert = provider.transform_event(ticketmaster_event)

        assert concert.city == "TBA"
        assert concert.description == "The Midnight at The Fillmore"

    @pytest.mark.asyncio
    async def test_get_event_with_bad_shape_is_none(self, make_settings) -> None:
        recorder = _Recorder(httpx.Response(200, json={"id": "1", "dates": "soon"}))
        async with _client(recorder) as client:
            provider = TicketmasterProvider(make_settings(), client)
            assert await provider.get_event("1") is None
