"""CLI for running concert discovery queries outside the web server.

Usage::

    # Local catalog only
    python -m src.cli.discover query --search midnight --limit 10

    # Merge live Ticketmaster events and setlist.fm history
    python -m src.cli.discover query --search radiohead --live --historical

    # Archived setlists for one artist (MusicBrainz id)
    python -m src.cli.discover artist-setlists a74b1b7f-71a5-4011-9441-d0b5e4122711

Results are printed to stdout as a camelCase JSON array.  Provider
credentials come from the same ``.env`` / environment as the server.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Sequence

import httpx
from pydantic import TypeAdapter, ValidationError

from src.config.settings import Settings
from src.models.concert import CanonicalConcert
from src.utils.errors import ConcertCriticError

_CONCERT_LIST = TypeAdapter(list[CanonicalConcert])


def _print_concerts(concerts: list[CanonicalConcert]) -> None:
    payload = _CONCERT_LIST.dump_python(concerts, mode="json", by_alias=True, exclude_none=True)
    print(json.dumps(payload, indent=2))


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_query(args: argparse.Namespace, app_settings: Settings) -> int:
    """Run one aggregation query against the catalog and toggled providers."""
    from src.models.query import ConcertFilter, Pagination, SourceToggles
    from src.providers.catalog.sqlite_catalog_store import SQLiteCatalogStore
    from src.providers.event.setlistfm_provider import SetlistFmProvider
    from src.providers.event.ticketmaster_provider import TicketmasterProvider
    from src.services.concert_aggregation_service import ConcertAggregationService

    try:
        concert_filter = ConcertFilter(
            search=args.search,
            genre=args.genre,
            city=args.city,
            start_date=args.start_date,
            end_date=args.end_date,
        )
        pagination = Pagination(limit=args.limit, offset=args.offset)
    except ValidationError as exc:
        print(f"Error: {exc.errors()[0]['msg']}", file=sys.stderr)
        return 2

    store = SQLiteCatalogStore(db_path=args.db or app_settings.catalog_db_path)
    await store.initialize()

    async with httpx.AsyncClient(timeout=app_settings.http_timeout_seconds) as client:
        service = ConcertAggregationService(
            store=store,
            live_provider=TicketmasterProvider(settings=app_settings, http_client=client),
            historical_provider=SetlistFmProvider(settings=app_settings, http_client=client),
        )
        concerts = await service.query(
            concert_filter,
            pagination,
            SourceToggles(
                include_live_provider=args.live,
                include_historical_provider=args.historical,
            ),
        )

    _print_concerts(concerts)
    return 0


async def _handle_artist_setlists(args: argparse.Namespace, app_settings: Settings) -> int:
    """Print one page of archived setlists for an artist."""
    from src.providers.event.setlistfm_provider import SetlistFmProvider

    async with httpx.AsyncClient(timeout=app_settings.http_timeout_seconds) as client:
        provider = SetlistFmProvider(settings=app_settings, http_client=client)
        if not provider.is_available():
            print("Error: SETLIST_FM_API_KEY is not set.", file=sys.stderr)
            return 1
        try:
            concerts = await provider.get_artist_setlists(args.mbid, page=args.page)
        except ConcertCriticError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1

    _print_concerts(concerts)
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the discovery CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.discover",
        description="Query the concert catalog and external providers.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Discovery commands")

    # -- query --
    query_parser = subparsers.add_parser("query", help="Run an aggregated concert query")
    query_parser.add_argument("--search", help="Substring of artist, venue or city")
    query_parser.add_argument("--genre", help="Genre substring")
    query_parser.add_argument("--city", help="City substring")
    query_parser.add_argument("--start-date", dest="start_date", help="Earliest date (YYYY-MM-DD)")
    query_parser.add_argument("--end-date", dest="end_date", help="Latest date (YYYY-MM-DD)")
    query_parser.add_argument("--limit", type=int, default=20, help="Page size (default: 20)")
    query_parser.add_argument("--offset", type=int, default=0, help="Offset (default: 0)")
    query_parser.add_argument("--live", action="store_true", help="Include Ticketmaster events")
    query_parser.add_argument(
        "--historical", action="store_true", help="Include setlist.fm history"
    )
    query_parser.add_argument("--db", help="Catalog database path (default: from settings)")

    # -- artist-setlists --
    setlists_parser = subparsers.add_parser(
        "artist-setlists", help="List setlist.fm setlists for an artist"
    )
    setlists_parser.add_argument("mbid", help="MusicBrainz artist id")
    setlists_parser.add_argument("--page", type=int, default=1, help="1-based page (default: 1)")

    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point for the discovery tool."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()

    if args.command == "query":
        exit_code = asyncio.run(_handle_query(args, app_settings))
    elif args.command == "artist-setlists":
        exit_code = asyncio.run(_handle_artist_setlists(args, app_settings))
    else:
        parser.print_help()
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
