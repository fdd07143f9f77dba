"""ConcertCritic FastAPI application entry point.

Wires together the catalog store, event providers, services and routes via
dependency injection.  Loads configuration from ``.env`` and
``config/config.yaml`` and configures structured logging.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.config.loader import load_config
from src.config.settings import Settings
from src.providers.catalog.sqlite_catalog_store import SQLiteCatalogStore
from src.providers.event.setlistfm_provider import SetlistFmProvider
from src.providers.event.ticketmaster_provider import TicketmasterProvider
from src.services.concert_aggregation_service import ConcertAggregationService
from src.services.review_service import ReviewService
from src.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


def _build_all(
    app_settings: Settings,
    app_config: dict[str, Any] | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    app_config = app_config or {}

    # -- Shared resources --
    if http_client is None:
        http_client = httpx.AsyncClient(timeout=app_settings.http_timeout_seconds)

    # -- Sources --
    catalog_store = SQLiteCatalogStore(db_path=app_settings.catalog_db_path)
    live_provider = TicketmasterProvider(settings=app_settings, http_client=http_client)
    historical_provider = SetlistFmProvider(settings=app_settings, http_client=http_client)

    # -- Services --
    aggregation_service = ConcertAggregationService(
        store=catalog_store,
        live_provider=live_provider,
        historical_provider=historical_provider,
    )
    review_service = ReviewService(store=catalog_store)

    provider_registry = {
        "catalog": True,
        live_provider.get_provider_name(): live_provider.is_available(),
        historical_provider.get_provider_name(): historical_provider.is_available(),
    }

    default_page_size = app_config.get("aggregation", {}).get(
        "default_limit", app_settings.default_page_size
    )

    return {
        "http_client": http_client,
        "catalog_store": catalog_store,
        "live_provider": live_provider,
        "historical_provider": historical_provider,
        "aggregation_service": aggregation_service,
        "review_service": review_service,
        "provider_registry": provider_registry,
        "default_page_size": default_page_size,
        "config": app_config,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = _build_all(settings, config)

    for key, value in components.items():
        setattr(application.state, key, value)

    await components["catalog_store"].initialize()

    _logger.info(
        "app_startup",
        version=config.get("app", {}).get("version"),
        environment=settings.app_env,
        providers=components["provider_registry"],
    )

    yield

    # -- Shutdown: close shared httpx client --
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="ConcertCritic API",
        version=config.get("app", {}).get("version", "0.1.0"),
        description=(
            "Discover concerts from a local catalog merged with live Ticketmaster "
            "events and historical setlist.fm archives, and review them."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(
        application,
        allowed_origins=config.get("cors", {}).get("allowed_origins"),
    )

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
