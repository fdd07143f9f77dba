"""Utility modules for ConcertCritic.

- **errors** -- Exception hierarchy rooted at ConcertCriticError; provider
  failures raise UpstreamError, catalog failures raise CatalogError.
- **concurrency** -- ``gather_settled`` runs provider calls concurrently and
  degrades recoverable failures to a fallback value.
- **date_normalizer** -- ISO / day-first calendar date canonicalization.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    CatalogError,
    ConcertCriticError,
    ConcertNotFoundError,
    ConfigurationError,
    DuplicateReviewError,
    UpstreamError,
)

# -- Async concurrency helpers ---------------------------------------------
from src.utils.concurrency import gather_settled

# -- Date canonicalization -------------------------------------------------
from src.utils.date_normalizer import day_first_to_iso, to_iso_date

# -- Structured logging setup ----------------------------------------------
from src.utils.logging import configure_logging, get_logger

__all__ = [
    "CatalogError",
    "ConcertCriticError",
    "ConcertNotFoundError",
    "ConfigurationError",
    "DuplicateReviewError",
    "UpstreamError",
    "configure_logging",
    "day_first_to_iso",
    "gather_settled",
    "get_logger",
    "to_iso_date",
]
