"""Custom exception hierarchy for ConcertCritic.

All application exceptions inherit from :class:`ConcertCriticError`, which
carries an optional ``provider_name`` so error handlers can identify which
source (e.g. "ticketmaster", "setlistfm", "sqlite_catalog") caused the
failure.

    ConcertCriticError  (base -- catch-all for any concertcritic error)
    +-- UpstreamError          (external provider non-2xx / unreachable)
    +-- ConfigurationError     (startup / invalid config)
    +-- CatalogError           (persisted catalog store failure)
        +-- ConcertNotFoundError
        +-- DuplicateReviewError

Missing provider credentials are *not* an error: provider clients log a
warning and return no results.  Malformed records inside an otherwise good
upstream response are recovered at the transform step and never raised.
"""


class ConcertCriticError(Exception):
    """Base exception for all ConcertCritic errors.

    The ``__str__`` method prefixes the provider name in brackets for
    structured log output, e.g. ``[ticketmaster] HTTP 503``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# External provider errors
# ---------------------------------------------------------------------------

class UpstreamError(ConcertCriticError):
    """Raised when an external event provider fails.

    Covers any non-2xx response other than 404 (which providers treat as
    "zero results") and transport-level failures such as timeouts or
    refused connections.  The aggregation engine catches this and degrades
    the failing source's contribution to an empty list.
    """

    def __init__(
        self,
        message: str = "External provider request failed",
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._status_code = status_code

    @property
    def status_code(self) -> int | None:
        return self._status_code


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(ConcertCriticError):
    """Raised when configuration is invalid at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Catalog store errors
# ---------------------------------------------------------------------------

class CatalogError(ConcertCriticError):
    """Raised when the persisted catalog store cannot complete an operation."""

    def __init__(
        self,
        message: str = "Catalog store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConcertNotFoundError(CatalogError):
    """Raised when a concert id does not exist in the local catalog."""

    def __init__(
        self,
        concert_id: str,
        provider_name: str | None = None,
    ) -> None:
        super().__init__(
            message=f"Concert '{concert_id}' not found",
            provider_name=provider_name,
        )
        self._concert_id = concert_id

    @property
    def concert_id(self) -> str:
        return self._concert_id


class DuplicateReviewError(CatalogError):
    """Raised when a user submits a second review for the same concert."""

    def __init__(
        self,
        user_id: str,
        concert_id: str,
        provider_name: str | None = None,
    ) -> None:
        super().__init__(
            message=f"User '{user_id}' has already reviewed concert '{concert_id}'",
            provider_name=provider_name,
        )
