"""Shared JSON-over-HTTP request helper for the event providers.

Both upstream APIs share the same failure contract:

- 2xx            → decoded JSON body
- 404            → ``None`` ("no results", not an error)
- any other code → :class:`UpstreamError`
- transport error or undecodable body → :class:`UpstreamError`

The shape helpers at the bottom tolerate wrongly typed nested values:
top-level containers that break the schema raise :class:`UpstreamError`,
anything deeper is read as empty.
"""

from __future__ import annotations

from typing import Any, Sequence

import httpx
import structlog

from src.utils.errors import UpstreamError

QueryParams = Sequence[tuple[str, str]]


async def fetch_json(
    http_client: httpx.AsyncClient,
    url: str,
    *,
    provider_name: str,
    logger: structlog.BoundLogger,
    params: QueryParams | None = None,
    headers: dict[str, str] | None = None,
    timeout: float | None = None,
) -> dict[str, Any] | None:
    """GET ``url`` and return its JSON object body, ``None`` on 404."""
    try:
        response = await http_client.get(
            url,
            params=list(params) if params else None,
            headers=headers,
            timeout=timeout,
        )
    except httpx.HTTPError as exc:
        logger.error(f"{provider_name}_request_failed", error=str(exc), error_type=type(exc).__name__)
        raise UpstreamError(
            message=f"Request to {provider_name} failed: {type(exc).__name__}",
            provider_name=provider_name,
        ) from exc

    if response.status_code == 404:
        logger.info(f"{provider_name}_not_found", path=response.request.url.path)
        return None

    if not response.is_success:
        logger.error(
            f"{provider_name}_http_error",
            status=response.status_code,
            reason=response.reason_phrase,
        )
        raise UpstreamError(
            message=f"{provider_name} API error: {response.status_code} {response.reason_phrase}",
            provider_name=provider_name,
            status_code=response.status_code,
        )

    try:
        payload = response.json()
    except ValueError as exc:
        raise UpstreamError(
            message=f"{provider_name} returned a body that is not valid JSON",
            provider_name=provider_name,
            status_code=response.status_code,
        ) from exc

    if not isinstance(payload, dict):
        raise UpstreamError(
            message=f"{provider_name} returned a JSON {type(payload).__name__}, expected an object",
            provider_name=provider_name,
            status_code=response.status_code,
        )
    return payload


# ---------------------------------------------------------------------------
# Payload shape helpers
# ---------------------------------------------------------------------------


def as_object(value: Any) -> dict[str, Any]:
    """Return ``value`` if it is a JSON object, else an empty dict."""
    return value if isinstance(value, dict) else {}


def objects_in(value: Any) -> list[dict[str, Any]]:
    """Return the JSON objects in ``value`` if it is an array, dropping other items."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def require_array(
    container: dict[str, Any],
    key: str,
    *,
    provider_name: str,
) -> list[Any]:
    """Return ``container[key]`` as a list; absent or null means no results.

    Raises :class:`UpstreamError` when the field is present with any other
    type, since the response then does not follow the provider's schema.
    """
    value = container.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise UpstreamError(
            message=f"{provider_name} response field '{key}' is a {type(value).__name__}, "
            "expected an array",
            provider_name=provider_name,
        )
    return value


def require_object(
    container: dict[str, Any],
    key: str,
    *,
    provider_name: str,
) -> dict[str, Any]:
    """Like :func:`require_array` for a nested JSON object."""
    value = container.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise UpstreamError(
            message=f"{provider_name} response field '{key}' is a {type(value).__name__}, "
            "expected an object",
            provider_name=provider_name,
        )
    return value
