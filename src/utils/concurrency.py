"""Concurrency helpers for fanning out to external event providers.

The aggregation engine queries up to two providers per request.  Both calls
are independent, so they run as concurrent asyncio tasks; a failure in one
must neither cancel the other nor leak to the caller.

:func:`gather_settled` wraps ``asyncio.gather(..., return_exceptions=True)``
and post-processes the outcome: results of recoverable failures are
replaced with a fallback value and logged, anything else is re-raised so
programming errors still surface.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Sequence, TypeVar

import structlog

from src.utils.errors import UpstreamError
from src.utils.logging import get_logger

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


async def gather_settled(
    coros: Sequence[Awaitable[_T]],
    labels: Sequence[str],
    fallback: _T,
    recoverable: tuple[type[BaseException], ...] = (UpstreamError,),
    logger: structlog.BoundLogger | None = None,
) -> list[_T]:
    """Run awaitables concurrently and settle each one independently.

    Parameters
    ----------
    coros:
        Awaitables to execute concurrently.
    labels:
        One human-readable label per awaitable, used in log output.
    fallback:
        Value substituted for any awaitable that raised a recoverable error.
        It is shared between failed slots, so pass an immutable value or
        one the caller does not mutate.
    recoverable:
        Exception types that degrade to ``fallback`` instead of propagating.
    logger:
        Optional structured logger; defaults to this module's logger.

    Returns
    -------
    list
        Results in the same order as ``coros``.
    """
    if len(coros) != len(labels):
        msg = f"Got {len(coros)} awaitables but {len(labels)} labels"
        raise ValueError(msg)

    if logger is None:
        logger = _logger

    raw_results = await asyncio.gather(*coros, return_exceptions=True)

    settled: list[_T] = []
    for label, result in zip(labels, raw_results):
        if isinstance(result, recoverable):
            logger.warning(
                "aggregation_source_failed",
                source=label,
                error=str(result),
                error_type=type(result).__name__,
            )
            settled.append(fallback)
        elif isinstance(result, BaseException):
            raise result
        else:
            settled.append(result)

    return settled
