"""Structured logging setup using structlog.

One shared processor chain (context vars, log level, timestamps, stack info,
credential redaction) feeds either a coloured ConsoleRenderer for local
development or a JSONRenderer for production.  The renderer follows the
``APP_ENV`` environment variable unless ``json_output`` forces JSON.

Standard-library ``logging`` is routed through the same formatter so httpx
and uvicorn records look identical to application records.
"""

import logging
import os
import re
import sys
from typing import Any

import structlog

# Provider credentials travel as query parameters (Ticketmaster ``apikey``)
# and must never reach log output, even when a full URL is logged.
_CREDENTIAL_PARAM_RE = re.compile(r"(?i)(apikey|api_key|x-api-key)=([^&\s]+)")
_REDACTED = "[API_KEY]"


def redact_credentials(
    _logger: Any, _method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """structlog processor masking credential query parameters in string values."""
    for key, value in event_dict.items():
        if isinstance(value, str) and "=" in value:
            event_dict[key] = _CREDENTIAL_PARAM_RE.sub(rf"\1={_REDACTED}", value)
    return event_dict


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Configure structlog with environment-appropriate rendering.

    Args:
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR).
        json_output: Force JSON output. When False, JSON is used only when
                     ``APP_ENV`` is ``production``.

    Returns:
        A configured structlog BoundLogger.
    """
    # "production" => machine-readable JSON; anything else => coloured console.
    app_env = os.environ.get("APP_ENV", "development")
    use_json = json_output or app_env == "production"

    # Shared processor chain, run for both renderers. Context vars merge first
    # so request-scoped bindings are visible to the later processors.
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,  # Request-scoped bindings
        structlog.processors.add_log_level,        # Inject "level" key
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,                # exc_info on error()
        structlog.processors.TimeStamper(fmt="iso"),  # ISO-8601 timestamps
        redact_credentials,                        # Must run before any renderer
    ]

    if use_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            *shared_processors,
            renderer,
        ],
        # Drops records below log_level before any processor runs.
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Route stdlib logging (httpx, uvicorn) through the same pipeline.
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *shared_processors,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()   # Avoid duplicate output from default handlers
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a named structlog logger, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)


def bind_request_context(**values: Any) -> None:
    """Bind request-scoped values (e.g. ``request_id``) for every log line."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
