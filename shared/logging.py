"""
Structured logging for the gateway.

Every event is rendered as one JSON line carrying the emitting service, the
current request ID and, inside an upstream call, the upstream's name and URL.
"""

import logging
import sys
import uuid
from typing import Any, Dict, Optional

import structlog
from structlog.contextvars import (
    bind_contextvars,
    bound_contextvars,
    clear_contextvars,
)

REQUEST_ID_KEY = "request_id"


def configure_logging(service_name: str, log_level: str = "info") -> None:
    """Route structlog through stdlib logging as JSON lines on stdout."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            ServiceNameProcessor(service_name),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )


class ServiceNameProcessor:
    """Stamp events with the gateway's service name."""

    def __init__(self, service_name: str):
        self.service_name = service_name

    def __call__(self, logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        event_dict.setdefault("service", self.service_name)
        return event_dict


def set_request_id(request_id: Optional[str] = None) -> str:
    """Bind the request ID for the current context, generating one if absent."""
    if not request_id:
        request_id = str(uuid.uuid4())
    bind_contextvars(**{REQUEST_ID_KEY: request_id})
    return request_id


def upstream_context(name: str, url: str):
    """Bind an upstream's name and URL to events logged inside the block."""
    return bound_contextvars(upstream=name, upstream_url=url)


def clear_context() -> None:
    clear_contextvars()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
