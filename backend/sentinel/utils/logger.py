"""
Structured JSON logging for the KJV Sentinel API.

Every event carries the correlation ID of the request (or pipeline stage)
that produced it, so one submission can be followed across the model,
synthesis and export calls it triggers.
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any, Dict, Optional

import structlog
from structlog.types import FilteringBoundLogger

SERVICE_NAME = "kjv-sentinel-api"

correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """Bind a correlation ID to the current context, generating one if none is given."""
    correlation_id = correlation_id or str(uuid.uuid4())
    correlation_id_ctx.set(correlation_id)
    return correlation_id


def ensure_correlation_id() -> str:
    """Current correlation ID, creating one when the context has none."""
    return correlation_id_ctx.get() or set_correlation_id()


def add_request_context(logger: FilteringBoundLogger, method_name: str,
                        event_dict: Dict[str, Any]) -> Dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    correlation_id = correlation_id_ctx.get()
    if correlation_id:
        event_dict["correlation_id"] = correlation_id
    return event_dict


def setup_logging(log_level: str = "INFO") -> FilteringBoundLogger:
    """Route structlog through the stdlib root logger as one JSON object per line."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            add_request_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", level=getattr(logging, log_level.upper(), logging.INFO))
    return structlog.get_logger("sentinel")


def get_logger(name: str) -> FilteringBoundLogger:
    return structlog.get_logger(name)
