"""
Shared logging configuration for OpenFields.
"""

import sys
import structlog
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional
from contextvars import ContextVar

# Context variables for the item under evaluation
fieldset_id_var: ContextVar[Optional[str]] = ContextVar('fieldset_id', default=None)
post_id_var: ContextVar[Optional[str]] = ContextVar('post_id', default=None)


def configure_logging(service_name: str, log_level: str = "info") -> None:
    """Configure structured logging for a component."""

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            add_service_context,
            add_evaluation_context,
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )


def add_service_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add service context to log events."""
    # Extract service name from logger name
    logger_name = event_dict.get("logger", "")
    if "." in logger_name:
        event_dict["service"] = logger_name.split(".")[0]

    return event_dict


def add_evaluation_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add the fieldset and content item under evaluation to log events."""
    fieldset_id = fieldset_id_var.get()
    if fieldset_id:
        event_dict["fieldset_id"] = fieldset_id

    post_id = post_id_var.get()
    if post_id:
        event_dict["post_id"] = post_id

    return event_dict


@contextmanager
def evaluation_context(fieldset_id: Optional[Any] = None, post_id: Optional[Any] = None) -> Iterator[None]:
    """Tag log events inside the block with the fieldset and post ids.

    Previous values are restored on exit; ``None`` clears an id for the block.
    """
    fieldset_token = fieldset_id_var.set(None if fieldset_id is None else str(fieldset_id))
    post_token = post_id_var.set(None if post_id is None else str(post_id))
    try:
        yield
    finally:
        post_id_var.reset(post_token)
        fieldset_id_var.reset(fieldset_token)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
