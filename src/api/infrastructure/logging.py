"""Structlog configuration for the application.

Configures structlog with colored console output for development
and JSON output for production.
"""

import os
import sys

import structlog
from structlog.types import EventDict, WrappedLogger

from shared_kernel.request_context import get_context


def add_request_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add the bound request identity to every log event.

    Values passed explicitly by the caller take precedence.
    """
    context = get_context()
    if context is None:
        return event_dict
    event_dict.setdefault("request_id", context.request_id)
    if context.tenant_id is not None:
        event_dict.setdefault("tenant_id", context.tenant_id)
    if context.actor_id is not None:
        event_dict.setdefault("actor_id", context.actor_id)
    return event_dict


def configure_logging() -> None:
    """Configure structlog with appropriate processors.

    Uses colored console output for development (when FORCE_COLOR is set
    or running in a TTY), otherwise uses JSON output for production.
    """
    # FORCE_COLOR=1 enables colors even in non-TTY environments (like Docker)
    force_color = os.environ.get("FORCE_COLOR", "").lower() in ("1", "true", "yes")
    is_tty = sys.stdout.isatty()
    use_colors = force_color or is_tty

    # Common processors for all environments
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        add_request_context,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if use_colors:
        # Development: colored console output
        processors: list[structlog.types.Processor] = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]
    else:
        # Production: JSON output
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(0),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
