"""Process-wide structured logging.

structlog renders every event, whether it came from a structlog logger or from
a stdlib logger such as uvicorn's. Output is one JSON object per line when
``json_logs`` is set and a coloured console line otherwise. All lines go to
stdout through a single root handler.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor


def setup_logging(
    *,
    log_level: str = "INFO",
    json_logs: bool = False,
    service_name: str = "service",
) -> None:
    """Install the structlog pipeline and route the root logger through it.

    Safe to call more than once; each call replaces the previous handler.
    """
    pre_chain = _pre_chain(service_name)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_render_chain(json_logs),
            ],
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level.upper())

    # Requests are access-logged by RequestContextMiddleware instead
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def _pre_chain(service_name: str) -> list[Processor]:
    """Processors applied to structlog and stdlib records alike."""

    def add_service(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict["service"] = service_name
        return event_dict

    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        add_service,
    ]


def _render_chain(json_logs: bool) -> list[Processor]:
    if not json_logs:
        # ConsoleRenderer pretty-prints exc_info on its own
        return [structlog.dev.ConsoleRenderer(colors=True)]
    return [
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]


def flush_logging() -> None:
    """Flush the root handlers; called before ``os._exit`` skips atexit."""
    for handler in logging.getLogger().handlers:
        handler.flush()


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
