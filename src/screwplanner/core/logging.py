"""
Structured logging for screwplanner.

All modules log through structlog loggers obtained from :func:`get_logger`,
using snake_case event names with keyword fields::

    from screwplanner.core.logging import configure_logging, get_logger

    configure_logging(level="DEBUG")
    logger = get_logger(__name__)
    logger.info("plan_complete", outcome="success", percentage_complete=1.0)

Output goes through the standard library root logger so that records from
third-party libraries are rendered the same way. Fields bound with
:func:`bind_planning_context` (move group, end-effector frame) are attached to
every event of the current planning call.
"""

import logging
import sys
from typing import Optional

import structlog

_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def _renderer(json_output: bool) -> structlog.types.Processor:
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """
    Route structlog through stdlib logging and set the output format.

    Call once at startup (the CLI does this from its global options).
    Library code never configures handlers.

    Args:
        level: Minimum log level name; unknown names fall back to INFO
        json_output: Emit JSON lines instead of colored console lines
        log_file: Also write records to this file
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=handlers,
        force=True,
    )

    structlog.configure(
        processors=[*_PROCESSORS, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_PROCESSORS,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(json_output),
        ],
    )
    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Logger for a module; pass ``__name__``."""
    return structlog.get_logger(name)


def bind_planning_context(**fields: object) -> None:
    """
    Attach ``fields`` to every event logged until they are cleared with
    :func:`clear_planning_context`.
    """
    structlog.contextvars.bind_contextvars(**fields)


def clear_planning_context(*names: str) -> None:
    structlog.contextvars.unbind_contextvars(*names)
