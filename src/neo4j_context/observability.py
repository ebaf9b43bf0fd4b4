"""structlog configuration for neo4j_context.

Call ``configure_logging`` once during process setup, before any queries
run. Records go to stderr so stdout stays free for query results; the
driver's own ``neo4j`` logger is routed through the same handler.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from neo4j_context.settings import Settings

PACKAGE_LOGGER = "neo4j_context"
DRIVER_LOGGER = "neo4j"


def resolve_level(level: str | int) -> int:
    """Answer the numeric level for *level*; unknown names raise ``ValueError``."""
    if isinstance(level, int):
        return level
    levels = logging.getLevelNamesMapping()
    name = level.strip().upper()
    if name not in levels:
        msg = f"Unknown log level {level!r}; expected one of {sorted(levels)}"
        raise ValueError(msg)
    return levels[name]


def _timestamped(processors: list[structlog.types.Processor]) -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        *processors,
    ]


def _renderers(log_json: bool) -> list[structlog.types.Processor]:
    if log_json:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]


def configure_logging(
    *,
    level: str | int = "WARNING",
    log_json: bool = False,
    driver_level: str | int = "WARNING",
) -> None:
    """Route structlog and the driver's stdlib logging to one stderr handler.

    Args:
        level: Level for the ``neo4j_context`` loggers.
        log_json: One JSON object per line instead of console output.
        driver_level: Level for the driver's ``neo4j`` logger.
    """
    package_level = resolve_level(level)
    neo4j_level = resolve_level(driver_level)

    pre_chain = _timestamped([structlog.processors.StackInfoRenderer()])
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_renderers(log_json),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger(PACKAGE_LOGGER).setLevel(package_level)
    logging.getLogger(DRIVER_LOGGER).setLevel(neo4j_level)


def configure_from_settings(settings: Settings) -> None:
    configure_logging(level=settings.log_level, log_json=settings.log_json)
