"""structlog setup for levee_census.

Every module logs through ``get_logger(__name__)`` with key/value events
(``n_targets=...``, ``variable=...``). ``configure_logging`` routes those
events and the stdlib records of the geometry and worker libraries through
one handler, rendered for a terminal or as JSON lines for batch runs.
"""

import logging
import sys
from typing import IO, Optional, Union

import structlog
from structlog.stdlib import LoggerFactory

from .exceptions import ConfigurationError

# Chatty at INFO: dask scheduler/worker lifecycle and GDAL driver messages
THIRD_PARTY_LOGGERS = ("distributed", "pyogrio", "fiona", "rasterio")


def _resolve_level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ConfigurationError(f"Unknown log level: {level!r}")
    return resolved


def configure_logging(level: Union[str, int] = "INFO",
                      json_output: bool = False,
                      stream: Optional[IO] = None) -> None:
    """Configure structlog and the root stdlib logger.

    Args:
        level: Level name or number for levee_census events
        json_output: Render one JSON object per line instead of console output
        stream: Output stream (stdout when None)

    Raises:
        ConfigurationError: if ``level`` is not a logging level name
    """
    numeric_level = _resolve_level(level)
    stream = stream or sys.stdout

    shared_processors = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_output:
        renderer = structlog.processors.JSONRenderer()
        shared_processors.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=stream.isatty())

    structlog.configure(
        processors=[structlog.stdlib.filter_by_level] + shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    ))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    # Library noise only at DEBUG
    library_level = numeric_level if numeric_level <= logging.DEBUG \
        else max(numeric_level, logging.WARNING)
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Logger bound to ``name`` (normally the calling module's ``__name__``)."""
    return structlog.get_logger(name)
