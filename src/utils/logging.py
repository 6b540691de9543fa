# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""structlog setup for SchoolDesk.

Domain modules log with ``logging.getLogger(__name__)`` and %-style
arguments. Those records, and anything emitted through ``get_logger``, go
through one structlog processor chain: coloured console lines when
developing, one JSON object per line otherwise.

Context bound with ``bind_context`` or ``log_context`` (for example the
acting administrator) is added to every record in the current task.

Example:
    >>> setup_logging(get_settings())
    >>> with log_context(acting_user="admin-1"):
    ...     await services.staff.create_staff(request)
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from src.core.config.settings import Settings

QUIET_LOGGERS = ("sqlalchemy", "alembic", "asyncio", "aiosqlite")


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def setup_logging(settings: "Settings") -> None:
    """Install the structlog chain on the root logger.

    Args:
        settings: Supplies ``log_level`` and whether to render for a
            developer console (development environment or debug) or as JSON.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    pre_chain = _shared_processors()

    if settings.is_development or settings.debug:
        renderer: Processor = structlog.dev.ConsoleRenderer(colors=True)
    else:
        pre_chain.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("src").setLevel(level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Structured logger for keyword-style events."""
    return structlog.get_logger(name)


def bind_context(**kwargs: object) -> None:
    """Attach key-value pairs to every later record in this task."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


@contextmanager
def log_context(**kwargs: object) -> Iterator[None]:
    """Bind ``kwargs`` for the duration of a block.

    None values are skipped. Keys bound outside the block are left as
    they were.
    """
    values = {key: value for key, value in kwargs.items() if value is not None}
    with structlog.contextvars.bound_contextvars(**values):
        yield
