import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

_PACKAGE_LOGGER = "batchjudge"


def setup_logging(level: int = logging.INFO) -> None:
    """
    Route ``batchjudge`` structlog events to stderr.

    Calling it again only changes the level; the handler is added once.

    Parameters
    ----------
    level : int, optional
        Minimum stdlib level emitted by the package loggers.
    """
    logger = logging.getLogger(_PACKAGE_LOGGER)
    logger.setLevel(level)
    if not logger.handlers:
        logger.addHandler(logging.StreamHandler(stream=sys.stderr))
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


@contextmanager
def logging_context(**required_context) -> Iterator[None]:
    """Bind context variables for the block, keeping any already bound."""
    current = structlog.contextvars.get_contextvars()
    to_bind = {key: value for key, value in required_context.items() if key not in current}

    if to_bind:
        with structlog.contextvars.bound_contextvars(**to_bind):
            yield
    else:
        yield
