"""
Application logging utilities.

Provides logging setup for the review engine with a Rich console handler in
development mode and a plain stream handler otherwise.
"""

import logging
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme


# Custom theme for log levels
_LOG_THEME = Theme({
    "logging.level.debug": "dim cyan",
    "logging.level.info": "green",
    "logging.level.warning": "yellow",
    "logging.level.error": "bold red",
    "logging.level.critical": "bold white on red",
    "log.time": "dim",
    "log.message": "default",
    "log.path": "dim",
})

# Shared console instance with custom theme
_console = Console(theme=_LOG_THEME, stderr=True)


# Root logger name for the package
ROOT_LOGGER_NAME = 'workload_review'

# Module-level cache for logger instances
_loggers: dict[str, logging.Logger] = {}


def setup_logging(
    level: str = 'INFO',
    log_format: Optional[str] = None,
    rich_tracebacks: bool = True,
    show_path: bool = False,
    show_time: bool = True,
    dev_mode: bool = False,
) -> None:
    """
    Setup logging for the review engine.

    Configures the root 'workload_review' logger with a console handler
    (Rich in dev mode, standard stderr stream otherwise).

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom format string for the standard handler.
        rich_tracebacks: Whether to use rich for exception tracebacks (default: True)
        show_path: Whether to show file path in console logs (default: False)
        show_time: Whether to show timestamp in console logs (default: True)
        dev_mode: Whether to use rich console output (default: False)
    """
    if log_format is None:
        log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    level_value = getattr(logging, level.upper())

    if dev_mode:
        handler: logging.Handler = RichHandler(
            console=_console,
            level=level_value,
            show_time=show_time,
            show_path=show_path,
            rich_tracebacks=rich_tracebacks,
            markup=False,
        )
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(log_format))
    handler.setLevel(level_value)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level_value)
    logger.handlers.clear()
    logger.addHandler(handler)
    # Prevent propagation to root logger
    logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the specified component.

    Args:
        name: The name of the component (e.g., 'invoker', 'milestones').
              Will be prefixed with 'workload_review.' automatically.

    Returns:
        A logging.Logger that is a child of the 'workload_review' logger.

    Usage:
        logger = get_logger("scope_resolver")
        logger.info("retrieved questions", extra={"question_count": 42})
    """
    full_name = f"{ROOT_LOGGER_NAME}.{name}" if name else ROOT_LOGGER_NAME

    if full_name not in _loggers:
        logger = logging.getLogger(full_name)

        # NullHandler prevents "No handler found" warnings when
        # setup_logging hasn't been called
        if not logger.handlers:
            logger.addHandler(logging.NullHandler())

        _loggers[full_name] = logger

    return _loggers[full_name]


_root_logger = logging.getLogger(ROOT_LOGGER_NAME)
_root_logger.addHandler(logging.NullHandler())
