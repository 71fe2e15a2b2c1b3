"""Logging configuration helpers."""

import logging

from cordmirror.config.models import LoggingConfig

logger = logging.getLogger(__name__)


def _level(name: str) -> int:
    """Resolve a level name, falling back to INFO for unknown names."""
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(config: LoggingConfig | None) -> None:
    """Apply the ``logging`` section of the config.

    Sets the root level, re-formats the handlers already attached to the
    root logger and applies per-logger levels (for example to silence the
    cache's debug output). Handlers are never added here; the embedding
    application owns them.

    Args:
        config: Logging configuration. None leaves logging untouched.
    """
    if config is None:
        return

    root_logger = logging.getLogger()
    root_logger.setLevel(_level(config.level))

    formatter = logging.Formatter(config.format)
    for handler in root_logger.handlers:
        handler.setFormatter(formatter)

    for logger_name, logger_level in (config.loggers or {}).items():
        logging.getLogger(logger_name).setLevel(_level(logger_level))
        logger.debug("Set logger '%s' to level %s", logger_name, logger_level.upper())
