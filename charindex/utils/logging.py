"""Loguru sink setup shared by the command-line scripts."""

from __future__ import annotations

import sys

from loguru import logger

from charindex.utils.config import LoggingConfig

_TEXT_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"


def configure_logging(config: LoggingConfig | None = None, *, verbose: bool = False) -> None:
    """Replace the default loguru sink with the configured ones."""
    config = config or LoggingConfig()
    level = "DEBUG" if verbose else config.level.upper()
    serialize = config.format == "json"

    logger.remove()
    if serialize:
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(sys.stderr, level=level, format=_TEXT_FORMAT)

    if config.file:
        logger.add(
            config.file,
            level=level,
            serialize=serialize,
            rotation=f"{config.max_size_mb} MB",
            retention=config.backup_count,
        )
