"""Logging setup for applications embedding spindex.

Library modules only create loggers with ``logging.getLogger(__name__)``;
handlers are installed here, on the ``spindex`` package logger, when an
application (such as the CLI) asks for it.
"""

import logging
from pathlib import Path
from typing import Optional

from .config.schema import LoggingConfig

PACKAGE_LOGGER = "spindex"


def configure_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """Install handlers on the package logger according to ``config``.

    Calling this again replaces the handlers installed by a previous call.

    Args:
        config: Logging settings; defaults to LoggingConfig()

    Returns:
        The configured package logger
    """
    config = config or LoggingConfig()
    logger = logging.getLogger(PACKAGE_LOGGER)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    level = getattr(logging, config.level.upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {config.level}")
    logger.setLevel(level)

    formatter = logging.Formatter(config.format)
    if config.console:
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        logger.addHandler(console)
    if config.file:
        path = Path(config.file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger
