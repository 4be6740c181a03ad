"""Logging setup using loguru.

Engine modules log through ``from loguru import logger`` directly. The CLI
calls ``setup_logging()`` once at startup to configure the sink and to route
stdlib logging (httpx, httpcore) into loguru.
"""

import logging
import sys

from loguru import logger

from feedlot.core.config import settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# Third-party loggers that use the standard library
INTERCEPTED_LOGGERS = ("httpx", "httpcore")


class InterceptHandler(logging.Handler):
    """Redirect standard library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        # Walk up past logging/__init__.py so loguru reports the real caller
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str | None = None) -> None:
    """Configure loguru for CLI use.

    Args:
        level: Minimum level for the stderr sink. Defaults to settings.log_level.
    """
    level = (level or settings.log_level).upper()

    logging.root.handlers = []
    logging.root.setLevel(logging.WARNING)
    for name in INTERCEPTED_LOGGERS:
        logging.getLogger(name).handlers = [InterceptHandler()]
        logging.getLogger(name).propagate = False

    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=level, backtrace=True, diagnose=False)
