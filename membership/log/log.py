import logging
import sys
from pathlib import Path
from typing import Optional

from loguru import logger as loguru_logger

from membership.settings import Settings, get_settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)

# httpx logs every request line (URL included) at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore")


class InterceptHandler(logging.Handler):
    """Forward stdlib logging records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame = logging.currentframe()
        depth = 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        loguru_logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(settings: Optional[Settings] = None):
    """Install loguru sinks and route the engine's stdlib loggers into them.

    Called once by the host process; importing the package configures nothing.
    """
    settings = settings or get_settings()
    level = "DEBUG" if settings.debug else "INFO"

    loguru_logger.remove()
    loguru_logger.add(sink=sys.stderr, level=level, format=LOG_FORMAT)
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if settings.log_to_file:
        file_path = Path(settings.log_file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        loguru_logger.add(
            sink=str(file_path),
            level=level,
            format=LOG_FORMAT,
            rotation="100 MB",
            retention="10 days",
            enqueue=True,
            backtrace=False,
            diagnose=False,
        )

    return loguru_logger
