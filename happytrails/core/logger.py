import sys
from loguru import logger
import logging

from happytrails.core.config import settings


class InterceptHandler(logging.Handler):
    """Hands stdlib records (uvicorn, httpx, starlette) to loguru under their own logger name."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        origin = {"name": record.name, "function": record.funcName, "line": record.lineno}
        logger.patch(lambda r: r.update(origin)) \
            .opt(exception=record.exc_info) \
            .log(level, record.getMessage())

def setup_logging(log_file: str = None):
    logger.remove()

    logger.add(
        sys.stdout,
        level="INFO",
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
    )

    logger.add(
        log_file or settings.LOG_FILE,
        level="ERROR",
        rotation="10 MB",
        retention="1 month",
        compression="zip",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"
    )

    # Route uvicorn/httpx records through loguru
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

__all__ = ["logger", "setup_logging"]
