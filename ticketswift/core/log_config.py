import logging
import sys

from loguru import logger

from ticketswift.core.config import settings

log_format = " | ".join(
    (
        "<g>{time:YYYY-MM-DD HH:mm:ss.SSS}</>",
        "<lvl>{level:<8}</>",
        "<c>{name}:{function}:{line}</>",
        "{message}",
        "<lk>{extra}</>",
    )
)


class InterceptHandler(logging.Handler):
    """Route stdlib logging (uvicorn, sqlalchemy, celery) through loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def mask_code(code: str | None) -> str:
    """Loggable form of a verification code: first 4 characters only."""
    if not code:
        return "-"
    return f"{code[:4]}****"


def configure_logging() -> None:
    logger.remove()  # drop the default handler so records are not printed twice
    logger.add(sys.stdout, format=log_format, level=settings.LOG_LEVEL.upper(), enqueue=settings.ENV != "test")
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
