# util/logger.py
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from config.settings import Settings

# Optional: capture warnings.* into logging
logging.captureWarnings(True)

TEXT_FMT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
DATE_FMT = "%Y-%m-%dT%H:%M:%S%z"


class ColoredFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\033[37m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[41m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # Work on a copy so file handlers still see the plain levelname.
        if getattr(record, "_colorize", False):
            record = logging.makeLogRecord(record.__dict__)
            lvl = record.levelname
            record.levelname = f"{self.COLORS.get(lvl, self.RESET)}{lvl}{self.RESET}"
        return super().format(record)


class ConsoleHandler(logging.StreamHandler):
    """stdout handler that marks its records for colorizing."""

    def __init__(self) -> None:
        super().__init__(sys.stdout)

    def emit(self, record: logging.LogRecord) -> None:
        record._colorize = True  # type: ignore[attr-defined]
        super().emit(record)


def resolve_level(settings: Settings) -> int:
    # DEBUG mode always wins over LOG_LEVEL.
    if settings.DEBUG:
        return logging.DEBUG
    return getattr(logging, (settings.LOG_LEVEL or "INFO").upper(), logging.INFO)


def _file_handler(settings: Settings, level: int) -> logging.Handler:
    os.makedirs(settings.LOG_DIR, exist_ok=True)
    fh = RotatingFileHandler(
        os.path.join(settings.LOG_DIR, settings.LOG_FILE_NAME),
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    fh.setLevel(level)
    fh.setFormatter(logging.Formatter(TEXT_FMT, datefmt=DATE_FMT))
    return fh


def init_logger(settings: Settings) -> logging.Logger:
    """
    Idempotent logger init:
    - Always logs to stdout.
    - Also writes LOG_DIR/LOG_FILE_NAME, size-rotated, when LOG_TO_FILE is set.
    - Level comes from LOG_LEVEL; DEBUG forces debug level and per-request
      access lines from uvicorn.
    """
    root = logging.getLogger()
    if getattr(root, "_restic_rest_inited", False):
        return logging.getLogger(settings.LOGGER_NAME)

    level = resolve_level(settings)
    root.setLevel(level)

    # Clear any default handlers to avoid duplicates
    for h in list(root.handlers):
        root.removeHandler(h)

    ch = ConsoleHandler()
    ch.setLevel(level)
    ch.setFormatter(ColoredFormatter(TEXT_FMT, datefmt=DATE_FMT))
    root.addHandler(ch)

    if settings.LOG_TO_FILE:
        root.addHandler(_file_handler(settings, level))

    # Object bytes flow through these; keep their chatter down.
    logging.getLogger("redis").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(
        logging.INFO if settings.DEBUG else logging.WARNING
    )

    root._restic_rest_inited = True  # mark as initialized
    logger = logging.getLogger(settings.LOGGER_NAME)
    logger.debug("Logger initialized", extra={"component": "bootstrap"})
    return logger
