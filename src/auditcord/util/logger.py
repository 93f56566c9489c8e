"""
Session logging for Auditcord.

Every module asks for its logger through :func:`get_logger`. All loggers of
a process share two handlers: a prompt_toolkit console handler at INFO and a
rotating file handler at DEBUG writing to one log file per session under
``LOGS_DIR`` (``$AUDITCORD_LOG_DIR`` or ``<repo>/logs``).
"""

import logging
import os
import sys
from datetime import datetime
from functools import lru_cache
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List

from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import ANSI

LOGS_DIR: Path = Path(os.getenv("AUDITCORD_LOG_DIR") or (Path(__file__).parents[3] / "logs")).resolve()

LOG_FORMAT: str = "[%(asctime)s] [%(levelname)s] [%(name)s:%(funcName)s:%(lineno)d] %(message)s"
DATE_FORMAT: str = "%Y-%m-%d %H-%M-%S"

# A log file touched this recently is treated as the same session (quick restart)
SESSION_REUSE_SECONDS = 60
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5

LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[38;5;88m",
}
RESET_COLOR = "\033[0m"

# Third-party loggers only worth hearing from on errors
NOISY_LOGGERS: List[str] = [
    "discord", "discord.gateway", "discord.client", "discord.http",
    "websockets", "aiohttp", "aiosqlite", "redis",
]


class ColorFormatter(logging.Formatter):
    """Formatter that wraps each record in the ANSI colour of its level."""

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        return f"{color}{text}{RESET_COLOR}" if color else text


class PromptToolkitHandler(logging.StreamHandler):
    """Console handler printing through prompt_toolkit so an active prompt is not torn."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            print_formatted_text(ANSI(self.format(record)))
        except Exception:
            self.handleError(record)


def should_use_color() -> bool:
    try:
        return sys.stderr.isatty()
    except Exception:
        return False


@lru_cache(maxsize=1)
def get_log_filepath() -> Path:
    """
    Return the log file of the current session.

    Reuses today's newest log file when it was written within the last
    ``SESSION_REUSE_SECONDS``; otherwise names a new file after the current
    time. The result is fixed for the lifetime of the process.
    """
    LOGS_DIR.mkdir(parents=True, exist_ok=True)
    now = datetime.now()

    todays_logs = sorted(
        LOGS_DIR.glob(f"{now:%Y-%m-%d}*.log"),
        key=lambda path: path.stat().st_mtime,
        reverse=True,
    )
    if todays_logs and now.timestamp() - todays_logs[0].stat().st_mtime < SESSION_REUSE_SECONDS:
        return todays_logs[0]

    return LOGS_DIR / f"{now.strftime(DATE_FORMAT)}.log"


@lru_cache(maxsize=1)
def shared_handlers() -> tuple:
    """Build the console and file handlers once per process."""
    plain = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = PromptToolkitHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(ColorFormatter(LOG_FORMAT, datefmt=DATE_FORMAT) if should_use_color() else plain)

    log_file = RotatingFileHandler(
        get_log_filepath(),
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    log_file.setLevel(logging.DEBUG)
    log_file.setFormatter(plain)

    return console, log_file


def get_logger(logger_name: str) -> logging.Logger:
    """Return the named logger, attaching the session handlers on first use.

    Parameters
    ----------
    logger_name:
        Name of the logger requested by the caller.
    """
    logger = logging.getLogger(logger_name)
    if not logger.handlers:
        logger.setLevel(logging.DEBUG)
        logger.propagate = False
        for handler in shared_handlers():
            logger.addHandler(handler)
    return logger


def handle_exception(exception_type, exception_instance, exception_traceback) -> None:
    """``sys.excepthook`` replacement that logs uncaught exceptions.

    KeyboardInterrupt goes to the default hook so Ctrl+C still exits quietly.
    """
    if issubclass(exception_type, KeyboardInterrupt):
        sys.__excepthook__(exception_type, exception_instance, exception_traceback)
        return
    logging.error("Uncaught exception", exc_info=(exception_type, exception_instance, exception_traceback))


def silence_noisy_loggers() -> None:
    for name in NOISY_LOGGERS:
        noisy = logging.getLogger(name)
        noisy.setLevel(logging.ERROR)
        noisy.propagate = False
        noisy.handlers = []


silence_noisy_loggers()
