"""
Logging for mediakeeper.

Every module asks :func:`get_logger` for a named logger. Each one writes to the
console through prompt_toolkit (colored when stderr is a terminal) and to the
session log file in ``logs/``. The console level can be raised with the
``MEDIAKEEPER_LOG_LEVEL`` environment variable; the file always gets DEBUG.
"""

import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import ANSI

LOGS_DIR: Path = Path(os.getenv("MEDIAKEEPER_LOG_DIR") or Path(__file__).parents[3] / "logs").resolve()
LOGS_DIR.mkdir(parents=True, exist_ok=True)

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s:%(funcName)s:%(lineno)d] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
FILE_STAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

MAX_LOG_BYTES = 5 * 1024 * 1024
# A restart within this many seconds keeps appending to the previous session file
SESSION_REUSE_SECONDS = 60

LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[1;31m",
}
RESET_COLOR = "\033[0m"

# Library loggers and the lowest level of theirs worth seeing
NOISY_LOGGERS = {
    "discord": logging.WARNING,
    "discord.gateway": logging.ERROR,
    "discord.client": logging.ERROR,
    "discord.http": logging.ERROR,
    "websockets": logging.ERROR,
    "aiohttp": logging.ERROR,
    "urllib3": logging.WARNING,
}

_session_log_path: Path | None = None


class ColorFormatter(logging.Formatter):
    """Formatter that paints the whole line in the color of the record's level."""

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        if color is None:
            return text
        return f"{color}{text}{RESET_COLOR}"


class PromptToolkitHandler(logging.Handler):
    """Console handler printing through prompt_toolkit so ANSI colors render everywhere."""

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


def console_level() -> int:
    """Console threshold from ``MEDIAKEEPER_LOG_LEVEL``; unknown names mean DEBUG."""
    name = os.getenv("MEDIAKEEPER_LOG_LEVEL", "DEBUG").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.DEBUG


def get_log_filepath() -> Path:
    """
    Path of this process's log file.

    Reuses the most recently written ``*.log`` file when it was touched less
    than ``SESSION_REUSE_SECONDS`` ago, otherwise starts a new timestamped one.
    The answer is fixed for the lifetime of the process.
    """
    global _session_log_path

    if _session_log_path is None:
        now = datetime.now()
        recent = max(LOGS_DIR.glob("*.log"), key=lambda p: p.stat().st_mtime, default=None)
        if recent is not None and now.timestamp() - recent.stat().st_mtime < SESSION_REUSE_SECONDS:
            _session_log_path = recent
        else:
            _session_log_path = LOGS_DIR / f"{now.strftime(FILE_STAMP_FORMAT)}.log"
    return _session_log_path


def setup_logger(logger_name: str) -> logging.Logger:
    """Attach the console and file handlers to ``logger_name`` (only the first time)."""
    logger = logging.getLogger(logger_name)
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    console = PromptToolkitHandler()
    console.setLevel(console_level())
    console.setFormatter(
        ColorFormatter(LOG_FORMAT, datefmt=DATE_FORMAT) if should_use_color()
        else logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    )
    logger.addHandler(console)

    log_file = RotatingFileHandler(get_log_filepath(), maxBytes=MAX_LOG_BYTES, backupCount=1, encoding="utf-8")
    log_file.setLevel(logging.DEBUG)
    log_file.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(log_file)

    return logger


def get_logger(logger_name: str) -> logging.Logger:
    return setup_logger(logger_name)


def handle_exception(exception_type, exception_instance, exception_traceback) -> None:
    """``sys.excepthook`` replacement: log crashes, let Ctrl+C through untouched."""
    if issubclass(exception_type, KeyboardInterrupt):
        sys.__excepthook__(exception_type, exception_instance, exception_traceback)
        return
    get_logger("mediakeeper").critical(
        "Uncaught exception", exc_info=(exception_type, exception_instance, exception_traceback)
    )


def quiet_library_loggers() -> None:
    for name, level in NOISY_LOGGERS.items():
        library_logger = logging.getLogger(name)
        library_logger.setLevel(level)
        library_logger.propagate = False
        library_logger.handlers = []


quiet_library_loggers()
sys.excepthook = handle_exception
