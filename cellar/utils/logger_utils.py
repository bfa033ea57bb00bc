# cellar/utils/logger_utils.py

import logging
import logging.handlers
import sys
from pathlib import Path
from datetime import datetime

from cellar.core.constants import APP_NAME, LOG_DIR_NAME


# ANSI escape codes for colors
class LogColors:
    RESET = "\x1b[0m"
    GREY = "\x1b[38;21m"
    GREEN = "\x1b[32m"
    YELLOW = "\x1b[33m"
    RED = "\x1b[31m"
    BOLD_RED = "\x1b[31;1m"
    CYAN = "\x1b[36m"


class ColoredFormatter(logging.Formatter):
    """
    Console formatter: time | level | logger:function:line - message,
    each part colored by level.
    """

    LOG_LEVEL_COLORS = {
        logging.DEBUG: LogColors.GREY,
        logging.INFO: LogColors.GREEN,
        logging.WARNING: LogColors.YELLOW,
        logging.ERROR: LogColors.RED,
        logging.CRITICAL: LogColors.BOLD_RED,
    }

    def __init__(self, datefmt="%Y-%m-%d %H:%M:%S", use_color: bool = True):
        super().__init__(fmt="%(message)s", datefmt=datefmt)
        self.use_color = use_color

    def _paint(self, text: str, color: str) -> str:
        return f"{color}{text}{LogColors.RESET}" if self.use_color else text

    def format(self, record):
        level_color = self.LOG_LEVEL_COLORS.get(record.levelno, LogColors.RESET)

        time_str = self._paint(self.formatTime(record, self.datefmt), LogColors.GREEN)
        level = self._paint(f"{record.levelname:<8}", level_color)
        location = self._paint(
            f"{record.name}:{record.funcName}:{record.lineno}", LogColors.CYAN
        )
        message = self._paint(record.getMessage(), level_color)

        log_entry = f"{time_str} | {level} | {location} - {message}"

        if record.exc_info:
            if not record.exc_text:
                record.exc_text = self.formatException(record.exc_info)
            log_entry += "\n" + self._paint(record.exc_text, LogColors.RED)

        return log_entry


# Global variable to store the logger instance
_logger_instance = None
_custom_log_dir = None


def set_log_directory(log_dir):
    """
    Set custom log directory. Must be called before first use of logger.
    """
    global _custom_log_dir
    _custom_log_dir = log_dir


def get_logger():
    """
    Get the shared logger instance, creating it on first access.
    """
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = setup_logger(_custom_log_dir)
    return _logger_instance


def setup_logger(log_dir=None):
    # === Setup log folder & file name ===
    if log_dir is None:
        log_dir = Path.cwd() / LOG_DIR_NAME
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H-%M-%S")
    log_file_path = log_dir / f"LOG_{APP_NAME.upper()}_{timestamp}.log"

    logger = logging.getLogger(APP_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    # Prevents duplicate handlers when reconfigured
    if logger.hasHandlers():
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()

    # === Console handler (stderr keeps stdout free for command output) ===
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(
        ColoredFormatter(use_color=sys.stderr.isatty())
    )
    logger.addHandler(console_handler)

    # === File handler (no color, structured) ===
    # 5 MB per file, 10 backups
    file_handler = logging.handlers.RotatingFileHandler(
        log_file_path, maxBytes=5 * 1024 * 1024, backupCount=10, encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(
            fmt="{asctime} | {levelname} | {threadName} | {name}:{funcName}:{lineno} - {message}",
            datefmt="%Y-%m-%d %H:%M:%S",
            style="{",
        )
    )
    logger.addHandler(file_handler)

    return logger


def reconfigure_logger(log_dir):
    """
    Recreate the logger so it writes into a new log directory.
    Called by main.py once the app config is known.
    """
    global _logger_instance, _custom_log_dir
    _custom_log_dir = log_dir
    _logger_instance = setup_logger(log_dir)
    return _logger_instance


class LoggerProxy:
    """
    Forwards every attribute access to the real logger so importing modules
    never trigger logger creation at import time.
    """

    def __getattr__(self, name):
        return getattr(get_logger(), name)


logger = LoggerProxy()
__all__ = ["logger", "reconfigure_logger", "set_log_directory"]
