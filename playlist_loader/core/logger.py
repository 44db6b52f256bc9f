"""
Logging configuration for playlist-loader.

This module sets up the logging system with multiple outputs:
    - Console: Colored, tqdm-compatible output (INFO and above)
    - log_full_<timestamp>.log: Complete log of all events (DEBUG and above)
    - log_errors_<timestamp>.log: Only ERROR and CRITICAL level messages
    - load_failures_<timestamp>.log: Playlist items that failed to load

Everything shown on screen is also saved to file, then filtered into
specialized files.

Usage:
    from playlist_loader.core.logger import setup_logging, get_logger

    setup_logging(log_dir)  # Call once at startup
    logger = get_logger(__name__)  # Get logger for each module

    logger.info("Loading playlist")
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from tqdm import tqdm


# Log file name prefixes (a timestamp is appended per run)
LOG_FULL_PREFIX = "log_full"
LOG_ERRORS_PREFIX = "log_errors"
LOAD_FAILURES_PREFIX = "load_failures"

# Log format for file output (detailed with timestamp)
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    BOLD = "\033[1m"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Formatter that adds colors to console output.

    Colors:
        - DEBUG: Blue
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bold Red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.BLUE,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        colored_levelname = f"{color}{record.levelname}{Colors.RESET}"
        return f"{colored_levelname}: {record.getMessage()}"


class TqdmLoggingHandler(logging.Handler):
    """
    Logging handler that writes to console without breaking tqdm progress bars.

    Uses tqdm.write(), which prints above any active progress bar instead
    of tearing through it.

    Attributes:
        stream: The output stream (defaults to sys.stderr).
    """

    def __init__(self, stream: TextIO = sys.stderr) -> None:
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            tqdm.write(msg, file=self.stream)
        except Exception:
            self.handleError(record)


class LoadFailureHandler(logging.Handler):
    """
    Handler that captures playlist load failures for the failure report file.

    Records produced by log_load_failure() carry extra fields; they are
    written to load_failures_<timestamp>.log in a simple, human-readable
    format:

        [road_trip] #2 badquery
        no matches found

        [road_trip] #5 https://youtube.com/watch?v=xxxxx
        Video unavailable

    The handler looks for these extra fields in log records:
        - 'load_failed_playlist': Name of the playlist being loaded
        - 'load_failed_index': 0-based position of the item (shown 1-based)
        - 'load_failed_item': The raw reference
        - 'load_failed_reason': Why it failed

    Records without 'load_failed_item' are ignored.

    Attributes:
        report_path: Path to the report file.
        report_file: Open file handle (opened by open()).
    """

    def __init__(self, report_path: Path) -> None:
        super().__init__()
        self.report_path = report_path
        self.report_file: TextIO | None = None

    def open(self) -> None:
        """Open the report file for writing (overwrites existing content)."""
        self.report_file = open(self.report_path, "w", encoding="utf-8")

    def emit(self, record: logging.LogRecord) -> None:
        if not hasattr(record, "load_failed_item"):
            return

        if self.report_file is None:
            return

        try:
            playlist = getattr(record, "load_failed_playlist", "Unknown")
            index = getattr(record, "load_failed_index", None)
            item = getattr(record, "load_failed_item", "")
            reason = getattr(record, "load_failed_reason", "")

            position = f"#{index + 1} " if index is not None else ""
            # Handlers may be called from several resolver threads
            self.acquire()
            try:
                self.report_file.write(f"[{playlist}] {position}{item}\n")
                self.report_file.write(f"{reason}\n\n")
                self.report_file.flush()
            finally:
                self.release()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        """Close the report file handle. Safe to call multiple times."""
        if self.report_file is not None:
            try:
                self.report_file.close()
            except OSError:
                pass
            self.report_file = None
        super().close()


class ErrorOnlyFilter(logging.Filter):
    """
    Filter that only allows ERROR and CRITICAL level records.

    Used by the error log file handler to exclude DEBUG, INFO, and WARNING.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def setup_logging(log_dir: Path, console_level: int = logging.INFO) -> None:
    """
    Configure the logging system for the application.

    This function should be called ONCE at application startup, after
    the configuration is loaded but before any other operations.

    Args:
        log_dir: Directory where log files will be created.
                 Created if it doesn't exist.
        console_level: Minimum level shown on the console.

    Behavior:
        1. Create log_dir if it doesn't exist
        2. Configure root logger level to DEBUG and drop existing handlers
        3. Console handler (TqdmLoggingHandler, colored)
        4. Full log file handler (DEBUG)
        5. Error-only log file handler (ERROR+ via ErrorOnlyFilter)
        6. Load failure report handler

    Thread Safety:
        This function is NOT thread-safe. Call it once from the main
        thread before any resolver threads are started.
    """
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(ColoredConsoleFormatter())
    root_logger.addHandler(console_handler)

    full_handler = logging.FileHandler(
        log_dir / f"{LOG_FULL_PREFIX}_{timestamp}.log", mode="w", encoding="utf-8"
    )
    full_handler.setLevel(logging.DEBUG)
    full_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    root_logger.addHandler(full_handler)

    error_handler = logging.FileHandler(
        log_dir / f"{LOG_ERRORS_PREFIX}_{timestamp}.log", mode="w", encoding="utf-8"
    )
    error_handler.setLevel(logging.DEBUG)  # Filter handles the level restriction
    error_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    error_handler.addFilter(ErrorOnlyFilter())
    root_logger.addHandler(error_handler)

    failures_handler = LoadFailureHandler(log_dir / f"{LOAD_FAILURES_PREFIX}_{timestamp}.log")
    failures_handler.open()
    root_logger.addHandler(failures_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The logger name, typically __name__ of the calling module.

    Returns:
        logging.Logger: A logger instance configured by setup_logging().

    Note:
        Loggers obtained before setup_logging() is called have no
        handlers of their own and propagate to the root logger.
    """
    return logging.getLogger(name)


def format_track_message(title: str, url: str) -> str:
    """Format a 'Loaded' message with colors."""
    return (
        f"{Colors.GREEN}Loaded{Colors.RESET}: "
        f"{title} -> "
        f"{Colors.CYAN}{url}{Colors.RESET}"
    )


def format_summary_message(name: str, tracks: int, errors: int) -> str:
    """Format the end-of-load summary with colors."""
    return (
        f"Playlist '{name}' loaded: "
        f"{Colors.GREEN}{tracks}{Colors.RESET} tracks, "
        f"{Colors.RED}{errors}{Colors.RESET} errors"
    )


def log_load_failure(
    logger: logging.Logger,
    playlist_name: str,
    index: int,
    item: str,
    reason: str
) -> None:
    """
    Log a playlist item that failed to load.

    Logs a WARNING (the load itself keeps going) and attaches the extra
    fields that LoadFailureHandler uses to write load_failures.log.

    Example:
        log_load_failure(logger, "road_trip", 1, "badquery", "no matches found")
    """
    logger.warning(
        f"[{playlist_name}] item {index + 1} failed: {item} ({reason})",
        extra={
            "load_failed_playlist": playlist_name,
            "load_failed_index": index,
            "load_failed_item": item,
            "load_failed_reason": reason,
        }
    )


def shutdown_logging() -> None:
    """
    Flush, close and remove all root handlers.

    Typically called in a finally block at application exit.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        try:
            handler.flush()
            handler.close()
        except OSError:
            pass
        root_logger.removeHandler(handler)
