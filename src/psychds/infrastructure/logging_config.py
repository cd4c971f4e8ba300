"""
Logging configuration for the application.

The GUI logs to stderr and to log.txt in the persistent data directory; the
log of the previous run is kept as log.old.txt. The CLI logs to stderr only.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from .paths import get_log_file_path, get_old_log_file_path


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# HTTP libraries used by the OSF client log every request at DEBUG level
QUIET_LOGGERS = ("urllib3", "requests")


def rotate_log_files(log_file: Optional[Path] = None) -> None:
    """
    Keep the log of the previous run.

    The current log is renamed to its '.old' sibling, replacing an older one.
    Failures are reported on stderr and never stop startup.

    Args:
        log_file: Current log file. If None, uses the default location.
    """
    if log_file is None:
        log_file = get_log_file_path()
        old_log_file = get_old_log_file_path()
    else:
        old_log_file = log_file.with_name(f"{log_file.stem}.old{log_file.suffix}")

    if not log_file.exists():
        return

    try:
        log_file.replace(old_log_file)
    except OSError as e:
        print(f"Warning: Could not rotate log file {log_file}: {e}", file=sys.stderr)


def _handler(handler: logging.Handler, level: int, format_string: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(format_string))
    return handler


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    format_string: str = LOG_FORMAT,
    log_to_file: bool = True
) -> Optional[Path]:
    """
    Configure application-wide logging.

    Calling it again replaces the previous configuration, so the CLI and
    the GUI can each set their own level.

    Args:
        level: Logging level (e.g., logging.DEBUG, logging.INFO).
        log_file: Log file path. If None and log_to_file is set, uses the default location.
        format_string: Format of each log record.
        log_to_file: Whether to log to a file as well as stderr.

    Returns:
        The log file in use, or None when logging to stderr only.
    """
    handlers = [_handler(logging.StreamHandler(sys.stderr), level, format_string)]

    if log_to_file:
        log_file = Path(log_file) if log_file is not None else get_log_file_path()
        rotate_log_files(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(_handler(logging.FileHandler(log_file, encoding='utf-8', mode='w'), level, format_string))
    else:
        log_file = None

    logging.basicConfig(level=level, handlers=handlers, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return log_file


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Logger name (typically __name__).

    Returns:
        A configured logger instance.
    """
    return logging.getLogger(name)
