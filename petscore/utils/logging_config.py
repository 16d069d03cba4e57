"""
Logging setup for petscore command-line tools.

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed here, once, by the tool that owns the process:

- rotating log file (WARNING and above) for bulk re-scoring runs
- stderr console at a caller-chosen level (``--verbose`` → INFO)
"""
import logging
import logging.handlers
from datetime import datetime
from pathlib import Path

LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3

_FILE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
_CONSOLE_FORMAT = '%(levelname)s: %(message)s'


def _resolve_log_dir(log_dir) -> Path:
    if log_dir is None:
        from .paths import get_logs_dir  # noqa: PLC0415
        return get_logs_dir()
    path = Path(log_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


def _file_handler(log_path: Path, app_name: str) -> logging.Handler:
    log_file = log_path / f"{app_name}_{datetime.now().strftime('%Y%m%d')}.log"
    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding='utf-8',
    )
    handler.setLevel(logging.WARNING)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    return handler


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    return handler


def setup_logging(
    log_dir: "str | Path | None" = None,
    app_name: str = "petscore",
    console_level: int = logging.WARNING,
) -> logging.Logger:
    """
    Attach file and console handlers to the application logger.

    Calling it again does not add handlers; it only moves the console
    threshold to ``console_level``.

    Args:
        log_dir: Directory for log files; None → utils.paths.get_logs_dir()
        app_name: Logger name and log file prefix
        console_level: Minimum level echoed to stderr

    Returns:
        The application logger
    """
    logger = logging.getLogger(app_name)
    logger.setLevel(logging.DEBUG)

    if logger.handlers:
        for handler in logger.handlers:
            if type(handler) is logging.StreamHandler:
                handler.setLevel(console_level)
        return logger

    logger.addHandler(_file_handler(_resolve_log_dir(log_dir), app_name))
    logger.addHandler(_console_handler(console_level))
    return logger
