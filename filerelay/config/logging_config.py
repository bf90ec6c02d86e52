"""
Logging configuration for the file relay service.

Console + rotating file output on the ``filerelay`` logger. Modules log via:
    import logging
    logger = logging.getLogger(__name__)
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def _build_handlers(log_dir: Path | None, log_file: str) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_dir is None:
        return handlers
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                filename=log_dir / log_file,
                maxBytes=10 * 1024 * 1024,  # 10 MB
                backupCount=5,
                encoding="utf-8",
            )
        )
    except OSError as e:
        logging.getLogger("filerelay").warning("Could not set up file logging: %s", e)
    return handlers


def setup_logging(
    log_dir: Path | None = None,
    level: int | str = logging.INFO,
    log_file: str = "filerelay.log",
    capture_server_errors: bool = False,
) -> None:
    """
    Configure logging for the entire application.

    Args:
        log_dir: Directory for log files. If None, only console logging is set up.
        level: Minimum log level, as a number or a name such as "debug".
        log_file: Name of the log file.
        capture_server_errors: Also write uvicorn's error log to the same handlers.
    """
    level = _resolve_level(level)
    root_logger = logging.getLogger("filerelay")
    root_logger.setLevel(level)

    # Repeated calls (uvicorn reload, tests) must not stack handlers
    if root_logger.handlers:
        return

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = _build_handlers(log_dir, log_file)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    if capture_server_errors:
        server_logger = logging.getLogger("uvicorn.error")
        for handler in handlers:
            if isinstance(handler, logging.handlers.RotatingFileHandler):
                server_logger.addHandler(handler)
