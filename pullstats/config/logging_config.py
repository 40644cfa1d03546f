# pullstats/config/logging_config.py

"""Logging for harvest and report runs.

A run writes everything from the ``pullstats`` logger tree to its own
``logs/run_<YYYYMMDD_HHMMSS>.log``; stderr only shows warnings and
errors such as crawl aborts or failed history writes.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from pullstats.config.settings import Settings

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s | "
    "%(module)s:%(funcName)s:%(lineno)d | %(message)s"
)

_STDERR_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"

_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def _current_log_file(run_logger: logging.Logger) -> Path | None:
    """Return the file behind an already attached run log handler."""
    for handler in run_logger.handlers:
        if isinstance(handler, logging.FileHandler):
            return Path(handler.baseFilename)
    return None


def setup_logging(logs_dir: Path | None = None) -> Path:
    """Attach the run log and stderr handlers to ``pullstats``.

    Calling it again keeps the handlers of the first call and returns
    that call's log file.
    """
    run_logger = logging.getLogger("pullstats")
    run_logger.setLevel(logging.DEBUG)

    existing = _current_log_file(run_logger)
    if existing is not None:
        return existing

    target_dir: Path = logs_dir or Settings.LOGS_DIR
    target_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = target_dir / f"run_{stamp}.log"

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_FILE_FORMAT, datefmt=_TIME_FORMAT)
    )

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.setFormatter(
        logging.Formatter(_STDERR_FORMAT, datefmt=_TIME_FORMAT)
    )

    run_logger.addHandler(file_handler)
    run_logger.addHandler(stderr_handler)
    run_logger.info("Run log: %s", log_file)

    return log_file
