# tracker/logging_setup.py
from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

LOG_FILE_NAME = "tracker.log"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# loggers that do not propagate to root under uvicorn
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi")

# SQL echo is only wanted when debugging
NOISY_LOGGERS = ("sqlalchemy.engine",)


def log_path_for(settings) -> Path:
    return Path(settings.local_data_dir).expanduser() / "logs" / LOG_FILE_NAME


def _file_handler(path: Path, level: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=5_000_000, backupCount=3, encoding="utf-8"
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.setLevel(level)
    return handler


def _existing_handler(logger: logging.Logger, path: Path):
    target = os.path.abspath(path)
    return next((h for h in logger.handlers if getattr(h, "baseFilename", None) == target), None)


def setup_logging(settings) -> Path:
    """
    Send tracker, server and warnings output to a rotating file under
    LOCAL_DATA_DIR/logs. Safe to call more than once (app reloads, tests).
    """
    path = log_path_for(settings)
    path.parent.mkdir(parents=True, exist_ok=True)
    level = getattr(logging, settings.log_level, logging.INFO)

    root = logging.getLogger()
    handler = _existing_handler(root, path) or _file_handler(path, level)
    handler.setLevel(level)
    for logger in [root] + [logging.getLogger(n) for n in SERVER_LOGGERS]:
        logger.setLevel(level)
        if _existing_handler(logger, path) is None:
            logger.addHandler(handler)

    quiet = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet)

    logging.captureWarnings(True)
    return path
