# finance_engine/utilities/config_logging.py
from __future__ import annotations

import copy
import logging.config
from pathlib import Path
from typing import Any, Dict, Optional

from .constants import DEFAULT_LOG_DIR, LOG_FILE_NAME

LOGGING: Dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(levelname)s %(name)s: %(message)s"},
        "verbose": {
            "format": "%(asctime)s %(levelname)s %(name)s "
            "[%(process)d:%(threadName)s] %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": "WARNING",
            "formatter": "simple",
        },
        "file": {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "DEBUG",
            "formatter": "verbose",
            "filename": str(DEFAULT_LOG_DIR / LOG_FILE_NAME),
            "maxBytes": 5_000_000,
            "backupCount": 5,
            "encoding": "utf-8",
            "delay": True,
        },
    },
    "loggers": {
        # root logger
        "": {
            "level": "DEBUG",
            "handlers": ["console", "file"],
        },
        "finance_engine": {"level": "DEBUG", "propagate": True},
    },
}


def build_logging_config(
    log_dir: Optional[Path] = None, *, console_level: str = "WARNING"
) -> Dict[str, Any]:
    """Return a copy of ``LOGGING`` pointed at ``log_dir`` with the given console level."""
    config = copy.deepcopy(LOGGING)
    target = Path(log_dir) if log_dir is not None else DEFAULT_LOG_DIR
    config["handlers"]["file"]["filename"] = str(target / LOG_FILE_NAME)
    config["handlers"]["console"]["level"] = console_level
    return config


def configure_logging(
    log_dir: Optional[Path] = None, *, console_level: str = "WARNING"
) -> Path:
    """
    Apply the package logging configuration.

    The rotating file handler needs its directory to exist, so it is created here
    rather than at import time. Returns the log file path.
    """
    config = build_logging_config(log_dir, console_level=console_level)
    log_file = Path(config["handlers"]["file"]["filename"])
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(config)
    return log_file
