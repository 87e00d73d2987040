"""Root logger setup for the API process."""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s:%(name)s:%(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_LOG_BACKUP_COUNT = 10


def configure_logging(service_name: str) -> None:
    """
    Configure root logger for console output, plus a rotating file
    when LOG_DIR is set.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler()]

    log_dir = os.getenv("LOG_DIR", "").strip()
    if log_dir:
        try:
            Path(log_dir).mkdir(parents=True, exist_ok=True)
            handlers.append(
                RotatingFileHandler(
                    Path(log_dir) / f"{service_name}.log",
                    maxBytes=DEFAULT_LOG_MAX_BYTES,
                    backupCount=DEFAULT_LOG_BACKUP_COUNT,
                    encoding="utf-8",
                )
            )
        except OSError as error:
            logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT, force=True)
            logging.getLogger(__name__).warning(
                "File logging disabled: failed to initialize %s (%s)",
                log_dir,
                error,
            )
            return

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
