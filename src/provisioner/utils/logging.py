"""Logger setup shared by the HTTP service and the badge-provision command."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Union

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
ISO_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def resolve_level(level: Union[int, str]) -> int:
    """Numeric logging level for an int or a name such as "debug".

    Raises:
        ValueError: If the name is not a standard logging level
    """
    if isinstance(level, int):
        return level
    number = logging.getLevelName(level.upper())
    if not isinstance(number, int):
        raise ValueError(f"Unknown log level: {level}")
    return number


def _handlers(log_path: Path, max_bytes: int, backup_count: int) -> List[logging.Handler]:
    rotating = RotatingFileHandler(
        log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    return [rotating, logging.StreamHandler()]


def setup_logger(
    name: str = "provisioner",
    log_file: str = "./logs/provisioner.log",
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 3,
    level: Union[int, str] = logging.INFO,
) -> logging.Logger:
    """Configure the provisioner's root logger.

    Records from module loggers (provisioner.pipeline, provisioner.executor,
    ...) propagate here and land in both the rotating log file and stderr.
    Calling it again only adjusts the level; handlers are attached once.
    """
    numeric = resolve_level(level)
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(numeric)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=ISO_DATEFMT)
    for handler in _handlers(log_path, max_bytes, backup_count):
        handler.setLevel(numeric)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
