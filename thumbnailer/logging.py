"""Logging utilities for the thumbnailer"""
import logging
from pathlib import Path
from typing import Optional


LOGGER_NAME = "thumbnailer"


def setup_logging(log_file: Optional[Path] = None, verbose: bool = False,
                  logger_name: str = LOGGER_NAME) -> logging.Logger:
    """Setup logging for the thumbnailer, to a file if one is given"""
    logger = logging.getLogger(logger_name)
    level = logging.DEBUG if verbose else logging.INFO
    logger.setLevel(level)

    # Remove existing handlers
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    handler.setLevel(level)
    fmt = logging.Formatter("%(asctime)s | %(levelname)-5s | %(message)s")
    handler.setFormatter(fmt)
    logger.addHandler(handler)
    logger.debug(f"Logger initialized. file={log_file}")

    return logger
