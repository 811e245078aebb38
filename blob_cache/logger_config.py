import logging
import sys
from pathlib import Path
from typing import Optional

LOGGER_NAME = "blob_cache"


def get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def setup_logger(level: str = "INFO", log_dir: Optional[Path] = None) -> logging.Logger:
    logger = get_logger()
    logger.setLevel(logging.DEBUG)

    # Called again (tests, reloads): keep the handlers we already have
    if logger.handlers:
        return logger

    console_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s'
    )

    # Console handler (for basic logging)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir.mkdir(exist_ok=True, parents=True)
        file_formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
        )

        # File handler (for detailed logging)
        file_handler = logging.FileHandler(log_dir / "blob_cache.log")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    return logger
