# printhub/logger.py
import logging
from logging.handlers import RotatingFileHandler
import os

LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"

# shared by every printhub logger: app.log has exactly one rotating handler
_handlers = []


def _shared_handlers():
    if _handlers:
        return _handlers

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    os.makedirs(LOG_DIR, exist_ok=True)
    file_handler = RotatingFileHandler(
        os.path.join(LOG_DIR, "app.log"),
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)

    _handlers.extend([console_handler, file_handler])
    return _handlers


def get_logger(name: str) -> logging.Logger:
    '''Module logger writing to the console and <LOG_DIR>/app.log'''
    logger = logging.getLogger(name)

    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    for handler in _shared_handlers():
        logger.addHandler(handler)
    # root handlers stay untouched
    logger.propagate = False

    return logger
