import logging
from logging.handlers import RotatingFileHandler

from .config import LOG_DIR, LOG_FILE_BACKUPS, LOG_FILE_BYTES, LOG_LEVEL

ROOT_LOGGER_NAME = "face_timeclock"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(threadName)s | %(name)s | %(message)s"


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if root.handlers:
        return root

    level = logging.getLevelName(LOG_LEVEL)
    root.setLevel(level if isinstance(level, int) else logging.INFO)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    LOG_DIR.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        LOG_DIR / "timeclock.log",
        maxBytes=LOG_FILE_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    console = logging.StreamHandler()
    for handler in (file_handler, console):
        handler.setFormatter(formatter)
        root.addHandler(handler)
    return root


def setup_logger(name: str) -> logging.Logger:
    """Child of the shared package logger; handlers are attached once on the parent."""
    _configure_root()
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
