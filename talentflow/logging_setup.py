"""Logging setup for talentflow."""

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"

_LEVEL_MAP = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def resolve_level(name: str) -> int:
    """Map a config level name to a logging level (INFO when unknown)."""
    return _LEVEL_MAP.get(name.lower(), logging.INFO)


def setup_logging(level: str = "info") -> logging.Logger:
    """Configure the package logger; calling again only changes the level."""
    logger = logging.getLogger("talentflow")
    logger.setLevel(resolve_level(level))

    if not any(getattr(h, "_talentflow", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._talentflow = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    return logger
