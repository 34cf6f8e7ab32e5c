"""Shared logging configuration helpers for long-running processes."""

from __future__ import annotations

import logging

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_NOISY_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "httpx")


def resolve_log_level(level: str) -> int:
    """Map a level name to its logging constant, defaulting to INFO."""

    normalized_level = level.strip().upper() if level.strip() else "INFO"
    resolved_level = getattr(logging, normalized_level, logging.INFO)
    return resolved_level if isinstance(resolved_level, int) else logging.INFO


def configure_logging(*, level: str) -> None:
    """Configure process logging with consistent format and runtime level."""

    resolved_level = resolve_log_level(level)
    logging.basicConfig(
        level=resolved_level,
        format=_LOG_FORMAT,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved_level, logging.WARNING))
