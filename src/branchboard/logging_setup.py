"""Logging configuration for applications embedding branchboard."""

from __future__ import annotations

import logging

_LOGGER = logging.getLogger("branchboard")
_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level: str | int = "WARNING") -> logging.Logger:
    """Attach one stream handler to the package logger and set its level."""
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            _LOGGER.warning("Unknown log level %r, using WARNING", level)
            resolved = logging.WARNING
        level = resolved

    if not any(getattr(h, "_branchboard", False) for h in _LOGGER.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._branchboard = True  # type: ignore[attr-defined]
        _LOGGER.addHandler(handler)

    _LOGGER.setLevel(level)
    return _LOGGER
