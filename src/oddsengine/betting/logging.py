"""Logging helpers for the odds engine."""

from __future__ import annotations

import logging
from typing import Iterable


def configure_logging(level: int | str = logging.INFO, handlers: Iterable[logging.Handler] | None = None) -> None:
    """Configure root logging for command line sessions.

    Applications embedding the engine can call this to get the same format
    as the ``oddsengine`` CLI.  String levels such as ``"DEBUG"`` are
    accepted.
    """

    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=list(handlers) if handlers else None,
    )
