# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Logging helpers for xmlhttprequest."""

from __future__ import annotations

import logging
import os

LOG_LEVEL_ENV = "XHR_LOG_LEVEL"

# httpx/httpcore log one INFO line per request and a lot of DEBUG wire detail.
_TRANSPORT_LOGGERS = ("httpx", "httpcore")


def _resolve_level(level: str | None) -> int:
    name = (level or os.getenv(LOG_LEVEL_ENV) or "WARNING").strip().upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.WARNING


def setup_logging(level: str | None = None, *, transport_debug: bool = False) -> None:
    """
    Configure standard logging for CLI/library use.

    The level comes from ``level`` or ``XHR_LOG_LEVEL`` (evaluated at call time).
    Transport library loggers stay at WARNING unless ``transport_debug`` is set.
    """
    effective_level = _resolve_level(level)
    logging.basicConfig(
        level=effective_level,
        format="%(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("xmlhttprequest").setLevel(effective_level)
    transport_level = effective_level if transport_debug else max(effective_level, logging.WARNING)
    for name in _TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(transport_level)


__all__ = ["LOG_LEVEL_ENV", "setup_logging"]
