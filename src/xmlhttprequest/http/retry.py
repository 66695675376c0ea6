# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Retry helper for connections reset by the peer."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from ..errors import XhrError, is_connection_reset, to_xhr_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """
    Retry policy for opening a response.

    Only reset-by-peer failures on pooled connections are retried: a keep-alive
    connection the server already closed fails on first use, and a fresh
    connection usually succeeds.
    """

    max_attempts: int = 2


DEFAULT_RETRY_CONFIG = RetryConfig()


async def open_with_reset_retry(
    open_response: Callable[[], Awaitable[T]],
    *,
    pooled: bool,
) -> T:
    """Await ``open_response()``; retry it once after a reset on a pooled connection."""
    cfg = DEFAULT_RETRY_CONFIG
    attempt = 0
    while True:
        attempt += 1
        try:
            return await open_response()
        except XhrError:
            raise
        except Exception as exc:  # noqa: BLE001
            if pooled and attempt < max(1, cfg.max_attempts) and is_connection_reset(exc):
                logger.debug("Connection reset on pooled connection, retrying (attempt %d): %s", attempt, exc)
                continue
            raise to_xhr_error(exc) from exc


__all__ = ["DEFAULT_RETRY_CONFIG", "RetryConfig", "open_with_reset_retry"]
