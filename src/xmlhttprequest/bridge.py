# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Blocking bridge for synchronous requests.

The transport is asyncio-only, so a synchronous send runs the complete async
fetch (redirects included) on a dedicated worker thread with its own event
loop and blocks the caller until that thread reports completion. This also
works when the caller is itself running inside an event loop.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import os
import threading
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from .errors import BridgeUnavailableError, XhrError, to_xhr_error
from .http.models import ResponseRecord

logger = logging.getLogger(__name__)

_bridge_counter = itertools.count(1)


@dataclass
class BridgeResult:
    """Result slot filled by the worker: exactly one of ``record``/``error`` is set."""

    record: ResponseRecord | None = None
    error: XhrError | None = None


class BlockingBridge:
    """Runs one async fetch to completion on a worker thread, blocking the caller."""

    def __init__(self, name_prefix: str = "xhr-sync"):
        self._name_prefix = name_prefix

    def _worker_name(self) -> str:
        return f"{self._name_prefix}-{os.getpid()}-{next(_bridge_counter)}-{uuid.uuid4().hex[:12]}"

    def run(self, fetch: Callable[[], Awaitable[ResponseRecord]]) -> ResponseRecord:
        """
        Execute ``fetch()`` and return its record, or raise its XhrError.

        Raises BridgeUnavailableError when the worker thread cannot be started.
        """
        done = threading.Event()
        slot = BridgeResult()

        def worker() -> None:
            try:
                slot.record = asyncio.run(fetch())
            except Exception as exc:  # noqa: BLE001
                slot.error = to_xhr_error(exc)
            finally:
                done.set()

        thread = threading.Thread(target=worker, name=self._worker_name(), daemon=True)
        logger.debug("Starting blocking worker %s", thread.name)
        try:
            thread.start()
        except RuntimeError as exc:
            raise BridgeUnavailableError(f"Synchronous operation aborted: unable to start worker thread ({exc})") from exc

        done.wait()
        thread.join()
        if slot.error is not None:
            raise slot.error
        if slot.record is None:
            raise BridgeUnavailableError("Synchronous operation aborted: worker finished without a result")
        return slot.record


__all__ = ["BlockingBridge", "BridgeResult"]
