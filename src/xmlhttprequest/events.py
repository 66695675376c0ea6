# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Event objects and listener bookkeeping for XMLHttpRequest."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

# Event name -> attribute holding the direct ("on...") handler.
DIRECT_HANDLER_ATTRIBUTES: dict[str, str] = {
    "readystatechange": "onreadystatechange",
    "loadstart": "onloadstart",
    "load": "onload",
    "error": "onerror",
    "abort": "onabort",
    "loadend": "onloadend",
}


@dataclass(frozen=True)
class XhrEvent:
    type: str
    target: Any = None


Listener = Callable[[XhrEvent], Any]


class ListenerRegistry:
    """Ordered callbacks per event name; duplicates allowed, removal by identity."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}

    def add(self, event: str, callback: Listener) -> None:
        self._listeners.setdefault(event, []).append(callback)

    def remove(self, event: str, callback: Listener) -> None:
        if event in self._listeners:
            self._listeners[event] = [cb for cb in self._listeners[event] if cb is not callback]

    def listeners(self, event: str) -> list[Listener]:
        """Snapshot, so callbacks may add/remove listeners during delivery."""
        return list(self._listeners.get(event, ()))

    def __len__(self) -> int:
        return sum(len(items) for items in self._listeners.values())


__all__ = ["DIRECT_HANDLER_ATTRIBUTES", "Listener", "ListenerRegistry", "XhrEvent"]
