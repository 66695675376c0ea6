# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Ready states and per-open request settings."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ReadyState(IntEnum):
    UNSENT = 0
    OPENED = 1
    HEADERS_RECEIVED = 2
    LOADING = 3
    DONE = 4


@dataclass(frozen=True)
class RequestSettings:
    """What ``open()`` recorded; fixed for the lifetime of one send."""

    method: str
    url: str
    is_async: bool = True
    user: str | None = None
    password: str | None = None
    origin: str | None = None


__all__ = ["ReadyState", "RequestSettings"]
