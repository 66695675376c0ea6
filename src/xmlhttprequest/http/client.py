# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Transport abstraction and factory."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from ..config import XhrSettings, load_settings
from .models import ResponseRecord, TransportRequest


class Transport(Protocol):
    """What XMLHttpRequest needs from a transport: one request, streamed, or a typed failure."""

    async def fetch(
        self,
        request: TransportRequest,
        *,
        on_headers: Callable[[ResponseRecord], None] | None = None,
        on_chunk: Callable[[bytes], None] | None = None,
        use_agent: bool = True,
    ) -> ResponseRecord: ...


def create_default_transport(settings: XhrSettings | None = None) -> Transport:
    """Factory for the default httpx-backed transport adapter."""
    from .transport import TransportAdapter

    return TransportAdapter(settings or load_settings())


__all__ = ["Transport", "create_default_transport"]
