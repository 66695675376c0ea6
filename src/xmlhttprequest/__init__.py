# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
xmlhttprequest package entrypoint.

A browser-style XMLHttpRequest for Python. The request object owns the
ready-state machine and event dispatch; HTTP(S) traffic goes through httpx,
``data:`` and ``file:`` URLs are served in-process, and synchronous requests
are bridged onto a worker thread.
"""

from .bridge import BlockingBridge
from .config import SyncPolicy, XhrSettings, load_settings
from .decoder import DecodedResponse, decode_response, parse_content_type
from .errors import (
    BridgeUnavailableError,
    NetworkError,
    ParseError,
    RedirectLimitError,
    SecurityError,
    StateError,
    SyncDisabledError,
    XhrError,
)
from .events import XhrEvent
from .http import HeaderSet, ResponseRecord, Transport, TransportAdapter, TransportRequest
from .log import setup_logging
from .state import ReadyState, RequestSettings
from .version import __version__
from .xhr import XMLHttpRequest

__all__ = [
    "BlockingBridge",
    "BridgeUnavailableError",
    "DecodedResponse",
    "HeaderSet",
    "NetworkError",
    "ParseError",
    "ReadyState",
    "RedirectLimitError",
    "RequestSettings",
    "ResponseRecord",
    "SecurityError",
    "StateError",
    "SyncDisabledError",
    "SyncPolicy",
    "Transport",
    "TransportAdapter",
    "TransportRequest",
    "XMLHttpRequest",
    "XhrError",
    "XhrEvent",
    "XhrSettings",
    "decode_response",
    "load_settings",
    "parse_content_type",
    "setup_logging",
    "__version__",
]
