# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy and exception helpers."""

from __future__ import annotations

import socket
import ssl
from enum import Enum

import httpx


class ErrorCategory(str, Enum):
    TIMEOUT = "TIMEOUT"
    SSL_ERROR = "SSL_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    CONNECTION_RESET = "CONNECTION_RESET"
    DNS_ERROR = "DNS_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class XhrError(Exception):
    """Base class for every error raised by xmlhttprequest."""

    def __init__(self, message: str = "", *, status: int = 0):
        super().__init__(message)
        self.message = message
        self.status = status


class StateError(XhrError):
    """Operation is not valid in the current ready state."""


class SecurityError(XhrError):
    """Disallowed method, unsafe redirect or forbidden local resource."""


class NetworkError(XhrError):
    """Connection, DNS or transport failure."""

    def __init__(self, message: str = "", *, status: int = 0, category: ErrorCategory = ErrorCategory.UNKNOWN_ERROR):
        super().__init__(message, status=status)
        self.category = category


class ParseError(XhrError):
    """Malformed URL, data URI or JSON body."""


class RedirectLimitError(XhrError):
    """More redirects than ``max_redirects`` for a single send."""


class SyncDisabledError(XhrError):
    """Synchronous send on an instance whose sync policy is ``disabled``."""


class BridgeUnavailableError(XhrError):
    """The blocking bridge could not start its worker."""


def _exception_chain(exc: BaseException):
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def is_connection_reset(exc: BaseException) -> bool:
    """
    Return True for reset-by-peer failures.

    httpx reports a keep-alive connection closed by the server as a
    RemoteProtocolError without a ConnectionResetError in the chain.
    """
    for item in _exception_chain(exc):
        if isinstance(item, ConnectionResetError):
            return True
        if isinstance(item, httpx.RemoteProtocolError) and "without sending a response" in str(item):
            return True
        if "connection reset" in str(item).lower():
            return True
    return False


def categorize_exception(exc: BaseException) -> ErrorCategory:
    """
    Map Python/httpx exceptions to ErrorCategory.
    """
    if isinstance(exc, httpx.TimeoutException):
        return ErrorCategory.TIMEOUT

    if is_connection_reset(exc):
        return ErrorCategory.CONNECTION_RESET

    for item in _exception_chain(exc):
        if isinstance(item, (ssl.SSLError, ssl.CertificateError)):
            return ErrorCategory.SSL_ERROR
        if isinstance(item, (socket.gaierror, socket.herror)):
            return ErrorCategory.DNS_ERROR

    if isinstance(exc, (httpx.ConnectError, httpx.RemoteProtocolError, httpx.NetworkError, httpx.ProxyError)):
        return ErrorCategory.CONNECTION_ERROR

    if isinstance(exc, ConnectionError):
        return ErrorCategory.CONNECTION_ERROR

    return ErrorCategory.UNKNOWN_ERROR


def to_xhr_error(exc: BaseException) -> XhrError:
    """Wrap a transport exception into the taxonomy; XhrError instances pass through."""
    if isinstance(exc, XhrError):
        return exc
    if isinstance(exc, httpx.InvalidURL):
        return ParseError(str(exc))
    message = str(exc) or type(exc).__name__
    return NetworkError(message, category=categorize_exception(exc))


__all__ = [
    "BridgeUnavailableError",
    "ErrorCategory",
    "NetworkError",
    "ParseError",
    "RedirectLimitError",
    "SecurityError",
    "StateError",
    "SyncDisabledError",
    "XhrError",
    "categorize_exception",
    "is_connection_reset",
    "to_xhr_error",
]
