# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Header storage and normalization utilities.

HTTP header field names are case-insensitive (RFC 9110). Request headers keep the
caller's spelling for the wire but are looked up case-insensitively; response headers
are normalized to lowercase keys in server order.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from ..config import DEFAULT_USER_AGENT

# Not settable by callers. user-agent is banned by browsers but deliberately allowed here.
FORBIDDEN_REQUEST_HEADERS = frozenset(
    {
        "accept-charset",
        "accept-encoding",
        "access-control-request-headers",
        "access-control-request-method",
        "connection",
        "content-length",
        "content-transfer-encoding",
        "cookie",
        "cookie2",
        "date",
        "expect",
        "host",
        "keep-alive",
        "origin",
        "referer",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
        "via",
    }
)

FORBIDDEN_REQUEST_METHODS = frozenset({"TRACE", "TRACK", "CONNECT"})

COOKIE_RESPONSE_HEADERS = frozenset({"set-cookie", "set-cookie2"})


def is_allowed_header(name: str | None) -> bool:
    return bool(name) and str(name).lower() not in FORBIDDEN_REQUEST_HEADERS


def is_allowed_method(method: str | None) -> bool:
    return bool(method) and str(method).upper() not in FORBIDDEN_REQUEST_METHODS


class HeaderSet:
    """Case-insensitive request header mapping that remembers the caller's casing."""

    def __init__(self, initial: Mapping[str, str] | None = None):
        self._items: dict[str, tuple[str, str]] = {}
        for name, value in (initial or {}).items():
            self.set(name, value)

    @classmethod
    def defaults(cls, user_agent: str = DEFAULT_USER_AGENT) -> HeaderSet:
        return cls({"User-Agent": user_agent, "Accept": "*/*"})

    def set(self, name: str, value: Any) -> None:
        self._items[name.lower()] = (name, "" if value is None else str(value))

    def get(self, name: str, default: str | None = None) -> str | None:
        item = self._items.get(str(name).lower())
        return item[1] if item is not None else default

    def remove(self, name: str) -> None:
        self._items.pop(str(name).lower(), None)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._items.values())

    def items(self) -> list[tuple[str, str]]:
        return list(self._items.values())

    def copy(self) -> HeaderSet:
        clone = HeaderSet()
        clone._items = dict(self._items)
        return clone

    def to_dict(self) -> dict[str, str]:
        """Wire representation, caller casing preserved."""
        return dict(self._items.values())

    def __repr__(self) -> str:
        return f"HeaderSet({self.to_dict()!r})"


def normalize_headers(headers: Any) -> dict[str, str]:
    """
    Return a lowercase-keyed copy of a header container, keeping server order.

    Repeated fields (``httpx.Headers.multi_items()`` or an iterable of pairs) are
    joined with ", ".
    """
    if not headers:
        return {}
    multi_items = getattr(headers, "multi_items", None)
    if callable(multi_items):
        pairs = multi_items()
    elif isinstance(headers, Mapping):
        pairs = headers.items()
    else:
        pairs = headers

    out: dict[str, str] = {}
    for key, value in pairs:
        if key is None:
            continue
        name = str(key).strip().lower()
        if not name:
            continue
        text = "" if value is None else str(value)
        out[name] = f"{out[name]}, {text}" if name in out else text
    return out


def header_value(headers: Mapping[str, str] | None, name: str, default: str | None = None) -> str | None:
    """Return a header value using case-insensitive key matching."""
    if not headers or not name:
        return default
    lower = name.lower()
    if lower in headers:
        return headers[lower]
    for key, value in headers.items():
        if str(key).lower() == lower:
            return value
    return default


def format_response_headers(headers: Mapping[str, str] | None) -> str:
    """CRLF-joined ``name: value`` lines without cookie headers and without a trailing CRLF."""
    if not headers:
        return ""
    return "\r\n".join(f"{name}: {value}" for name, value in headers.items() if name.lower() not in COOKIE_RESPONSE_HEADERS)


__all__ = [
    "COOKIE_RESPONSE_HEADERS",
    "FORBIDDEN_REQUEST_HEADERS",
    "FORBIDDEN_REQUEST_METHODS",
    "HeaderSet",
    "format_response_headers",
    "header_value",
    "is_allowed_header",
    "is_allowed_method",
    "normalize_headers",
]
