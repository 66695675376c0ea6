# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""URL helpers for request resolution and redirect checks."""

from __future__ import annotations

from urllib.parse import SplitResult, urljoin, urlsplit

from ..errors import ParseError

DEFAULT_PORTS = {"http": 80, "https": 443}
SAFE_REDIRECT_SCHEMES = frozenset({"http", "https"})


def resolve_origin(origin: str | None) -> str | None:
    """Return the origin when it is an absolute URL, otherwise None."""
    if not origin:
        return None
    try:
        parts = urlsplit(str(origin).strip())
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None
    return parts.geturl()


def resolve_request_url(url: str, origin: str | None = None) -> SplitResult:
    """
    Resolve ``url`` against ``origin`` (when set) and return its parts.

    Raises ParseError for URLs that are not absolute after resolution.
    """
    raw = str(url or "").strip()
    try:
        resolved = urljoin(origin, raw) if origin else raw
        parts = urlsplit(resolved)
        # Accessing .port validates it.
        parts.port  # noqa: B018
    except ValueError as exc:
        raise ParseError(f"Invalid URL: {exc}") from exc
    if not parts.scheme:
        raise ParseError(f"Invalid URL: {raw}")
    if parts.scheme in DEFAULT_PORTS and not parts.hostname:
        raise ParseError(f"Invalid URL: {raw}")
    return parts


def host_header(parts: SplitResult) -> str:
    """Host header value; the port is only included when it is not the scheme's default."""
    host = parts.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    port = parts.port
    if port is not None and port != DEFAULT_PORTS.get(parts.scheme):
        host = f"{host}:{port}"
    return host


def resolve_redirect(location: str, current_url: str) -> SplitResult | None:
    """Resolve a Location header against the current URL; None when the target is not http(s)."""
    try:
        parts = urlsplit(urljoin(current_url, location.strip()))
        parts.port  # noqa: B018
    except ValueError:
        return None
    if parts.scheme not in SAFE_REDIRECT_SCHEMES or not parts.hostname:
        return None
    return parts


__all__ = [
    "DEFAULT_PORTS",
    "SAFE_REDIRECT_SCHEMES",
    "host_header",
    "resolve_origin",
    "resolve_redirect",
    "resolve_request_url",
]
