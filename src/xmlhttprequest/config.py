# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Per-instance configuration for XMLHttpRequest objects."""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

from .version import __version__

DEFAULT_USER_AGENT = f"python-xmlhttprequest/{__version__}"
DEFAULT_MAX_REDIRECTS = 20


class SyncPolicy(str, Enum):
    """What to do when a caller asks for a synchronous request."""

    WARN = "warn"
    ENABLED = "enabled"
    DISABLED = "disabled"

    @classmethod
    def coerce(cls, value: object) -> SyncPolicy:
        """Return the matching policy, falling back to WARN for unknown values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.WARN


def default_text_decoder(body: bytes, encoding: str) -> str:
    """Invalid bytes become U+FFFD; only an unknown encoding raises (LookupError)."""
    return body.decode(encoding, errors="replace")


def default_xml_parser(text: str | None) -> Any:
    return None


def _float_env(name: str, default: float | None) -> float | None:
    try:
        value = os.getenv(name)
        return float(value) if value is not None else default
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        value = os.getenv(name)
        return int(value) if value is not None else default
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class XhrSettings:
    """
    Constructor-time options of one XMLHttpRequest.

    Each XMLHttpRequest keeps its own copy; mutating a settings object after it
    was handed to an instance has no effect on that instance.
    """

    pfx: str | None = None
    key: str | None = None
    passphrase: str | None = None
    cert: str | None = None
    ca: str | None = None
    ciphers: str | None = None
    reject_unauthorized: bool = True
    agent: httpx.AsyncClient | None = None
    transport: httpx.AsyncBaseTransport | None = None
    allow_file_system_resources: bool = True
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    sync_policy: SyncPolicy = SyncPolicy.WARN
    disable_header_check: bool = False
    xml_parser: Callable[[str | None], Any] = default_xml_parser
    text_decoder: Callable[[bytes, str], str] = default_text_decoder
    origin: str | None = None
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float | None = 30.0

    def __post_init__(self) -> None:
        self.sync_policy = SyncPolicy.coerce(self.sync_policy)
        if isinstance(self.max_redirects, bool) or not isinstance(self.max_redirects, int):
            self.max_redirects = DEFAULT_MAX_REDIRECTS
        else:
            self.max_redirects = max(self.max_redirects, 0)
        if not callable(self.xml_parser):
            self.xml_parser = default_xml_parser
        if not callable(self.text_decoder):
            self.text_decoder = default_text_decoder
        self.reject_unauthorized = self.reject_unauthorized is not False
        if self.pfx is not None:
            raise ValueError("PKCS#12 (pfx) bundles are not supported; pass cert and key files instead")

    @classmethod
    def from_env(cls) -> XhrSettings:
        """Create settings from environment variables (evaluated at call time)."""
        return cls(
            max_redirects=_int_env("XHR_MAX_REDIRECTS", DEFAULT_MAX_REDIRECTS),
            sync_policy=SyncPolicy.coerce(os.getenv("XHR_SYNC_POLICY", SyncPolicy.WARN.value)),
            allow_file_system_resources=_bool_env("XHR_ALLOW_FILE_SYSTEM_RESOURCES", True),
            disable_header_check=_bool_env("XHR_DISABLE_HEADER_CHECK", False),
            reject_unauthorized=_bool_env("XHR_REJECT_UNAUTHORIZED", True),
            timeout=_float_env("XHR_TIMEOUT", cls.timeout),
            user_agent=os.getenv("XHR_USER_AGENT", cls.user_agent),
            origin=os.getenv("XHR_ORIGIN") or None,
        )


def load_settings() -> XhrSettings:
    """Load XMLHttpRequest settings from environment with sensible defaults."""
    return XhrSettings.from_env()


__all__ = [
    "DEFAULT_MAX_REDIRECTS",
    "DEFAULT_USER_AGENT",
    "SyncPolicy",
    "XhrSettings",
    "default_text_decoder",
    "default_xml_parser",
    "load_settings",
]
