# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Transport-level request/response data models."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from .headers import HeaderSet

Headers = dict[str, str]


@dataclass
class TransportRequest:
    """One request as handed to the transport adapter. ``url`` is resolved against ``origin``."""

    url: str
    method: str = "GET"
    headers: HeaderSet = field(default_factory=HeaderSet)
    body: bytes | bytearray | memoryview | str | None = None
    user: str | None = None
    password: str | None = None
    origin: str | None = None


@dataclass
class ResponseRecord:
    """
    Final (post-redirect) response of one send.

    ``declared_content_type`` carries the media type of local (data/file) responses,
    which expose no headers.
    """

    status_code: int
    status_text: str = ""
    headers: Headers = field(default_factory=dict)
    body: bytes = b""
    url: str = ""
    declared_content_type: str | None = None

    @property
    def content_type(self) -> str:
        if self.declared_content_type is not None:
            return self.declared_content_type
        return self.headers.get("content-type", "")

    def without_body(self) -> ResponseRecord:
        return replace(self, body=b"")


__all__ = ["Headers", "ResponseRecord", "TransportRequest"]
