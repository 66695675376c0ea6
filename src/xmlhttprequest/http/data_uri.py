# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Decoding of ``data:`` URLs (RFC 2397)."""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass
from urllib.parse import unquote, unquote_to_bytes

from ..errors import ParseError

DEFAULT_DATA_CHARSET = "utf-8"
DEFAULT_DATA_MIME = "text/plain"

_ASCII_WHITESPACE = re.compile(r"[\t\n\x0b\x0c\r ]+")


@dataclass(frozen=True)
class DataPayload:
    data: bytes
    mime_type: str = DEFAULT_DATA_MIME
    charset: str = DEFAULT_DATA_CHARSET

    @property
    def content_type(self) -> str:
        return f"{self.mime_type}; charset={self.charset}"


def _decode_base64(text: str) -> bytes:
    text = _ASCII_WHITESPACE.sub("", text)
    stripped = text.rstrip("=")
    padding = len(text) - len(stripped)
    if padding + len(stripped) % 4 > 4:
        raise ParseError("invalid padding")
    try:
        data = base64.b64decode(stripped + "=" * (-len(stripped) % 4), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ParseError("malformed base64 encoding") from exc
    if base64.b64encode(data).decode("ascii").rstrip("=") != stripped:
        raise ParseError("malformed base64 encoding")
    return data


def parse_data_uri(url: str) -> DataPayload:
    """
    Parse ``data:[<mime-type>][;charset=<name>][;base64],<payload>``.

    The first ``charset=`` parameter wins and ``base64`` may appear in any
    parameter after the MIME type.
    """
    raw = str(url or "")
    if raw[:5].lower() != "data:":
        raise ParseError("Invalid data URI")
    header, sep, payload = raw[5:].partition(",")
    if not sep:
        raise ParseError("Invalid data URI")

    segments = header.split(";")
    mime_type = segments[0].strip().lower() or DEFAULT_DATA_MIME
    is_base64 = False
    charset: str | None = None
    for segment in segments[1:]:
        token = segment.strip()
        if not is_base64 and token.lower() == "base64":
            is_base64 = True
        elif charset is None and token.lower().startswith("charset="):
            charset = token[len("charset=") :].lower()

    if is_base64:
        data = _decode_base64(unquote(payload))
    else:
        data = unquote_to_bytes(payload)
    return DataPayload(data=data, mime_type=mime_type, charset=charset or DEFAULT_DATA_CHARSET)


__all__ = ["DEFAULT_DATA_CHARSET", "DataPayload", "parse_data_uri"]
