# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Response body decoding.

Turns the raw body of a finished request into the representation selected by
``response_type``. Text decoding resolves the charset in this order: the
``override_mime_type`` charset, the charset of the response Content-Type, then
UTF-8.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .config import default_text_decoder, default_xml_parser
from .errors import ParseError

logger = logging.getLogger(__name__)

DEFAULT_CHARSET = "utf-8"
RESPONSE_TYPES = frozenset({"", "text", "json", "arraybuffer", "blob", "document"})

_TOKEN = r"[a-z0-9!#$%&'*+.^_`|~-]+"
_MIME_RE = re.compile(rf"({_TOKEN}/{_TOKEN})")
_CHARSET_RE = re.compile(r";\s*charset\s*=\s*\"?([a-z0-9_.:-]+)")


def parse_content_type(value: str | None) -> tuple[str, str]:
    """Return ``(mime_type, charset)``; missing parts default to ``""`` and utf-8."""
    lowered = str(value or "").lower()
    mime = _MIME_RE.search(lowered)
    if mime is None:
        return "", DEFAULT_CHARSET
    charset = _CHARSET_RE.search(lowered, mime.end())
    return mime.group(1), charset.group(1) if charset else DEFAULT_CHARSET


@dataclass
class DecodedResponse:
    response: Any
    response_text: str | None
    response_xml: Any


def decode_response(
    body: bytes,
    content_type: str,
    *,
    override_charset: str = "",
    response_type: str = "",
    text_decoder: Callable[[bytes, str], str] = default_text_decoder,
    xml_parser: Callable[[str | None], Any] = default_xml_parser,
) -> DecodedResponse:
    """
    Build ``response``/``response_text``/``response_xml`` for one body.

    A text decode failure falls back to lenient UTF-8 only when the caller
    overrode the charset; a server-declared charset the decoder rejects
    yields an empty string.
    """
    if response_type == "json":
        try:
            return DecodedResponse(json.loads(body.decode("utf-8")), None, None)
        except ValueError as exc:
            raise ParseError(f"Invalid JSON response: {exc}") from exc

    if response_type in ("arraybuffer", "blob"):
        return DecodedResponse(bytes(body), None, None)

    charset = override_charset or parse_content_type(content_type)[1]
    try:
        text = text_decoder(body, charset)
    except Exception:  # noqa: BLE001
        if override_charset:
            text = body.decode("utf-8", errors="replace")
        else:
            logger.debug("Could not decode response body as %s", charset)
            text = ""

    try:
        document = xml_parser(text)
    except Exception:  # noqa: BLE001
        document = None

    if response_type == "document":
        return DecodedResponse(document, None, document)
    return DecodedResponse(text, text, document)


__all__ = ["DEFAULT_CHARSET", "RESPONSE_TYPES", "DecodedResponse", "decode_response", "parse_content_type"]
