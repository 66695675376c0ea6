# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""httpx-backed transport adapter: scheme dispatch and manual redirect following."""

from __future__ import annotations

import asyncio
import base64
import logging
from collections.abc import Callable
from pathlib import Path
from urllib.parse import SplitResult
from urllib.request import url2pathname

import httpx

from ..config import XhrSettings, load_settings
from ..errors import NetworkError, RedirectLimitError, SecurityError, to_xhr_error
from .data_uri import parse_data_uri
from .headers import HeaderSet, normalize_headers
from .models import ResponseRecord, TransportRequest
from .retry import open_with_reset_retry
from .tls import build_ssl_context
from .url import DEFAULT_PORTS, host_header, resolve_redirect, resolve_request_url

logger = logging.getLogger(__name__)

REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})
BODYLESS_METHODS = frozenset({"GET", "HEAD"})
DEFAULT_BODY_CONTENT_TYPE = "text/plain;charset=UTF-8"

OnHeaders = Callable[[ResponseRecord], None]
OnChunk = Callable[[bytes], None]


def _as_bytes(body: bytes | bytearray | memoryview | str | None) -> bytes | None:
    if body is None:
        return None
    if isinstance(body, str):
        return body.encode("utf-8")
    return bytes(body)


def prepare_request(request: TransportRequest, parts: SplitResult) -> tuple[HeaderSet, bytes | None]:
    """Compute the wire headers and body for the first hop of an http(s) request."""
    headers = request.headers.copy()
    headers.set("Host", host_header(parts))

    if request.user:
        credentials = f"{request.user}:{request.password or ''}".encode()
        headers.set("Authorization", "Basic " + base64.b64encode(credentials).decode("ascii"))

    body = _as_bytes(request.body)
    if request.method in BODYLESS_METHODS:
        body = None
    elif body:
        headers.set("Content-Length", str(len(body)))
        if "content-type" not in headers:
            headers.set("Content-Type", DEFAULT_BODY_CONTENT_TYPE)
    else:
        body = None
        if request.method == "POST":
            # Some servers reject a bodyless POST without an explicit length.
            headers.set("Content-Length", "0")
    return headers, body


class TransportAdapter:
    """
    Issues one XMLHttpRequest-style request end to end.

    http/https go through httpx with redirects followed here (so every hop can be
    checked), ``data:`` is decoded in-process and ``file:`` is read from disk.
    """

    def __init__(self, settings: XhrSettings | None = None):
        self.settings = settings or load_settings()

    async def fetch(
        self,
        request: TransportRequest,
        *,
        on_headers: OnHeaders | None = None,
        on_chunk: OnChunk | None = None,
        use_agent: bool = True,
    ) -> ResponseRecord:
        parts = resolve_request_url(request.url, request.origin)
        scheme = parts.scheme

        if scheme == "data":
            return self._fetch_data(parts.geturl())
        if scheme == "file":
            return await self._fetch_file(request, parts)
        if scheme not in DEFAULT_PORTS:
            raise NetworkError("Protocol not supported.")

        agent = self.settings.agent if use_agent else None
        if agent is not None:
            return await self._fetch_http(agent, request, parts, on_headers, on_chunk, pooled=True)
        async with self._build_client() as client:
            return await self._fetch_http(client, request, parts, on_headers, on_chunk, pooled=False)

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self.settings.transport,
            verify=build_ssl_context(self.settings),
            timeout=self.settings.timeout,
            follow_redirects=False,
        )

    def _fetch_data(self, url: str) -> ResponseRecord:
        payload = parse_data_uri(url)
        return ResponseRecord(
            status_code=200,
            body=payload.data,
            url=url,
            declared_content_type=payload.content_type,
        )

    async def _fetch_file(self, request: TransportRequest, parts: SplitResult) -> ResponseRecord:
        url = parts.geturl()
        if not self.settings.allow_file_system_resources:
            raise SecurityError(f"Not allowed to load local resource: {url}")
        if request.method != "GET":
            raise SecurityError("Only the GET method is supported for file URLs")

        path = Path(url2pathname(parts.path))
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise NetworkError(str(exc), status=exc.errno or -1) from exc
        return ResponseRecord(status_code=200, body=data, url=url, declared_content_type="")

    async def _fetch_http(
        self,
        client: httpx.AsyncClient,
        request: TransportRequest,
        parts: SplitResult,
        on_headers: OnHeaders | None,
        on_chunk: OnChunk | None,
        *,
        pooled: bool,
    ) -> ResponseRecord:
        headers, body = prepare_request(request, parts)
        method = request.method
        url = parts.geturl()
        redirect_count = 0

        while True:
            outgoing = client.build_request(method, url, headers=headers.to_dict(), content=body)
            response = await open_with_reset_retry(
                lambda: client.send(outgoing, stream=True, follow_redirects=False),
                pooled=pooled or redirect_count > 0,
            )
            try:
                if response.status_code in REDIRECT_STATUSES:
                    redirect_count += 1
                    if redirect_count > self.settings.max_redirects:
                        raise RedirectLimitError("Too many redirects")
                location = response.headers.get("location")
                if response.status_code in REDIRECT_STATUSES and location:
                    target = resolve_redirect(location, url)
                    if target is None:
                        raise SecurityError("Unsafe redirect")
                    if response.status_code == 303:
                        method = "GET"
                    if method in BODYLESS_METHODS:
                        body = None
                        headers.remove("Content-Length")
                        if "content-type" not in request.headers:
                            headers.remove("Content-Type")
                    headers.set("Host", host_header(target))
                    logger.debug("Redirect %d (%d): %s -> %s", redirect_count, response.status_code, url, target.geturl())
                    url = target.geturl()
                    continue

                record = ResponseRecord(
                    status_code=response.status_code,
                    status_text=response.reason_phrase,
                    headers=normalize_headers(response.headers),
                    url=url,
                )
                if on_headers is not None:
                    on_headers(record.without_body())

                content = bytearray()
                try:
                    async for chunk in response.aiter_bytes():
                        if not chunk:
                            continue
                        content.extend(chunk)
                        if on_chunk is not None:
                            on_chunk(chunk)
                except httpx.HTTPError as exc:
                    raise to_xhr_error(exc) from exc
                record.body = bytes(content)
                return record
            finally:
                await response.aclose()


__all__ = ["BODYLESS_METHODS", "DEFAULT_BODY_CONTENT_TYPE", "REDIRECT_STATUSES", "TransportAdapter", "prepare_request"]
