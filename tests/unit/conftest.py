# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

from collections.abc import Callable

import httpx
import pytest

from xmlhttprequest import XhrSettings, XMLHttpRequest


class MockServer:
    """Path-routed handler for httpx.MockTransport that records every request it sees."""

    def __init__(self):
        self.routes: dict[str, Callable[[httpx.Request], object]] = {}
        self.requests: list[httpx.Request] = []

    def route(self, path: str, handler: Callable[[httpx.Request], object]) -> None:
        self.routes[path] = handler

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        handler = self.routes.get(request.url.path)
        if handler is None:
            return httpx.Response(404, content=b"not found")
        return handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def server():
    return MockServer()


@pytest.fixture
def make_xhr(server):
    def factory(**overrides):
        overrides.setdefault("transport", server.transport)
        return XMLHttpRequest(XhrSettings(), **overrides)

    return factory
