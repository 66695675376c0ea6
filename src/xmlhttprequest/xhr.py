# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
XMLHttpRequest controller.

Owns the public surface and the ready-state machine of one request object and
drives the transport adapter, the response decoder and, for synchronous
requests, the blocking bridge.

Asynchronous requests run as an asyncio task on the caller's event loop;
events that accompany the DONE state are delivered with ``loop.call_soon`` so
the caller's own code finishes before any terminal callback runs.
"""

from __future__ import annotations

import asyncio
import logging
import warnings
from dataclasses import replace
from functools import partial
from typing import Any

from .bridge import BlockingBridge
from .config import SyncPolicy, XhrSettings, load_settings
from .decoder import RESPONSE_TYPES, decode_response, parse_content_type
from .errors import ParseError, SecurityError, StateError, SyncDisabledError, XhrError, to_xhr_error
from .events import DIRECT_HANDLER_ATTRIBUTES, Listener, ListenerRegistry, XhrEvent
from .http.client import Transport, create_default_transport
from .http.headers import HeaderSet, format_response_headers, header_value, is_allowed_header, is_allowed_method
from .http.models import ResponseRecord, TransportRequest
from .http.url import resolve_origin
from .state import ReadyState, RequestSettings

logger = logging.getLogger(__name__)

SYNC_DEPRECATION_MESSAGE = (
    "[Deprecation] Synchronous XMLHttpRequest is deprecated because of its detrimental effects to the "
    "end user's experience. For more information, see https://xhr.spec.whatwg.org/#sync-flag"
)


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class XMLHttpRequest:
    """
    Browser-style XMLHttpRequest on top of httpx.

    Settings are copied at construction; keyword overrides are applied to that
    copy, e.g. ``XMLHttpRequest(max_redirects=0, sync_policy="disabled")``.
    """

    UNSENT = ReadyState.UNSENT
    OPENED = ReadyState.OPENED
    HEADERS_RECEIVED = ReadyState.HEADERS_RECEIVED
    LOADING = ReadyState.LOADING
    DONE = ReadyState.DONE

    def __init__(self, settings: XhrSettings | None = None, *, adapter: Transport | None = None, **overrides: Any):
        self._settings = replace(settings if settings is not None else load_settings(), **overrides)
        self._transport = adapter or create_default_transport(self._settings)
        self._bridge = BlockingBridge()
        self._listeners = ListenerRegistry()
        self._headers = HeaderSet.defaults(self._settings.user_agent)

        self._request: RequestSettings | None = None
        self._response: ResponseRecord | None = None
        self._task: asyncio.Task | None = None
        self._generation = 0

        self._ready_state = ReadyState.UNSENT
        self._send_flag = False
        self._error_flag = False
        self._aborted_flag = False
        self._override_charset = ""
        self._sync_warning_issued = False

        self._response_type = ""
        self._response_value: Any = b""
        self._response_text: str | None = ""
        self._response_xml: Any = ""
        self._response_url = ""
        self._status: int | None = None
        self._status_text: str | None = None

        self.onreadystatechange: Listener | None = None
        self.onloadstart: Listener | None = None
        self.onload: Listener | None = None
        self.onerror: Listener | None = None
        self.onabort: Listener | None = None
        self.onloadend: Listener | None = None

    # -- readable state -------------------------------------------------

    @property
    def settings(self) -> XhrSettings:
        return self._settings

    @property
    def ready_state(self) -> ReadyState:
        return self._ready_state

    @property
    def response(self) -> Any:
        return self._response_value

    @property
    def response_text(self) -> str | None:
        return self._response_text

    @property
    def response_xml(self) -> Any:
        return self._response_xml

    @property
    def response_url(self) -> str:
        return self._response_url

    @property
    def status(self) -> int | None:
        return self._status

    @property
    def status_text(self) -> str | None:
        return self._status_text

    @property
    def response_type(self) -> str:
        return self._response_type

    @response_type.setter
    def response_type(self, value: str) -> None:
        if value not in RESPONSE_TYPES:
            logger.warning("Ignoring unsupported response_type %r", value)
            return
        if self._ready_state in (ReadyState.LOADING, ReadyState.DONE):
            raise StateError("response_type cannot be changed when the state is LOADING or DONE")
        self._response_type = value

    # -- request setup --------------------------------------------------

    def open(
        self,
        method: str,
        url: str,
        is_async: bool = True,
        user: str | None = None,
        password: str | None = None,
    ) -> None:
        """Initialize a request; any request in flight is aborted first."""
        self._abort()
        self._error_flag = False
        self._aborted_flag = False

        if not is_allowed_method(method):
            raise SecurityError("Request method not allowed")

        self._request = RequestSettings(
            method=str(method).upper(),
            url=str(url),
            is_async=is_async if isinstance(is_async, bool) else True,
            user=user or None,
            password=password or None,
            origin=resolve_origin(self._settings.origin),
        )
        self._override_charset = ""

        if not self._request.is_async and self._settings.sync_policy is SyncPolicy.WARN and not self._sync_warning_issued:
            self._sync_warning_issued = True
            logger.warning(SYNC_DEPRECATION_MESSAGE)

        self._set_state(ReadyState.OPENED)

    def set_request_header(self, name: str, value: Any) -> bool:
        """Set a request header; returns False (and logs) for forbidden names."""
        if self._ready_state != ReadyState.OPENED:
            raise StateError("set_request_header can only be called when state is OPENED")
        if self._send_flag:
            raise StateError("send flag is set")
        if not self._settings.disable_header_check and not is_allowed_header(name):
            logger.warning('Refused to set unsafe header "%s"', name)
            return False
        self._headers.set(name, value)
        return True

    def get_request_header(self, name: str) -> str:
        """Deprecated: non-standard accessor for a request header."""
        warnings.warn(
            "get_request_header() is deprecated and will be removed in a future release.",
            DeprecationWarning,
            stacklevel=2,
        )
        if not isinstance(name, str):
            return ""
        return self._headers.get(name) or ""

    def override_mime_type(self, mime_type: str) -> None:
        """Decode the response text with the charset of ``mime_type`` instead of the server's."""
        if self._ready_state in (ReadyState.LOADING, ReadyState.DONE):
            raise StateError("MIME type cannot be overridden when the state is LOADING or DONE")
        self._override_charset = parse_content_type(str(mime_type))[1]

    # -- response headers -----------------------------------------------

    def get_response_header(self, name: str) -> str | None:
        if (
            isinstance(name, str)
            and self._ready_state > ReadyState.OPENED
            and not self._error_flag
            and self._response is not None
        ):
            return header_value(self._response.headers, name)
        return None

    def get_all_response_headers(self) -> str:
        if self._ready_state < ReadyState.HEADERS_RECEIVED or self._error_flag or self._response is None:
            return ""
        return format_response_headers(self._response.headers)

    # -- send / abort ---------------------------------------------------

    def send(self, body: bytes | bytearray | memoryview | str | None = None) -> asyncio.Future | None:
        """
        Send the request.

        Asynchronous requests must be sent from a running event loop and return the
        scheduled task (awaiting it is optional). Synchronous requests block until
        DONE and raise the transport error, if any.
        """
        if self._ready_state != ReadyState.OPENED or self._request is None:
            raise StateError("connection must be opened before send() is called")
        if self._send_flag:
            raise StateError("send has already been called")

        request = self._request
        if not request.is_async and self._settings.sync_policy is SyncPolicy.DISABLED:
            raise SyncDisabledError("Synchronous requests are disabled for this instance.")

        transport_request = TransportRequest(
            url=request.url,
            method=request.method,
            headers=self._headers.copy(),
            body=body,
            user=request.user,
            password=request.password,
            origin=request.origin,
        )
        self._error_flag = False
        self._response = None

        if request.is_async:
            return self._send_async(transport_request)
        self._send_sync(transport_request)
        return None

    def _send_async(self, request: TransportRequest) -> asyncio.Future:
        loop = _running_loop()
        if loop is None:
            raise StateError("asynchronous send() requires a running event loop; open with is_async=False instead")

        self._send_flag = True
        self._generation += 1
        generation = self._generation

        # Fired here for historical reasons.
        self.dispatch_event("readystatechange")
        if generation != self._generation:
            # A handler aborted or reopened the request.
            finished = loop.create_future()
            finished.set_result(None)
            return finished

        self._task = loop.create_task(self._perform(generation, request))
        self.dispatch_event("loadstart")
        return self._task

    def _send_sync(self, request: TransportRequest) -> None:
        self._send_flag = True
        self._generation += 1
        try:
            record = self._bridge.run(lambda: self._transport.fetch(request, use_agent=False))
        except XhrError as exc:
            self._handle_error(exc)
            return
        self._complete(record)

    async def _perform(self, generation: int, request: TransportRequest) -> None:
        try:
            record = await self._transport.fetch(
                request,
                on_headers=partial(self._on_headers, generation),
                on_chunk=partial(self._on_chunk, generation),
            )
        except asyncio.CancelledError:
            if generation != self._generation:
                return
            raise
        except Exception as exc:  # noqa: BLE001
            if generation == self._generation:
                self._handle_error(to_xhr_error(exc))
            return

        if generation == self._generation and self._send_flag:
            self._complete(record)

    def _on_headers(self, generation: int, record: ResponseRecord) -> None:
        if generation != self._generation or not self._send_flag:
            return
        self._response = record
        self._status = record.status_code
        self._status_text = record.status_text
        self._set_state(ReadyState.HEADERS_RECEIVED)

    def _on_chunk(self, generation: int, _chunk: bytes) -> None:
        if generation == self._generation and self._send_flag:
            self._set_state(ReadyState.LOADING)

    def _complete(self, record: ResponseRecord) -> None:
        # Cleared before any callback runs so handlers can immediately reuse the object.
        self._send_flag = False
        self._task = None
        try:
            decoded = decode_response(
                record.body,
                record.content_type,
                override_charset=self._override_charset,
                response_type=self._response_type,
                text_decoder=self._settings.text_decoder,
                xml_parser=self._settings.xml_parser,
            )
        except ParseError as exc:
            self._handle_error(exc)
            return

        self._response = record
        self._status = record.status_code
        self._status_text = record.status_text
        self._response_url = record.url
        self._response_value = decoded.response
        self._response_text = decoded.response_text
        self._response_xml = decoded.response_xml
        self._set_state(ReadyState.DONE)

    def _handle_error(self, error: XhrError) -> None:
        logger.debug("Request failed: %s: %s", type(error).__name__, error)
        self._send_flag = False
        self._task = None
        self._response = None
        self._status = error.status
        self._status_text = error.message or str(error)
        self._response_text = ""
        self._response_xml = ""
        self._response_url = ""
        self._response_value = b""
        self._error_flag = True
        self._set_state(ReadyState.DONE)
        if self._request is not None and not self._request.is_async:
            raise error

    def abort(self) -> None:
        """Cancel the request in flight (if any) and reset to UNSENT."""
        self._abort()

    def _abort(self) -> None:
        task, self._task = self._task, None
        self._generation += 1
        if task is not None and not task.done():
            task.cancel()

        self._headers = HeaderSet.defaults(self._settings.user_agent)
        self._response = None
        self._response_text = ""
        self._response_xml = ""
        self._response_value = b""

        self._error_flag = True
        self._aborted_flag = True
        state = self._ready_state
        if state != ReadyState.UNSENT and (state != ReadyState.OPENED or self._send_flag) and state != ReadyState.DONE:
            self._send_flag = False
            self._set_state(ReadyState.DONE)
        self._ready_state = ReadyState.UNSENT

    # -- events ---------------------------------------------------------

    def add_event_listener(self, event: str, callback: Listener) -> None:
        self._listeners.add(event, callback)

    def remove_event_listener(self, event: str, callback: Listener) -> None:
        self._listeners.remove(event, callback)

    def dispatch_event(self, event_name: str) -> None:
        """Deliver ``event_name`` to the direct handler, then to listeners in registration order."""
        event = XhrEvent(type=event_name, target=self)
        recipients: list[Listener] = []
        attribute = DIRECT_HANDLER_ATTRIBUTES.get(event_name)
        handler = getattr(self, attribute, None) if attribute else None
        if callable(handler):
            recipients.append(handler)
        recipients.extend(self._listeners.listeners(event_name))

        loop = _running_loop() if self._ready_state == ReadyState.DONE and self._is_async() else None
        for callback in recipients:
            if loop is not None:
                loop.call_soon(self._invoke, callback, event)
            else:
                self._invoke(callback, event)

    def _invoke(self, callback: Listener, event: XhrEvent) -> None:
        try:
            callback(event)
        except Exception:  # noqa: BLE001
            logger.exception("Error in %s event handler", event.type)

    def _is_async(self) -> bool:
        return self._request.is_async if self._request is not None else True

    def _set_state(self, state: ReadyState) -> None:
        if self._ready_state == state or (self._ready_state == ReadyState.UNSENT and self._aborted_flag):
            return
        self._ready_state = state

        if self._is_async() or state < ReadyState.OPENED or state == ReadyState.DONE:
            self.dispatch_event("readystatechange")

        if state == ReadyState.DONE:
            if self._aborted_flag:
                outcome = "abort"
            elif self._error_flag:
                outcome = "error"
            else:
                outcome = "load"
            self.dispatch_event(outcome)
            self.dispatch_event("loadend")

    def __repr__(self) -> str:
        target = f" {self._request.method} {self._request.url}" if self._request else ""
        return f"<XMLHttpRequest {self._ready_state.name}{target}>"


__all__ = ["SYNC_DEPRECATION_MESSAGE", "XMLHttpRequest"]
