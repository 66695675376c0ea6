# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import asyncio
import errno

import httpx
import pytest

from xmlhttprequest import (
    NetworkError,
    RedirectLimitError,
    SecurityError,
    StateError,
    SyncDisabledError,
    XhrSettings,
    XMLHttpRequest,
)


def _headers_response(request):
    return httpx.Response(
        200,
        headers=[
            ("Content-Type", "text/plain; charset=utf-8"),
            ("X-Foo", "bar"),
            ("Set-Cookie", "session=1"),
            ("Content-Length", "5"),
        ],
        content=b"hello",
    )


def _deprecation_records(caplog):
    return [record for record in caplog.records if "Synchronous XMLHttpRequest is deprecated" in record.getMessage()]


def test_sync_open_logs_deprecation_once_per_instance(make_xhr, caplog):
    xhr = make_xhr()
    xhr.open("GET", "http://example.test/", False)
    xhr.open("GET", "http://example.test/", False)

    records = _deprecation_records(caplog)
    assert len(records) == 1
    assert records[0].levelname == "WARNING"


def test_sync_enabled_policy_is_silent(make_xhr, caplog):
    xhr = make_xhr(sync_policy="enabled")
    xhr.open("GET", "http://example.test/", False)
    assert _deprecation_records(caplog) == []


def test_sync_disabled_policy_refuses_send(server, make_xhr):
    xhr = make_xhr(sync_policy="disabled")
    xhr.open("GET", "http://example.test/", False)
    with pytest.raises(SyncDisabledError, match="Synchronous requests are disabled for this instance."):
        xhr.send()
    assert server.requests == []


def test_sync_send_completes_before_returning(server, make_xhr):
    server.route("/hello", lambda request: httpx.Response(200, content=b"hello"))
    log = []
    xhr = make_xhr(sync_policy="enabled")
    xhr.onreadystatechange = lambda event: log.append(int(xhr.ready_state))
    xhr.onload = lambda event: log.append("load")
    xhr.onloadend = lambda event: log.append("loadend")

    xhr.open("GET", "http://example.test/hello", False)
    result = xhr.send()

    assert result is None
    assert log == [4, "load", "loadend"]
    assert xhr.status == 200
    assert xhr.response_text == "hello"


def test_sync_send_inside_running_loop(server, make_xhr):
    server.route("/hello", lambda request: httpx.Response(200, content=b"hello"))

    async def scenario():
        xhr = make_xhr(sync_policy="enabled")
        xhr.open("GET", "http://example.test/hello", False)
        xhr.send()
        return xhr.response_text

    assert asyncio.run(scenario()) == "hello"


def test_sync_redirect_limit_raises_after_error_event(server, make_xhr):
    server.route("/r", lambda request: httpx.Response(302, headers={"Location": "/final"}))
    log = []
    xhr = make_xhr(sync_policy="enabled", max_redirects=0)
    xhr.onerror = lambda event: log.append("error")

    xhr.open("GET", "http://example.test/r", False)
    with pytest.raises(RedirectLimitError):
        xhr.send()

    assert log == ["error"]
    assert xhr.ready_state == xhr.DONE
    assert xhr.status == 0
    assert xhr.status_text == "Too many redirects"


def test_sync_unsafe_redirect_raises(server, make_xhr):
    server.route("/r", lambda request: httpx.Response(302, headers={"Location": "ftp://example.test/x"}))
    xhr = make_xhr(sync_policy="enabled")
    xhr.open("GET", "http://example.test/r", False)
    with pytest.raises(SecurityError, match="Unsafe redirect"):
        xhr.send()


def test_sync_missing_file_sets_errno_status(tmp_path, make_xhr):
    xhr = make_xhr(sync_policy="enabled")
    xhr.open("GET", (tmp_path / "missing.txt").as_uri(), False)
    with pytest.raises(NetworkError):
        xhr.send()
    assert xhr.status == errno.ENOENT


def test_sync_file_read(tmp_path, make_xhr):
    target = tmp_path / "page.txt"
    target.write_text("local text", encoding="utf-8")
    xhr = make_xhr(sync_policy="enabled")
    xhr.open("GET", target.as_uri(), False)
    xhr.send()
    assert xhr.status == 200
    assert xhr.response_text == "local text"
    assert xhr.get_all_response_headers() == ""


def test_forbidden_header_refused_and_logged(server, make_xhr, caplog):
    server.route("/h", lambda request: httpx.Response(200))
    xhr = make_xhr(sync_policy="enabled")
    xhr.open("POST", "http://example.test/h", False)

    assert xhr.set_request_header("Content-Length", "999") is False
    assert xhr.set_request_header("User-Agent", "custom/2.0") is True
    assert xhr.set_request_header("X-Custom", "yes") is True
    assert 'Refused to set unsafe header "Content-Length"' in caplog.text

    xhr.send("body")
    sent = server.requests[0]
    assert sent.headers["content-length"] == "4"
    assert sent.headers["user-agent"] == "custom/2.0"
    assert sent.headers["x-custom"] == "yes"


def test_disable_header_check_allows_forbidden_names(server, make_xhr):
    server.route("/h", lambda request: httpx.Response(200))
    xhr = make_xhr(sync_policy="enabled", disable_header_check=True)
    xhr.open("GET", "http://example.test/h", False)
    assert xhr.set_request_header("Referer", "http://ref.test/") is True
    xhr.send()
    assert server.requests[0].headers["referer"] == "http://ref.test/"


def test_response_headers_access(server, make_xhr):
    server.route("/h", _headers_response)
    xhr = make_xhr(sync_policy="enabled")
    xhr.open("GET", "http://example.test/h", False)
    assert xhr.get_response_header("Content-Type") is None

    xhr.send()

    assert xhr.get_response_header("CONTENT-TYPE") == "text/plain; charset=utf-8"
    assert xhr.get_response_header("set-cookie") == "session=1"
    assert xhr.get_response_header("missing") is None
    assert xhr.get_all_response_headers() == (
        "content-type: text/plain; charset=utf-8\r\nx-foo: bar\r\ncontent-length: 5"
    )

    xhr.abort()
    assert xhr.get_all_response_headers() == ""
    assert xhr.get_response_header("x-foo") is None


def test_request_state_errors(server, make_xhr):
    server.route("/h", lambda request: httpx.Response(200))
    xhr = make_xhr(sync_policy="enabled")

    with pytest.raises(StateError):
        xhr.send()
    with pytest.raises(StateError):
        xhr.set_request_header("X-Early", "1")
    with pytest.raises(SecurityError, match="Request method not allowed"):
        xhr.open("TRACE", "http://example.test/h")

    xhr.open("get", "http://example.test/h", False)
    xhr.send()
    assert server.requests[0].method == "GET"
    with pytest.raises(StateError):
        xhr.send()
    with pytest.raises(StateError):
        xhr.override_mime_type("text/plain")
    with pytest.raises(StateError):
        xhr.response_type = "json"


def test_invalid_response_type_is_ignored(make_xhr, caplog):
    xhr = make_xhr()
    xhr.response_type = "text"
    xhr.response_type = "stream"
    assert xhr.response_type == "text"
    assert "Ignoring unsupported response_type" in caplog.text


def test_get_request_header_is_deprecated(make_xhr):
    xhr = make_xhr()
    xhr.open("GET", "http://example.test/")
    xhr.set_request_header("X-Trace", "abc")
    with pytest.warns(DeprecationWarning, match="get_request_header"):
        assert xhr.get_request_header("x-trace") == "abc"


def test_state_constants_and_initial_values(make_xhr):
    xhr = make_xhr()
    assert (XMLHttpRequest.UNSENT, XMLHttpRequest.OPENED, XMLHttpRequest.HEADERS_RECEIVED) == (0, 1, 2)
    assert (xhr.LOADING, xhr.DONE) == (3, 4)
    assert xhr.ready_state == xhr.UNSENT
    assert xhr.status is None
    assert xhr.response_text == ""


def test_settings_are_copied_per_instance(server):
    settings = XhrSettings(transport=server.transport)
    first = XMLHttpRequest(settings)
    second = XMLHttpRequest(settings, max_redirects=2)
    settings.max_redirects = 1

    assert first.settings.max_redirects == 20
    assert second.settings.max_redirects == 2
    assert first.settings is not second.settings
