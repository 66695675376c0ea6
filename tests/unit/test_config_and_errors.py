# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import logging

import httpx
import pytest

from xmlhttprequest import config
from xmlhttprequest.config import DEFAULT_USER_AGENT, SyncPolicy, XhrSettings
from xmlhttprequest.errors import (
    ErrorCategory,
    NetworkError,
    ParseError,
    StateError,
    categorize_exception,
    is_connection_reset,
    to_xhr_error,
)
from xmlhttprequest.log import setup_logging


def test_settings_env_overrides(monkeypatch):
    monkeypatch.setenv("XHR_MAX_REDIRECTS", "5")
    monkeypatch.setenv("XHR_SYNC_POLICY", "Disabled")
    monkeypatch.setenv("XHR_ALLOW_FILE_SYSTEM_RESOURCES", "0")
    monkeypatch.setenv("XHR_DISABLE_HEADER_CHECK", "yes")
    monkeypatch.setenv("XHR_REJECT_UNAUTHORIZED", "false")
    monkeypatch.setenv("XHR_TIMEOUT", "2.5")
    monkeypatch.setenv("XHR_USER_AGENT", "CustomAgent/1.0")
    monkeypatch.setenv("XHR_ORIGIN", "http://example.test/")

    settings = config.load_settings()

    assert settings.max_redirects == 5
    assert settings.sync_policy is SyncPolicy.DISABLED
    assert settings.allow_file_system_resources is False
    assert settings.disable_header_check is True
    assert settings.reject_unauthorized is False
    assert settings.timeout == 2.5
    assert settings.user_agent == "CustomAgent/1.0"
    assert settings.origin == "http://example.test/"


def test_settings_invalid_env_fall_back(monkeypatch):
    monkeypatch.setenv("XHR_MAX_REDIRECTS", "many")
    monkeypatch.setenv("XHR_SYNC_POLICY", "sometimes")
    monkeypatch.setenv("XHR_TIMEOUT", "soon")

    settings = config.load_settings()

    assert settings.max_redirects == config.DEFAULT_MAX_REDIRECTS
    assert settings.sync_policy is SyncPolicy.WARN
    assert settings.timeout == XhrSettings.timeout
    assert DEFAULT_USER_AGENT in settings.user_agent


def test_load_settings_reads_env_at_call_time(monkeypatch):
    monkeypatch.setenv("XHR_MAX_REDIRECTS", "3")
    assert config.load_settings().max_redirects == 3
    monkeypatch.setenv("XHR_MAX_REDIRECTS", "4")
    assert config.load_settings().max_redirects == 4


def test_settings_normalize_constructor_values():
    settings = XhrSettings(
        max_redirects=-3,
        sync_policy="bogus",
        text_decoder="not callable",
        xml_parser=None,
        reject_unauthorized=0,
    )
    assert settings.max_redirects == 0
    assert settings.sync_policy is SyncPolicy.WARN
    assert settings.text_decoder is config.default_text_decoder
    assert settings.xml_parser is config.default_xml_parser
    # Only an explicit False disables verification.
    assert settings.reject_unauthorized is True

    assert XhrSettings(max_redirects="7").max_redirects == config.DEFAULT_MAX_REDIRECTS
    assert XhrSettings(sync_policy="ENABLED").sync_policy is SyncPolicy.ENABLED


def test_settings_reject_pfx_bundles():
    with pytest.raises(ValueError, match="pfx"):
        XhrSettings(pfx="bundle.p12")


def test_categorize_exception_maps_httpx_errors():
    request = httpx.Request("GET", "http://example.test/")
    assert categorize_exception(httpx.ConnectTimeout("slow", request=request)) is ErrorCategory.TIMEOUT
    assert categorize_exception(httpx.ConnectError("refused", request=request)) is ErrorCategory.CONNECTION_ERROR
    reset = httpx.RemoteProtocolError("Server disconnected without sending a response.", request=request)
    assert categorize_exception(reset) is ErrorCategory.CONNECTION_RESET
    assert categorize_exception(ValueError("odd")) is ErrorCategory.UNKNOWN_ERROR


def test_is_connection_reset_follows_exception_chain():
    try:
        try:
            raise ConnectionResetError(104, "Connection reset by peer")
        except ConnectionResetError as inner:
            raise httpx.ReadError("read failed") from inner
    except httpx.ReadError as exc:
        assert is_connection_reset(exc) is True

    assert is_connection_reset(httpx.ReadError("eof")) is False


def test_to_xhr_error_wraps_and_passes_through():
    error = StateError("bad state")
    assert to_xhr_error(error) is error

    wrapped = to_xhr_error(httpx.ConnectError("refused"))
    assert isinstance(wrapped, NetworkError)
    assert wrapped.status == 0
    assert wrapped.message == "refused"
    assert wrapped.category is ErrorCategory.CONNECTION_ERROR

    assert isinstance(to_xhr_error(httpx.InvalidURL("bad url")), ParseError)


def test_setup_logging_honours_env_and_quiets_transport(monkeypatch):
    monkeypatch.setenv("XHR_LOG_LEVEL", "debug")
    setup_logging()
    assert logging.getLogger("xmlhttprequest").level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING

    setup_logging("info", transport_debug=True)
    assert logging.getLogger("httpx").level == logging.INFO

    for name in ("xmlhttprequest", "httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.NOTSET)
