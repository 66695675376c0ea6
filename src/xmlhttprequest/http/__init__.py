# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Transport layer exports."""

from .client import Transport, create_default_transport
from .data_uri import DataPayload, parse_data_uri
from .headers import (
    FORBIDDEN_REQUEST_HEADERS,
    FORBIDDEN_REQUEST_METHODS,
    HeaderSet,
    format_response_headers,
    header_value,
    normalize_headers,
)
from .models import Headers, ResponseRecord, TransportRequest
from .retry import RetryConfig, open_with_reset_retry
from .transport import TransportAdapter

__all__ = [
    "FORBIDDEN_REQUEST_HEADERS",
    "FORBIDDEN_REQUEST_METHODS",
    "DataPayload",
    "HeaderSet",
    "Headers",
    "ResponseRecord",
    "RetryConfig",
    "Transport",
    "TransportAdapter",
    "TransportRequest",
    "create_default_transport",
    "format_response_headers",
    "header_value",
    "normalize_headers",
    "open_with_reset_retry",
    "parse_data_uri",
]
