# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Build the ssl.SSLContext handed to httpx from XhrSettings TLS material."""

from __future__ import annotations

import ssl

from ..config import XhrSettings

_PEM_MARKER = "-----BEGIN"


def has_tls_material(settings: XhrSettings) -> bool:
    return any((settings.ca, settings.cert, settings.key, settings.ciphers))


def build_ssl_context(settings: XhrSettings) -> ssl.SSLContext | bool:
    """
    Return the ``verify`` argument for httpx.

    Plain booleans are returned when no TLS material is configured so httpx keeps
    its own default trust store.
    """
    if not has_tls_material(settings):
        return settings.reject_unauthorized

    ca = settings.ca
    if ca and _PEM_MARKER in ca:
        context = ssl.create_default_context(cadata=ca)
    elif ca:
        context = ssl.create_default_context(cafile=ca)
    else:
        context = ssl.create_default_context()

    if not settings.reject_unauthorized:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

    if settings.cert:
        context.load_cert_chain(certfile=settings.cert, keyfile=settings.key, password=settings.passphrase)
    if settings.ciphers:
        context.set_ciphers(settings.ciphers)
    return context


__all__ = ["build_ssl_context", "has_tls_material"]
