# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""xhr-fetch: issue one XMLHttpRequest from the command line."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import replace
from typing import Any

from ..config import SyncPolicy, XhrSettings, load_settings
from ..errors import XhrError
from ..log import setup_logging
from ..xhr import XMLHttpRequest

CLI_TEXT_TRUNCATION_BYTES = 64 * 1024


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="xhr-fetch", description="Fetch a URL through XMLHttpRequest semantics")
    parser.add_argument("url", help="Target URL (http, https, file or data)")
    parser.add_argument("-X", "--method", default="GET", help="Request method (default: GET)")
    parser.add_argument("-d", "--data", default=None, help="Request body")
    parser.add_argument(
        "-H",
        "--header",
        action="append",
        default=[],
        metavar="NAME: VALUE",
        help="Request header, may be repeated",
    )
    parser.add_argument("--sync", action="store_true", help="Use a synchronous (blocking) request")
    parser.add_argument(
        "--response-type",
        default="",
        choices=["", "text", "json", "arraybuffer"],
        help="Representation of the response body",
    )
    parser.add_argument("--max-redirects", type=int, default=None, help="Redirect limit (default: 20)")
    parser.add_argument("--origin", default=None, help="Base URL for relative request URLs")
    parser.add_argument("--insecure", action="store_true", help="Skip TLS certificate verification")
    parser.add_argument("-i", "--include", action="store_true", help="Print response headers")
    parser.add_argument("--log-level", default=None, help="Logging level (default: XHR_LOG_LEVEL or WARNING)")
    return parser


def _parse_header(raw: str) -> tuple[str, str]:
    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"Invalid header {raw!r}; expected 'Name: value'")
    return name.strip(), value.strip()


def _build_settings(args: argparse.Namespace) -> XhrSettings:
    settings = load_settings()
    overrides: dict[str, Any] = {}
    if args.max_redirects is not None:
        overrides["max_redirects"] = args.max_redirects
    if args.origin:
        overrides["origin"] = args.origin
    if args.insecure:
        overrides["reject_unauthorized"] = False
    if args.sync:
        overrides["sync_policy"] = SyncPolicy.ENABLED
    return replace(settings, **overrides) if overrides else settings


def _prepare(xhr: XMLHttpRequest, args: argparse.Namespace, headers: list[tuple[str, str]]) -> None:
    xhr.open(args.method, args.url, not args.sync)
    xhr.response_type = args.response_type
    for name, value in headers:
        if not xhr.set_request_header(name, value):
            print(f"warning: header {name!r} refused", file=sys.stderr)


async def _fetch_async(xhr: XMLHttpRequest, args: argparse.Namespace, headers: list[tuple[str, str]]) -> None:
    _prepare(xhr, args, headers)
    await xhr.send(args.data)
    # Let deferred DONE callbacks run before returning.
    await asyncio.sleep(0)


def _format_body(xhr: XMLHttpRequest) -> str:
    response = xhr.response
    if isinstance(response, (bytes, bytearray)):
        text = bytes(response).decode("utf-8", errors="replace")
    elif xhr.response_type == "json":
        text = json.dumps(response, indent=2, sort_keys=True)
    else:
        text = "" if response is None else str(response)
    raw = text.encode("utf-8")
    if len(raw) > CLI_TEXT_TRUNCATION_BYTES:
        text = raw[:CLI_TEXT_TRUNCATION_BYTES].decode("utf-8", errors="ignore") + "...[truncated]"
    return text


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    try:
        headers = [_parse_header(raw) for raw in args.header]
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))

    xhr = XMLHttpRequest(_build_settings(args))
    failed: list[str] = []
    xhr.onerror = lambda event: failed.append(event.type)

    try:
        if args.sync:
            _prepare(xhr, args, headers)
            xhr.send(args.data)
        else:
            asyncio.run(_fetch_async(xhr, args, headers))
    except XhrError as exc:
        print(f"error: {type(exc).__name__}: {exc}", file=sys.stderr)
        return 1

    if failed:
        print(f"error: {xhr.status_text}", file=sys.stderr)
        return 1

    print(f"{xhr.status} {xhr.status_text or ''}".rstrip())
    if args.include:
        all_headers = xhr.get_all_response_headers()
        if all_headers:
            print(all_headers.replace("\r\n", "\n"))
        print()
    sys.stdout.write(_format_body(xhr))
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
