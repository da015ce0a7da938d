# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import httpx

SEPARATOR = "-------------------------------"


def _render_body(content: bytes) -> str:
    return content.decode("utf-8", errors="replace")


def _render_headers(headers: httpx.Headers) -> list[str]:
    return [f"{key}: {value}" for key, value in headers.multi_items()]


def dump_request(request: httpx.Request) -> str:
    """Render a request the way it goes on the wire (HTTP/1.1 framing)."""
    target = request.url.raw_path.decode("ascii")
    lines = [f"{request.method} {target} HTTP/1.1", *_render_headers(request.headers)]
    try:
        body = _render_body(request.content)
    except httpx.RequestNotRead:
        body = "<streaming body>"
    return "\n".join(lines) + "\n\n" + body


def dump_response(response: httpx.Response) -> str:
    status_line = f"{response.http_version} {response.status_code} {response.reason_phrase}"
    lines = [status_line, *_render_headers(response.headers)]
    try:
        body = _render_body(response.content)
    except httpx.ResponseNotRead:
        body = "<streaming body>"
    return "\n".join(lines) + "\n\n" + body
