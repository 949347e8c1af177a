"""Request/response dumps for debug mode."""

from __future__ import annotations

import logging

import httpx

from puppet_master.http.request_builder import AUTH_HEADER

logger = logging.getLogger("puppet_master.debug")

_RULE = "#" * 46


def _render_headers(headers: httpx.Headers) -> list[str]:
    lines = []
    for name, value in headers.items():
        if name.lower() == AUTH_HEADER.lower():
            value = "Bearer ****"
        lines.append(f"{name}: {value}")
    return lines


def _decode(content: bytes) -> str:
    return content.decode("utf-8", errors="replace")


def render_request(request: httpx.Request) -> str:
    lines = [f"{request.method} {request.url}"]
    lines += _render_headers(request.headers)
    lines.append("")
    lines.append(_decode(request.content))
    return "\n".join(lines)


def render_response(response: httpx.Response) -> str:
    lines = [f"{response.http_version} {response.status_code} {response.reason_phrase}"]
    lines += _render_headers(response.headers)
    lines.append("")
    lines.append(_decode(response.content))
    return "\n".join(lines)


def dump_request(request: httpx.Request) -> None:
    logger.info("request begin %s\n%s\nrequest end   %s", _RULE, render_request(request), _RULE)


def dump_response(response: httpx.Response) -> None:
    """Log a response whose body has already been read."""
    logger.info("response begin %s\n%s\nresponse end   %s", _RULE, render_response(response), _RULE)
