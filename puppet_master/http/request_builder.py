from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any
from urllib import parse

import httpx

from puppet_master.core.errors import EmptyCredential

AUTH_HEADER = "Authorization"
RESOURCE_ROOT = "jobs"


def _segments(path: str) -> list[str]:
    out: list[str] = []
    for segment in path.split("/"):
        if segment in {"", "."}:
            continue
        if segment == "..":
            raise ValueError(f"Path traversal is not allowed: {path!r}")
        out.append(segment)
    return out


def _is_omitted(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (int, float)):
        return value == 0
    return False


def encode_query(query: Mapping[str, Any] | None) -> str:
    """Encode query parameters in key order, dropping empty and zero values."""
    if not query:
        return ""
    items = [(key, str(value)) for key, value in sorted(query.items()) if not _is_omitted(value)]
    return parse.urlencode(items)


def job_path(uuid: str) -> str:
    """Sub-path for a single job. The id is encoded as one path segment."""
    if not uuid or not uuid.strip():
        raise ValueError("Job uuid may not be empty")
    return parse.quote(uuid.strip(), safe="")


class RequestBuilder:
    """Composes authenticated JSON requests against the jobs resource."""

    def __init__(self, *, base_url: str, api_token: str, team: str | None = None):
        token = (api_token or "").strip()
        if not token:
            raise EmptyCredential()

        parts = parse.urlsplit(base_url.strip())
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"Base URL must be absolute: {base_url!r}")

        self._token = token
        self._scheme = parts.scheme
        self._netloc = parts.netloc
        self._base_segments = _segments(parts.path)
        self.team = (team or "").strip() or None

    @property
    def api_token(self) -> str:
        return self._token

    def build_url(self, sub_path: str = "", query: Mapping[str, Any] | None = None) -> str:
        segments = list(self._base_segments)
        if self.team:
            segments += ["teams", parse.quote(self.team, safe="")]
        segments.append(RESOURCE_ROOT)
        segments += _segments(sub_path)
        path = "/" + "/".join(segments)
        return parse.urlunsplit((self._scheme, self._netloc, path, encode_query(query), ""))

    def headers(self) -> dict[str, str]:
        return {
            AUTH_HEADER: f"Bearer {self._token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def build_request(
        self,
        method: str,
        sub_path: str = "",
        query: Mapping[str, Any] | None = None,
        json_body: Any = None,
        timeout: httpx.Timeout | None = None,
    ) -> httpx.Request:
        content = None
        if json_body is not None:
            content = json.dumps(json_body).encode("utf-8")
        # Requests built outside httpx.Client.build_request carry no client timeout.
        extensions = {"timeout": timeout.as_dict()} if timeout is not None else None
        return httpx.Request(
            method.upper(),
            self.build_url(sub_path, query),
            headers=self.headers(),
            content=content,
            extensions=extensions,
        )
