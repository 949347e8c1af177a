"""
puppet-master API client: job resource operations and synchronous execution.
"""
from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

import httpx

from puppet_master.application.sync_execution import (
    DEFAULT_POLL_INTERVAL_SECONDS,
    CancellationToken,
    RetryPolicy,
    SyncExecutionController,
)
from puppet_master.core.config import API_V1_ENDPOINT, Settings, get_settings
from puppet_master.domain.models import Job, JobRequest, Page
from puppet_master.http.request_builder import RequestBuilder, job_path
from puppet_master.http.response import interpret_response, open_response
from puppet_master.schemas.job import JobEnvelope, JobPageEnvelope, JobRequestSchema

logger = logging.getLogger(__name__)


def _clamp_timeout(base: httpx.Timeout, budget: float | None) -> httpx.Timeout:
    if budget is None:
        return base

    def clip(value: float | None) -> float:
        return budget if value is None else min(value, budget)

    return httpx.Timeout(
        connect=clip(base.connect),
        read=clip(base.read),
        write=clip(base.write),
        pool=clip(base.pool),
    )


class Client:
    """
    Client for the puppet-master jobs API.

    The token, endpoint and team are fixed at construction. ``debug``,
    ``poll_interval`` and ``retry_policy`` may be changed between calls but
    not concurrently with them.
    """

    def __init__(
        self,
        api_token: str,
        base_url: str = API_V1_ENDPOINT,
        team: str | None = None,
        *,
        debug: bool = False,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        retry_policy: RetryPolicy | None = None,
        timeout_seconds: float = 30.0,
        http: httpx.Client | None = None,
    ):
        self._builder = RequestBuilder(base_url=base_url, api_token=api_token, team=team)
        self.base_url = base_url
        self.debug = debug
        self.poll_interval = poll_interval
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout = httpx.Timeout(timeout_seconds)
        self._owns_http = http is None
        self._http = http or httpx.Client(timeout=self.timeout)

    @classmethod
    def from_settings(cls, settings: Settings, *, http: httpx.Client | None = None) -> Client:
        return cls(
            settings.api_token,
            settings.endpoint,
            settings.team,
            debug=settings.debug,
            poll_interval=settings.poll_interval_ms / 1000.0,
            retry_policy=RetryPolicy(max_retries=settings.transient_retries),
            timeout_seconds=float(settings.http_timeout_seconds),
            http=http,
        )

    @classmethod
    def from_env(cls, *, http: httpx.Client | None = None) -> Client:
        return cls.from_settings(get_settings(), http=http)

    @property
    def team(self) -> str | None:
        return self._builder.team

    def enable_debug_logs(self) -> None:
        self.debug = True

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(
        self,
        method: str,
        sub_path: str = "",
        *,
        query: dict[str, Any] | None = None,
        json_body: Any = None,
        timeout: float | None = None,
    ) -> httpx.Request:
        return self._builder.build_request(
            method,
            sub_path,
            query,
            json_body,
            timeout=_clamp_timeout(self.timeout, timeout),
        )

    # ── Listing ─────────────────────────────────────────────────────

    def list_jobs(self, status: str | None = None, page: int = 0, per_page: int = 0) -> Page:
        """Fetch one page of jobs, optionally filtered by status."""
        request = self._request("GET", query={"status": status, "page": page, "per_page": per_page})
        with open_response(self._http, request, debug=self.debug) as response:
            envelope = interpret_response(response, 200, JobPageEnvelope)
        return envelope.to_page()

    def get_all_jobs(self, page: int = 0, per_page: int = 0) -> Page:
        return self.list_jobs(None, page, per_page)

    def get_jobs_by_status(self, status: str, page: int = 0, per_page: int = 0) -> Page:
        return self.list_jobs(status, page, per_page)

    def iter_jobs(self, status: str | None = None, per_page: int = 0) -> Iterator[Job]:
        """
        Iterate every job page by page until the last page is reached.

        Stops as soon as the service stops advancing the page number.
        """
        page_number = 1
        while True:
            page = self.list_jobs(status, page_number, per_page)
            yield from page.jobs
            next_page = page.next_page
            if not page.jobs or next_page is None or next_page <= page_number:
                break
            page_number = next_page

    # ── Single jobs ─────────────────────────────────────────────────

    def create_job(self, job_request: JobRequest, *, timeout: float | None = None) -> Job:
        """Schedule a new job for execution.

        ``timeout`` lowers the HTTP timeout for this call only.
        """
        job_request.validate()
        body = JobRequestSchema.model_validate(job_request.to_payload()).model_dump(exclude_none=True)

        request = self._request("POST", json_body=body, timeout=timeout)
        with open_response(self._http, request, debug=self.debug) as response:
            envelope = interpret_response(response, 201, JobEnvelope, accepts_validation_errors=True)
        job = envelope.data.to_record()
        logger.debug("Created job %s", job.uuid)
        return job

    def get_job(self, uuid: str, *, timeout: float | None = None) -> Job:
        request = self._request("GET", job_path(uuid), timeout=timeout)
        with open_response(self._http, request, debug=self.debug) as response:
            envelope = interpret_response(response, 200, JobEnvelope)
        return envelope.data.to_record()

    def delete_job(self, uuid: str) -> None:
        request = self._request("DELETE", job_path(uuid))
        with open_response(self._http, request, debug=self.debug) as response:
            interpret_response(response, 204)

    # ── Synchronous execution ───────────────────────────────────────

    def execute_sync(
        self,
        job_request: JobRequest,
        *,
        timeout: float | None = None,
        cancel: CancellationToken | None = None,
        retry_policy: RetryPolicy | None = None,
        poll_interval: float | None = None,
    ) -> Job:
        """Create a job and block until the service reports it as done.

        A job whose code failed remotely is still returned; check ``job.error``.
        With ``timeout`` set, each HTTP call is also capped at the time left.
        """
        controller = SyncExecutionController(
            self,
            poll_interval=self.poll_interval if poll_interval is None else poll_interval,
            retry_policy=retry_policy or self.retry_policy,
        )
        return controller.run(job_request, timeout=timeout, cancel=cancel)
