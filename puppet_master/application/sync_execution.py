"""Blocking execution of a job: create it, then poll until it is done."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Protocol

from puppet_master.core.errors import (
    DeadlineExceeded,
    ExecutionCancelled,
    TransientReadError,
    TransportError,
)
from puppet_master.domain.models import Job, JobRequest

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 0.5


class JobGatewayPort(Protocol):
    """``timeout`` caps a single call in seconds; None leaves the gateway default."""

    def create_job(self, request: JobRequest, *, timeout: float | None = None) -> Job:
        ...

    def get_job(self, uuid: str, *, timeout: float | None = None) -> Job:
        ...


@dataclass(frozen=True)
class RetryPolicy:
    """How many consecutive transient read failures a poll may absorb.

    ``max_retries=None`` retries forever. The delay before retry ``n`` is
    ``backoff_seconds * n``; the default retries immediately.
    """

    max_retries: int | None = 5
    backoff_seconds: float = 0.0

    @classmethod
    def unbounded(cls, backoff_seconds: float = 0.0) -> RetryPolicy:
        return cls(max_retries=None, backoff_seconds=backoff_seconds)

    def allows(self, failures: int) -> bool:
        return self.max_retries is None or failures <= self.max_retries

    def delay(self, failures: int) -> float:
        return max(0.0, self.backoff_seconds * failures)


class CancellationToken:
    """Thread-safe flag another thread can set to stop a blocking execution."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; return True as soon as cancellation is requested."""
        return self._event.wait(seconds)


class SyncExecutionController:
    def __init__(
        self,
        gateway: JobGatewayPort,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        retry_policy: RetryPolicy | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if poll_interval < 0:
            raise ValueError("poll_interval must be non-negative")
        self.gateway = gateway
        self.poll_interval = float(poll_interval)
        self.retry_policy = retry_policy or RetryPolicy()
        self._clock = clock
        self._sleep = sleep

    def run(
        self,
        request: JobRequest,
        *,
        timeout: float | None = None,
        cancel: CancellationToken | None = None,
    ) -> Job:
        """Create ``request`` and block until the job reaches status ``done``."""
        deadline = None if timeout is None else self._clock() + max(0.0, timeout)

        self._check(None, deadline, timeout, cancel)
        try:
            job = self.gateway.create_job(request, timeout=self._remaining(deadline))
        except TransportError as exc:
            if deadline is not None and self._clock() >= deadline:
                raise DeadlineExceeded(None, timeout) from exc
            raise
        uuid = job.uuid
        logger.debug("Created job %s with status %s", uuid, job.status)

        failures = 0
        polls = 0
        while True:
            self._check(uuid, deadline, timeout, cancel)
            try:
                job = self.gateway.get_job(uuid, timeout=self._remaining(deadline))
            except TransientReadError as exc:
                failures += 1
                if not self.retry_policy.allows(failures):
                    logger.warning("Giving up on job %s after %d transient read failures", uuid, failures)
                    raise
                logger.warning("Transient read failure polling job %s (attempt %d): %s", uuid, failures, exc)
                delay = self.retry_policy.delay(failures)
                if delay > 0:
                    self._pause(uuid, delay, deadline, timeout, cancel)
                continue
            except TransportError as exc:
                if deadline is not None and self._clock() >= deadline:
                    raise DeadlineExceeded(uuid, timeout) from exc
                raise

            failures = 0
            polls += 1
            if job.is_done:
                logger.debug("Job %s done after %d polls", uuid, polls)
                return job

            self._pause(uuid, self.poll_interval, deadline, timeout, cancel)

    def _remaining(self, deadline: float | None) -> float | None:
        if deadline is None:
            return None
        return max(0.0, deadline - self._clock())

    def _check(
        self,
        uuid: str | None,
        deadline: float | None,
        timeout: float | None,
        cancel: CancellationToken | None,
    ) -> None:
        if cancel is not None and cancel.cancelled:
            raise ExecutionCancelled(uuid)
        if deadline is not None and self._clock() >= deadline:
            raise DeadlineExceeded(uuid, timeout)

    def _pause(
        self,
        uuid: str,
        seconds: float,
        deadline: float | None,
        timeout: float | None,
        cancel: CancellationToken | None,
    ) -> None:
        self._check(uuid, deadline, timeout, cancel)
        if deadline is not None:
            seconds = min(seconds, max(0.0, deadline - self._clock()))
        if cancel is not None:
            if cancel.wait(seconds):
                raise ExecutionCancelled(uuid)
            return
        self._sleep(seconds)
