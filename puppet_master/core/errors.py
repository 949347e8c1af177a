"""Errors raised by the puppet-master client."""

from __future__ import annotations


class PuppetMasterError(Exception):
    """Base class for every error raised by this package."""


# ── Construction / validation ───────────────────────────────────────


class EmptyCredential(PuppetMasterError, ValueError):
    """Raised when the API token given to the client is blank."""

    def __init__(self):
        super().__init__("apiToken may not be empty")


class EmptyCode(PuppetMasterError, ValueError):
    """Raised when a job request is created without code."""

    def __init__(self):
        super().__init__("given JobRequest's code may not be empty")


# ── Response taxonomy ───────────────────────────────────────────────


class NotFound(PuppetMasterError):
    def __init__(self, message: str = "job was not found by given UUID"):
        super().__init__(message)


class ValidationFailed(PuppetMasterError):
    """422 on create. ``fields`` maps each rejected field to its messages."""

    def __init__(self, fields: dict[str, list[str]]):
        self.fields = {name: list(messages) for name, messages in fields.items()}
        parts = [f"{name} ({', '.join(messages)})" for name, messages in self.fields.items()]
        super().__init__(f"failed to save job. The following fields are invalid: {', '.join(parts)}")


class UnexpectedResponse(PuppetMasterError):
    def __init__(self, status_code: int, body: str):
        super().__init__(f"unexpected response {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class MalformedResponse(PuppetMasterError):
    """The status code matched but the body could not be decoded."""

    def __init__(self, status_code: int, body: str, reason: str):
        super().__init__(f"malformed response body (status {status_code}): {reason}")
        self.status_code = status_code
        self.body = body
        self.reason = reason


# ── Transport ───────────────────────────────────────────────────────


class TransportError(PuppetMasterError):
    """Network or I/O failure below the HTTP layer."""


class TransientReadError(TransportError):
    """Connection dropped while reading a response (EOF, short read, read timeout)."""


# ── Synchronous execution ───────────────────────────────────────────


class ExecutionCancelled(PuppetMasterError):
    def __init__(self, job_uuid: str | None, message: str = "synchronous job execution was cancelled"):
        if job_uuid:
            message = f"{message} (job {job_uuid})"
        super().__init__(message)
        self.job_uuid = job_uuid


class DeadlineExceeded(ExecutionCancelled):
    def __init__(self, job_uuid: str | None, timeout_seconds: float | None = None):
        message = "synchronous job execution exceeded its deadline"
        if timeout_seconds is not None:
            message = f"{message} of {timeout_seconds:g}s"
        super().__init__(job_uuid, message)
        self.timeout_seconds = timeout_seconds
