"""
Python client for the puppet-master.io job execution API.

Submit code as a job, then list, fetch, delete, or run it synchronously until done.
"""

from .application.sync_execution import CancellationToken, RetryPolicy, SyncExecutionController
from .client import Client
from .core.config import API_V1_ENDPOINT, Settings, get_settings
from .core.errors import (
    DeadlineExceeded,
    EmptyCode,
    EmptyCredential,
    ExecutionCancelled,
    MalformedResponse,
    NotFound,
    PuppetMasterError,
    TransientReadError,
    TransportError,
    UnexpectedResponse,
    ValidationFailed,
)
from .core.logging import configure_logging
from .domain.equality import jobs_equal
from .domain.models import (
    STATUS_CREATED,
    STATUS_DONE,
    STATUS_QUEUED,
    Job,
    JobRequest,
    LogEntry,
    Page,
    PaginationLinks,
    PaginationMeta,
)

__all__ = [
    "API_V1_ENDPOINT",
    "STATUS_CREATED",
    "STATUS_DONE",
    "STATUS_QUEUED",
    "CancellationToken",
    "Client",
    "DeadlineExceeded",
    "EmptyCode",
    "EmptyCredential",
    "ExecutionCancelled",
    "Job",
    "JobRequest",
    "LogEntry",
    "MalformedResponse",
    "NotFound",
    "Page",
    "PaginationLinks",
    "PaginationMeta",
    "PuppetMasterError",
    "RetryPolicy",
    "Settings",
    "SyncExecutionController",
    "TransientReadError",
    "TransportError",
    "UnexpectedResponse",
    "ValidationFailed",
    "configure_logging",
    "get_settings",
    "jobs_equal",
]
