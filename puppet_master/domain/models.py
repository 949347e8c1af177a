from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from puppet_master.core.errors import EmptyCode
from puppet_master.domain.equality import jobs_equal

STATUS_CREATED = "created"
STATUS_QUEUED = "queued"
STATUS_DONE = "done"


@dataclass(frozen=True)
class LogEntry:
    time: datetime
    level: str
    message: str


@dataclass(frozen=True, eq=False)
class Job:
    uuid: str
    status: str
    code: str = ""
    modules: dict[str, str] = field(default_factory=dict)
    vars: dict[str, str] = field(default_factory=dict)
    error: str | None = None
    logs: tuple[LogEntry, ...] = ()
    results: dict[str, Any] = field(default_factory=dict)
    started_at: datetime | None = None
    finished_at: datetime | None = None
    duration: int = 0

    @property
    def is_done(self) -> bool:
        return self.status == STATUS_DONE

    @property
    def failed(self) -> bool:
        """Terminal job whose remote execution reported an error."""
        return self.is_done and bool(self.error)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Job):
            return NotImplemented
        return jobs_equal(self, other)


@dataclass(frozen=True)
class JobRequest:
    code: str
    status: str | None = None
    modules: dict[str, str] | None = None
    vars: dict[str, str] | None = None

    def validate(self) -> None:
        if not (self.code or "").strip():
            raise EmptyCode()

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "code": self.code,
            "modules": dict(self.modules or {}),
            "vars": dict(self.vars or {}),
        }
        if self.status:
            payload["status"] = self.status
        return payload


@dataclass(frozen=True)
class PaginationLinks:
    first: str | None = None
    last: str | None = None
    prev: str | None = None
    next: str | None = None


@dataclass(frozen=True)
class PaginationMeta:
    path: str = ""
    first_page: int = 0
    current_page: int = 0
    last_page: int = 0
    per_page: int = 0
    from_: int = 0
    to: int = 0
    total: int = 0


@dataclass(frozen=True)
class Page:
    """One page of the job listing. Holds no reference back to the client."""

    jobs: tuple[Job, ...]
    meta: PaginationMeta = field(default_factory=PaginationMeta)
    links: PaginationLinks = field(default_factory=PaginationLinks)

    @property
    def current_page(self) -> int:
        return self.meta.current_page

    @property
    def last_page(self) -> int:
        return self.meta.last_page

    @property
    def total(self) -> int:
        return self.meta.total

    @property
    def per_page(self) -> int:
        return self.meta.per_page

    @property
    def has_next(self) -> bool:
        # Without a current page number the following page cannot be addressed.
        if self.meta.current_page <= 0:
            return False
        return bool(self.links.next) or self.meta.current_page < self.meta.last_page

    @property
    def next_page(self) -> int | None:
        if not self.has_next:
            return None
        return self.meta.current_page + 1
