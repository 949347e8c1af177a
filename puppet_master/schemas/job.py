"""Wire schemas for the puppet-master jobs API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from puppet_master.domain.models import Job, LogEntry, Page, PaginationLinks, PaginationMeta


def _none_to_empty(value: Any, empty: Any) -> Any:
    return empty if value is None else value


class LogSchema(BaseModel):
    time: datetime
    level: str = ""
    message: str = ""


class JobSchema(BaseModel):
    model_config = ConfigDict(extra="ignore")

    uuid: str
    status: str
    code: str = ""
    vars: dict[str, str] = Field(default_factory=dict)
    modules: dict[str, str] = Field(default_factory=dict)
    error: str | None = None
    logs: list[LogSchema] = Field(default_factory=list)
    results: dict[str, Any] = Field(default_factory=dict)
    started_at: datetime | None = None
    finished_at: datetime | None = None
    duration: int = 0

    @field_validator("vars", "modules", "results", mode="before")
    @classmethod
    def _null_mapping(cls, value: Any) -> Any:
        return _none_to_empty(value, {})

    @field_validator("logs", mode="before")
    @classmethod
    def _null_logs(cls, value: Any) -> Any:
        return _none_to_empty(value, [])

    @field_validator("code", mode="before")
    @classmethod
    def _null_code(cls, value: Any) -> Any:
        return _none_to_empty(value, "")

    @field_validator("duration", mode="before")
    @classmethod
    def _null_duration(cls, value: Any) -> Any:
        return _none_to_empty(value, 0)

    def to_record(self) -> Job:
        return Job(
            uuid=self.uuid,
            status=self.status,
            code=self.code,
            modules=dict(self.modules),
            vars=dict(self.vars),
            error=self.error or None,
            logs=tuple(LogEntry(time=item.time, level=item.level, message=item.message) for item in self.logs),
            results=dict(self.results),
            started_at=self.started_at,
            finished_at=self.finished_at,
            duration=self.duration,
        )


class JobEnvelope(BaseModel):
    data: JobSchema


class PaginationLinksSchema(BaseModel):
    first: str | None = None
    last: str | None = None
    prev: str | None = None
    next: str | None = None


class PaginationMetaSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    path: str = ""
    first_page: int = 0
    current_page: int = 0
    last_page: int = 0
    per_page: int = 0
    from_: int = Field(default=0, alias="from")
    to: int = 0
    total: int = 0

    @field_validator("first_page", "current_page", "last_page", "per_page", "from_", "to", "total", mode="before")
    @classmethod
    def _null_count(cls, value: Any) -> Any:
        # Empty pages report null bounds.
        return _none_to_empty(value, 0)

    @field_validator("path", mode="before")
    @classmethod
    def _null_path(cls, value: Any) -> Any:
        return _none_to_empty(value, "")


class JobPageEnvelope(BaseModel):
    data: list[JobSchema] = Field(default_factory=list)
    links: PaginationLinksSchema = Field(default_factory=PaginationLinksSchema)
    meta: PaginationMetaSchema = Field(default_factory=PaginationMetaSchema)

    @field_validator("data", mode="before")
    @classmethod
    def _null_data(cls, value: Any) -> Any:
        return _none_to_empty(value, [])

    @field_validator("links", "meta", mode="before")
    @classmethod
    def _null_pagination(cls, value: Any) -> Any:
        return _none_to_empty(value, {})

    def to_page(self) -> Page:
        return Page(
            jobs=tuple(item.to_record() for item in self.data),
            meta=PaginationMeta(**self.meta.model_dump()),
            links=PaginationLinks(**self.links.model_dump()),
        )


class ValidationErrorEnvelope(BaseModel):
    errors: dict[str, list[str]] = Field(default_factory=dict)


class JobRequestSchema(BaseModel):
    code: str
    status: str | None = None
    vars: dict[str, str] = Field(default_factory=dict)
    modules: dict[str, str] = Field(default_factory=dict)
