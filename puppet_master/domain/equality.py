"""Field-by-field comparison of job snapshots."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from puppet_master.domain.models import Job, LogEntry


def dates_equal(first: datetime | None, second: datetime | None) -> bool:
    """Equal instants, or both absent."""
    if first is None or second is None:
        return first is None and second is None
    return first == second


def mappings_equal(first: Mapping[str, Any], second: Mapping[str, Any]) -> bool:
    if first.keys() != second.keys():
        return False
    return all(first[key] == second[key] for key in first)


def logs_equal(first: Sequence[LogEntry], second: Sequence[LogEntry]) -> bool:
    if len(first) != len(second):
        return False
    return all(
        dates_equal(left.time, right.time) and left.level == right.level and left.message == right.message
        for left, right in zip(first, second)
    )


def jobs_equal(first: Job, second: Job) -> bool:
    return (
        first.uuid == second.uuid
        and first.status == second.status
        and first.code == second.code
        and mappings_equal(first.modules, second.modules)
        and mappings_equal(first.vars, second.vars)
        and mappings_equal(first.results, second.results)
        and logs_equal(first.logs, second.logs)
        and dates_equal(first.started_at, second.started_at)
        and dates_equal(first.finished_at, second.finished_at)
        and (first.error or None) == (second.error or None)
        and first.duration == second.duration
    )
