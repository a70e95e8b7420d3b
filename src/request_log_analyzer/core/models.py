"""Core data models for request log analysis."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class LineType(str, Enum):
    """Log line kinds the classifier can recognize."""

    STARTED = "started"
    COMPLETED = "completed"


ALL_LINE_TYPES: frozenset[LineType] = frozenset({LineType.STARTED, LineType.COMPLETED})


@dataclass(frozen=True, slots=True)
class UrlTarget:
    """Request identified by the URL it was served for."""

    url: str


@dataclass(frozen=True, slots=True)
class ControllerActionTarget:
    """Request identified by the controller/action pair that handled it."""

    controller: str
    action: str


RequestTarget = UrlTarget | ControllerActionTarget


@dataclass(frozen=True, slots=True)
class StartedEvent:
    """A line that opens a request (``Processing ...`` or ``Started ...``)."""

    line_no: int
    timestamp: datetime | None
    remote_addr: str | None
    http_method: str | None
    raw_target: RequestTarget


@dataclass(frozen=True, slots=True)
class CompletedEvent:
    """A line that closes a request; carries the timings."""

    line_no: int
    duration_seconds: float
    http_status: int | None = None
    timestamp: datetime | None = None
    database_seconds: float | None = None
    view_seconds: float | None = None
    url: str | None = None
    controller: str | None = None
    action: str | None = None


@dataclass(frozen=True, slots=True)
class MalformedLine:
    """A line that looked like a known marker but failed to parse."""

    line_no: int
    line_type: LineType
    reason: str


LineEvent = StartedEvent | CompletedEvent


@dataclass(frozen=True, slots=True)
class PendingRequest:
    """Fields captured from a started line, waiting for its completed line."""

    line_no: int
    timestamp: datetime | None
    http_method: str | None
    target: RequestTarget


@dataclass(frozen=True, slots=True)
class CompletedRequest:
    """Reconciled request record; ``target`` is None when neither form was logged."""

    duration_seconds: float
    target: RequestTarget | None
    timestamp: datetime | None = None
    database_seconds: float | None = None
    view_seconds: float | None = None
    http_status: int | None = None
    http_method: str | None = None


@dataclass(slots=True)
class AggregateStats:
    """Running statistics for one signature.

    Means are derived on read so they never go stale between ingests.
    """

    count: int = 0
    total_duration_seconds: float = 0.0
    total_database_seconds: float = 0.0
    database_count: int = 0
    total_view_seconds: float = 0.0
    view_count: int = 0
    min_duration_seconds: float | None = None
    max_duration_seconds: float | None = None
    blocker_count: int = 0
    blocker_duration_seconds: float = 0.0

    @property
    def mean_duration_seconds(self) -> float:
        return self.total_duration_seconds / self.count if self.count else 0.0

    @property
    def mean_database_seconds(self) -> float:
        return self.total_database_seconds / self.database_count if self.database_count else 0.0

    @property
    def mean_view_seconds(self) -> float:
        return self.total_view_seconds / self.view_count if self.view_count else 0.0


@dataclass(slots=True)
class GlobalStats:
    """Run-wide statistics independent of signature."""

    request_count: int = 0
    min_timestamp: datetime | None = None
    max_timestamp: datetime | None = None
    hourly_histogram: list[int] = field(default_factory=lambda: [0] * 24)


@dataclass(slots=True)
class ParseDiagnostics:
    """Counters that let operators judge input quality."""

    lines_read: int = 0
    malformed_lines: int = 0
    unterminated_requests: int = 0
    invalid_requests: int = 0
