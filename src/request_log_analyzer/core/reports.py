"""Report models built from an analysis result.

Reports are read-only views over aggregator snapshots; nothing here mutates
statistics.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from pydantic import BaseModel, Field

from .aggregator import Aggregator, comparable_timestamp
from .log_service import AnalysisResult

# report name -> (sort field, value shown for each row)
ACTION_REPORTS: dict[str, str] = {
    "most_requested": "count",
    "total_time": "total_duration_seconds",
    "mean_time": "mean_duration_seconds",
    "total_db_time": "total_database_seconds",
    "mean_db_time": "mean_database_seconds",
    "blockers": "blocker_count",
}
REPORT_NAMES: tuple[str, ...] = ("timespan", *ACTION_REPORTS, "hourly_spread")
DEFAULT_AMOUNT = 20


class ActionRow(BaseModel):
    signature: str
    value: float = Field(description="Value of the field the report is sorted by.")
    count: int
    total_duration_seconds: float
    mean_duration_seconds: float
    min_duration_seconds: float | None = None
    max_duration_seconds: float | None = None
    total_database_seconds: float
    mean_database_seconds: float
    blocker_count: int
    blocker_duration_seconds: float


class ActionReport(BaseModel):
    field: str
    rows: list[ActionRow] = Field(default_factory=list)


class Timespan(BaseModel):
    first_request_at: datetime | None = None
    last_request_at: datetime | None = None
    days: float | None = None


class HourlySpread(BaseModel):
    total: int
    buckets: list[int] = Field(description="Requests per hour of day, index 0-23.")


class Diagnostics(BaseModel):
    lines_read: int
    malformed_lines: int
    unterminated_requests: int
    invalid_requests: int


class AnalysisReport(BaseModel):
    request_count: int
    signature_count: int
    diagnostics: Diagnostics
    timespan: Timespan | None = None
    hourly_spread: HourlySpread | None = None
    actions: dict[str, ActionReport] = Field(default_factory=dict)


def action_report(aggregator: Aggregator, field: str, amount: int = DEFAULT_AMOUNT) -> ActionReport:
    """Top ``amount`` signatures by ``field``, largest first."""
    rows = []
    for sig, stats in reversed(aggregator.sorted_by(field, limit=amount)):
        value = getattr(stats, field)
        rows.append(
            ActionRow(
                signature=sig,
                value=float(value if value is not None else 0.0),
                count=stats.count,
                total_duration_seconds=stats.total_duration_seconds,
                mean_duration_seconds=stats.mean_duration_seconds,
                min_duration_seconds=stats.min_duration_seconds,
                max_duration_seconds=stats.max_duration_seconds,
                total_database_seconds=stats.total_database_seconds,
                mean_database_seconds=stats.mean_database_seconds,
                blocker_count=stats.blocker_count,
                blocker_duration_seconds=stats.blocker_duration_seconds,
            )
        )
    return ActionReport(field=field, rows=rows)


def timespan_report(aggregator: Aggregator) -> Timespan:
    first, last = aggregator.timespan()
    days = None
    if first is not None and last is not None:
        span = comparable_timestamp(last) - comparable_timestamp(first)
        days = span.total_seconds() / 86400.0
    return Timespan(first_request_at=first, last_request_at=last, days=days)


def hourly_spread_report(aggregator: Aggregator) -> HourlySpread:
    buckets = aggregator.hourly_histogram()
    return HourlySpread(total=sum(buckets), buckets=buckets)


def parse_report_names(names: str | Sequence[str] | None) -> list[str]:
    """Validate report names; None selects every report."""
    if names is None:
        return list(REPORT_NAMES)
    if isinstance(names, str):
        names = names.split(",")
    out = [n.strip().lower() for n in names if n.strip()]
    unknown = [n for n in out if n not in REPORT_NAMES]
    if unknown:
        valid = ", ".join(REPORT_NAMES)
        raise ValueError(f"Unknown report '{unknown[0]}'. Valid values: {valid}.")
    return out


def build_report(
    result: AnalysisResult,
    reports: str | Sequence[str] | None = None,
    *,
    amount: int = DEFAULT_AMOUNT,
) -> AnalysisReport:
    """Build the selected reports for an analysis result."""
    if amount <= 0:
        raise ValueError("amount must be > 0")
    names = parse_report_names(reports)
    aggregator = result.aggregator
    d = result.diagnostics

    report = AnalysisReport(
        request_count=aggregator.global_stats().request_count,
        signature_count=len(aggregator),
        diagnostics=Diagnostics(
            lines_read=d.lines_read,
            malformed_lines=d.malformed_lines,
            unterminated_requests=d.unterminated_requests,
            invalid_requests=d.invalid_requests,
        ),
    )
    for name in names:
        if name == "timespan":
            report.timespan = timespan_report(aggregator)
        elif name == "hourly_spread":
            report.hourly_spread = hourly_spread_report(aggregator)
        else:
            report.actions[name] = action_report(aggregator, ACTION_REPORTS[name], amount)
    return report
