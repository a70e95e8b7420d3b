"""Streaming aggregation of completed requests per signature."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, replace
from datetime import UTC, datetime

from .errors import UnknownField
from .models import AggregateStats, CompletedRequest, GlobalStats

SORT_FIELDS: tuple[str, ...] = (
    "count",
    "total_duration_seconds",
    "mean_duration_seconds",
    "min_duration_seconds",
    "max_duration_seconds",
    "total_database_seconds",
    "mean_database_seconds",
    "total_view_seconds",
    "mean_view_seconds",
    "blocker_count",
    "blocker_duration_seconds",
)


@dataclass(frozen=True, slots=True)
class BlockerPolicy:
    """When a slow request counts as a blocker.

    A request blocks when it takes at least ``duration_seconds`` and database
    time does not explain it: database time is unknown, or its share of the
    duration is below ``max_database_fraction``. With ``max_database_fraction``
    set to None every slow request counts.
    """

    duration_seconds: float = 1.0
    max_database_fraction: float | None = 0.5

    def __post_init__(self) -> None:
        if self.duration_seconds < 0:
            raise ValueError("duration_seconds must be >= 0")
        if self.max_database_fraction is not None and not 0.0 <= self.max_database_fraction <= 1.0:
            raise ValueError("max_database_fraction must be between 0 and 1")

    def is_blocker(self, request: CompletedRequest) -> bool:
        duration = request.duration_seconds
        if duration < self.duration_seconds:
            return False
        if self.max_database_fraction is None or request.database_seconds is None:
            return True
        if duration <= 0:
            return False
        return request.database_seconds / duration < self.max_database_fraction


def comparable_timestamp(ts: datetime) -> datetime:
    """Naive timestamps are compared as UTC so mixed logs stay orderable."""
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=UTC)


class Aggregator:
    """Accumulate per-signature and global statistics.

    Lifecycle is ``create -> ingest* -> read``. The aggregator owns every
    stats object; readers get copies.
    """

    def __init__(self, blocker_policy: BlockerPolicy | None = None) -> None:
        self.blocker_policy = blocker_policy if blocker_policy is not None else BlockerPolicy()
        self._stats: dict[str, AggregateStats] = {}
        self._global = GlobalStats()

    def __len__(self) -> int:
        return len(self._stats)

    def __contains__(self, signature: object) -> bool:
        return signature in self._stats

    def ingest(self, signature: str, request: CompletedRequest) -> None:
        """Add one request to the statistics of ``signature``.

        Every call counts, so ingesting the same request twice counts it twice.
        """
        stats = self._stats.get(signature)
        if stats is None:
            stats = self._stats[signature] = AggregateStats()

        duration = request.duration_seconds
        stats.count += 1
        stats.total_duration_seconds += duration
        if stats.min_duration_seconds is None or duration < stats.min_duration_seconds:
            stats.min_duration_seconds = duration
        if stats.max_duration_seconds is None or duration > stats.max_duration_seconds:
            stats.max_duration_seconds = duration

        if request.database_seconds is not None:
            stats.total_database_seconds += request.database_seconds
            stats.database_count += 1
        if request.view_seconds is not None:
            stats.total_view_seconds += request.view_seconds
            stats.view_count += 1

        if self.blocker_policy.is_blocker(request):
            stats.blocker_count += 1
            stats.blocker_duration_seconds += duration

        self._update_global(request.timestamp)

    def _update_global(self, ts: datetime | None) -> None:
        g = self._global
        g.request_count += 1
        if ts is None:
            return
        if g.min_timestamp is None or comparable_timestamp(ts) < comparable_timestamp(g.min_timestamp):
            g.min_timestamp = ts
        if g.max_timestamp is None or comparable_timestamp(ts) > comparable_timestamp(g.max_timestamp):
            g.max_timestamp = ts
        # Hour of day as logged, not converted.
        g.hourly_histogram[ts.hour] += 1

    def stats(self, signature: str) -> AggregateStats:
        """Return a copy of one signature's statistics (KeyError if unseen)."""
        return replace(self._stats[signature])

    def items(self) -> Iterator[tuple[str, AggregateStats]]:
        """Yield (signature, stats copy) pairs in signature order."""
        for sig in sorted(self._stats):
            yield sig, replace(self._stats[sig])

    def sorted_by(self, field: str, limit: int | None = None) -> list[tuple[str, AggregateStats]]:
        """Return entries ascending by ``field``, ties broken by signature.

        With ``limit`` only the ``limit`` largest entries are kept, still in
        ascending order; reverse the result for a top-N listing.
        """
        if field not in SORT_FIELDS:
            raise UnknownField(field, SORT_FIELDS)
        if limit is not None and limit < 0:
            raise ValueError("limit must be >= 0")

        def key(item: tuple[str, AggregateStats]) -> tuple[float, str]:
            value = getattr(item[1], field)
            return (value if value is not None else 0.0, item[0])

        ordered = sorted(self._stats.items(), key=key)
        if limit is not None:
            ordered = ordered[-limit:] if limit else []
        return [(sig, replace(stats)) for sig, stats in ordered]

    def global_stats(self) -> GlobalStats:
        g = self._global
        return replace(g, hourly_histogram=list(g.hourly_histogram))

    def timespan(self) -> tuple[datetime | None, datetime | None]:
        return self._global.min_timestamp, self._global.max_timestamp

    def hourly_histogram(self) -> list[int]:
        return list(self._global.hourly_histogram)
