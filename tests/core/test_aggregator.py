from __future__ import annotations

from datetime import UTC, datetime

import pytest

from request_log_analyzer.core.aggregator import SORT_FIELDS, Aggregator, BlockerPolicy
from request_log_analyzer.core.errors import UnknownField
from request_log_analyzer.core.models import CompletedRequest, UrlTarget


def _req(duration: float, db: float | None = None, ts: datetime | None = None, view: float | None = None):
    return CompletedRequest(
        duration_seconds=duration,
        target=UrlTarget("/x"),
        timestamp=ts,
        database_seconds=db,
        view_seconds=view,
    )


def test_ingest_accumulates_counts_and_totals() -> None:
    agg = Aggregator()
    agg.ingest("/users/:id/", _req(0.5, db=0.1))
    agg.ingest("/users/:id/", _req(2.0, db=0.05))

    stats = agg.stats("/users/:id/")
    assert stats.count == 2
    assert stats.total_duration_seconds == pytest.approx(2.5)
    assert stats.total_database_seconds == pytest.approx(0.15)
    assert stats.blocker_count == 1
    assert stats.blocker_duration_seconds == pytest.approx(2.0)
    assert stats.min_duration_seconds == 0.5
    assert stats.max_duration_seconds == 2.0


def test_count_increments_by_one_and_mean_matches_total() -> None:
    agg = Aggregator()
    for i, duration in enumerate([0.1, 0.7, 1.3, 0.2], start=1):
        agg.ingest("/a/", _req(duration))
        stats = agg.stats("/a/")
        assert stats.count == i
        assert stats.mean_duration_seconds * stats.count == pytest.approx(stats.total_duration_seconds)


def test_mean_database_time_divides_by_known_count() -> None:
    agg = Aggregator()
    agg.ingest("/a/", _req(1.0, db=0.4))
    agg.ingest("/a/", _req(1.0))
    stats = agg.stats("/a/")
    assert stats.database_count == 1
    assert stats.mean_database_seconds == pytest.approx(0.4)
    assert stats.mean_duration_seconds == pytest.approx(1.0)


def test_duplicate_ingest_counts_twice() -> None:
    agg = Aggregator()
    req = _req(0.3)
    agg.ingest("/a/", req)
    agg.ingest("/a/", req)
    assert agg.stats("/a/").count == 2


@pytest.mark.parametrize(
    ("duration", "db", "expected"),
    [
        (0.9, None, False),
        (1.0, None, True),
        (1.5, 0.1, True),
        (1.5, 1.2, False),
        (2.0, 1.0, False),
    ],
)
def test_default_blocker_policy(duration: float, db: float | None, expected: bool) -> None:
    assert BlockerPolicy().is_blocker(_req(duration, db=db)) is expected


def test_blocker_policy_without_database_check() -> None:
    policy = BlockerPolicy(duration_seconds=0.5, max_database_fraction=None)
    assert policy.is_blocker(_req(0.6, db=0.6))


def test_blocker_policy_rejects_bad_fraction() -> None:
    with pytest.raises(ValueError):
        BlockerPolicy(max_database_fraction=1.5)


def test_global_stats_timespan_and_histogram() -> None:
    agg = Aggregator()
    agg.ingest("/a/", _req(0.1, ts=datetime(2024, 1, 15, 10, 0, 0)))
    agg.ingest("/a/", _req(0.1, ts=datetime(2024, 1, 14, 23, 59, 0)))
    agg.ingest("/b/", _req(0.1, ts=datetime(2024, 1, 15, 10, 30, 0)))
    agg.ingest("/b/", _req(0.1))

    first, last = agg.timespan()
    assert first == datetime(2024, 1, 14, 23, 59, 0)
    assert last == datetime(2024, 1, 15, 10, 30, 0)

    hist = agg.hourly_histogram()
    assert len(hist) == 24
    assert hist[10] == 2
    assert hist[23] == 1
    assert sum(hist) == 3
    assert agg.global_stats().request_count == 4


def test_timespan_with_mixed_naive_and_aware_timestamps() -> None:
    agg = Aggregator()
    agg.ingest("/a/", _req(0.1, ts=datetime(2024, 1, 15, 10, 0, 0)))
    agg.ingest("/a/", _req(0.1, ts=datetime(2024, 1, 15, 9, 0, 0, tzinfo=UTC)))
    first, last = agg.timespan()
    assert first == datetime(2024, 1, 15, 9, 0, 0, tzinfo=UTC)
    assert last == datetime(2024, 1, 15, 10, 0, 0)


def test_sorted_by_ascending_with_lexicographic_ties() -> None:
    agg = Aggregator()
    for sig in ("/b/", "/a/", "/c/", "/c/"):
        agg.ingest(sig, _req(0.1))

    ordered = [sig for sig, _ in agg.sorted_by("count")]
    assert ordered == ["/a/", "/b/", "/c/"]
    assert [sig for sig, _ in agg.sorted_by("count")] == ordered


def test_sorted_by_limit_keeps_largest() -> None:
    agg = Aggregator()
    agg.ingest("/slow/", _req(3.0))
    agg.ingest("/mid/", _req(1.0))
    agg.ingest("/fast/", _req(0.1))

    top = agg.sorted_by("total_duration_seconds", limit=2)
    assert [sig for sig, _ in top] == ["/mid/", "/slow/"]
    assert agg.sorted_by("count", limit=0) == []


def test_sorted_by_unknown_field() -> None:
    agg = Aggregator()
    with pytest.raises(UnknownField):
        agg.sorted_by("median")


def test_all_sort_fields_are_accepted() -> None:
    agg = Aggregator()
    agg.ingest("/a/", _req(0.1))
    for field in SORT_FIELDS:
        assert len(agg.sorted_by(field)) == 1


def test_snapshots_are_copies() -> None:
    agg = Aggregator()
    agg.ingest("/a/", _req(0.1, ts=datetime(2024, 1, 15, 10, 0, 0)))

    stats = agg.stats("/a/")
    stats.count = 99
    agg.hourly_histogram()[10] = 99
    agg.global_stats().hourly_histogram[10] = 99
    _, listed = agg.sorted_by("count")[0]
    listed.count = 42

    assert agg.stats("/a/").count == 1
    assert agg.hourly_histogram()[10] == 1
    assert "/a/" in agg
    assert len(agg) == 1
