from __future__ import annotations

from datetime import datetime

import pytest

from request_log_analyzer.core.models import (
    CompletedEvent,
    ControllerActionTarget,
    ParseDiagnostics,
    StartedEvent,
    UrlTarget,
)
from request_log_analyzer.core.reconstruct import RequestReconstructor, estimate_database_seconds


def _started(line_no: int, path: str, hour: int = 10) -> StartedEvent:
    return StartedEvent(
        line_no=line_no,
        timestamp=datetime(2024, 1, 15, hour, 0, 0),
        remote_addr="127.0.0.1",
        http_method="GET",
        raw_target=UrlTarget(path),
    )


def test_fifo_matching_pairs_oldest_started_first() -> None:
    rec = RequestReconstructor()
    assert rec.feed(_started(1, "/a", hour=8)) is None
    assert rec.feed(_started(2, "/b", hour=9)) is None
    assert rec.pending_count == 2

    # The completed lines name the other request; matching is positional.
    first = rec.feed(CompletedEvent(line_no=3, duration_seconds=0.1, controller="BController", action="x"))
    second = rec.feed(CompletedEvent(line_no=4, duration_seconds=0.2, controller="AController", action="x"))

    assert first is not None and second is not None
    assert first.target == UrlTarget("/a")
    assert first.timestamp == datetime(2024, 1, 15, 8, 0, 0)
    assert second.target == UrlTarget("/b")
    assert second.timestamp == datetime(2024, 1, 15, 9, 0, 0)
    assert rec.pending_count == 0


def test_completed_url_wins_over_started_target() -> None:
    rec = RequestReconstructor()
    rec.feed(
        StartedEvent(
            line_no=1,
            timestamp=datetime(2008, 8, 14, 21, 16, 30),
            remote_addr="127.0.0.1",
            http_method="GET",
            raw_target=ControllerActionTarget("PeopleController", "show"),
        )
    )
    req = rec.feed(CompletedEvent(line_no=2, duration_seconds=0.3, url="http://demo.nu/people/1"))
    assert req is not None
    assert req.target == UrlTarget("http://demo.nu/people/1")
    assert req.http_method == "GET"


def test_started_controller_action_used_when_completed_has_no_target() -> None:
    rec = RequestReconstructor()
    rec.feed(
        StartedEvent(
            line_no=1,
            timestamp=None,
            remote_addr=None,
            http_method="POST",
            raw_target=ControllerActionTarget("PeopleController", "create"),
        )
    )
    req = rec.feed(CompletedEvent(line_no=2, duration_seconds=0.3))
    assert req is not None
    assert req.target == ControllerActionTarget("PeopleController", "create")


def test_self_contained_completed_without_pending() -> None:
    rec = RequestReconstructor()
    req = rec.feed(
        CompletedEvent(line_no=1, duration_seconds=0.4, http_status=200, url="/people", database_seconds=0.1)
    )
    assert req is not None
    assert req.target == UrlTarget("/people")
    assert req.timestamp is None
    assert req.database_seconds == 0.1
    assert req.http_method is None


def test_completed_without_any_target_yields_request_without_target() -> None:
    req = RequestReconstructor().feed(CompletedEvent(line_no=1, duration_seconds=0.4))
    assert req is not None
    assert req.target is None


def test_completed_timestamp_wins_over_started() -> None:
    rec = RequestReconstructor()
    rec.feed(_started(1, "/a", hour=8))
    req = rec.feed(
        CompletedEvent(line_no=2, duration_seconds=0.1, timestamp=datetime(2024, 1, 15, 8, 0, 5))
    )
    assert req is not None
    assert req.timestamp == datetime(2024, 1, 15, 8, 0, 5)


def test_finish_counts_unterminated_requests() -> None:
    diagnostics = ParseDiagnostics()
    rec = RequestReconstructor(diagnostics=diagnostics)
    rec.feed(_started(1, "/a"))
    rec.feed(_started(2, "/b"))
    rec.feed(CompletedEvent(line_no=3, duration_seconds=0.1))

    assert rec.finish() == 1
    assert diagnostics.unterminated_requests == 1
    assert rec.pending_count == 0
    assert rec.finish() == 0


def test_reconstruct_generator_finishes_stream() -> None:
    rec = RequestReconstructor()
    events = [_started(1, "/a"), CompletedEvent(line_no=2, duration_seconds=0.1), _started(3, "/b")]
    requests = list(rec.reconstruct(events))
    assert [r.target for r in requests] == [UrlTarget("/a")]
    assert rec.diagnostics.unterminated_requests == 1


def test_estimation_mode_derives_database_time() -> None:
    rec = RequestReconstructor(estimate_database_time=True)
    req = rec.feed(CompletedEvent(line_no=1, duration_seconds=1.0, view_seconds=0.25, url="/a"))
    assert req is not None
    assert req.database_seconds == pytest.approx(0.75)


def test_estimation_mode_off_leaves_database_time_unknown() -> None:
    req = RequestReconstructor().feed(
        CompletedEvent(line_no=1, duration_seconds=1.0, view_seconds=0.25, url="/a")
    )
    assert req is not None
    assert req.database_seconds is None


@pytest.mark.parametrize(
    ("event", "expected"),
    [
        (CompletedEvent(line_no=1, duration_seconds=1.0, database_seconds=0.2, view_seconds=0.1), 0.2),
        (CompletedEvent(line_no=1, duration_seconds=0.5, view_seconds=0.9), 0.0),
        (CompletedEvent(line_no=1, duration_seconds=0.5), None),
    ],
)
def test_estimate_database_seconds(event: CompletedEvent, expected: float | None) -> None:
    assert estimate_database_seconds(event) == expected
