"""Request reconstruction: pair started lines with their completed lines.

Matching is FIFO. Lines of one logical request are assumed to be written in
order and not interleaved with other requests in the same stream, so the
oldest pending started line always belongs to the next completed line.
Logs written by several workers into one file are not correlated.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable, Iterator

from .models import (
    CompletedEvent,
    CompletedRequest,
    ControllerActionTarget,
    LineEvent,
    ParseDiagnostics,
    PendingRequest,
    RequestTarget,
    StartedEvent,
    UrlTarget,
)

logger = logging.getLogger(__name__)


def _resolve_target(event: CompletedEvent, pending: PendingRequest | None) -> RequestTarget | None:
    """Prefer a URL from either line, then a controller/action pair."""
    if event.url:
        return UrlTarget(event.url)
    if pending is not None and isinstance(pending.target, UrlTarget):
        return pending.target
    if event.controller and event.action:
        return ControllerActionTarget(event.controller, event.action)
    if pending is not None:
        return pending.target
    return None


def estimate_database_seconds(event: CompletedEvent) -> float | None:
    """Attribute everything that is not view time to the database."""
    if event.database_seconds is not None:
        return event.database_seconds
    if event.view_seconds is None:
        return None
    return max(0.0, event.duration_seconds - event.view_seconds)


class RequestReconstructor:
    """Turn a stream of line events into completed request records."""

    def __init__(
        self,
        *,
        estimate_database_time: bool = False,
        diagnostics: ParseDiagnostics | None = None,
    ) -> None:
        self.estimate_database_time = estimate_database_time
        self.diagnostics = diagnostics if diagnostics is not None else ParseDiagnostics()
        self._pending: deque[PendingRequest] = deque()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def feed(self, event: LineEvent) -> CompletedRequest | None:
        """Consume one event; return a request when a completed line closes one."""
        if isinstance(event, StartedEvent):
            self._pending.append(
                PendingRequest(
                    line_no=event.line_no,
                    timestamp=event.timestamp,
                    http_method=event.http_method,
                    target=event.raw_target,
                )
            )
            return None

        pending = self._pending.popleft() if self._pending else None
        return self._merge(event, pending)

    def _merge(self, event: CompletedEvent, pending: PendingRequest | None) -> CompletedRequest:
        if self.estimate_database_time:
            db = estimate_database_seconds(event)
        else:
            db = event.database_seconds

        timestamp = event.timestamp
        if timestamp is None and pending is not None:
            timestamp = pending.timestamp

        return CompletedRequest(
            duration_seconds=event.duration_seconds,
            target=_resolve_target(event, pending),
            timestamp=timestamp,
            database_seconds=db,
            view_seconds=event.view_seconds,
            http_status=event.http_status,
            http_method=pending.http_method if pending is not None else None,
        )

    def finish(self) -> int:
        """Discard requests still waiting for a completed line; return how many."""
        dropped = len(self._pending)
        if dropped:
            first = self._pending[0].line_no
            logger.warning(
                "Discarding %d unterminated request(s); first started at line %d",
                dropped,
                first,
            )
            self.diagnostics.unterminated_requests += dropped
            self._pending.clear()
        return dropped

    def reconstruct(self, events: Iterable[LineEvent]) -> Iterator[CompletedRequest]:
        """Yield completed requests for a whole event stream, then finish it."""
        for event in events:
            request = self.feed(event)
            if request is not None:
                yield request
        self.finish()
