"""Parser for lines that close a request."""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..models import CompletedEvent, LineType, MalformedLine
from .base import ClassifiedLine, leading_timestamp, to_seconds

_NUM = r"\d+(?:\.\d+)?"

# Rails 1/2, seconds:
#   Completed in 0.21665 (4 reqs/sec) | Rendering: 0.00926 (4%) | DB: 0.00000 (0%) | 200 OK [http://demo.nu/employees]
_SECONDS_RE = re.compile(
    rf"\bCompleted in (?P<duration>{_NUM}) \({_NUM} reqs/sec\)"
    rf"(?: \| Rendering: (?P<view>{_NUM}) \({_NUM}%\))?"
    rf"(?: \| DB: (?P<db>{_NUM}) \({_NUM}%\))?"
    r" \| (?P<status>\d{3})[^\[]*(?:\[(?P<url>[^\]]+)\])?"
)

# Rails 2.2, milliseconds:
#   Completed in 614ms (View: 120, DB: 31) | 200 OK [http://floorplanner.local/demo]
_MILLIS_RE = re.compile(
    rf"\bCompleted in (?P<duration>{_NUM})ms"
    rf" \((?:View: (?P<view>{_NUM}))?(?:, )?(?:DB: (?P<db>{_NUM}))?\)"
    r" \| (?P<status>\d{3})[^\[]*(?:\[(?P<url>[^\]]+)\])?"
)

# Rails 3+, milliseconds, no URL:
#   Completed 200 OK in 614ms (Views: 120.0ms | ActiveRecord: 31.0ms)
_STATUS_FIRST_RE = re.compile(
    rf"\bCompleted (?P<status>\d{{3}})\b[^(]*? in (?P<duration>{_NUM})ms(?: \((?P<detail>[^)]*)\))?"
)
_VIEWS_RE = re.compile(rf"\bViews: (?P<view>{_NUM})ms")
_ACTIVE_RECORD_RE = re.compile(rf"\bActiveRecord: (?P<db>{_NUM})ms")

_CONTROLLER_ACTION_RE = re.compile(r"\b(?P<controller>[A-Z][\w:]*Controller)#(?P<action>\w+)\b")


@dataclass(frozen=True, slots=True)
class CompletedLineParser:
    """Parse the completed line of every supported Rails generation."""

    _teaser = re.compile(r"\bCompleted (?:in |\d{3} )")

    def parse(self, line_no: int, line: str) -> ClassifiedLine:
        if not self._teaser.search(line):
            return None

        try:
            fields = self._match(line)
        except ValueError as e:
            return MalformedLine(line_no, LineType.COMPLETED, str(e))
        if fields is None:
            return MalformedLine(line_no, LineType.COMPLETED, "unrecognized Completed line")

        duration, status, db, view, url = fields
        controller = action = None
        ca = _CONTROLLER_ACTION_RE.search(line)
        if ca:
            controller, action = ca.group("controller"), ca.group("action")

        return CompletedEvent(
            line_no=line_no,
            timestamp=leading_timestamp(line),
            duration_seconds=duration,
            http_status=status,
            database_seconds=db,
            view_seconds=view,
            url=url,
            controller=controller,
            action=action,
        )

    @staticmethod
    def _match(
        line: str,
    ) -> tuple[float, int, float | None, float | None, str | None] | None:
        """Return (duration, status, db, view, url) in seconds, or None if no form matches."""
        m = _SECONDS_RE.search(line)
        if m:
            return (
                float(m.group("duration")),
                int(m.group("status")),
                to_seconds(m.group("db")),
                to_seconds(m.group("view")),
                m.group("url"),
            )

        m = _MILLIS_RE.search(line)
        if m:
            return (
                float(m.group("duration")) / 1000.0,
                int(m.group("status")),
                to_seconds(m.group("db"), milliseconds=True),
                to_seconds(m.group("view"), milliseconds=True),
                m.group("url"),
            )

        m = _STATUS_FIRST_RE.search(line)
        if m:
            detail = m.group("detail") or ""
            views = _VIEWS_RE.search(detail)
            ar = _ACTIVE_RECORD_RE.search(detail)
            return (
                float(m.group("duration")) / 1000.0,
                int(m.group("status")),
                to_seconds(ar.group("db") if ar else None, milliseconds=True),
                to_seconds(views.group("view") if views else None, milliseconds=True),
                None,
            )

        return None
