"""Classifier interface and shared field helpers."""

from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import datetime
from typing import Protocol

from ..models import LineEvent, MalformedLine

ClassifiedLine = LineEvent | MalformedLine | None

# Optional "<timestamp> " prefix written by tagged/syslog style loggers.
_LEADING_TS_RE = re.compile(
    r"^\[?(?P<ts>\d{4}-\d{2}-\d{2}[ T]\d{2}:\d{2}:\d{2})(?:\.\d+)?(?P<tz>Z|[+-]\d{2}:?\d{2})?\]?\s"
)

TIMESTAMP_FORMATS: Sequence[str] = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
)


class LineParser(Protocol):
    """Parser interface: an event if the line is recognized, else None."""

    def parse(self, line_no: int, line: str) -> ClassifiedLine:
        """Parse one log line.

        Returns a MalformedLine when the line carries a known marker but its
        fields cannot be read.
        """
        ...


def parse_timestamp(value: str, tz: str | None = None) -> datetime:
    """Parse a logged wall-clock timestamp; raises ValueError on bad input."""
    for fmt in TIMESTAMP_FORMATS:
        try:
            ts = datetime.strptime(value, fmt)
        except ValueError:
            continue
        if tz:
            offset = datetime.strptime(_normalize_tz(tz), "%z").tzinfo
            ts = ts.replace(tzinfo=offset)
        return ts
    raise ValueError(f"unrecognized timestamp {value!r}")


def _normalize_tz(tz: str) -> str:
    if tz == "Z":
        return "+0000"
    return tz.replace(":", "")


def leading_timestamp(line: str) -> datetime | None:
    """Return the timestamp prefix of a line, if it has a readable one."""
    m = _LEADING_TS_RE.match(line)
    if not m:
        return None
    try:
        return parse_timestamp(m.group("ts"), m.group("tz"))
    except ValueError:
        return None


def to_seconds(value: str | None, *, milliseconds: bool = False) -> float | None:
    """Convert an integer or fractional duration field to seconds."""
    if value is None:
        return None
    number = float(value)
    return number / 1000.0 if milliseconds else number
