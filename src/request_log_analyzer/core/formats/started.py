"""Parsers for lines that open a request."""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..models import ControllerActionTarget, LineType, MalformedLine, StartedEvent, UrlTarget
from .base import ClassifiedLine, parse_timestamp


@dataclass(frozen=True, slots=True)
class ProcessingLineParser:
    """Parse Rails 1/2 lines.

    Example::

        Processing PeopleController#index (for 127.0.0.1 at 2008-08-14 21:16:30) [GET]
    """

    _teaser = re.compile(r"\bProcessing \S+#")
    _re = re.compile(
        r"\bProcessing (?P<controller>[\w:]+)#(?P<action>\w+) "
        r"\(for (?P<ip>\S+) at (?P<ts>\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2})\) "
        r"\[(?P<method>[A-Z]+)\]"
    )

    def parse(self, line_no: int, line: str) -> ClassifiedLine:
        if not self._teaser.search(line):
            return None
        m = self._re.search(line)
        if not m:
            return MalformedLine(line_no, LineType.STARTED, "unrecognized Processing line")
        try:
            ts = parse_timestamp(m.group("ts"))
        except ValueError as e:
            return MalformedLine(line_no, LineType.STARTED, str(e))

        return StartedEvent(
            line_no=line_no,
            timestamp=ts,
            remote_addr=m.group("ip"),
            http_method=m.group("method"),
            raw_target=ControllerActionTarget(m.group("controller"), m.group("action")),
        )


@dataclass(frozen=True, slots=True)
class StartedLineParser:
    """Parse Rails 3+ lines.

    Example::

        Started GET "/users/42" for 127.0.0.1 at 2010-03-19 06:40:41 +0100
    """

    _teaser = re.compile(r'\bStarted [A-Z]+ "')
    _re = re.compile(
        r'\bStarted (?P<method>[A-Z]+) "(?P<path>[^"]*)" for (?P<ip>\S+) '
        r"at (?P<ts>\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2})(?: (?P<tz>[+-]\d{4}|UTC))?"
    )

    def parse(self, line_no: int, line: str) -> ClassifiedLine:
        if not self._teaser.search(line):
            return None
        m = self._re.search(line)
        if not m:
            return MalformedLine(line_no, LineType.STARTED, "unrecognized Started line")
        tz = m.group("tz")
        try:
            ts = parse_timestamp(m.group("ts"), "Z" if tz == "UTC" else tz)
        except ValueError as e:
            return MalformedLine(line_no, LineType.STARTED, str(e))

        return StartedEvent(
            line_no=line_no,
            timestamp=ts,
            remote_addr=m.group("ip"),
            http_method=m.group("method"),
            raw_target=UrlTarget(m.group("path")),
        )
