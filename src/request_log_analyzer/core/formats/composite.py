"""Line classification over the supported Rails line shapes."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from ..models import ALL_LINE_TYPES, LineType, MalformedLine
from .base import ClassifiedLine, LineParser
from .completed import CompletedLineParser
from .started import ProcessingLineParser, StartedLineParser

logger = logging.getLogger(__name__)

_PARSERS_BY_TYPE: dict[LineType, tuple[LineParser, ...]] = {
    LineType.STARTED: (ProcessingLineParser(), StartedLineParser()),
    LineType.COMPLETED: (CompletedLineParser(),),
}


@dataclass(frozen=True, slots=True)
class CompositeParser:
    """Try parsers in order and return the first non-None result."""

    parsers: Sequence[LineParser]

    def parse(self, line_no: int, line: str) -> ClassifiedLine:
        for p in self.parsers:
            out = p.parse(line_no, line)
            if out is not None:
                return out
        return None


@dataclass(frozen=True, slots=True)
class RailsLineClassifier:
    """Classify raw lines into started/completed events.

    ``line_types`` restricts which kinds are recognized: ``{COMPLETED}`` alone
    is the fast, approximate pass; both kinds give accurate attribution.
    Lines of other kinds are treated as irrelevant.
    """

    line_types: frozenset[LineType] = ALL_LINE_TYPES
    _parser: CompositeParser = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.line_types:
            raise ValueError("line_types must not be empty")
        parsers: list[LineParser] = []
        for line_type in (LineType.STARTED, LineType.COMPLETED):
            if line_type in self.line_types:
                parsers.extend(_PARSERS_BY_TYPE[line_type])
        object.__setattr__(self, "_parser", CompositeParser(parsers=parsers))

    @classmethod
    def for_types(cls, line_types: Iterable[LineType | str]) -> RailsLineClassifier:
        return cls(line_types=frozenset(LineType(t) for t in line_types))

    def classify(self, line_no: int, line: str) -> ClassifiedLine:
        out = self._parser.parse(line_no, line)
        if isinstance(out, MalformedLine):
            logger.debug("Skipping malformed %s line %d: %s", out.line_type.value, line_no, out.reason)
        return out
