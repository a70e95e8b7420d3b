"""Rails log line formats.

Contains parsers for the started/completed lines written by Rails 1 through
current releases, and the classifier that combines them.
"""

from __future__ import annotations

from .base import ClassifiedLine, LineParser, leading_timestamp, parse_timestamp, to_seconds
from .completed import CompletedLineParser
from .composite import CompositeParser, RailsLineClassifier
from .started import ProcessingLineParser, StartedLineParser

__all__ = [
    "ClassifiedLine",
    "CompletedLineParser",
    "CompositeParser",
    "LineParser",
    "ProcessingLineParser",
    "RailsLineClassifier",
    "StartedLineParser",
    "leading_timestamp",
    "parse_timestamp",
    "to_seconds",
]
