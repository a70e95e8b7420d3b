"""Error types raised by the analysis core."""

from __future__ import annotations


class AnalyzerError(Exception):
    """Base class for request log analyzer errors."""


class InvalidRequest(AnalyzerError, ValueError):
    """A completed request has neither a URL nor a controller/action pair."""


class UnknownField(AnalyzerError, ValueError):
    """A statistic name that the aggregator does not track."""

    def __init__(self, field: str, valid: tuple[str, ...]) -> None:
        super().__init__(f"Unknown field '{field}'. Valid values: {', '.join(valid)}.")
        self.field = field
