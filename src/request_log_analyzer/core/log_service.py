"""Log reading and the analysis pipeline.

This module is the main integration point: it reads log files and feeds
classified lines through reconstruction, signature computation and
aggregation.
"""

from __future__ import annotations

import gzip
import logging
from collections.abc import AsyncIterator, Iterable, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path

import aiofiles
from aiofiles.threadpool import wrap

from .aggregator import Aggregator
from .config import AnalyzerConfig
from .errors import InvalidRequest
from .formats import RailsLineClassifier
from .models import CompletedRequest, MalformedLine, ParseDiagnostics
from .reconstruct import RequestReconstructor
from .signature import signature

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AnalysisResult:
    """Aggregated statistics plus input quality counters for one run."""

    aggregator: Aggregator
    diagnostics: ParseDiagnostics = field(default_factory=ParseDiagnostics)


class AnalysisPipeline:
    """Feed lines of one or more streams into a shared aggregator.

    Each stream gets its own reconstructor; pending requests never carry
    over from one file to the next.
    """

    def __init__(
        self,
        config: AnalyzerConfig | None = None,
        *,
        aggregator: Aggregator | None = None,
        diagnostics: ParseDiagnostics | None = None,
    ) -> None:
        self.config = config or AnalyzerConfig()
        self.classifier = RailsLineClassifier(line_types=self.config.line_types)
        if aggregator is None:
            aggregator = Aggregator(self.config.blocker_policy())
        self.aggregator = aggregator
        self.diagnostics = diagnostics if diagnostics is not None else ParseDiagnostics()
        self._reconstructor: RequestReconstructor | None = None

    def begin_stream(self) -> None:
        if self._reconstructor is not None:
            self.end_stream()
        self._reconstructor = RequestReconstructor(
            estimate_database_time=self.config.estimate_database_time,
            diagnostics=self.diagnostics,
        )

    def end_stream(self) -> None:
        if self._reconstructor is not None:
            self._reconstructor.finish()
            self._reconstructor = None

    def feed_line(self, line_no: int, line: str) -> None:
        """Process one raw line of the current stream."""
        if self._reconstructor is None:
            self.begin_stream()

        self.diagnostics.lines_read += 1
        event = self.classifier.classify(line_no, line.rstrip("\r\n"))
        if event is None:
            return
        if isinstance(event, MalformedLine):
            self.diagnostics.malformed_lines += 1
            return

        request = self._reconstructor.feed(event)
        if request is not None:
            self._ingest(request, line_no)

    def _ingest(self, request: CompletedRequest, line_no: int) -> None:
        try:
            key = signature(request)
        except InvalidRequest as e:
            self.diagnostics.invalid_requests += 1
            logger.warning("Dropping request completed at line %d: %s", line_no, e)
            return
        self.aggregator.ingest(key, request)

    def result(self) -> AnalysisResult:
        self.end_stream()
        return AnalysisResult(aggregator=self.aggregator, diagnostics=self.diagnostics)


def analyze_lines(
    lines: Iterable[str],
    *,
    config: AnalyzerConfig | None = None,
    aggregator: Aggregator | None = None,
    diagnostics: ParseDiagnostics | None = None,
) -> AnalysisResult:
    """Analyze one in-memory stream of log lines."""
    pipeline = AnalysisPipeline(config, aggregator=aggregator, diagnostics=diagnostics)
    pipeline.begin_stream()
    for line_no, line in enumerate(lines, start=1):
        pipeline.feed_line(line_no, line)
    return pipeline.result()


@asynccontextmanager
async def _open_text(path: Path, *, encoding: str, decode_errors: str):
    """Open a log file for async text reading (plain or gzip)."""
    if path.suffix.lower() == ".gz":
        f = gzip.open(path, mode="rt", encoding=encoding, errors=decode_errors)
        af = wrap(f)
        try:
            yield af
        finally:
            await af.close()
    else:
        async with aiofiles.open(path, encoding=encoding, errors=decode_errors) as f:
            yield f


async def iter_lines(
    log_path: str | Path,
    *,
    encoding: str = "utf-8",
    decode_errors: str = "replace",
) -> AsyncIterator[tuple[int, str]]:
    """Yield (line_no, line) pairs of a plain or gzipped log file."""
    path = Path(log_path)
    if not path.is_file():
        raise FileNotFoundError(f"Log file not found: {path}")

    async with _open_text(path, encoding=encoding, decode_errors=decode_errors) as f:
        line_no = 1
        async for line in f:
            yield line_no, line.rstrip("\r\n")
            line_no += 1


async def analyze_files(
    log_paths: Sequence[str | Path],
    *,
    config: AnalyzerConfig | None = None,
) -> AnalysisResult:
    """Analyze log files one after another into one aggregator."""
    if not log_paths:
        raise ValueError("At least one log file is required")

    config = config or AnalyzerConfig()
    missing = [str(p) for p in log_paths if not Path(p).is_file()]
    if missing:
        raise FileNotFoundError(f"Log file not found: {', '.join(missing)}")

    pipeline = AnalysisPipeline(config)
    kinds = ", ".join(sorted(t.value for t in config.line_types))
    for log_path in log_paths:
        logger.info("Processing %s log lines from %s", kinds, log_path)
        pipeline.begin_stream()
        async for line_no, line in iter_lines(
            log_path, encoding=config.encoding, decode_errors=config.decode_errors
        ):
            pipeline.feed_line(line_no, line)
        pipeline.end_stream()

    return pipeline.result()
