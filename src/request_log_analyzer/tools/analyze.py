"""MCP tool implementations.

This module contains the *implementation* behind the exposed MCP tools.
Keep this layer thin: validate inputs, translate them into core calls, and
return JSON-serializable data structures.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from typing import Any

from request_log_analyzer.core.config import AnalyzerConfig, resolve_config
from request_log_analyzer.core.log_service import analyze_files
from request_log_analyzer.core.models import ALL_LINE_TYPES, LineType
from request_log_analyzer.core.reports import DEFAULT_AMOUNT, build_report

HARD_LIMIT = 500


async def analyze_logs_impl(
    *,
    log_paths: Sequence[str],
    reports: Sequence[str] | None = None,
    limit: int | None = None,
    fast: bool = False,
    guess_database_time: bool | None = None,
    blocker_duration: float | None = None,
) -> dict[str, Any]:
    """Implementation for the `analyze_logs` MCP tool.

    Notes
    -----
    - ``fast`` only reads completed lines: quicker, but requests lose the
      timestamps and targets logged on their started lines.
    - ``limit`` caps rows per report and is hard-capped at HARD_LIMIT.
    - Explicit arguments win over environment overrides.
    """
    if isinstance(log_paths, str):
        log_paths = [log_paths]
    if limit is None:
        limit = DEFAULT_AMOUNT
    if limit <= 0:
        raise ValueError("limit must be > 0")
    limit = min(limit, HARD_LIMIT)

    cfg = resolve_config(
        AnalyzerConfig(line_types=frozenset({LineType.COMPLETED}) if fast else ALL_LINE_TYPES)
    )
    if guess_database_time is not None:
        cfg = replace(cfg, estimate_database_time=guess_database_time)
    if blocker_duration is not None:
        if blocker_duration < 0:
            raise ValueError("blocker_duration must be >= 0")
        cfg = replace(cfg, blocker_duration_seconds=blocker_duration)

    result = await analyze_files(list(log_paths), config=cfg)
    report = build_report(result, reports, amount=limit)
    return report.model_dump(mode="json", exclude_none=True)
