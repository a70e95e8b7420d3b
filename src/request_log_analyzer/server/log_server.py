"""MCP server entrypoint (stdio transport).

Exposes the request log analyzer as an MCP tool so clients can ask for the
slowest or busiest endpoints of a Rails application.

Run locally (stdio):
    python -m request_log_analyzer.server.log_server
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Sequence
from typing import Any

from mcp.server.fastmcp import FastMCP

from request_log_analyzer.tools.analyze import analyze_logs_impl

LOGGER = logging.getLogger(__name__)


def _configure_logging() -> None:
    """Configure a reasonable default logging setup.

    The MCP client typically captures stderr; stdout carries the protocol.
    """
    level_name = os.getenv("REQUEST_LOG_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        stream=sys.stderr,
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


mcp = FastMCP("request-log-analyzer", json_response=True)


@mcp.tool()
async def analyze_logs(
    log_paths: list[str],
    reports: Sequence[str] | None = None,
    limit: int | None = None,
    fast: bool = False,
    guess_database_time: bool | None = None,
    blocker_duration: float | None = None,
) -> dict[str, Any]:
    """Summarize request performance in Rails log files.

    Parameters
    ----------
    log_paths:
        Paths to local Rails log files. Supports plain text and .gz.
    reports:
        Report names to build (default: all). One or more of timespan,
        most_requested, total_time, mean_time, total_db_time, mean_db_time,
        blockers, hourly_spread.
    limit:
        Rows per action report (default 20, hard-capped).
    fast:
        Only read completed lines. Faster, less accurate attribution.
    guess_database_time:
        Estimate database time as duration minus view time when it is not logged.
    blocker_duration:
        Seconds from which a request not explained by database time is a blocker.

    Returns
    -------
    dict:
        {"request_count": int, "signature_count": int, "diagnostics": {...},
         "timespan": {...}, "hourly_spread": {...}, "actions": {report: {...}}}
    """
    return await analyze_logs_impl(
        log_paths=log_paths,
        reports=reports,
        limit=limit,
        fast=fast,
        guess_database_time=guess_database_time,
        blocker_duration=blocker_duration,
    )


def main() -> None:
    """Start the MCP server over stdio."""
    _configure_logging()
    LOGGER.debug("Starting MCP server (transport=stdio)")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
