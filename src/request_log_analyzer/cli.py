from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Sequence
from dataclasses import replace

from request_log_analyzer.core.config import AnalyzerConfig, resolve_config
from request_log_analyzer.core.log_service import analyze_files
from request_log_analyzer.core.models import ALL_LINE_TYPES, LineType
from request_log_analyzer.core.reports import (
    ACTION_REPORTS,
    DEFAULT_AMOUNT,
    AnalysisReport,
    ActionReport,
    build_report,
    parse_report_names,
)

_TITLES = {
    "most_requested": "Top {n} most requested actions",
    "total_time": "Top {n} actions by time - cumulative",
    "mean_time": "Top {n} actions by time - per request mean",
    "total_db_time": "Top {n} actions by database time - cumulative",
    "mean_db_time": "Top {n} actions by database time - per request mean",
    "blockers": "Top {n} mongrel blockers (requests over the blocker duration)",
}


def _configure_logging(verbose: bool) -> None:
    level_name = os.getenv("REQUEST_LOG_LOG_LEVEL", "DEBUG" if verbose else "WARNING").upper()
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, level_name, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _parse_reports(s: str) -> list[str]:
    try:
        return parse_report_names(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _positive_int(s: str) -> int:
    value = int(s)
    if value <= 0:
        raise argparse.ArgumentTypeError("must be > 0")
    return value


def _print_actions(name: str, report: ActionReport, amount: int) -> None:
    print()
    print(_TITLES[name].format(n=amount))
    print("=" * 80)
    for row in report.rows:
        if report.field == "count":
            print(f"{row.signature.ljust(50)}: {row.count} requests")
        elif report.field == "blocker_count":
            print(f"{row.signature.ljust(50)}: {row.blocker_count} blockers [{row.blocker_duration_seconds:.03f}s]")
        else:
            print(f"{row.signature.ljust(50)}: {row.value:10.03f}s [{row.count} requests]")


def _print_report(report: AnalysisReport, names: Sequence[str], amount: int) -> None:
    for name in names:
        if name == "timespan" and report.timespan is not None:
            ts = report.timespan
            first = ts.first_request_at.isoformat(sep=" ") if ts.first_request_at else "-"
            last = ts.last_request_at.isoformat(sep=" ") if ts.last_request_at else "-"
            print()
            print(f"Timestamp first request: {first}")
            print(f"Timestamp last request:  {last}")
            if ts.days is not None:
                print(f"Total time analyzed:     {ts.days:.1f} days")
        elif name == "hourly_spread" and report.hourly_spread is not None:
            spread = report.hourly_spread
            print()
            print("Requests graph - requests per hour of day")
            print("=" * 80)
            peak = max(spread.buckets) or 1
            for hour, n in enumerate(spread.buckets):
                bar = "X" * round(n * 50 / peak)
                print(f"{hour:02d}:00 - {hour + 1:02d}:00 : {n:>8} {bar}")
        elif name in ACTION_REPORTS:
            _print_actions(name, report.actions[name], amount)

    d = report.diagnostics
    print()
    print(
        f"Parsed {report.request_count} requests from {d.lines_read} lines "
        f"({d.malformed_lines} malformed lines, {d.unterminated_requests} unterminated, "
        f"{d.invalid_requests} invalid)."
    )


def main(argv: Sequence[str] | None = None) -> None:
    p = argparse.ArgumentParser(description="Rails log analyzer (request performance summary).")
    p.add_argument("log_paths", nargs="+", help="Rails log files (.log or .gz)")
    p.add_argument("-f", "--fast", action="store_true", help="Only parse completed lines (approximate)")
    p.add_argument(
        "-g",
        "--guess-database-time",
        action="store_true",
        default=None,
        help="Estimate database time as duration minus rendering time when not logged",
    )
    p.add_argument(
        "-o",
        "--output",
        type=_parse_reports,
        default=None,
        help="Comma-separated reports (default: all). Example: timespan,most_requested",
    )
    p.add_argument("-c", "--amount", type=_positive_int, default=DEFAULT_AMOUNT, help="Rows per table")
    p.add_argument("--blocker-duration", type=float, default=None, help="Blocker threshold in seconds (default 1.0)")
    p.add_argument("-v", "--verbose", action="store_true", help="Log diagnostics to stderr")
    args = p.parse_args(argv)

    _configure_logging(args.verbose)
    names = args.output if args.output is not None else parse_report_names(None)

    try:
        cfg = resolve_config(
            AnalyzerConfig(line_types=frozenset({LineType.COMPLETED}) if args.fast else ALL_LINE_TYPES)
        )
        if args.guess_database_time:
            cfg = replace(cfg, estimate_database_time=True)
        if args.blocker_duration is not None:
            if args.blocker_duration < 0:
                raise ValueError("--blocker-duration must be >= 0")
            cfg = replace(cfg, blocker_duration_seconds=args.blocker_duration)

        result = asyncio.run(analyze_files(args.log_paths, config=cfg))
        report = build_report(result, names, amount=args.amount)
    except FileNotFoundError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(2)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)

    _print_report(report, names, args.amount)


if __name__ == "__main__":
    main()
