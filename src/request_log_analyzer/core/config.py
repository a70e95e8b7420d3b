"""Analyzer configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

from .aggregator import BlockerPolicy
from .models import ALL_LINE_TYPES, LineType

BLOCKER_DURATION_ENV = "REQUEST_LOG_BLOCKER_DURATION"
ESTIMATE_DB_ENV = "REQUEST_LOG_ESTIMATE_DB"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True, slots=True)
class AnalyzerConfig:
    # {COMPLETED} alone is the fast pass: no started lines, no timestamps
    # unless completed lines carry a timestamp prefix.
    line_types: frozenset[LineType] = ALL_LINE_TYPES
    estimate_database_time: bool = False
    blocker_duration_seconds: float = 1.0
    blocker_max_database_fraction: float | None = 0.5
    encoding: str = "utf-8"
    decode_errors: str = "replace"

    @property
    def fast(self) -> bool:
        return LineType.STARTED not in self.line_types

    def blocker_policy(self) -> BlockerPolicy:
        return BlockerPolicy(
            duration_seconds=self.blocker_duration_seconds,
            max_database_fraction=self.blocker_max_database_fraction,
        )


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean (true/false)")


def resolve_config(cfg: AnalyzerConfig | None = None) -> AnalyzerConfig:
    """Return config with optional env overrides applied."""
    if cfg is None:
        cfg = AnalyzerConfig()

    overrides: dict[str, object] = {}

    env = os.getenv(BLOCKER_DURATION_ENV)
    if env:
        try:
            value = float(env)
        except ValueError as exc:
            raise ValueError(f"{BLOCKER_DURATION_ENV} must be a number") from exc
        if value < 0:
            raise ValueError(f"{BLOCKER_DURATION_ENV} must be >= 0")
        overrides["blocker_duration_seconds"] = value

    env = os.getenv(ESTIMATE_DB_ENV)
    if env:
        overrides["estimate_database_time"] = _parse_bool(ESTIMATE_DB_ENV, env)

    if not overrides:
        return cfg
    return replace(cfg, **overrides)
