from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

RAILS2_LINES = [
    "Processing PeopleController#index (for 127.0.0.1 at 2008-08-14 21:16:30) [GET]",
    '  Parameters: {"action"=>"index", "controller"=>"people"}',
    "Rendering template within layouts/default",
    "Completed in 0.21665 (4 reqs/sec) | Rendering: 0.00926 (4%) | DB: 0.00000 (0%) | 200 OK [http://demo.nu/people]",
    "",
    "Processing PeopleController#show (for 127.0.0.1 at 2008-08-14 21:16:31) [GET]",
    "Completed in 1.50000 (0 reqs/sec) | Rendering: 1.20000 (80%) | DB: 0.10000 (6%) | 200 OK [http://demo.nu/people/12?format=html]",
    "",
    "Processing PeopleController#show (for 127.0.0.1 at 2008-08-14 22:01:02) [GET]",
    "Completed in 614ms (View: 120, DB: 31) | 200 OK [http://demo.nu/people/13]",
]

RAILS3_LINES = [
    'Started GET "/users/42" for 127.0.0.1 at 2024-01-15 10:00:00 +0000',
    "Processing by UsersController#show as HTML",
    "Completed 200 OK in 500ms (Views: 300.0ms | ActiveRecord: 100.0ms)",
    'Started GET "/users/43" for 127.0.0.1 at 2024-01-15 10:00:01 +0000',
    "Processing by UsersController#show as HTML",
    "Completed 200 OK in 2000ms (Views: 1900.0ms | ActiveRecord: 50.0ms)",
]


@pytest.fixture
def write_rails2_log() -> Callable[[Path], None]:
    def _write(path: Path) -> None:
        path.write_text("\n".join(RAILS2_LINES) + "\n", encoding="utf-8")

    return _write


@pytest.fixture
def write_rails3_log() -> Callable[[Path], None]:
    def _write(path: Path) -> None:
        path.write_text("\n".join(RAILS3_LINES) + "\n", encoding="utf-8")

    return _write


@pytest.fixture
def write_bytes() -> Callable[[Path, list[bytes]], None]:
    def _write(path: Path, lines: list[bytes]) -> None:
        path.write_bytes(b"".join(line + b"\n" for line in lines))

    return _write


@pytest.fixture
def rails2_lines() -> list[str]:
    return list(RAILS2_LINES)


@pytest.fixture
def rails3_lines() -> list[str]:
    return list(RAILS3_LINES)
