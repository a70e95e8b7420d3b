"""Module entrypoint.

Allows:
    python -m request_log_analyzer
"""

from __future__ import annotations

from request_log_analyzer.server.log_server import main

if __name__ == "__main__":
    main()
