"""Request signatures: the grouping key for aggregation.

Variable URL segments are folded so that requests for the same endpoint share
one key: ``/users/42?page=2`` and ``http://host/users/7`` both become
``/users/:id/``.
"""

from __future__ import annotations

import re

from .errors import InvalidRequest
from .models import CompletedRequest, ControllerActionTarget, RequestTarget, UrlTarget

_SCHEME_HOST_RE = re.compile(r"^[a-z][a-z0-9+.\-]*://[^/?#]*")

# Order matters: a date must not be folded as three ids.
_FOLDS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"/\d+-\d+-\d+"), "/:date"),
    (re.compile(r"/\d+-\d+"), "/:month"),
    (re.compile(r"/\d+"), "/:id"),
)


def normalize_url(url: str) -> str:
    """Reduce a logged URL to its path shape."""
    path = _SCHEME_HOST_RE.sub("", url.lower(), count=1)
    path = path.split("?", 1)[0]
    if not path:
        # host-only URLs address the root page
        return "/"
    if len(path) > 1 and not path.endswith("/"):
        path += "/"

    for pattern, replacement in _FOLDS:
        path = pattern.sub(replacement, path)
    return path


def target_signature(target: RequestTarget | None) -> str:
    """Return the signature for a request target."""
    match target:
        case UrlTarget(url=url):
            return normalize_url(url)
        case ControllerActionTarget(controller=controller, action=action) if controller and action:
            return f"{controller}#{action}"
        case _:
            raise InvalidRequest(f"Cannot compute a signature for target {target!r}")


def signature(request: CompletedRequest) -> str:
    """Return the grouping key of a completed request."""
    return target_signature(request.target)
