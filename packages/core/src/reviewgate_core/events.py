"""Webhook payload parsing.

GitHub Actions writes the triggering webhook payload to ``GITHUB_EVENT_PATH``.
The same file can hold one of three shapes depending on which workflow
triggered the run:

  pull_request (opened)        → assign-reviewers
  pull_request (synchronize)   → check-reviewers, after a push to the PR branch
  pull_request_review          → check-reviewers, after a review is submitted

The ``action`` field is read first and decides which single parser runs.
Nothing here touches the network.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from reviewgate_core.errors import InsufficientData
from reviewgate_core.models import EventKind, Operation, PullRequestContext, ReviewContext

logger = logging.getLogger(__name__)

SYNCHRONIZE_ACTION = "synchronize"


def _get(payload: Any, *keys: str) -> Any:
    """Walk nested dicts, returning None as soon as a level is missing or not a dict."""
    node = payload
    for key in keys:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def _as_int(value: Any) -> int:
    # bool is an int subclass; a boolean PR number is never valid.
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return value


def _decode(body: bytes | str) -> dict:
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InsufficientData(f"event payload is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise InsufficientData("event payload must be a JSON object")
    return payload


def event_kind(operation: Operation, action: str | None) -> EventKind:
    """Decide which payload shape to expect from the operation and the ``action`` discriminator."""
    if operation is Operation.ASSIGN:
        return EventKind.PULL_REQUEST_OPENED
    if action == SYNCHRONIZE_ACTION:
        return EventKind.SYNCHRONIZE
    return EventKind.REVIEW_SUBMITTED


def parse_pull_request_opened(payload: dict) -> PullRequestContext:
    number = _as_int(payload.get("number")) or _as_int(_get(payload, "pull_request", "number"))
    return PullRequestContext(
        author=_get(payload, "pull_request", "user", "login") or "",
        repo_owner=_get(payload, "repository", "owner", "login") or "",
        repo_name=_get(payload, "repository", "name") or "",
        number=number,
    )


def parse_synchronize(payload: dict) -> ReviewContext:
    """Parse a ``pull_request`` event with action ``synchronize``.

    ``after`` is the new head once the push has landed; older deliveries only
    carry it on ``pull_request.head.sha``.
    """
    number = _as_int(payload.get("number")) or _as_int(_get(payload, "pull_request", "number"))
    return ReviewContext(
        author=_get(payload, "pull_request", "user", "login") or "",
        repo_owner=_get(payload, "repository", "owner", "login") or "",
        repo_name=_get(payload, "repository", "name") or "",
        number=number,
        head_sha=payload.get("after") or _get(payload, "pull_request", "head", "sha") or "",
        kind=EventKind.SYNCHRONIZE,
    )


def parse_review_submitted(payload: dict) -> ReviewContext:
    return ReviewContext(
        author=_get(payload, "pull_request", "user", "login") or "",
        repo_owner=_get(payload, "repository", "owner", "login") or "",
        repo_name=_get(payload, "repository", "name") or "",
        number=_as_int(_get(payload, "pull_request", "number")),
        head_sha=_get(payload, "pull_request", "head", "sha") or "",
        reviewer=_get(payload, "review", "user", "login") or "",
        kind=EventKind.REVIEW_SUBMITTED,
    )


_PARSERS = {
    EventKind.PULL_REQUEST_OPENED: parse_pull_request_opened,
    EventKind.SYNCHRONIZE: parse_synchronize,
    EventKind.REVIEW_SUBMITTED: parse_review_submitted,
}


def parse_event(operation: Operation, body: bytes | str) -> PullRequestContext | ReviewContext:
    """Parse raw webhook payload bytes into the context ``operation`` needs.

    Raises InsufficientData when the payload does not match the expected shape.
    """
    payload = _decode(body)
    action = payload.get("action")
    kind = event_kind(operation, action if isinstance(action, str) else None)
    logger.debug("Parsing %s payload (action=%r) for %s", kind.value, action, operation.value)
    return _PARSERS[kind](payload)


def load_event(operation: Operation, path: str | Path) -> PullRequestContext | ReviewContext:
    """Read the event file at ``path`` and parse it for ``operation``."""
    try:
        body = Path(path).read_bytes()
    except OSError as e:
        raise InsufficientData(f"could not read event payload {path}: {e}") from e
    try:
        return parse_event(operation, body)
    except InsufficientData as e:
        raise InsufficientData(f"{path}: {e}") from e
