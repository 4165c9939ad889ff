"""GitHub token resolution.

Resolution order (stops at first success):
  1. --token flag
  2. GITHUB_TOKEN environment variable (what Actions workflows pass in)
  3. `gh auth token`, so a maintainer can re-run a check locally after `gh auth login`
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)


def _token_from_gh_cli() -> str | None:
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        # No gh binary, or it hung waiting on a keyring.
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def resolve_github_token(explicit: str | None = None) -> str | None:
    """Return a GitHub token or None if no source provides one.

    Never raises; the caller turns None into a configuration error.
    """
    if explicit:
        return explicit

    token = os.environ.get("GITHUB_TOKEN")
    if token:
        return token

    token = _token_from_gh_cli()
    if token:
        logger.debug("Resolved GitHub token via gh CLI session.")
    return token
