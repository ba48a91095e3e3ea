"""GitHub token and viewer resolution with gh CLI fallback.

Resolution order for the token (stops at first success):
  1. PRINBOX_GITHUB_TOKEN environment variable (a token just for prinbox)
  2. GITHUB_TOKEN environment variable
  3. `gh auth token` (GitHub CLI session: works after `gh auth login`)

prinbox never runs an interactive login itself; it only picks up a token
that already exists.
"""

from __future__ import annotations

import logging
import os
import subprocess

from github import GithubException

logger = logging.getLogger(__name__)

_TOKEN_ENV_VARS = ("PRINBOX_GITHUB_TOKEN", "GITHUB_TOKEN")


def resolve_github_token() -> str | None:
    """Return a GitHub token or None if no valid source is available.

    Never raises: callers should check for None and emit a UsageError.
    """
    for name in _TOKEN_ENV_VARS:
        token = os.environ.get(name)
        if token:
            return token

    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0:
            gh_token = result.stdout.strip()
            if gh_token:
                logger.debug("Resolved GitHub token via gh CLI session.")
                return gh_token
    except (FileNotFoundError, subprocess.TimeoutExpired):
        # gh is not installed or timed out.
        pass

    return None


def resolve_viewer(config: dict, token: str) -> str | None:
    """Login whose own reviews should not count as new activity.

    `current_user` in .prinbox.yml wins; otherwise ask GitHub who owns the
    token. Returns None (suppression off) when GitHub can't tell us.
    """
    if config.get("current_user"):
        return config["current_user"]

    from prinbox_core.gh.pull_request import get_viewer_login

    try:
        return get_viewer_login(token)
    except GithubException as e:
        logger.warning("Could not determine the current GitHub user (%s); own reviews will count as activity.", e.status)
        return None
