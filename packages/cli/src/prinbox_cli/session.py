"""Wiring shared by the inbox commands.

Builds the read-state engine on top of the configured store and runs one
refresh against GitHub. Commands get a ready, classified Inbox back.
"""

from __future__ import annotations

import asyncio

import click

from prinbox_core.config import own_review_tolerance
from prinbox_core.gh.pull_request import fetch_pull_requests
from prinbox_core.inbox import Inbox, InboxFilters
from prinbox_core.models import PullRequest
from prinbox_core.mutations import ReadStateEngine
from prinbox_store.read_status import ReadMarkerStore
from prinbox_store.settings import SettingsStore


def require_token(ctx: click.Context) -> str:
    token = ctx.obj["config"].get("github_token")
    if not token:
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )
    return token


def build_engine(ctx: click.Context, viewer: str | None = None) -> ReadStateEngine:
    store = ctx.obj["store"]
    config = ctx.obj["config"]
    try:
        tolerance = own_review_tolerance(config)
    except ValueError as e:
        raise click.UsageError(str(e)) from e
    return ReadStateEngine(ReadMarkerStore(store), viewer=viewer, tolerance=tolerance)


def watched(ctx: click.Context) -> tuple[str, list[str]]:
    """Organization and usernames: stored settings first, then .prinbox.yml."""
    config = ctx.obj["config"]
    settings = SettingsStore(ctx.obj["store"]).load()
    organization = settings.organization or config.get("organization") or ""
    configured = config.get("usernames") or []
    if isinstance(configured, str):
        configured = [configured]
    usernames = settings.usernames or list(configured)
    if not organization or not usernames:
        raise click.UsageError("No organization or usernames configured. Run `prinbox init` first.")
    return organization, usernames


def open_inbox(ctx: click.Context) -> Inbox:
    from prinbox_cli.auth import resolve_viewer

    token = require_token(ctx)
    organization, usernames = watched(ctx)
    engine = build_engine(ctx, viewer=resolve_viewer(ctx.obj["config"], token))
    inbox = Inbox(engine)

    result = asyncio.run(inbox.refresh(lambda: fetch_pull_requests(organization, usernames, token)))
    if not result.ok:
        raise click.ClickException(f"Failed to fetch pull requests: {result.error}")
    return inbox


def filters_from(
    config: dict,
    users: tuple[str, ...] = (),
    show_all: bool | None = None,
    drafts: bool | None = None,
    sort_by: str | None = None,
) -> InboxFilters:
    unread_only = not show_all if show_all is not None else bool(config.get("unread_only", True))
    return InboxFilters(
        usernames=list(users) or None,
        unread_only=unread_only,
        show_drafts=drafts if drafts is not None else bool(config.get("show_drafts", False)),
        sort_by=sort_by or config.get("sort", "updated"),
    )


def find_pull_request(inbox: Inbox, ref: str) -> PullRequest:
    """Look up a pull request by id, `#number` or `owner/repo#number`."""
    if ref.isdigit():
        pr = inbox.get(int(ref))
        if pr is not None:
            return pr

    repo, _, number = ref.rpartition("#")
    if number.isdigit():
        matches = [
            pr
            for pr in inbox.pull_requests
            if pr.number == int(number) and (not repo or pr.repository.full_name == repo)
        ]
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            raise click.UsageError(f"{ref} is ambiguous; use owner/repo#number or the pull request id.")

    raise click.UsageError(f"No open pull request matches {ref!r}.")
