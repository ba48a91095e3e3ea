"""read, toggle, read-all and undo: mutate the local read state."""

from __future__ import annotations

import click
from rich.console import Console

from prinbox_cli.session import build_engine, filters_from, find_pull_request, open_inbox

console = Console()

_UNDO_HINT = "[dim]Run `prinbox undo` to revert.[/dim]"


@click.command("read")
@click.argument("ref")
@click.pass_context
def read_cmd(ctx, ref: str):
    """Mark one pull request read (REF is an id, #number or owner/repo#number)."""
    inbox = open_inbox(ctx)
    pr = find_pull_request(inbox, ref)
    inbox.mark_read(pr)
    console.print(f'[green]Marked as read:[/green] "{pr.title}"')
    console.print(_UNDO_HINT)


@click.command("toggle")
@click.argument("ref")
@click.pass_context
def toggle_cmd(ctx, ref: str):
    """Flip one pull request between read and unread."""
    inbox = open_inbox(ctx)
    pr = find_pull_request(inbox, ref)
    was_read = inbox.engine.is_read(pr)
    result = inbox.toggle(pr)
    now_unread = result.pull_requests[0].has_new_activity
    if was_read and not now_unread:
        console.print(f'[yellow]Still read:[/yellow] "{pr.title}" (your own review is the latest activity)')
        return
    state = "unread" if now_unread else "read"
    console.print(f'[green]Marked as {state}:[/green] "{pr.title}"')
    console.print(_UNDO_HINT)


@click.command("read-all")
@click.option("--drafts/--no-drafts", default=None, help="Include draft pull requests.")
@click.option("--user", "users", multiple=True, help="Only pull requests by this author (repeatable).")
@click.pass_context
def read_all_cmd(ctx, drafts: bool | None, users):
    """Mark every pull request in the current view read."""
    inbox = open_inbox(ctx)
    filters = filters_from(ctx.obj["config"], users=users, show_all=False, drafts=drafts)
    result = inbox.mark_all_read(filters)
    console.print(f"[green]Marked {len(result.pull_requests)} pull requests as read[/green]")
    console.print(_UNDO_HINT)


@click.command("undo")
@click.pass_context
def undo_cmd(ctx):
    """Restore read state from before the last read/unread change."""
    engine = build_engine(ctx)
    restored = engine.undo()
    if restored is None:
        console.print("[yellow]Nothing to undo.[/yellow]")
        return
    console.print(f"[green]Read status restored[/green] ({len(restored)} pull requests marked read)")
