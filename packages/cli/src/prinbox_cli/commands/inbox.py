"""inbox command: list open pull requests with their read state and review verdict."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from prinbox_cli.session import filters_from, open_inbox
from prinbox_core.grouping import GROUPINGS, SORT_FIELDS
from prinbox_core.models import PullRequest, ReviewVerdict
from prinbox_core.utils.time import format_relative

console = Console()

_VERDICT_STYLE = {
    ReviewVerdict.APPROVED: ("green", "approved"),
    ReviewVerdict.CHANGES_REQUESTED: ("red", "changes requested"),
    ReviewVerdict.COMMENTED: ("yellow", "commented"),
    ReviewVerdict.NONE: ("dim", "no reviews"),
}


def _verdict_cell(pr: PullRequest) -> str:
    style, text = _VERDICT_STYLE[pr.review_status]
    return f"[{style}]{text}[/{style}]"


def _reviewers_cell(pr: PullRequest) -> str:
    return ", ".join(f"{login} ({verdict.value.lower()})" for login, verdict in pr.reviewers.items())


def _pr_table(title: str, pull_requests: list[PullRequest], sort_by: str) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan", title_justify="left")
    table.add_column("", width=1)
    table.add_column("ID", style="dim")
    table.add_column("PR", style="bold")
    table.add_column("Title", max_width=50)
    table.add_column("Author")
    table.add_column("Review")
    table.add_column("Reviewers", max_width=40)
    table.add_column("Updated" if sort_by == "updated" else "Created")

    for pr in pull_requests:
        stamp = pr.updated_at if sort_by == "updated" else pr.created_at
        title_text = f"[dim](draft)[/dim] {pr.title}" if pr.draft else pr.title
        table.add_row(
            "[bold blue]●[/bold blue]" if pr.has_new_activity else "",
            str(pr.id),
            f"{pr.repository.name}#{pr.number}",
            title_text,
            pr.user.login,
            _verdict_cell(pr),
            _reviewers_cell(pr),
            format_relative(stamp),
        )
    return table


@click.command("inbox")
@click.option("--group", type=click.Choice(GROUPINGS), default=None, help="Group by repository or author.")
@click.option("--sort", "sort_by", type=click.Choice(SORT_FIELDS), default=None, help="Order by last update or creation.")
@click.option("--all/--unread-only", "show_all", default=None, help="Include pull requests with nothing new.")
@click.option("--drafts/--no-drafts", default=None, help="Include draft pull requests.")
@click.option("--user", "users", multiple=True, help="Only show pull requests by this author (repeatable).")
@click.pass_context
def inbox_cmd(ctx, group: str | None, sort_by: str | None, show_all: bool | None, drafts: bool | None, users):
    """Show open pull requests by the watched authors.

    A blue dot marks pull requests with activity you haven't seen since you
    last marked them read.
    """
    config = ctx.obj["config"]
    inbox = open_inbox(ctx)
    filters = filters_from(config, users=users, show_all=show_all, drafts=drafts, sort_by=sort_by)
    view = inbox.view(filters)

    if not view.pull_requests:
        if filters.unread_only and inbox.pull_requests:
            console.print("[green]All caught up: nothing new.[/green]")
        else:
            console.print("[yellow]No pull requests found. Try adding more users or check the organization name.[/yellow]")
        return

    console.print(f"\n[bold]{len(view.pull_requests)} pull requests, {view.unread_count} with new activity[/bold]\n")

    if (group or config.get("group", "repository")) == "author":
        for author_group in view.author_groups:
            console.print(_pr_table(author_group.user.login, author_group.pull_requests, filters.sort_by))
    else:
        for repo_group in view.repository_groups:
            console.print(_pr_table(repo_group.repository.full_name, repo_group.pull_requests, filters.sort_by))
