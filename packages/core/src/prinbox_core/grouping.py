"""Grouping, sorting and filtering of classified pull requests.

Everything here is a pure function of its input; groups are rebuilt from
the latest classified collection whenever a view is needed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from prinbox_core.models import GitHubUser, PullRequest, Repository

SORT_FIELDS = ("updated", "created")
GROUPINGS = ("repository", "author")


@dataclass
class RepositoryGroup:
    repository: Repository
    pull_requests: list[PullRequest] = field(default_factory=list)


@dataclass
class AuthorGroup:
    user: GitHubUser
    pull_requests: list[PullRequest] = field(default_factory=list)


def sort_pull_requests(pull_requests: Iterable[PullRequest], sort_by: str = "updated") -> list[PullRequest]:
    """Most recent first by updated_at or created_at; ties keep input order."""
    if sort_by not in SORT_FIELDS:
        raise ValueError(f"Unknown sort field: {sort_by!r}. Choose 'updated' or 'created'.")
    attr = "updated_at" if sort_by == "updated" else "created_at"
    # sorted() stays stable with reverse=True.
    return sorted(pull_requests, key=lambda pr: getattr(pr, attr), reverse=True)


def group_by_repository(pull_requests: Iterable[PullRequest], sort_by: str = "updated") -> list[RepositoryGroup]:
    """Partition by repository id, groups in order of first appearance."""
    groups: dict[int, RepositoryGroup] = {}
    for pr in pull_requests:
        group = groups.get(pr.repository.id)
        if group is None:
            group = groups[pr.repository.id] = RepositoryGroup(repository=pr.repository)
        group.pull_requests.append(pr)

    for group in groups.values():
        group.pull_requests = sort_pull_requests(group.pull_requests, sort_by)
    return list(groups.values())


def group_by_author(pull_requests: Iterable[PullRequest], sort_by: str = "updated") -> list[AuthorGroup]:
    """Partition by author login, groups in order of first appearance."""
    groups: dict[str, AuthorGroup] = {}
    for pr in pull_requests:
        group = groups.get(pr.user.login)
        if group is None:
            group = groups[pr.user.login] = AuthorGroup(user=pr.user)
        group.pull_requests.append(pr)

    for group in groups.values():
        group.pull_requests = sort_pull_requests(group.pull_requests, sort_by)
    return list(groups.values())


def filter_pull_requests(
    pull_requests: Iterable[PullRequest],
    usernames: Iterable[str] | None = None,
    unread_only: bool = False,
    show_drafts: bool = True,
) -> list[PullRequest]:
    """Keep pull requests by the given authors, optionally unread-only and without drafts.

    usernames=None means every author.
    """
    allowed = set(usernames) if usernames is not None else None
    return [
        pr
        for pr in pull_requests
        if (allowed is None or pr.user.login in allowed)
        and (not unread_only or pr.has_new_activity)
        and (show_drafts or not pr.draft)
    ]


def unique_authors(pull_requests: Iterable[PullRequest]) -> list[GitHubUser]:
    seen: dict[str, GitHubUser] = {}
    for pr in pull_requests:
        seen.setdefault(pr.user.login, pr.user)
    return list(seen.values())


def unread_count(pull_requests: Iterable[PullRequest]) -> int:
    return sum(1 for pr in pull_requests if pr.has_new_activity)
