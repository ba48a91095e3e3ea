"""Fetch open pull requests and their reviews from GitHub.

This module is the only place that talks to the GitHub API. It returns
fully decoded domain records; read state and review verdicts are derived
elsewhere.
"""

from __future__ import annotations

import logging

from github import Github, GithubException

from prinbox_core.models import GitHubUser, Label, PullRequest, Repository, Review, ReviewState
from prinbox_core.utils.time import parse_datetime

logger = logging.getLogger(__name__)

_GHOST = GitHubUser(login="ghost")


class FetchError(RuntimeError):
    """The data source could not produce a snapshot of pull requests."""


def search_query(organization: str, username: str) -> str:
    return f"org:{organization} author:{username} is:pr is:open"


def get_viewer_login(token: str) -> str:
    return Github(token).get_user().login


def fetch_pull_requests(organization: str, usernames: list[str], token: str) -> list[PullRequest]:
    """Return every open pull request by `usernames` in `organization`.

    A search that fails for one user is logged and skipped so the rest of
    the inbox still loads; if every search fails, FetchError is raised.
    """
    if not organization or not usernames:
        return []

    gh = Github(token)
    repositories: dict[str, Repository] = {}
    pull_requests: list[PullRequest] = []
    failures: list[str] = []

    for username in usernames:
        try:
            issues = list(gh.search_issues(search_query(organization, username)))
        except GithubException as e:
            logger.warning("GitHub search failed for %s (%s): %s", username, e.status, e.data)
            failures.append(username)
            continue

        for issue in issues:
            try:
                pull_requests.append(_to_pull_request(issue, repositories))
            except GithubException as e:
                logger.warning("Skipping PR #%s: could not load details (%s)", issue.number, e.status)

    if failures and len(failures) == len(usernames):
        raise FetchError(f"GitHub search failed for every user: {', '.join(failures)}")
    return pull_requests


def _to_user(user) -> GitHubUser:
    if user is None:
        return _GHOST
    return GitHubUser(login=user.login, id=user.id, avatar_url=user.avatar_url or "", html_url=user.html_url or "")


def _to_repository(repo) -> Repository:
    return Repository(
        id=repo.id,
        name=repo.name,
        full_name=repo.full_name,
        html_url=repo.html_url or "",
        description=repo.description,
    )


def _to_review(review) -> Review | None:
    try:
        state = ReviewState(review.state)
    except ValueError:
        logger.debug("Ignoring review %s with unknown state %r", review.id, review.state)
        return None
    return Review(
        id=review.id,
        user=_to_user(review.user),
        state=state,
        submitted_at=parse_datetime(review.submitted_at),
        html_url=review.html_url or "",
    )


def _to_pull_request(issue, repositories: dict[str, Repository]) -> PullRequest:
    full_name = issue.repository.full_name
    if full_name not in repositories:
        repositories[full_name] = _to_repository(issue.repository)

    pull = issue.as_pull_request()
    reviews = [r for r in (_to_review(raw) for raw in pull.get_reviews()) if r is not None]

    return PullRequest(
        id=issue.id,
        number=issue.number,
        title=issue.title,
        html_url=issue.html_url,
        state=issue.state,
        created_at=parse_datetime(issue.created_at),
        updated_at=parse_datetime(issue.updated_at),
        closed_at=parse_datetime(issue.closed_at),
        merged_at=parse_datetime(pull.merged_at),
        draft=bool(pull.draft),
        user=_to_user(issue.user),
        repository=repositories[full_name],
        labels=[Label(id=label.id, name=label.name, color=label.color or "") for label in issue.labels],
        comments_count=(pull.comments or 0) + (pull.review_comments or 0),
        reviews=reviews,
    )
