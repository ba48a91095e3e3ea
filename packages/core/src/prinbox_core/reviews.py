"""Review aggregation: one verdict per pull request.

Only the latest review of each reviewer counts. Among those, the verdict is
the first class present in the fixed precedence

    CHANGES_REQUESTED > APPROVED > COMMENTED > NONE

so a single outstanding change request outweighs any number of approvals.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable

from prinbox_core.models import PullRequest, Review, ReviewState, ReviewVerdict

_PRECEDENCE = (
    ReviewVerdict.CHANGES_REQUESTED,
    ReviewVerdict.APPROVED,
    ReviewVerdict.COMMENTED,
)

# DISMISSED and PENDING never contribute a verdict.
_QUALIFYING = {
    ReviewState.APPROVED: ReviewVerdict.APPROVED,
    ReviewState.CHANGES_REQUESTED: ReviewVerdict.CHANGES_REQUESTED,
    ReviewState.COMMENTED: ReviewVerdict.COMMENTED,
}


@dataclass(frozen=True)
class ReviewAggregate:
    verdict: ReviewVerdict = ReviewVerdict.NONE
    reviewers: dict[str, ReviewVerdict] = field(default_factory=dict)


def latest_reviews_by_user(reviews: Iterable[Review]) -> dict[str, Review]:
    """Return each reviewer's most recent review, keyed by login.

    Comparison is strictly greater-than: when one reviewer has two reviews
    with the same timestamp, the one encountered first in input order wins.
    Reviews without a submission time (pending drafts) are ignored.
    """
    latest: dict[str, Review] = {}
    for review in reviews:
        if review.submitted_at is None:
            continue
        current = latest.get(review.user.login)
        if current is None or review.submitted_at > current.submitted_at:
            latest[review.user.login] = review
    return latest


def aggregate_reviews(reviews: Iterable[Review] | None) -> ReviewAggregate:
    """Reduce a pull request's full review history to a verdict and reviewer map."""
    if not reviews:
        return ReviewAggregate()

    reviewers = {
        login: _QUALIFYING[review.state]
        for login, review in latest_reviews_by_user(reviews).items()
        if review.state in _QUALIFYING
    }

    present = set(reviewers.values())
    for verdict in _PRECEDENCE:
        if verdict in present:
            return ReviewAggregate(verdict=verdict, reviewers=reviewers)
    return ReviewAggregate(reviewers=reviewers)


def annotate_reviews(pull_requests: Iterable[PullRequest]) -> list[PullRequest]:
    """Return copies of pull_requests with review_status and reviewers filled in."""
    annotated = []
    for pr in pull_requests:
        aggregate = aggregate_reviews(pr.reviews)
        annotated.append(replace(pr, review_status=aggregate.verdict, reviewers=dict(aggregate.reviewers)))
    return annotated
