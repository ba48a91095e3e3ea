"""Activity classification: does a pull request carry unseen activity?

Rules, in order:

1. No read marker: new.
2. updated_at strictly after the marker's last_read_at: new.
3. More comments than the marker's snapshot: new.
4. Own-review suppression overrides all of the above: when the most recent
   review on the pull request is the viewer's and was submitted within the
   tolerance of updated_at, the pull request counts as read.

GitHub bumps updated_at and records the review in two separate writes, so
the two timestamps are close but rarely identical; hence the tolerance.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Iterable

from prinbox_core.models import PullRequest, Review
from prinbox_store.models import ReadMarker

DEFAULT_OWN_REVIEW_TOLERANCE = timedelta(seconds=10)


@dataclass
class Classification:
    """Result of one classification pass over a collection."""

    pull_requests: list[PullRequest] = field(default_factory=list)
    # Markers created by own-review suppression; the caller must persist them.
    synthesized: dict[int, ReadMarker] = field(default_factory=dict)


def _most_recent_review(reviews: Iterable[Review]) -> Review | None:
    latest = None
    for review in reviews:
        if review.submitted_at is None:
            continue
        if latest is None or review.submitted_at > latest.submitted_at:
            latest = review
    return latest


def is_last_activity_own_review(
    pr: PullRequest,
    viewer: str | None,
    tolerance: timedelta = DEFAULT_OWN_REVIEW_TOLERANCE,
) -> bool:
    """True when the viewer's own review is the latest event on pr.

    The window is inclusive: a review exactly `tolerance` away from
    updated_at still counts.
    """
    if not viewer or not pr.reviews:
        return False
    latest = _most_recent_review(pr.reviews)
    if latest is None or latest.user.login.lower() != viewer.lower():
        return False
    return abs(latest.submitted_at - pr.updated_at) <= tolerance


def _unread_by_marker(pr: PullRequest, marker: ReadMarker | None) -> bool:
    if marker is None:
        return True
    if pr.updated_at > marker.last_read_at:
        return True
    return pr.comments_count > marker.comments_read_count


def has_new_activity(
    pr: PullRequest,
    marker: ReadMarker | None,
    viewer: str | None = None,
    tolerance: timedelta = DEFAULT_OWN_REVIEW_TOLERANCE,
) -> bool:
    if is_last_activity_own_review(pr, viewer, tolerance):
        return False
    return _unread_by_marker(pr, marker)


def classify(
    pull_requests: Iterable[PullRequest],
    markers: dict[int, ReadMarker],
    viewer: str | None = None,
    tolerance: timedelta = DEFAULT_OWN_REVIEW_TOLERANCE,
    now: datetime | None = None,
) -> Classification:
    """Annotate every pull request with has_new_activity and last_read_at.

    Pure: markers is not modified. Pull requests that are read only because
    of own-review suppression get a fresh marker in `synthesized`, so later
    passes agree even without a viewer identity.
    """
    now = now or datetime.now(timezone.utc)
    result = Classification()

    for pr in pull_requests:
        marker = markers.get(pr.id)
        unread = _unread_by_marker(pr, marker)
        if unread and is_last_activity_own_review(pr, viewer, tolerance):
            marker = ReadMarker(last_read_at=max(now, pr.updated_at), comments_read_count=pr.comments_count)
            result.synthesized[pr.id] = marker
            unread = False

        result.pull_requests.append(
            replace(
                pr,
                has_new_activity=unread,
                last_read_at=marker.last_read_at if marker is not None else None,
            )
        )
    return result
