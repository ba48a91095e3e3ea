"""Domain records consumed and produced by the read-state engine.

The data source builds PullRequest/Review records on every fetch; the
derived fields at the bottom of PullRequest are filled in by the review
aggregator and the activity classifier and are never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ReviewState(str, Enum):
    """State of a single submitted (or pending) review."""

    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    COMMENTED = "COMMENTED"
    DISMISSED = "DISMISSED"
    PENDING = "PENDING"


class ReviewVerdict(str, Enum):
    """Aggregate outcome of the latest review per reviewer."""

    NONE = "NONE"
    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    COMMENTED = "COMMENTED"


@dataclass(frozen=True)
class GitHubUser:
    login: str
    id: int = 0
    avatar_url: str = ""
    html_url: str = ""


@dataclass(frozen=True)
class Repository:
    id: int
    name: str
    full_name: str
    html_url: str = ""
    description: str | None = None


@dataclass(frozen=True)
class Label:
    id: int
    name: str
    color: str = ""


@dataclass(frozen=True)
class Review:
    id: int
    user: GitHubUser
    state: ReviewState
    submitted_at: datetime | None  # GitHub omits it for PENDING reviews
    html_url: str = ""


@dataclass
class PullRequest:
    id: int
    number: int
    title: str
    state: str  # "open" | "closed"
    created_at: datetime
    updated_at: datetime
    user: GitHubUser
    repository: Repository
    html_url: str = ""
    draft: bool = False
    closed_at: datetime | None = None
    merged_at: datetime | None = None
    labels: list[Label] = field(default_factory=list)
    comments_count: int = 0
    reviews: list[Review] = field(default_factory=list)

    # Derived on every classification pass.
    review_status: ReviewVerdict = ReviewVerdict.NONE
    reviewers: dict[str, ReviewVerdict] = field(default_factory=dict)
    has_new_activity: bool = True
    last_read_at: datetime | None = None
