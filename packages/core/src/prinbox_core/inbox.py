"""Inbox session: the classified collection a UI shell renders.

Refreshes are stale-while-revalidate: the previous collection stays visible
while a fetch is in flight and is only replaced, wholesale, when a newer
snapshot arrives. Fetch failures never clear it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from prinbox_core.grouping import (
    AuthorGroup,
    RepositoryGroup,
    filter_pull_requests,
    group_by_author,
    group_by_repository,
    sort_pull_requests,
    unique_authors,
    unread_count,
)
from prinbox_core.models import GitHubUser, PullRequest
from prinbox_core.mutations import Markers, MutationResult, ReadStateEngine
from prinbox_core.reviews import annotate_reviews

logger = logging.getLogger(__name__)


@dataclass
class RefreshResult:
    ok: bool
    applied: bool = False
    error: str | None = None


@dataclass
class InboxFilters:
    usernames: list[str] | None = None
    unread_only: bool = False
    show_drafts: bool = True
    sort_by: str = "updated"


@dataclass
class InboxView:
    pull_requests: list[PullRequest] = field(default_factory=list)
    repository_groups: list[RepositoryGroup] = field(default_factory=list)
    author_groups: list[AuthorGroup] = field(default_factory=list)
    unread_count: int = 0
    authors: list[GitHubUser] = field(default_factory=list)


class Inbox:
    """Holds the latest classified pull requests and routes mutations.

    Every state change runs one classification pass over the whole
    collection, so flags, groups and counts never drift apart.
    """

    def __init__(self, engine: ReadStateEngine):
        self.engine = engine
        self.pull_requests: list[PullRequest] = []
        self.loading = False
        self.error: str | None = None
        self._raw: list[PullRequest] = []
        self._issued = 0
        self._applied = 0

    async def refresh(self, fetch: Callable[[], list[PullRequest]]) -> RefreshResult:
        """Run the blocking fetch in a worker thread and apply its snapshot.

        Results from a fetch that was issued before an already-applied one
        are dropped, so the newest snapshot always wins.
        """
        self._issued += 1
        ticket = self._issued
        self.loading = True
        try:
            raw = await asyncio.to_thread(fetch)
        except Exception as e:
            logger.warning("Refresh failed (%s): %s", type(e).__name__, e)
            if ticket == self._issued:
                self.loading = False
                self.error = str(e) or type(e).__name__
            return RefreshResult(ok=False, error=str(e) or type(e).__name__)

        if ticket == self._issued:
            self.loading = False
        if ticket < self._applied:
            logger.debug("Discarding refresh #%d; #%d already applied", ticket, self._applied)
            return RefreshResult(ok=True, applied=False)

        self._applied = ticket
        self.error = None
        self.load(raw)
        return RefreshResult(ok=True, applied=True)

    def load(self, raw: Iterable[PullRequest]) -> list[PullRequest]:
        """Replace the collection with a fresh snapshot and classify it."""
        self._raw = annotate_reviews(raw)
        return self.reclassify()

    def reclassify(self) -> list[PullRequest]:
        self.pull_requests = self.engine.classify(self._raw)
        return self.pull_requests

    def view(self, filters: InboxFilters | None = None) -> InboxView:
        filters = filters or InboxFilters()
        visible = filter_pull_requests(
            self.pull_requests,
            usernames=filters.usernames,
            unread_only=filters.unread_only,
            show_drafts=filters.show_drafts,
        )
        return InboxView(
            pull_requests=sort_pull_requests(visible, filters.sort_by),
            repository_groups=group_by_repository(visible, filters.sort_by),
            author_groups=group_by_author(visible, filters.sort_by),
            unread_count=unread_count(visible),
            authors=unique_authors(self.pull_requests),
        )

    def get(self, pr_id: int) -> PullRequest | None:
        for pr in self.pull_requests:
            if pr.id == pr_id:
                return pr
        return None

    def mark_read(self, pr: PullRequest) -> MutationResult:
        result = self.engine.mark_read(pr)
        self.reclassify()
        return result

    def toggle(self, pr: PullRequest) -> MutationResult:
        result = self.engine.toggle(pr)
        self.reclassify()
        return result

    def mark_all_read(self, filters: InboxFilters | None = None) -> MutationResult:
        """Mark everything in the filtered view read."""
        result = self.engine.mark_all_read(self.view(filters).pull_requests)
        self.reclassify()
        return result

    def undo(self) -> Markers | None:
        restored = self.engine.undo()
        if restored is not None:
            self.reclassify()
        return restored
