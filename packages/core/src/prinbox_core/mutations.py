"""Read/unread mutations with a one-level undo.

ReadStateEngine owns the in-memory marker mapping for the session. Every
mutating call snapshots the mapping it is about to replace, writes the new
mapping and the snapshot through the ReadMarkerStore in one save(), and
hands the snapshot back as an undo token. Only the latest snapshot is kept;
there is no undo stack.

Two sessions sharing one store can overwrite each other's markers and
snapshots. Nothing here tries to reconcile them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable

from prinbox_core.activity import DEFAULT_OWN_REVIEW_TOLERANCE, classify, has_new_activity
from prinbox_core.models import PullRequest
from prinbox_store.models import ReadMarker
from prinbox_store.read_status import ReadMarkerStore

logger = logging.getLogger(__name__)

Markers = dict[int, ReadMarker]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class MutationResult:
    """Outcome of a mutating call.

    `previous` is the mapping as it was before the call (the undo token);
    `pull_requests` are the affected pull requests, reclassified.
    """

    previous: Markers
    pull_requests: list[PullRequest] = field(default_factory=list)


class ReadStateEngine:
    """Applies read/unread transitions and classifies against the current markers.

    The undo snapshot is persisted in the same document as the markers, so
    an undo issued by a later process restores the right mapping.
    """

    def __init__(
        self,
        store: ReadMarkerStore,
        viewer: str | None = None,
        tolerance: timedelta = DEFAULT_OWN_REVIEW_TOLERANCE,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.viewer = viewer
        self.tolerance = tolerance
        self._store = store
        self._clock = clock
        state = store.load_state()
        self.markers: Markers = state.markers
        self._snapshot: Markers | None = state.undo

    @property
    def snapshot(self) -> Markers | None:
        """The mapping undo() would restore, or None before any mutation."""
        return dict(self._snapshot) if self._snapshot is not None else None

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def classify(self, pull_requests: Iterable[PullRequest]) -> list[PullRequest]:
        """Classify against the current markers.

        Markers synthesized by own-review suppression are merged in and
        saved straight away. They are not a user mutation and leave the undo
        snapshot alone.
        """
        result = classify(pull_requests, self.markers, self.viewer, self.tolerance, now=self._clock())
        if result.synthesized:
            self.markers = {**self.markers, **result.synthesized}
            logger.debug("Auto-marked %d pull request(s) read after own review", len(result.synthesized))
            self._save()
        return result.pull_requests

    def is_read(self, pr: PullRequest) -> bool:
        return not has_new_activity(pr, self.markers.get(pr.id), self.viewer, self.tolerance)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def mark_read(self, pr: PullRequest, comments_count: int | None = None) -> MutationResult:
        """Write (or overwrite) pr's marker at the current time."""
        if comments_count is None:
            comments_count = pr.comments_count
        updated = dict(self.markers)
        updated[pr.id] = self._marker(pr, self._clock(), comments_count)
        previous = self._commit(updated)
        return MutationResult(previous=previous, pull_requests=self.classify([pr]))

    def toggle(self, pr: PullRequest) -> MutationResult:
        """Flip pr between read and unread.

        Current status is re-derived from the markers, not taken from
        pr.has_new_activity, which may be stale.
        """
        updated = dict(self.markers)
        if self.is_read(pr):
            updated.pop(pr.id, None)
        else:
            updated[pr.id] = self._marker(pr, self._clock())
        previous = self._commit(updated)
        return MutationResult(previous=previous, pull_requests=self.classify([pr]))

    def mark_all_read(self, pull_requests: Iterable[PullRequest]) -> MutationResult:
        """Mark every pull request read with a single store write."""
        prs = list(pull_requests)
        now = self._clock()
        updated = dict(self.markers)
        for pr in prs:
            updated[pr.id] = self._marker(pr, now)
        previous = self._commit(updated)
        return MutationResult(previous=previous, pull_requests=self.classify(prs))

    def undo(self) -> Markers | None:
        """Restore the mapping from before the last mutation.

        Returns the restored mapping, or None when there is nothing to undo.
        Repeating undo restores the same snapshot again.
        """
        if self._snapshot is None:
            return None
        self.markers = dict(self._snapshot)
        self._save()
        return dict(self.markers)

    @staticmethod
    def _marker(pr: PullRequest, now: datetime, comments_count: int | None = None) -> ReadMarker:
        # updated_at comes from GitHub's clock, which may run ahead of ours.
        return ReadMarker(
            last_read_at=max(now, pr.updated_at),
            comments_read_count=pr.comments_count if comments_count is None else comments_count,
        )

    def _commit(self, updated: Markers) -> Markers:
        previous = self.markers
        self._snapshot = dict(previous)
        self.markers = updated
        self._save()
        return dict(previous)

    def _save(self) -> bool:
        return self._store.save(self.markers, undo=self._snapshot)
