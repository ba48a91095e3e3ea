"""Tests for the Inbox session."""

import asyncio
import threading
from datetime import datetime, timedelta, timezone

import pytest

from prinbox_core.gh.pull_request import FetchError
from prinbox_core.inbox import Inbox, InboxFilters
from prinbox_core.models import GitHubUser, PullRequest, Repository, Review, ReviewState, ReviewVerdict
from prinbox_core.mutations import ReadStateEngine
from prinbox_store.memory import MemoryStore
from prinbox_store.read_status import ReadMarkerStore

UPDATED = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
NOW = UPDATED + timedelta(hours=1)


def _pr(pr_id, author="alice", repo_id=1, draft=False, reviews=None):
    return PullRequest(
        id=pr_id,
        number=pr_id,
        title=f"PR {pr_id}",
        state="open",
        created_at=UPDATED - timedelta(days=pr_id),
        updated_at=UPDATED - timedelta(minutes=pr_id),
        user=GitHubUser(login=author),
        repository=Repository(id=repo_id, name=f"repo{repo_id}", full_name=f"org/repo{repo_id}"),
        draft=draft,
        reviews=reviews or [],
    )


@pytest.fixture
def inbox():
    return Inbox(ReadStateEngine(ReadMarkerStore(MemoryStore()), clock=lambda: NOW))


class TestRefresh:
    def test_applies_snapshot(self, inbox):
        result = asyncio.run(inbox.refresh(lambda: [_pr(1), _pr(2)]))
        assert result.ok and result.applied
        assert [pr.id for pr in inbox.pull_requests] == [1, 2]
        assert all(pr.has_new_activity for pr in inbox.pull_requests)
        assert inbox.loading is False

    def test_attaches_review_verdict(self, inbox):
        review = Review(id=1, user=GitHubUser("bob"), state=ReviewState.APPROVED, submitted_at=UPDATED)
        asyncio.run(inbox.refresh(lambda: [_pr(1, reviews=[review])]))
        assert inbox.pull_requests[0].review_status == ReviewVerdict.APPROVED
        assert inbox.pull_requests[0].reviewers == {"bob": ReviewVerdict.APPROVED}

    def test_failure_keeps_previous_collection(self, inbox):
        asyncio.run(inbox.refresh(lambda: [_pr(1)]))

        def broken():
            raise FetchError("rate limited")

        result = asyncio.run(inbox.refresh(broken))

        assert result.ok is False
        assert "rate limited" in result.error
        assert inbox.error == "rate limited"
        assert [pr.id for pr in inbox.pull_requests] == [1]

    def test_new_snapshot_replaces_wholesale(self, inbox):
        asyncio.run(inbox.refresh(lambda: [_pr(1), _pr(2)]))
        asyncio.run(inbox.refresh(lambda: [_pr(3)]))
        assert [pr.id for pr in inbox.pull_requests] == [3]

    def test_read_state_survives_refresh(self, inbox):
        asyncio.run(inbox.refresh(lambda: [_pr(1)]))
        inbox.mark_read(inbox.get(1))
        asyncio.run(inbox.refresh(lambda: [_pr(1)]))
        assert inbox.get(1).has_new_activity is False

    def test_older_fetch_resolving_late_is_discarded(self, inbox):
        release_old = threading.Event()

        def old_fetch():
            release_old.wait(5)
            return [_pr(1)]

        async def scenario():
            old_task = asyncio.create_task(inbox.refresh(old_fetch))
            await asyncio.sleep(0)
            new_result = await inbox.refresh(lambda: [_pr(2)])
            release_old.set()
            old_result = await old_task
            return new_result, old_result

        new_result, old_result = asyncio.run(scenario())

        assert new_result.applied is True
        assert old_result.ok is True and old_result.applied is False
        assert [pr.id for pr in inbox.pull_requests] == [2]


class TestView:
    def test_groups_counts_and_authors(self, inbox):
        inbox.load([_pr(1, "alice", 1), _pr(2, "bob", 2), _pr(3, "alice", 2)])
        inbox.mark_read(inbox.get(3))

        view = inbox.view(InboxFilters())

        assert [pr.id for pr in view.pull_requests] == [1, 2, 3]
        assert view.unread_count == 2
        assert [g.repository.id for g in view.repository_groups] == [1, 2]
        assert [g.user.login for g in view.author_groups] == ["alice", "bob"]
        assert [u.login for u in view.authors] == ["alice", "bob"]

    def test_filters_apply(self, inbox):
        inbox.load([_pr(1, "alice"), _pr(2, "bob", draft=True), _pr(3, "bob")])
        inbox.mark_read(inbox.get(3))

        view = inbox.view(InboxFilters(usernames=["bob"], unread_only=True, show_drafts=False))

        assert view.pull_requests == []
        assert view.unread_count == 0
        # Distinct authors come from the whole collection.
        assert [u.login for u in view.authors] == ["alice", "bob"]


class TestMutations:
    def test_toggle_reclassifies_collection(self, inbox):
        inbox.load([_pr(1), _pr(2)])
        inbox.toggle(inbox.get(1))
        assert inbox.get(1).has_new_activity is False
        assert inbox.get(2).has_new_activity is True

    def test_mark_all_read_uses_filtered_view(self, inbox):
        inbox.load([_pr(1, "alice"), _pr(2, "bob")])
        result = inbox.mark_all_read(InboxFilters(usernames=["alice"]))
        assert [pr.id for pr in result.pull_requests] == [1]
        assert inbox.get(1).has_new_activity is False
        assert inbox.get(2).has_new_activity is True

    def test_undo_reclassifies(self, inbox):
        inbox.load([_pr(1), _pr(2)])
        inbox.mark_all_read()
        assert inbox.view().unread_count == 0
        inbox.undo()
        assert inbox.view().unread_count == 2

    def test_undo_without_mutation(self, inbox):
        inbox.load([_pr(1)])
        assert inbox.undo() is None
