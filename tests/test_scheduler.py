"""Tests for automatic sync scheduling."""
from datetime import datetime, timedelta, timezone

import pytest

from jobtrackr.persistence.models import SyncState
from jobtrackr.sync.orchestrator import SyncResult
from jobtrackr.sync.scheduler import SyncStateRepository, run_auto_sync, should_sync
from tests.conftest import FakeMailbox

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestShouldSync:
    """Tests for the auto-sync due check."""

    def test_disabled(self):
        state = SyncState(user_id="user-1", auto_sync_enabled=False, last_synced_at=None)
        assert should_sync(state, now=NOW) is False

    def test_never_synced(self):
        state = SyncState(user_id="user-1", auto_sync_enabled=True, last_synced_at=None)
        assert should_sync(state, now=NOW) is True

    def test_recent_sync_not_due(self):
        state = SyncState(
            user_id="user-1",
            auto_sync_enabled=True,
            last_synced_at=NOW - timedelta(hours=23),
        )
        assert should_sync(state, now=NOW) is False

    def test_old_sync_due(self):
        state = SyncState(
            user_id="user-1",
            auto_sync_enabled=True,
            last_synced_at=NOW - timedelta(hours=25),
        )
        assert should_sync(state, now=NOW) is True

    def test_exactly_interval_not_due(self):
        state = SyncState(
            user_id="user-1",
            auto_sync_enabled=True,
            last_synced_at=NOW - timedelta(hours=24),
        )
        assert should_sync(state, now=NOW) is False

    def test_naive_timestamp_treated_as_utc(self):
        state = SyncState(
            user_id="user-1",
            auto_sync_enabled=True,
            last_synced_at=datetime(2025, 2, 27, 12, 0),
        )
        assert should_sync(state, now=NOW) is True

    def test_custom_interval(self):
        state = SyncState(
            user_id="user-1",
            auto_sync_enabled=True,
            last_synced_at=NOW - timedelta(hours=2),
        )
        assert should_sync(state, now=NOW, interval=timedelta(hours=1)) is True


class TestSyncStateRepository:

    def test_get_creates_disabled_state(self, test_db):
        state = SyncStateRepository(test_db).get("user-1")

        assert state.user_id == "user-1"
        assert state.auto_sync_enabled is False
        assert test_db.get(SyncState, "user-1") is not None

    def test_get_creates_with_default(self, test_db):
        repo = SyncStateRepository(test_db)

        assert repo.get("user-1", default_enabled=True).auto_sync_enabled is True
        # existing state is not overwritten by a different default
        assert repo.get("user-1", default_enabled=False).auto_sync_enabled is True

    def test_set_auto_sync(self, test_db):
        repo = SyncStateRepository(test_db)

        repo.set_auto_sync("user-1", True)

        assert repo.get("user-1").auto_sync_enabled is True

    def test_record_run(self, test_db):
        repo = SyncStateRepository(test_db)

        state = repo.record_run("user-1", SyncResult(total=5, new=3, stored=2), finished_at=NOW)

        assert state.last_total == 5
        assert state.last_new == 3
        assert state.last_stored == 2
        assert state.last_synced_at is not None


class TestRunAutoSync:

    @pytest.mark.asyncio
    async def test_skips_when_disabled(self, test_db, job_messages, fake_store):
        mailbox = FakeMailbox(job_messages)

        result = await run_auto_sync("user-1", test_db, mailbox, fake_store)

        assert result is None
        assert mailbox.queries == []

    @pytest.mark.asyncio
    async def test_runs_when_due_and_records(self, test_db, job_messages, fake_store):
        SyncStateRepository(test_db).set_auto_sync("user-1", True)
        mailbox = FakeMailbox(job_messages)

        result = await run_auto_sync("user-1", test_db, mailbox, fake_store)

        assert result.stored == 3
        state = test_db.get(SyncState, "user-1")
        assert state.last_synced_at is not None
        assert state.last_stored == 3

    @pytest.mark.asyncio
    async def test_new_user_uses_default_toggle(self, test_db, job_messages, fake_store):
        mailbox = FakeMailbox(job_messages)

        result = await run_auto_sync(
            "user-1", test_db, mailbox, fake_store, default_enabled=True
        )

        assert result.stored == 3
        assert test_db.get(SyncState, "user-1").auto_sync_enabled is True

    @pytest.mark.asyncio
    async def test_stored_toggle_overrides_default(self, test_db, job_messages, fake_store):
        SyncStateRepository(test_db).set_auto_sync("user-1", False)
        mailbox = FakeMailbox(job_messages)

        result = await run_auto_sync(
            "user-1", test_db, mailbox, fake_store, default_enabled=True
        )

        assert result is None
        assert mailbox.queries == []

    @pytest.mark.asyncio
    async def test_second_call_within_interval_skips(self, test_db, job_messages, fake_store):
        SyncStateRepository(test_db).set_auto_sync("user-1", True)
        mailbox = FakeMailbox(job_messages)

        await run_auto_sync("user-1", test_db, mailbox, fake_store)
        second = await run_auto_sync("user-1", test_db, mailbox, fake_store)

        assert second is None
        assert len(mailbox.queries) == 1
