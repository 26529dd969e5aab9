"""Automatic Gmail sync: per-user toggle plus a minimum interval between runs."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from jobtrackr.gmail.client import Mailbox
from jobtrackr.persistence.models import SyncState, utcnow
from jobtrackr.persistence.store import ApplicationStore
from jobtrackr.sync.orchestrator import SyncOptions, SyncResult, sync_job_emails

logger = logging.getLogger(__name__)

DEFAULT_SYNC_INTERVAL = timedelta(hours=24)


class SyncStateRepository:
    """Load and save per-user sync state."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: str, default_enabled: bool = False) -> SyncState:
        """Return the user's state, creating one with ``default_enabled`` if missing."""
        state = self.session.get(SyncState, user_id)
        if state is None:
            state = SyncState(user_id=user_id, auto_sync_enabled=default_enabled)
            self.session.add(state)
            self.session.commit()
        return state

    def set_auto_sync(self, user_id: str, enabled: bool) -> SyncState:
        state = self.get(user_id)
        state.auto_sync_enabled = enabled
        self.session.commit()
        logger.info("Auto-sync %s for %s", "enabled" if enabled else "disabled", user_id)
        return state

    def record_run(self, user_id: str, result: SyncResult, finished_at: Optional[datetime] = None) -> SyncState:
        """Store the completion time and counts of a sync."""
        state = self.get(user_id)
        state.last_synced_at = finished_at or utcnow()
        state.last_total = result.total
        state.last_new = result.new
        state.last_stored = result.stored
        self.session.commit()
        return state


def _as_aware(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def should_sync(
    state: SyncState,
    now: Optional[datetime] = None,
    interval: timedelta = DEFAULT_SYNC_INTERVAL,
) -> bool:
    """
    Decide whether an automatic sync is due.

    A sync is due when auto-sync is on and the user has never synced or
    last synced more than ``interval`` ago.
    """
    if not state.auto_sync_enabled:
        return False
    if state.last_synced_at is None:
        return True
    now = now or utcnow()
    return _as_aware(now) - _as_aware(state.last_synced_at) > interval


async def run_auto_sync(
    user_id: str,
    session: Session,
    mailbox: Mailbox,
    store: ApplicationStore,
    interval: timedelta = DEFAULT_SYNC_INTERVAL,
    options: Optional[SyncOptions] = None,
    default_enabled: bool = False,
) -> Optional[SyncResult]:
    """
    Run a sync for the user if one is due.

    Args:
        default_enabled: Auto-sync toggle for a user with no stored state.
            A stored toggle always wins.

    Returns:
        SyncResult if a sync ran, None if it was not due
    """
    repo = SyncStateRepository(session)
    state = repo.get(user_id, default_enabled=default_enabled)

    if not should_sync(state, interval=interval):
        logger.debug("Auto-sync not due for %s (last: %s)", user_id, state.last_synced_at)
        return None

    logger.info("Running auto-sync for %s", user_id)
    result = await sync_job_emails(user_id, mailbox, store, options)
    repo.record_run(user_id, result)
    logger.info(
        "Auto-sync complete for %s: %d found, %d new, %d stored",
        user_id,
        result.total,
        result.new,
        result.stored,
    )
    return result
