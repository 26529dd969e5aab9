"""Main entry point for the JobTrackr auto-sync scheduler."""
import asyncio
import logging
from datetime import timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from jobtrackr.exceptions import AuthenticationRequired, JobTrackrError
from jobtrackr.gmail.auth import GmailAuth
from jobtrackr.gmail.client import GmailClient
from jobtrackr.logging_config import setup_logging
from jobtrackr.persistence.database import SessionLocal, get_session, init_db
from jobtrackr.persistence.store import SqlApplicationStore
from jobtrackr.settings import settings
from jobtrackr.sync.scheduler import run_auto_sync

logger = logging.getLogger(__name__)


async def run_scheduled_sync(user_id: str, client: GmailClient, store: SqlApplicationStore):
    """Scheduler job: sync the user's Gmail if an auto-sync is due."""
    try:
        with get_session() as session:
            await run_auto_sync(
                user_id,
                session,
                client,
                store,
                interval=timedelta(hours=settings.auto_sync_interval_hours),
                default_enabled=settings.auto_sync_default,
            )
    except AuthenticationRequired as e:
        logger.warning("Skipping auto-sync: %s", e)
    except JobTrackrError as e:
        logger.error("Auto-sync failed: %s", e)


async def async_main():
    """Async main entry point."""
    setup_logging(
        level=settings.log_level,
        log_file=settings.log_file or None,
        app_level=settings.app_log_level,
    )
    logger.info("JobTrackr auto-sync starting...")

    if not settings.sync_user_id:
        logger.error("SYNC_USER_ID is not set; nothing to sync.")
        return

    init_db()
    logger.info("Database initialized")

    auth = GmailAuth(
        credentials_file=settings.gmail_credentials_file,
        token_file=settings.gmail_token_file,
    )
    client = GmailClient(auth)
    store = SqlApplicationStore(SessionLocal)

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        run_scheduled_sync,
        IntervalTrigger(minutes=settings.sync_check_interval_minutes),
        args=[settings.sync_user_id, client, store],
        id="gmail_auto_sync",
        name="Gmail Auto-Sync",
        max_instances=1,
    )
    scheduler.start()
    logger.info("Checking for due syncs every %d minutes", settings.sync_check_interval_minutes)

    try:
        await run_scheduled_sync(settings.sync_user_id, client, store)

        logger.info("JobTrackr running. Press Ctrl+C to stop.")
        while True:
            await asyncio.sleep(60)

    except asyncio.CancelledError:
        logger.info("Shutting down...")
    finally:
        scheduler.shutdown()


def main():
    """Main entry point."""
    try:
        asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown complete.")


if __name__ == "__main__":
    main()
