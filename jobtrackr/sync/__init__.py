"""Gmail sync pipeline and auto-sync scheduling."""
from .orchestrator import GmailSyncService, SyncOptions, SyncResult, sync_job_emails
from .scheduler import SyncStateRepository, run_auto_sync, should_sync

__all__ = [
    "GmailSyncService",
    "SyncOptions",
    "SyncResult",
    "sync_job_emails",
    "SyncStateRepository",
    "run_auto_sync",
    "should_sync",
]
