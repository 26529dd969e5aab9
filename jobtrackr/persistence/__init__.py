"""Database persistence layer."""
from .database import get_session, init_db
from .models import Application, ApplicationStatus, Base, StatusHistory, SyncState
from .store import ApplicationRecord, ApplicationStore, SqlApplicationStore

__all__ = [
    "Base",
    "Application",
    "ApplicationStatus",
    "StatusHistory",
    "SyncState",
    "ApplicationRecord",
    "ApplicationStore",
    "SqlApplicationStore",
    "init_db",
    "get_session",
]
