"""SQLAlchemy models for JobTrackr."""
import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def utcnow() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def generate_uuid() -> str:
    """Generate a UUID string."""
    return str(uuid.uuid4())


class ApplicationStatus(str, Enum):
    """Canonical application statuses shown to users."""

    APPLIED = "Applied"
    IN_PROGRESS = "In Progress"
    WAITING = "Waiting"
    REJECTED = "Rejected"
    APPROVED = "Approved"


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class Application(Base):
    """Job application tracked for a user."""

    __tablename__ = "applications"
    __table_args__ = (
        # Guards against two concurrent syncs importing the same message
        UniqueConstraint("user_id", "source", "email_id", name="uq_applications_user_source_email"),
    )

    id = Column(String, primary_key=True, default=generate_uuid)
    user_id = Column(String, nullable=False, index=True)
    company_name = Column(String, nullable=False)
    job_role = Column(String, nullable=False)
    status = Column(String, nullable=False, default=ApplicationStatus.APPLIED.value)
    date_applied = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text)

    # "Manual" for hand-entered applications, "Gmail" for imports
    source = Column(String, nullable=False, default="Manual")
    # Gmail message id for imported applications
    email_id = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    status_history = relationship(
        "StatusHistory",
        back_populates="application",
        cascade="all, delete-orphan",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "company_name": self.company_name,
            "job_role": self.job_role,
            "status": self.status,
            "date_applied": self.date_applied,
            "notes": self.notes,
            "source": self.source,
            "email_id": self.email_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<Application {self.company_name} - {self.job_role} ({self.status})>"


class StatusHistory(Base):
    """Track status changes for applications."""

    __tablename__ = "status_history"

    id = Column(String, primary_key=True, default=generate_uuid)
    user_id = Column(String, nullable=False)
    application_id = Column(String, ForeignKey("applications.id"), nullable=False)
    old_status = Column(String)
    new_status = Column(String, nullable=False)
    changed_at = Column(DateTime(timezone=True), default=utcnow)
    notes = Column(Text)

    application = relationship("Application", back_populates="status_history")


class SyncState(Base):
    """Per-user Gmail auto-sync preference and last run summary."""

    __tablename__ = "sync_states"

    user_id = Column(String, primary_key=True)
    auto_sync_enabled = Column(Boolean, default=False, nullable=False)
    last_synced_at = Column(DateTime(timezone=True), nullable=True)

    # Counts from the most recent run
    last_total = Column(Integer, default=0)
    last_new = Column(Integer, default=0)
    last_stored = Column(Integer, default=0)

    def __repr__(self) -> str:
        return f"<SyncState {self.user_id} auto={self.auto_sync_enabled} last={self.last_synced_at}>"
