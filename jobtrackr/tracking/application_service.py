"""Application tracking service."""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from jobtrackr.persistence.models import Application, ApplicationStatus, StatusHistory

VALID_STATUSES = {status.value for status in ApplicationStatus}

# Fields a user may edit directly; status goes through update_status
EDITABLE_FIELDS = {"company_name", "job_role", "date_applied", "notes"}


class ApplicationService:
    """Service for managing a user's job applications."""

    def __init__(self, session: Session):
        """
        Initialize application service.

        Args:
            session: Database session
        """
        self.session = session

    def create_application(
        self,
        user_id: str,
        company_name: str,
        job_role: str,
        date_applied: Optional[datetime] = None,
        status: str = ApplicationStatus.APPLIED.value,
        notes: Optional[str] = None,
        source: str = "Manual",
    ) -> Application:
        """
        Create a new application.

        Args:
            user_id: Owner of the application
            company_name: Company name
            job_role: Job position/title
            date_applied: Date of application (defaults to now)
            status: Initial status
            notes: Additional notes
            source: Where the application came from

        Returns:
            Created Application
        """
        self._validate_status(status)

        application = Application(
            user_id=user_id,
            company_name=company_name,
            job_role=job_role,
            date_applied=date_applied or datetime.now(timezone.utc),
            status=status,
            notes=notes,
            source=source,
        )

        self.session.add(application)
        self.session.commit()
        self.session.refresh(application)

        return application

    def get_application(self, user_id: str, application_id: str) -> Optional[Application]:
        """Get an application by ID, only if it belongs to the user."""
        application = self.session.get(Application, application_id)
        if application is None or application.user_id != user_id:
            return None
        return application

    def list_applications(
        self,
        user_id: str,
        status: Optional[str] = None,
        company: Optional[str] = None,
        limit: int = 100,
    ) -> list[Application]:
        """
        Get a user's applications with optional filters.

        Args:
            user_id: Owner of the applications
            status: Filter by status
            company: Filter by company name (partial match)
            limit: Maximum results

        Returns:
            List of applications, most recently applied first
        """
        stmt = (
            select(Application)
            .where(Application.user_id == user_id)
            .order_by(Application.date_applied.desc())
        )

        if status:
            stmt = stmt.where(Application.status == status)
        if company:
            escaped = self._escape_like(company)
            stmt = stmt.where(Application.company_name.ilike(f"%{escaped}%", escape="\\"))

        stmt = stmt.limit(limit)

        result = self.session.execute(stmt)
        return list(result.scalars().all())

    def update_application(self, user_id: str, application_id: str, **changes) -> Optional[Application]:
        """
        Edit company, role, date or notes.

        Raises:
            ValueError: If an unknown or non-editable field is passed
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")

        application = self.get_application(user_id, application_id)
        if not application:
            return None

        for name, value in changes.items():
            setattr(application, name, value)

        self.session.commit()
        self.session.refresh(application)
        return application

    def update_status(
        self,
        user_id: str,
        application_id: str,
        new_status: str,
        notes: Optional[str] = None,
    ) -> Optional[Application]:
        """
        Update application status with history tracking.

        Args:
            user_id: Owner of the application
            application_id: Application ID
            new_status: New status
            notes: Notes about the status change

        Returns:
            Updated application or None if not found
        """
        self._validate_status(new_status)

        application = self.get_application(user_id, application_id)
        if not application:
            return None

        old_status = application.status

        # Skip if already at the same status (prevents duplicate history entries)
        if old_status == new_status:
            return application

        history = StatusHistory(
            user_id=user_id,
            application_id=application_id,
            old_status=old_status,
            new_status=new_status,
            notes=notes,
        )
        self.session.add(history)

        application.status = new_status

        self.session.commit()
        self.session.refresh(application)

        return application

    def delete_application(self, user_id: str, application_id: str) -> bool:
        """Delete an application and its status history."""
        application = self.get_application(user_id, application_id)
        if not application:
            return False

        self.session.delete(application)
        self.session.commit()
        return True

    def get_status_counts(self, user_id: str) -> dict[str, int]:
        """Get counts by status, plus a "total" entry, for the dashboard stats."""
        stmt = (
            select(Application.status, func.count(Application.id))
            .where(Application.user_id == user_id)
            .group_by(Application.status)
        )
        counts = {status.value: 0 for status in ApplicationStatus}
        counts.update(dict(self.session.execute(stmt).all()))
        counts["total"] = sum(counts.values())
        return counts

    def get_status_history(self, user_id: str, application_id: str) -> list[StatusHistory]:
        """Get the status changes for an application, oldest first."""
        stmt = (
            select(StatusHistory)
            .where(
                StatusHistory.user_id == user_id,
                StatusHistory.application_id == application_id,
            )
            .order_by(StatusHistory.changed_at)
        )
        return list(self.session.execute(stmt).scalars().all())

    @staticmethod
    def _validate_status(status: str) -> None:
        if status not in VALID_STATUSES:
            raise ValueError(f"Invalid status: {status}. Must be one of {sorted(VALID_STATUSES)}")

    @staticmethod
    def _escape_like(value: str) -> str:
        """Escape the LIKE escape character and wildcards in user input."""
        return value.replace("\\", "\\\\").replace("%", r"\%").replace("_", r"\_")
