"""Application store used by the Gmail import pipeline."""
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Callable, Optional, Protocol, runtime_checkable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from jobtrackr.exceptions import StoreInsertError, StoreQueryError
from jobtrackr.persistence.models import Application, generate_uuid

logger = logging.getLogger(__name__)


@dataclass
class ApplicationRecord:
    """Application row as written by the import pipeline."""

    user_id: str
    company_name: str
    job_role: str
    status: str
    date_applied: Optional[datetime]
    notes: str
    source: str
    email_id: str
    created_at: datetime
    updated_at: datetime
    id: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@runtime_checkable
class ApplicationStore(Protocol):
    """Store capability the sync pipeline depends on."""

    def existing_email_ids(self, user_id: str, source: str) -> set[str]:
        """Return the email ids already stored for a user and source."""
        ...

    def insert(self, record: ApplicationRecord) -> str:
        """Persist a record and return its assigned id."""
        ...


class SqlApplicationStore:
    """ApplicationStore backed by the applications table."""

    def __init__(self, session_factory: Callable[[], Session]):
        """
        Args:
            session_factory: Callable returning a new Session (e.g. a sessionmaker)
        """
        self.session_factory = session_factory

    def existing_email_ids(self, user_id: str, source: str) -> set[str]:
        """
        Load every stored email id for the user in a single query.

        Raises:
            StoreQueryError: If the lookup fails
        """
        stmt = select(Application.email_id).where(
            Application.user_id == user_id,
            Application.source == source,
            Application.email_id.isnot(None),
        )

        session = self.session_factory()
        try:
            return {row[0] for row in session.execute(stmt)}
        except SQLAlchemyError as e:
            raise StoreQueryError(user_id, str(e)) from e
        finally:
            session.close()

    def insert(self, record: ApplicationRecord) -> str:
        """
        Insert one application in its own transaction.

        Raises:
            StoreInsertError: If the row cannot be written, including a
                unique-constraint violation from a concurrent sync
        """
        application_id = record.id or generate_uuid()
        fields = record.to_dict()
        fields["id"] = application_id

        session = self.session_factory()
        try:
            session.add(Application(**fields))
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StoreInsertError(record.email_id, str(e)) from e
        finally:
            session.close()

        return application_id
