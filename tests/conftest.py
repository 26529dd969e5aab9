"""Pytest fixtures for JobTrackr tests."""
import asyncio
import base64
from datetime import datetime
from typing import Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from jobtrackr.exceptions import (
    AuthenticationRequired,
    MailboxFetchError,
    StoreInsertError,
    StoreQueryError,
)
from jobtrackr.persistence.models import Application, Base


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Fresh in-memory database shared by every session of a test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine)


@pytest.fixture(scope="function")
def test_db(session_factory):
    """Create a fresh in-memory database session for each test."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def sample_application(test_db):
    """Create a sample manual application for testing."""
    app = Application(
        id="test-app-1",
        user_id="user-1",
        company_name="OpenAI",
        job_role="Backend Engineer",
        date_applied=datetime(2026, 1, 25),
        source="Manual",
        status="Applied",
    )
    test_db.add(app)
    test_db.commit()
    return app


# =============================================================================
# GMAIL MESSAGE FACTORY
# =============================================================================


def encode_body(text: str, strip_padding: bool = False) -> str:
    """Encode text the way the Gmail API does (base64url)."""
    encoded = base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii")
    return encoded.rstrip("=") if strip_padding else encoded


def make_message(
    message_id: str,
    subject: str = "",
    sender: str = "",
    body: str = "",
    date: str = "Mon, 13 Jan 2025 10:00:00 +0000",
    snippet: str = "",
    parts: Optional[list[dict]] = None,
) -> dict:
    """Build a Gmail ``format=full`` message resource."""
    headers = [
        {"name": "Subject", "value": subject},
        {"name": "From", "value": sender},
        {"name": "Date", "value": date},
    ]
    if parts is None:
        parts = [
            {"mimeType": "text/plain", "body": {"data": encode_body(body)}},
            {"mimeType": "text/html", "body": {"data": encode_body(f"<p>{body}</p>")}},
        ]
    return {
        "id": message_id,
        "threadId": f"thread-{message_id}",
        "snippet": snippet,
        "payload": {
            "mimeType": "multipart/alternative",
            "headers": headers,
            "parts": parts,
        },
    }


@pytest.fixture
def job_messages():
    """Three job emails and one newsletter."""
    return {
        "m1": make_message(
            "m1",
            subject="Thank you for applying to Acme Corp",
            sender="Acme Careers <careers@acme.com>",
            body="Position: Data Engineer\nWe have received your application.",
            snippet="Thank you for applying to Acme Corp",
        ),
        "m2": make_message(
            "m2",
            subject="Interview invitation - Globex",
            sender="Globex Talent <talent@globex.com>",
            body="We would like to invite you to interview for the role: Platform Engineer",
            snippet="We would like to invite you",
        ),
        "m3": make_message(
            "m3",
            subject="Your application status",
            sender="Initech via LinkedIn <jobs-noreply@linkedin.com>",
            body="Unfortunately we are not moving forward with your application.",
            snippet="Unfortunately we are not moving forward",
        ),
        "m4": make_message(
            "m4",
            subject="Weekly Newsletter",
            sender="news@randomsite.com",
            body="Thank you for your interest in our newsletter!",
            snippet="This week's top stories",
        ),
    }


# =============================================================================
# FAKE COLLABORATORS
# =============================================================================


class FakeMailbox:
    """In-memory Mailbox."""

    def __init__(
        self,
        messages: dict[str, dict],
        authenticated: bool = True,
        fail_ids: tuple = (),
        slow_ids: tuple = (),
        search_ids: Optional[list[str]] = None,
        reset_ids: tuple = (),
    ):
        self.messages = messages
        self.authenticated = authenticated
        self.fail_ids = set(fail_ids)
        self.reset_ids = set(reset_ids)
        self.slow_ids = set(slow_ids)
        self.search_ids = search_ids
        self.queries: list[str] = []
        self.fetched: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def ensure_authenticated(self) -> None:
        if not self.authenticated:
            raise AuthenticationRequired()

    async def search(self, query: str, max_results: int) -> list[str]:
        self.queries.append(query)
        ids = self.search_ids if self.search_ids is not None else list(self.messages)
        return ids[:max_results]

    async def fetch_full(self, message_id: str) -> dict:
        self.fetched.append(message_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if message_id in self.fail_ids:
                raise MailboxFetchError(message_id, "HTTP 500")
            if message_id in self.reset_ids:
                raise ConnectionResetError("connection reset by peer")
            if message_id in self.slow_ids:
                await asyncio.sleep(5)
            return self.messages[message_id]
        finally:
            self.in_flight -= 1


class FakeStore:
    """In-memory ApplicationStore."""

    def __init__(self, fail_email_ids: tuple = (), query_error: bool = False):
        self.records = {}
        self.fail_email_ids = set(fail_email_ids)
        self.query_error = query_error
        self.query_count = 0

    def existing_email_ids(self, user_id: str, source: str) -> set[str]:
        self.query_count += 1
        if self.query_error:
            raise StoreQueryError(user_id, "database unavailable")
        return {
            record.email_id
            for record in self.records.values()
            if record.user_id == user_id and record.source == source
        }

    def insert(self, record) -> str:
        if record.email_id in self.fail_email_ids:
            raise StoreInsertError(record.email_id, "write rejected")
        new_id = f"app-{len(self.records) + 1}"
        self.records[new_id] = record
        return new_id


@pytest.fixture
def fake_store():
    return FakeStore()
