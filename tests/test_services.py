"""Tests for the application tracking service."""
from datetime import datetime

import pytest

from jobtrackr.tracking.application_service import ApplicationService


class TestApplicationService:
    """Tests for ApplicationService."""

    def test_create_application(self, test_db):
        """Test creating an application."""
        service = ApplicationService(test_db)

        app = service.create_application(
            user_id="user-1",
            company_name="Test Company",
            job_role="Product Manager",
        )

        assert app.id is not None
        assert app.company_name == "Test Company"
        assert app.job_role == "Product Manager"
        assert app.status == "Applied"
        assert app.source == "Manual"
        assert app.date_applied is not None

    def test_create_application_with_date(self, test_db):
        """Test creating an application with specific date."""
        service = ApplicationService(test_db)
        applied_date = datetime(2026, 1, 15)

        app = service.create_application(
            user_id="user-1",
            company_name="Test Co",
            job_role="PM",
            date_applied=applied_date,
        )

        assert app.date_applied == applied_date

    def test_create_rejects_unknown_status(self, test_db):
        service = ApplicationService(test_db)

        with pytest.raises(ValueError, match="Invalid status"):
            service.create_application("user-1", "Acme", "PM", status="Interviewing")

    def test_get_application(self, test_db, sample_application):
        """Test getting an application by ID."""
        service = ApplicationService(test_db)
        retrieved = service.get_application("user-1", sample_application.id)

        assert retrieved is not None
        assert retrieved.id == sample_application.id

    def test_get_application_of_other_user(self, test_db, sample_application):
        service = ApplicationService(test_db)

        assert service.get_application("user-2", sample_application.id) is None

    def test_list_applications_scoped_to_user(self, test_db, sample_application):
        service = ApplicationService(test_db)
        service.create_application("user-2", "Globex", "SRE")

        apps = service.list_applications("user-1")

        assert [app.company_name for app in apps] == ["OpenAI"]

    def test_list_applications_by_status(self, test_db):
        service = ApplicationService(test_db)
        service.create_application("user-1", "Acme", "PM")
        service.create_application("user-1", "Globex", "PM", status="Rejected")

        rejected = service.list_applications("user-1", status="Rejected")

        assert [app.company_name for app in rejected] == ["Globex"]

    def test_list_applications_by_company(self, test_db):
        service = ApplicationService(test_db)
        service.create_application("user-1", "Acme Corp", "PM")
        service.create_application("user-1", "Globex", "PM")

        apps = service.list_applications("user-1", company="acme")

        assert [app.company_name for app in apps] == ["Acme Corp"]

    def test_company_filter_escapes_wildcards(self, test_db):
        service = ApplicationService(test_db)
        service.create_application("user-1", "Acme", "PM")

        assert service.list_applications("user-1", company="%") == []

    def test_company_filter_with_backslash(self, test_db):
        service = ApplicationService(test_db)
        service.create_application("user-1", "Acme\\Labs", "PM")
        service.create_application("user-1", "Acme_Labs", "PM")

        apps = service.list_applications("user-1", company="e\\L")

        assert [app.company_name for app in apps] == ["Acme\\Labs"]

    def test_company_filter_escapes_underscore(self, test_db):
        service = ApplicationService(test_db)
        service.create_application("user-1", "Acme_Labs", "PM")
        service.create_application("user-1", "AcmeXLabs", "PM")

        apps = service.list_applications("user-1", company="acme_")

        assert [app.company_name for app in apps] == ["Acme_Labs"]

    def test_escape_like(self):
        assert ApplicationService._escape_like("50%_a\\b") == "50\\%\\_a\\\\b"

    def test_list_most_recent_first(self, test_db):
        service = ApplicationService(test_db)
        service.create_application("user-1", "Old", "PM", date_applied=datetime(2025, 1, 1))
        service.create_application("user-1", "New", "PM", date_applied=datetime(2025, 6, 1))

        apps = service.list_applications("user-1")

        assert [app.company_name for app in apps] == ["New", "Old"]

    def test_update_application(self, test_db, sample_application):
        service = ApplicationService(test_db)

        updated = service.update_application(
            "user-1",
            sample_application.id,
            job_role="Staff Engineer",
            notes="Referred by a friend",
        )

        assert updated.job_role == "Staff Engineer"
        assert updated.notes == "Referred by a friend"

    def test_update_application_rejects_status_field(self, test_db, sample_application):
        service = ApplicationService(test_db)

        with pytest.raises(ValueError):
            service.update_application("user-1", sample_application.id, status="Rejected")

    def test_update_missing_application(self, test_db):
        service = ApplicationService(test_db)

        assert service.update_application("user-1", "nope", notes="x") is None

    def test_update_status_records_history(self, test_db, sample_application):
        """Test that status changes are recorded in history."""
        service = ApplicationService(test_db)

        service.update_status("user-1", sample_application.id, "In Progress", notes="Phone screen")
        service.update_status("user-1", sample_application.id, "Approved")

        history = service.get_status_history("user-1", sample_application.id)
        assert [(h.old_status, h.new_status) for h in history] == [
            ("Applied", "In Progress"),
            ("In Progress", "Approved"),
        ]
        assert history[0].notes == "Phone screen"

    def test_update_status_same_status_no_history(self, test_db, sample_application):
        service = ApplicationService(test_db)

        app = service.update_status("user-1", sample_application.id, "Applied")

        assert app.status == "Applied"
        assert service.get_status_history("user-1", sample_application.id) == []

    def test_update_status_invalid(self, test_db, sample_application):
        service = ApplicationService(test_db)

        with pytest.raises(ValueError):
            service.update_status("user-1", sample_application.id, "Ghosted")

    def test_update_status_other_user(self, test_db, sample_application):
        service = ApplicationService(test_db)

        assert service.update_status("user-2", sample_application.id, "Rejected") is None
        assert test_db.get(type(sample_application), sample_application.id).status == "Applied"

    def test_delete_application(self, test_db, sample_application):
        service = ApplicationService(test_db)
        service.update_status("user-1", sample_application.id, "Rejected")

        assert service.delete_application("user-1", sample_application.id) is True
        assert service.get_application("user-1", sample_application.id) is None
        assert service.get_status_history("user-1", sample_application.id) == []

    def test_delete_other_users_application(self, test_db, sample_application):
        service = ApplicationService(test_db)

        assert service.delete_application("user-2", sample_application.id) is False
        assert service.get_application("user-1", sample_application.id) is not None

    def test_status_counts(self, test_db):
        service = ApplicationService(test_db)
        service.create_application("user-1", "A", "PM")
        service.create_application("user-1", "B", "PM")
        service.create_application("user-1", "C", "PM", status="Rejected")
        service.create_application("user-2", "D", "PM")

        counts = service.get_status_counts("user-1")

        assert counts["Applied"] == 2
        assert counts["Rejected"] == 1
        assert counts["In Progress"] == 0
        assert counts["Approved"] == 0
        assert counts["total"] == 3
