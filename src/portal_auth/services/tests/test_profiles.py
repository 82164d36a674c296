"""Tests for the privileged profile lookup."""

from unittest.mock import MagicMock, Mock

import httpx
import pytest
from postgrest.exceptions import APIError

from src.portal_auth.models import Identity
from src.portal_auth.services.profiles import ServerProfileLookup, is_transient_error


@pytest.fixture
def identity() -> Identity:
    return Identity(id="user-1", email="ops@example.com")


@pytest.fixture
def db() -> MagicMock:
    """Mock SupabaseQueryBuilder."""
    db = MagicMock()
    db.get_by_field.return_value = None
    db.get_by_email.return_value = None
    return db


@pytest.fixture
def analytics() -> Mock:
    return Mock()


@pytest.fixture
def lookup(db, analytics) -> ServerProfileLookup:
    return ServerProfileLookup(db=db, analytics=analytics)


class TestServerProfileLookup:
    """Tests for ServerProfileLookup.resolve."""

    def test_match_by_user_id_needs_no_write(self, lookup, db, identity) -> None:
        db.get_by_field.return_value = {"id": "e-1", "user_id": "user-1"}

        row = lookup.resolve("employees", identity)

        assert row["id"] == "e-1"
        db.get_by_field.assert_called_once_with("employees", "user_id", "user-1")
        db.get_by_email.assert_not_called()
        db.update_record.assert_not_called()

    def test_email_match_back_fills_user_id(self, lookup, db, analytics, identity) -> None:
        """Test a row found by email is linked to the identity."""
        db.get_by_email.return_value = {"id": "e-2", "email": "Ops@Example.com", "user_id": None}

        row = lookup.resolve("employees", identity)

        assert row["user_id"] == "user-1"
        db.update_record.assert_called_once_with("employees", "e-2", {"user_id": "user-1"})
        analytics.capture.assert_called_once_with(
            distinct_id="user-1", event="profile_synced", properties={"table": "employees"}
        )

    def test_email_match_relinks_other_user_id(self, lookup, db, identity) -> None:
        db.get_by_email.return_value = {"id": "b-1", "user_id": "old-user"}

        row = lookup.resolve("buyers", identity)

        assert row["user_id"] == "user-1"
        db.update_record.assert_called_once()

    def test_sync_failure_still_returns_row(self, lookup, db, analytics, identity) -> None:
        db.get_by_email.return_value = {"id": "v-1", "user_id": None}
        db.update_record.side_effect = APIError({"message": "denied", "code": "42501"})

        row = lookup.resolve("vendors", identity)

        assert row["id"] == "v-1"
        assert row["user_id"] is None
        analytics.capture.assert_not_called()

    def test_no_match(self, lookup, identity) -> None:
        assert lookup.resolve("vendors", identity) is None

    def test_identity_without_email(self, lookup, db) -> None:
        assert lookup.resolve("buyers", Identity(id="user-9")) is None
        db.get_by_email.assert_not_called()

    def test_lookup_errors_propagate(self, lookup, db, identity) -> None:
        db.get_by_field.side_effect = httpx.ConnectError("refused")

        with pytest.raises(httpx.ConnectError):
            lookup.resolve("employees", identity)


class TestIsTransientError:
    """Tests for is_transient_error."""

    def test_transport_errors(self) -> None:
        assert is_transient_error(httpx.ReadTimeout("slow"))

    def test_upstream_codes(self) -> None:
        assert is_transient_error(APIError({"message": "timeout", "code": "57014"}))
        assert is_transient_error(APIError({"message": "down", "code": "PGRST000"}))
        assert is_transient_error(APIError({"message": "bad gateway", "code": "502"}))

    def test_permanent_errors(self) -> None:
        assert not is_transient_error(APIError({"message": "denied", "code": "42501"}))
        assert not is_transient_error(ValueError("bad"))
