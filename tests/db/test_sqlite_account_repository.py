"""
Tests for SqliteAccountRepository.

Each test gets its own database file under pytest's tmp_path.
"""

import base64
import sqlite3

import pytest
from werkzeug.security import check_password_hash

from libfinder.domain.errors import AuthenticationError, NotFoundError
from libfinder.domain.value_objects import PageRequest
from libfinder.infrastructure.db import SqliteAccountRepository


@pytest.fixture
def repo(tmp_path):
    """Create a repository backed by a temporary database."""
    return SqliteAccountRepository(db_path=tmp_path / "nested" / "libfinder.db")


@pytest.fixture
def user(repo):
    return repo.create_user(
        email="reader@example.com",
        password="correct horse",
        fullname="山田 花子",
        address="富山県射水市本町2-10-20",
    )


# =============================================================================
# Accounts
# =============================================================================


class TestUsers:
    """Tests for user registration and sessions."""

    def test_create_user(self, repo, user):
        assert user.id > 0
        assert user.email == "reader@example.com"
        assert user.fullname == "山田 花子"

    def test_password_is_not_stored_in_clear(self, repo, user, tmp_path):
        conn = sqlite3.connect(str(tmp_path / "nested" / "libfinder.db"))
        try:
            stored = conn.execute("SELECT password FROM users WHERE id = ?", (user.id,)).fetchone()[0]
        finally:
            conn.close()

        assert "correct horse" not in stored
        assert check_password_hash(stored, "correct horse")
        assert not check_password_hash(stored, "wrong")

    def test_same_password_gets_distinct_salts(self, repo, user, tmp_path):
        repo.create_user("other@example.com", "correct horse", "別人", "東京都")
        conn = sqlite3.connect(str(tmp_path / "nested" / "libfinder.db"))
        try:
            hashes = [row[0] for row in conn.execute("SELECT password FROM users ORDER BY id")]
        finally:
            conn.close()

        assert len(set(hashes)) == 2

    def test_duplicate_email_rejected(self, repo, user):
        with pytest.raises(ValueError, match="already registered"):
            repo.create_user("reader@example.com", "other", "別人", "東京都")

    def test_empty_email_rejected(self, repo):
        with pytest.raises(ValueError, match="email cannot be empty"):
            repo.create_user(" ", "pw", "name", "addr")

    def test_login_returns_base64_token(self, repo, user):
        token = repo.login("reader@example.com", "correct horse")

        assert len(base64.b64decode(token)) == 32

    def test_each_login_gets_a_new_token(self, repo, user):
        first = repo.login("reader@example.com", "correct horse")
        second = repo.login("reader@example.com", "correct horse")

        assert first != second

    def test_wrong_password_rejected(self, repo, user):
        with pytest.raises(AuthenticationError):
            repo.login("reader@example.com", "wrong")

    def test_unknown_email_rejected(self, repo):
        with pytest.raises(AuthenticationError):
            repo.login("nobody@example.com", "whatever")

    def test_token_resolves_to_user(self, repo, user):
        token = repo.login("reader@example.com", "correct horse")

        assert repo.get_user_by_token(token) == user

    def test_logout_invalidates_token(self, repo, user):
        token = repo.login("reader@example.com", "correct horse")

        repo.logout(token)

        with pytest.raises(AuthenticationError):
            repo.get_user_by_token(token)

    def test_logout_unknown_token_is_ignored(self, repo):
        repo.logout("not-a-token")


# =============================================================================
# Reservations
# =============================================================================


class TestReservations:
    """Tests for reservation persistence."""

    def test_create_reservation_is_staging(self, repo, user):
        reservation = repo.create_reservation(user.id, "9784001141276", "射水市新湊図書館")

        assert reservation.id > 0
        assert reservation.state == "staging"
        assert reservation.staged_at is None
        assert reservation.staging_at.tzinfo is not None

    def test_get_reservation_round_trips(self, repo, user):
        created = repo.create_reservation(user.id, "9784001141276", "射水市新湊図書館")

        fetched = repo.get_reservation(user.id, created.id)

        assert fetched == created

    def test_reservations_are_scoped_to_user(self, repo, user):
        other = repo.create_user("other@example.com", "pw", "他人", "東京都")
        reservation = repo.create_reservation(user.id, "9784001141276", "射水市新湊図書館")

        with pytest.raises(NotFoundError):
            repo.get_reservation(other.id, reservation.id)
        assert repo.list_reservations(other.id, PageRequest()).total_count == 0

    def test_list_reservations_paginates_oldest_first(self, repo, user):
        for i in range(5):
            repo.create_reservation(user.id, f"978400114127{i}", "射水市新湊図書館")

        page = repo.list_reservations(user.id, PageRequest(page_size=2, page=1))

        assert page.total_count == 5
        assert [r.isbn for r in page.items] == ["9784001141272", "9784001141273"]

    def test_reservation_for_unknown_user_rejected(self, repo):
        with pytest.raises(ValueError, match="violates constraints"):
            repo.create_reservation(999, "9784001141276", "射水市新湊図書館")
