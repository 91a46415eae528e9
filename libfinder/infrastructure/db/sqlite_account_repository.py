"""
SQLite implementation of the AccountRepository and ReservationRepository ports.

This adapter persists users, login sessions and reservations. Bearer tokens
map to user ids through the sessions table; every reservation query is
scoped to one user.
"""

import base64
import secrets
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from libfinder.domain.entities import Reservation, ReservationPage, User
from libfinder.domain.errors import AuthenticationError, NotFoundError
from libfinder.domain.ports import AccountRepository, ReservationRepository
from libfinder.domain.value_objects import PageRequest

TOKEN_BYTES = 32
INITIAL_RESERVATION_STATE = "staging"


class SqliteAccountRepository(AccountRepository, ReservationRepository):
    """
    Emails are unique. Passwords are stored as werkzeug salted hashes.
    """

    def __init__(self, db_path: Path) -> None:
        """
        Initialize the repository with a database path
        """
        self._db_path = db_path
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with row factory."""
        conn = sqlite3.connect(str(self._db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_schema(self) -> None:
        """Create the tables if they don't exist."""
        with self._get_connection() as conn:
            conn.execute("""
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                email TEXT NOT NULL UNIQUE,
                password TEXT NOT NULL,
                fullname TEXT NOT NULL,
                address TEXT NOT NULL
            )
        """)

            conn.execute("""
            CREATE TABLE IF NOT EXISTS sessions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                token TEXT NOT NULL UNIQUE,
                user_id INTEGER NOT NULL,
                FOREIGN KEY (user_id) REFERENCES users(id)
            )
        """)

            conn.execute("""
            CREATE TABLE IF NOT EXISTS reservations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                library_name TEXT NOT NULL,
                isbn TEXT NOT NULL,
                state TEXT NOT NULL,
                staging_at TEXT NOT NULL,
                staged_at TEXT,
                reserved_at TEXT,
                completed_at TEXT,
                FOREIGN KEY (user_id) REFERENCES users(id)
            )
        """)

            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_reservations_user ON reservations(user_id)"
            )
        conn.commit()

    # =========================================================================
    # Accounts
    # =========================================================================

    def create_user(self, email: str, password: str, fullname: str, address: str) -> User:
        """Register a new user."""
        if not email or not email.strip():
            raise ValueError("email cannot be empty")
        if not password:
            raise ValueError("password cannot be empty")

        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    "INSERT INTO users (email, password, fullname, address) VALUES (?, ?, ?, ?)",
                    (email.strip(), generate_password_hash(password), fullname, address),
                )
                conn.commit()
                user_id = cursor.lastrowid
        except sqlite3.IntegrityError as e:
            raise ValueError(f"email '{email}' is already registered") from e
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while creating user: {e}") from e

        return User(id=user_id, email=email.strip(), fullname=fullname, address=address)

    def login(self, email: str, password: str) -> str:
        """Open a session and return its bearer token."""
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT id, password FROM users WHERE email = ?",
                (email,)
            ).fetchone()

            if row is None or not check_password_hash(row["password"], password):
                raise AuthenticationError("invalid email or password")

            token = base64.b64encode(secrets.token_bytes(TOKEN_BYTES)).decode("ascii")
            conn.execute(
                "INSERT INTO sessions (token, user_id) VALUES (?, ?)",
                (token, row["id"]),
            )
            conn.commit()

        return token

    def logout(self, token: str) -> None:
        """Close a session. Unknown tokens are ignored."""
        with self._get_connection() as conn:
            conn.execute("DELETE FROM sessions WHERE token = ?", (token,))
            conn.commit()

    def get_user_by_token(self, token: str) -> User:
        with self._get_connection() as conn:
            row = conn.execute("""
                SELECT users.id, users.email, users.fullname, users.address
                FROM sessions JOIN users ON users.id = sessions.user_id
                WHERE sessions.token = ?
            """, (token,)).fetchone()

        if row is None:
            raise AuthenticationError("unknown or expired token")

        return User(
            id=row["id"],
            email=row["email"],
            fullname=row["fullname"],
            address=row["address"],
        )

    # =========================================================================
    # Reservations
    # =========================================================================

    def create_reservation(self, user_id: int, isbn: str, library_name: str) -> Reservation:
        """Stage a new reservation."""
        staging_at = datetime.now(timezone.utc)

        try:
            with self._get_connection() as conn:
                cursor = conn.execute("""
                    INSERT INTO reservations (user_id, library_name, isbn, state, staging_at)
                    VALUES (?, ?, ?, ?, ?)
                """, (user_id, library_name, isbn, INITIAL_RESERVATION_STATE, staging_at.isoformat()))
                conn.commit()
                reservation_id = cursor.lastrowid
        except sqlite3.IntegrityError as e:
            raise ValueError(f"Reservation violates constraints: {e}") from e
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while creating reservation: {e}") from e

        return Reservation(
            id=reservation_id,
            user_id=user_id,
            library_name=library_name,
            isbn=isbn,
            state=INITIAL_RESERVATION_STATE,
            staging_at=staging_at,
        )

    def list_reservations(self, user_id: int, page: PageRequest) -> ReservationPage:
        """One page of a user's reservations, oldest first."""
        with self._get_connection() as conn:
            total = conn.execute(
                "SELECT COUNT(*) AS cnt FROM reservations WHERE user_id = ?",
                (user_id,)
            ).fetchone()["cnt"]

            rows = conn.execute(
                "SELECT * FROM reservations WHERE user_id = ? ORDER BY id LIMIT ? OFFSET ?",
                (user_id, page.page_size, page.offset)
            ).fetchall()

        return ReservationPage(items=[self._row_to_reservation(row) for row in rows], total_count=total)

    def get_reservation(self, user_id: int, reservation_id: int) -> Reservation:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM reservations WHERE id = ? AND user_id = ?",
                (reservation_id, user_id)
            ).fetchone()

        if row is None:
            raise NotFoundError(f"reservation {reservation_id} not found")
        return self._row_to_reservation(row)

    def _row_to_reservation(self, row: sqlite3.Row) -> Reservation:
        """Convert a database row to a Reservation entity."""
        return Reservation(
            id=row["id"],
            user_id=row["user_id"],
            library_name=row["library_name"],
            isbn=row["isbn"],
            state=row["state"],
            staging_at=datetime.fromisoformat(row["staging_at"]),
            staged_at=_parse_optional(row["staged_at"]),
            reserved_at=_parse_optional(row["reserved_at"]),
            completed_at=_parse_optional(row["completed_at"]),
        )


def _parse_optional(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None
