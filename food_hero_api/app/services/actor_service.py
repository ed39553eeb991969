"""
Business logic for actors (schools and farmers).

``ActorDirectory`` registers and authenticates actors and owns their
counters.  Counts change with in-place ``UPDATE`` statements
(``count = count + 1``), never read-modify-write, and the same
statement rewrites ``stars`` through ``reputation.stars`` registered as
the SQL function ``stars_for``.  The counter methods take the caller's
connection so the update commits in the same transaction as the entry
transition that caused it.
"""

import logging
import sqlite3
from typing import Optional

from ..core.db import Database, utcnow
from ..core.errors import ConflictError, NotFoundError
from ..core.security import hash_password, verify_password
from ..schemas.user import Role, UserCreate, UserRead
from .reputation import stars


logger = logging.getLogger(__name__)

USER_COLUMNS = (
    "id, email, role, institute_name, address, contact_number, name, purpose, other_purpose, "
    "waste_posts_count, waste_received_count, stars, created_at"
)


def _row_to_user(row: sqlite3.Row) -> UserRead:
    return UserRead(**{key: row[key] for key in row.keys() if key != "password"})


class ActorDirectory:
    """Registration, lookup and counters for schools and farmers."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def register(self, data: UserCreate) -> UserRead:
        """Create a new actor with zeroed counters.

        Raises ``ConflictError`` when the email is already registered.
        """
        email = data.email.strip().lower()
        try:
            user_id, row = self._insert(data, email)
        except sqlite3.IntegrityError:
            raise ConflictError(f"User {email} is already registered")
        logger.info("Registered %s %s as user %s", data.role.value, email, user_id)
        return _row_to_user(row)

    def _insert(self, data: UserCreate, email: str):
        with self.db.transaction() as conn:
            existing = conn.execute("SELECT id FROM users WHERE email = ?", (email,)).fetchone()
            if existing:
                raise ConflictError(f"User {email} is already registered")
            cursor = conn.execute(
                """
                INSERT INTO users (
                    email, password, role, institute_name, address, contact_number,
                    name, purpose, other_purpose, waste_posts_count, waste_received_count, stars,
                    created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 0, 0, 0, ?)
                """,
                (
                    email,
                    hash_password(data.password),
                    data.role.value,
                    data.institute_name,
                    data.address,
                    data.contact_number,
                    data.name,
                    data.purpose,
                    data.other_purpose,
                    utcnow().isoformat(timespec="microseconds"),
                ),
            )
            user_id = cursor.lastrowid
            row = conn.execute(f"SELECT {USER_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
        return user_id, row

    def authenticate(self, email: str, password: str) -> Optional[UserRead]:
        """Return the actor when the credentials match, else ``None``."""
        with self.db.reader() as conn:
            row = conn.execute(
                f"SELECT {USER_COLUMNS}, password FROM users WHERE email = ?",
                (email.strip().lower(),),
            ).fetchone()
        if row is None or not verify_password(password, row["password"]):
            logger.info("Failed login for %s", email)
            return None
        return _row_to_user(row)

    def get(self, user_id: int) -> UserRead:
        with self.db.reader() as conn:
            row = conn.execute(f"SELECT {USER_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
        if row is None:
            raise NotFoundError(f"User {user_id} not found")
        return _row_to_user(row)

    def find_by_email(self, email: Optional[str]) -> Optional[UserRead]:
        if not email:
            return None
        with self.db.reader() as conn:
            row = conn.execute(
                f"SELECT {USER_COLUMNS} FROM users WHERE email = ?", (email.strip().lower(),)
            ).fetchone()
        return _row_to_user(row) if row else None

    # ------------------------------------------------------------------
    # Counters.  Each returns the actor's stars after the update.
    # ------------------------------------------------------------------

    def _apply_counter(self, conn: sqlite3.Connection, user_id: int, role: Role, column: str, new_value_sql: str) -> int:
        conn.create_function("stars_for", 1, stars, deterministic=True)
        cursor = conn.execute(
            f"UPDATE users SET {column} = {new_value_sql}, stars = stars_for({new_value_sql}) "
            "WHERE id = ? AND role = ?",
            (user_id, role.value),
        )
        if cursor.rowcount != 1:
            raise NotFoundError(f"No {role.value} with id {user_id}")
        return conn.execute("SELECT stars FROM users WHERE id = ?", (user_id,)).fetchone()[0]

    def increment_posts(self, conn: sqlite3.Connection, school_id: int) -> int:
        return self._apply_counter(conn, school_id, Role.SCHOOL, "waste_posts_count", "waste_posts_count + 1")

    def decrement_posts(self, conn: sqlite3.Connection, school_id: int) -> int:
        """Decrement the post counter, never below zero."""
        return self._apply_counter(
            conn, school_id, Role.SCHOOL, "waste_posts_count", "MAX(waste_posts_count - 1, 0)"
        )

    def increment_received(self, conn: sqlite3.Connection, farmer_id: int) -> int:
        return self._apply_counter(
            conn, farmer_id, Role.FARMER, "waste_received_count", "waste_received_count + 1"
        )
