"""
User repository for database operations
"""

import logging
import sqlite3
from datetime import date, datetime
from typing import Any

from ..connection import DatabaseConnection
from ..models import User

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user records and their point, streak and accuracy aggregates"""

    def __init__(self, db_connection: DatabaseConnection):
        self.db_connection = db_connection

    def create_user(
        self,
        username: str,
        email: str,
        created_at: datetime,
        conn: sqlite3.Connection | None = None,
    ) -> User:
        """Create a new user"""
        with self.db_connection.reuse(conn) as conn:
            cursor = conn.execute(
                """
                INSERT INTO users (username, email, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                """,
                (username, email, created_at, created_at),
            )
            return self.get_user_by_id(cursor.lastrowid, conn=conn)

    def get_user_by_id(
        self, user_id: int, conn: sqlite3.Connection | None = None
    ) -> User | None:
        """Get user by ID"""
        with self.db_connection.reuse(conn) as conn:
            cursor = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,))
            row = cursor.fetchone()
            return dict(row) if row else None

    def get_user_by_username(
        self, username: str, conn: sqlite3.Connection | None = None
    ) -> User | None:
        """Get user by username"""
        with self.db_connection.reuse(conn) as conn:
            cursor = conn.execute("SELECT * FROM users WHERE username = ?", (username,))
            row = cursor.fetchone()
            return dict(row) if row else None

    def get_user_by_email(
        self, email: str, conn: sqlite3.Connection | None = None
    ) -> User | None:
        """Get user by e-mail address, ignoring case"""
        with self.db_connection.reuse(conn) as conn:
            cursor = conn.execute(
                "SELECT * FROM users WHERE LOWER(email) = LOWER(?)", (email,)
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def list_users(self) -> list[User]:
        """List users, newest first"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute("SELECT * FROM users ORDER BY created_at DESC, id DESC")
            return [dict(row) for row in cursor.fetchall()]

    def user_exists(self, conn: sqlite3.Connection, user_id: int) -> bool:
        """Check whether a user row exists"""
        cursor = conn.execute("SELECT 1 FROM users WHERE id = ?", (user_id,))
        return cursor.fetchone() is not None

    def add_points(
        self, conn: sqlite3.Connection, user_id: int, points: int, updated_at: datetime
    ) -> bool:
        """Increment a user's running point total"""
        cursor = conn.execute(
            """
            UPDATE users
            SET total_points = total_points + ?,
                updated_at = ?
            WHERE id = ?
            """,
            (points, updated_at, user_id),
        )
        return cursor.rowcount > 0

    def get_daily_streak_state(
        self, user_id: int, conn: sqlite3.Connection | None = None
    ) -> dict[str, Any] | None:
        """Get the daily login streak fields for a user"""
        with self.db_connection.reuse(conn) as conn:
            cursor = conn.execute(
                """
                SELECT current_daily_streak, max_daily_streak, last_login_date
                FROM users
                WHERE id = ?
                """,
                (user_id,),
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def update_daily_streak(
        self,
        conn: sqlite3.Connection,
        user_id: int,
        current_streak: int,
        max_streak: int,
        last_login_date: date,
        updated_at: datetime,
    ) -> bool:
        """Store the daily login streak fields for a user"""
        cursor = conn.execute(
            """
            UPDATE users
            SET current_daily_streak = ?,
                max_daily_streak = ?,
                last_login_date = ?,
                updated_at = ?
            WHERE id = ?
            """,
            (current_streak, max_streak, last_login_date, updated_at, user_id),
        )
        return cursor.rowcount > 0

    def increment_attempts(
        self, conn: sqlite3.Connection, user_id: int, is_correct: bool
    ) -> bool:
        """Count one answer attempt, and one correct attempt when it was right"""
        cursor = conn.execute(
            """
            UPDATE users
            SET total_attempts = total_attempts + 1,
                correct_attempts = correct_attempts + ?
            WHERE id = ?
            """,
            (1 if is_correct else 0, user_id),
        )
        return cursor.rowcount > 0

    def get_attempt_counts(self, user_id: int) -> dict[str, int] | None:
        """Get total and correct attempt counters for a user"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                "SELECT total_attempts, correct_attempts FROM users WHERE id = ?",
                (user_id,),
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def get_leaderboard(self, limit: int) -> list[dict[str, Any]]:
        """Get users ordered by total points"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT id AS user_id, username, total_points
                FROM users
                ORDER BY total_points DESC, id ASC
                LIMIT ?
                """,
                (limit,),
            )
            return [dict(row) for row in cursor.fetchall()]
