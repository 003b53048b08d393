"""
Point transaction repository for the append-only points ledger
"""

import logging
import sqlite3
from datetime import datetime

from ..connection import DatabaseConnection
from ..models import PointTransaction, TransactionType

logger = logging.getLogger(__name__)


class TransactionRepository:
    """Repository for point ledger entries"""

    def __init__(self, db_connection: DatabaseConnection):
        self.db_connection = db_connection

    def insert_transaction(
        self,
        conn: sqlite3.Connection,
        user_id: int,
        transaction_type: TransactionType,
        points: int,
        description: str,
        created_at: datetime,
        course_id: str | None = None,
        lesson_id: str | None = None,
        exercise_id: str | None = None,
    ) -> PointTransaction:
        """Append a ledger entry and return it"""
        cursor = conn.execute(
            """
            INSERT INTO user_point_transactions (
                user_id, course_id, lesson_id, exercise_id,
                transaction_type, points, description, created_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                user_id,
                course_id,
                lesson_id,
                exercise_id,
                transaction_type.value,
                points,
                description,
                created_at,
            ),
        )
        cursor = conn.execute(
            "SELECT * FROM user_point_transactions WHERE id = ?", (cursor.lastrowid,)
        )
        return dict(cursor.fetchone())

    def transaction_exists(
        self,
        conn: sqlite3.Connection,
        user_id: int,
        course_id: str,
        transaction_type: TransactionType,
        lesson_id: str | None = None,
    ) -> bool:
        """Check for a ledger entry of a type for a course, or for one lesson of it"""
        if lesson_id is not None:
            cursor = conn.execute(
                """
                SELECT EXISTS(
                    SELECT 1 FROM user_point_transactions
                    WHERE user_id = ? AND course_id = ? AND lesson_id = ?
                    AND transaction_type = ?
                )
                """,
                (user_id, course_id, lesson_id, transaction_type.value),
            )
        else:
            cursor = conn.execute(
                """
                SELECT EXISTS(
                    SELECT 1 FROM user_point_transactions
                    WHERE user_id = ? AND course_id = ?
                    AND transaction_type = ?
                )
                """,
                (user_id, course_id, transaction_type.value),
            )
        return bool(cursor.fetchone()[0])

    def get_recent_transactions(self, user_id: int, limit: int) -> list[PointTransaction]:
        """Get a user's ledger entries, newest first"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT * FROM user_point_transactions
                WHERE user_id = ?
                ORDER BY created_at DESC, id DESC
                LIMIT ?
                """,
                (user_id, limit),
            )
            return [dict(row) for row in cursor.fetchall()]

    def get_points_sum(self, user_id: int) -> int:
        """Sum of every ledger entry of a user"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                "SELECT COALESCE(SUM(points), 0) FROM user_point_transactions WHERE user_id = ?",
                (user_id,),
            )
            return int(cursor.fetchone()[0])
