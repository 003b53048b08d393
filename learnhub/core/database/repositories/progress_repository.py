"""
Progress repository for course, lesson and exercise attempt records
"""

import logging
import sqlite3
from datetime import datetime

from ..connection import DatabaseConnection
from ..models import CourseProgress, ExerciseAttempt, LessonProgress, ProgressStatus

logger = logging.getLogger(__name__)


class ProgressRepository:
    """Repository for course/lesson progress and exercise attempt operations"""

    def __init__(self, db_connection: DatabaseConnection):
        self.db_connection = db_connection

    # Course progress

    def get_course_progress(
        self, user_id: int, course_id: str, conn: sqlite3.Connection | None = None
    ) -> CourseProgress | None:
        """Get progress for a course"""
        with self.db_connection.reuse(conn) as conn:
            cursor = conn.execute(
                """
                SELECT * FROM user_course_progress
                WHERE user_id = ? AND course_id = ?
                """,
                (user_id, course_id),
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def get_or_create_course_progress(
        self,
        user_id: int,
        course_id: str,
        now: datetime,
        status: ProgressStatus = ProgressStatus.NOT_STARTED,
        conn: sqlite3.Connection | None = None,
    ) -> CourseProgress:
        """Get progress for a course, creating the record on first access"""
        with self.db_connection.reuse(conn) as conn:
            conn.execute(
                """
                INSERT INTO user_course_progress (user_id, course_id, status, started_at, last_accessed_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT (user_id, course_id) DO NOTHING
                """,
                (user_id, course_id, status.value, now, now),
            )
            return self.get_course_progress(user_id, course_id, conn=conn)

    def upsert_course_status(
        self,
        user_id: int,
        course_id: str,
        status: ProgressStatus,
        now: datetime,
        conn: sqlite3.Connection | None = None,
    ) -> None:
        """Set a course status; completed_at is stamped on the transition to completed"""
        with self.db_connection.reuse(conn) as conn:
            conn.execute(
                """
                INSERT INTO user_course_progress (
                    user_id, course_id, status, started_at, last_accessed_at, completed_at
                )
                VALUES (?, ?, ?, ?, ?, CASE WHEN ? = 'completed' THEN ? END)
                ON CONFLICT (user_id, course_id) DO UPDATE
                SET status = excluded.status,
                    last_accessed_at = excluded.last_accessed_at,
                    completed_at = CASE
                        WHEN excluded.status = 'completed'
                            AND user_course_progress.status != 'completed'
                        THEN excluded.last_accessed_at
                        ELSE user_course_progress.completed_at
                    END
                """,
                (user_id, course_id, status.value, now, now, status.value, now),
            )

    def complete_course(
        self,
        conn: sqlite3.Connection,
        user_id: int,
        course_id: str,
        bonus_points: int,
        now: datetime,
    ) -> None:
        """Credit a course bonus and mark the course completed"""
        conn.execute(
            """
            UPDATE user_course_progress
            SET total_course_points = total_course_points + ?,
                status = 'completed',
                last_accessed_at = ?,
                completed_at = COALESCE(completed_at, ?)
            WHERE user_id = ? AND course_id = ?
            """,
            (bonus_points, now, now, user_id, course_id),
        )

    def get_lesson_counts(
        self, user_id: int, course_id: str, conn: sqlite3.Connection | None = None
    ) -> dict[str, int]:
        """Count the lessons of a course with progress records, and the completed ones"""
        with self.db_connection.reuse(conn) as conn:
            cursor = conn.execute(
                """
                SELECT COUNT(DISTINCT lesson_id) AS total_lessons,
                       COUNT(DISTINCT CASE WHEN status = 'completed' THEN lesson_id END)
                           AS completed_lessons
                FROM user_lesson_progress
                WHERE user_id = ? AND course_id = ?
                """,
                (user_id, course_id),
            )
            return dict(cursor.fetchone())

    # Lesson progress

    def get_lesson_progress(
        self,
        user_id: int,
        course_id: str,
        lesson_id: str,
        conn: sqlite3.Connection | None = None,
    ) -> LessonProgress | None:
        """Get progress for a lesson"""
        with self.db_connection.reuse(conn) as conn:
            cursor = conn.execute(
                """
                SELECT * FROM user_lesson_progress
                WHERE user_id = ? AND course_id = ? AND lesson_id = ?
                """,
                (user_id, course_id, lesson_id),
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def get_or_create_lesson_progress(
        self,
        user_id: int,
        course_id: str,
        lesson_id: str,
        now: datetime,
        status: ProgressStatus = ProgressStatus.NOT_STARTED,
        conn: sqlite3.Connection | None = None,
    ) -> LessonProgress:
        """Get progress for a lesson, creating the record on first access"""
        with self.db_connection.reuse(conn) as conn:
            conn.execute(
                """
                INSERT INTO user_lesson_progress (
                    user_id, course_id, lesson_id, status, started_at, last_accessed_at
                )
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT (user_id, course_id, lesson_id) DO NOTHING
                """,
                (user_id, course_id, lesson_id, status.value, now, now),
            )
            return self.get_lesson_progress(user_id, course_id, lesson_id, conn=conn)

    def upsert_lesson_status(
        self,
        user_id: int,
        course_id: str,
        lesson_id: str,
        status: ProgressStatus,
        now: datetime,
        conn: sqlite3.Connection | None = None,
    ) -> None:
        """Set a lesson status; completed_at is stamped on the transition to completed"""
        with self.db_connection.reuse(conn) as conn:
            conn.execute(
                """
                INSERT INTO user_lesson_progress (
                    user_id, course_id, lesson_id, status,
                    started_at, last_accessed_at, completed_at
                )
                VALUES (?, ?, ?, ?, ?, ?, CASE WHEN ? = 'completed' THEN ? END)
                ON CONFLICT (user_id, course_id, lesson_id) DO UPDATE
                SET status = excluded.status,
                    last_accessed_at = excluded.last_accessed_at,
                    completed_at = CASE
                        WHEN excluded.status = 'completed'
                            AND user_lesson_progress.status != 'completed'
                        THEN excluded.last_accessed_at
                        ELSE user_lesson_progress.completed_at
                    END
                """,
                (
                    user_id,
                    course_id,
                    lesson_id,
                    status.value,
                    now,
                    now,
                    status.value,
                    now,
                ),
            )

    def mark_lesson_started(
        self,
        conn: sqlite3.Connection,
        user_id: int,
        course_id: str,
        lesson_id: str,
        now: datetime,
    ) -> None:
        """Move a lesson from not_started to in_progress and touch last_accessed_at"""
        conn.execute(
            """
            UPDATE user_lesson_progress
            SET status = CASE WHEN status = 'not_started' THEN 'in_progress' ELSE status END,
                last_accessed_at = ?
            WHERE user_id = ? AND course_id = ? AND lesson_id = ?
            """,
            (now, user_id, course_id, lesson_id),
        )

    def reset_lesson_streak(
        self,
        user_id: int,
        course_id: str,
        lesson_id: str,
        conn: sqlite3.Connection | None = None,
    ) -> bool:
        """Reset the consecutive-correct counter of a lesson"""
        with self.db_connection.reuse(conn) as conn:
            cursor = conn.execute(
                """
                UPDATE user_lesson_progress
                SET current_streak = 0
                WHERE user_id = ? AND course_id = ? AND lesson_id = ?
                """,
                (user_id, course_id, lesson_id),
            )
            return cursor.rowcount > 0

    def apply_correct_answer(
        self,
        conn: sqlite3.Connection,
        user_id: int,
        course_id: str,
        lesson_id: str,
        new_streak: int,
        points: int,
        now: datetime,
    ) -> None:
        """Store the extended streak and credit the lesson with the awarded points"""
        conn.execute(
            """
            UPDATE user_lesson_progress
            SET current_streak = ?,
                max_streak = MAX(max_streak, ?),
                total_lesson_points = total_lesson_points + ?,
                last_accessed_at = ?
            WHERE user_id = ? AND course_id = ? AND lesson_id = ?
            """,
            (new_streak, new_streak, points, now, user_id, course_id, lesson_id),
        )

    def complete_lesson(
        self,
        conn: sqlite3.Connection,
        user_id: int,
        course_id: str,
        lesson_id: str,
        bonus_points: int,
        now: datetime,
    ) -> None:
        """Credit a lesson bonus and mark the lesson completed"""
        conn.execute(
            """
            UPDATE user_lesson_progress
            SET total_lesson_points = total_lesson_points + ?,
                status = 'completed',
                last_accessed_at = ?,
                completed_at = COALESCE(completed_at, ?)
            WHERE user_id = ? AND course_id = ? AND lesson_id = ?
            """,
            (bonus_points, now, now, user_id, course_id, lesson_id),
        )

    def get_streak_summary(self, user_id: int) -> dict[str, int]:
        """Get the highest current and max lesson streak of a user"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT COALESCE(MAX(current_streak), 0) AS current_streak,
                       COALESCE(MAX(max_streak), 0) AS max_streak
                FROM user_lesson_progress
                WHERE user_id = ?
                """,
                (user_id,),
            )
            return dict(cursor.fetchone())

    # Exercise attempts

    def record_exercise_attempt(
        self,
        user_id: int,
        course_id: str,
        lesson_id: str,
        exercise_id: str,
        answer_json: str,
        is_correct: bool,
        now: datetime,
        conn: sqlite3.Connection | None = None,
    ) -> ExerciseAttempt:
        """Append an attempt, numbering it after the user's previous attempts"""
        with self.db_connection.reuse(conn) as conn:
            cursor = conn.execute(
                """
                INSERT INTO user_exercise_attempts (
                    user_id, course_id, lesson_id, exercise_id,
                    attempt_number, answer, is_correct, attempted_at
                )
                VALUES (?, ?, ?, ?, (
                    SELECT COALESCE(MAX(attempt_number), 0) + 1
                    FROM user_exercise_attempts
                    WHERE user_id = ? AND course_id = ? AND lesson_id = ? AND exercise_id = ?
                ), ?, ?, ?)
                """,
                (
                    user_id,
                    course_id,
                    lesson_id,
                    exercise_id,
                    user_id,
                    course_id,
                    lesson_id,
                    exercise_id,
                    answer_json,
                    is_correct,
                    now,
                ),
            )
            cursor = conn.execute(
                "SELECT * FROM user_exercise_attempts WHERE id = ?", (cursor.lastrowid,)
            )
            return self._attempt_from_row(cursor.fetchone())

    def stamp_latest_attempt(
        self,
        conn: sqlite3.Connection,
        user_id: int,
        course_id: str,
        lesson_id: str,
        exercise_id: str,
        streak: int,
        points: int,
    ) -> None:
        """Record the streak and points earned on the most recent attempt"""
        conn.execute(
            """
            UPDATE user_exercise_attempts
            SET streak_at_attempt = ?,
                points_earned = ?
            WHERE id = (
                SELECT MAX(id) FROM user_exercise_attempts
                WHERE user_id = ? AND course_id = ? AND lesson_id = ? AND exercise_id = ?
            )
            """,
            (streak, points, user_id, course_id, lesson_id, exercise_id),
        )

    def get_exercise_attempts(
        self,
        user_id: int,
        course_id: str,
        lesson_id: str,
        exercise_id: str | None = None,
    ) -> list[ExerciseAttempt]:
        """Get attempts in a lesson, optionally for one exercise, oldest first"""
        with self.db_connection.get_connection() as conn:
            if exercise_id:
                cursor = conn.execute(
                    """
                    SELECT * FROM user_exercise_attempts
                    WHERE user_id = ? AND course_id = ? AND lesson_id = ? AND exercise_id = ?
                    ORDER BY id ASC
                    """,
                    (user_id, course_id, lesson_id, exercise_id),
                )
            else:
                cursor = conn.execute(
                    """
                    SELECT * FROM user_exercise_attempts
                    WHERE user_id = ? AND course_id = ? AND lesson_id = ?
                    ORDER BY id ASC
                    """,
                    (user_id, course_id, lesson_id),
                )
            return [self._attempt_from_row(row) for row in cursor.fetchall()]

    @staticmethod
    def _attempt_from_row(row: sqlite3.Row) -> ExerciseAttempt:
        attempt = dict(row)
        attempt["is_correct"] = bool(attempt["is_correct"])
        return attempt
