"""
Course and lesson progress tracking
"""

import json
import logging
import sqlite3
from collections.abc import Callable
from datetime import datetime
from typing import Any

from ..core.database.database_manager import DatabaseManager
from ..core.database.models import (
    CourseProgress,
    CourseProgressWithPercentage,
    ExerciseAttempt,
    LessonProgress,
    ProgressStatus,
)
from ..core.errors import InvalidStatusError, PersistenceError, ProgressNotFoundError, UserNotFoundError
from ..utils import calculate_success_rate, utc_now

logger = logging.getLogger(__name__)


def parse_status(status: ProgressStatus | str) -> ProgressStatus:
    """Convert a status value to ProgressStatus"""
    try:
        return ProgressStatus(status)
    except ValueError:
        raise InvalidStatusError(str(status)) from None


class ProgressService:
    """Reads and writes course/lesson progress and the exercise attempt log"""

    def __init__(self, db_manager: DatabaseManager, clock: Callable[[], datetime] = utc_now):
        self.db_manager = db_manager
        self.clock = clock
        self.user_repo = db_manager.user_repo
        self.progress_repo = db_manager.progress_repo

    def _require_user(self, conn: sqlite3.Connection, user_id: int) -> None:
        if not self.user_repo.user_exists(conn, user_id):
            raise UserNotFoundError(user_id)

    # Course progress

    def get_course_progress(self, user_id: int, course_id: str) -> CourseProgress:
        """Get course progress; raises ProgressNotFoundError when there is none"""
        try:
            progress = self.progress_repo.get_course_progress(user_id, course_id)
        except sqlite3.Error as e:
            logger.error(f"Error getting course progress: {e}")
            raise PersistenceError("get course progress", e) from e
        if progress is None:
            raise ProgressNotFoundError(user_id, course_id)
        return progress

    def get_or_create_course_progress(self, user_id: int, course_id: str) -> CourseProgress:
        """Get course progress, starting a not_started record on first access"""
        try:
            with self.db_manager.transaction() as conn:
                self._require_user(conn, user_id)
                return self.progress_repo.get_or_create_course_progress(
                    user_id, course_id, self.clock(), conn=conn
                )
        except sqlite3.Error as e:
            logger.error(f"Error creating course progress: {e}")
            raise PersistenceError("get or create course progress", e) from e

    def update_course_progress(
        self, user_id: int, course_id: str, status: ProgressStatus | str
    ) -> CourseProgress:
        """Set the status of a course, creating its record if needed"""
        status = parse_status(status)
        try:
            with self.db_manager.transaction() as conn:
                self._require_user(conn, user_id)
                self.progress_repo.upsert_course_status(
                    user_id, course_id, status, self.clock(), conn=conn
                )
                progress = self.progress_repo.get_course_progress(user_id, course_id, conn=conn)
        except sqlite3.Error as e:
            logger.error(f"Error updating course progress: {e}")
            raise PersistenceError("update course progress", e) from e

        logger.info(f"User {user_id} course {course_id} is now {status.value}")
        return progress

    def get_course_progress_with_percentage(
        self, user_id: int, course_id: str
    ) -> CourseProgressWithPercentage:
        """
        Get course progress with its completion percentage

        The percentage is completed lessons over lessons the user has a
        progress record for, 0 when there are none. The course record is
        created on first access.
        """
        try:
            with self.db_manager.transaction() as conn:
                self._require_user(conn, user_id)
                progress = self.progress_repo.get_or_create_course_progress(
                    user_id, course_id, self.clock(), conn=conn
                )
                counts = self.progress_repo.get_lesson_counts(user_id, course_id, conn=conn)
        except sqlite3.Error as e:
            logger.error(f"Error getting course progress percentage: {e}")
            raise PersistenceError("get course progress percentage", e) from e

        return {
            **progress,
            "progress_percentage": calculate_success_rate(
                counts["completed_lessons"], counts["total_lessons"]
            ),
        }

    # Lesson progress

    def get_lesson_progress(self, user_id: int, course_id: str, lesson_id: str) -> LessonProgress:
        """Get lesson progress; raises ProgressNotFoundError when there is none"""
        try:
            progress = self.progress_repo.get_lesson_progress(user_id, course_id, lesson_id)
        except sqlite3.Error as e:
            logger.error(f"Error getting lesson progress: {e}")
            raise PersistenceError("get lesson progress", e) from e
        if progress is None:
            raise ProgressNotFoundError(user_id, course_id, lesson_id)
        return progress

    def get_or_create_lesson_progress(
        self, user_id: int, course_id: str, lesson_id: str
    ) -> LessonProgress:
        """Get lesson progress, starting a not_started record on first access"""
        try:
            with self.db_manager.transaction() as conn:
                self._require_user(conn, user_id)
                return self.progress_repo.get_or_create_lesson_progress(
                    user_id, course_id, lesson_id, self.clock(), conn=conn
                )
        except sqlite3.Error as e:
            logger.error(f"Error creating lesson progress: {e}")
            raise PersistenceError("get or create lesson progress", e) from e

    def update_lesson_progress(
        self,
        user_id: int,
        course_id: str,
        lesson_id: str,
        status: ProgressStatus | str,
    ) -> LessonProgress:
        """
        Set the status of a lesson, creating its record if needed

        completed_at is stamped only when the lesson first moves into
        completed; repeating the update keeps the first timestamp.
        """
        status = parse_status(status)
        try:
            with self.db_manager.transaction() as conn:
                self._require_user(conn, user_id)
                self.progress_repo.upsert_lesson_status(
                    user_id, course_id, lesson_id, status, self.clock(), conn=conn
                )
                progress = self.progress_repo.get_lesson_progress(
                    user_id, course_id, lesson_id, conn=conn
                )
        except sqlite3.Error as e:
            logger.error(f"Error updating lesson progress: {e}")
            raise PersistenceError("update lesson progress", e) from e

        logger.info(f"User {user_id} lesson {course_id}/{lesson_id} is now {status.value}")
        return progress

    # Exercise attempts

    def record_exercise_attempt(
        self,
        user_id: int,
        course_id: str,
        lesson_id: str,
        exercise_id: str,
        answer: Any,
        is_correct: bool,
    ) -> ExerciseAttempt:
        """Append an attempt to the log; the answer is stored as JSON"""
        try:
            with self.db_manager.transaction() as conn:
                self._require_user(conn, user_id)
                attempt = self.progress_repo.record_exercise_attempt(
                    user_id,
                    course_id,
                    lesson_id,
                    exercise_id,
                    json.dumps(answer),
                    is_correct,
                    self.clock(),
                    conn=conn,
                )
        except sqlite3.Error as e:
            logger.error(f"Error recording exercise attempt: {e}")
            raise PersistenceError("record exercise attempt", e) from e

        logger.debug(
            f"Recorded attempt {attempt['attempt_number']} of {exercise_id} "
            f"for user {user_id}: correct={is_correct}"
        )
        return attempt

    def get_exercise_attempts(
        self,
        user_id: int,
        course_id: str,
        lesson_id: str,
        exercise_id: str | None = None,
    ) -> list[ExerciseAttempt]:
        """Get attempts in a lesson, optionally for one exercise, oldest first"""
        try:
            return self.progress_repo.get_exercise_attempts(
                user_id, course_id, lesson_id, exercise_id
            )
        except sqlite3.Error as e:
            logger.error(f"Error getting exercise attempts: {e}")
            raise PersistenceError("get exercise attempts", e) from e
