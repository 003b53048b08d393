"""
Tests for course and lesson progress tracking
"""

import json
import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest

from learnhub.core.database.database_manager import DatabaseManager
from learnhub.core.database.models import ProgressStatus
from learnhub.core.errors import InvalidStatusError, ProgressNotFoundError, UserNotFoundError
from learnhub.services.progress_service import ProgressService, parse_status


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def temp_db():
    """Create temporary database for testing"""
    temp_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    temp_file.close()

    db_manager = DatabaseManager(temp_file.name)
    db_manager.init_database()

    yield db_manager

    os.unlink(temp_file.name)


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def progress_service(temp_db, clock):
    return ProgressService(temp_db, clock=clock)


@pytest.fixture
def user_id(temp_db, clock):
    return temp_db.user_repo.create_user("alice", "alice@example.com", clock())["id"]


class TestParseStatus:
    """Test status parsing"""

    def test_known_values(self):
        assert parse_status("in_progress") is ProgressStatus.IN_PROGRESS
        assert parse_status(ProgressStatus.COMPLETED) is ProgressStatus.COMPLETED

    def test_unknown_value(self):
        with pytest.raises(InvalidStatusError) as exc_info:
            parse_status("paused")
        assert isinstance(exc_info.value, ValueError)
        assert exc_info.value.details["status"] == "paused"


class TestCourseProgress:
    """Test course progress records"""

    def test_get_or_create_starts_not_started(self, progress_service, user_id):
        progress = progress_service.get_or_create_course_progress(user_id, "course1")

        assert progress["status"] == ProgressStatus.NOT_STARTED.value
        assert progress["total_course_points"] == 0
        assert progress["completed_at"] is None

    def test_get_or_create_returns_existing(self, progress_service, user_id):
        first = progress_service.get_or_create_course_progress(user_id, "course1")
        second = progress_service.get_or_create_course_progress(user_id, "course1")

        assert first["id"] == second["id"]

    def test_get_missing_course_progress(self, progress_service, user_id):
        with pytest.raises(ProgressNotFoundError):
            progress_service.get_course_progress(user_id, "course1")

    def test_update_course_progress(self, progress_service, user_id, clock):
        progress_service.update_course_progress(user_id, "course1", "in_progress")
        clock.now += timedelta(hours=1)

        progress = progress_service.update_course_progress(user_id, "course1", "completed")

        assert progress["status"] == ProgressStatus.COMPLETED.value
        assert progress["completed_at"] == clock.now

    def test_invalid_status(self, progress_service, user_id):
        with pytest.raises(InvalidStatusError):
            progress_service.update_course_progress(user_id, "course1", "done")

    def test_percentage_without_lessons(self, progress_service, user_id):
        progress = progress_service.get_course_progress_with_percentage(user_id, "course1")

        assert progress["progress_percentage"] == 0.0
        assert progress["status"] == ProgressStatus.NOT_STARTED.value
        assert progress["course_id"] == "course1"

    def test_percentage_of_partly_completed_course(self, progress_service, user_id):
        progress_service.update_lesson_progress(user_id, "course1", "lesson1", "completed")
        progress_service.update_lesson_progress(user_id, "course1", "lesson2", "in_progress")
        progress_service.update_lesson_progress(user_id, "course1", "lesson3", "in_progress")
        progress_service.update_lesson_progress(user_id, "course1", "lesson4", "completed")
        progress_service.update_lesson_progress(user_id, "course2", "lesson1", "completed")

        progress = progress_service.get_course_progress_with_percentage(user_id, "course1")

        assert progress["progress_percentage"] == 50.0

    def test_percentage_of_completed_course(self, progress_service, user_id):
        progress_service.update_lesson_progress(user_id, "course1", "lesson1", "completed")

        progress = progress_service.get_course_progress_with_percentage(user_id, "course1")

        assert progress["progress_percentage"] == 100.0

    def test_percentage_unknown_user(self, progress_service):
        with pytest.raises(UserNotFoundError):
            progress_service.get_course_progress_with_percentage(999, "course1")

    def test_unknown_user(self, progress_service):
        with pytest.raises(UserNotFoundError):
            progress_service.get_or_create_course_progress(999, "course1")


class TestLessonProgress:
    """Test lesson progress records"""

    def test_get_missing_lesson_progress(self, progress_service, user_id):
        with pytest.raises(ProgressNotFoundError) as exc_info:
            progress_service.get_lesson_progress(user_id, "course1", "lesson1")
        assert exc_info.value.details["lesson_id"] == "lesson1"

    def test_get_or_create_lesson_progress(self, progress_service, user_id):
        created = progress_service.get_or_create_lesson_progress(user_id, "course1", "lesson1")
        fetched = progress_service.get_lesson_progress(user_id, "course1", "lesson1")

        assert created == fetched
        assert fetched["current_streak"] == 0
        assert fetched["status"] == ProgressStatus.NOT_STARTED.value

    def test_update_creates_missing_record(self, progress_service, user_id):
        progress = progress_service.update_lesson_progress(
            user_id, "course1", "lesson1", ProgressStatus.IN_PROGRESS
        )

        assert progress["status"] == ProgressStatus.IN_PROGRESS.value
        assert progress["completed_at"] is None

    def test_completed_at_set_only_on_transition(self, progress_service, user_id, clock):
        first_completion = clock.now
        progress_service.update_lesson_progress(user_id, "course1", "lesson1", "completed")
        clock.now += timedelta(days=1)

        progress = progress_service.update_lesson_progress(user_id, "course1", "lesson1", "completed")

        assert progress["completed_at"] == first_completion
        assert progress["last_accessed_at"] == clock.now

    def test_invalid_status(self, progress_service, user_id):
        with pytest.raises(InvalidStatusError):
            progress_service.update_lesson_progress(user_id, "course1", "lesson1", "finished")


class TestExerciseAttempts:
    """Test the exercise attempt log"""

    def test_attempt_numbers_increase(self, progress_service, user_id):
        first = progress_service.record_exercise_attempt(
            user_id, "course1", "lesson1", "ex1", 2, False
        )
        second = progress_service.record_exercise_attempt(
            user_id, "course1", "lesson1", "ex1", 1, True
        )
        other = progress_service.record_exercise_attempt(
            user_id, "course1", "lesson1", "ex2", "Paris", True
        )

        assert first["attempt_number"] == 1
        assert second["attempt_number"] == 2
        assert other["attempt_number"] == 1

    def test_answer_stored_as_json(self, progress_service, user_id):
        attempt = progress_service.record_exercise_attempt(
            user_id, "course1", "lesson1", "ex1", [["Hund", "dog"]], True
        )

        assert json.loads(attempt["answer"]) == [["Hund", "dog"]]
        assert attempt["is_correct"] is True

    def test_get_exercise_attempts(self, progress_service, user_id):
        progress_service.record_exercise_attempt(user_id, "course1", "lesson1", "ex1", 0, False)
        progress_service.record_exercise_attempt(user_id, "course1", "lesson1", "ex2", 1, True)

        lesson_attempts = progress_service.get_exercise_attempts(user_id, "course1", "lesson1")
        exercise_attempts = progress_service.get_exercise_attempts(
            user_id, "course1", "lesson1", "ex2"
        )

        assert [a["exercise_id"] for a in lesson_attempts] == ["ex1", "ex2"]
        assert len(exercise_attempts) == 1
        assert exercise_attempts[0]["is_correct"] is True

    def test_unknown_user(self, progress_service):
        with pytest.raises(UserNotFoundError):
            progress_service.record_exercise_attempt(999, "course1", "lesson1", "ex1", 1, True)
