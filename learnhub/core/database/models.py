"""
Database models for the LearnHub points engine
"""

from datetime import date, datetime
from enum import Enum
from typing import TypedDict


class ProgressStatus(str, Enum):
    """Lifecycle of a course or lesson for one user"""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TransactionType(str, Enum):
    """Kinds of point-earning events recorded in the ledger"""

    CORRECT_ANSWER = "correct_answer"
    LESSON_COMPLETED = "lesson_completed"
    COURSE_COMPLETED = "course_completed"
    DAILY_STREAK_BONUS = "daily_streak_bonus"


class User(TypedDict):
    """User model"""
    id: int
    username: str
    email: str
    total_points: int
    current_daily_streak: int
    max_daily_streak: int
    last_login_date: date | None
    total_attempts: int
    correct_attempts: int
    created_at: datetime
    updated_at: datetime


class CourseProgress(TypedDict):
    """Course progress model"""
    id: int
    user_id: int
    course_id: str
    status: str
    total_course_points: int
    started_at: datetime
    last_accessed_at: datetime | None
    completed_at: datetime | None


class CourseProgressWithPercentage(CourseProgress):
    """Course progress with the share of started lessons that are completed"""
    progress_percentage: float


class LessonProgress(TypedDict):
    """Lesson progress model"""
    id: int
    user_id: int
    course_id: str
    lesson_id: str
    status: str
    current_streak: int
    max_streak: int
    total_lesson_points: int
    started_at: datetime
    last_accessed_at: datetime | None
    completed_at: datetime | None


class ExerciseAttempt(TypedDict):
    """Exercise attempt model"""
    id: int
    user_id: int
    course_id: str
    lesson_id: str
    exercise_id: str
    attempt_number: int
    answer: str
    is_correct: bool
    streak_at_attempt: int
    points_earned: int
    attempted_at: datetime


class PointTransaction(TypedDict):
    """Point ledger entry model"""
    id: int
    user_id: int
    course_id: str | None
    lesson_id: str | None
    exercise_id: str | None
    transaction_type: str
    points: int
    description: str
    created_at: datetime
