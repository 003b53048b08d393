"""
Points, streak and accuracy accounting

Every award runs as one unit of work: the progress update, the user's running
total and the ledger entry are committed together or not at all, so a user's
total always equals the sum of their point transactions.
"""

import logging
import sqlite3
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from ..config import PointsConfig
from ..core.database.database_manager import DatabaseManager
from ..core.database.models import PointTransaction, ProgressStatus, TransactionType
from ..core.errors import PersistenceError, UserNotFoundError
from ..utils import calculate_success_rate, utc_date, utc_now

logger = logging.getLogger(__name__)

DEFAULT_TRANSACTIONS_LIMIT = 10
DEFAULT_LEADERBOARD_LIMIT = 10


@dataclass
class UserPoints:
    """A user's total points and best lesson streaks"""

    user_id: int
    total_points: int
    current_streak: int
    max_streak: int
    updated_at: datetime | None = None


@dataclass
class LessonPoints:
    """Points and streak for one lesson"""

    user_id: int
    course_id: str
    lesson_id: str
    total_points: int = 0
    current_streak: int = 0
    max_streak: int = 0
    last_attempt_at: datetime | None = None


@dataclass
class DailyStreakInfo:
    """A user's daily login streak"""

    user_id: int
    current_streak: int
    max_streak: int
    last_login_date: date | None = None
    next_milestone: int | None = None
    days_to_milestone: int | None = None


@dataclass
class AccuracyStats:
    """A user's answer accuracy"""

    user_id: int
    total_attempts: int
    correct_attempts: int
    accuracy_rate: float  # percentage, 0-100


@dataclass
class LeaderboardEntry:
    rank: int
    user_id: int
    username: str
    total_points: int


class PointsService:
    """Awards points for answers, completions and daily logins"""

    def __init__(
        self,
        db_manager: DatabaseManager,
        config: PointsConfig | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db_manager = db_manager
        self.config = config or PointsConfig()
        self.clock = clock
        self.user_repo = db_manager.user_repo
        self.progress_repo = db_manager.progress_repo
        self.transaction_repo = db_manager.transaction_repo

    def set_points_config(self, config: PointsConfig) -> None:
        """Replace the point values used for future awards"""
        self.config = config

    def _require_user(self, conn: sqlite3.Connection, user_id: int) -> None:
        if not self.user_repo.user_exists(conn, user_id):
            raise UserNotFoundError(user_id)

    def _credit(
        self,
        conn: sqlite3.Connection,
        user_id: int,
        transaction_type: TransactionType,
        points: int,
        description: str,
        now: datetime,
        course_id: str | None = None,
        lesson_id: str | None = None,
        exercise_id: str | None = None,
    ) -> PointTransaction:
        """Add points to the user's total and append the matching ledger entry"""
        if not self.user_repo.add_points(conn, user_id, points, now):
            raise UserNotFoundError(user_id)
        return self.transaction_repo.insert_transaction(
            conn,
            user_id=user_id,
            transaction_type=transaction_type,
            points=points,
            description=description,
            created_at=now,
            course_id=course_id,
            lesson_id=lesson_id,
            exercise_id=exercise_id,
        )

    # Answer streaks

    def calculate_streak_bonus(self, streak: int) -> int:
        """Bonus for reaching a streak of consecutive correct answers"""
        if streak <= 1:
            return 0
        return min(streak * self.config.streak_bonus_multiplier, self.config.max_streak_bonus)

    def award_for_answer(
        self,
        user_id: int,
        course_id: str,
        lesson_id: str,
        exercise_id: str,
        is_correct: bool,
    ) -> PointTransaction | None:
        """
        Update the lesson streak after an answer and award points when correct

        An incorrect answer resets the lesson streak and returns None; no
        points are taken away. A correct answer extends the streak and credits
        the base points plus the capped streak bonus.

        Returns:
            The correct_answer transaction, or None for an incorrect answer
        """
        now = self.clock()
        try:
            with self.db_manager.transaction() as conn:
                self._require_user(conn, user_id)
                progress = self.progress_repo.get_or_create_lesson_progress(
                    user_id, course_id, lesson_id, now,
                    status=ProgressStatus.IN_PROGRESS, conn=conn,
                )
                self.progress_repo.mark_lesson_started(conn, user_id, course_id, lesson_id, now)

                if not is_correct:
                    self.progress_repo.reset_lesson_streak(user_id, course_id, lesson_id, conn=conn)
                    logger.info(
                        f"Reset streak for user {user_id} in {course_id}/{lesson_id} "
                        f"(was {progress['current_streak']})"
                    )
                    return None

                new_streak = progress["current_streak"] + 1
                streak_bonus = self.calculate_streak_bonus(new_streak)
                base_points = self.config.correct_answer_points
                total_points = base_points + streak_bonus

                description = f"Correct answer (+{base_points} points)"
                if streak_bonus > 0:
                    description += (
                        f" with streak bonus of {new_streak} consecutive correct answers "
                        f"(+{streak_bonus} points)"
                    )

                self.progress_repo.apply_correct_answer(
                    conn, user_id, course_id, lesson_id, new_streak, total_points, now
                )
                self.progress_repo.stamp_latest_attempt(
                    conn, user_id, course_id, lesson_id, exercise_id, new_streak, total_points
                )
                transaction = self._credit(
                    conn,
                    user_id,
                    TransactionType.CORRECT_ANSWER,
                    total_points,
                    description,
                    now,
                    course_id=course_id,
                    lesson_id=lesson_id,
                    exercise_id=exercise_id,
                )
        except sqlite3.Error as e:
            logger.error(f"Error awarding points for answer: {e}")
            raise PersistenceError("award points for answer", e) from e

        logger.info(
            f"Awarded {total_points} points to user {user_id} for {exercise_id} "
            f"(streak {new_streak})"
        )
        return transaction

    def reset_lesson_streak(self, user_id: int, course_id: str, lesson_id: str) -> None:
        """Reset the consecutive-correct counter of a lesson"""
        try:
            self.progress_repo.reset_lesson_streak(user_id, course_id, lesson_id)
        except sqlite3.Error as e:
            logger.error(f"Error resetting lesson streak: {e}")
            raise PersistenceError("reset lesson streak", e) from e

    # Completion bonuses

    def award_lesson_completion_bonus(
        self, user_id: int, course_id: str, lesson_id: str
    ) -> PointTransaction | None:
        """
        Credit the lesson completion bonus once per lesson

        Returns None when the lesson is already completed and its bonus is
        already in the ledger.
        """
        now = self.clock()
        bonus_points = self.config.lesson_completion_bonus
        try:
            with self.db_manager.transaction() as conn:
                self._require_user(conn, user_id)
                progress = self.progress_repo.get_or_create_lesson_progress(
                    user_id, course_id, lesson_id, now, conn=conn
                )
                if progress["status"] == ProgressStatus.COMPLETED.value and (
                    self.transaction_repo.transaction_exists(
                        conn, user_id, course_id, TransactionType.LESSON_COMPLETED,
                        lesson_id=lesson_id,
                    )
                ):
                    logger.debug(
                        f"Lesson bonus already awarded to user {user_id} for {course_id}/{lesson_id}"
                    )
                    return None

                self.progress_repo.complete_lesson(
                    conn, user_id, course_id, lesson_id, bonus_points, now
                )
                transaction = self._credit(
                    conn,
                    user_id,
                    TransactionType.LESSON_COMPLETED,
                    bonus_points,
                    f"Lesson completion bonus (+{bonus_points} points)",
                    now,
                    course_id=course_id,
                    lesson_id=lesson_id,
                )
        except sqlite3.Error as e:
            logger.error(f"Error awarding lesson completion bonus: {e}")
            raise PersistenceError("award lesson completion bonus", e) from e

        logger.info(f"Awarded lesson bonus to user {user_id} for {course_id}/{lesson_id}")
        return transaction

    def award_course_completion_bonus(
        self, user_id: int, course_id: str
    ) -> PointTransaction | None:
        """Credit the course completion bonus once per course"""
        now = self.clock()
        bonus_points = self.config.course_completion_bonus
        try:
            with self.db_manager.transaction() as conn:
                self._require_user(conn, user_id)
                progress = self.progress_repo.get_or_create_course_progress(
                    user_id, course_id, now, conn=conn
                )
                if progress["status"] == ProgressStatus.COMPLETED.value and (
                    self.transaction_repo.transaction_exists(
                        conn, user_id, course_id, TransactionType.COURSE_COMPLETED
                    )
                ):
                    logger.debug(f"Course bonus already awarded to user {user_id} for {course_id}")
                    return None

                self.progress_repo.complete_course(conn, user_id, course_id, bonus_points, now)
                transaction = self._credit(
                    conn,
                    user_id,
                    TransactionType.COURSE_COMPLETED,
                    bonus_points,
                    f"Course completion bonus (+{bonus_points} points)",
                    now,
                    course_id=course_id,
                )
        except sqlite3.Error as e:
            logger.error(f"Error awarding course completion bonus: {e}")
            raise PersistenceError("award course completion bonus", e) from e

        logger.info(f"Awarded course bonus to user {user_id} for {course_id}")
        return transaction

    # Daily login streak

    def _daily_streak_award(self, current_streak: int, new_streak: int) -> tuple[int, str]:
        """Points and description for moving the login streak to new_streak"""
        for milestone in sorted(self.config.daily_streak_milestones):
            if current_streak < milestone <= new_streak:
                points = milestone * self.config.milestone_bonus_multiplier
                return points, f"{milestone}-day login streak milestone (+{points} points)"

        if new_streak > 1:
            points = self.config.daily_streak_bonus_points
            return points, f"Daily login streak of {new_streak} days (+{points} points)"

        return 0, ""

    def update_daily_streak(self, user_id: int) -> PointTransaction | None:
        """
        Count today's sign-in towards the user's daily login streak

        Days are UTC calendar days. A second sign-in on the same day changes
        nothing. Signing in the day after the last login extends the streak;
        any longer gap starts it again at 1, which earns no points.

        Returns:
            The daily_streak_bonus transaction, or None when nothing was awarded
        """
        now = self.clock()
        today = utc_date(now)
        try:
            with self.db_manager.transaction() as conn:
                state = self.user_repo.get_daily_streak_state(user_id, conn=conn)
                if state is None:
                    raise UserNotFoundError(user_id)

                last_login = state["last_login_date"]
                current_streak = state["current_daily_streak"]
                if last_login == today:
                    logger.debug(f"User {user_id} already signed in today")
                    return None

                if last_login is not None and last_login == today - timedelta(days=1):
                    new_streak = current_streak + 1
                else:
                    new_streak = 1
                max_streak = max(state["max_daily_streak"], new_streak)

                self.user_repo.update_daily_streak(
                    conn, user_id, new_streak, max_streak, today, now
                )

                points, description = self._daily_streak_award(current_streak, new_streak)
                if points == 0:
                    logger.info(f"User {user_id} daily streak is now {new_streak}")
                    return None

                transaction = self._credit(
                    conn,
                    user_id,
                    TransactionType.DAILY_STREAK_BONUS,
                    points,
                    description,
                    now,
                )
        except sqlite3.Error as e:
            logger.error(f"Error updating daily streak: {e}")
            raise PersistenceError("update daily streak", e) from e

        logger.info(f"User {user_id} daily streak is now {new_streak}, awarded {points} points")
        return transaction

    def get_daily_streak(self, user_id: int) -> DailyStreakInfo:
        """
        Get the daily login streak with the next milestone to reach

        A streak whose last login is before yesterday can no longer be
        continued, so it is reported as 0.
        """
        try:
            state = self.user_repo.get_daily_streak_state(user_id)
        except sqlite3.Error as e:
            logger.error(f"Error getting daily streak: {e}")
            raise PersistenceError("get daily streak", e) from e
        if state is None:
            raise UserNotFoundError(user_id)

        today = utc_date(self.clock())
        last_login = state["last_login_date"]
        current_streak = state["current_daily_streak"]
        if last_login is None or last_login < today - timedelta(days=1):
            current_streak = 0

        info = DailyStreakInfo(
            user_id=user_id,
            current_streak=current_streak,
            max_streak=state["max_daily_streak"],
            last_login_date=last_login,
        )
        for milestone in sorted(self.config.daily_streak_milestones):
            if milestone > current_streak:
                info.next_milestone = milestone
                info.days_to_milestone = milestone - current_streak
                break
        return info

    # Accuracy

    def update_accuracy_stats(self, user_id: int, is_correct: bool) -> None:
        """Count one answer attempt for the user's accuracy"""
        try:
            with self.db_manager.transaction() as conn:
                if not self.user_repo.increment_attempts(conn, user_id, is_correct):
                    raise UserNotFoundError(user_id)
        except sqlite3.Error as e:
            logger.error(f"Error updating accuracy stats: {e}")
            raise PersistenceError("update accuracy stats", e) from e

    def get_accuracy_stats(self, user_id: int) -> AccuracyStats:
        """Get attempt counters and the accuracy percentage"""
        try:
            counts = self.user_repo.get_attempt_counts(user_id)
        except sqlite3.Error as e:
            logger.error(f"Error getting accuracy stats: {e}")
            raise PersistenceError("get accuracy stats", e) from e
        if counts is None:
            raise UserNotFoundError(user_id)

        return AccuracyStats(
            user_id=user_id,
            total_attempts=counts["total_attempts"],
            correct_attempts=counts["correct_attempts"],
            accuracy_rate=calculate_success_rate(
                counts["correct_attempts"], counts["total_attempts"]
            ),
        )

    # Read models

    def get_user_total_points(self, user_id: int) -> UserPoints:
        """Get the user's total points and best current/max lesson streak"""
        try:
            user = self.user_repo.get_user_by_id(user_id)
            if user is None:
                raise UserNotFoundError(user_id)
            streaks = self.progress_repo.get_streak_summary(user_id)
        except sqlite3.Error as e:
            logger.error(f"Error getting user total points: {e}")
            raise PersistenceError("get user total points", e) from e

        return UserPoints(
            user_id=user_id,
            total_points=user["total_points"],
            current_streak=streaks["current_streak"],
            max_streak=streaks["max_streak"],
            updated_at=user["updated_at"],
        )

    def get_lesson_points(self, user_id: int, course_id: str, lesson_id: str) -> LessonPoints:
        """Get points and streak for a lesson; zeros when it was never attempted"""
        try:
            progress = self.progress_repo.get_lesson_progress(user_id, course_id, lesson_id)
        except sqlite3.Error as e:
            logger.error(f"Error getting lesson points: {e}")
            raise PersistenceError("get lesson points", e) from e

        lesson_points = LessonPoints(user_id=user_id, course_id=course_id, lesson_id=lesson_id)
        if progress is not None:
            lesson_points.total_points = progress["total_lesson_points"]
            lesson_points.current_streak = progress["current_streak"]
            lesson_points.max_streak = progress["max_streak"]
            lesson_points.last_attempt_at = progress["last_accessed_at"] or progress["started_at"]
        return lesson_points

    def get_recent_transactions(
        self, user_id: int, limit: int | None = None
    ) -> list[PointTransaction]:
        """Get the user's newest ledger entries"""
        if not limit or limit <= 0:
            limit = DEFAULT_TRANSACTIONS_LIMIT
        try:
            return self.transaction_repo.get_recent_transactions(user_id, limit)
        except sqlite3.Error as e:
            logger.error(f"Error getting recent transactions: {e}")
            raise PersistenceError("get recent transactions", e) from e

    def get_leaderboard(self, limit: int | None = None) -> list[LeaderboardEntry]:
        """Rank users by total points"""
        if not limit or limit <= 0:
            limit = DEFAULT_LEADERBOARD_LIMIT
        try:
            rows = self.user_repo.get_leaderboard(limit)
        except sqlite3.Error as e:
            logger.error(f"Error getting leaderboard: {e}")
            raise PersistenceError("get leaderboard", e) from e

        return [
            LeaderboardEntry(
                rank=rank,
                user_id=row["user_id"],
                username=row["username"],
                total_points=row["total_points"],
            )
            for rank, row in enumerate(rows, start=1)
        ]
