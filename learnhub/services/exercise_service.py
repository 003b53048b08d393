"""
Exercise attempt and completion flows
"""

import logging
from dataclasses import dataclass
from typing import Any

from ..content.store import ContentStore
from ..core.database.models import PointTransaction, ProgressStatus
from ..utils import log_execution_time
from ..verification import parse_answer, verify
from .points_service import PointsService
from .progress_service import ProgressService

logger = logging.getLogger(__name__)


@dataclass
class AttemptResult:
    """Outcome of one submitted answer"""

    is_correct: bool
    points: int
    transaction: PointTransaction | None
    current_streak: int
    max_streak: int


class ExerciseService:
    """Checks answers against content and drives progress and scoring"""

    def __init__(
        self,
        content_store: ContentStore,
        progress_service: ProgressService,
        points_service: PointsService,
    ):
        self.content_store = content_store
        self.progress_service = progress_service
        self.points_service = points_service

    @log_execution_time
    def submit_answer(
        self,
        user_id: int,
        course_id: str,
        lesson_id: str,
        exercise_id: str,
        answer: Any,
    ) -> AttemptResult:
        """
        Verify an answer, log the attempt and update streak, points and accuracy

        Args:
            user_id: User answering
            course_id: Course of the exercise
            lesson_id: Lesson of the exercise
            exercise_id: Exercise being answered
            answer: Decoded JSON answer value

        Returns:
            AttemptResult with the awarded points and the lesson streak after the answer

        Raises:
            ExerciseNotFoundError: exercise is not in the content store
            InvalidAnswerError: answer shape does not fit the exercise; nothing is recorded
        """
        exercise = self.content_store.get_exercise(course_id, lesson_id, exercise_id)
        parsed = parse_answer(exercise, answer)
        is_correct = verify(exercise, parsed)

        self.progress_service.record_exercise_attempt(
            user_id, course_id, lesson_id, exercise_id, answer, is_correct
        )
        transaction = self.points_service.award_for_answer(
            user_id, course_id, lesson_id, exercise_id, is_correct
        )
        self.points_service.update_accuracy_stats(user_id, is_correct)

        lesson_points = self.points_service.get_lesson_points(user_id, course_id, lesson_id)
        result = AttemptResult(
            is_correct=is_correct,
            points=transaction["points"] if transaction else 0,
            transaction=transaction,
            current_streak=lesson_points.current_streak,
            max_streak=lesson_points.max_streak,
        )
        logger.info(
            f"User {user_id} answered {course_id}/{lesson_id}/{exercise_id}: "
            f"correct={is_correct}, points={result.points}, streak={result.current_streak}"
        )
        return result

    def complete_lesson(
        self, user_id: int, course_id: str, lesson_id: str
    ) -> PointTransaction | None:
        """Mark a lesson completed and award its bonus once"""
        self.content_store.get_lesson(course_id, lesson_id)
        self.progress_service.update_lesson_progress(
            user_id, course_id, lesson_id, ProgressStatus.COMPLETED
        )
        return self.points_service.award_lesson_completion_bonus(user_id, course_id, lesson_id)

    def complete_course(self, user_id: int, course_id: str) -> PointTransaction | None:
        """Mark a course completed and award its bonus once"""
        self.content_store.get_course(course_id)
        self.progress_service.update_course_progress(user_id, course_id, ProgressStatus.COMPLETED)
        return self.points_service.award_course_completion_bonus(user_id, course_id)
