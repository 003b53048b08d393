"""
In-memory content store for courses, lessons and exercises
"""

import logging
from pathlib import Path

from ..core.errors import CourseNotFoundError, ExerciseNotFoundError, LessonNotFoundError
from .loader import load_courses
from .models import Course, Exercise, Lesson

logger = logging.getLogger(__name__)


class ContentStore:
    """Read-only lookups over content loaded once at startup"""

    def __init__(self, courses: dict[str, Course] | None = None):
        self._courses: dict[str, Course] = dict(courses or {})
        self._lessons: dict[tuple[str, str], Lesson] = {}
        self._exercises: dict[tuple[str, str, str], Exercise] = {}
        for course in self._courses.values():
            self._index_course(course)

    @classmethod
    def from_directory(cls, content_dir: str | Path) -> "ContentStore":
        """Load every course under a content directory"""
        store = cls(load_courses(content_dir))
        logger.info(
            f"Content store ready: {len(store._courses)} courses, "
            f"{len(store._exercises)} exercises"
        )
        return store

    def _index_course(self, course: Course) -> None:
        for lesson in course.lessons:
            self._lessons[(course.id, lesson.id)] = lesson
            for exercise in lesson.exercises:
                self._exercises[(course.id, lesson.id, exercise.id)] = exercise

    def list_course_ids(self) -> list[str]:
        """List course ids in sorted order"""
        return sorted(self._courses)

    def get_course(self, course_id: str) -> Course:
        """Get a course by id"""
        course = self._courses.get(course_id)
        if course is None:
            raise CourseNotFoundError(course_id)
        return course

    def get_lesson(self, course_id: str, lesson_id: str) -> Lesson:
        """Get a lesson by course and lesson id"""
        lesson = self._lessons.get((course_id, lesson_id))
        if lesson is None:
            raise LessonNotFoundError(course_id, lesson_id)
        return lesson

    def get_exercise(self, course_id: str, lesson_id: str, exercise_id: str) -> Exercise:
        """Get an exercise by course, lesson and exercise id"""
        exercise = self._exercises.get((course_id, lesson_id, exercise_id))
        if exercise is None:
            raise ExerciseNotFoundError(course_id, lesson_id, exercise_id)
        return exercise
