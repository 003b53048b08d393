"""
Course content loader for directories of JSON files
"""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .models import Course, Lesson

logger = logging.getLogger(__name__)

COURSE_ROOT_FILE = "root.json"


def _read_json(path: Path) -> dict[str, Any]:
    """Read one JSON content file"""
    raw = json.loads(path.read_text(encoding="utf-8-sig"))
    if not isinstance(raw, dict):
        raise ValueError(f"Content file '{path}' must contain a JSON object")
    return raw


def _lesson_from_file(path: Path) -> Lesson:
    """Build a lesson from its JSON file"""
    try:
        return Lesson.model_validate(_read_json(path))
    except ValidationError as e:
        raise ValueError(f"Invalid lesson file '{path}': {e}") from e


def _validate_unique_ids(course: Course) -> None:
    """Reject duplicate lesson ids in a course and duplicate exercise ids in a lesson"""
    seen_lessons: set[str] = set()
    for lesson in course.lessons:
        if lesson.id in seen_lessons:
            raise ValueError(f"Duplicate lesson id '{lesson.id}' in course '{course.id}'")
        seen_lessons.add(lesson.id)

        seen_exercises: set[str] = set()
        for exercise in lesson.exercises:
            if exercise.id in seen_exercises:
                raise ValueError(
                    f"Duplicate exercise id '{exercise.id}' in lesson "
                    f"'{course.id}/{lesson.id}'"
                )
            seen_exercises.add(exercise.id)


def load_course(course_dir: Path) -> Course:
    """
    Load a course directory: root.json plus one JSON file per lesson

    Lessons may also be listed inline under "lessons" in root.json; all of
    them are sorted by order, then by id
    """
    root_path = course_dir / COURSE_ROOT_FILE
    raw_root = _read_json(root_path)

    raw_lessons = raw_root.pop("lessons", None) or raw_root.pop("Lessons", None) or []
    lessons = []
    for raw_lesson in raw_lessons:
        try:
            lessons.append(Lesson.model_validate(raw_lesson))
        except ValidationError as e:
            raise ValueError(f"Invalid lesson in '{root_path}': {e}") from e

    for lesson_path in sorted(course_dir.glob("*.json")):
        if lesson_path.name != COURSE_ROOT_FILE:
            lessons.append(_lesson_from_file(lesson_path))

    lessons.sort(key=lambda item: (item.order, item.id))
    raw_root.setdefault("id", course_dir.name)

    try:
        course = Course.model_validate({**raw_root, "lessons": lessons})
    except ValidationError as e:
        raise ValueError(f"Invalid course file '{root_path}': {e}") from e

    _validate_unique_ids(course)
    return course


def load_courses(content_dir: str | Path) -> dict[str, Course]:
    """Load every course directory under content_dir"""
    content_path = Path(content_dir)
    if not content_path.is_dir():
        raise FileNotFoundError(f"Content directory not found: {content_path}")

    courses: dict[str, Course] = {}
    for entry in sorted(content_path.iterdir()):
        if entry.is_dir() and (entry / COURSE_ROOT_FILE).exists():
            course = load_course(entry)
            if course.id in courses:
                raise ValueError(f"Duplicate course id: {course.id}")
            courses[course.id] = course
            logger.info(f"Loaded course '{course.id}' with {len(course.lessons)} lessons")
    return courses
