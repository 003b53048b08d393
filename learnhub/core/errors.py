"""
Exceptions raised by the LearnHub services

Validation errors map to a 4xx response, lookups that find nothing to a 404
and persistence failures to a 5xx. Scoring outcomes and idempotent
short-circuits are never exceptions.
"""

from typing import Any


class LearnHubError(Exception):
    """Base exception for LearnHub errors"""

    def __init__(
        self,
        message: str,
        code: str = "LEARNHUB_ERROR",
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses"""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(LearnHubError):
    """Raised when caller input is malformed"""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message=message, code=code, details=details)


class InvalidAnswerError(ValidationError):
    """Raised when a submitted answer does not have the shape its exercise expects"""

    def __init__(self, exercise_type: str, reason: str | None = None):
        details = {"exercise_type": exercise_type}
        if reason:
            details["reason"] = reason
        super().__init__(
            message="invalid answer format",
            code="INVALID_ANSWER",
            details=details,
        )


class UnsupportedExerciseTypeError(ValidationError):
    """Raised when an exercise type has no verifier"""

    def __init__(self, exercise_type: str):
        super().__init__(
            message="unsupported exercise type",
            code="UNSUPPORTED_EXERCISE_TYPE",
            details={"exercise_type": exercise_type},
        )


class InvalidStatusError(ValidationError, ValueError):
    """Raised when a progress status is not one of the known values"""

    def __init__(self, status: str):
        super().__init__(
            message=f"Invalid progress status: {status}",
            code="INVALID_STATUS",
            details={"status": status},
        )


class UsernameTakenError(ValidationError):
    """Raised when a username is already registered"""

    def __init__(self, username: str):
        super().__init__(
            message="username already exists",
            code="USERNAME_TAKEN",
            details={"username": username},
        )


class EmailTakenError(ValidationError):
    """Raised when an e-mail address is already registered"""

    def __init__(self, email: str):
        super().__init__(
            message="email already exists",
            code="EMAIL_TAKEN",
            details={"email": email},
        )


class NotFoundError(LearnHubError):
    """Raised when a requested entity does not exist"""

    def __init__(
        self,
        message: str,
        code: str = "NOT_FOUND",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message=message, code=code, details=details)


class CourseNotFoundError(NotFoundError):
    """Raised when a course is not in the content store"""

    def __init__(self, course_id: str):
        super().__init__(
            message=f"Course not found: {course_id}",
            code="COURSE_NOT_FOUND",
            details={"course_id": course_id},
        )


class LessonNotFoundError(NotFoundError):
    """Raised when a lesson is not in the content store"""

    def __init__(self, course_id: str, lesson_id: str):
        super().__init__(
            message=f"Lesson not found: {course_id}/{lesson_id}",
            code="LESSON_NOT_FOUND",
            details={"course_id": course_id, "lesson_id": lesson_id},
        )


class ExerciseNotFoundError(NotFoundError):
    """Raised when an exercise is not in the content store"""

    def __init__(self, course_id: str, lesson_id: str, exercise_id: str):
        super().__init__(
            message=f"Exercise not found: {course_id}/{lesson_id}/{exercise_id}",
            code="EXERCISE_NOT_FOUND",
            details={
                "course_id": course_id,
                "lesson_id": lesson_id,
                "exercise_id": exercise_id,
            },
        )


class UserNotFoundError(NotFoundError):
    """Raised when a user does not exist"""

    def __init__(self, user_id: int | str):
        super().__init__(
            message="user does not exist",
            code="USER_NOT_FOUND",
            details={"user_id": user_id},
        )


class ProgressNotFoundError(NotFoundError):
    """Raised when no progress record exists"""

    def __init__(self, user_id: int, course_id: str, lesson_id: str | None = None):
        details: dict[str, Any] = {"user_id": user_id, "course_id": course_id}
        if lesson_id is not None:
            details["lesson_id"] = lesson_id
        super().__init__(
            message="progress does not exist",
            code="PROGRESS_NOT_FOUND",
            details=details,
        )


class PersistenceError(LearnHubError):
    """Raised when a database operation fails"""

    def __init__(self, operation: str, cause: Exception | None = None):
        details = {"operation": operation}
        if cause is not None:
            details["cause"] = str(cause)
        super().__init__(
            message=f"Failed to {operation}",
            code="PERSISTENCE_ERROR",
            details=details,
        )
