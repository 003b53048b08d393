"""
Exercise answer verification

A raw submitted answer (the decoded JSON value from the request) is first
parsed into one of the answer variants below, according to the exercise type.
A value of the wrong shape is a malformed request and raises
InvalidAnswerError; a well-formed answer that does not match the key is simply
incorrect.
"""

import logging
from dataclasses import dataclass
from typing import Any, Union

from .content.models import (
    ExerciseBase,
    FillInBlankExercise,
    MatchingExercise,
    MultipleChoiceExercise,
    OrderingExercise,
    TrueFalseExercise,
)
from .core.errors import InvalidAnswerError, UnsupportedExerciseTypeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChoiceAnswer:
    """Index of the chosen option"""

    index: int | float


@dataclass(frozen=True)
class BooleanAnswer:
    value: bool


@dataclass(frozen=True)
class MatchingAnswer:
    """Submitted (term, definition) pairs, in any order"""

    pairs: tuple[tuple[str, str], ...]


@dataclass(frozen=True)
class OrderingAnswer:
    indices: tuple[int | float, ...]


@dataclass(frozen=True)
class TextAnswer:
    text: str


SubmittedAnswer = Union[ChoiceAnswer, BooleanAnswer, MatchingAnswer, OrderingAnswer, TextAnswer]

_ANSWER_TYPES = (ChoiceAnswer, BooleanAnswer, MatchingAnswer, OrderingAnswer, TextAnswer)

_SUPPORTED_EXERCISES = (
    MultipleChoiceExercise,
    TrueFalseExercise,
    MatchingExercise,
    OrderingExercise,
    FillInBlankExercise,
)


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a valid index
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_pairs(exercise_type: str, raw: Any) -> tuple[tuple[str, str], ...]:
    if not isinstance(raw, (list, tuple)):
        raise InvalidAnswerError(exercise_type, "expected a list of pairs")

    pairs = []
    for pair in raw:
        if (
            not isinstance(pair, (list, tuple))
            or len(pair) != 2
            or not all(isinstance(part, str) for part in pair)
        ):
            raise InvalidAnswerError(exercise_type, "each pair must be two strings")
        pairs.append((pair[0], pair[1]))
    return tuple(pairs)


def parse_answer(exercise: ExerciseBase, raw: Any) -> SubmittedAnswer:
    """Validate a raw answer against the shape its exercise type expects"""
    if isinstance(exercise, MultipleChoiceExercise):
        if not _is_number(raw):
            raise InvalidAnswerError(exercise.type, "expected a numeric choice index")
        return ChoiceAnswer(index=raw)

    if isinstance(exercise, TrueFalseExercise):
        if not isinstance(raw, bool):
            raise InvalidAnswerError(exercise.type, "expected a boolean")
        return BooleanAnswer(value=raw)

    if isinstance(exercise, MatchingExercise):
        return MatchingAnswer(pairs=_parse_pairs(exercise.type, raw))

    if isinstance(exercise, OrderingExercise):
        if not isinstance(raw, (list, tuple)) or not all(_is_number(item) for item in raw):
            raise InvalidAnswerError(exercise.type, "expected a list of numeric indices")
        return OrderingAnswer(indices=tuple(raw))

    if isinstance(exercise, FillInBlankExercise):
        if not isinstance(raw, str):
            raise InvalidAnswerError(exercise.type, "expected a string")
        return TextAnswer(text=raw)

    raise UnsupportedExerciseTypeError(getattr(exercise, "type", type(exercise).__name__))


def _matching_is_correct(exercise: MatchingExercise, answer: MatchingAnswer) -> bool:
    if len(answer.pairs) != len(exercise.pairs):
        return False
    submitted = dict(answer.pairs)
    return all(submitted.get(term) == definition for term, definition in exercise.pairs)


def _ordering_is_correct(exercise: OrderingExercise, answer: OrderingAnswer) -> bool:
    if len(answer.indices) != len(exercise.correct_order):
        return False
    return all(
        submitted == expected
        for submitted, expected in zip(answer.indices, exercise.correct_order)
    )


def verify(exercise: ExerciseBase, answer: Any) -> bool:
    """
    Check a submitted answer against an exercise's answer key

    Args:
        exercise: Exercise being answered
        answer: Raw decoded JSON value, or an already parsed SubmittedAnswer

    Returns:
        True when the answer is correct, False otherwise

    Raises:
        InvalidAnswerError: answer shape does not fit the exercise type
        UnsupportedExerciseTypeError: exercise type has no verifier
    """
    if not isinstance(answer, _ANSWER_TYPES):
        answer = parse_answer(exercise, answer)

    if isinstance(exercise, MultipleChoiceExercise) and isinstance(answer, ChoiceAnswer):
        is_correct = answer.index == exercise.correct_answer
    elif isinstance(exercise, TrueFalseExercise) and isinstance(answer, BooleanAnswer):
        is_correct = answer.value == exercise.correct_answer
    elif isinstance(exercise, MatchingExercise) and isinstance(answer, MatchingAnswer):
        is_correct = _matching_is_correct(exercise, answer)
    elif isinstance(exercise, OrderingExercise) and isinstance(answer, OrderingAnswer):
        is_correct = _ordering_is_correct(exercise, answer)
    elif isinstance(exercise, FillInBlankExercise) and isinstance(answer, TextAnswer):
        is_correct = answer.text.strip().lower() == exercise.correct_answer.strip().lower()
    elif isinstance(exercise, _SUPPORTED_EXERCISES):
        # A parsed answer of another variant was passed in
        raise InvalidAnswerError(exercise.type, f"{type(answer).__name__} does not fit")
    else:
        raise UnsupportedExerciseTypeError(getattr(exercise, "type", type(exercise).__name__))

    logger.debug(f"Verified exercise {exercise.id} ({exercise.type}): correct={is_correct}")
    return is_correct

