"""
Course content models

Exercises form a closed set of variants keyed by their ``type`` field. Content
JSON keeps the camelCase keys of the authoring format (``correctAnswer``,
``correctOrder``, ``lessonId``).
"""

from typing import Annotated, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ExerciseBase(BaseModel):
    """Fields shared by every exercise"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    type: str
    question: str = ""


class MultipleChoiceExercise(ExerciseBase):
    type: Literal["multiple_choice"] = "multiple_choice"
    choices: list[str] = Field(default_factory=list)
    correct_answer: int = Field(alias="correctAnswer")


class TrueFalseExercise(ExerciseBase):
    type: Literal["true_false"] = "true_false"
    correct_answer: bool = Field(alias="correctAnswer")


class MatchingExercise(ExerciseBase):
    type: Literal["matching"] = "matching"
    # (term, definition)
    pairs: list[tuple[str, str]]


class OrderingExercise(ExerciseBase):
    type: Literal["ordering"] = "ordering"
    items: list[str] = Field(default_factory=list)
    correct_order: list[int] = Field(alias="correctOrder")


class FillInBlankExercise(ExerciseBase):
    type: Literal["fill_in_blank"] = "fill_in_blank"
    correct_answer: str = Field(alias="correctAnswer")


Exercise = Annotated[
    Union[
        MultipleChoiceExercise,
        TrueFalseExercise,
        MatchingExercise,
        OrderingExercise,
        FillInBlankExercise,
    ],
    Field(discriminator="type"),
]


class Lesson(BaseModel):
    """A lesson and its exercises"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("lessonId", "id"))
    title: str = ""
    description: str = ""
    order: int = 0
    exercises: list[Exercise] = Field(default_factory=list)


class Course(BaseModel):
    """A course and its ordered lessons"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str = Field(validation_alias=AliasChoices("name", "Name"))
    description: str = ""
    lessons: list[Lesson] = Field(default_factory=list)
