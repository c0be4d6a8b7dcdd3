from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator


class QuizResponseIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question_id: str = Field(default="", max_length=64)
    category: str = Field(min_length=1, max_length=100)
    selected_option: str = Field(default="", max_length=500)
    is_correct: StrictBool = Field(alias="isCorrect")

    @field_validator("category")
    @classmethod
    def category_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Each response must have a valid category")
        return v


class CategoryScoreOut(BaseModel):
    category: str
    score: int
    correct: int
    total: int


class OptionIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(min_length=1, max_length=500)
    is_correct: bool = Field(default=False, alias="isCorrect")


class QuestionCreateIn(BaseModel):
    question_text: str = Field(min_length=1)
    category: str = Field(pattern="^(logical|analytical|creative|technical|quantitative|verbal|interpersonal)$")
    options: list[OptionIn] = Field(min_length=2, max_length=6)
    target_class_levels: list[str] = Field(default_factory=list)
    target_study_areas: list[str] = Field(default_factory=list)


class QuestionOut(BaseModel):
    id: str
    question_text: str
    category: str
    options: list[str]


class GenerateQuestionsIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    class_level: str = Field(default="UG", alias="classLevel", pattern=r"^(10th|12th|UG|PG|Diploma)$")
    study_area: str = Field(default="All", alias="studyArea", pattern=r"^(Science|Commerce|Arts|All)$")


class SessionOut(BaseModel):
    id: str
    user_id: str
    completed: bool
    score: Optional[int] = None
    started_at: datetime
    completed_at: Optional[datetime] = None


class AnswerIn(BaseModel):
    question_id: str = Field(min_length=1)
    selected_option: str = Field(min_length=1, max_length=500)


class AnswerOut(BaseModel):
    question_id: str
    category: str
    is_correct: bool


class SessionProfileOut(BaseModel):
    quiz_session_id: str
    profile: list[CategoryScoreOut]
    overall_score: int
