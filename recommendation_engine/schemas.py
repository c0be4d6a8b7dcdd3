import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from quiz_service.schemas import CategoryScoreOut, QuizResponseIn

_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)
_UNSAFE_PROMPT_CHARS = re.compile(r"[^\w\s-]")


def sanitize_prompt_text(value: str) -> str:
    """Keep word characters, whitespace and hyphens only."""
    return _UNSAFE_PROMPT_CHARS.sub("", value.strip())


class RecommendIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    quiz_session_id: str = Field(alias="quizSessionId")
    responses: list[QuizResponseIn] = Field(min_length=1, max_length=100)

    @field_validator("quiz_session_id")
    @classmethod
    def valid_uuid(cls, v: str) -> str:
        if not _UUID_RE.match(v):
            raise ValueError("Invalid quizSessionId format")
        return v


class CareerOut(BaseModel):
    id: str
    title: str
    description: str
    category: str


class RecommendationOut(BaseModel):
    id: str
    user_id: str
    quiz_session_id: str
    career_id: str
    confidence_score: int = Field(ge=0, le=100)
    confidence_band: str
    reason: str
    career: CareerOut


class RecommendOut(BaseModel):
    success: bool = True
    recommendations: list[RecommendationOut]
    profile: list[CategoryScoreOut]


class DescribeIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    career_title: str = Field(alias="careerTitle", min_length=1, max_length=200)
    category: str = Field(min_length=1, max_length=100)

    @field_validator("career_title", "category")
    @classmethod
    def sanitized(cls, v: str) -> str:
        cleaned = sanitize_prompt_text(v)
        if not cleaned:
            raise ValueError("must contain letters or digits")
        return cleaned


class DescribeOut(BaseModel):
    success: bool = True
    description: str


class StreamCollegeOut(BaseModel):
    id: str
    college_name: str
    state: str
    district: str
    specialised_in: str
    college_type: str
    rating: Optional[float] = None
    fees: Optional[int] = None
    website: str = ""
    admission_link: str = ""
    courses_offered: list[str] = []
    confidence_score: int = Field(ge=0, le=100)
    match_reason: str
    is_user_state: bool


class NextCourseOut(BaseModel):
    name: str
    description: str
    entrance_exams: list[str]
    college_types: list[str]


class StreamRecommendationsOut(BaseModel):
    stream: str
    education_stage: str
    colleges: list[StreamCollegeOut]
    next_courses: list[NextCourseOut]
