from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class SkillScores(BaseModel):
    logical: int = Field(ge=0, le=100)
    verbal: int = Field(ge=0, le=100)
    quantitative: int = Field(ge=0, le=100)
    creative: int = Field(ge=0, le=100)
    technical: int = Field(ge=0, le=100)
    interpersonal: int = Field(ge=0, le=100)


class UserLocation(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    city: Optional[str] = None
    state: Optional[str] = None


class AptitudeProfile(BaseModel):
    user_id: Optional[str] = Field(default=None, max_length=36)
    skills: SkillScores
    interests: list[str] = Field(default_factory=list, max_length=50)
    preferred_locations: list[str] = Field(default_factory=list, max_length=50)
    academic_level: Literal["UG", "PG", "Diploma"]
    score_percentile_or_band: float = Field(ge=0, le=100)
    user_location: Optional[UserLocation] = None
    max_distance_km: Optional[float] = Field(default=None, gt=0)


class MapIn(BaseModel):
    profile: AptitudeProfile


class MatchFields(BaseModel):
    id: str
    confidence_score: int = Field(ge=0, le=100)
    confidence_band: str
    match_reason: str


class CollegeMatch(MatchFields):
    name: str
    state: str
    district: str
    location: str
    college_type: str
    courses_offered: list[str]
    fees: Optional[int] = None
    rating: Optional[float] = None
    admission_link: str
    distance_km: Optional[float] = None


class ScholarshipMatch(MatchFields):
    name: str
    provider: str
    eligibility_summary: str
    amount: str
    deadline: Optional[datetime] = None
    apply_url: str
    official_domain: str
    required_documents: list[str]


class JobMatch(MatchFields):
    role: str
    company: str
    location: str
    job_type: str
    salary_range: str
    apply_url: str
    source_site: str
    required_skills: list[str]
    posting_date: datetime


class MappedRecommendations(BaseModel):
    colleges: list[CollegeMatch] = Field(default_factory=list)
    scholarships: list[ScholarshipMatch] = Field(default_factory=list)
    jobs: list[JobMatch] = Field(default_factory=list)


class MapMeta(BaseModel):
    timestamp: datetime
    profile_id: str
    sources: list[str]


class MapOut(BaseModel):
    meta: MapMeta
    recommendations: MappedRecommendations
    explanations: list[str]
    errors: list[str]
