from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class CollegeIn(BaseModel):
    college_name: str = Field(min_length=1, max_length=500)
    state: str = Field(min_length=1, max_length=100)
    district: str = Field(default="", max_length=100)
    location: str = Field(default="", max_length=200)
    college_type: str = Field(default="", max_length=100)
    specialised_in: str = Field(default="", max_length=300)
    courses_offered: list[str] = Field(default_factory=list)
    fees: Optional[int] = Field(default=None, ge=0)
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    website: str = ""
    admission_link: str = ""
    cutoff_info: str = ""
    description: str = ""
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    is_active: bool = True


class CollegeOut(CollegeIn):
    model_config = ConfigDict(from_attributes=True)
    id: str


class ScholarshipIn(BaseModel):
    name: str = Field(min_length=1, max_length=500)
    provider: str = Field(min_length=1, max_length=300)
    eligibility_summary: str = ""
    amount: str = ""
    deadline: Optional[datetime] = None
    apply_url: str = Field(min_length=1)
    official_domain: str = ""
    required_documents: list[str] = Field(default_factory=list)
    target_academic_level: list[Literal["UG", "PG", "Diploma"]] = Field(default_factory=list)
    target_locations: list[str] = Field(default_factory=list)
    status: Literal["open", "closed"] = "open"


class ScholarshipOut(ScholarshipIn):
    model_config = ConfigDict(from_attributes=True)
    id: str
    last_checked: Optional[datetime] = None


class JobIn(BaseModel):
    role: str = Field(min_length=1, max_length=300)
    company: str = Field(min_length=1, max_length=300)
    location: str = Field(min_length=1, max_length=300)
    job_type: str = ""
    salary_range: str = ""
    apply_url: str = Field(min_length=1)
    source_site: str = ""
    required_skills: list[str] = Field(default_factory=list)
    posting_date: Optional[datetime] = None
    is_active: bool = True


class JobOut(JobIn):
    model_config = ConfigDict(from_attributes=True)
    id: str
    posting_date: datetime
    last_checked: Optional[datetime] = None


class FAQIn(BaseModel):
    category: str = Field(min_length=1, max_length=100)
    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)
    display_order: int = Field(default=0, ge=0)
    is_active: bool = True


class FAQOut(FAQIn):
    model_config = ConfigDict(from_attributes=True)
    id: str


class FAQGroupOut(BaseModel):
    category: str
    faqs: list[FAQOut]


class NGOIn(BaseModel):
    name: str = Field(min_length=1, max_length=300)
    mission_summary: str = Field(min_length=1)
    primary_focus: str = Field(min_length=1, max_length=200)
    states_present: list[str] = Field(default_factory=list)
    hq_address: str = ""
    phone: str = Field(default="", max_length=50)
    email: str = Field(default="", max_length=200)
    website: str = Field(min_length=1)
    apply_or_donate_link: str = ""
    notes: str = ""
    verified: bool = False
    is_active: bool = True


class NGOOut(NGOIn):
    model_config = ConfigDict(from_attributes=True)
    id: str
