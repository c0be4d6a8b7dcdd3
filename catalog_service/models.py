from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from shared.database import Base, new_id, utcnow


class College(Base):
    __tablename__ = "colleges"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    college_name: Mapped[str] = mapped_column(String(500))
    state: Mapped[str] = mapped_column(String(100), index=True)
    district: Mapped[str] = mapped_column(String(100), default="")
    location: Mapped[str] = mapped_column(String(200), default="")
    college_type: Mapped[str] = mapped_column(String(100), default="")
    specialised_in: Mapped[str] = mapped_column(String(300), default="")
    courses_offered: Mapped[list] = mapped_column(JSON, default=list)
    fees: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)   # 0-5
    website: Mapped[str] = mapped_column(String(500), default="")
    admission_link: Mapped[str] = mapped_column(String(500), default="")
    cutoff_info: Mapped[str] = mapped_column(Text, default="")
    description: Mapped[str] = mapped_column(Text, default="")
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class VerifiedScholarship(Base):
    __tablename__ = "verified_scholarships"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(500))
    provider: Mapped[str] = mapped_column(String(300))
    eligibility_summary: Mapped[str] = mapped_column(Text, default="")
    amount: Mapped[str] = mapped_column(String(200), default="")
    deadline: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True, index=True)
    apply_url: Mapped[str] = mapped_column(String(500))
    official_domain: Mapped[str] = mapped_column(String(200), default="")
    required_documents: Mapped[list] = mapped_column(JSON, default=list)
    target_academic_level: Mapped[list] = mapped_column(JSON, default=list)   # UG/PG/Diploma
    target_locations: Mapped[list] = mapped_column(JSON, default=list)        # state names
    status: Mapped[str] = mapped_column(String(20), default="open", index=True)   # open/closed
    last_checked: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class VerifiedJob(Base):
    __tablename__ = "verified_jobs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    role: Mapped[str] = mapped_column(String(300))
    company: Mapped[str] = mapped_column(String(300))
    location: Mapped[str] = mapped_column(String(300))
    job_type: Mapped[str] = mapped_column(String(50), default="")
    salary_range: Mapped[str] = mapped_column(String(200), default="")
    apply_url: Mapped[str] = mapped_column(String(500))
    source_site: Mapped[str] = mapped_column(String(200), default="")
    required_skills: Mapped[list] = mapped_column(JSON, default=list)
    posting_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    last_checked: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class FAQ(Base):
    __tablename__ = "faqs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    category: Mapped[str] = mapped_column(String(100), index=True)
    question: Mapped[str] = mapped_column(Text)
    answer: Mapped[str] = mapped_column(Text)
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class NGO(Base):
    __tablename__ = "ngos"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(300))
    mission_summary: Mapped[str] = mapped_column(Text)
    primary_focus: Mapped[str] = mapped_column(String(200))
    states_present: Mapped[list] = mapped_column(JSON, default=list)
    hq_address: Mapped[str] = mapped_column(Text, default="")
    phone: Mapped[str] = mapped_column(String(50), default="")
    email: Mapped[str] = mapped_column(String(200), default="")
    website: Mapped[str] = mapped_column(String(500))
    apply_or_donate_link: Mapped[str] = mapped_column(String(500), default="")
    notes: Mapped[str] = mapped_column(Text, default="")
    verified: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)
