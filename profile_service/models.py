from datetime import datetime

from sqlalchemy import JSON, DateTime, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from shared.database import Base, new_id, utcnow


class UserProfile(Base):
    __tablename__ = "user_profile"
    __table_args__ = (UniqueConstraint("user_id", name="uq_user_profile_user_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    full_name: Mapped[str] = mapped_column(String(200), default="")
    class_level: Mapped[str] = mapped_column(String(20), default="")    # 10th/12th/UG/PG/Diploma or ""
    study_area: Mapped[str] = mapped_column(String(20), default="")     # Science/Commerce/Arts/All or ""
    preferred_state: Mapped[str] = mapped_column(String(100), default="")
    preferred_district: Mapped[str] = mapped_column(String(100), default="")
    current_course: Mapped[str] = mapped_column(String(200), default="")
    target_course_interest: Mapped[list] = mapped_column(JSON, default=list)

    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)
