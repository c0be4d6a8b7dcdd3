from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from shared.database import Base, enum_check, new_id, utcnow

ENTITY_TYPES = ("career", "college", "scholarship", "job")


class Career(Base):
    __tablename__ = "careers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(200))
    # lower-cased, stripped title; one canonical career per title
    title_key: Mapped[str] = mapped_column(String(200), unique=True, index=True)
    description: Mapped[str] = mapped_column(Text, default="")
    category: Mapped[str] = mapped_column(String(100), default="general")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class Recommendation(Base):
    __tablename__ = "recommendations"
    __table_args__ = (
        CheckConstraint("confidence_score >= 0 AND confidence_score <= 100", name="ck_recommendation_confidence"),
        enum_check("target_entity_type", ENTITY_TYPES, "ck_recommendation_entity_type"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    source_session_id: Mapped[str] = mapped_column(String(36), ForeignKey("quiz_sessions.id"), index=True)
    target_entity_id: Mapped[str] = mapped_column(String(36), index=True)
    target_entity_type: Mapped[str] = mapped_column(String(20), default="career")
    confidence_score: Mapped[int] = mapped_column(Integer)
    # justification given for this user, not the shared career text
    reason: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
