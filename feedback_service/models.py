from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, Float, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from shared.database import Base, enum_check, new_id, utcnow

RECOMMENDATION_TYPES = ("career", "college", "scholarship", "job")
FEEDBACK_TYPES = ("like", "dislike", "applied", "not_interested")
FAVORITE_TYPES = ("career", "college", "scholarship")


class RecommendationFeedback(Base):
    __tablename__ = "recommendation_feedback"
    __table_args__ = (
        UniqueConstraint("user_id", "recommendation_type", "recommendation_id", name="uq_feedback_user_item"),
        enum_check("recommendation_type", RECOMMENDATION_TYPES, "ck_feedback_recommendation_type"),
        enum_check("feedback_type", FEEDBACK_TYPES, "ck_feedback_type"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    recommendation_type: Mapped[str] = mapped_column(String(20))   # career/college/scholarship/job
    recommendation_id: Mapped[str] = mapped_column(String(36))
    feedback_type: Mapped[str] = mapped_column(String(20))         # like/dislike/applied/not_interested
    feedback_data: Mapped[dict] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class RecommendationFeedbackEvent(Base):
    """Append-only history of every submission; never updated."""
    __tablename__ = "recommendation_feedback_event"
    __table_args__ = (
        enum_check("recommendation_type", RECOMMENDATION_TYPES, "ck_feedback_event_recommendation_type"),
        enum_check("feedback_type", FEEDBACK_TYPES, "ck_feedback_event_type"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    recommendation_type: Mapped[str] = mapped_column(String(20))
    recommendation_id: Mapped[str] = mapped_column(String(36))
    feedback_type: Mapped[str] = mapped_column(String(20))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class RecommendationPerformance(Base):
    __tablename__ = "recommendation_performance"
    __table_args__ = (
        UniqueConstraint("recommendation_type", "recommendation_id", name="uq_performance_item"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    recommendation_type: Mapped[str] = mapped_column(String(20))
    recommendation_id: Mapped[str] = mapped_column(String(36))
    feedback_count: Mapped[int] = mapped_column(Integer, default=0)
    likes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    dislikes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    applications: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    not_interested: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    engagement_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    conversion_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)   # percent
    refreshed_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class UserFavorite(Base):
    __tablename__ = "user_favorites"
    __table_args__ = (
        UniqueConstraint("user_id", "item_type", "item_id", name="uq_favorite_user_item"),
        enum_check("item_type", FAVORITE_TYPES, "ck_favorite_item_type"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    item_type: Mapped[str] = mapped_column(String(20))
    item_id: Mapped[str] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
