from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from shared.database import Base, new_id, utcnow

QUIZ_CATEGORIES = ("logical", "analytical", "creative", "technical", "quantitative", "verbal", "interpersonal")


class QuizQuestion(Base):
    __tablename__ = "quiz_questions"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    question_text: Mapped[str] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(50), index=True)
    options: Mapped[list] = mapped_column(JSON, default=list)  # [{"text": ..., "isCorrect": bool}]
    target_class_levels: Mapped[list] = mapped_column(JSON, default=list)
    target_study_areas: Mapped[list] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class QuizSession(Base):
    __tablename__ = "quiz_sessions"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    completed: Mapped[bool] = mapped_column(Boolean, default=False)
    score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    category_scores: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)


class QuizResponse(Base):
    __tablename__ = "quiz_responses"
    __table_args__ = (UniqueConstraint("quiz_session_id", "question_id", name="uq_quiz_response_question"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    quiz_session_id: Mapped[str] = mapped_column(String(36), ForeignKey("quiz_sessions.id"), index=True)
    question_id: Mapped[str] = mapped_column(String(36), ForeignKey("quiz_questions.id"), index=True)
    selected_option: Mapped[str] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(50))
    is_correct: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
