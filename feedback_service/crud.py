import logging
from collections import Counter, defaultdict
from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from shared.database import utcnow
from .models import (
    RecommendationFeedback,
    RecommendationFeedbackEvent,
    RecommendationPerformance,
    UserFavorite,
)

logger = logging.getLogger("feedback-service")


def _find_feedback(db: Session, user_id: str, rec_type: str, rec_id: str) -> Optional[RecommendationFeedback]:
    return (
        db.query(RecommendationFeedback)
        .filter(
            RecommendationFeedback.user_id == user_id,
            RecommendationFeedback.recommendation_type == rec_type,
            RecommendationFeedback.recommendation_id == rec_id,
        )
        .first()
    )


def _write_feedback(db: Session, user_id: str, rec_type: str, rec_id: str, feedback_type: str, data: dict) -> None:
    existing = _find_feedback(db, user_id, rec_type, rec_id)
    if existing:
        existing.feedback_type = feedback_type
        existing.feedback_data = data
        existing.updated_at = utcnow()
    else:
        db.add(RecommendationFeedback(
            user_id=user_id,
            recommendation_type=rec_type,
            recommendation_id=rec_id,
            feedback_type=feedback_type,
            feedback_data=data,
        ))
    db.add(RecommendationFeedbackEvent(
        user_id=user_id,
        recommendation_type=rec_type,
        recommendation_id=rec_id,
        feedback_type=feedback_type,
    ))
    db.commit()


def submit_feedback(
    db: Session,
    user_id: str,
    rec_type: str,
    rec_id: str,
    feedback_type: str,
    data: Optional[dict] = None,
) -> bool:
    """
    Record the user's current reaction to a recommendation.

    One live row per (user, type, id): a later submission overwrites the label,
    data and timestamp. Every submission is also appended to the event log.
    """
    data = dict(data or {})
    try:
        try:
            _write_feedback(db, user_id, rec_type, rec_id, feedback_type, data)
        except IntegrityError:
            # concurrent first submission for the same tuple; the row exists now
            db.rollback()
            _write_feedback(db, user_id, rec_type, rec_id, feedback_type, data)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Error submitting feedback for %s/%s: %s", rec_type, rec_id, e)
        return False
    return True


def get_feedback(db: Session, user_id: str, rec_type: str, rec_id: str) -> str:
    row = _find_feedback(db, user_id, rec_type, rec_id)
    return row.feedback_type if row else "none"


def list_feedback(db: Session, user_id: str) -> list[RecommendationFeedback]:
    return (
        db.query(RecommendationFeedback)
        .filter(RecommendationFeedback.user_id == user_id)
        .order_by(RecommendationFeedback.updated_at.desc())
        .all()
    )


def feedback_stats(db: Session) -> list[dict]:
    rows = db.execute(text("""
        SELECT recommendation_type, feedback_type, COUNT(*) AS cnt
        FROM recommendation_feedback
        GROUP BY recommendation_type, feedback_type
        ORDER BY recommendation_type, feedback_type
    """)).fetchall()
    return [{"recommendation_type": r[0], "feedback_type": r[1], "count": int(r[2])} for r in rows]


# ----------------------------
# Favorites
# ----------------------------

def _find_favorite(db: Session, user_id: str, item_type: str, item_id: str) -> Optional[UserFavorite]:
    return (
        db.query(UserFavorite)
        .filter(
            UserFavorite.user_id == user_id,
            UserFavorite.item_type == item_type,
            UserFavorite.item_id == item_id,
        )
        .first()
    )


def add_favorite(db: Session, user_id: str, item_type: str, item_id: str) -> UserFavorite:
    existing = _find_favorite(db, user_id, item_type, item_id)
    if existing:
        return existing
    fav = UserFavorite(user_id=user_id, item_type=item_type, item_id=item_id)
    db.add(fav)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = _find_favorite(db, user_id, item_type, item_id)
        if existing is None:
            raise
        return existing
    db.refresh(fav)
    return fav


def remove_favorite(db: Session, user_id: str, item_type: str, item_id: str) -> bool:
    fav = _find_favorite(db, user_id, item_type, item_id)
    if not fav:
        return False
    db.delete(fav)
    db.commit()
    return True


def list_favorites(db: Session, user_id: str, item_type: Optional[str] = None) -> list[UserFavorite]:
    q = db.query(UserFavorite).filter(UserFavorite.user_id == user_id)
    if item_type:
        q = q.filter(UserFavorite.item_type == item_type)
    return q.order_by(UserFavorite.created_at.desc()).all()


# ----------------------------
# Performance aggregate
# ----------------------------

def list_performance(db: Session) -> list[RecommendationPerformance]:
    return db.query(RecommendationPerformance).all()


def refresh_performance(db: Session) -> int:
    """
    Rebuild the per-item performance aggregate from current feedback labels.

    engagement = likes + 2*applications - dislikes - 0.5*not_interested
    conversion = applications / feedback_count * 100
    """
    counts: dict[tuple[str, str], Counter] = defaultdict(Counter)
    for rec_type, rec_id, label in db.query(
        RecommendationFeedback.recommendation_type,
        RecommendationFeedback.recommendation_id,
        RecommendationFeedback.feedback_type,
    ):
        counts[(rec_type, rec_id)][label] += 1

    db.query(RecommendationPerformance).delete(synchronize_session=False)
    now = utcnow()
    for (rec_type, rec_id), c in counts.items():
        total = sum(c.values())
        db.add(RecommendationPerformance(
            recommendation_type=rec_type,
            recommendation_id=rec_id,
            feedback_count=total,
            likes=c["like"],
            dislikes=c["dislike"],
            applications=c["applied"],
            not_interested=c["not_interested"],
            engagement_score=c["like"] + 2 * c["applied"] - c["dislike"] - 0.5 * c["not_interested"],
            conversion_rate=(c["applied"] / total * 100) if total else 0.0,
            refreshed_at=now,
        ))
    db.commit()
    return len(counts)
