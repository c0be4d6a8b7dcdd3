import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from catalog_service.models import College
from shared.errors import PersistenceFailed
from .models import Career, Recommendation
from .recommendation_logic import ScoredItem, clamp_confidence

logger = logging.getLogger("recommendation-engine")


def title_key(title: str) -> str:
    return title.strip().lower()


def find_career_by_title(db: Session, title: str) -> Career | None:
    return db.query(Career).filter(Career.title_key == title_key(title)).first()


def get_or_create_career(db: Session, *, title: str, description: str, category: str) -> Career:
    existing = find_career_by_title(db, title)
    if existing:
        return existing

    career = Career(
        title=title.strip(),
        title_key=title_key(title),
        description=description.strip(),
        category=category,
    )
    db.add(career)
    try:
        db.commit()
    except IntegrityError:
        # another request created the same title first
        db.rollback()
        existing = find_career_by_title(db, title)
        if existing is None:
            raise
        return existing
    db.refresh(career)
    return career


def save_recommendation(
    db: Session,
    *,
    user_id: str,
    session_id: str,
    entity_id: str,
    entity_type: str,
    confidence: int,
    reason: str = "",
) -> Recommendation:
    row = Recommendation(
        user_id=user_id,
        source_session_id=session_id,
        target_entity_id=entity_id,
        target_entity_type=entity_type,
        confidence_score=clamp_confidence(confidence),
        reason=reason,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def persist_career_recommendations(
    db: Session,
    *,
    user_id: str,
    session_id: str,
    suggestions: list[ScoredItem],
    category: str,
) -> list[tuple[Recommendation, Career, ScoredItem]]:
    """
    Link each suggestion to a catalog career (creating it on first sight) and
    store one recommendation row per suggestion. Rows committed before a
    failure are kept.
    """
    saved = []
    for s in suggestions:
        try:
            career = get_or_create_career(db, title=s.title, description=s.reason, category=category)
            rec = save_recommendation(
                db,
                user_id=user_id,
                session_id=session_id,
                entity_id=career.id,
                entity_type="career",
                confidence=s.confidence,
                reason=s.reason,
            )
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Error saving recommendation for %r after %d saved: %s", s.title, len(saved), e)
            raise PersistenceFailed("Failed to save recommendations") from e
        saved.append((rec, career, s))
    return saved


def recommendations_for_session(db: Session, session_id: str) -> list[Recommendation]:
    return (
        db.query(Recommendation)
        .filter(Recommendation.source_session_id == session_id)
        .order_by(Recommendation.confidence_score.desc())
        .all()
    )


def active_colleges_in(db: Session, states: list[str], limit: int = 100) -> list[College]:
    """Active colleges, best rated first (unrated last); all states when none are given."""
    q = db.query(College).filter(College.is_active.is_(True))
    if states:
        q = q.filter(College.state.in_(states))
    return q.order_by(College.rating.is_(None), College.rating.desc(), College.college_name.asc()).limit(limit).all()
