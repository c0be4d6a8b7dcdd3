from sqlalchemy.orm import Session
from .models import UserProfile

DEFAULT_CLASS_LEVEL = "UG"
DEFAULT_STUDY_AREA = "All"


def get_profile(db: Session, user_id: str) -> UserProfile | None:
    return db.query(UserProfile).filter(UserProfile.user_id == user_id).first()


def upsert_profile(db: Session, user_id: str, payload: dict) -> UserProfile:
    """
    Create the profile on first write, otherwise overwrite the given fields.
    """
    p = get_profile(db, user_id)

    if not p:
        p = UserProfile(user_id=user_id, **payload)
        db.add(p)
    else:
        for field, value in payload.items():
            if hasattr(p, field):
                setattr(p, field, value)

    db.commit()
    db.refresh(p)
    return p


def academic_context(db: Session, user_id: str) -> tuple[str, str]:
    """(class_level, study_area) used to frame prompts and filter questions."""
    p = get_profile(db, user_id)
    class_level = (p.class_level if p else "") or DEFAULT_CLASS_LEVEL
    study_area = (p.study_area if p else "") or DEFAULT_STUDY_AREA
    return class_level, study_area
