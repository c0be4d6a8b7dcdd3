from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from shared.auth import current_user_id
from shared.database import db_dependency
from .schemas import ProfileUpsertIn, ProfileOut
from .crud import get_profile, upsert_profile


def _to_out(user_id: str, p) -> ProfileOut:
    return ProfileOut(
        user_id=user_id,
        full_name=p.full_name if p else "",
        class_level=p.class_level if p else "",
        study_area=p.study_area if p else "",
        preferred_state=p.preferred_state if p else "",
        preferred_district=p.preferred_district if p else "",
        current_course=p.current_course if p else "",
        target_course_interest=list(p.target_course_interest or []) if p else [],
    )


def build_router(SessionLocal):
    router = APIRouter(prefix="/profile", tags=["profile"])
    get_db = db_dependency(SessionLocal)

    @router.get("/me", response_model=ProfileOut)
    def me(request: Request, db: Session = Depends(get_db)):
        uid = current_user_id(request)
        return _to_out(uid, get_profile(db, uid))

    @router.put("/me", response_model=ProfileOut)
    def update_me(payload: ProfileUpsertIn, request: Request, db: Session = Depends(get_db)):
        uid = current_user_id(request)
        p = upsert_profile(db, uid, payload.model_dump())
        return _to_out(uid, p)

    return router
