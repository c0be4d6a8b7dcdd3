from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from shared.auth import ADMIN_ROLE, SERVICE_ROLE, current_user
from shared.database import db_dependency
from shared.errors import Forbidden
from shared.logging_utils import get_logger
from .schemas import MapIn, MapOut
from .mapping import map_opportunities


def build_router(SessionLocal, get_llm):
    router = APIRouter(tags=["opportunities"])
    get_db = db_dependency(SessionLocal)

    @router.post("/map-opportunities", response_model=MapOut)
    def map_for_profile(payload: MapIn, request: Request, db: Session = Depends(get_db)):
        user = current_user(request)
        uid = str(user["sub"])
        profile = payload.profile
        if profile.user_id and profile.user_id != uid and user.get("role") not in (ADMIN_ROLE, SERVICE_ROLE):
            raise Forbidden("Profile does not belong to the caller")

        log = get_logger("map-opportunities", request.headers.get("x-request-id"))
        log.info("Mapping opportunities", data={"academic_level": profile.academic_level,
                                                "preferred_locations": profile.preferred_locations})
        result = map_opportunities(db, get_llm, profile, profile.user_id or uid)
        log.info(
            "Mapped %d colleges, %d scholarships, %d jobs",
            len(result.recommendations.colleges),
            len(result.recommendations.scholarships),
            len(result.recommendations.jobs),
        )
        return result

    return router
