from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session
from shared.auth import require_service
from shared.database import db_dependency
from shared.logging_utils import get_logger
from .crud import refresh_data


class RefreshResultsOut(BaseModel):
    scholarships_updated: int
    jobs_deactivated: int
    colleges_checked: int
    errors: list[str]


class RefreshOut(BaseModel):
    success: bool = True
    message: str
    results: RefreshResultsOut


def build_router(SessionLocal):
    router = APIRouter(tags=["maintenance"])
    get_db = db_dependency(SessionLocal)

    @router.post("/refresh-data", response_model=RefreshOut)
    def refresh(request: Request, db: Session = Depends(get_db)):
        require_service(request)
        log = get_logger("refresh-data", request.headers.get("x-request-id"))
        log.info("Starting data refresh")
        results = refresh_data(db)
        log.info("Data refresh completed", data=results.as_dict())
        return RefreshOut(message="Data refresh completed successfully", results=results.as_dict())

    return router
