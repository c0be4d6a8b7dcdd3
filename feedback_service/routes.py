from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from shared.auth import current_user_id, require_admin, require_service
from shared.database import db_dependency, utcnow
from shared.errors import NotFound, PersistenceFailed
from shared.logging_utils import get_logger
from .schemas import (
    FavoriteIn,
    FavoriteOut,
    FavoriteType,
    FeedbackIn,
    FeedbackLabelOut,
    FeedbackOut,
    FeedbackStatOut,
    RecommendationType,
    SubmitOut,
    TrainOut,
)
from .crud import (
    add_favorite,
    feedback_stats,
    get_feedback,
    list_favorites,
    list_feedback,
    remove_favorite,
    submit_feedback,
)
from .training import run_training


def build_router(SessionLocal):
    router = APIRouter(tags=["feedback"])
    get_db = db_dependency(SessionLocal)

    @router.post("/feedback", response_model=SubmitOut)
    def submit(payload: FeedbackIn, request: Request, db: Session = Depends(get_db)):
        uid = current_user_id(request)
        ok = submit_feedback(
            db,
            uid,
            payload.recommendation_type,
            payload.recommendation_id,
            payload.feedback_type,
            payload.feedback_data,
        )
        if not ok:
            raise PersistenceFailed("Failed to submit feedback")
        return SubmitOut(success=True)

    @router.get("/feedback/me", response_model=list[FeedbackOut])
    def mine(request: Request, db: Session = Depends(get_db)):
        return list_feedback(db, current_user_id(request))

    @router.get("/feedback/stats", response_model=list[FeedbackStatOut])
    def stats(request: Request, db: Session = Depends(get_db)):
        require_admin(request)
        return feedback_stats(db)

    @router.get("/feedback/{rec_type}/{rec_id}", response_model=FeedbackLabelOut)
    def label(rec_type: RecommendationType, rec_id: str, request: Request, db: Session = Depends(get_db)):
        uid = current_user_id(request)
        return FeedbackLabelOut(
            recommendation_type=rec_type,
            recommendation_id=rec_id,
            feedback_type=get_feedback(db, uid, rec_type, rec_id),
        )

    # Favorites
    @router.get("/favorites", response_model=list[FavoriteOut])
    def favorites(
        request: Request,
        item_type: FavoriteType | None = Query(default=None, alias="itemType"),
        db: Session = Depends(get_db),
    ):
        return list_favorites(db, current_user_id(request), item_type)

    @router.post("/favorites", response_model=FavoriteOut)
    def favorite(payload: FavoriteIn, request: Request, db: Session = Depends(get_db)):
        return add_favorite(db, current_user_id(request), payload.item_type, payload.item_id)

    @router.delete("/favorites/{item_type}/{item_id}", response_model=dict)
    def unfavorite(item_type: FavoriteType, item_id: str, request: Request, db: Session = Depends(get_db)):
        if not remove_favorite(db, current_user_id(request), item_type, item_id):
            raise NotFound("Favorite not found")
        return {"deleted": True}

    # Weight trainer
    @router.post("/train-recommendation-model", response_model=TrainOut)
    def train(request: Request, db: Session = Depends(get_db)):
        require_service(request)
        log = get_logger("train-recommendation-model", request.headers.get("x-request-id"))
        log.info("Starting training run")
        report = run_training(db)
        log.info("Training completed", data=report.as_dict())
        return TrainOut(
            timestamp=utcnow(),
            stats=report.as_dict(),
            message="Model weights trained and confidence adjustments computed",
        )

    return router
