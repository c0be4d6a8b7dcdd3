from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shared.auth import current_user_id
from shared.database import db_dependency
from shared.errors import PersistenceFailed, ValidationFailed
from shared.logging_utils import get_logger
from profile_service.crud import academic_context, get_profile
from quiz_service.crud import complete_session, get_user_session, latest_completed_session
from quiz_service.scoring import build_profile, strongest_category

from .schemas import (
    CareerOut, DescribeIn, DescribeOut, NextCourseOut, RecommendIn, RecommendOut, RecommendationOut,
    StreamCollegeOut, StreamRecommendationsOut,
)
from .crud import active_colleges_in, persist_career_recommendations, recommendations_for_session
from .models import Career
from .recommendation_logic import (
    confidence_band,
    request_career_description,
    request_career_suggestions,
)
from .stream_mapping import (
    build_context,
    determine_stream,
    education_stage,
    next_courses,
    rank_colleges,
    states_to_search,
)


def _career_out(c: Career) -> CareerOut:
    return CareerOut(id=c.id, title=c.title, description=c.description, category=c.category)


def _stream_college_out(college, s) -> StreamCollegeOut:
    return StreamCollegeOut(
        id=college.id,
        college_name=college.college_name,
        state=college.state,
        district=college.district,
        specialised_in=college.specialised_in,
        college_type=college.college_type,
        rating=college.rating,
        fees=college.fees,
        website=college.website,
        admission_link=college.admission_link,
        courses_offered=list(college.courses_offered or []),
        confidence_score=s.score,
        match_reason=s.reason,
        is_user_state=s.is_user_state,
    )


def build_router(SessionLocal, get_llm):
    router = APIRouter(tags=["recommendations"])
    get_db = db_dependency(SessionLocal)

    @router.post("/generate-career-recommendations", response_model=RecommendOut)
    def generate(payload: RecommendIn, request: Request, db: Session = Depends(get_db)):
        uid = current_user_id(request)
        log = get_logger("generate-career-recommendations", request.headers.get("x-request-id"))

        session = get_user_session(db, payload.quiz_session_id, uid)
        if session.completed:
            raise ValidationFailed("Quiz session already completed")

        # 1) quiz responses -> category percentages
        profile = build_profile(payload.responses)
        log.info("Profile generated", data=[s.as_dict() for s in profile])

        # 2) ask the model; nothing has been written yet
        class_level, study_area = academic_context(db, uid)
        suggestions = request_career_suggestions(get_llm(), profile, class_level, study_area)
        log.info("Validated %d recommendations", len(suggestions))

        # 3) persist catalog careers + recommendation rows
        saved = persist_career_recommendations(
            db,
            user_id=uid,
            session_id=session.id,
            suggestions=suggestions,
            category=strongest_category(profile),
        )

        # 4) close the session with the mean category score
        try:
            session = complete_session(db, session, profile)
        except SQLAlchemyError as e:
            db.rollback()
            log.error("Error updating quiz session: %s", e)
            raise PersistenceFailed("Failed to complete quiz session") from e
        log.info("Quiz session %s completed with score %s", session.id, session.score)

        return RecommendOut(
            recommendations=[
                RecommendationOut(
                    id=rec.id,
                    user_id=rec.user_id,
                    quiz_session_id=rec.source_session_id,
                    career_id=career.id,
                    confidence_score=rec.confidence_score,
                    confidence_band=confidence_band(rec.confidence_score),
                    reason=item.reason,
                    career=_career_out(career),
                )
                for rec, career, item in saved
            ],
            profile=[s.as_dict() for s in profile],
        )

    @router.post("/generate-career-description", response_model=DescribeOut)
    def describe(payload: DescribeIn, request: Request):
        current_user_id(request)
        description = request_career_description(get_llm(), payload.career_title, payload.category)
        return DescribeOut(description=description)

    @router.get("/recommendations/sessions/{session_id}", response_model=list[RecommendationOut])
    def for_session(session_id: str, request: Request, db: Session = Depends(get_db)):
        uid = current_user_id(request)
        session = get_user_session(db, session_id, uid)
        out = []
        for rec in recommendations_for_session(db, session.id):
            career = db.get(Career, rec.target_entity_id)
            if career is None:
                continue
            out.append(RecommendationOut(
                id=rec.id,
                user_id=rec.user_id,
                quiz_session_id=rec.source_session_id,
                career_id=career.id,
                confidence_score=rec.confidence_score,
                confidence_band=confidence_band(rec.confidence_score),
                reason=rec.reason,
                career=_career_out(career),
            ))
        return out

    @router.get("/stream-recommendations", response_model=StreamRecommendationsOut)
    def stream_recommendations(request: Request, db: Session = Depends(get_db)):
        """Rule-based colleges and next courses from the student's stream and stage; no AI call."""
        uid = current_user_id(request)
        ctx = build_context(get_profile(db, uid), latest_completed_session(db, uid))
        stream = determine_stream(ctx)

        colleges = active_colleges_in(db, states_to_search(ctx.preferred_state))
        by_id = {c.id: c for c in colleges}
        ranked = rank_colleges(colleges, ctx, stream)

        return StreamRecommendationsOut(
            stream=stream,
            education_stage=education_stage(ctx, stream),
            colleges=[_stream_college_out(by_id[s.college_id], s) for s in ranked],
            next_courses=[
                NextCourseOut(
                    name=c.name,
                    description=c.description,
                    entrance_exams=c.entrance_exams,
                    college_types=c.college_types,
                )
                for c in next_courses(ctx, stream)
            ],
        )

    return router
