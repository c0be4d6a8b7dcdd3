from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from shared.auth import current_user_id, require_admin
from shared.database import db_dependency
from shared.errors import NotFound
from profile_service.crud import academic_context
from .schemas import (
    AnswerIn, AnswerOut, GenerateQuestionsIn, QuestionCreateIn,
    QuestionOut, SessionOut, SessionProfileOut,
)
from .crud import (
    create_question, insert_questions, list_questions_for, get_question,
    start_session, get_user_session, record_response, session_responses,
)
from .ordering import session_order
from .question_generator import generate_questions
from .scoring import build_profile, overall_score


def _question_out(q) -> QuestionOut:
    # correctness flags stay server-side
    return QuestionOut(
        id=q.id,
        question_text=q.question_text,
        category=q.category,
        options=[o.get("text", "") for o in (q.options or [])],
    )


def build_router(SessionLocal, get_llm):
    router = APIRouter(prefix="/quiz", tags=["quiz"])
    get_db = db_dependency(SessionLocal)

    @router.post("/questions", response_model=QuestionOut)
    def create_q(payload: QuestionCreateIn, request: Request, db: Session = Depends(get_db)):
        require_admin(request)
        data = payload.model_dump()
        data["options"] = [{"text": o.text, "isCorrect": o.is_correct} for o in payload.options]
        return _question_out(create_question(db, data))

    @router.post("/questions/generate")
    def generate(payload: GenerateQuestionsIn, request: Request, db: Session = Depends(get_db)):
        require_admin(request)
        questions = generate_questions(get_llm(), payload.class_level, payload.study_area)
        rows = insert_questions(db, questions)
        return {"success": True, "questions": [_question_out(q) for q in rows], "count": len(rows)}

    @router.post("/sessions", response_model=SessionOut)
    def start(request: Request, db: Session = Depends(get_db)):
        uid = current_user_id(request)
        s = start_session(db, uid)
        return SessionOut.model_validate(s, from_attributes=True)

    @router.get("/sessions/{session_id}/questions", response_model=list[QuestionOut])
    def questions(session_id: str, request: Request, db: Session = Depends(get_db)):
        uid = current_user_id(request)
        s = get_user_session(db, session_id, uid)
        class_level, study_area = academic_context(db, uid)
        ordered = session_order(list_questions_for(db, class_level, study_area), uid, s.id)
        return [_question_out(q) for q in ordered]

    @router.post("/sessions/{session_id}/responses", response_model=AnswerOut)
    def answer(session_id: str, payload: AnswerIn, request: Request, db: Session = Depends(get_db)):
        uid = current_user_id(request)
        s = get_user_session(db, session_id, uid)
        q = get_question(db, payload.question_id)
        if not q:
            raise NotFound("Question not found")
        r = record_response(db, s, q, payload.selected_option)
        return AnswerOut(question_id=r.question_id, category=r.category, is_correct=r.is_correct)

    @router.get("/sessions/{session_id}/profile", response_model=SessionProfileOut)
    def profile(session_id: str, request: Request, db: Session = Depends(get_db)):
        uid = current_user_id(request)
        s = get_user_session(db, session_id, uid)
        scores = build_profile(session_responses(db, s.id))
        return SessionProfileOut(
            quiz_session_id=s.id,
            profile=[sc.as_dict() for sc in scores],
            overall_score=overall_score(scores),
        )

    return router
