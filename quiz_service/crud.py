from sqlalchemy.orm import Session
from shared.database import utcnow
from shared.errors import NotFound, ValidationFailed
from .models import QuizQuestion, QuizResponse, QuizSession
from .scoring import CategoryScore, overall_score


def create_question(db: Session, payload: dict) -> QuizQuestion:
    q = QuizQuestion(**payload)
    db.add(q)
    db.commit()
    db.refresh(q)
    return q


def insert_questions(db: Session, questions: list[dict]) -> list[QuizQuestion]:
    rows = [QuizQuestion(**q) for q in questions]
    db.add_all(rows)
    db.commit()
    for r in rows:
        db.refresh(r)
    return rows


def list_questions_for(db: Session, class_level: str, study_area: str) -> list[QuizQuestion]:
    # empty target lists mean "everyone"
    rows = db.query(QuizQuestion).order_by(QuizQuestion.created_at.asc(), QuizQuestion.id.asc()).all()
    out = []
    for q in rows:
        if q.target_class_levels and class_level not in q.target_class_levels:
            continue
        if q.target_study_areas and study_area not in q.target_study_areas and "All" not in q.target_study_areas:
            continue
        out.append(q)
    return out


def get_question(db: Session, question_id: str) -> QuizQuestion | None:
    return db.query(QuizQuestion).filter(QuizQuestion.id == question_id).first()


def start_session(db: Session, user_id: str) -> QuizSession:
    s = QuizSession(user_id=user_id, completed=False)
    db.add(s)
    db.commit()
    db.refresh(s)
    return s


def get_user_session(db: Session, session_id: str, user_id: str) -> QuizSession:
    s = db.query(QuizSession).filter(QuizSession.id == session_id).first()
    if not s or s.user_id != user_id:
        raise NotFound("Quiz session not found")
    return s


def record_response(db: Session, session: QuizSession, question: QuizQuestion, selected_option: str) -> QuizResponse:
    if session.completed:
        raise ValidationFailed("Quiz session already completed")

    is_correct = any(
        opt.get("text") == selected_option and bool(opt.get("isCorrect"))
        for opt in (question.options or [])
    )

    r = (
        db.query(QuizResponse)
        .filter(QuizResponse.quiz_session_id == session.id, QuizResponse.question_id == question.id)
        .first()
    )
    if r:
        r.selected_option = selected_option
        r.is_correct = is_correct
    else:
        r = QuizResponse(
            user_id=session.user_id,
            quiz_session_id=session.id,
            question_id=question.id,
            selected_option=selected_option,
            category=question.category,
            is_correct=is_correct,
        )
        db.add(r)

    db.commit()
    db.refresh(r)
    return r


def session_responses(db: Session, session_id: str) -> list[QuizResponse]:
    return (
        db.query(QuizResponse)
        .filter(QuizResponse.quiz_session_id == session_id)
        .order_by(QuizResponse.created_at.asc())
        .all()
    )


def complete_session(db: Session, session: QuizSession, profile: list[CategoryScore]) -> QuizSession:
    session.completed = True
    session.completed_at = utcnow()
    session.score = overall_score(profile)
    session.category_scores = [s.as_dict() for s in profile]
    db.commit()
    db.refresh(session)
    return session


def latest_completed_session(db: Session, user_id: str) -> QuizSession | None:
    return (
        db.query(QuizSession)
        .filter(QuizSession.user_id == user_id, QuizSession.completed.is_(True))
        .order_by(QuizSession.completed_at.desc())
        .first()
    )
