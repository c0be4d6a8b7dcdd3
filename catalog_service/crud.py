from datetime import datetime

from sqlalchemy.orm import Session
from shared.database import to_naive_utc
from .models import FAQ, NGO, College, VerifiedJob, VerifiedScholarship


def _normalize(payload: dict) -> dict:
    out = {}
    for k, v in payload.items():
        if isinstance(v, datetime):
            v = to_naive_utc(v)
        if v is None and k == "posting_date":
            continue
        out[k] = v
    return out


def list_colleges(db: Session, state: str | None = None):
    q = db.query(College)
    if state:
        q = q.filter(College.state == state)
    return q.order_by(College.college_name.asc()).all()


def list_scholarships(db: Session, status: str | None = None):
    q = db.query(VerifiedScholarship)
    if status:
        q = q.filter(VerifiedScholarship.status == status)
    return q.order_by(VerifiedScholarship.deadline.asc()).all()


def list_jobs(db: Session, active_only: bool = False):
    q = db.query(VerifiedJob)
    if active_only:
        q = q.filter(VerifiedJob.is_active.is_(True))
    return q.order_by(VerifiedJob.posting_date.desc()).all()


def list_faqs(db: Session, include_inactive: bool = False):
    q = db.query(FAQ)
    if not include_inactive:
        q = q.filter(FAQ.is_active.is_(True))
    return q.order_by(FAQ.display_order.asc(), FAQ.created_at.asc()).all()


def group_faqs(rows) -> list[tuple[str, list]]:
    # categories keep the order of their first FAQ
    groups: dict[str, list] = {}
    for row in rows:
        groups.setdefault(row.category, []).append(row)
    return list(groups.items())


def list_ngos(db: Session, state: str | None = None, active_only: bool = True):
    q = db.query(NGO)
    if active_only:
        q = q.filter(NGO.is_active.is_(True))
    rows = q.order_by(NGO.name.asc()).all()
    if state:
        # an NGO with no listed states works nationally
        rows = [n for n in rows if not n.states_present or state in n.states_present]
    return rows


def get_row(db: Session, model, row_id: str):
    return db.query(model).filter(model.id == row_id).first()


def create_row(db: Session, model, payload: dict):
    row = model(**_normalize(payload))
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def delete_row(db: Session, model, row_id: str) -> bool:
    row = get_row(db, model, row_id)
    if not row:
        return False
    db.delete(row)
    db.commit()
    return True


def update_row(db: Session, model, row_id: str, payload: dict):
    row = get_row(db, model, row_id)
    if not row:
        return None
    for field, value in _normalize(payload).items():
        setattr(row, field, value)
    db.commit()
    db.refresh(row)
    return row
