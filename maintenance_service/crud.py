import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from shared.auth import SYSTEM_USER_ID
from shared.database import utcnow
from catalog_service.models import College, VerifiedJob, VerifiedScholarship
from .models import UserActivity

logger = logging.getLogger("refresh-data")

STALE_JOB_DAYS = 30


@dataclass
class RefreshResults:
    scholarships_updated: int = 0
    jobs_deactivated: int = 0
    colleges_checked: int = 0
    errors: list[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return asdict(self)


def close_expired_scholarships(db: Session, now: datetime) -> int:
    n = (
        db.query(VerifiedScholarship)
        .filter(VerifiedScholarship.status == "open", VerifiedScholarship.deadline < now)
        .update({VerifiedScholarship.status: "closed", VerifiedScholarship.updated_at: now}, synchronize_session=False)
    )
    db.commit()
    return n


def deactivate_stale_jobs(db: Session, now: datetime) -> int:
    cutoff = now - timedelta(days=STALE_JOB_DAYS)
    n = (
        db.query(VerifiedJob)
        .filter(VerifiedJob.is_active.is_(True), VerifiedJob.posting_date < cutoff)
        .update({VerifiedJob.is_active: False, VerifiedJob.last_checked: now}, synchronize_session=False)
    )
    db.commit()
    return n


def touch_catalog(db: Session, now: datetime) -> int:
    count = db.query(College).count()
    db.query(College).update({College.updated_at: now}, synchronize_session=False)
    db.query(VerifiedScholarship).filter(VerifiedScholarship.status == "open").update(
        {VerifiedScholarship.last_checked: now}, synchronize_session=False
    )
    db.query(VerifiedJob).filter(VerifiedJob.is_active.is_(True)).update(
        {VerifiedJob.last_checked: now}, synchronize_session=False
    )
    db.commit()
    return count


def log_activity(db: Session, user_id: str, activity_type: str, data: dict) -> None:
    db.add(UserActivity(user_id=user_id, activity_type=activity_type, activity_data=data))
    db.commit()


def refresh_data(db: Session, now: Optional[datetime] = None) -> RefreshResults:
    """
    Scheduled catalog maintenance. Each step commits on its own; a failing step
    is recorded in ``errors`` and the remaining steps still run.
    """
    now = now or utcnow()
    results = RefreshResults()

    try:
        results.scholarships_updated = close_expired_scholarships(db, now)
        logger.info("Updated %d expired scholarships to closed status", results.scholarships_updated)
    except SQLAlchemyError as e:
        db.rollback()
        msg = f"Scholarship update error: {e}"
        logger.error(msg)
        results.errors.append(msg)

    try:
        results.jobs_deactivated = deactivate_stale_jobs(db, now)
        logger.info("Deactivated %d old job postings", results.jobs_deactivated)
    except SQLAlchemyError as e:
        db.rollback()
        msg = f"Job deactivation error: {e}"
        logger.error(msg)
        results.errors.append(msg)

    try:
        results.colleges_checked = touch_catalog(db, now)
        logger.info("Updated last_checked timestamp for %d colleges", results.colleges_checked)
    except SQLAlchemyError as e:
        db.rollback()
        msg = f"Timestamp update error: {e}"
        logger.error(msg)
        results.errors.append(msg)

    try:
        log_activity(db, SYSTEM_USER_ID, "data_refresh", {"timestamp": now.isoformat(), **results.as_dict()})
    except SQLAlchemyError as e:
        # not part of the refresh result
        db.rollback()
        logger.error("Failed to log activity: %s", e)

    return results
