import logging
from dataclasses import asdict, dataclass
from typing import Any, Callable, Iterable, Optional

from sqlalchemy.orm import Session
from catalog_service.models import College, VerifiedJob, VerifiedScholarship
from .crud import list_performance, refresh_performance
from .models import RecommendationFeedbackEvent, RecommendationPerformance

logger = logging.getLogger("feedback-trainer")

FEEDBACK_SCORES = {
    "applied": 10,
    "like": 5,
    "dislike": -3,
    "not_interested": -1,
}

MAX_ADJUSTMENT = 20.0
MIN_ADJUSTMENT = 1.0

CONVERSION_THRESHOLD = 10.0
ENGAGEMENT_THRESHOLD = 5.0


@dataclass(frozen=True)
class ModelWeights:
    application_weight: float = 0.4
    like_weight: float = 0.2
    engagement_weight: float = 0.25
    conversion_weight: float = 0.15

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass
class TrainingReport:
    performance_records: int
    users_analyzed: int
    updates_applied: int
    model_weights: ModelWeights

    def as_dict(self) -> dict[str, Any]:
        return {
            "performance_records": self.performance_records,
            "users_analyzed": self.users_analyzed,
            "updates_applied": self.updates_applied,
            "model_weights": self.model_weights.as_dict(),
        }


# Adjustment sink: (recommendation_type, recommendation_id, delta) -> None
AdjustmentSink = Callable[[str, str, float], None]


def build_user_item_matrix(events: Iterable[tuple[str, str, str, str]]) -> dict[str, dict[str, float]]:
    """
    events: (user_id, recommendation_type, recommendation_id, feedback_type).
    Scores accumulate across repeated events for the same item.
    """
    matrix: dict[str, dict[str, float]] = {}
    for user_id, rec_type, rec_id, feedback_type in events:
        key = f"{rec_type}-{rec_id}"
        row = matrix.setdefault(user_id, {})
        row[key] = row.get(key, 0) + FEEDBACK_SCORES.get(feedback_type, 0)
    return matrix


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def train_weights(performance: list[RecommendationPerformance]) -> ModelWeights:
    """Threshold re-weighting from the aggregate averages. Pure."""
    base = ModelWeights()
    if not performance:
        return base

    avg_engagement = _mean([p.engagement_score for p in performance if p.engagement_score is not None])
    avg_conversion = _mean([p.conversion_rate for p in performance if p.conversion_rate is not None])

    weights = asdict(base)
    if avg_conversion > CONVERSION_THRESHOLD:
        weights["conversion_weight"] = 0.25
        weights["application_weight"] = 0.35
    if avg_engagement > ENGAGEMENT_THRESHOLD:
        weights["engagement_weight"] = 0.3
        weights["like_weight"] = 0.25
    return ModelWeights(**weights)


def raw_adjustment(perf: RecommendationPerformance, weights: ModelWeights) -> float:
    return (
        (perf.engagement_score or 0) * weights.engagement_weight
        + (perf.conversion_rate or 0) * weights.conversion_weight
        + (perf.applications or 0) * weights.application_weight * 5
        + (perf.likes or 0) * weights.like_weight * 2
    )


def clamp_adjustment(value: float) -> Optional[float]:
    """Clamp to [-20, 20]; None when the change is too small to matter."""
    capped = max(-MAX_ADJUSTMENT, min(MAX_ADJUSTMENT, value))
    if abs(capped) < MIN_ADJUSTMENT:
        return None
    return capped


def compute_adjustment(perf: RecommendationPerformance, weights: ModelWeights) -> Optional[float]:
    return clamp_adjustment(raw_adjustment(perf, weights))


def log_adjustment(rec_type: str, rec_id: str, delta: float) -> None:
    logger.info("Adjusting %s/%s by %.2f", rec_type, rec_id, delta)


def collect_content_features(db: Session) -> dict[str, dict[str, dict]]:
    features: dict[str, dict[str, dict]] = {"jobs": {}, "colleges": {}, "scholarships": {}}
    for job in db.query(VerifiedJob).all():
        features["jobs"][job.id] = {
            "skills": job.required_skills or [],
            "type": job.job_type,
            "location": job.location,
        }
    for college in db.query(College).all():
        features["colleges"][college.id] = {
            "courses": college.courses_offered or [],
            "state": college.state,
            "type": college.college_type,
        }
    for s in db.query(VerifiedScholarship).all():
        features["scholarships"][s.id] = {
            "levels": s.target_academic_level or [],
            "locations": s.target_locations or [],
            "amount": s.amount,
        }
    return features


def run_training(db: Session, apply_adjustment: Optional[AdjustmentSink] = None) -> TrainingReport:
    """
    Single batch pass over the performance aggregate and the feedback log.

    Adjustments are handed to ``apply_adjustment`` (default: log only); nothing
    is written back to any confidence column here. The performance aggregate is
    rebuilt from current feedback at the end of the run.
    """
    sink = apply_adjustment or log_adjustment

    performance = list_performance(db)
    logger.info("Analyzing %d recommendation performance records", len(performance))

    features = collect_content_features(db)
    logger.info(
        "Content features: %d jobs, %d colleges, %d scholarships",
        len(features["jobs"]), len(features["colleges"]), len(features["scholarships"]),
    )

    events = db.query(
        RecommendationFeedbackEvent.user_id,
        RecommendationFeedbackEvent.recommendation_type,
        RecommendationFeedbackEvent.recommendation_id,
        RecommendationFeedbackEvent.feedback_type,
    ).all()
    matrix = build_user_item_matrix(events)
    logger.info("Built user-item matrix with %d users", len(matrix))

    weights = train_weights(performance)
    logger.info("Trained model weights: %s", weights.as_dict())

    updates = 0
    for perf in performance:
        delta = compute_adjustment(perf, weights)
        if delta is None:
            continue
        sink(perf.recommendation_type, perf.recommendation_id, delta)
        updates += 1

    refreshed = refresh_performance(db)
    logger.info("Refreshed performance aggregate for %d items", refreshed)

    return TrainingReport(
        performance_records=len(performance),
        users_analyzed=len(matrix),
        updates_applied=updates,
        model_weights=weights,
    )
