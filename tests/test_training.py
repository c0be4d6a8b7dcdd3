import pytest

from conftest import SERVICE_AUTH, auth
from feedback_service.crud import submit_feedback
from feedback_service.models import RecommendationPerformance
from feedback_service.training import (
    ModelWeights,
    build_user_item_matrix,
    clamp_adjustment,
    compute_adjustment,
    raw_adjustment,
    run_training,
    train_weights,
)


def _perf(engagement=None, conversion=None, applications=None, likes=None, rec_id="j-1"):
    return RecommendationPerformance(
        recommendation_type="job",
        recommendation_id=rec_id,
        engagement_score=engagement,
        conversion_rate=conversion,
        applications=applications,
        likes=likes,
    )


def test_matrix_accumulates_events():
    events = [
        ("u1", "job", "j-1", "like"),
        ("u1", "job", "j-1", "applied"),
        ("u1", "college", "c-1", "dislike"),
        ("u2", "job", "j-1", "not_interested"),
        ("u2", "job", "j-2", "bookmark"),
    ]
    matrix = build_user_item_matrix(events)
    assert matrix == {
        "u1": {"job-j-1": 15, "college-c-1": -3},
        "u2": {"job-j-1": -1, "job-j-2": 0},
    }


def test_base_weights_without_data():
    assert train_weights([]) == ModelWeights(0.4, 0.2, 0.25, 0.15)


def test_threshold_bumps():
    high_conversion = train_weights([_perf(engagement=1, conversion=20)])
    assert high_conversion == ModelWeights(application_weight=0.35, like_weight=0.2,
                                           engagement_weight=0.25, conversion_weight=0.25)

    high_engagement = train_weights([_perf(engagement=8, conversion=0)])
    assert high_engagement == ModelWeights(application_weight=0.4, like_weight=0.25,
                                           engagement_weight=0.3, conversion_weight=0.15)

    both = train_weights([_perf(engagement=6, conversion=11)])
    assert both == ModelWeights(0.35, 0.25, 0.3, 0.25)


def test_thresholds_are_strict():
    assert train_weights([_perf(engagement=5, conversion=10)]) == ModelWeights()


def test_averages_skip_nulls():
    rows = [_perf(engagement=12, conversion=None), _perf(engagement=None, conversion=None)]
    weights = train_weights(rows)
    assert weights.engagement_weight == 0.3
    assert weights.conversion_weight == 0.15


def test_weights_are_deterministic():
    rows = [_perf(engagement=e, conversion=c, rec_id=str(i)) for i, (e, c) in enumerate([(3, 4), (9, 30), (0, 0)])]
    first = train_weights(rows)
    assert all(train_weights(rows) == first for _ in range(5))
    assert train_weights(list(reversed(rows))) == first


def test_adjustment_formula():
    w = ModelWeights()
    perf = _perf(engagement=4, conversion=10, applications=1, likes=2)
    # 4*0.25 + 10*0.15 + 1*0.4*5 + 2*0.2*2
    assert raw_adjustment(perf, w) == pytest.approx(1.0 + 1.5 + 2.0 + 0.8)


def test_adjustment_clamped_and_skipped():
    assert clamp_adjustment(35) == 20
    assert clamp_adjustment(-35) == -20
    assert clamp_adjustment(0.4) is None
    assert clamp_adjustment(-0.99) is None
    assert clamp_adjustment(1.0) == 1.0

    # 140 * 0.25 = 35
    assert compute_adjustment(_perf(engagement=140), ModelWeights()) == 20
    # 1.6 * 0.25 = 0.4
    assert compute_adjustment(_perf(engagement=1.6), ModelWeights()) is None


def test_run_training_reports(db):
    db.add_all([
        _perf(engagement=140, conversion=0, rec_id="big"),
        _perf(engagement=1.6, conversion=0, rec_id="tiny"),
    ])
    db.commit()
    submit_feedback(db, "u1", "job", "big", "like")
    submit_feedback(db, "u2", "job", "big", "applied")

    applied = []
    report = run_training(db, apply_adjustment=lambda t, i, d: applied.append((t, i, d)))

    assert report.performance_records == 2
    assert report.users_analyzed == 2
    assert report.updates_applied == 1
    assert applied == [("job", "big", 20)]
    # average engagement 70.8 > 5
    assert report.model_weights.engagement_weight == 0.3

    # aggregate rebuilt from current feedback
    rebuilt = db.query(RecommendationPerformance).all()
    assert [(p.recommendation_id, p.feedback_count) for p in rebuilt] == [("big", 2)]


def test_train_route_needs_service_credential(client):
    assert client.post("/train-recommendation-model", headers=auth()).status_code == 403
    assert client.post("/train-recommendation-model", headers=auth("admin-token")).status_code == 403
    assert client.post("/train-recommendation-model").status_code == 401


def test_train_route(client):
    client.post(
        "/feedback",
        json={"recommendationType": "job", "recommendationId": "j-1", "feedbackType": "applied"},
        headers=auth(),
    )

    r = client.post("/train-recommendation-model", headers=SERVICE_AUTH)

    assert r.status_code == 200, r.text
    body = r.json()
    assert body["success"] is True
    assert body["stats"]["performance_records"] == 0
    assert body["stats"]["users_analyzed"] == 1
    assert body["stats"]["updates_applied"] == 0
    assert body["stats"]["model_weights"] == {
        "application_weight": 0.4,
        "like_weight": 0.2,
        "engagement_weight": 0.25,
        "conversion_weight": 0.15,
    }

    # the second run sees the rebuilt aggregate
    stats = client.post("/train-recommendation-model", headers=SERVICE_AUTH).json()["stats"]
    assert stats["performance_records"] == 1
    assert stats["updates_applied"] == 1
