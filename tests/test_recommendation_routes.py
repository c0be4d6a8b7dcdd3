import json

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from conftest import auth
from quiz_service.models import QuizSession
from recommendation_engine import crud as persister
from recommendation_engine.models import Career, Recommendation

CAREERS = [
    ("Software Engineer", 92),
    ("Data Scientist", 85),
    ("Systems Analyst", 74),
    ("Network Engineer", 66),
    ("Technical Writer", 48),
]


def _careers_payload(careers=CAREERS):
    return {"recommendations": [
        {"career": title, "confidence": conf, "reason": f"Technical score fits {title}"} for title, conf in careers
    ]}


def _technical_responses(n=5):
    return [
        {"question_id": f"q{i}", "category": "technical", "selected_option": "A", "isCorrect": True}
        for i in range(n)
    ]


@pytest.fixture
def session_id(client):
    r = client.post("/quiz/sessions", headers=auth())
    assert r.status_code == 200
    return r.json()["id"]


def _generate(client, session_id, responses=None, token="student-token"):
    return client.post(
        "/generate-career-recommendations",
        json={"quizSessionId": session_id, "responses": responses or _technical_responses()},
        headers=auth(token),
    )


def test_generates_and_persists(client, llm_server, session_id, db):
    llm_server.push_tool("recommend_careers", _careers_payload())

    r = _generate(client, session_id)

    assert r.status_code == 200, r.text
    body = r.json()
    assert body["success"] is True
    assert body["profile"] == [{"category": "technical", "score": 100, "correct": 5, "total": 5}]
    assert len(body["recommendations"]) == 5
    first = body["recommendations"][0]
    assert first["career"]["title"] == "Software Engineer"
    assert first["confidence_score"] == 92
    assert first["confidence_band"] == "High"
    assert all(0 <= rec["confidence_score"] <= 100 for rec in body["recommendations"])

    rows = db.query(Recommendation).filter(Recommendation.source_session_id == session_id).all()
    assert len(rows) == 5
    assert {row.target_entity_type for row in rows} == {"career"}
    assert db.query(Career).count() == 5

    session = db.get(QuizSession, session_id)
    assert session.completed is True
    assert session.score == 100
    assert session.category_scores[0]["category"] == "technical"


def test_prompt_carries_profile_and_forces_tool(client, llm_server, session_id):
    llm_server.push_tool("recommend_careers", _careers_payload())
    _generate(client, session_id)

    sent = llm_server.requests[0]
    assert sent["tool_choice"]["function"]["name"] == "recommend_careers"
    assert "technical: 100% (5/5)" in sent["messages"][1]["content"]


def test_existing_career_is_reused(client, llm_server, session_id, db):
    db.add(Career(title="Software Engineer", title_key="software engineer", description="existing", category="technical"))
    db.commit()
    llm_server.push_tool("recommend_careers", _careers_payload([("SOFTWARE ENGINEER", 90)]))

    r = _generate(client, session_id)

    assert r.status_code == 200, r.text
    assert db.query(Career).filter(Career.title_key == "software engineer").count() == 1
    assert r.json()["recommendations"][0]["career"]["description"] == "existing"


def test_rate_limit_writes_nothing(client, llm_server, session_id, db):
    llm_server.push_status(429)

    r = _generate(client, session_id)

    assert r.status_code == 500
    assert r.json()["error"].startswith("Rate limit exceeded")
    assert db.query(Recommendation).count() == 0
    assert db.get(QuizSession, session_id).completed is False


@pytest.mark.parametrize("status,message", [
    (402, "AI service payment required. Please contact support."),
    (503, "Failed to generate recommendations"),
])
def test_provider_errors(client, llm_server, session_id, status, message):
    llm_server.push_status(status)
    r = _generate(client, session_id)
    assert r.status_code == 500
    assert r.json() == {"error": message}


def test_missing_tool_call(client, llm_server, session_id, db):
    llm_server.push_text("Here are some careers you might like.")
    r = _generate(client, session_id)
    assert r.status_code == 500
    assert r.json()["error"] == "No tool call in AI response"
    assert db.query(Recommendation).count() == 0


def test_unparseable_arguments(client, llm_server, session_id):
    llm_server.push_tool("recommend_careers", "{not json")
    r = _generate(client, session_id)
    assert r.status_code == 500
    assert "Invalid AI response format" in r.json()["error"]


@pytest.mark.parametrize("confidence", [150, -5])
def test_out_of_range_confidence_never_persisted(client, llm_server, session_id, db, confidence):
    careers = CAREERS[:4] + [("Robotics Engineer", confidence)]
    llm_server.push_tool("recommend_careers", _careers_payload(careers))

    r = _generate(client, session_id)

    assert r.status_code == 500
    assert "invalid confidence score" in r.json()["error"]
    assert db.query(Recommendation).count() == 0
    assert db.query(Career).count() == 0


def test_missing_session_id_is_400(client, llm_server):
    r = client.post("/generate-career-recommendations", json={"responses": _technical_responses()}, headers=auth())
    assert r.status_code == 400
    assert r.json()["error"] == "Missing required field: quizSessionId"
    assert llm_server.requests == []


def test_malformed_session_id_is_400(client, llm_server):
    r = client.post(
        "/generate-career-recommendations",
        json={"quizSessionId": "not-a-uuid", "responses": _technical_responses()},
        headers=auth(),
    )
    assert r.status_code == 400
    assert "Invalid quizSessionId format" in r.json()["error"]
    assert llm_server.requests == []


def test_non_boolean_correctness_is_400(client, llm_server, session_id):
    responses = _technical_responses(1)
    responses[0]["isCorrect"] = "yes"
    r = _generate(client, session_id, responses)
    assert r.status_code == 400
    assert "isCorrect" in r.json()["error"]
    assert llm_server.requests == []


def test_empty_responses_is_400(client, session_id):
    r = client.post(
        "/generate-career-recommendations",
        json={"quizSessionId": session_id, "responses": []},
        headers=auth(),
    )
    assert r.status_code == 400


def test_requires_credentials(client, llm_server, session_id):
    r = client.post("/generate-career-recommendations", json={"quizSessionId": session_id, "responses": []})
    assert r.status_code == 401
    r = _generate(client, session_id, token="bogus")
    assert r.status_code == 401
    assert r.json() == {"error": "Unauthorized"}
    assert llm_server.requests == []


def test_other_users_session_not_found(client, llm_server, session_id):
    r = _generate(client, session_id, token="other-token")
    assert r.status_code == 404
    assert llm_server.requests == []


def test_completed_session_rejected(client, llm_server, session_id):
    llm_server.push_tool("recommend_careers", _careers_payload())
    assert _generate(client, session_id).status_code == 200

    r = _generate(client, session_id)
    assert r.status_code == 400
    assert r.json()["error"] == "Quiz session already completed"
    assert len(llm_server.requests) == 1


def test_list_session_recommendations(client, llm_server, session_id):
    llm_server.push_tool("recommend_careers", _careers_payload())
    _generate(client, session_id)

    r = client.get(f"/recommendations/sessions/{session_id}", headers=auth())
    assert r.status_code == 200
    scores = [rec["confidence_score"] for rec in r.json()]
    assert scores == sorted(scores, reverse=True)
    assert len(scores) == 5


def test_career_description(client, llm_server):
    llm_server.push_text("Software engineers design and build software systems.")

    r = client.post(
        "/generate-career-description",
        json={"careerTitle": "Software <Engineer>", "category": "technical"},
        headers=auth(),
    )

    assert r.status_code == 200, r.text
    assert r.json() == {"success": True, "description": "Software engineers design and build software systems."}
    prompt = llm_server.requests[0]["messages"][1]["content"]
    assert "Software Engineer" in prompt
    assert "<" not in prompt
    assert "tools" not in llm_server.requests[0]


def test_career_description_empty_reply(client, llm_server):
    llm_server.push_text("")
    r = client.post(
        "/generate-career-description",
        json={"careerTitle": "Pilot", "category": "technical"},
        headers=auth(),
    )
    assert r.status_code == 500
    assert r.json() == {"error": "No description generated"}


@pytest.mark.parametrize("payload", [
    {"careerTitle": "", "category": "technical"},
    {"careerTitle": "x" * 201, "category": "technical"},
    {"careerTitle": "Pilot", "category": ""},
    {"careerTitle": "<<>>", "category": "technical"},
])
def test_career_description_validation(client, llm_server, payload):
    r = client.post("/generate-career-description", json=payload, headers=auth())
    assert r.status_code == 400
    assert llm_server.requests == []


def test_career_description_rate_limited(client, llm_server):
    llm_server.push_status(429)
    r = client.post(
        "/generate-career-description",
        json={"careerTitle": "Pilot", "category": "technical"},
        headers=auth(),
    )
    assert r.status_code == 500
    assert json.loads(r.text)["error"] == "Rate limit exceeded. Please try again later."


def test_save_failure_keeps_earlier_rows(client, llm_server, session_id, db, monkeypatch):
    llm_server.push_tool("recommend_careers", _careers_payload())
    real_save = persister.save_recommendation
    calls = []

    def failing_third(db, **kwargs):
        calls.append(kwargs["entity_id"])
        if len(calls) == 3:
            raise OperationalError("INSERT INTO recommendations", {}, Exception("disk I/O error"))
        return real_save(db, **kwargs)

    monkeypatch.setattr(persister, "save_recommendation", failing_third)

    r = _generate(client, session_id)

    assert r.status_code == 500
    assert r.json() == {"error": "Failed to save recommendations"}
    assert db.query(Recommendation).filter(Recommendation.source_session_id == session_id).count() == 2
    db.expire_all()
    assert db.get(QuizSession, session_id).completed is False


def test_career_created_concurrently_is_refetched(db, session_factory, monkeypatch):
    other = session_factory()
    other.add(Career(title="Data Scientist", title_key="data scientist", description="first", category="analytical"))
    other.commit()
    winner_id = other.query(Career).one().id
    other.close()

    # the lookup misses once, as if the other insert landed just after it
    real_find = persister.find_career_by_title
    misses = []

    def stale_find(db, title):
        if not misses:
            misses.append(title)
            return None
        return real_find(db, title)

    monkeypatch.setattr(persister, "find_career_by_title", stale_find)

    career = persister.get_or_create_career(db, title="DATA SCIENTIST", description="second", category="technical")

    assert career.id == winner_id
    assert career.description == "first"
    assert db.query(Career).count() == 1


def test_listing_returns_each_recommendations_own_reason(client, llm_server, session_id, db):
    db.add(Career(title="Software Engineer", title_key="software engineer", description="existing", category="technical"))
    db.commit()
    llm_server.push_tool("recommend_careers", _careers_payload([("Software Engineer", 90)]))
    _generate(client, session_id)

    listed = client.get(f"/recommendations/sessions/{session_id}", headers=auth()).json()

    assert listed[0]["reason"] == "Technical score fits Software Engineer"
    assert listed[0]["career"]["description"] == "existing"


def test_unknown_entity_type_rejected_by_database(db, session_id):
    db.add(Recommendation(user_id="user-1", source_session_id=session_id, target_entity_id="x",
                          target_entity_type="course", confidence_score=50))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()
