import pytest

from conftest import SERVICE_AUTH, auth
from quiz_service.crud import create_question, list_questions_for
from quiz_service.ordering import session_order


def _question(db, text, category="logical", correct="B", levels=None, areas=None):
    return create_question(db, {
        "question_text": text,
        "category": category,
        "options": [{"text": t, "isCorrect": t == correct} for t in ("A", "B", "C", "D")],
        "target_class_levels": levels or [],
        "target_study_areas": areas or [],
    })


@pytest.fixture
def questions(db):
    return [_question(db, f"Question {i}", category=("logical", "technical")[i % 2]) for i in range(8)]


def test_session_lifecycle(client, questions):
    sid = client.post("/quiz/sessions", headers=auth()).json()["id"]

    listed = client.get(f"/quiz/sessions/{sid}/questions", headers=auth()).json()
    assert len(listed) == 8
    assert all(q["options"] == ["A", "B", "C", "D"] for q in listed)
    assert "isCorrect" not in str(listed)

    first, second = listed[0], listed[1]
    r = client.post(f"/quiz/sessions/{sid}/responses", json={"question_id": first["id"], "selected_option": "B"},
                    headers=auth())
    assert r.json()["is_correct"] is True
    r = client.post(f"/quiz/sessions/{sid}/responses", json={"question_id": second["id"], "selected_option": "A"},
                    headers=auth())
    assert r.json()["is_correct"] is False

    # answering again replaces the earlier answer
    client.post(f"/quiz/sessions/{sid}/responses", json={"question_id": second["id"], "selected_option": "B"},
                headers=auth())

    profile = client.get(f"/quiz/sessions/{sid}/profile", headers=auth()).json()
    assert sum(s["total"] for s in profile["profile"]) == 2
    assert profile["overall_score"] == 100


def test_question_order_is_stable_per_session(client, db, questions):
    sid = client.post("/quiz/sessions", headers=auth()).json()["id"]
    a = [q["id"] for q in client.get(f"/quiz/sessions/{sid}/questions", headers=auth()).json()]
    b = [q["id"] for q in client.get(f"/quiz/sessions/{sid}/questions", headers=auth()).json()]
    assert a == b
    expected = session_order(list_questions_for(db, "UG", "All"), "user-1", sid)
    assert a == [q.id for q in expected]


def test_questions_filtered_by_profile(client, db):
    _question(db, "For everyone")
    _question(db, "PG only", levels=["PG"])
    _question(db, "Commerce only", areas=["Commerce"])
    client.put("/profile/me", json={"class_level": "PG", "study_area": "Science"}, headers=auth())

    sid = client.post("/quiz/sessions", headers=auth()).json()["id"]
    texts = {q["question_text"] for q in client.get(f"/quiz/sessions/{sid}/questions", headers=auth()).json()}
    assert texts == {"For everyone", "PG only"}


def test_sessions_are_private(client, questions):
    sid = client.post("/quiz/sessions", headers=auth()).json()["id"]
    assert client.get(f"/quiz/sessions/{sid}/questions", headers=auth("other-token")).status_code == 404


def test_unknown_question(client):
    sid = client.post("/quiz/sessions", headers=auth()).json()["id"]
    r = client.post(f"/quiz/sessions/{sid}/responses", json={"question_id": "nope", "selected_option": "A"},
                    headers=auth())
    assert r.status_code == 404
    assert r.json() == {"error": "Question not found"}


def test_create_question_needs_admin(client):
    payload = {
        "question_text": "2, 4, 8, ?",
        "category": "quantitative",
        "options": [{"text": "16", "isCorrect": True}, {"text": "12"}],
    }
    assert client.post("/quiz/questions", json=payload, headers=auth()).status_code == 403
    r = client.post("/quiz/questions", json=payload, headers=auth("admin-token"))
    assert r.status_code == 200
    assert r.json()["options"] == ["16", "12"]


def test_create_question_rejects_unknown_category(client):
    payload = {"question_text": "?", "category": "musical", "options": [{"text": "a"}, {"text": "b"}]}
    assert client.post("/quiz/questions", json=payload, headers=auth("admin-token")).status_code == 400


def _generated(text, category, correct_count=1):
    return {
        "question_text": text,
        "category": category,
        "options": [{"text": f"opt{i}", "isCorrect": i < correct_count} for i in range(4)],
    }


def test_generate_questions(client, llm_server):
    llm_server.push_tool("create_questions", {"questions": [
        _generated("Which shape comes next?", "logical"),
        _generated("Two right answers", "verbal", correct_count=2),
        _generated("Unknown category", "astrology"),
        _generated("What does CPU stand for?", "Technical"),
    ]})

    r = client.post("/quiz/questions/generate", json={"classLevel": "12th", "studyArea": "Science"}, headers=SERVICE_AUTH)

    assert r.status_code == 200, r.text
    body = r.json()
    assert body["count"] == 2
    assert [q["category"] for q in body["questions"]] == ["logical", "technical"]
    assert llm_server.requests[0]["tool_choice"]["function"]["name"] == "create_questions"


def test_generate_questions_nothing_valid(client, llm_server):
    llm_server.push_tool("create_questions", {"questions": [_generated("bad", "astrology")]})
    r = client.post("/quiz/questions/generate", json={}, headers=SERVICE_AUTH)
    assert r.status_code == 500
    assert r.json() == {"error": "No valid questions generated"}
