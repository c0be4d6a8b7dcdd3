import asyncio

import httpx
import pytest

from api_gateway.middleware import TokenVerifier
from conftest import SERVICE_AUTH, SERVICE_KEY, auth
from shared.config import Settings, _parse_origins
from shared.logging_utils import redact_pii


def test_health_is_public(client, verifier):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}
    assert verifier.calls == []


def test_missing_and_malformed_credentials(client):
    assert client.get("/profile/me").json() == {"error": "Missing authorization header"}
    r = client.get("/profile/me", headers={"Authorization": "Token abc"})
    assert r.status_code == 401


def test_service_key_bypasses_verifier(client, verifier):
    r = client.post("/refresh-data", headers=SERVICE_AUTH)
    assert r.status_code == 200
    assert verifier.calls == []


def test_user_tokens_go_to_verifier(client, verifier):
    client.get("/profile/me", headers=auth())
    assert verifier.calls == ["student-token"]


def test_bearer_scheme_is_case_insensitive(client, verifier):
    r = client.get("/profile/me", headers={"Authorization": "bearer student-token"})
    assert r.status_code == 200
    assert verifier.calls == ["student-token"]
    assert client.get("/profile/me", headers={"Authorization": f"BEARER {SERVICE_KEY}"}).status_code == 200


def test_preflight_is_answered(client):
    r = client.options(
        "/generate-career-recommendations",
        headers={"Origin": "https://app.example.com", "Access-Control-Request-Method": "POST"},
    )
    assert r.status_code == 200
    assert r.headers["access-control-allow-origin"] == "*"


def test_unknown_route_is_json(client):
    r = client.get("/nope", headers=auth())
    assert r.status_code == 404
    assert "error" in r.json()


def test_token_verifier_against_auth_service():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/auth/verify"
        if b"good" in request.content:
            return httpx.Response(200, json={"sub": "user-9", "email": "u9@example.com"})
        return httpx.Response(401, json={"detail": "Invalid token"})

    verifier = TokenVerifier("http://auth.test/", transport=httpx.MockTransport(handler))
    assert asyncio.run(verifier.verify("good"))["sub"] == "user-9"
    assert asyncio.run(verifier.verify("bad")) is None


def test_settings_require_service_key(monkeypatch):
    monkeypatch.delenv("SERVICE_ROLE_KEY", raising=False)
    with pytest.raises(RuntimeError, match="SERVICE_ROLE_KEY"):
        Settings.from_env()

    monkeypatch.setenv("SERVICE_ROLE_KEY", SERVICE_KEY)
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
    s = Settings.from_env()
    assert s.service_role_key == SERVICE_KEY
    assert s.cors_origins == ["https://a.example", "https://b.example"]


def test_parse_origins():
    assert _parse_origins("") == ["*"]
    assert _parse_origins("*") == ["*"]


def test_redact_pii():
    data = {"email": "a@b.c", "profile": [{"full_name": "Asha", "score": 90}], "api_key": "k"}
    assert redact_pii(data) == {
        "email": "[REDACTED]",
        "profile": [{"full_name": "[REDACTED]", "score": 90}],
        "api_key": "[REDACTED]",
    }
