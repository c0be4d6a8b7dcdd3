import json

import httpx
import pytest
from fastapi.testclient import TestClient

from api_gateway.main import create_app
from shared.config import Settings
from shared.database import init_db, make_engine, make_session_factory
from shared.llm import AIGateway

SERVICE_KEY = "test-service-key"

USERS = {
    "student-token": {"sub": "user-1", "email": "student@example.com", "role": "student"},
    "other-token": {"sub": "user-2", "email": "other@example.com", "role": "student"},
    "admin-token": {"sub": "admin-1", "email": "admin@example.com", "role": "admin"},
}


class FakeVerifier:
    def __init__(self):
        self.calls = []

    async def verify(self, token):
        self.calls.append(token)
        return USERS.get(token)


class FakeLLMServer:
    """Queue of canned chat-completion responses served over httpx.MockTransport."""

    def __init__(self):
        self.queue: list[httpx.Response] = []
        self.requests: list[dict] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content or b"{}"))
        if not self.queue:
            return httpx.Response(500, json={"error": {"message": "no canned response"}})
        return self.queue.pop(0)

    def push_tool(self, name: str, arguments) -> None:
        args = arguments if isinstance(arguments, str) else json.dumps(arguments)
        self.queue.append(httpx.Response(200, json={
            "id": "chatcmpl-test",
            "object": "chat.completion",
            "created": 0,
            "model": "test-model",
            "choices": [{
                "index": 0,
                "finish_reason": "tool_calls",
                "message": {
                    "role": "assistant",
                    "content": None,
                    "tool_calls": [{
                        "id": "call_1",
                        "type": "function",
                        "function": {"name": name, "arguments": args},
                    }],
                },
            }],
        }))

    def push_text(self, content) -> None:
        self.queue.append(httpx.Response(200, json={
            "id": "chatcmpl-test",
            "object": "chat.completion",
            "created": 0,
            "model": "test-model",
            "choices": [{
                "index": 0,
                "finish_reason": "stop",
                "message": {"role": "assistant", "content": content},
            }],
        }))

    def push_status(self, status: int) -> None:
        self.queue.append(httpx.Response(status, json={"error": {"message": f"upstream {status}"}}))


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        auth_service_url="http://auth.test",
        service_role_key=SERVICE_KEY,
        openrouter_api_key="test-key",
        openrouter_base_url="http://llm.test/v1",
        openrouter_model="test-model",
    )


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite://")
    init_db(engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    s = session_factory()
    yield s
    s.close()


@pytest.fixture
def llm_server():
    return FakeLLMServer()


@pytest.fixture
def llm(settings, llm_server):
    http_client = httpx.Client(transport=httpx.MockTransport(llm_server.handler))
    yield AIGateway.from_settings(settings, http_client=http_client)
    http_client.close()


@pytest.fixture
def verifier():
    return FakeVerifier()


@pytest.fixture
def client(settings, session_factory, llm, verifier):
    app = create_app(settings, session_factory=session_factory, llm=llm, token_verifier=verifier)
    with TestClient(app) as c:
        yield c


def auth(token: str = "student-token") -> dict:
    return {"Authorization": f"Bearer {token}"}


SERVICE_AUTH = auth(SERVICE_KEY)
