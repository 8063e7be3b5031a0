from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from peerpresence.errors import (
    Conflict,
    Forbidden,
    NotFound,
    TooManyRequests,
    Unauthorized,
    ValidationFailed,
    register_exception_handlers,
)


class Payload(BaseModel):
    title: str


def _client() -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)

    failures = {
        "validation": ValidationFailed("text required"),
        "unauthorized": Unauthorized("No token"),
        "forbidden": Forbidden("Not a participant in this conversation"),
        "missing": NotFound("Conversation not found"),
        "conflict": Conflict("You already reviewed this tutor"),
        "throttled": TooManyRequests(12),
    }

    @app.get("/fail/{kind}")
    async def fail(kind: str):
        raise failures[kind]

    @app.get("/boom")
    async def boom():
        raise RuntimeError("secret internals")

    @app.post("/payload")
    async def payload(body: Payload):
        return body

    return TestClient(app, raise_server_exceptions=False)


def test_domain_errors_map_to_status_and_message():
    client = _client()
    expected = {
        "validation": (400, "text required"),
        "unauthorized": (401, "No token"),
        "forbidden": (403, "Not a participant in this conversation"),
        "missing": (404, "Conversation not found"),
        "conflict": (409, "You already reviewed this tutor"),
    }

    for kind, (status_code, message) in expected.items():
        response = client.get(f"/fail/{kind}")
        assert response.status_code == status_code, kind
        assert response.json() == {"message": message}


def test_unauthorized_carries_bearer_challenge():
    response = _client().get("/fail/unauthorized")

    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_too_many_requests_sets_retry_after():
    response = _client().get("/fail/throttled")

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "12"
    assert "12 seconds" in response.json()["message"]


def test_unexpected_errors_are_opaque():
    response = _client().get("/boom")

    assert response.status_code == 500
    assert response.json() == {"message": "Internal server error"}


def test_request_validation_is_a_400_with_field_name():
    response = _client().post("/payload", json={})

    assert response.status_code == 400
    assert response.json()["message"].startswith("title:")


def test_default_messages():
    assert NotFound().message == "Not found"
    assert ValidationFailed().message == "Invalid request"
