import logging

import pytest
from fastapi.testclient import TestClient

from app.chat.api.route import get_chat_relay
from app.chat.service.relay import ChatRelay
from app.core.errors import StreamError, UpstreamExceptionError, UpstreamHTTPError
from app.core.logger import mask_secret
from main import app
from tests.fakes import FakeProvider

HELLO = {"messages": [{"role": "user", "content": "hi"}]}


@pytest.fixture
def client_for():
    """Builds a TestClient whose chat relay is backed by the given provider."""
    clients = []

    def build(provider: FakeProvider) -> TestClient:
        relay = ChatRelay(provider)
        app.dependency_overrides[get_chat_relay] = lambda: relay
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield build

    for client in clients:
        client.__exit__(None, None, None)
    app.dependency_overrides.clear()


def test_chat_streams_plain_text(client_for):
    client = client_for(FakeProvider(["Hello", ", ", "world"]))

    response = client.post("/api/chat", json=HELLO)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "utf-8" in response.headers["content-type"]
    assert response.headers["cache-control"] == "no-cache"
    assert response.content == b"Hello, world"


def test_chat_accepts_snake_case_fields(client_for):
    provider = FakeProvider(["ok"])
    client = client_for(provider)

    response = client.post(
        "/api/chat",
        json={**HELLO, "system_prompt": "guide", "conversation_id": "abc"},
    )

    assert response.status_code == 200
    assert provider.calls[0]["systemInstruction"] == {"parts": [{"text": "guide"}]}


@pytest.mark.parametrize(
    "body",
    [
        {"messages": "hello"},
        {"messages": []},
        {"prompt": "hello"},
        [{"role": "user", "content": "hi"}],
    ],
)
def test_chat_rejects_malformed_history(client_for, body):
    provider = FakeProvider(["never"])
    client = client_for(provider)

    response = client.post("/api/chat", json=body)

    assert response.status_code == 400
    data = response.json()
    assert data["status"] is False
    assert data["error"] == "bad_request"
    assert provider.calls == []


def test_chat_rejects_non_json_body(client_for):
    client = client_for(FakeProvider(["never"]))

    response = client.post(
        "/api/chat",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "bad_request"


def test_chat_unconfigured_even_for_bad_input(client_for):
    client = client_for(FakeProvider(enabled=False))

    for body in (HELLO, {"messages": "hello"}):
        response = client.post("/api/chat", json=body)
        assert response.status_code == 500
        assert response.json() == {
            "status": False,
            "error": "unconfigured",
            "message": "server not configured",
        }


@pytest.mark.parametrize(
    "error,kind",
    [
        (UpstreamHTTPError("Gemini API error: status=429", status_code=429), "upstream_http_error"),
        (UpstreamExceptionError("Gemini request failed: ConnectError"), "upstream_exception"),
    ],
)
def test_chat_upstream_failure_before_first_byte_is_json(client_for, error, kind):
    client = client_for(FakeProvider(open_error=error))

    response = client.post("/api/chat", json=HELLO)

    assert response.status_code == 502
    assert response.json()["error"] == kind


def raised(exc: BaseException, kind) -> bool:
    """True when `kind` is exc itself, its cause, or a member of an exception group."""
    if isinstance(exc, kind):
        return True
    if any(raised(inner, kind) for inner in getattr(exc, "exceptions", ())):
        return True
    return exc.__cause__ is not None and raised(exc.__cause__, kind)


def test_chat_mid_stream_failure_aborts_transfer(client_for, caplog):
    provider = FakeProvider(["partial"], error=RuntimeError("connection reset"))
    client = client_for(provider)

    with caplog.at_level(logging.INFO, logger="sumsnap-landing"):
        with pytest.raises(Exception) as exc:
            client.post("/api/chat", json=HELLO)

    # headers were already committed, so the failure escapes the body instead of becoming JSON
    assert raised(exc.value, StreamError)
    assert provider.streams[0].closed
    assert "Unhandled error" not in caplog.text
    assert "stream aborted" in caplog.text


def test_cancel_unknown_conversation(client_for):
    client = client_for(FakeProvider())

    response = client.post("/api/chat/nope/cancel")

    assert response.status_code == 200
    assert response.json() == {"conversation_id": "nope", "cancelled": False}


def test_health_reports_integrations(monkeypatch):
    import main

    monkeypatch.setattr(main.settings, "GEMINI_API_KEY", None)
    with TestClient(app) as client:
        response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert set(data["checks"]) == {"chat", "search", "waitlist"}
    assert data["checks"]["chat"].startswith("✗")
    assert data["status"] == "degraded"
    assert data["active_streams"] == 0


def test_root():
    with TestClient(app) as client:
        response = client.get("/")

    assert response.status_code == 200
    assert response.json()["service"] == "sumsnap-landing"


def test_startup_log_masks_credentials():
    assert mask_secret("gemini-test-key") == "***MASKED***"
    assert mask_secret("") == "NOT SET or EMPTY"
    assert mask_secret(None) == "NOT SET or EMPTY"
