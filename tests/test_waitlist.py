import json

import httpx
import pytest
from fastapi.testclient import TestClient

from app.waitlist.api.route import get_waitlist_service
from app.waitlist.service.waitlist_service import (
    MSG_FAILURE,
    MSG_INVALID_EMAIL,
    MSG_MISSING_FIELDS,
    MSG_NOT_CONFIGURED,
    MSG_SUCCESS,
    WaitlistService,
)
from pkg.notion.client import NotionClient, NotionConfig
from pkg.util.validate_email import is_valid_email
from tests.fakes import make_settings


class RecordingNotion:
    """MockTransport handler standing in for the Notion pages API."""

    def __init__(self, status: int = 200):
        self.status = status
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status >= 400:
            return httpx.Response(self.status, json={"object": "error", "code": "validation_error"})
        return httpx.Response(self.status, json={"object": "page", "id": "page-1"})

    def client(self) -> NotionClient:
        config = NotionConfig(api_key="notion-test-key", database_id="db-123")
        return NotionClient(config, transport=httpx.MockTransport(self))


@pytest.mark.parametrize(
    "email,expected",
    [
        ("kim@example.com", True),
        ("a.b+c@sub.example.co.kr", True),
        ("not-an-email", False),
        ("kim@example", False),
        ("kim @example.com", False),
        ("kim@@example.com", False),
        ("", False),
    ],
)
def test_is_valid_email(email, expected):
    assert is_valid_email(email) is expected


async def test_invalid_email_is_rejected_without_write(settings):
    notion = RecordingNotion()
    service = WaitlistService(settings, notion_client=notion.client())

    result = await service.submit("Kim", "not-an-email")

    assert result.success is False
    assert result.message == MSG_INVALID_EMAIL
    assert notion.requests == []


@pytest.mark.parametrize("name,email", [("", "kim@example.com"), ("Kim", ""), ("  ", "  ")])
async def test_missing_fields(settings, name, email):
    notion = RecordingNotion()
    result = await WaitlistService(settings, notion_client=notion.client()).submit(name, email)

    assert result.success is False
    assert result.message == MSG_MISSING_FIELDS
    assert notion.requests == []


async def test_missing_notion_config():
    service = WaitlistService(make_settings(NOTION_API_KEY=None))

    result = await service.submit("Kim", "kim@example.com")

    assert result.success is False
    assert result.message == MSG_NOT_CONFIGURED


async def test_successful_submission_creates_one_row(settings):
    notion = RecordingNotion()
    service = WaitlistService(settings, notion_client=notion.client())

    result = await service.submit("  Kim  ", " kim@example.com ")

    assert result.success is True
    assert result.message == MSG_SUCCESS
    assert len(notion.requests) == 1

    request = notion.requests[0]
    assert str(request.url) == "https://api.notion.com/v1/pages"
    assert request.headers["Authorization"] == "Bearer notion-test-key"
    assert request.headers["Notion-Version"] == "2022-06-28"
    assert json.loads(request.content) == {
        "parent": {"database_id": "db-123"},
        "properties": {
            "이름": {"title": [{"text": {"content": "Kim"}}]},
            "이메일": {"email": "kim@example.com"},
        },
    }


async def test_notion_rejection_is_generic_failure(settings):
    notion = RecordingNotion(status=400)
    service = WaitlistService(settings, notion_client=notion.client())

    result = await service.submit("Kim", "kim@example.com")

    assert result.success is False
    assert result.message == MSG_FAILURE


async def test_notion_transport_failure_is_generic_failure(settings):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    client = NotionClient(NotionConfig(api_key="k", database_id="d"), transport=httpx.MockTransport(handler))
    result = await WaitlistService(settings, notion_client=client).submit("Kim", "kim@example.com")

    assert result.message == MSG_FAILURE


async def test_unreadable_success_body_is_generic_failure(settings):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>ok</html>"))
    client = NotionClient(NotionConfig(api_key="k", database_id="d"), transport=transport)

    result = await WaitlistService(settings, notion_client=client).submit("Kim", "kim@example.com")

    assert result.success is False
    assert result.message == MSG_FAILURE


async def test_property_names_follow_settings():
    notion = RecordingNotion()
    settings = make_settings(NOTION_NAME_PROPERTY="Name", NOTION_EMAIL_PROPERTY="Email")

    await WaitlistService(settings, notion_client=notion.client()).submit("Kim", "kim@example.com")

    properties = json.loads(notion.requests[0].content)["properties"]
    assert set(properties) == {"Name", "Email"}


def test_waitlist_route(settings):
    from main import app

    notion = RecordingNotion()
    app.dependency_overrides[get_waitlist_service] = lambda: WaitlistService(settings, notion_client=notion.client())
    try:
        with TestClient(app) as client:
            bad = client.post("/api/waitlist", json={"name": "Kim", "email": "not-an-email"})
            good = client.post("/api/waitlist", json={"name": "Kim", "email": "kim@example.com"})
    finally:
        app.dependency_overrides.clear()

    assert bad.status_code == 200
    assert bad.json()["status"] is False
    assert good.json() == {"status": True, "message": MSG_SUCCESS, "data": None}
    assert len(notion.requests) == 1
