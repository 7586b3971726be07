"""Integration smoke tests for the ASGI app (using a fake UoW via dependency override)."""
from __future__ import annotations

import logging
import uuid

import pytest
from fastapi.testclient import TestClient

from eventify_chat.api.deps import get_uow
from eventify_chat.api.middleware.correlation_id import CorrelationIdFilter, correlation_id_ctx
from eventify_chat.app import create_app
from tests.conftest import (
    ORGANIZER_ID,
    OTHER_USER_ID,
    USER_ID,
    FakeUoW,
    make_conversation,
    make_token,
)


@pytest.fixture
def app_with_uow():
    asgi_app = create_app()
    uow = FakeUoW()

    async def _override():
        yield uow

    asgi_app.other_asgi_app.dependency_overrides[get_uow] = _override
    return asgi_app, uow


@pytest.fixture
def client(app_with_uow):
    app, _ = app_with_uow
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def uow(app_with_uow):
    _, uow = app_with_uow
    return uow


def _auth(party_id=USER_ID, role="USER") -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(party_id, role)}"}


def test_healthz(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_request_id_is_echoed(client):
    resp = client.get("/healthz", headers={"X-Request-ID": "abc123"})
    assert resp.headers["X-Request-ID"] == "abc123"


def test_list_chats_requires_token(client):
    resp = client.get("/api/v1/chat/conversations")
    assert resp.status_code in (401, 403)


def test_list_chats_rejects_bad_token(client):
    resp = client.get("/api/v1/chat/conversations", headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "invalid token"


def test_list_chats_for_organizer(client, uow):
    conv = uow.conversations.add(make_conversation())

    resp = client.get("/api/v1/chat/conversations", headers=_auth(ORGANIZER_ID, "ORGANIZER"))

    assert resp.status_code == 200
    data = resp.json()
    assert [c["id"] for c in data] == [str(conv.id)]
    assert data[0]["user"]["userName"] == "Alice"
    assert data[0]["organizer"]["organizerName"] == "Festivals"
    assert data[0]["isActive"] is True
    assert "sentAt" in data[0]["messages"][0]


def test_list_chats_for_user_is_forbidden(client):
    resp = client.get("/api/v1/chat/conversations", headers=_auth())
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Only organizers can view all chats"


def test_get_chat(client, uow):
    conv = uow.conversations.add(make_conversation(texts=("a", "b")))

    resp = client.get(f"/api/v1/chat/conversations/{conv.id}", headers=_auth())

    assert resp.status_code == 200
    assert [m["text"] for m in resp.json()["messages"]] == ["a", "b"]


def test_get_chat_by_outsider_is_forbidden(client, uow):
    conv = uow.conversations.add(make_conversation())

    resp = client.get(f"/api/v1/chat/conversations/{conv.id}", headers=_auth(OTHER_USER_ID))

    assert resp.status_code == 403
    assert resp.json()["detail"] == "Unauthorized to view this chat"


def test_get_chat_unknown_and_malformed(client):
    missing = client.get(f"/api/v1/chat/conversations/{uuid.uuid4()}", headers=_auth())
    malformed = client.get("/api/v1/chat/conversations/not-an-id", headers=_auth())

    assert missing.status_code == 404
    assert malformed.status_code == 422
    assert malformed.json()["detail"] == "Valid chat ID is required"


def test_correlation_filter_stamps_records():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    token = correlation_id_ctx.set("req-1")
    try:
        assert CorrelationIdFilter().filter(record) is True
    finally:
        correlation_id_ctx.reset(token)

    assert record.correlation_id == "req-1"
