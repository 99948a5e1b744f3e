"""
API Server Tests

Exercises the HTTP surface through fastapi's TestClient.
"""

import json

import pytest
from fastapi.testclient import TestClient

from message_flags.api.server import create_app
from message_flags.store.engine import FlagStore


@pytest.fixture
def store():
    return FlagStore()


@pytest.fixture
def client(store):
    with TestClient(create_app(store)) as client:
        yield client


def post(client, payload):
    return client.post("/api/v1/events", json=payload)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "online"}


def test_new_message_then_query(client):
    response = post(client, {"type": "EVENT_NEW_MESSAGE", "message": {"id": 7, "flags": ["read", "starred"]}})

    assert response.status_code == 200
    assert response.json() == {"accepted": True, "changed": True, "kind": "new_message"}

    assert client.get("/api/v1/flags/starred/7").json() == {"flag": "starred", "message_id": 7, "set": True}
    assert client.get("/api/v1/flags/starred/8").json()["set"] is False
    assert client.get("/api/v1/messages/7").json() == {"message_id": 7, "flags": ["read", "starred"]}


def test_full_state(client):
    post(client, {"type": "EVENT_UPDATE_MESSAGE_FLAGS", "operation": "add", "flag": "starred", "messages": [4, 3]})

    body = client.get("/api/v1/flags").json()

    assert body["flags"]["starred"] == [3, 4]
    assert body["counts"]["starred"] == 2
    assert body["counts"]["read"] == 0
    assert len(body["flags"]) == 12


def test_single_flag(client):
    post(client, {"type": "EVENT_UPDATE_MESSAGE_FLAGS", "operation": "add", "flag": "read", "messages": [1]})

    assert client.get("/api/v1/flags/read").json() == {"flag": "read", "messages": [1], "count": 1}


def test_unknown_flag_is_404(client):
    assert client.get("/api/v1/flags/shiny").status_code == 404
    assert client.get("/api/v1/flags/shiny/1").status_code == 404


def test_noop_event_accepted_unchanged(client):
    response = post(client, {"type": "EVENT_UPDATE_MESSAGE_FLAGS", "operation": "toggle", "flag": "read", "messages": [1]})

    assert response.status_code == 200
    assert response.json()["changed"] is False


def test_unmappable_event_is_422(client, store):
    response = post(client, {"type": "EVENT_TYPING"})

    assert response.status_code == 422
    assert "EVENT_TYPING" in response.json()["detail"]


def test_audit(client):
    post(client, {"type": "LOGOUT"})
    post(client, {"type": "EVENT_NEW_MESSAGE", "message": {"id": 1, "flags": ["read"]}})

    entries = client.get("/api/v1/audit").json()["entries"]
    assert [e["action"] for e in entries] == ["reset:logout", "new_message"]

    changed = client.get("/api/v1/audit", params={"event_type": "state_change"}).json()["entries"]
    assert [e["action"] for e in changed] == ["new_message"]

    assert client.get("/api/v1/audit", params={"event_type": "bogus"}).status_code == 400


def test_startup_replays_event_log(tmp_path, monkeypatch):
    log = tmp_path / "events.jsonl"
    log.write_text(json.dumps({"type": "EVENT_NEW_MESSAGE", "message": {"id": 3, "flags": ["starred"]}}) + "\n")
    monkeypatch.setenv("MESSAGE_FLAGS_EVENT_LOG", str(log))

    with TestClient(create_app()) as client:
        assert client.get("/api/v1/flags/starred/3").json()["set"] is True
