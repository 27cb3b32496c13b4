import importlib

import pytest
from fastapi.testclient import TestClient

from api import state

SCENARIO = "I need to call Sam and reply to Jane's email about the budget before 3pm today"

def _import_app():
    return importlib.import_module("api.main")

@pytest.fixture
def client(fake_provider_factory, make_orchestrator, store):
    state.entry_store = store
    state.orchestrator = make_orchestrator(fake_provider_factory("On it."))
    yield TestClient(_import_app().app)
    state.entry_store = None
    state.orchestrator = None

def test_send_message_stages_proposals(client):
    r = client.post("/chat/messages", json={"message": SCENARIO})
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "staged"
    pending = body["turn"]["pending"]
    assert [p["index"] for p in pending] == [0, 1]
    assert pending[0]["title"] == "Reply to Jane's email"
    assert pending[0]["when"] == "2026-01-18T15:00:00"
    assert pending[1]["priority"] == "urgent-not-important"

    convo = client.get("/chat").json()
    assert [t["role"] for t in convo["turns"]] == ["user", "assistant"]
    assert convo["loading"] is False

def test_blank_message_rejected(client):
    assert client.post("/chat/messages", json={"message": "   "}).status_code == 422
    assert client.post("/chat/messages", json={}).status_code == 422

def test_send_while_loading_conflicts(client):
    state.orchestrator._loading = True
    r = client.post("/chat/messages", json={"message": "call Sam"})
    assert r.status_code == 409

def test_accept_reject_and_accept_all(client):
    turn_id = client.post("/chat/messages", json={"message": SCENARIO}).json()["turn"]["id"]

    r = client.post(f"/chat/turns/{turn_id}/proposals/1/accept")
    assert r.status_code == 200
    assert r.json()["created"] == 1
    assert [p["index"] for p in r.json()["turn"]["pending"]] == [0]

    r = client.post(f"/chat/turns/{turn_id}/proposals/0/reject")
    assert r.json()["rejected"] is True
    assert r.json()["turn"]["discarded"] == [0]

    r = client.post(f"/chat/turns/{turn_id}/accept-all")
    assert r.json()["affected"] == 0
    assert r.json()["turn"]["status"] == "resolved"

    entries = client.get("/entries", params={"kind": "reminder"}).json()
    assert entries["total"] == 1
    assert entries["entries"][0]["title"] == "Call Sam"

def test_accept_with_edited_proposal(client):
    turn_id = client.post("/chat/messages", json={"message": SCENARIO}).json()["turn"]["id"]
    edited = {
        "kind": "todo",
        "title": "Call Sam about the offsite",
        "content": "Call Sam about the offsite",
        "when": "2026-01-19T11:00:00",
        "tags": ["call"],
        "priority": "not-urgent-important",
    }
    r = client.post(f"/chat/turns/{turn_id}/proposals/1/accept", json={"proposal": edited})
    assert r.json()["created"] == 1

    entries = client.get("/entries", params={"day": "2026-01-19"}).json()["entries"]
    assert [e["title"] for e in entries] == ["Call Sam about the offsite"]

def test_patch_proposal(client):
    turn_id = client.post("/chat/messages", json={"message": SCENARIO}).json()["turn"]["id"]
    r = client.patch(f"/chat/turns/{turn_id}/proposals/1", json={"title": "Call Sam back"})
    assert r.json()["updated"] is True
    assert r.json()["turn"]["pending"][1]["title"] == "Call Sam back"

    r = client.patch(f"/chat/turns/{turn_id}/proposals/1", json={"priority": "someday"})
    assert r.status_code == 422

def test_unknown_turn_is_404(client):
    assert client.post("/chat/turns/42/accept-all").status_code == 404
    assert client.post("/chat/turns/42/proposals/0/reject").status_code == 404

def test_clear_conversation(client):
    client.post("/chat/messages", json={"message": SCENARIO})
    assert client.delete("/chat").json() == {"status": "cleared"}
    assert client.get("/chat").json()["turns"] == []

def test_diary_endpoint(client, store, now):
    store.append_to_diary(now.date(), "Long walk")
    body = client.get("/diary/2026-01-18").json()
    assert body["diary"]["content"] == "Long walk"
    assert client.get("/diary/2026-01-17").json()["diary"] is None
    assert client.get("/diary/yesterday").status_code == 400
    assert client.get("/entries", params={"day": "18/01/2026"}).status_code == 400

def test_health(client):
    body = client.get("/health").json()
    assert body["status"] == "healthy"
    assert body["entries"] == 0
    assert body["extracting"] is False

def test_metrics_exposes_request_counter(client):
    client.post("/chat/messages", json={"message": SCENARIO})
    m = client.get("/metrics")
    assert m.status_code == 200
    assert "text/plain" in m.headers.get("content-type", "")
    body = m.text
    assert "echoflow_proposals_extracted_total" in body
    assert any(
        line.startswith('echoflow_requests_total{endpoint="/chat/messages",status="staged"}')
        for line in body.splitlines()
    )

def test_patched_utc_date_does_not_break_listing(client):
    turn_id = client.post("/chat/messages", json={"message": SCENARIO}).json()["turn"]["id"]
    r = client.patch(f"/chat/turns/{turn_id}/proposals/1", json={"when": "2026-01-18T16:00:00Z"})
    assert r.json()["turn"]["pending"][1]["when"] == "2026-01-18T16:00:00"

    client.post(f"/chat/turns/{turn_id}/accept-all")
    r = client.get("/entries")
    assert r.status_code == 200
    assert [e["title"] for e in r.json()["entries"]] == ["Reply to Jane's email", "Call Sam"]
