"""Tests for the session store."""
from datetime import datetime, timezone

import pytest
import requests

from dartpractice.core import storage
from dartpractice.core.geometry import DartboardSection
from dartpractice.core.ledger import AccuracyLedger
from dartpractice.core.storage import SessionStore
from dartpractice.models.schemas import SessionRecord

T20 = DartboardSection.from_key("triple-20")


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


@pytest.fixture
def store(monkeypatch):
    monkeypatch.delenv("DOCUMENT_STORE_URL", raising=False)
    return SessionStore()


def record(session_id, day, **kwargs):
    return SessionRecord(
        id=session_id,
        created_at=datetime(2024, 5, day, tzinfo=timezone.utc),
        **kwargs,
    )


def test_save_get_delete(store):
    store.save("alice", record("a", 1))
    assert store.get("alice", "a").id == "a"
    assert store.get("bob", "a") is None

    assert store.delete("alice", "a")
    assert not store.delete("alice", "a")
    assert store.get("alice", "a") is None


def test_list_newest_first(store):
    store.save("alice", record("old", 1))
    store.save("alice", record("new", 9))
    store.save("alice", record("mid", 5))
    assert [r.id for r in store.list_for_user("alice")] == ["new", "mid", "old"]
    assert store.list_for_user("nobody") == []


def test_ledger_for_user_merges_training_sessions(store):
    first = AccuracyLedger.from_observations([(T20, True), (T20, False)])
    second = AccuracyLedger.from_observations([(T20, True)])
    store.save("alice", record("t1", 1, game_mode="training", training_accuracy=first.to_dict()))
    store.save("alice", record("t2", 2, game_mode="training", training_accuracy=second.to_dict()))
    store.save("alice", record("c1", 3, game_mode="competition"))

    ledger = store.ledger_for_user("alice")
    assert ledger.get(T20).attempts == 3
    assert ledger.get(T20).hits == 2
    assert store.ledger_for_user("bob") == AccuracyLedger()


def test_stats_and_clear(store):
    store.save("alice", record("a", 1))
    store.save("bob", record("b", 1))
    assert store.stats() == {"users": 2, "sessions": 2}
    store.clear()
    assert store.stats() == {"users": 0, "sessions": 0}


def test_load_from_api(store, monkeypatch):
    calls = []
    documents = [
        {"id": "s1", "createdAt": "2024-05-01T18:00:00Z", "gameMode": "training",
         "shots": [{"x": 0.1, "y": -0.2, "score": 20}], "totalScore": 20},
        {"id": "s2", "gameMode": "competition", "startingScore": 501,
         "turns": [{"shots": [], "turnScore": 0, "isBust": True}]},
        {"id": "bad", "gameMode": "cricket"},
    ]

    def fake_get(url, timeout):
        calls.append(url)
        return FakeResponse(payload=documents)

    monkeypatch.setattr(storage.requests, "get", fake_get)
    store.save("alice", record("stale", 1))

    result = store.load_from_api("alice")

    assert calls == ["http://localhost:8080/users/alice/sessions"]
    assert result["success"]
    assert result["sessions_loaded"] == ["s1", "s2"]
    assert [f["session_id"] for f in result["sessions_failed"]] == ["bad"]
    assert store.get("alice", "stale") is None
    assert store.get("alice", "s1").shots[0].score == 20
    assert store.get("alice", "s2").turns[0].is_bust


def test_load_accepts_wrapped_payload(store, monkeypatch):
    monkeypatch.setattr(
        storage.requests, "get",
        lambda url, timeout: FakeResponse(payload={"sessions": [{"id": "s1"}]}),
    )
    result = store.load_from_api("alice")
    assert result["sessions_loaded"] == ["s1"]


def test_load_unknown_user(store, monkeypatch):
    monkeypatch.setattr(storage.requests, "get", lambda url, timeout: FakeResponse(status_code=404))
    result = store.load_from_api("ghost")
    assert not result["success"]
    assert "not found" in result["errors"][0]


def test_load_connection_error_keeps_existing(store, monkeypatch):
    def fail(url, timeout):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(storage.requests, "get", fail)
    store.save("alice", record("kept", 1))

    result = store.load_from_api("alice")
    assert not result["success"]
    assert "Failed to connect" in result["errors"][0]
    assert store.get("alice", "kept") is not None


def test_load_invalid_json(store, monkeypatch):
    monkeypatch.setattr(
        storage.requests, "get",
        lambda url, timeout: FakeResponse(payload=ValueError("not json")),
    )
    result = store.load_from_api("alice")
    assert not result["success"]
    assert "Invalid response" in result["errors"][0]


def test_load_rejects_malformed_training_accuracy(store, monkeypatch):
    documents = [
        {"id": "good", "gameMode": "training",
         "trainingAccuracy": {"sections": {"triple-20": {"attempts": 2, "hits": 1}}}},
        {"id": "broken", "gameMode": "training",
         "trainingAccuracy": {"sections": {"single-20": 5}}},
    ]
    monkeypatch.setattr(storage.requests, "get", lambda url, timeout: FakeResponse(payload=documents))

    result = store.load_from_api("alice")

    assert result["sessions_loaded"] == ["good"]
    assert [f["session_id"] for f in result["sessions_failed"]] == ["broken"]
    assert store.get("alice", "broken") is None
    assert store.ledger_for_user("alice").get(T20).attempts == 2
