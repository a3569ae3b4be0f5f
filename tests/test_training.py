"""Tests for training sessions."""
import random

import pytest

from conftest import point_at
from dartpractice.core.geometry import ALL_SECTIONS, DartboardSection, ImpactPoint
from dartpractice.core.training import (
    TrainingManager,
    TrainingSession,
    TrainingStateError,
    points_for_hit,
    random_targets,
)

T20 = DartboardSection.from_key("triple-20")
D16 = DartboardSection.from_key("double-16")
OFF_BOARD = ImpactPoint(1.5, 0)


def test_points_by_attempt():
    assert points_for_hit(T20, 1) == 60
    assert points_for_hit(T20, 2) == 30
    assert points_for_hit(T20, 3) == 15
    assert points_for_hit(D16, 3) == 8
    assert points_for_hit(DartboardSection.from_key("single-5"), 2) == 2
    assert points_for_hit(T20, 4) == 0


def test_first_attempt_hit_advances():
    session = TrainingSession([T20, D16])
    result = session.throw(ImpactPoint(0, -0.58))
    assert result.hit
    assert result.attempt == 1
    assert result.points_awarded == 60
    assert result.score == 60
    assert session.current_target == D16
    assert session.attempts_left == 3


def test_third_attempt_hit_and_ledger():
    session = TrainingSession([D16])
    session.throw(OFF_BOARD)
    session.throw(point_at(8, 0.965))
    result = session.throw(point_at(16, 0.965))

    assert result.hit
    assert result.points_awarded == 8
    assert session.total_score == 8
    assert session.finished
    entry = session.ledger.get(D16)
    assert (entry.attempts, entry.hits) == (3, 1)
    assert len(entry.missed_shots) == 2


def test_three_misses_move_on():
    session = TrainingSession([T20, D16])
    for _ in range(3):
        session.throw(OFF_BOARD)
    assert session.current_target == D16
    assert session.total_score == 0
    assert session.ledger.accuracy_of(T20) == 0.0


def test_undo_restores_position_and_ledger():
    session = TrainingSession([T20, D16])
    session.throw(OFF_BOARD)
    before = session.ledger.copy()
    session.throw(ImpactPoint(0, -0.58))
    assert session.current_target == D16

    undone = session.undo_last_throw()
    assert undone.hit
    assert session.current_target == T20
    assert session.attempts_left == 2
    assert session.total_score == 0
    assert session.ledger == before

    session.undo_last_throw()
    assert session.attempts_left == 3
    assert session.ledger.sections == {}
    assert session.undo_last_throw() is None


def test_finished_session_rejects_throws():
    session = TrainingSession([T20])
    session.throw(ImpactPoint(0, -0.58))
    assert session.finished
    assert session.current_target is None
    with pytest.raises(TrainingStateError):
        session.throw(ImpactPoint(0, 0))


def test_end_early():
    session = TrainingSession([T20, D16])
    session.end()
    assert session.finished
    assert session.attempts_left == 0


def test_invalid_sessions():
    with pytest.raises(TrainingStateError):
        TrainingSession([])
    with pytest.raises(TrainingStateError):
        TrainingSession([T20], attempts_per_target=4)


def test_random_targets_are_board_sections():
    targets = random_targets(12, random.Random(7))
    assert len(targets) == 12
    assert all(t in ALL_SECTIONS for t in targets)
    assert targets == random_targets(12, random.Random(7))


def test_to_record():
    session = TrainingSession([T20], session_id="t-1")
    session.throw(ImpactPoint(0, -0.3))
    session.throw(ImpactPoint(0, -0.58))

    record = session.to_record()
    assert record.id == "t-1"
    assert record.game_mode == "training"
    assert record.total_score == 30
    assert [s.score for s in record.shots] == [20, 60]
    assert record.training_accuracy.sections["triple-20"].attempts == 2
    assert record.training_accuracy.sections["triple-20"].hits == 1
    assert record.training_accuracy.sections["triple-20"].missed_shots[0].y == -0.3


def test_end_then_throw_rejected():
    session = TrainingSession([T20, D16])
    session.throw(OFF_BOARD)
    session.end()
    with pytest.raises(TrainingStateError):
        session.throw(ImpactPoint(0, -0.58))
    assert session.get_state()["finished"]


def test_get_state():
    session = TrainingSession([T20, D16], session_id="t-2", user_id="alice")
    session.throw(ImpactPoint(0, -0.3))
    state = session.get_state()
    assert state["user_id"] == "alice"
    assert state["targets"] == ["triple-20", "double-16"]
    assert state["current_target"] == "triple-20"
    assert state["attempts_left"] == 2
    assert state["throws"][0]["hit"] is False
    assert state["throws"][0]["score"] == 20


def test_manager_lifecycle():
    manager = TrainingManager()
    session = manager.create_session("alice", [T20], session_id="abc")
    assert manager.get_session("abc") is session
    assert session.user_id == "alice"
    assert [entry["session_id"] for entry in manager.list_sessions()] == ["abc"]

    assert manager.remove_session("abc")
    assert not manager.remove_session("abc")
    assert manager.get_session("abc") is None


def test_manager_rejects_invalid_session():
    manager = TrainingManager()
    with pytest.raises(TrainingStateError):
        manager.create_session("alice", [])
    assert manager.list_sessions() == []


def test_manager_cleanup_inactive():
    manager = TrainingManager()
    stale = manager.create_session("alice", [T20], session_id="stale")
    manager.create_session("alice", [T20], session_id="fresh")
    stale._last_activity = 0

    assert manager.cleanup_inactive() == ["stale"]
    assert manager.get_session("fresh") is not None
