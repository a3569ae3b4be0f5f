"""Tests for competition leg tracking."""
import pytest

from dartpractice.core.geometry import ImpactPoint
from dartpractice.core.leg_tracker import (
    Leg,
    LegManager,
    LegStateError,
    Shot,
    TurnStatus,
)

T20 = ImpactPoint(0, -0.58)
D20 = ImpactPoint(0, -0.96)
S20 = ImpactPoint(0, -0.3)
MISS = ImpactPoint(0, -1.5)


def test_shot_score_is_derived():
    assert Shot.from_point(T20).score == 60
    assert Shot.from_point(MISS).score == 0


def test_full_turn_waits_for_confirmation():
    leg = Leg("leg-1", 501)
    for _ in range(3):
        outcome = leg.throw(T20)
    assert outcome.turn_status == TurnStatus.ACTIVE
    assert outcome.awaiting_confirmation
    assert outcome.remaining_score == 321
    assert outcome.darts_left == 0
    # not applied until confirmed
    assert leg.remaining_score == 501

    with pytest.raises(LegStateError):
        leg.throw(T20)

    turn = leg.confirm_turn()
    assert turn.status == TurnStatus.CONFIRMED
    assert turn.turn_score == 180
    assert leg.remaining_score == 321
    assert leg.current_turn.shots == []


def test_confirm_partial_turn():
    leg = Leg("leg-1", 301)
    leg.throw(S20)
    leg.confirm_turn()
    assert leg.remaining_score == 281


def test_confirm_empty_turn_rejected():
    leg = Leg("leg-1", 301)
    with pytest.raises(LegStateError):
        leg.confirm_turn()


def test_bust_keeps_remaining_score():
    leg = Leg("leg-1", 40)
    outcome = leg.throw(T20)
    assert outcome.turn_status == TurnStatus.BUSTED
    assert outcome.remaining_score == 40
    assert outcome.darts_left == 3
    assert leg.remaining_score == 40

    [turn] = leg.turns
    assert turn.is_bust
    assert turn.turn_score == 0
    assert turn.cumulative_score == 60


def test_bust_on_later_dart():
    leg = Leg("leg-1", 70)
    leg.throw(S20)
    outcome = leg.throw(T20)
    assert outcome.turn_status == TurnStatus.BUSTED
    assert leg.remaining_score == 70


def test_checkout_wins_leg():
    leg = Leg("leg-1", 100)
    leg.throw(T20)
    outcome = leg.throw(D20)
    assert outcome.turn_status == TurnStatus.WON
    assert outcome.remaining_score == 0
    assert leg.is_finished
    assert leg.turns[-1].status == TurnStatus.WON
    assert leg.turns[-1].turn_score == 100

    with pytest.raises(LegStateError):
        leg.throw(S20)


def test_undo_last_shot():
    leg = Leg("leg-1", 501)
    leg.throw(T20)
    leg.throw(S20)
    removed = leg.undo_last_shot()
    assert removed.score == 20
    assert [s.score for s in leg.current_turn.shots] == [60]
    leg.undo_last_shot()
    assert leg.undo_last_shot() is None


def test_invalid_starting_score():
    with pytest.raises(LegStateError):
        Leg("leg-1", 0)


def test_recommendation_follows_turn():
    leg = Leg("leg-1", 170)
    first = leg.recommendation()
    assert first is not None

    leg.throw(T20)
    second = leg.recommendation()
    assert second is not None
    assert second.score <= 110

    leg.throw(MISS)
    # one dart left for 110: no finish, closest target
    assert leg.recommendation() is not None


def test_recommendation_none_when_finished():
    leg = Leg("leg-1", 40)
    leg.throw(D20)
    assert leg.recommendation() is None


def test_to_record():
    leg = Leg("leg-1", 101)
    leg.throw(T20)
    leg.throw(S20)
    leg.confirm_turn()
    leg.throw(T20)  # bust on 21

    record = leg.to_record(notes="evening practice")
    assert record.game_mode == "competition"
    assert record.starting_score == 101
    assert record.total_score == 80
    assert len(record.turns) == 2
    assert record.turns[1].is_bust
    assert record.turns[1].turn_score == 0
    assert [s.score for s in record.shots] == [60, 20, 60]
    assert record.notes == "evening practice"


def test_get_state():
    leg = Leg("leg-1", 501)
    leg.throw(S20)
    state = leg.get_state()
    assert state["remaining_score"] == 501
    assert state["current_turn"]["cumulative_score"] == 20
    assert state["current_turn"]["darts_left"] == 2
    assert state["turns"] == []


def test_manager_lifecycle():
    manager = LegManager()
    leg = manager.create_leg(301, "abc")
    assert manager.get_leg("abc") is leg
    assert [entry["leg_id"] for entry in manager.list_legs()] == ["abc"]

    assert manager.remove_leg("abc")
    assert not manager.remove_leg("abc")
    assert manager.get_leg("abc") is None


def test_manager_cleanup_inactive():
    manager = LegManager()
    stale = manager.create_leg(501, "stale")
    manager.create_leg(501, "fresh")
    stale._last_activity = 0

    assert manager.cleanup_inactive() == ["stale"]
    assert manager.get_leg("fresh") is not None
