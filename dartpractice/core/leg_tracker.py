"""
Leg Tracker - Stateful competition leg tracking.

Counts a leg down from its starting score one turn (up to three darts) at a
time. A turn busts when its darts would take the leg below zero, wins when
they reach exactly zero, and otherwise waits to be confirmed after the third
dart.

Supports multiple concurrent legs via LegManager.
"""
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from threading import Lock
from typing import Dict, List, Optional, Any

from dartpractice.core.checkout import CheckoutTarget, recommend_next
from dartpractice.core.geometry import DARTS_PER_TURN, ImpactPoint
from dartpractice.core.ledger import AccuracyLedger
from dartpractice.core.scoring import score_for_point
from dartpractice.models.schemas import SessionRecord, StoredShot, StoredTurn

logger = logging.getLogger("dartpractice.legs")

DEFAULT_STARTING_SCORE = 501


class LegStateError(ValueError):
    """Operation not allowed in the leg's current state."""


class TurnStatus(str, Enum):
    ACTIVE = "active"
    CONFIRMED = "confirmed"
    BUSTED = "busted"
    WON = "won"


@dataclass(frozen=True)
class Shot:
    """A thrown dart; score is always derived from the point."""
    point: ImpactPoint
    score: int

    @classmethod
    def from_point(cls, point: ImpactPoint) -> "Shot":
        return cls(point=point, score=score_for_point(point))


@dataclass
class Turn:
    """Up to three shots by one player before the score is committed."""
    shots: List[Shot] = field(default_factory=list)
    status: TurnStatus = TurnStatus.ACTIVE

    @property
    def cumulative_score(self) -> int:
        return sum(shot.score for shot in self.shots)

    @property
    def is_bust(self) -> bool:
        return self.status == TurnStatus.BUSTED

    @property
    def turn_score(self) -> int:
        # A bust contributes nothing to the leg
        if self.is_bust:
            return 0
        return self.cumulative_score

    @property
    def is_full(self) -> bool:
        return len(self.shots) >= DARTS_PER_TURN

    @property
    def darts_left(self) -> int:
        return max(0, DARTS_PER_TURN - len(self.shots))


@dataclass
class ThrowOutcome:
    """Result of registering one dart."""
    shot: Shot
    turn_status: TurnStatus
    remaining_score: int
    darts_left: int
    awaiting_confirmation: bool


class Leg:
    """
    A single countdown game from a starting score to exactly zero.
    """

    def __init__(self, leg_id: str, starting_score: int = DEFAULT_STARTING_SCORE):
        if starting_score <= 0:
            raise LegStateError(f"Starting score must be positive, got {starting_score}")
        self.leg_id = leg_id
        self.starting_score = starting_score
        self._lock = Lock()
        self._remaining = starting_score
        self._turns: List[Turn] = []
        self._current = Turn()
        self._created_at = time.time()
        self._last_activity = time.time()

    @property
    def remaining_score(self) -> int:
        """Leg score before the active turn is applied."""
        with self._lock:
            return self._remaining

    @property
    def is_finished(self) -> bool:
        with self._lock:
            return self._remaining == 0

    @property
    def turns(self) -> List[Turn]:
        """Copy of the finalized turns."""
        with self._lock:
            return list(self._turns)

    @property
    def current_turn(self) -> Turn:
        with self._lock:
            return Turn(shots=list(self._current.shots), status=self._current.status)

    def throw(self, point: ImpactPoint) -> ThrowOutcome:
        """
        Register a dart for the active turn.

        Raises:
            LegStateError: if the leg is already won or the turn holds three darts
        """
        with self._lock:
            if self._remaining == 0:
                raise LegStateError(f"Leg {self.leg_id} is already finished")
            if self._current.is_full:
                raise LegStateError(f"Turn already has {DARTS_PER_TURN} darts; confirm it first")

            shot = Shot.from_point(point)
            self._current.shots.append(shot)
            self._last_activity = time.time()

            turn = self._current
            after_turn = self._remaining - turn.cumulative_score

            if after_turn < 0:
                turn.status = TurnStatus.BUSTED
                self._finalize_current()
                logger.info(f"[LEG] {self.leg_id}: bust on {shot.score}, remaining stays {self._remaining}")
            elif after_turn == 0:
                turn.status = TurnStatus.WON
                self._remaining = 0
                self._finalize_current()
                logger.info(f"[LEG] {self.leg_id}: checkout with {shot.score}")

            live = self._current
            return ThrowOutcome(
                shot=shot,
                turn_status=turn.status,
                remaining_score=self._remaining - live.cumulative_score,
                darts_left=live.darts_left,
                awaiting_confirmation=live.is_full,
            )

    def confirm_turn(self) -> Turn:
        """
        Apply the active turn's score and close it.

        Raises:
            LegStateError: if the active turn has no darts
        """
        with self._lock:
            if not self._current.shots:
                raise LegStateError("No darts thrown in the current turn")

            turn = self._current
            turn.status = TurnStatus.CONFIRMED
            self._remaining -= turn.cumulative_score
            self._finalize_current()
            self._last_activity = time.time()
            logger.info(f"[LEG] {self.leg_id}: confirmed {turn.turn_score}, remaining {self._remaining}")
            return turn

    def undo_last_shot(self) -> Optional[Shot]:
        """Remove the last dart of the active turn; None if the turn is empty."""
        with self._lock:
            if not self._current.shots:
                return None
            self._last_activity = time.time()
            return self._current.shots.pop()

    def recommendation(self, ledger: Optional[AccuracyLedger] = None) -> Optional[CheckoutTarget]:
        """Next recommended target given the live turn."""
        with self._lock:
            if self._remaining == 0:
                return None
            remaining = self._remaining - self._current.cumulative_score
            darts_left = self._current.darts_left
        return recommend_next(remaining, darts_left, ledger)

    def _finalize_current(self) -> None:
        self._turns.append(self._current)
        self._current = Turn()

    def to_record(self, session_id: Optional[str] = None, notes: Optional[str] = None) -> SessionRecord:
        """Convert the finalized turns into a competition session record."""
        with self._lock:
            turns = list(self._turns)
            remaining = self._remaining

        shots = [shot for turn in turns for shot in turn.shots]
        return SessionRecord(
            id=session_id or self.leg_id,
            created_at=datetime.fromtimestamp(self._created_at, tz=timezone.utc),
            game_mode="competition",
            shots=[StoredShot(x=s.point.x, y=s.point.y, score=s.score) for s in shots],
            total_score=self.starting_score - remaining,
            notes=notes,
            turns=[
                StoredTurn(
                    shots=[StoredShot(x=s.point.x, y=s.point.y, score=s.score) for s in turn.shots],
                    turn_score=turn.turn_score,
                    is_bust=turn.is_bust,
                )
                for turn in turns
            ],
            starting_score=self.starting_score,
        )

    def get_state(self) -> Dict[str, Any]:
        """Get current leg state for API response."""
        with self._lock:
            current = self._current
            return {
                'leg_id': self.leg_id,
                'starting_score': self.starting_score,
                'remaining_score': self._remaining,
                'finished': self._remaining == 0,
                'current_turn': {
                    'shots': [
                        {'x': s.point.x, 'y': s.point.y, 'score': s.score}
                        for s in current.shots
                    ],
                    'cumulative_score': current.cumulative_score,
                    'darts_left': current.darts_left,
                    'awaiting_confirmation': current.is_full,
                },
                'turns': [
                    {
                        'shots': [
                            {'x': s.point.x, 'y': s.point.y, 'score': s.score}
                            for s in turn.shots
                        ],
                        'turn_score': turn.turn_score,
                        'status': turn.status.value,
                    }
                    for turn in self._turns
                ],
            }


class LegManager:
    """
    Manages Leg instances keyed by leg id.

    Legs are created on demand and cleaned up after inactivity.
    """

    # Clean up legs after 1 hour of inactivity
    INACTIVE_TIMEOUT_SECONDS = 3600

    def __init__(self):
        self._lock = Lock()
        self._legs: Dict[str, Leg] = {}

    def create_leg(self, starting_score: int = DEFAULT_STARTING_SCORE, leg_id: Optional[str] = None) -> Leg:
        """Start a new leg; an existing leg with the same id is replaced."""
        leg_id = leg_id or str(uuid.uuid4())[:12]
        leg = Leg(leg_id, starting_score)
        with self._lock:
            self._legs[leg_id] = leg
        logger.info(f"[LEG] Started {leg_id} from {starting_score}")
        return leg

    def get_leg(self, leg_id: str) -> Optional[Leg]:
        with self._lock:
            return self._legs.get(leg_id)

    def remove_leg(self, leg_id: str) -> bool:
        with self._lock:
            if leg_id in self._legs:
                del self._legs[leg_id]
                return True
            return False

    def list_legs(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [
                {
                    'leg_id': leg_id,
                    'remaining_score': leg.remaining_score,
                    'created_at': leg._created_at,
                    'last_activity': leg._last_activity,
                }
                for leg_id, leg in self._legs.items()
            ]

    def cleanup_inactive(self) -> List[str]:
        """Remove legs that have been inactive too long."""
        now = time.time()
        with self._lock:
            inactive = [
                leg_id
                for leg_id, leg in self._legs.items()
                if now - leg._last_activity > self.INACTIVE_TIMEOUT_SECONDS
            ]
            for leg_id in inactive:
                del self._legs[leg_id]
        return inactive


# Global manager instance
leg_manager = LegManager()
