"""
Training session - aim at a sequence of sections, three attempts each.

A hit on the first attempt earns the section's full points, the second half,
the third a quarter. Every attempt is counted in the session's accuracy
ledger, which is what the checkout planner later learns from.
"""
import logging
import math
import random
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Dict, List, Optional, Sequence, Tuple

from dartpractice.core.classifier import is_hit
from dartpractice.core.geometry import ALL_SECTIONS, DartboardSection, ImpactPoint
from dartpractice.core.ledger import AccuracyLedger
from dartpractice.core.scoring import score_for_point
from dartpractice.models.schemas import SessionRecord, StoredShot

logger = logging.getLogger("dartpractice.training")

ATTEMPTS_PER_TARGET = 3

# Fraction of the section's points awarded for a hit on attempt 1, 2, 3
ATTEMPT_POINT_FACTORS = (1.0, 0.5, 0.25)

DEFAULT_TARGET_COUNT = 10


class TrainingStateError(ValueError):
    """Operation not allowed in the session's current state."""


@dataclass(frozen=True)
class TrainingThrow:
    """One recorded attempt."""
    target: DartboardSection
    point: ImpactPoint
    score: int
    attempt: int  # 1-based attempt number at this target
    hit: bool
    points_awarded: int


def random_targets(count: int = DEFAULT_TARGET_COUNT, rng: Optional[random.Random] = None) -> List[DartboardSection]:
    """Draw `count` targets from the 62 board sections."""
    rng = rng or random.Random()
    return [rng.choice(ALL_SECTIONS) for _ in range(count)]


def points_for_hit(target: DartboardSection, attempt: int) -> int:
    """Points for hitting `target` on the given 1-based attempt."""
    if attempt < 1 or attempt > len(ATTEMPT_POINT_FACTORS):
        return 0
    return math.floor(target.score * ATTEMPT_POINT_FACTORS[attempt - 1])


class TrainingSession:
    """
    Walks through a list of targets, recording every attempt.
    """

    def __init__(
        self,
        targets: Sequence[DartboardSection],
        attempts_per_target: int = ATTEMPTS_PER_TARGET,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None
    ):
        if not targets:
            raise TrainingStateError("A training session needs at least one target")
        if not 1 <= attempts_per_target <= len(ATTEMPT_POINT_FACTORS):
            raise TrainingStateError(f"attempts_per_target must be 1-{len(ATTEMPT_POINT_FACTORS)}")

        self.session_id = session_id or str(uuid.uuid4())[:12]
        self.user_id = user_id
        self.targets = list(targets)
        self.attempts_per_target = attempts_per_target
        self.ledger = AccuracyLedger()
        self.created_at = datetime.now(timezone.utc)
        self._lock = Lock()
        self._throws: List[TrainingThrow] = []
        # (target index, attempts used) before each throw, for undo
        self._positions: List[Tuple[int, int]] = []
        self._target_index = 0
        self._attempt = 0
        self._ended = False
        self._last_activity = time.time()

    @property
    def finished(self) -> bool:
        return self._ended or self._target_index >= len(self.targets)

    @property
    def current_target(self) -> Optional[DartboardSection]:
        if self.finished:
            return None
        return self.targets[self._target_index]

    @property
    def attempts_left(self) -> int:
        if self.finished:
            return 0
        return self.attempts_per_target - self._attempt

    @property
    def targets_completed(self) -> int:
        return min(self._target_index, len(self.targets))

    @property
    def total_score(self) -> int:
        return sum(t.points_awarded for t in self._throws)

    @property
    def throws(self) -> List[TrainingThrow]:
        return list(self._throws)

    def throw(self, point: ImpactPoint) -> TrainingThrow:
        """
        Record an attempt at the current target.

        Raises:
            TrainingStateError: if the session is finished
        """
        with self._lock:
            target = self.current_target
            if target is None:
                raise TrainingStateError(f"Training session {self.session_id} is finished")

            attempt = self._attempt + 1
            hit = is_hit(point, target)
            awarded = points_for_hit(target, attempt) if hit else 0

            result = TrainingThrow(
                target=target,
                point=point,
                score=score_for_point(point),
                attempt=attempt,
                hit=hit,
                points_awarded=awarded,
            )
            self._throws.append(result)
            self._positions.append((self._target_index, self._attempt))
            self.ledger.record(target, hit, point)
            self._last_activity = time.time()

            if hit or attempt >= self.attempts_per_target:
                self._target_index += 1
                self._attempt = 0
            else:
                self._attempt = attempt

        logger.debug(
            f"[TRAINING] {self.session_id}: {target.key} attempt {attempt} "
            f"{'hit' if hit else 'miss'} (+{awarded})"
        )
        return result

    def undo_last_throw(self) -> Optional[TrainingThrow]:
        """Revert the most recent attempt; None if nothing was thrown."""
        with self._lock:
            if not self._throws:
                return None

            last = self._throws.pop()
            self.ledger.unrecord(last.target, last.hit, last.point)
            self._target_index, self._attempt = self._positions.pop()
            self._last_activity = time.time()
            return last

    def end(self) -> None:
        """Stop early; remaining targets are skipped."""
        with self._lock:
            self._ended = True
            self._last_activity = time.time()

    def to_record(self, notes: Optional[str] = None) -> SessionRecord:
        """Convert the session into a training session record."""
        with self._lock:
            throws = list(self._throws)
            stored = self.ledger.to_stored()

        return SessionRecord(
            id=self.session_id,
            created_at=self.created_at,
            game_mode="training",
            shots=[StoredShot(x=t.point.x, y=t.point.y, score=t.score) for t in throws],
            total_score=sum(t.points_awarded for t in throws),
            notes=notes,
            training_accuracy=stored,
        )

    def get_state(self) -> Dict[str, Any]:
        """Get current session state for API response."""
        with self._lock:
            current = self.current_target
            return {
                'session_id': self.session_id,
                'user_id': self.user_id,
                'targets': [t.key for t in self.targets],
                'current_target': current.key if current else None,
                'attempts_left': self.attempts_left,
                'targets_completed': self.targets_completed,
                'total_score': self.total_score,
                'finished': self.finished,
                'throws': [
                    {
                        'target': t.target.key,
                        'x': t.point.x,
                        'y': t.point.y,
                        'score': t.score,
                        'attempt': t.attempt,
                        'hit': t.hit,
                        'points_awarded': t.points_awarded,
                    }
                    for t in self._throws
                ],
            }


class TrainingManager:
    """
    Manages TrainingSession instances keyed by session id.

    Sessions live here until they are ended and saved, or go stale.
    """

    # Clean up sessions after 1 hour of inactivity
    INACTIVE_TIMEOUT_SECONDS = 3600

    def __init__(self):
        self._lock = Lock()
        self._sessions: Dict[str, TrainingSession] = {}

    def create_session(
        self,
        user_id: str,
        targets: Sequence[DartboardSection],
        attempts_per_target: int = ATTEMPTS_PER_TARGET,
        session_id: Optional[str] = None
    ) -> TrainingSession:
        """Start a training session; an existing session with the same id is replaced."""
        session = TrainingSession(targets, attempts_per_target, session_id, user_id)
        with self._lock:
            self._sessions[session.session_id] = session
        logger.info(f"[TRAINING] Started {session.session_id} for {user_id} ({len(session.targets)} targets)")
        return session

    def get_session(self, session_id: str) -> Optional[TrainingSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def remove_session(self, session_id: str) -> bool:
        with self._lock:
            if session_id in self._sessions:
                del self._sessions[session_id]
                return True
            return False

    def list_sessions(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [
                {
                    'session_id': session_id,
                    'user_id': session.user_id,
                    'finished': session.finished,
                    'last_activity': session._last_activity,
                }
                for session_id, session in self._sessions.items()
            ]

    def cleanup_inactive(self) -> List[str]:
        """Remove sessions that have been inactive too long."""
        now = time.time()
        with self._lock:
            inactive = [
                session_id
                for session_id, session in self._sessions.items()
                if now - session._last_activity > self.INACTIVE_TIMEOUT_SECONDS
            ]
            for session_id in inactive:
                del self._sessions[session_id]
        return inactive


# Global manager instance
training_manager = TrainingManager()
