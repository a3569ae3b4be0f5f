"""
Aggregate statistics over stored practice sessions.

Distances are reported in display units (TARGET_RADIUS_UNITS per board
radius) so they read the same as the numbers shown next to the board.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

import numpy as np

from dartpractice.core.geometry import TARGET_RADIUS_UNITS, SectionType, DartboardSection
from dartpractice.core.ledger import AccuracyLedger
from dartpractice.models.schemas import SessionRecord, StoredShot


@dataclass
class AggregateStats:
    average_points: float
    average_distance_from_center: float
    missed_shots: int
    average_precision: float
    shot_count: int


@dataclass
class RingAccuracy:
    """Hit percentages by ring; 0 where there were no attempts."""
    overall: float
    single: float
    double: float
    triple: float
    attempts: int
    hits: int


@dataclass
class TimelinePoint:
    session: int  # 1-based, chronological
    session_id: str
    date: str
    accuracy: float  # percent, 1 decimal
    attempts: int
    hits: int


def _mean(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(values))


def distance_from_center(shot: StoredShot, target_radius: float = TARGET_RADIUS_UNITS) -> float:
    return float(np.hypot(shot.x, shot.y)) * target_radius


def distance_between(first: StoredShot, second: StoredShot, target_radius: float = TARGET_RADIUS_UNITS) -> float:
    return float(np.hypot(first.x - second.x, first.y - second.y)) * target_radius


def group_precision(shots: Sequence[StoredShot], target_radius: float = TARGET_RADIUS_UNITS) -> float:
    """
    Mean distance of shots from the centre of their group.

    Returns 0 for fewer than two shots.
    """
    if len(shots) <= 1:
        return 0.0

    points = np.array([[s.x, s.y] for s in shots], dtype=np.float64)
    centroid = points.mean(axis=0)
    distances = np.linalg.norm(points - centroid, axis=1) * target_radius
    return float(distances.mean())


def compute_aggregate_stats(records: Iterable[SessionRecord]) -> AggregateStats:
    """
    Averages across every dart of the given sessions.

    Precision is averaged over competition turns (or whole sessions when a
    session has no turns), skipping groups with no measurable spread.
    """
    shots: List[StoredShot] = []
    precisions: List[float] = []

    for record in records:
        shots.extend(record.shots)
        groups = [turn.shots for turn in record.turns] if record.turns else [record.shots]
        for group in groups:
            precision = group_precision(group)
            if precision > 0:
                precisions.append(precision)

    return AggregateStats(
        average_points=_mean([s.score for s in shots]),
        average_distance_from_center=_mean([distance_from_center(s) for s in shots]),
        missed_shots=sum(1 for s in shots if s.score == 0),
        average_precision=_mean(precisions),
        shot_count=len(shots),
    )


def _percent(hits: int, attempts: int) -> float:
    return hits / attempts * 100 if attempts > 0 else 0.0


def ring_accuracy(ledger: AccuracyLedger) -> RingAccuracy:
    """Hit percentages overall and per ring type (bulls count toward overall only)."""
    totals: Dict[str, List[int]] = {
        SectionType.SINGLE.value: [0, 0],
        SectionType.DOUBLE.value: [0, 0],
        SectionType.TRIPLE.value: [0, 0],
    }

    for key, entry in ledger.sections.items():
        ring = key.rsplit("-", 1)[0]
        if ring in totals:
            totals[ring][0] += entry.attempts
            totals[ring][1] += entry.hits

    attempts = ledger.total_attempts
    hits = ledger.total_hits
    return RingAccuracy(
        overall=_percent(hits, attempts),
        single=_percent(totals["single"][1], totals["single"][0]),
        double=_percent(totals["double"][1], totals["double"][0]),
        triple=_percent(totals["triple"][1], totals["triple"][0]),
        attempts=attempts,
        hits=hits,
    )


def accuracy_timeline(records: Iterable[SessionRecord], section_key: str) -> List[TimelinePoint]:
    """
    Accuracy for one section per training session, oldest first.

    Sessions that never aimed at the section are left out but still count
    toward the session numbering.
    """
    training = sorted(
        (r for r in records if r.game_mode == "training" and r.training_accuracy),
        key=lambda r: r.created_at,
    )
    section = DartboardSection.from_key(section_key)

    points = []
    for index, record in enumerate(training, start=1):
        entry = AccuracyLedger.from_stored(record.training_accuracy).get(section)
        if entry.attempts == 0:
            continue
        points.append(TimelinePoint(
            session=index,
            session_id=record.id,
            date=record.created_at.date().isoformat(),
            accuracy=round(entry.hits / entry.attempts * 100, 1),
            attempts=entry.attempts,
            hits=entry.hits,
        ))
    return points
