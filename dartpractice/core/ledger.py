"""
Accuracy ledger - per-section attempt/hit counters.

A ledger covers one analysis window (one training session, or an aggregate
built by merging per-session ledgers). It is plain accumulation: recording an
attempt never fails, and the checkout planner only reads from it.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from dartpractice.core.geometry import DartboardSection, ImpactPoint
from dartpractice.models.schemas import StoredPoint, StoredSectionAccuracy, TrainingAccuracy


@dataclass
class SectionAccuracy:
    """Attempts and hits for one section."""
    attempts: int = 0
    hits: int = 0
    # Where the misses landed; diagnostic only, ignored by equality
    missed_shots: List[ImpactPoint] = field(default_factory=list, compare=False)

    @property
    def accuracy(self) -> Optional[float]:
        if self.attempts <= 0:
            return None
        return self.hits / self.attempts


@dataclass
class AccuracyLedger:
    """
    Mapping of section key -> SectionAccuracy.

    Entries are created lazily by record() and dropped again when unrecord()
    brings them back to zero attempts, so a record/unrecord pair leaves the
    ledger exactly as it was.
    """
    sections: Dict[str, SectionAccuracy] = field(default_factory=dict)

    def record(
        self,
        target: DartboardSection,
        hit: bool,
        point: Optional[ImpactPoint] = None
    ) -> "AccuracyLedger":
        """
        Count one attempt at a target.

        Args:
            target: Section aimed at
            hit: Whether the attempt landed in the target
            point: Where the dart landed; kept for misses

        Returns:
            self, for chaining
        """
        entry = self.sections.get(target.key)
        if entry is None:
            entry = SectionAccuracy()
            self.sections[target.key] = entry

        entry.attempts += 1
        if hit:
            entry.hits += 1
        elif point is not None:
            entry.missed_shots.append(point)
        return self

    def unrecord(
        self,
        target: DartboardSection,
        hit: bool,
        point: Optional[ImpactPoint] = None
    ) -> "AccuracyLedger":
        """
        Revert one attempt previously counted with record().

        No-op when the section has no entry. Counters never go below zero.
        """
        entry = self.sections.get(target.key)
        if entry is None:
            return self

        entry.attempts = max(0, entry.attempts - 1)
        if hit:
            entry.hits = max(0, entry.hits - 1)
        elif point is not None and entry.missed_shots and entry.missed_shots[-1] == point:
            entry.missed_shots.pop()
        entry.hits = min(entry.hits, entry.attempts)

        if entry.attempts == 0:
            del self.sections[target.key]
        return self

    def accuracy_of(self, target: DartboardSection) -> Optional[float]:
        """
        Hit ratio for a section, or None when there is no data.

        None is deliberately distinct from 0.0; callers decide what "no data" means.
        """
        entry = self.sections.get(target.key)
        if entry is None:
            return None
        return entry.accuracy

    def get(self, target: DartboardSection) -> SectionAccuracy:
        entry = self.sections.get(target.key)
        if entry is None:
            return SectionAccuracy()
        return entry

    @property
    def total_attempts(self) -> int:
        return sum(entry.attempts for entry in self.sections.values())

    @property
    def total_hits(self) -> int:
        return sum(entry.hits for entry in self.sections.values())

    def copy(self) -> "AccuracyLedger":
        return AccuracyLedger.merge([self])

    @classmethod
    def merge(cls, ledgers: Iterable["AccuracyLedger"]) -> "AccuracyLedger":
        """Sum attempts and hits per section across ledgers."""
        merged = cls()
        for ledger in ledgers:
            if ledger is None:
                continue
            for key, entry in ledger.sections.items():
                target = merged.sections.setdefault(key, SectionAccuracy())
                target.attempts += entry.attempts
                target.hits += entry.hits
                target.missed_shots.extend(entry.missed_shots)
        return merged

    @classmethod
    def from_observations(
        cls,
        observations: Iterable[Tuple[DartboardSection, bool]]
    ) -> "AccuracyLedger":
        """Fold (section, hit) pairs into a new ledger."""
        ledger = cls()
        for target, hit in observations:
            ledger.record(target, hit)
        return ledger

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data form, shaped like the stored trainingAccuracy document."""
        return self.to_stored().model_dump(by_alias=True)

    def to_stored(self) -> TrainingAccuracy:
        return TrainingAccuracy(sections={
            key: StoredSectionAccuracy(
                attempts=entry.attempts,
                hits=entry.hits,
                missed_shots=[StoredPoint(x=p.x, y=p.y) for p in entry.missed_shots],
            )
            for key, entry in self.sections.items()
        })

    @classmethod
    def from_stored(cls, stored: Optional[TrainingAccuracy]) -> "AccuracyLedger":
        """
        Rebuild a ledger from a validated trainingAccuracy document.

        Unknown keys are kept as-is; entries without attempts are skipped.
        """
        ledger = cls()
        if stored is None:
            return ledger

        for key, entry in stored.sections.items():
            if entry.attempts <= 0:
                continue
            ledger.sections[key] = SectionAccuracy(
                attempts=entry.attempts,
                hits=min(entry.hits, entry.attempts),
                missed_shots=[ImpactPoint(p.x, p.y) for p in entry.missed_shots],
            )
        return ledger

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AccuracyLedger":
        """
        Rebuild a ledger from its plain-data form.

        Raises:
            pydantic.ValidationError: if the data isn't shaped like trainingAccuracy
        """
        if not data:
            return cls()
        return cls.from_stored(TrainingAccuracy.model_validate(data))


def merge(ledgers: Iterable[AccuracyLedger]) -> AccuracyLedger:
    return AccuracyLedger.merge(ledgers)
