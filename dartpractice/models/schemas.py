"""
Pydantic models for stored practice sessions.

These are the records handed to and read back from the document store.
Fields missing from a stored document fall back to empty/zero values.
"""
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import List, Optional, Dict, Literal
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoredShot(BaseModel):
    """A dart as stored: position in board-radius units and its score"""
    x: float = 0.0
    y: float = 0.0
    score: int = 0


class StoredTurn(BaseModel):
    """A finalized competition turn"""
    model_config = ConfigDict(populate_by_name=True)

    shots: List[StoredShot] = Field(default_factory=list)
    turn_score: int = Field(0, alias="turnScore")
    is_bust: bool = Field(False, alias="isBust")


class StoredPoint(BaseModel):
    x: float = 0.0
    y: float = 0.0


class StoredSectionAccuracy(BaseModel):
    """Attempts, hits and missed dart positions for one section"""
    model_config = ConfigDict(populate_by_name=True)

    attempts: int = Field(0, ge=0)
    hits: int = Field(0, ge=0)
    missed_shots: List[StoredPoint] = Field(default_factory=list, alias="missedShots")


class TrainingAccuracy(BaseModel):
    """Per-section accuracy of a training session, keyed by section key"""
    sections: Dict[str, StoredSectionAccuracy] = Field(default_factory=dict)


class SessionRecord(BaseModel):
    """One practice session (free play, competition leg or training run)"""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    created_at: datetime = Field(default_factory=_utcnow, alias="createdAt")
    game_mode: Optional[Literal["competition", "training"]] = Field(None, alias="gameMode")
    shots: List[StoredShot] = Field(default_factory=list)
    total_score: int = Field(0, alias="totalScore")
    notes: Optional[str] = None
    turns: Optional[List[StoredTurn]] = None
    starting_score: Optional[int] = Field(None, alias="startingScore")
    training_accuracy: Optional[TrainingAccuracy] = Field(None, alias="trainingAccuracy")

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Stored timestamps without an offset are UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
