"""
Pydantic schemas for the DartPractice API
"""
from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any


# === Scoring ===

class PointRequest(BaseModel):
    """An impact point in board-radius units (+y is down)"""
    x: float = Field(..., description="Horizontal offset from centre, board radius = 1")
    y: float = Field(..., description="Vertical offset from centre, board radius = 1")


class ScoreResponse(BaseModel):
    """Score and region for a point"""
    score: int
    section: str = Field(..., description="Section key, e.g. triple-20, or miss-0")
    type: str = Field(..., description="single, double, triple, bullseye, outer-bull or miss")
    number: int
    multiplier: int
    display_name: str


class HitRequest(PointRequest):
    """Point plus the section that was aimed at"""
    target: str = Field(..., description="Section key aimed at, e.g. double-16")


class HitResponse(BaseModel):
    target: str
    hit: bool
    landed: str = Field(..., description="Section key the dart actually landed in")


# === Checkout ===

class CheckoutRequest(BaseModel):
    remaining_score: int = Field(..., description="Score left in the leg")
    darts_left: int = Field(3, description="Darts left in the current turn")
    user_id: Optional[str] = Field(None, description="Use this user's training accuracy")


class CheckoutTargetInfo(BaseModel):
    section: str
    display_name: str
    score: int
    accuracy: float


class CheckoutResponse(BaseModel):
    """Recommended next dart; all fields empty when there is no hint"""
    recommended: Optional[CheckoutTargetInfo] = None
    path: List[CheckoutTargetInfo] = Field(default_factory=list)
    path_accuracy: Optional[float] = None
    path_remaining_score: Optional[int] = None


# === Legs ===

class StartLegRequest(BaseModel):
    starting_score: int = Field(501, description="Leg starting score, e.g. 301 or 501")
    leg_id: Optional[str] = None


class ThrowResponse(BaseModel):
    score: int
    section: str
    turn_status: str
    remaining_score: int
    darts_left: int
    awaiting_confirmation: bool
    recommended: Optional[CheckoutTargetInfo] = None


# === Training ===

class StartTrainingRequest(BaseModel):
    user_id: str = Field(..., description="Owner of the session; the record is saved under this user")
    targets: Optional[List[str]] = Field(None, description="Section keys to aim at; random when omitted")
    target_count: int = Field(10, ge=1, le=100, description="Number of random targets")
    attempts_per_target: int = Field(3, description="Attempts per target, 1-3")
    session_id: Optional[str] = None


class TrainingThrowResponse(BaseModel):
    """Outcome of one training attempt"""
    target: str
    attempt: int
    hit: bool
    score: int
    points_awarded: int
    total_score: int
    next_target: Optional[str] = None
    attempts_left: int
    finished: bool


# === Analytics ===

class RingAccuracyResponse(BaseModel):
    overall: float
    single: float
    double: float
    triple: float
    attempts: int
    hits: int
    sections: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


class LoadSessionsResponse(BaseModel):
    success: bool
    user_id: str
    sessions_loaded: List[str] = Field(default_factory=list)
    sessions_failed: List[Dict[str, Any]] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


# === Health/Status ===

class HealthResponse(BaseModel):
    """API health status"""
    status: str
    version: str
    active_legs: int
    active_training_sessions: int
    stored_sessions: int
