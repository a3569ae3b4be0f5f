"""
DartPractice API Routes

Thin HTTP layer over the scoring core: point scoring, hit checks, checkout
recommendations, competition legs, training sessions and per-user session
analytics.
"""
import os
import logging
from dataclasses import asdict
from fastapi import APIRouter, HTTPException, Depends, Header
from typing import List, Optional

from dartpractice.api.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    CheckoutTargetInfo,
    HealthResponse,
    HitRequest,
    HitResponse,
    LoadSessionsResponse,
    PointRequest,
    RingAccuracyResponse,
    ScoreResponse,
    StartLegRequest,
    StartTrainingRequest,
    ThrowResponse,
    TrainingThrowResponse,
)
from dartpractice.core.checkout import CheckoutPlanner, CheckoutTarget
from dartpractice.core.classifier import is_hit
from dartpractice.core.geometry import DartboardSection, ImpactPoint
from dartpractice.core.leg_tracker import Leg, LegStateError, leg_manager
from dartpractice.core.scoring import scoring_system
from dartpractice.core.stats import accuracy_timeline, compute_aggregate_stats, ring_accuracy
from dartpractice.core.storage import session_store
from dartpractice.core.tendency import analyze_shot_tendencies
from dartpractice.core.training import TrainingSession, TrainingStateError, random_targets, training_manager
from dartpractice.core.ledger import AccuracyLedger
from dartpractice.models.schemas import SessionRecord

logger = logging.getLogger("dartpractice.routes")

router = APIRouter()

API_VERSION = "1.0.0"

# Configuration
REQUIRE_AUTH = os.getenv("REQUIRE_AUTH", "false").lower() == "true"
API_KEYS = set(os.getenv("API_KEYS", "").split(",")) if os.getenv("API_KEYS") else set()


# === Authentication ===

async def verify_api_key(authorization: Optional[str] = Header(None)) -> str:
    """Verify API key from Authorization header."""
    if not REQUIRE_AUTH:
        return "local"

    if not authorization:
        raise HTTPException(status_code=401, detail="Missing Authorization header")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid Authorization format")

    if parts[1] not in API_KEYS:
        raise HTTPException(status_code=401, detail="Invalid API key")

    return parts[1]


# === Helpers ===

def _parse_section(key: str) -> DartboardSection:
    try:
        return DartboardSection.from_key(key)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


def _target_info(target: Optional[CheckoutTarget]) -> Optional[CheckoutTargetInfo]:
    if target is None:
        return None
    return CheckoutTargetInfo(
        section=target.key,
        display_name=target.section.display_name,
        score=target.score,
        accuracy=target.accuracy,
    )


def _ledger_for(user_id: Optional[str]) -> Optional[AccuracyLedger]:
    if not user_id:
        return None
    return session_store.ledger_for_user(user_id)


def _get_leg(leg_id: str) -> Leg:
    leg = leg_manager.get_leg(leg_id)
    if leg is None:
        raise HTTPException(status_code=404, detail=f"Leg '{leg_id}' not found")
    return leg


# === Health ===

@router.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=API_VERSION,
        active_legs=len(leg_manager.list_legs()),
        active_training_sessions=len(training_manager.list_sessions()),
        stored_sessions=session_store.stats()["sessions"],
    )


# === Scoring ===

@router.post("/v1/score", response_model=ScoreResponse)
async def score_point(request: PointRequest, api_key: str = Depends(verify_api_key)):
    """Score a single impact point."""
    details = scoring_system.score_details(ImpactPoint(request.x, request.y))
    return ScoreResponse(**details)


@router.post("/v1/hit", response_model=HitResponse)
async def check_hit(request: HitRequest, api_key: str = Depends(verify_api_key)):
    """Check whether a point landed in the section aimed at."""
    target = _parse_section(request.target)
    point = ImpactPoint(request.x, request.y)
    return HitResponse(
        target=target.key,
        hit=is_hit(point, target),
        landed=scoring_system.section_for_point(point).key,
    )


# === Checkout ===

@router.post("/v1/checkout", response_model=CheckoutResponse)
async def recommend_checkout(request: CheckoutRequest, api_key: str = Depends(verify_api_key)):
    """Recommend the next target for a remaining score."""
    planner = CheckoutPlanner(_ledger_for(request.user_id))
    recommended, path = planner.recommend_with_path(request.remaining_score, request.darts_left)
    if recommended is None:
        return CheckoutResponse()

    return CheckoutResponse(
        recommended=_target_info(recommended),
        path=[_target_info(t) for t in path.targets],
        path_accuracy=path.total_accuracy,
        path_remaining_score=path.remaining_score,
    )


# === Legs ===

@router.post("/v1/legs")
async def start_leg(request: StartLegRequest, api_key: str = Depends(verify_api_key)):
    """Start a competition leg."""
    try:
        leg = leg_manager.create_leg(request.starting_score, request.leg_id)
    except LegStateError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return leg.get_state()


@router.get("/v1/legs/{leg_id}")
async def get_leg(leg_id: str, api_key: str = Depends(verify_api_key)):
    return _get_leg(leg_id).get_state()


@router.post("/v1/legs/{leg_id}/throws", response_model=ThrowResponse)
async def throw_dart(
    leg_id: str,
    request: PointRequest,
    user_id: Optional[str] = None,
    api_key: str = Depends(verify_api_key)
):
    """Register a dart in the leg's active turn and refresh the recommendation."""
    leg = _get_leg(leg_id)
    point = ImpactPoint(request.x, request.y)

    try:
        outcome = leg.throw(point)
    except LegStateError as e:
        raise HTTPException(status_code=409, detail=str(e))

    recommended = leg.recommendation(_ledger_for(user_id))
    return ThrowResponse(
        score=outcome.shot.score,
        section=scoring_system.section_for_point(point).key,
        turn_status=outcome.turn_status.value,
        remaining_score=outcome.remaining_score,
        darts_left=outcome.darts_left,
        awaiting_confirmation=outcome.awaiting_confirmation,
        recommended=_target_info(recommended),
    )


@router.post("/v1/legs/{leg_id}/undo")
async def undo_dart(leg_id: str, api_key: str = Depends(verify_api_key)):
    """Remove the last dart of the active turn."""
    leg = _get_leg(leg_id)
    removed = leg.undo_last_shot()
    state = leg.get_state()
    state["undone"] = {"x": removed.point.x, "y": removed.point.y, "score": removed.score} if removed else None
    return state


@router.post("/v1/legs/{leg_id}/confirm")
async def confirm_turn(leg_id: str, api_key: str = Depends(verify_api_key)):
    """Apply the active turn's score."""
    leg = _get_leg(leg_id)
    try:
        leg.confirm_turn()
    except LegStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return leg.get_state()


@router.delete("/v1/legs/{leg_id}")
async def delete_leg(leg_id: str, api_key: str = Depends(verify_api_key)):
    if not leg_manager.remove_leg(leg_id):
        raise HTTPException(status_code=404, detail=f"Leg '{leg_id}' not found")
    return {"message": f"Leg {leg_id} removed"}


# === Training ===

def _get_training(session_id: str) -> TrainingSession:
    session = training_manager.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Training session '{session_id}' not found")
    return session


@router.post("/v1/training")
async def start_training(request: StartTrainingRequest, api_key: str = Depends(verify_api_key)):
    """Start a training session on the given (or random) targets."""
    if request.targets:
        targets = [_parse_section(key) for key in request.targets]
    else:
        targets = random_targets(request.target_count)

    try:
        session = training_manager.create_session(
            request.user_id,
            targets,
            attempts_per_target=request.attempts_per_target,
            session_id=request.session_id,
        )
    except TrainingStateError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return session.get_state()


@router.get("/v1/training/{session_id}")
async def get_training(session_id: str, api_key: str = Depends(verify_api_key)):
    return _get_training(session_id).get_state()


@router.post("/v1/training/{session_id}/throws", response_model=TrainingThrowResponse)
async def training_throw(session_id: str, request: PointRequest, api_key: str = Depends(verify_api_key)):
    """Record an attempt at the session's current target."""
    session = _get_training(session_id)
    try:
        result = session.throw(ImpactPoint(request.x, request.y))
    except TrainingStateError as e:
        raise HTTPException(status_code=409, detail=str(e))

    next_target = session.current_target
    return TrainingThrowResponse(
        target=result.target.key,
        attempt=result.attempt,
        hit=result.hit,
        score=result.score,
        points_awarded=result.points_awarded,
        total_score=session.total_score,
        next_target=next_target.key if next_target else None,
        attempts_left=session.attempts_left,
        finished=session.finished,
    )


@router.post("/v1/training/{session_id}/undo")
async def training_undo(session_id: str, api_key: str = Depends(verify_api_key)):
    """Revert the last attempt, including its accuracy count."""
    session = _get_training(session_id)
    undone = session.undo_last_throw()
    state = session.get_state()
    state["undone"] = {
        "target": undone.target.key,
        "x": undone.point.x,
        "y": undone.point.y,
        "hit": undone.hit,
    } if undone else None
    return state


@router.post("/v1/training/{session_id}/end", response_model=SessionRecord)
async def end_training(
    session_id: str,
    notes: Optional[str] = None,
    api_key: str = Depends(verify_api_key)
):
    """Finish the session and save it as a training record for its user."""
    session = _get_training(session_id)
    session.end()
    record = session.to_record(notes)
    session_store.save(session.user_id, record)
    training_manager.remove_session(session_id)
    logger.info(f"[TRAINING] Saved {session_id} for {session.user_id} (score {record.total_score})")
    return record


# === Sessions ===

@router.put("/v1/users/{user_id}/sessions/{session_id}", response_model=SessionRecord)
async def save_session(
    user_id: str,
    session_id: str,
    record: SessionRecord,
    api_key: str = Depends(verify_api_key)
):
    if record.id != session_id:
        raise HTTPException(status_code=422, detail="Session id in body does not match URL")
    session_store.save(user_id, record)
    logger.info(f"[SESSIONS] Saved {session_id} for {user_id}")
    return record


@router.get("/v1/users/{user_id}/sessions", response_model=List[SessionRecord])
async def list_sessions(user_id: str, api_key: str = Depends(verify_api_key)):
    return session_store.list_for_user(user_id)


@router.get("/v1/users/{user_id}/sessions/{session_id}", response_model=SessionRecord)
async def get_session(user_id: str, session_id: str, api_key: str = Depends(verify_api_key)):
    record = session_store.get(user_id, session_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return record


@router.delete("/v1/users/{user_id}/sessions/{session_id}")
async def delete_session(user_id: str, session_id: str, api_key: str = Depends(verify_api_key)):
    if not session_store.delete(user_id, session_id):
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return {"message": f"Session {session_id} deleted"}


@router.post("/v1/users/{user_id}/sessions/load", response_model=LoadSessionsResponse)
async def load_sessions(user_id: str, api_key: str = Depends(verify_api_key)):
    """Refresh a user's sessions from the document store."""
    return LoadSessionsResponse(**session_store.load_from_api(user_id))


# === Analytics ===

@router.get("/v1/users/{user_id}/accuracy", response_model=RingAccuracyResponse)
async def user_accuracy(user_id: str, api_key: str = Depends(verify_api_key)):
    """All-time training accuracy by ring and by section."""
    ledger = session_store.ledger_for_user(user_id)
    summary = ring_accuracy(ledger)
    return RingAccuracyResponse(
        **asdict(summary),
        sections={
            key: {"attempts": entry.attempts, "hits": entry.hits, "accuracy": entry.accuracy}
            for key, entry in ledger.sections.items()
        },
    )


@router.get("/v1/users/{user_id}/tendencies")
async def user_tendencies(user_id: str, api_key: str = Depends(verify_api_key)):
    tendencies = analyze_shot_tendencies([session_store.ledger_for_user(user_id)])
    return {"user_id": user_id, "tendencies": [asdict(t) for t in tendencies]}


@router.get("/v1/users/{user_id}/stats")
async def user_stats(user_id: str, api_key: str = Depends(verify_api_key)):
    stats = compute_aggregate_stats(session_store.list_for_user(user_id))
    return {"user_id": user_id, **asdict(stats)}


@router.get("/v1/users/{user_id}/timeline/{section_key}")
async def user_timeline(user_id: str, section_key: str, api_key: str = Depends(verify_api_key)):
    """Per-session training accuracy for one section, oldest first."""
    _parse_section(section_key)
    points = accuracy_timeline(session_store.list_for_user(user_id), section_key)
    return {"user_id": user_id, "section": section_key, "timeline": [asdict(p) for p in points]}
