"""Pytest configuration for dart practice tests."""
import math
import os
import sys

import pytest

# Add project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dartpractice.core.geometry import ImpactPoint, segment_center_angle  # noqa: E402
from dartpractice.core.leg_tracker import leg_manager  # noqa: E402
from dartpractice.core.storage import session_store  # noqa: E402
from dartpractice.core.training import training_manager  # noqa: E402


def point_at(segment: int, radius: float) -> ImpactPoint:
    """Point at the centre angle of a segment, `radius` from the bullseye."""
    angle = math.radians(segment_center_angle(segment))
    return ImpactPoint(math.sin(angle) * radius, -math.cos(angle) * radius)


def _reset_stores():
    session_store.clear()
    for leg in leg_manager.list_legs():
        leg_manager.remove_leg(leg["leg_id"])
    for session in training_manager.list_sessions():
        training_manager.remove_session(session["session_id"])


@pytest.fixture
def clean_state():
    """Empty global stores before and after a test."""
    _reset_stores()
    yield
    _reset_stores()
