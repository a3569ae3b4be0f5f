"""
Dartboard Geometry Constants

Board dimensions in normalized board-radius units (the double ring's outer
edge is 1.0). Coordinates are screen-oriented: +x right, +y down, origin at
the bullseye. Every scoring or classification routine reads its radii and
segment layout from here.
"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple, Union

# Segment order clockwise from top (20 at 12 o'clock)
DARTBOARD_SEGMENTS: List[int] = [
    20, 1, 18, 4, 13, 6, 10, 15, 2, 17,
    3, 19, 7, 16, 8, 11, 14, 9, 12, 5
]

# Radii as a fraction of the board radius
BULLSEYE_RADIUS = 0.05        # Inner bull (50 points)
OUTER_BULL_RADIUS = 0.12      # Outer bull (25 points)
TRIPLE_INNER_RADIUS = 0.55    # Inner edge of triple ring
TRIPLE_OUTER_RADIUS = 0.62    # Outer edge of triple ring
DOUBLE_INNER_RADIUS = 0.93    # Inner edge of double ring
DOUBLE_OUTER_RADIUS = 1.0     # Outer edge of double ring (board edge)

# Degrees per segment (360 / 20) and the half-width that centres segment 20 on 12 o'clock
DEGREES_PER_SEGMENT = 18.0
SEGMENT_HALF_WIDTH = 9.0

# Screen angle of 12 o'clock is -90 degrees; adding this rotates it to 0
TOP_ANGLE_OFFSET = 90.0

# Display units per board radius (used for distance/precision statistics)
TARGET_RADIUS_UNITS = 10

# Darts thrown per turn
DARTS_PER_TURN = 3

BULLSEYE_SCORE = 50
OUTER_BULL_SCORE = 25


@dataclass(frozen=True)
class ImpactPoint:
    """A single dart impact in board-radius units."""
    x: float
    y: float

    @property
    def distance(self) -> float:
        return math.sqrt(self.x ** 2 + self.y ** 2)

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)


class SectionType(str, Enum):
    SINGLE = "single"
    DOUBLE = "double"
    TRIPLE = "triple"
    BULLSEYE = "bullseye"
    OUTER_BULL = "outer-bull"


RING_MULTIPLIERS = {
    SectionType.SINGLE: 1,
    SectionType.DOUBLE: 2,
    SectionType.TRIPLE: 3,
}


@dataclass(frozen=True)
class DartboardSection:
    """
    A scoreable region of the board.

    `number` is the segment face value (1-20) for single/double/triple,
    50 for the bullseye and 25 for the outer bull.
    """
    type: SectionType
    number: int

    @property
    def key(self) -> str:
        return f"{self.type.value}-{self.number}"

    @property
    def multiplier(self) -> int:
        return RING_MULTIPLIERS.get(self.type, 1)

    @property
    def score(self) -> int:
        if self.type in (SectionType.BULLSEYE, SectionType.OUTER_BULL):
            return self.number
        return self.number * self.multiplier

    @property
    def is_bull(self) -> bool:
        return self.type in (SectionType.BULLSEYE, SectionType.OUTER_BULL)

    @property
    def display_name(self) -> str:
        if self.type == SectionType.BULLSEYE:
            return "Bullseye"
        if self.type == SectionType.OUTER_BULL:
            return "Outer Bull (25)"
        return f"{self.type.value.capitalize()} {self.number}"

    @classmethod
    def from_key(cls, key: str) -> "DartboardSection":
        """
        Parse a section key such as "triple-20" or "outer-bull-25".

        Raises:
            ValueError: if the key does not name one of the 62 board sections
        """
        section = _SECTIONS_BY_KEY.get(key)
        if section is None:
            raise ValueError(f"Unknown dartboard section: {key!r}")
        return section


@dataclass(frozen=True)
class Miss:
    """Off-board outcome (distance > 1)."""
    key: str = "miss-0"
    score: int = 0
    display_name: str = "Miss (Outside Board)"


MISS = Miss()

BoardRegion = Union[DartboardSection, Miss]

BULLSEYE = DartboardSection(SectionType.BULLSEYE, BULLSEYE_SCORE)
OUTER_BULL = DartboardSection(SectionType.OUTER_BULL, OUTER_BULL_SCORE)


def _build_sections() -> Tuple[DartboardSection, ...]:
    sections = []
    for segment in DARTBOARD_SEGMENTS:
        sections.append(DartboardSection(SectionType.SINGLE, segment))
        sections.append(DartboardSection(SectionType.DOUBLE, segment))
        sections.append(DartboardSection(SectionType.TRIPLE, segment))
    sections.append(BULLSEYE)
    sections.append(OUTER_BULL)
    return tuple(sections)


# All 62 sections: per segment (clockwise from 20) single, double, triple; then the bulls
ALL_SECTIONS: Tuple[DartboardSection, ...] = _build_sections()

_SECTIONS_BY_KEY = {section.key: section for section in ALL_SECTIONS}


def board_angle(point: ImpactPoint) -> float:
    """
    Angle of a point in degrees, clockwise from 12 o'clock, in [0, 360).
    """
    angle = math.degrees(math.atan2(point.y, point.x))
    return (angle + TOP_ANGLE_OFFSET + 360.0) % 360.0


def get_segment_from_angle(angle_degrees: float) -> int:
    """
    Get the segment number for a board angle.

    Args:
        angle_degrees: Angle clockwise from 12 o'clock, as returned by board_angle

    Returns:
        Segment number (1-20)
    """
    segment_index = int(((angle_degrees + SEGMENT_HALF_WIDTH) % 360.0) // DEGREES_PER_SEGMENT)
    return DARTBOARD_SEGMENTS[segment_index % len(DARTBOARD_SEGMENTS)]


def segment_center_angle(segment: int) -> float:
    """Board angle (degrees clockwise from top) at the centre of a segment."""
    return DARTBOARD_SEGMENTS.index(segment) * DEGREES_PER_SEGMENT


def in_triple_band(distance: float) -> bool:
    return TRIPLE_INNER_RADIUS <= distance <= TRIPLE_OUTER_RADIUS


def in_double_band(distance: float) -> bool:
    return DOUBLE_INNER_RADIUS <= distance <= DOUBLE_OUTER_RADIUS


def get_ring_from_distance(distance: float) -> Union[SectionType, Miss]:
    """
    Get the ring a distance from the centre falls in.

    Bull rings are tested first, then triple, then double; anything left on
    the board is single.
    """
    if not math.isfinite(distance) or distance > DOUBLE_OUTER_RADIUS:
        return MISS
    if distance <= BULLSEYE_RADIUS:
        return SectionType.BULLSEYE
    if distance <= OUTER_BULL_RADIUS:
        return SectionType.OUTER_BULL
    if in_triple_band(distance):
        return SectionType.TRIPLE
    if in_double_band(distance):
        return SectionType.DOUBLE
    return SectionType.SINGLE
