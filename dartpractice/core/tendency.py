"""
Shot tendency analysis.

For each practiced section: how often it was hit, which way the misses
drift from the aim point, and where the misses most often landed.
"""
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

import numpy as np

from dartpractice.core.geometry import DartboardSection, ImpactPoint, segment_center_angle
from dartpractice.core.ledger import AccuracyLedger
from dartpractice.core.scoring import section_for_point

# Sections with fewer attempts than this are not analyzed
MIN_ATTEMPTS = 3

# Misses within this offset of the aim point on an axis don't count as drift
BIAS_DEAD_ZONE = 0.05

COMMON_MISS_LIMIT = 3

# Nominal aim radius per ring (middle of the band)
AIM_RADIUS = {
    "triple": 0.585,
    "double": 0.965,
    "single": 0.75,
}


@dataclass
class DirectionalBias:
    too_high: int = 0
    too_low: int = 0
    too_left: int = 0
    too_right: int = 0


@dataclass
class CommonMiss:
    section: str
    display_name: str
    count: int
    percentage: float


@dataclass
class ShotTendency:
    target_section: str
    target_display_name: str
    attempts: int
    hits: int
    hit_rate: float  # percent
    directional_bias: DirectionalBias
    common_misses: List[CommonMiss] = field(default_factory=list)


def aim_point(section: DartboardSection) -> Tuple[float, float]:
    """Where a player aiming at `section` is expected to aim (screen coordinates)."""
    if section.is_bull:
        return 0.0, 0.0

    radius = AIM_RADIUS[section.type.value]
    # Centre of the segment, not its leading edge (index * 18 - 9)
    angle = math.radians(segment_center_angle(section.number))
    return math.sin(angle) * radius, -math.cos(angle) * radius


def directional_bias(section: DartboardSection, missed_shots: List[ImpactPoint]) -> DirectionalBias:
    """
    Count misses that landed above/below/left/right of the aim point.

    Screen coordinates: a smaller y is higher on the board.
    """
    if not missed_shots:
        return DirectionalBias()

    target_x, target_y = aim_point(section)
    points = np.array([[p.x, p.y] for p in missed_shots], dtype=np.float64)
    dx = points[:, 0] - target_x
    dy = points[:, 1] - target_y

    return DirectionalBias(
        too_high=int(np.count_nonzero(dy < -BIAS_DEAD_ZONE)),
        too_low=int(np.count_nonzero(dy > BIAS_DEAD_ZONE)),
        too_left=int(np.count_nonzero(dx < -BIAS_DEAD_ZONE)),
        too_right=int(np.count_nonzero(dx > BIAS_DEAD_ZONE)),
    )


def common_misses(missed_shots: List[ImpactPoint], limit: int = COMMON_MISS_LIMIT) -> List[CommonMiss]:
    """Most frequent landing regions among misses, with share of all misses."""
    if not missed_shots:
        return []

    regions = [section_for_point(p) for p in missed_shots]
    names: Dict[str, str] = {region.key: region.display_name for region in regions}
    counts = Counter(region.key for region in regions)

    return [
        CommonMiss(
            section=key,
            display_name=names[key],
            count=count,
            percentage=count / len(missed_shots) * 100,
        )
        for key, count in counts.most_common(limit)
    ]


def analyze_shot_tendencies(ledgers: Iterable[AccuracyLedger]) -> List[ShotTendency]:
    """
    Analyze every practiced section across the given ledgers.

    Returns:
        Tendencies sorted by attempts, most practiced first
    """
    merged = AccuracyLedger.merge(ledgers)
    tendencies = []

    for key, entry in merged.sections.items():
        if entry.attempts < MIN_ATTEMPTS:
            continue
        try:
            section = DartboardSection.from_key(key)
        except ValueError:
            continue

        tendencies.append(ShotTendency(
            target_section=key,
            target_display_name=section.display_name,
            attempts=entry.attempts,
            hits=entry.hits,
            hit_rate=entry.hits / entry.attempts * 100,
            directional_bias=directional_bias(section, entry.missed_shots),
            common_misses=common_misses(entry.missed_shots),
        ))

    tendencies.sort(key=lambda t: t.attempts, reverse=True)
    return tendencies
