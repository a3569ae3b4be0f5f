"""
Scoring module for dart practice.

Turns a normalized impact point into a dartboard score and into the symbolic
region (section) it landed in. Both answers come from the same ring and
segment helpers in geometry, so they can never disagree for a point.
"""
from typing import Dict, Any

from dartpractice.core.geometry import (
    BULLSEYE_SCORE,
    OUTER_BULL_SCORE,
    MISS,
    BoardRegion,
    DartboardSection,
    ImpactPoint,
    SectionType,
    RING_MULTIPLIERS,
    board_angle,
    get_ring_from_distance,
    get_segment_from_angle,
)


class ScoringSystem:
    """
    Calculate dart scores from positions in board-radius coordinates.
    """

    def score_for_point(self, point: ImpactPoint) -> int:
        """
        Calculate the score for a dart.

        Args:
            point: Impact point, board radius = 1.0

        Returns:
            Points scored (0 for a miss)
        """
        ring = get_ring_from_distance(point.distance)

        if ring is MISS:
            return 0
        if ring == SectionType.BULLSEYE:
            return BULLSEYE_SCORE
        if ring == SectionType.OUTER_BULL:
            return OUTER_BULL_SCORE

        segment = get_segment_from_angle(board_angle(point))
        return segment * RING_MULTIPLIERS[ring]

    def section_for_point(self, point: ImpactPoint) -> BoardRegion:
        """
        Identify the section a dart landed in.

        Returns:
            The DartboardSection, or MISS when the point is off the board
        """
        ring = get_ring_from_distance(point.distance)

        if ring is MISS:
            return MISS
        if ring == SectionType.BULLSEYE:
            return DartboardSection(SectionType.BULLSEYE, BULLSEYE_SCORE)
        if ring == SectionType.OUTER_BULL:
            return DartboardSection(SectionType.OUTER_BULL, OUTER_BULL_SCORE)

        segment = get_segment_from_angle(board_angle(point))
        return DartboardSection(ring, segment)

    def score_details(self, point: ImpactPoint) -> Dict[str, Any]:
        """
        Score plus the region breakdown, for API responses.

        Returns:
            Dictionary with score, section key, type, number and display name
        """
        region = self.section_for_point(point)
        score = self.score_for_point(point)

        if region is MISS:
            return {
                "score": score,
                "section": region.key,
                "type": "miss",
                "number": 0,
                "multiplier": 0,
                "display_name": region.display_name,
            }

        return {
            "score": score,
            "section": region.key,
            "type": region.type.value,
            "number": region.number,
            "multiplier": region.multiplier,
            "display_name": region.display_name,
        }


# Global instance
scoring_system = ScoringSystem()


def score_for_point(point: ImpactPoint) -> int:
    return scoring_system.score_for_point(point)


def section_for_point(point: ImpactPoint) -> BoardRegion:
    return scoring_system.section_for_point(point)
