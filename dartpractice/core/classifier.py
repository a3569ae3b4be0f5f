"""
Region classifier - did a dart land in the section that was aimed at?

This is a region-equality test, not a score comparison: a single 20 and a
double 10 both score 20 but only one of them hits "double-10".
"""
from dartpractice.core.geometry import (
    BULLSEYE_RADIUS,
    OUTER_BULL_RADIUS,
    DOUBLE_OUTER_RADIUS,
    DartboardSection,
    ImpactPoint,
    SectionType,
    board_angle,
    get_segment_from_angle,
    in_double_band,
    in_triple_band,
)


def is_hit(point: ImpactPoint, target: DartboardSection) -> bool:
    """
    Check whether an impact point lies inside the target section.

    Args:
        point: Impact point in board-radius units
        target: Section the player aimed at

    Returns:
        True if the point is inside the target's ring band and segment
    """
    if not point.is_finite:
        return False

    distance = point.distance

    if target.type == SectionType.BULLSEYE:
        return distance <= BULLSEYE_RADIUS
    if target.type == SectionType.OUTER_BULL:
        return BULLSEYE_RADIUS < distance <= OUTER_BULL_RADIUS

    # Segment targets: off-board and bull hits never count
    if distance > DOUBLE_OUTER_RADIUS or distance <= OUTER_BULL_RADIUS:
        return False

    if get_segment_from_angle(board_angle(point)) != target.number:
        return False

    if target.type == SectionType.TRIPLE:
        return in_triple_band(distance)
    if target.type == SectionType.DOUBLE:
        return in_double_band(distance)
    return not in_triple_band(distance) and not in_double_band(distance)
