"""Tests for hit detection against an aimed-at section."""
from conftest import point_at
from dartpractice.core.classifier import is_hit
from dartpractice.core.geometry import ALL_SECTIONS, BULLSEYE, OUTER_BULL, DartboardSection, ImpactPoint
from dartpractice.core.scoring import section_for_point


def section(key):
    return DartboardSection.from_key(key)


def test_triple_twenty_hit():
    point = ImpactPoint(0, -0.58)
    assert is_hit(point, section("triple-20"))
    assert not is_hit(point, section("single-20"))
    assert not is_hit(point, section("double-20"))
    assert not is_hit(point, section("triple-1"))


def test_same_score_different_region_is_a_miss():
    # Single 20 scores the same as double 10 but is not a hit on it
    point = ImpactPoint(0, -0.3)
    assert is_hit(point, section("single-20"))
    assert not is_hit(point, section("double-10"))


def test_bull_targets():
    assert is_hit(ImpactPoint(0, 0.02), BULLSEYE)
    assert not is_hit(ImpactPoint(0, 0.02), OUTER_BULL)
    assert is_hit(ImpactPoint(0.09, 0), OUTER_BULL)
    assert not is_hit(ImpactPoint(0.09, 0), BULLSEYE)
    assert not is_hit(ImpactPoint(0, -0.3), BULLSEYE)


def test_bull_region_never_hits_a_segment():
    for point in (ImpactPoint(0, -0.02), ImpactPoint(0, -0.1)):
        assert not is_hit(point, section("single-20"))


def test_off_board_never_hits():
    point = ImpactPoint(0, -1.05)
    assert not any(is_hit(point, s) for s in ALL_SECTIONS)


def test_non_finite_never_hits():
    point = ImpactPoint(float("nan"), float("nan"))
    assert not any(is_hit(point, s) for s in ALL_SECTIONS)


def test_double_sixteen():
    assert is_hit(point_at(16, 0.965), section("double-16"))
    assert not is_hit(point_at(16, 0.965), section("double-8"))


def test_is_hit_matches_section_for_point():
    """is_hit(p, t) holds exactly when p lands in t."""
    steps = 25
    for i in range(steps):
        for j in range(steps):
            point = ImpactPoint(-1.05 + 2.1 * i / (steps - 1), -1.05 + 2.1 * j / (steps - 1))
            landed = section_for_point(point)
            for target in ALL_SECTIONS:
                assert is_hit(point, target) == (landed == target), (point, target.key)
