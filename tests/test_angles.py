import pytest

from astromap.services.angles import (
    angle_diff,
    normalize,
    opposite_meridian,
    shorter_arc_midpoint,
    wrap_lon,
)


def test_normalize_wraps_into_half_open_circle():
    assert normalize(-30.0) == 330.0
    assert normalize(360.0) == 0.0
    assert normalize(725.0) == 5.0


def test_wrap_lon_uses_geographic_range():
    assert wrap_lon(190.0) == -170.0
    assert wrap_lon(180.0) == -180.0
    assert wrap_lon(-181.0) == 179.0


def test_angle_diff_takes_the_short_way_round():
    assert angle_diff(350.0, 10.0) == pytest.approx(20.0)
    assert angle_diff(10.0, 190.0) == pytest.approx(180.0)


def test_opposite_meridian_is_exactly_half_a_turn():
    assert opposite_meridian(30.0) == -150.0
    assert opposite_meridian(-30.0) == 150.0
    assert opposite_meridian(0.0) == -180.0


def test_midpoint_across_aries_point_is_zero_not_one_eighty():
    assert shorter_arc_midpoint(359.0, 1.0) == pytest.approx(0.0)
    assert shorter_arc_midpoint(1.0, 359.0) == pytest.approx(0.0)
    assert shorter_arc_midpoint(10.0, 20.0) == pytest.approx(15.0)
