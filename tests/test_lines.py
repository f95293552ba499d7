import math

import pytest

from astromap.schemas import BirthProfile, LineSource, LineType, Planet, PlanetPosition, Sentiment
from astromap.services import ephem
from astromap.services.angles import angle_diff, wrap_lon
from astromap.services.classification import classify
from astromap.services.lines import (
    build_line_set,
    filter_lines,
    generate_lines,
    horizon_curve,
    lines_for_profile,
    mc_longitude,
    split_at_antimeridian,
)


def _pos(planet=Planet.VENUS, ra=100.0, dec=15.0):
    return PlanetPosition(planet=planet, lon=ra, lat=0.0, ra=ra, dec=dec)


def _chart():
    snap = ephem.snapshot_at_jd(ephem.to_jd_utc("1990-08-18", "14:32", tz="Asia/Kolkata"))
    return snap.positions, snap.gst


def test_mc_and_ic_are_exactly_opposite_for_every_body():
    positions, gst = _chart()
    lines = generate_lines(positions, gst, points_per_degree=1.0)
    by_key = {(l.planet, l.line_type): l for l in lines if l.line_type.is_meridian}
    for pos in positions:
        mc = by_key[(pos.planet, LineType.MC)]
        ic = by_key[(pos.planet, LineType.IC)]
        assert abs(angle_diff(mc.points[0][1], ic.points[0][1]) - 180.0) < 1e-9


def test_mc_line_sits_where_sidereal_time_meets_right_ascension():
    lines = generate_lines([_pos(ra=100.0)], gst=40.0, points_per_degree=1.0)
    mc = next(l for l in lines if l.line_type == LineType.MC)
    assert {lon for _, lon in mc.points} == {60.0}
    lats = [lat for lat, _ in mc.points]
    assert lats[0] == pytest.approx(-89.0)
    assert lats[-1] == pytest.approx(89.0)
    assert len(lats) == 179


def test_horizon_points_put_the_body_on_the_horizon():
    pos = _pos(ra=100.0, dec=15.0)
    mc = mc_longitude(pos.ra, 40.0)
    for line_type in (LineType.ASC, LineType.DSC):
        for lat, lon in horizon_curve(pos.ra, pos.dec, 40.0, line_type, 1.0):
            h = lon - mc
            altitude = math.sin(math.radians(lat)) * math.sin(math.radians(pos.dec)) + math.cos(
                math.radians(lat)
            ) * math.cos(math.radians(pos.dec)) * math.cos(math.radians(h))
            assert abs(altitude) < 1e-9
            # rising in the east of the meridian sweep
            if line_type == LineType.ASC:
                assert math.sin(math.radians(h)) <= 1e-9
            else:
                assert math.sin(math.radians(h)) >= -1e-9


def test_horizon_curves_only_exist_for_asc_and_dsc():
    with pytest.raises(ValueError):
        horizon_curve(100.0, 15.0, 40.0, LineType.MC)


def test_split_at_antimeridian():
    pts = [(0.0, 170.0), (1.0, 179.0), (2.0, -179.0), (3.0, -170.0)]
    assert split_at_antimeridian(pts) == [[(0.0, 170.0), (1.0, 179.0)], [(2.0, -179.0), (3.0, -170.0)]]


def test_split_drops_single_point_fragments():
    assert split_at_antimeridian([(0.0, 170.0), (1.0, -179.0), (2.0, 179.0)]) == []


def test_generated_segments_never_jump_the_antimeridian():
    positions, gst = _chart()
    for line in generate_lines(positions, gst):
        assert len(line.points) >= 2
        for (_, a), (_, b) in zip(line.points, line.points[1:]):
            assert abs(a - b) <= 180.0


def test_body_at_celestial_pole_gets_meridians_only():
    lines = generate_lines([_pos(dec=90.0)], gst=0.0)
    assert sorted(l.line_type.value for l in lines) == ["IC", "MC"]


def test_equatorial_body_horizon_lines_are_meridians():
    lines = generate_lines([_pos(ra=100.0, dec=0.0)], gst=40.0)
    asc = [l for l in lines if l.line_type == LineType.ASC]
    dsc = [l for l in lines if l.line_type == LineType.DSC]
    assert {lon for l in asc for _, lon in l.points} == {wrap_lon(60.0 - 90.0)}
    assert {lon for l in dsc for _, lon in l.points} == {wrap_lon(60.0 + 90.0)}


def test_line_ids_are_unique_and_carry_source():
    positions, gst = _chart()
    lines = generate_lines(positions, gst, source=LineSource.PARTNER)
    ids = [l.id for l in lines]
    assert len(ids) == len(set(ids))
    assert all("-partner" in i for i in ids)
    assert all(l.source == LineSource.PARTNER for l in lines)


def test_lines_carry_strength_and_sentiment():
    positions, gst = _chart()
    for line in generate_lines(positions, gst):
        assert 0.0 < line.strength <= 1.0
        assert line.sentiment == classify(line.planet, line.line_type).sentiment
        assert line.overlap is None


def test_points_per_degree_must_be_positive():
    with pytest.raises(ValueError):
        generate_lines([_pos()], gst=0.0, points_per_degree=0.0)


def test_line_set_filters_visibility_only():
    positions, gst = _chart()
    lines = generate_lines(positions, gst)
    line_set = build_line_set(lines, include_minor=False, hidden_planets=[Planet.SUN])
    assert line_set.all_lines == lines
    assert all(not l.planet.is_minor for l in line_set.visible_lines)
    assert all(l.planet != Planet.SUN for l in line_set.visible_lines)
    assert any(l.planet.is_minor for l in line_set.all_lines)


def test_keyword_filter_finds_love_lines():
    positions, gst = _chart()
    visible = filter_lines(generate_lines(positions, gst), keyword="love")
    keys = {(l.planet, l.line_type) for l in visible}
    assert (Planet.VENUS, LineType.ASC) in keys
    assert (Planet.SATURN, LineType.MC) not in keys


def test_line_type_and_source_filters():
    positions, gst = _chart()
    lines = generate_lines(positions, gst)
    only_mc = filter_lines(lines, line_types=[LineType.MC])
    assert only_mc and all(l.line_type == LineType.MC for l in only_mc)
    assert filter_lines(lines, sources=[LineSource.PARTNER]) == []


def test_lines_for_profile_respects_minor_body_switch():
    profile = BirthProfile(date="1990-08-18", time="14:32", lat=17.385, lon=78.4867, tz="Asia/Kolkata")
    classical = lines_for_profile(profile, include_minor=False)
    assert {l.planet for l in classical} == {p for p in Planet if not p.is_minor}
    full = lines_for_profile(profile, include_minor=True)
    assert Planet.CHIRON in {l.planet for l in full}
    assert any(l.sentiment == Sentiment.POSITIVE for l in classical)
