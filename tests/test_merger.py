import pytest

from astromap.schemas import ChartSnapshot, LineSource, Planet, PlanetPosition
from astromap.services import ephem
from astromap.services.lines import generate_lines
from astromap.services.merger import composite, composite_position, composite_snapshot, synastry_pair


def _pos(planet, lon, ra=None, dec=0.0):
    return PlanetPosition(planet=planet, lon=lon, lat=0.0, ra=lon if ra is None else ra, dec=dec, distance=1.0, speed=1.0)


def test_composite_of_identical_charts_is_the_chart():
    snap = ephem.snapshot_at_jd(ephem.to_jd_utc("1990-08-18", "14:32", tz="Asia/Kolkata"))
    merged, gst = composite(snap.positions, snap.gst, snap.positions, snap.gst)
    assert gst == pytest.approx(snap.gst)
    for a, b in zip(merged, snap.positions):
        assert a.planet == b.planet
        assert a.lon == pytest.approx(b.lon)
        assert a.ra == pytest.approx(b.ra)
        assert a.dec == pytest.approx(b.dec)
        assert a.distance == b.distance or a.distance == pytest.approx(b.distance)


def test_composite_uses_shorter_arc():
    merged = composite_position(_pos(Planet.SUN, 359.0), _pos(Planet.SUN, 1.0))
    assert merged.lon == pytest.approx(0.0)
    assert merged.ra == pytest.approx(0.0)
    _, gst = composite([], 350.0, [], 10.0)
    assert gst == pytest.approx(0.0)


def test_composite_averages_declination_and_distance():
    a = _pos(Planet.MARS, 10.0, dec=10.0)
    b = PlanetPosition(planet=Planet.MARS, lon=30.0, lat=2.0, ra=30.0, dec=20.0, distance=3.0, speed=-1.0)
    merged = composite_position(a, b)
    assert merged.dec == pytest.approx(15.0)
    assert merged.lat == pytest.approx(1.0)
    assert merged.distance == pytest.approx(2.0)
    assert merged.speed == pytest.approx(0.0)


def test_composite_position_needs_same_body():
    with pytest.raises(ValueError):
        composite_position(_pos(Planet.SUN, 0.0), _pos(Planet.MOON, 0.0))


def test_bodies_missing_from_one_chart_are_dropped():
    merged, _ = composite(
        [_pos(Planet.SUN, 10.0), _pos(Planet.MOON, 20.0)], 0.0,
        [_pos(Planet.SUN, 30.0)], 0.0,
    )
    assert [p.planet for p in merged] == [Planet.SUN]
    assert merged[0].lon == pytest.approx(20.0)


def test_composite_snapshot():
    snap = ChartSnapshot(positions=[_pos(Planet.SUN, 100.0)], gst=20.0)
    other = ChartSnapshot(positions=[_pos(Planet.SUN, 120.0)], gst=40.0)
    merged = composite_snapshot(snap, other)
    assert merged.gst == pytest.approx(30.0)
    assert merged.positions[0].lon == pytest.approx(110.0)


def test_synastry_pair_tags_both_charts():
    lines_a = generate_lines([_pos(Planet.VENUS, 100.0, dec=10.0)], 0.0)
    lines_b = generate_lines([_pos(Planet.VENUS, 200.0, dec=-5.0)], 0.0)
    paired = synastry_pair(lines_a, lines_b)
    assert len(paired) == len(lines_a) + len(lines_b)
    own = [l for l in paired if l.source == LineSource.OWN]
    partner = [l for l in paired if l.source == LineSource.PARTNER]
    assert [l.points for l in own] == [l.points for l in lines_a]
    assert [l.points for l in partner] == [l.points for l in lines_b]
    assert all(l.id.startswith("venus-") and "-partner" in l.id for l in partner)
    assert len({l.id for l in paired}) == len(paired)
