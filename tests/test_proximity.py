import pytest

from astromap.schemas import AstroLine, City, Influence, LineType, Planet, Sentiment, SideOfLine
from astromap.services import ephem
from astromap.services.lines import generate_lines, mc_longitude
from astromap.services.proximity import (
    LineIndex,
    distance_to_line,
    filter_by_impact,
    influence_for_distance,
    nearest_lines,
    scan_hotspots,
    side_of_line,
)


def _meridian(lon, planet=Planet.VENUS, line_type=LineType.MC, segment=None):
    ident = f"{planet.value}-{line_type.value}-own" + ("" if segment is None else f"-{segment}")
    return AstroLine(
        id=ident,
        planet=planet,
        line_type=line_type,
        points=tuple((float(lat), lon) for lat in range(-80, 81, 10)),
        sentiment=Sentiment.POSITIVE,
    )


def test_point_on_line_is_zero_and_very_strong():
    [hit] = nearest_lines([_meridian(10.0)], 45.0, 10.0)
    assert hit.distance == 0.0
    assert hit.influence == Influence.VERY_STRONG
    assert hit.side == SideOfLine.ON


def test_point_on_generated_mc_line():
    jd = ephem.to_jd_utc("2000-01-01", "12:00")
    snap = ephem.snapshot_at_jd(jd, bodies=[Planet.SUN])
    sun = snap.positions[0]
    lines = generate_lines(snap.positions, snap.gst)
    mc = mc_longitude(sun.ra, snap.gst)
    results = nearest_lines(lines, 0.0, mc)
    assert results[0].line.line_type == LineType.MC
    assert results[0].distance == 0.0
    assert results[0].influence == Influence.VERY_STRONG


def test_side_of_line():
    line = _meridian(10.0)
    east = nearest_lines([line], 20.0, 13.0)[0]
    west = nearest_lines([line], 20.0, 7.0)[0]
    assert east.distance == pytest.approx(3.0)
    assert east.side == SideOfLine.EAST
    assert west.side == SideOfLine.WEST


def test_distance_wraps_the_antimeridian():
    assert distance_to_line(_meridian(179.5), 0.0, -179.5) == pytest.approx(1.0)
    assert distance_to_line(_meridian(-179.5), 0.0, 179.5) == pytest.approx(1.0)


def test_results_sorted_ascending_and_capped():
    lines = [
        _meridian(30.0, Planet.MARS),
        _meridian(10.0, Planet.VENUS),
        _meridian(20.0, Planet.SUN),
    ]
    results = nearest_lines(lines, 0.0, 12.0)
    assert [r.line.planet for r in results] == [Planet.VENUS, Planet.SUN, Planet.MARS]
    distances = [r.distance for r in results]
    assert distances == sorted(distances)
    assert [r.influence for r in results] == [Influence.STRONG, Influence.MODERATE, Influence.WEAK]
    assert len(nearest_lines(lines, 0.0, 12.0, max_results=1)) == 1
    assert len(nearest_lines(lines, 0.0, 12.0, max_distance=9.0)) == 2


def test_segments_of_one_curve_report_once():
    lines = [
        _meridian(10.0, line_type=LineType.ASC, segment=0),
        _meridian(40.0, line_type=LineType.ASC, segment=1),
    ]
    [hit] = nearest_lines(lines, 0.0, 38.0)
    assert hit.line.id.endswith("-1")
    assert hit.distance == pytest.approx(2.0)


@pytest.mark.parametrize(
    "distance,band",
    [
        (0.0, Influence.VERY_STRONG),
        (1.99, Influence.VERY_STRONG),
        (2.0, Influence.STRONG),
        (4.99, Influence.STRONG),
        (5.0, Influence.MODERATE),
        (9.99, Influence.MODERATE),
        (10.0, Influence.WEAK),
    ],
)
def test_influence_bands(distance, band):
    assert influence_for_distance(distance) == band


def test_filter_by_impact_hides_weak_only():
    results = nearest_lines([_meridian(10.0), _meridian(40.0, Planet.MARS)], 0.0, 12.0)
    assert len(filter_by_impact(results, hide_mild=False)) == 2
    kept = filter_by_impact(results, hide_mild=True)
    assert [r.line.planet for r in kept] == [Planet.VENUS]


def test_invalid_point_is_rejected():
    with pytest.raises(ValueError):
        nearest_lines([_meridian(10.0)], 95.0, 0.0)
    with pytest.raises(ValueError):
        nearest_lines([_meridian(10.0)], float("nan"), 0.0)


def test_empty_index_returns_nothing():
    index = LineIndex([])
    assert len(index) == 0
    assert index.nearest(0.0, 0.0) == []


def test_scan_hotspots_keeps_cities_near_lines():
    cities = [
        City(name="Near", country="Testland", lat=0.0, lon=10.5),
        City(name="Far", country="Testland", lat=0.0, lon=60.0),
        City(name="Closer", country="Testland", lat=10.0, lon=10.1),
    ]
    hotspots = scan_hotspots([_meridian(10.0)], cities)
    assert [h.city.name for h in hotspots] == ["Closer", "Near"]
    assert hotspots[0].closest.influence == Influence.VERY_STRONG


def test_side_of_line_for_a_single_line():
    line = _meridian(-120.0)
    assert side_of_line(line, 30.0, -118.0) == SideOfLine.EAST
    assert side_of_line(line, 30.0, -125.0) == SideOfLine.WEST
    assert side_of_line(line, 30.0, -120.1) == SideOfLine.ON


def test_zero_or_negative_max_results_returns_nothing():
    lines = [_meridian(10.0), _meridian(20.0, planet=Planet.MARS)]
    assert nearest_lines(lines, 0.0, 12.0, max_results=0) == []
    assert nearest_lines(lines, 0.0, 12.0, max_results=-3) == []
    assert len(nearest_lines(lines, 0.0, 12.0, max_results=1)) == 1


def test_vertex_of_generated_asc_curve_is_on_the_line():
    jd = ephem.to_jd_utc("1985-03-10", "14:30", tz="America/New_York")
    snap = ephem.snapshot_at_jd(jd, bodies=[Planet.VENUS, Planet.MARS, Planet.JUPITER])
    lines = generate_lines(snap.positions, snap.gst)
    asc = next(l for l in lines if l.planet == Planet.VENUS and l.line_type == LineType.ASC)
    lat, lon = asc.points[len(asc.points) // 2]

    results = nearest_lines(lines, lat, lon, max_results=None)
    hit = next(r for r in results if r.line.planet == Planet.VENUS and r.line.line_type == LineType.ASC)
    assert hit.distance == 0.0
    assert hit.influence == Influence.VERY_STRONG
    assert hit.side == SideOfLine.ON
    assert distance_to_line(asc, lat, lon) == 0.0
