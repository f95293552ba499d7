import itertools

import pytest

from astromap.schemas import (
    AstroLine,
    BirthProfile,
    City,
    LineSource,
    LineType,
    NatalCondition,
    OverlapClass,
    Planet,
    Sentiment,
)
from astromap.services import ephem
from astromap.services.dignities import PlanetCondition
from astromap.services.lines import generate_lines
from astromap.services.merger import synastry_pair
from astromap.services.overlaps import (
    apply_natal_conditions,
    classify_overlap,
    generate_bond_summary,
    line_proximity,
    proximity_band,
    shifted_sentiment,
    tag_overlaps,
)

P, D, N = Sentiment.POSITIVE, Sentiment.DIFFICULT, Sentiment.NEUTRAL


def _mc(lon, sentiment, source=LineSource.OWN, planet=Planet.VENUS):
    return AstroLine(
        id=f"{planet.value}-MC-{source.value}",
        planet=planet,
        line_type=LineType.MC,
        points=tuple((float(lat), lon) for lat in range(-80, 81, 10)),
        source=source,
        sentiment=sentiment,
    )


@pytest.mark.parametrize(
    "a,b,proximity,expected",
    [
        (P, P, 0.5, OverlapClass.HARMONIOUS),
        (P, P, 4.0, OverlapClass.HARMONIOUS),
        (P, P, 8.0, OverlapClass.SLIGHTLY_POSITIVE),
        (D, D, 1.0, OverlapClass.HARMONIOUS),
        (D, D, 3.0, OverlapClass.CHALLENGING),
        (D, D, 10.0, OverlapClass.SLIGHTLY_CHALLENGING),
        (N, N, 0.0, OverlapClass.HARMONIOUS),
        (N, N, 5.0, OverlapClass.NEUTRAL_OVERLAP),
        (N, N, 9.0, OverlapClass.NEUTRAL_OVERLAP),
        (P, D, 0.2, OverlapClass.TENSION),
        (P, D, 4.9, OverlapClass.TENSION),
        (P, D, 7.0, OverlapClass.NEUTRAL_OVERLAP),
        (P, N, 1.0, OverlapClass.SLIGHTLY_POSITIVE),
        (P, N, 5.0, OverlapClass.SLIGHTLY_POSITIVE),
        (P, N, 6.0, OverlapClass.NEUTRAL_OVERLAP),
        (D, N, 0.0, OverlapClass.SLIGHTLY_CHALLENGING),
        (D, N, 2.5, OverlapClass.SLIGHTLY_CHALLENGING),
        (D, N, 9.5, OverlapClass.NEUTRAL_OVERLAP),
    ],
)
def test_decision_table(a, b, proximity, expected):
    assert classify_overlap(a, b, proximity) == expected


def test_classification_is_symmetric():
    for a, b in itertools.product(Sentiment, repeat=2):
        for proximity in (0.0, 1.0, 3.0, 5.0, 7.5, 10.0, 12.0):
            assert classify_overlap(a, b, proximity) == classify_overlap(b, a, proximity)


def test_no_overlap_beyond_ten_degrees():
    assert proximity_band(10.0) == 2
    assert proximity_band(10.01) is None
    assert classify_overlap(P, P, 10.01) is None


def test_meridian_proximity_wraps():
    a = _mc(179.0, P)
    b = _mc(-178.0, P, LineSource.PARTNER)
    assert line_proximity([a], [b]) == pytest.approx(3.0)
    assert line_proximity([], [b]) == float("inf")


def test_tag_overlaps_annotates_both_charts():
    lines = [_mc(10.0, P), _mc(13.0, D, LineSource.PARTNER), _mc(100.0, N, planet=Planet.MARS)]
    report = tag_overlaps(lines)
    [overlap] = report.overlaps
    assert overlap.planet == Planet.VENUS
    assert overlap.classification == OverlapClass.TENSION
    assert overlap.proximity_deg == pytest.approx(3.0)
    tagged = [l for l in report.lines if l.overlap is not None]
    assert {l.source for l in tagged} == {LineSource.OWN, LineSource.PARTNER}
    assert report.lines[2].overlap is None
    assert len(report.lines) == len(lines)


def test_far_apart_lines_do_not_overlap():
    report = tag_overlaps([_mc(10.0, P), _mc(50.0, P, LineSource.PARTNER)])
    assert report.overlaps == []
    assert all(l.overlap is None for l in report.lines)


def test_identical_charts_overlap_harmoniously_everywhere():
    snap = ephem.snapshot_at_jd(ephem.to_jd_utc("1990-08-18", "14:32", tz="Asia/Kolkata"))
    lines = generate_lines(snap.positions, snap.gst)
    report = tag_overlaps(synastry_pair(lines, lines))
    expected = {(l.planet, l.line_type) for l in lines}
    assert {(o.planet, o.line_type) for o in report.overlaps} == expected
    for overlap in report.overlaps:
        assert overlap.proximity_deg == pytest.approx(0.0, abs=1e-9)
        assert overlap.classification == OverlapClass.HARMONIOUS
    assert all(l.overlap == OverlapClass.HARMONIOUS for l in report.lines)


def test_overlaps_sorted_closest_first():
    lines = [
        _mc(10.0, P),
        _mc(14.0, P, LineSource.PARTNER),
        _mc(50.0, D, planet=Planet.MARS),
        _mc(51.0, D, LineSource.PARTNER, planet=Planet.MARS),
    ]
    report = tag_overlaps(lines)
    assert [o.planet for o in report.overlaps] == [Planet.MARS, Planet.VENUS]


def test_natal_condition_shifts_sentiment_one_step():
    assert shifted_sentiment(D, NatalCondition.STRONG) == N
    assert shifted_sentiment(N, NatalCondition.STRONG) == P
    assert shifted_sentiment(P, NatalCondition.STRONG) == P
    assert shifted_sentiment(P, NatalCondition.CHALLENGED) == N
    assert shifted_sentiment(N, NatalCondition.CHALLENGED) == D
    assert shifted_sentiment(D, NatalCondition.NEUTRAL) == D


def test_apply_natal_conditions():
    mars = AstroLine(
        id="mars-ASC-own-0",
        planet=Planet.MARS,
        line_type=LineType.ASC,
        points=((0.0, 0.0), (1.0, 1.0)),
        sentiment=D,
    )
    venus = _mc(0.0, P)
    conditions = {
        Planet.MARS: PlanetCondition(planet=Planet.MARS, tag=NatalCondition.STRONG),
        Planet.VENUS: PlanetCondition(planet=Planet.VENUS, tag=NatalCondition.NEUTRAL),
    }
    shifted = apply_natal_conditions([mars, venus], conditions)
    assert shifted[0].sentiment == N
    assert shifted[1] is venus


def test_bond_summary_for_identical_profiles():
    profile = BirthProfile(date="1990-01-01", time="12:00", lat=0.0, lon=0.0)
    summary = generate_bond_summary(profile, profile, include_minor_bodies=False)
    assert summary.total == len(summary.harmonious) > 0
    assert all(o.proximity_deg == pytest.approx(0.0, abs=1e-9) for o in summary.all_overlaps)
    for cls in OverlapClass:
        if cls != OverlapClass.HARMONIOUS:
            assert summary.bucket(cls) == []
    insight = summary.harmonious[0]
    assert " on the " in insight.title or " at the " in insight.title
    assert insight.themes
    assert insight.text


def test_bond_summary_lists_cities_under_chart_a_lines():
    profile = BirthProfile(date="2000-01-01", time="12:00", lat=0.0, lon=0.0)
    snap = ephem.chart_for_profile(profile, bodies=[Planet.SUN])
    sun_mc = next(l for l in generate_lines(snap.positions, snap.gst) if l.line_type == LineType.MC)
    city = City(name="Meridian", country="Testland", lat=10.0, lon=sun_mc.points[0][1])
    summary = generate_bond_summary(profile, profile, include_minor_bodies=False, cities=[city])
    sun_mc_insight = next(
        i for i in summary.harmonious if i.overlap.planet == Planet.SUN and i.overlap.line_type == LineType.MC
    )
    assert sun_mc_insight.cities == [city]


def _profile_lines(date, time, tz):
    snap = ephem.snapshot_at_jd(ephem.to_jd_utc(date, time, tz=tz))
    return generate_lines(snap.positions, snap.gst)


@pytest.mark.parametrize(
    "second",
    [
        ("1985-07-22", "18:40", "Europe/London"),
        ("1985-03-10", "09:19", "America/New_York"),
    ],
)
def test_tag_overlaps_is_symmetric_when_charts_are_swapped(second):
    first = _profile_lines("1985-03-10", "09:15", "America/New_York")
    other = _profile_lines(*second)

    forward = tag_overlaps(synastry_pair(first, other)).overlaps
    backward = tag_overlaps(synastry_pair(other, first)).overlaps
    if second[0] == "1985-03-10":
        # four minutes apart: every line has a close twin
        assert len(forward) == len({(l.planet, l.line_type) for l in first})

    by_key = {(o.planet, o.line_type): o for o in backward}
    assert set(by_key) == {(o.planet, o.line_type) for o in forward}
    for overlap in forward:
        twin = by_key[(overlap.planet, overlap.line_type)]
        assert twin.classification == overlap.classification
        assert twin.proximity_deg == pytest.approx(overlap.proximity_deg, abs=1e-9)
        assert (twin.sentiment_a, twin.sentiment_b) == (overlap.sentiment_b, overlap.sentiment_a)


def test_difficult_pair_steps_from_harmonious_to_challenging_past_one_degree():
    saturn = Planet.SATURN
    tight = tag_overlaps([_mc(10.0, D, planet=saturn), _mc(11.0, D, LineSource.PARTNER, saturn)])
    close = tag_overlaps([_mc(10.0, D, planet=saturn), _mc(11.5, D, LineSource.PARTNER, saturn)])
    assert [o.classification for o in tight.overlaps] == [OverlapClass.HARMONIOUS]
    assert [o.classification for o in close.overlaps] == [OverlapClass.CHALLENGING]
