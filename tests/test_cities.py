import pytest

from astromap.schemas import AstroLine, City, LineType, Planet
from astromap.services.cities import cities_near_lines, lookup_city, world_cities


def _mc(lon):
    return AstroLine(
        id="sun-MC-own",
        planet=Planet.SUN,
        line_type=LineType.MC,
        points=tuple((float(lat), lon) for lat in range(-80, 81, 10)),
    )


def test_catalog_loads_and_is_cached():
    cities = world_cities()
    assert len(cities) > 50
    assert world_cities() is cities
    assert all(-90.0 <= c.lat <= 90.0 and -180.0 <= c.lon <= 180.0 for c in cities)


def test_lookup_city():
    paris = lookup_city("Paris, France")
    assert paris is not None
    assert paris.display_name == "Paris, France"
    assert lookup_city("  ") is None
    assert lookup_city("Atlantis") is None


def test_cities_near_lines_closest_first():
    found = cities_near_lines([_mc(2.35)], 4.5)
    assert found[0][0].name == "Paris"
    assert found[0][1] == pytest.approx(0.0022, abs=1e-3)
    distances = [d for _, d in found]
    assert distances == sorted(distances)
    assert all(d <= 4.5 for d in distances)


def test_cities_near_lines_limit_and_custom_catalog():
    cities = [City(name="A", country="X", lat=0.0, lon=1.0), City(name="B", country="X", lat=0.0, lon=2.0)]
    assert [c.name for c, _ in cities_near_lines([_mc(0.0)], 5.0, cities=cities, limit=1)] == ["A"]
    assert cities_near_lines([], 5.0, cities=cities) == []
