import pytest

from astromap.schemas import Planet
from astromap.services import ephem
from astromap.services.memo import CachedEphemeris


def test_positions_are_memoized():
    cache = CachedEphemeris(maxsize=8)
    first = cache.positions(2000, 1, 1, 12, 0, bodies=[Planet.SUN, Planet.MOON])
    second = cache.positions(2000, 1, 1, 12, 0, bodies=[Planet.SUN, Planet.MOON])
    assert first == second == ephem.positions(2000, 1, 1, 12, 0, bodies=[Planet.SUN, Planet.MOON])
    assert cache.cache_info()["positions"].hits == 1


def test_sidereal_time_is_memoized():
    cache = CachedEphemeris()
    assert cache.sidereal_time(2000, 1, 1, 12, 0) == ephem.sidereal_time(2000, 1, 1, 12, 0)
    cache.sidereal_time(2000, 1, 1, 12, 0)
    assert cache.cache_info()["sidereal_time"].hits == 1
    cache.clear()
    assert cache.cache_info()["sidereal_time"].currsize == 0


def test_maxsize_must_be_positive():
    with pytest.raises(ValueError):
        CachedEphemeris(maxsize=0)
