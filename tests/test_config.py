import pytest
from pydantic import ValidationError

from astromap.config import configured_backend, get_settings

ENV_KEYS = (
    "EPHEMERIS_BACKEND",
    "ASTROMAP_POINTS_PER_DEGREE",
    "ASTROMAP_INCLUDE_MINOR_BODIES",
    "ASTROMAP_NEARBY_CITY_DEG",
    "ASTROMAP_MAX_NEARBY_CITIES",
)


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    settings = get_settings()
    assert settings.backend == "analytic"
    assert settings.points_per_degree == 1.0
    assert settings.include_minor_bodies is False
    assert settings.nearby_city_deg == 4.5
    assert settings.max_nearby_cities == 3


def test_environment_overrides(clean_env):
    clean_env.setenv("EPHEMERIS_BACKEND", " MOSEPH ")
    clean_env.setenv("ASTROMAP_POINTS_PER_DEGREE", "2")
    clean_env.setenv("ASTROMAP_INCLUDE_MINOR_BODIES", "yes")
    clean_env.setenv("ASTROMAP_MAX_NEARBY_CITIES", "5")
    settings = get_settings()
    assert settings.backend == "moseph"
    assert settings.points_per_degree == 2.0
    assert settings.include_minor_bodies is True
    assert settings.max_nearby_cities == 5


def test_invalid_values_fail_validation(clean_env):
    clean_env.setenv("ASTROMAP_POINTS_PER_DEGREE", "0")
    with pytest.raises(ValidationError):
        get_settings()
    clean_env.setenv("ASTROMAP_POINTS_PER_DEGREE", "1")
    clean_env.setenv("EPHEMERIS_BACKEND", "jpl")
    with pytest.raises(ValidationError):
        get_settings()


def test_configured_backend_is_normalized_but_not_validated(clean_env):
    assert configured_backend() == "analytic"
    clean_env.setenv("EPHEMERIS_BACKEND", "  ")
    assert configured_backend() == "analytic"
    clean_env.setenv("EPHEMERIS_BACKEND", " JPL ")
    assert configured_backend() == "jpl"
