"""Environment-driven engine settings.

Values are read from the process environment (a local ``.env`` file is
honoured) every time :func:`get_settings` is called, so tests can use
``monkeypatch.setenv`` without reloading modules.
"""

from __future__ import annotations

import os
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

load_dotenv()

Backend = Literal["analytic", "moseph"]


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class EngineSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    backend: Backend = "analytic"
    points_per_degree: float = Field(default=1.0, gt=0.0, le=20.0)
    include_minor_bodies: bool = False
    nearby_city_deg: float = Field(default=4.5, gt=0.0)
    max_nearby_cities: int = Field(default=3, ge=0)


def configured_backend() -> str:
    """Backend name from ``EPHEMERIS_BACKEND``, normalized but not validated."""

    raw_backend = os.getenv("EPHEMERIS_BACKEND")
    return raw_backend.strip().lower() if raw_backend and raw_backend.strip() else "analytic"


def get_settings() -> EngineSettings:
    return EngineSettings(
        backend=configured_backend(),
        points_per_degree=float(os.getenv("ASTROMAP_POINTS_PER_DEGREE", "1.0")),
        include_minor_bodies=_env_bool("ASTROMAP_INCLUDE_MINOR_BODIES", False),
        nearby_city_deg=float(os.getenv("ASTROMAP_NEARBY_CITY_DEG", "4.5")),
        max_nearby_cities=int(os.getenv("ASTROMAP_MAX_NEARBY_CITIES", "3")),
    )


__all__ = ["Backend", "EngineSettings", "configured_backend", "get_settings"]
