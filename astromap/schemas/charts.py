from __future__ import annotations

import math
from datetime import date, datetime
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .common import Planet


class BirthProfile(BaseModel):
    """Normalised birth record handed over by the profile collaborator."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    date: str  # YYYY-MM-DD
    time: str  # HH:MM or HH:MM:SS, local civil time
    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)
    tz: Optional[str] = None
    label: Optional[str] = None

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: str) -> str:
        date.fromisoformat(value)
        return value

    @field_validator("time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        parts = value.split(":")
        if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
            raise ValueError(f"time must be HH:MM or HH:MM:SS, got {value!r}")
        datetime.strptime(value, "%H:%M:%S" if len(parts) == 3 else "%H:%M")
        return value

    @field_validator("lat", "lon")
    @classmethod
    def _check_finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("coordinates must be finite")
        return value

    @field_validator("tz")
    @classmethod
    def _check_tz(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown time zone {value!r}") from exc
        return value


class PlanetPosition(BaseModel):
    model_config = ConfigDict(frozen=True)

    planet: Planet
    lon: float  # ecliptic longitude, 0..360
    lat: float  # ecliptic latitude
    ra: float  # right ascension, 0..360
    dec: float
    distance: Optional[float] = None  # AU; None for calculated points
    speed: float = 0.0  # degrees/day in longitude

    @property
    def retro(self) -> bool:
        return self.speed < 0


class ChartSnapshot(BaseModel):
    """Positions plus Greenwich sidereal time for one instant."""

    model_config = ConfigDict(frozen=True)

    positions: List[PlanetPosition]
    gst: float
    jd_ut: Optional[float] = None

    def position_of(self, planet: Planet) -> Optional[PlanetPosition]:
        for pos in self.positions:
            if pos.planet == planet:
                return pos
        return None


__all__ = ["BirthProfile", "ChartSnapshot", "PlanetPosition"]
