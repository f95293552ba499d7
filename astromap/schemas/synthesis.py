from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import ActivationStrength, Planet
from .lines import NearestLineResult
from .transits import ActivationWindow


class RelocatedAngles(BaseModel):
    """Ecliptic longitudes of the four angles at the target location."""

    model_config = ConfigDict(frozen=True)

    asc: float
    mc: float
    ic: float
    dsc: float


class PlanetInHouse(BaseModel):
    model_config = ConfigDict(frozen=True)

    planet: Planet
    lon: float
    sign: str
    house: int = Field(ge=1, le=12)  # whole-sign


class RelocatedChart(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float
    lon: float
    angles: RelocatedAngles
    planets: List[PlanetInHouse]

    def house_of(self, planet: Planet) -> Optional[int]:
        for entry in self.planets:
            if entry.planet == planet:
                return entry.house
        return None


class RelocatedHighlight(BaseModel):
    model_config = ConfigDict(frozen=True)

    planet: Planet
    house: int = Field(ge=1, le=12)
    text: str


class TimingSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    strength: ActivationStrength
    best_visit_window: Optional[ActivationWindow] = None
    active_transits: int = 0


class LocationSynthesis(BaseModel):
    """Natal promise, nearby lines, relocated houses and timing for one place."""

    model_config = ConfigDict(frozen=True)

    lat: float
    lon: float
    city_name: str = ""
    condition_snippets: List[str] = []
    nearby_lines: List[NearestLineResult] = []
    relocated: RelocatedChart
    highlights: List[RelocatedHighlight] = []
    timing: TimingSummary
    paragraph: str


__all__ = [
    "LocationSynthesis",
    "PlanetInHouse",
    "RelocatedAngles",
    "RelocatedChart",
    "RelocatedHighlight",
    "TimingSummary",
]
