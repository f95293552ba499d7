from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import ActivationStrength, Aspect, Intensity, Planet
from .lines import City

ActivationSource = Literal["transit", "progression"]
WindowType = Literal["benefic", "evolutionary", "neutral"]
Significance = Literal["major", "moderate", "minor"]
DateCategory = Literal["love", "career", "caution", "travel", "growth"]


class LineActivation(BaseModel):
    model_config = ConfigDict(frozen=True)

    transit_planet: Planet
    natal_planet: Planet
    aspect: Aspect
    intensity: Intensity
    orb: float = Field(ge=0.0)  # residual from exact, degrees
    applying: bool = False
    source: ActivationSource = "transit"
    summary: Optional[str] = None


class ActivationWindow(BaseModel):
    model_config = ConfigDict(frozen=True)

    transit_planet: Planet
    natal_planet: Planet
    aspect: Aspect
    source: ActivationSource = "transit"
    start: date
    end: date
    exact_date: date
    min_orb: float
    peak_intensity: Intensity
    window_type: WindowType = "neutral"
    short_label: str = "Activation Window"
    peak_description: str = ""


class CityActivation(BaseModel):
    model_config = ConfigDict(frozen=True)

    city: City
    strength: ActivationStrength
    score: float
    activations: List[LineActivation] = []
    next_activation: Optional[ActivationWindow] = None
    best_visit_window: Optional[ActivationWindow] = None


class ImportantDate(BaseModel):
    model_config = ConfigDict(frozen=True)

    exact_date: date
    title: str
    description: str
    significance: Significance
    category: DateCategory
    affected_cities: List[str] = []
    window: ActivationWindow


__all__ = [
    "ActivationSource",
    "ActivationWindow",
    "CityActivation",
    "DateCategory",
    "ImportantDate",
    "LineActivation",
    "Significance",
    "WindowType",
]
