from .common import (
    CLASSICAL_PLANETS,
    MINOR_PLANETS,
    ActivationStrength,
    Aspect,
    Influence,
    Intensity,
    LineSource,
    LineType,
    NatalCondition,
    OverlapClass,
    Planet,
    Sentiment,
    SideOfLine,
)
from .charts import BirthProfile, ChartSnapshot, PlanetPosition
from .lines import AstroLine, City, Hotspot, LineSet, NearestLineResult
from .synastry import BondSummary, OverlapInsight, OverlapReport, SynastryOverlap
from .synthesis import (
    LocationSynthesis,
    PlanetInHouse,
    RelocatedAngles,
    RelocatedChart,
    RelocatedHighlight,
    TimingSummary,
)
from .transits import ActivationWindow, CityActivation, ImportantDate, LineActivation

__all__ = [
    "ActivationStrength",
    "ActivationWindow",
    "Aspect",
    "AstroLine",
    "BirthProfile",
    "BondSummary",
    "CLASSICAL_PLANETS",
    "ChartSnapshot",
    "City",
    "CityActivation",
    "Hotspot",
    "ImportantDate",
    "Influence",
    "Intensity",
    "LineActivation",
    "LineSet",
    "LineSource",
    "LineType",
    "LocationSynthesis",
    "MINOR_PLANETS",
    "NatalCondition",
    "NearestLineResult",
    "OverlapClass",
    "OverlapInsight",
    "OverlapReport",
    "Planet",
    "PlanetInHouse",
    "PlanetPosition",
    "RelocatedAngles",
    "RelocatedChart",
    "RelocatedHighlight",
    "Sentiment",
    "SideOfLine",
    "SynastryOverlap",
    "TimingSummary",
]
