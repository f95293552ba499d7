"""Closed enumerations shared by every engine component."""

from __future__ import annotations

from enum import Enum
from typing import Tuple


class Planet(str, Enum):
    SUN = "sun"
    MOON = "moon"
    MERCURY = "mercury"
    VENUS = "venus"
    MARS = "mars"
    JUPITER = "jupiter"
    SATURN = "saturn"
    URANUS = "uranus"
    NEPTUNE = "neptune"
    PLUTO = "pluto"
    # minor bodies and calculated points
    CHIRON = "chiron"
    NORTH_NODE = "north_node"
    SOUTH_NODE = "south_node"
    LILITH = "lilith"
    CERES = "ceres"
    PALLAS = "pallas"
    JUNO = "juno"
    VESTA = "vesta"

    @property
    def is_minor(self) -> bool:
        return self in MINOR_PLANETS

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


CLASSICAL_PLANETS: Tuple[Planet, ...] = (
    Planet.SUN,
    Planet.MOON,
    Planet.MERCURY,
    Planet.VENUS,
    Planet.MARS,
    Planet.JUPITER,
    Planet.SATURN,
    Planet.URANUS,
    Planet.NEPTUNE,
    Planet.PLUTO,
)
MINOR_PLANETS: Tuple[Planet, ...] = tuple(p for p in Planet if p not in CLASSICAL_PLANETS)


class LineType(str, Enum):
    MC = "MC"
    IC = "IC"
    ASC = "ASC"
    DSC = "DSC"

    @property
    def is_meridian(self) -> bool:
        return self in (LineType.MC, LineType.IC)


class LineSource(str, Enum):
    OWN = "own"
    PARTNER = "partner"
    TRANSIT = "transit"
    COMPOSITE = "composite"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    DIFFICULT = "difficult"
    NEUTRAL = "neutral"


class Influence(str, Enum):
    VERY_STRONG = "very strong"
    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"


class OverlapClass(str, Enum):
    HARMONIOUS = "harmonious"
    SLIGHTLY_POSITIVE = "slightly_positive"
    NEUTRAL_OVERLAP = "neutral_overlap"
    TENSION = "tension"
    SLIGHTLY_CHALLENGING = "slightly_challenging"
    CHALLENGING = "challenging"


class Aspect(str, Enum):
    CONJUNCTION = "conjunction"
    SEXTILE = "sextile"
    SQUARE = "square"
    TRINE = "trine"
    OPPOSITION = "opposition"


class Intensity(str, Enum):
    EXACT = "exact"
    STRONG = "strong"
    MODERATE = "moderate"
    MILD = "mild"


class NatalCondition(str, Enum):
    STRONG = "strong"
    CHALLENGED = "challenged"
    NEUTRAL = "neutral"


class ActivationStrength(str, Enum):
    PEAK = "peak"
    ACTIVE = "active"
    BUILDING = "building"
    QUIET = "quiet"


class SideOfLine(str, Enum):
    EAST = "east"
    WEST = "west"
    ON = "on"


__all__ = [
    "ActivationStrength",
    "Aspect",
    "CLASSICAL_PLANETS",
    "Influence",
    "Intensity",
    "LineSource",
    "LineType",
    "MINOR_PLANETS",
    "NatalCondition",
    "OverlapClass",
    "Planet",
    "Sentiment",
    "SideOfLine",
]
