"""Aspect geometry and orb policy for transit activation.

Kept free of ephemeris calls so the policy tables can be unit-tested on
plain longitudes.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple

from ..schemas.common import Aspect, Intensity, Planet
from .angles import angle_diff

ASPECT_ANGLES: Dict[Aspect, float] = {
    Aspect.CONJUNCTION: 0.0,
    Aspect.SEXTILE: 60.0,
    Aspect.SQUARE: 90.0,
    Aspect.TRINE: 120.0,
    Aspect.OPPOSITION: 180.0,
}

# Widest residual (degrees) at which each aspect still counts.
ORB_TABLE: Dict[Aspect, float] = {
    Aspect.CONJUNCTION: 8.0,
    Aspect.OPPOSITION: 7.0,
    Aspect.TRINE: 6.0,
    Aspect.SQUARE: 6.0,
    Aspect.SEXTILE: 4.0,
}

# Per moving body, applied to both the orb and the intensity bands. Slow
# outer planets get tight orbs so they do not stay "active" for years.
TRANSIT_ORB_MULTIPLIERS: Dict[Planet, float] = {
    Planet.PLUTO: 0.35,
    Planet.NEPTUNE: 0.5,
    Planet.URANUS: 0.55,
    Planet.SATURN: 0.8,
    Planet.JUPITER: 1.0,
}
DEFAULT_TRANSIT_ORB_MULTIPLIER = 1.0

# Progressed bodies move about a degree a year; the progressed Moon about 13.
PROGRESSION_ORB_MULTIPLIERS: Dict[Planet, float] = {
    Planet.MOON: 0.6,
    Planet.SUN: 0.15,
    Planet.MERCURY: 0.2,
    Planet.VENUS: 0.15,
    Planet.MARS: 0.15,
}
DEFAULT_PROGRESSION_ORB_MULTIPLIER = 0.2

# Upper bounds (exclusive) on the residual; anything wider but in orb is mild.
INTENSITY_BANDS: Tuple[Tuple[float, Intensity], ...] = (
    (1.0, Intensity.EXACT),
    (3.0, Intensity.STRONG),
    (5.0, Intensity.MODERATE),
)


def orb_multiplier(planet: Planet, source: str = "transit") -> float:
    if source == "progression":
        return PROGRESSION_ORB_MULTIPLIERS.get(planet, DEFAULT_PROGRESSION_ORB_MULTIPLIER)
    return TRANSIT_ORB_MULTIPLIERS.get(planet, DEFAULT_TRANSIT_ORB_MULTIPLIER)


def signed_delta(transit_lon: float, natal_lon: float, aspect_angle: float) -> float:
    """Return the signed difference from the exact aspect in degrees.

    The result is in the range [-180, 180). Positive values mean the transit
    body has moved past the exact aspect, negative values that it is still
    approaching.
    """

    return ((transit_lon - natal_lon) - aspect_angle + 540.0) % 360.0 - 180.0


def is_applying(
    transit_lon: float,
    transit_speed: float,
    natal_lon: float,
    natal_speed: float,
    aspect_angle: float,
) -> bool:
    """Whether the separation is closing toward the exact aspect.

    Aspects measured on either side of the natal point (e.g. a waxing or
    waning square) are handled by picking the side the transit is on.
    """

    delta = signed_delta(transit_lon, natal_lon, aspect_angle)
    mirrored = signed_delta(transit_lon, natal_lon, -aspect_angle)
    if abs(mirrored) < abs(delta):
        delta = mirrored
    if abs(delta) < 1e-6:
        return True

    rate = transit_speed - natal_speed
    if abs(rate) < 1e-6:
        return False

    return (delta > 0 and rate < 0) or (delta < 0 and rate > 0)


def aspect_between(
    transit_lon: float,
    natal_lon: float,
    orb_scale: float = 1.0,
) -> Optional[Tuple[Aspect, float]]:
    """Tightest aspect within orb as ``(aspect, residual)``, else ``None``."""

    sep = angle_diff(transit_lon, natal_lon)
    best: Optional[Tuple[Aspect, float]] = None
    for aspect, exact in ASPECT_ANGLES.items():
        residual = abs(sep - exact)
        if residual <= ORB_TABLE[aspect] * orb_scale and (best is None or residual < best[1]):
            best = (aspect, residual)
    return best


def intensity_for_orb(orb: float, scale: float = 1.0) -> Intensity:
    for upper, band in INTENSITY_BANDS:
        if orb < upper * scale:
            return band
    return Intensity.MILD


__all__ = [
    "ASPECT_ANGLES",
    "DEFAULT_PROGRESSION_ORB_MULTIPLIER",
    "DEFAULT_TRANSIT_ORB_MULTIPLIER",
    "INTENSITY_BANDS",
    "ORB_TABLE",
    "PROGRESSION_ORB_MULTIPLIERS",
    "TRANSIT_ORB_MULTIPLIERS",
    "aspect_between",
    "intensity_for_orb",
    "is_applying",
    "orb_multiplier",
    "signed_delta",
]
