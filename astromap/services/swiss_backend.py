"""Swiss Ephemeris (Moshier) positions for the classical bodies.

Moshier mode needs no ephemeris files. Chiron and the asteroids do, so they
stay on the analytic series in :mod:`astromap.services.ephem`.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional, Tuple

import swisseph as swe

from ..schemas.common import Planet
from .angles import normalize

SWISS_BODIES: Dict[Planet, int] = {
    Planet.SUN: swe.SUN,
    Planet.MOON: swe.MOON,
    Planet.MERCURY: swe.MERCURY,
    Planet.VENUS: swe.VENUS,
    Planet.MARS: swe.MARS,
    Planet.JUPITER: swe.JUPITER,
    Planet.SATURN: swe.SATURN,
    Planet.URANUS: swe.URANUS,
    Planet.NEPTUNE: swe.NEPTUNE,
    Planet.PLUTO: swe.PLUTO,
    Planet.NORTH_NODE: swe.MEAN_NODE,
    Planet.SOUTH_NODE: swe.MEAN_NODE,
    Planet.LILITH: swe.MEAN_APOG,
}


def ecliptic(jd_ut: float, bodies: Iterable[Planet]) -> Dict[Planet, Tuple[float, float, Optional[float]]]:
    """Return ``{planet: (lon, lat, distance_au)}`` from the Moshier model."""

    flag = swe.FLG_MOSEPH
    out: Dict[Planet, Tuple[float, float, Optional[float]]] = {}
    for body in bodies:
        values, _ = swe.calc_ut(jd_ut, SWISS_BODIES[body], flag)
        lon, lat, dist = values[0], values[1], values[2]
        if body == Planet.SOUTH_NODE:
            lon, lat = lon + 180.0, -lat
        out[body] = (normalize(lon), lat, dist)
    return out


__all__ = ["SWISS_BODIES", "ecliptic"]
