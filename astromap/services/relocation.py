"""Relocated chart: the birth moment re-cast for another place.

Planets keep their zodiac positions; the angles move with the local
sidereal time ``GST + longitude`` and the houses follow the whole-sign
system, so house 1 is the sign holding the relocated Ascendant.
"""

from __future__ import annotations

import math
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..schemas.charts import BirthProfile, PlanetPosition
from ..schemas.common import Planet
from ..schemas.synthesis import PlanetInHouse, RelocatedAngles, RelocatedChart, RelocatedHighlight
from . import ephem
from .angles import atan2_d, cos_d, normalize, sin_d, tan_d
from .constants import planet_label, sign_index_from_lon, sign_name_from_lon

J2000_OBLIQUITY = ephem.obliquity(0.0)

HOUSE_THEMES: Dict[int, str] = {
    1: "self, body, and first impressions",
    2: "money, values, and resources",
    3: "communication, local community, and learning",
    4: "home, roots, and family",
    5: "creativity, romance, and self-expression",
    6: "daily routines, health, and service",
    7: "partnerships and marriage",
    8: "transformation, shared resources, and the unseen",
    9: "travel, philosophy, and higher learning",
    10: "career, reputation, and public life",
    11: "friends, hopes, and community",
    12: "subconscious, dreams, and spiritual life",
}
ANGULAR_HOUSES: Tuple[int, ...] = (1, 4, 7, 10)
DEFAULT_MAX_HIGHLIGHTS = 3


def ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def midheaven_longitude(lst: float, eps: float = J2000_OBLIQUITY) -> float:
    """Ecliptic longitude culminating at local sidereal time ``lst``."""

    return normalize(atan2_d(sin_d(lst), cos_d(lst) * cos_d(eps)))


def ascendant_longitude(lst: float, lat: float, eps: float = J2000_OBLIQUITY) -> float:
    """Ecliptic longitude rising in the east at ``lst`` and latitude ``lat``."""

    return normalize(atan2_d(cos_d(lst), -(sin_d(lst) * cos_d(eps) + tan_d(lat) * sin_d(eps))))


def whole_sign_house(lon: float, asc: float) -> int:
    return (sign_index_from_lon(lon) - sign_index_from_lon(asc)) % 12 + 1


def _check_location(lat: float, lon: float) -> None:
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise ValueError(f"coordinates must be finite, got ({lat!r}, {lon!r})")
    if not -90.0 <= lat <= 90.0:
        raise ValueError(f"latitude out of range: {lat!r}")
    if not -180.0 <= lon <= 180.0:
        raise ValueError(f"longitude out of range: {lon!r}")


def compute_relocated_chart(
    positions: Iterable[PlanetPosition],
    gst: float,
    lat: float,
    lon: float,
    eps: float = J2000_OBLIQUITY,
) -> RelocatedChart:
    """Angles and whole-sign houses at ``(lat, lon)`` for a natal snapshot."""

    _check_location(lat, lon)
    lst = ephem.local_sidereal_time(gst, lon)
    asc = ascendant_longitude(lst, lat, eps)
    mc = midheaven_longitude(lst, eps)
    angles = RelocatedAngles(asc=asc, mc=mc, ic=normalize(mc + 180.0), dsc=normalize(asc + 180.0))
    planets = [
        PlanetInHouse(
            planet=pos.planet,
            lon=normalize(pos.lon),
            sign=sign_name_from_lon(normalize(pos.lon)),
            house=whole_sign_house(normalize(pos.lon), asc),
        )
        for pos in positions
    ]
    return RelocatedChart(lat=lat, lon=lon, angles=angles, planets=planets)


def relocated_chart_for_profile(
    profile: BirthProfile,
    lat: float,
    lon: float,
    bodies: Optional[Iterable[Planet]] = None,
    backend: Optional[str] = None,
) -> RelocatedChart:
    snapshot = ephem.chart_for_profile(profile, bodies=bodies, backend=backend)
    eps = ephem.obliquity(ephem.centuries_since_j2000(snapshot.jd_ut))
    return compute_relocated_chart(snapshot.positions, snapshot.gst, lat, lon, eps)


def relocated_highlights(
    chart: RelocatedChart,
    nearby_planets: Iterable[Planet] = (),
    max_highlights: int = DEFAULT_MAX_HIGHLIGHTS,
    natal_chart: Optional[RelocatedChart] = None,
) -> List[RelocatedHighlight]:
    """Up to ``max_highlights`` plain-English house placements.

    Planets with lines near the place come first, then one planet for each
    angular house in 1, 4, 7, 10 order, then (given ``natal_chart``) the
    first planet whose house differs from its birthplace house.
    """

    nearby: Set[Planet] = set(nearby_planets)
    out: List[RelocatedHighlight] = []
    seen: Set[Tuple[Planet, int]] = set()

    def add(entry: PlanetInHouse, text: str) -> bool:
        key = (entry.planet, entry.house)
        if key in seen or len(out) >= max_highlights:
            return False
        seen.add(key)
        out.append(RelocatedHighlight(planet=entry.planet, house=entry.house, text=text))
        return True

    def placed(entry: PlanetInHouse) -> str:
        return (
            f"Your {planet_label(entry.planet)} in your {ordinal(entry.house)} house: "
            f"{HOUSE_THEMES[entry.house]} take center stage here."
        )

    for entry in chart.planets:
        if entry.planet in nearby:
            add(entry, placed(entry))

    for house in ANGULAR_HOUSES:
        for entry in chart.planets:
            if entry.house == house and add(entry, placed(entry)):
                break

    if natal_chart is not None:
        for entry in chart.planets:
            natal_house = natal_chart.house_of(entry.planet)
            if natal_house is None or natal_house == entry.house:
                continue
            text = (
                f"Your {planet_label(entry.planet)} moves into your {ordinal(entry.house)} house here: "
                f"{HOUSE_THEMES[entry.house]} take center stage."
            )
            if add(entry, text):
                break

    return out


__all__ = [
    "ANGULAR_HOUSES",
    "HOUSE_THEMES",
    "ascendant_longitude",
    "compute_relocated_chart",
    "midheaven_longitude",
    "ordinal",
    "relocated_chart_for_profile",
    "relocated_highlights",
    "whole_sign_house",
]
