"""Astrocartography line generation.

For each body the generator emits four angularity curves:

* MC: the meridian where local sidereal time equals the body's right
  ascension, sampled pole to pole.
* IC: the opposite meridian, exactly 180° away.
* ASC / DSC: the horizon curves where the body's altitude is zero while
  rising / setting, ``tan(lat) = -cos(H) / tan(dec)`` for local hour
  angle ``H``. Rising is ``sin(H) < 0``.

Horizon curves are split wherever they cross the antimeridian, so a curve
may come back as several ``AstroLine`` segments with ids ``<base>-<n>``.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..config import get_settings
from ..schemas.charts import BirthProfile, PlanetPosition
from ..schemas.common import LineSource, LineType, Planet
from ..schemas.lines import AstroLine, GeoPoint, LineSet
from . import ephem
from .angles import opposite_meridian, wrap_lon
from .classification import classify, matches_keyword

logger = logging.getLogger(__name__)

MAP_LATITUDE_LIMIT = 89.0
POLE_EPSILON_DEG = 1e-9
EQUATOR_TAN_EPSILON = 1e-12

BODY_CLASS: Dict[Planet, str] = {
    Planet.SUN: "luminary",
    Planet.MOON: "luminary",
    Planet.MERCURY: "personal",
    Planet.VENUS: "personal",
    Planet.MARS: "personal",
    Planet.JUPITER: "social",
    Planet.SATURN: "social",
    Planet.URANUS: "outer",
    Planet.NEPTUNE: "outer",
    Planet.PLUTO: "outer",
    Planet.CHIRON: "chiron",
    Planet.NORTH_NODE: "node",
    Planet.SOUTH_NODE: "node",
    Planet.LILITH: "extras",
    Planet.CERES: "extras",
    Planet.PALLAS: "extras",
    Planet.JUNO: "extras",
    Planet.VESTA: "extras",
}
BODY_WEIGHTS: Dict[str, float] = {
    "luminary": 1.0,
    "personal": 0.85,
    "social": 0.8,
    "outer": 0.7,
    "chiron": 0.6,
    "node": 0.6,
    "extras": 0.4,
}
ANGLE_WEIGHTS: Dict[LineType, float] = {
    LineType.ASC: 1.0,
    LineType.MC: 0.95,
    LineType.DSC: 0.95,
    LineType.IC: 0.9,
}


def line_strength(planet: Planet, line_type: LineType) -> float:
    return round(BODY_WEIGHTS[BODY_CLASS[planet]] * ANGLE_WEIGHTS[line_type], 4)


def line_id(planet: Planet, line_type: LineType, source: LineSource, segment: Optional[int] = None) -> str:
    base = f"{planet.value}-{line_type.value}-{source.value}"
    return base if segment is None else f"{base}-{segment}"


# ============================================================================
# GEOMETRY
# ============================================================================


def mc_longitude(ra: float, gst: float) -> float:
    """Geographic longitude where the body culminates."""

    return wrap_lon(ra - gst)


def ic_longitude(ra: float, gst: float) -> float:
    return opposite_meridian(mc_longitude(ra, gst))


def _meridian_latitudes(points_per_degree: float) -> np.ndarray:
    count = max(2, int(round(2 * MAP_LATITUDE_LIMIT * points_per_degree)) + 1)
    return np.linspace(-MAP_LATITUDE_LIMIT, MAP_LATITUDE_LIMIT, count)


def _meridian_points(lon: float, points_per_degree: float) -> Tuple[GeoPoint, ...]:
    return tuple((float(lat), lon) for lat in _meridian_latitudes(points_per_degree))


def _horizon_hour_angles(dec: float, points_per_degree: float, rising: bool) -> np.ndarray:
    """Hour angles sampled for one horizon curve, in sweep order.

    The uniform grid in hour angle (and hence longitude) is merged with the
    hour angles of a uniform latitude grid, which keeps low-declination
    curves from collapsing into a few steep segments.
    """

    step = 1.0 / points_per_degree
    uniform = np.arange(0.0, 180.0 + step / 2.0, step)
    lats = _meridian_latitudes(points_per_degree)
    lats = lats[np.abs(lats) < 90.0 - abs(dec)]
    cos_h = np.clip(-np.tan(np.radians(lats)) * np.tan(np.radians(dec)), -1.0, 1.0)
    from_lats = np.degrees(np.arccos(cos_h))
    setting = np.union1d(np.clip(uniform, 0.0, 180.0), from_lats)
    if rising:
        return np.sort(360.0 - setting)
    return setting


def split_at_antimeridian(points: Sequence[GeoPoint]) -> List[List[GeoPoint]]:
    """Break a polyline wherever consecutive longitudes jump by more than 180°."""

    segments: List[List[GeoPoint]] = []
    current: List[GeoPoint] = []
    for point in points:
        if current and abs(point[1] - current[-1][1]) > 180.0:
            segments.append(current)
            current = []
        current.append(point)
    if current:
        segments.append(current)
    return [seg for seg in segments if len(seg) > 1]


def horizon_curve(
    ra: float,
    dec: float,
    gst: float,
    line_type: LineType,
    points_per_degree: float = 1.0,
) -> List[GeoPoint]:
    """Unsplit ASC or DSC curve; empty for a body at a celestial pole."""

    if line_type not in (LineType.ASC, LineType.DSC):
        raise ValueError(f"horizon curves exist only for ASC/DSC, got {line_type!r}")
    if abs(dec) >= 90.0 - POLE_EPSILON_DEG:
        return []

    mc = mc_longitude(ra, gst)
    if abs(np.tan(np.radians(dec))) < EQUATOR_TAN_EPSILON:
        # equatorial body: the horizon curves degenerate into meridians
        lon = wrap_lon(mc - 90.0 if line_type == LineType.ASC else mc + 90.0)
        return list(_meridian_points(lon, points_per_degree))

    hour_angles = _horizon_hour_angles(dec, points_per_degree, rising=line_type == LineType.ASC)
    h_rad = np.radians(hour_angles)
    lats = np.degrees(np.arctan(-np.cos(h_rad) / np.tan(np.radians(dec))))
    lons = (mc + hour_angles + 180.0) % 360.0 - 180.0

    limit = min(MAP_LATITUDE_LIMIT, 90.0 - abs(dec))
    keep = np.abs(lats) <= limit + 1e-9
    return list(zip(lats[keep].tolist(), lons[keep].tolist()))


# ============================================================================
# GENERATION
# ============================================================================


def _make_line(pos: PlanetPosition, line_type: LineType, source: LineSource, points, segment=None) -> AstroLine:
    return AstroLine(
        id=line_id(pos.planet, line_type, source, segment),
        planet=pos.planet,
        line_type=line_type,
        points=tuple(points),
        source=source,
        strength=line_strength(pos.planet, line_type),
        sentiment=classify(pos.planet, line_type).sentiment,
    )


def lines_for_position(
    pos: PlanetPosition,
    gst: float,
    source: LineSource = LineSource.OWN,
    points_per_degree: float = 1.0,
) -> List[AstroLine]:
    lines = [
        _make_line(pos, LineType.MC, source, _meridian_points(mc_longitude(pos.ra, gst), points_per_degree)),
        _make_line(pos, LineType.IC, source, _meridian_points(ic_longitude(pos.ra, gst), points_per_degree)),
    ]

    if abs(pos.dec) >= 90.0 - POLE_EPSILON_DEG:
        logger.warning(
            "lines_horizon_skipped_at_pole",
            extra={"planet": pos.planet.value, "dec": pos.dec},
        )
        return lines

    for line_type in (LineType.ASC, LineType.DSC):
        curve = horizon_curve(pos.ra, pos.dec, gst, line_type, points_per_degree)
        segments = split_at_antimeridian(curve)
        if not segments:
            logger.warning(
                "lines_horizon_curve_empty",
                extra={"planet": pos.planet.value, "line_type": line_type.value},
            )
        for index, segment in enumerate(segments):
            lines.append(_make_line(pos, line_type, source, segment, segment=index))
    return lines


def generate_lines(
    positions: Iterable[PlanetPosition],
    gst: float,
    source: LineSource = LineSource.OWN,
    points_per_degree: Optional[float] = None,
) -> List[AstroLine]:
    """Project every position onto MC, IC, ASC and DSC lines."""

    ppd = points_per_degree if points_per_degree is not None else get_settings().points_per_degree
    if ppd <= 0:
        raise ValueError("points_per_degree must be positive")
    source = LineSource(source)

    lines: List[AstroLine] = []
    for pos in positions:
        lines.extend(lines_for_position(pos, gst, source, ppd))
    logger.debug("lines_generated", extra={"source": source.value, "count": len(lines), "ppd": ppd})
    return lines


def lines_for_profile(
    profile: BirthProfile,
    source: LineSource = LineSource.OWN,
    include_minor: Optional[bool] = None,
    points_per_degree: Optional[float] = None,
    backend: Optional[str] = None,
) -> List[AstroLine]:
    """Natal chart lines for a birth profile."""

    if include_minor is None:
        include_minor = get_settings().include_minor_bodies
    bodies = [p for p in Planet if include_minor or not p.is_minor]
    snapshot = ephem.chart_for_profile(profile, bodies=bodies, backend=backend)
    return generate_lines(snapshot.positions, snapshot.gst, source, points_per_degree)


# ============================================================================
# VISIBILITY
# ============================================================================


def filter_lines(
    lines: Iterable[AstroLine],
    include_minor: bool = True,
    hidden_planets: Iterable[Planet] = (),
    line_types: Optional[Iterable[LineType]] = None,
    sources: Optional[Iterable[LineSource]] = None,
    keyword: Optional[str] = None,
) -> List[AstroLine]:
    """Lines that pass the caller's display filters, in input order."""

    hidden = {Planet(p) for p in hidden_planets}
    types = None if line_types is None else {LineType(t) for t in line_types}
    allowed_sources = None if sources is None else {LineSource(s) for s in sources}

    out: List[AstroLine] = []
    for line in lines:
        if not include_minor and line.planet.is_minor:
            continue
        if line.planet in hidden:
            continue
        if types is not None and line.line_type not in types:
            continue
        if allowed_sources is not None and line.source not in allowed_sources:
            continue
        if keyword and not matches_keyword(line.planet, line.line_type, keyword):
            continue
        out.append(line)
    return out


def build_line_set(lines: Iterable[AstroLine], **filters) -> LineSet:
    """Pair the full geometry with the filtered subset (see ``filter_lines``)."""

    all_lines = list(lines)
    return LineSet(all_lines=all_lines, visible_lines=filter_lines(all_lines, **filters))


__all__ = [
    "ANGLE_WEIGHTS",
    "BODY_WEIGHTS",
    "MAP_LATITUDE_LIMIT",
    "build_line_set",
    "filter_lines",
    "generate_lines",
    "horizon_curve",
    "ic_longitude",
    "line_id",
    "line_strength",
    "lines_for_position",
    "lines_for_profile",
    "mc_longitude",
    "split_at_antimeridian",
]
