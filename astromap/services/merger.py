"""Synastry pairing and midpoint composite charts."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..schemas.charts import ChartSnapshot, PlanetPosition
from ..schemas.common import LineSource
from ..schemas.lines import AstroLine
from .angles import shorter_arc_midpoint

logger = logging.getLogger(__name__)


def _mean_distance(a: Optional[float], b: Optional[float]) -> Optional[float]:
    if a is None or b is None:
        return None
    return (a + b) / 2.0


def composite_position(a: PlanetPosition, b: PlanetPosition) -> PlanetPosition:
    """Midpoint of one body across two charts.

    Longitudes and right ascensions use the shorter-arc midpoint; latitude,
    declination, distance and speed are averaged.
    """

    if a.planet != b.planet:
        raise ValueError(f"cannot composite {a.planet.value} with {b.planet.value}")
    return PlanetPosition(
        planet=a.planet,
        lon=shorter_arc_midpoint(a.lon, b.lon),
        lat=(a.lat + b.lat) / 2.0,
        ra=shorter_arc_midpoint(a.ra, b.ra),
        dec=(a.dec + b.dec) / 2.0,
        distance=_mean_distance(a.distance, b.distance),
        speed=(a.speed + b.speed) / 2.0,
    )


def composite(
    pos_a: Sequence[PlanetPosition],
    gst_a: float,
    pos_b: Sequence[PlanetPosition],
    gst_b: float,
) -> Tuple[List[PlanetPosition], float]:
    """Midpoint composite of two charts.

    Bodies present in only one chart are dropped. Output follows the order
    of ``pos_a``.
    """

    by_planet: Dict = {p.planet: p for p in pos_b}
    merged: List[PlanetPosition] = []
    dropped = []
    for a in pos_a:
        b = by_planet.get(a.planet)
        if b is None:
            dropped.append(a.planet.value)
            continue
        merged.append(composite_position(a, b))
    if dropped:
        logger.debug("merger_composite_dropped_bodies", extra={"bodies": dropped})
    return merged, shorter_arc_midpoint(gst_a, gst_b)


def composite_snapshot(a: ChartSnapshot, b: ChartSnapshot) -> ChartSnapshot:
    positions, gst = composite(a.positions, a.gst, b.positions, b.gst)
    return ChartSnapshot(positions=positions, gst=gst)


def _retag(lines: Iterable[AstroLine], source: LineSource) -> List[AstroLine]:
    out: List[AstroLine] = []
    for line in lines:
        if line.source == source:
            out.append(line)
            continue
        new_id = line.id.replace(f"-{line.source.value}", f"-{source.value}", 1)
        out.append(line.model_copy(update={"source": source, "id": new_id}))
    return out


def synastry_pair(lines_a: Iterable[AstroLine], lines_b: Iterable[AstroLine]) -> List[AstroLine]:
    """Overlay two charts: ``lines_a`` tagged ``own``, ``lines_b`` tagged ``partner``.

    Geometry is untouched; the two charts stay independent on one map.
    """

    return _retag(lines_a, LineSource.OWN) + _retag(lines_b, LineSource.PARTNER)


__all__ = ["composite", "composite_position", "composite_snapshot", "synastry_pair"]
