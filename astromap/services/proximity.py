"""Nearest-line search and influence banding.

Distances are planar equirectangular degrees: longitude differences are
wrapped but not scaled by ``cos(lat)``. That is accurate enough at city
scale and increasingly generous toward the poles, where a degree of
longitude covers little ground.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..schemas.common import Influence, LineSource, LineType, Planet, SideOfLine
from ..schemas.lines import AstroLine, City, Hotspot, NearestLineResult

logger = logging.getLogger(__name__)

# Upper bounds (exclusive) in degrees; anything beyond the last band is weak.
INFLUENCE_BANDS: Tuple[Tuple[float, Influence], ...] = (
    (2.0, Influence.VERY_STRONG),
    (5.0, Influence.STRONG),
    (10.0, Influence.MODERATE),
)
ON_LINE_TOLERANCE_DEG = 1e-9
SIDE_ON_TOLERANCE_DEG = 0.25
DEFAULT_MAX_RESULTS = 5


def influence_for_distance(distance: float) -> Influence:
    for upper, band in INFLUENCE_BANDS:
        if distance < upper:
            return band
    return Influence.WEAK


def filter_by_impact(results: Iterable[NearestLineResult], hide_mild: bool) -> List[NearestLineResult]:
    """Drop weak results when ``hide_mild`` is set."""

    if not hide_mild:
        return list(results)
    return [r for r in results if r.influence != Influence.WEAK]


def _check_point(lat: float, lon: float) -> None:
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise ValueError(f"coordinates must be finite, got ({lat!r}, {lon!r})")
    if not -90.0 <= lat <= 90.0:
        raise ValueError(f"latitude out of range: {lat!r}")


def _wrap(values: np.ndarray) -> np.ndarray:
    return (values + 180.0) % 360.0 - 180.0


class _LineGeometry:
    __slots__ = ("line", "lats", "lons")

    def __init__(self, line: AstroLine) -> None:
        self.line = line
        pts = np.asarray(line.points, dtype=float).reshape(-1, 2)
        self.lats = pts[:, 0]
        self.lons = pts[:, 1]

    def nearest(self, lat: float, lon: float) -> Tuple[float, float]:
        """Return ``(distance, dx)`` where ``dx`` is the signed longitude offset
        of the closest line point from the query (positive = line lies east)."""

        if self.lats.size == 0:
            return math.inf, 0.0
        dy = self.lats - lat
        # unwrap along the line so segments never span the query's antimeridian
        first = _wrap(np.array([self.lons[0] - lon]))[0]
        steps = _wrap(np.diff(self.lons))
        dx = first + np.concatenate(([0.0], np.cumsum(steps)))

        if self.lats.size == 1:
            candidates = [(math.hypot(dx[0] + shift, dy[0]), dx[0] + shift) for shift in (-360.0, 0.0, 360.0)]
            return min(candidates)

        best = (math.inf, 0.0)
        ay, by = dy[:-1], dy[1:]
        for shift in (-360.0, 0.0, 360.0):
            ax = dx[:-1] + shift
            bx = dx[1:] + shift
            sx, sy = bx - ax, by - ay
            seg_len2 = sx * sx + sy * sy
            with np.errstate(invalid="ignore", divide="ignore"):
                t = np.where(seg_len2 > 0.0, -(ax * sx + ay * sy) / seg_len2, 0.0)
            t = np.clip(t, 0.0, 1.0)
            px = ax + t * sx
            py = ay + t * sy
            dist = np.hypot(px, py)
            idx = int(np.argmin(dist))
            if dist[idx] < best[0]:
                best = (float(dist[idx]), float(px[idx]))
        return best


def _side(dx: float, distance: float) -> SideOfLine:
    if distance <= SIDE_ON_TOLERANCE_DEG:
        return SideOfLine.ON
    # the line is east of the point, so the point is west of the line
    return SideOfLine.WEST if dx > 0 else SideOfLine.EAST


class LineIndex:
    """Brute-force nearest-line index.

    Construction converts every line to coordinate arrays once; queries scan
    all segments. A spatial index can replace this class without changing
    :func:`nearest_lines` or :func:`scan_hotspots`.
    """

    def __init__(self, lines: Iterable[AstroLine]) -> None:
        self._geoms = [_LineGeometry(line) for line in lines]

    def __len__(self) -> int:
        return len(self._geoms)

    def nearest(
        self,
        lat: float,
        lon: float,
        max_results: Optional[int] = DEFAULT_MAX_RESULTS,
        max_distance: Optional[float] = None,
    ) -> List[NearestLineResult]:
        _check_point(lat, lon)
        if max_results is not None and max_results <= 0:
            return []
        best: Dict[Tuple[Planet, LineType, LineSource], Tuple[float, float, int]] = {}
        for order, geom in enumerate(self._geoms):
            distance, dx = geom.nearest(lat, lon)
            if distance <= ON_LINE_TOLERANCE_DEG:
                distance = 0.0
            key = geom.line.key
            if key not in best or distance < best[key][0]:
                best[key] = (distance, dx, order)

        ranked = sorted(best.values(), key=lambda item: (item[0], item[2]))
        results: List[NearestLineResult] = []
        for distance, dx, order in ranked:
            if max_distance is not None and distance > max_distance:
                break
            if not math.isfinite(distance):
                continue
            results.append(
                NearestLineResult(
                    line=self._geoms[order].line,
                    distance=distance,
                    influence=influence_for_distance(distance),
                    side=_side(dx, distance),
                )
            )
            if max_results is not None and len(results) >= max_results:
                break
        return results


def distance_to_line(line: AstroLine, lat: float, lon: float) -> float:
    """Minimum planar degree distance from a point to one line."""

    _check_point(lat, lon)
    distance, _ = _LineGeometry(line).nearest(lat, lon)
    return 0.0 if distance <= ON_LINE_TOLERANCE_DEG else distance


def side_of_line(line: AstroLine, lat: float, lon: float) -> SideOfLine:
    """Whether the point lies east or west of ``line``, or on it."""

    _check_point(lat, lon)
    distance, dx = _LineGeometry(line).nearest(lat, lon)
    return _side(dx, distance)


def nearest_lines(
    lines: Iterable[AstroLine],
    lat: float,
    lon: float,
    max_results: Optional[int] = DEFAULT_MAX_RESULTS,
    max_distance: Optional[float] = None,
) -> List[NearestLineResult]:
    """Closest lines to a point, sorted ascending by distance.

    Segments of one (planet, line type, source) collapse into their nearest
    member, so a split ASC curve is reported once.
    """

    return LineIndex(lines).nearest(lat, lon, max_results=max_results, max_distance=max_distance)


def scan_hotspots(
    lines: Iterable[AstroLine],
    cities: Sequence[City],
    max_distance: float = INFLUENCE_BANDS[-1][0],
    max_results_per_city: Optional[int] = DEFAULT_MAX_RESULTS,
    hide_mild: bool = True,
) -> List[Hotspot]:
    """Cities with at least one line within ``max_distance``, closest first."""

    index = LineIndex(lines)
    hotspots: List[Hotspot] = []
    for city in cities:
        found = index.nearest(city.lat, city.lon, max_results=max_results_per_city, max_distance=max_distance)
        found = filter_by_impact(found, hide_mild)
        if found:
            hotspots.append(Hotspot(city=city, lines=found))
    hotspots.sort(key=lambda h: h.lines[0].distance)
    logger.debug(
        "proximity_hotspots_scanned",
        extra={"lines": len(index), "cities": len(cities), "hotspots": len(hotspots)},
    )
    return hotspots


__all__ = [
    "DEFAULT_MAX_RESULTS",
    "INFLUENCE_BANDS",
    "LineIndex",
    "ON_LINE_TOLERANCE_DEG",
    "distance_to_line",
    "filter_by_impact",
    "influence_for_distance",
    "nearest_lines",
    "scan_hotspots",
    "side_of_line",
]
