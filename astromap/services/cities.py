"""Bundled world-city catalog used for hotspot scans and nearby-city notes."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from ..schemas.lines import AstroLine, City
from .proximity import LineIndex

DATA_PATH = Path(__file__).resolve().parents[1] / "data" / "world_cities.json"


@lru_cache(maxsize=1)
def world_cities() -> Tuple[City, ...]:
    with DATA_PATH.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    return tuple(City(**item) for item in payload)


def lookup_city(query: Optional[str], cities: Optional[Sequence[City]] = None) -> Optional[City]:
    """Match free text such as ``"Paris, France"`` against the catalog.

    Longer names are tried first so "New York City" wins over a shorter
    prefix.
    """

    if not query or not query.strip():
        return None
    normalized = query.strip().lower()
    pool = sorted(cities if cities is not None else world_cities(), key=lambda c: -len(c.name))
    for city in pool:
        name = city.name.lower()
        if normalized.startswith(name) or name in normalized:
            return city
    return None


def cities_near_lines(
    lines: Iterable[AstroLine],
    max_distance_deg: float,
    cities: Optional[Sequence[City]] = None,
    limit: Optional[int] = None,
) -> List[Tuple[City, float]]:
    """Cities within ``max_distance_deg`` of any of ``lines``, closest first.

    Pass every segment of a split curve so the antimeridian does not hide
    cities on the far side.
    """

    index = LineIndex(lines)
    if not len(index):
        return []
    found: List[Tuple[City, float]] = []
    for city in cities if cities is not None else world_cities():
        hits = index.nearest(city.lat, city.lon, max_results=1, max_distance=max_distance_deg)
        if hits:
            found.append((city, hits[0].distance))
    found.sort(key=lambda item: item[1])
    return found[:limit] if limit is not None else found


__all__ = ["DATA_PATH", "cities_near_lines", "lookup_city", "world_cities"]
