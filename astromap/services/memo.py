"""Caller-owned memoization over the pure ephemeris entry points.

The engine never caches on its own. Interactive callers that recompute the
same chart while a user scrubs a slider can hold one of these instead.
"""

from __future__ import annotations

from functools import lru_cache
from typing import List, Optional, Tuple

from ..schemas.charts import PlanetPosition
from ..schemas.common import Planet
from . import ephem


class CachedEphemeris:
    def __init__(self, maxsize: int = 128, backend: Optional[str] = None) -> None:
        if maxsize < 1:
            raise ValueError("maxsize must be positive")
        self.backend = backend
        self._positions = lru_cache(maxsize=maxsize)(self._compute_positions)
        self._sidereal = lru_cache(maxsize=maxsize)(ephem.sidereal_time)

    def _compute_positions(self, year, month, day, hour, minute, reference_longitude, tz, bodies) -> Tuple[PlanetPosition, ...]:
        return tuple(
            ephem.positions(
                year, month, day, hour, minute,
                reference_longitude=reference_longitude,
                tz=tz,
                bodies=bodies,
                backend=self.backend,
            )
        )

    def positions(
        self,
        year: int,
        month: int,
        day: int,
        hour: int,
        minute: int,
        reference_longitude: Optional[float] = None,
        tz: Optional[str] = None,
        bodies: Optional[Tuple[Planet, ...]] = None,
    ) -> List[PlanetPosition]:
        key_bodies = None if bodies is None else tuple(bodies)
        return list(self._positions(year, month, day, hour, minute, reference_longitude, tz, key_bodies))

    def sidereal_time(
        self,
        year: int,
        month: int,
        day: int,
        hour: int,
        minute: int,
        reference_longitude: Optional[float] = None,
        tz: Optional[str] = None,
    ) -> float:
        return self._sidereal(year, month, day, hour, minute, reference_longitude, tz)

    def cache_info(self):
        return {"positions": self._positions.cache_info(), "sidereal_time": self._sidereal.cache_info()}

    def clear(self) -> None:
        self._positions.cache_clear()
        self._sidereal.cache_clear()


__all__ = ["CachedEphemeris"]
