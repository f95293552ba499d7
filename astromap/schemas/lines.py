from __future__ import annotations

from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .common import Influence, LineSource, LineType, OverlapClass, Planet, Sentiment, SideOfLine

GeoPoint = Tuple[float, float]  # (latitude, longitude) in degrees


class AstroLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    planet: Planet
    line_type: LineType
    points: Tuple[GeoPoint, ...]
    source: LineSource = LineSource.OWN
    strength: float = Field(default=1.0, gt=0.0, le=1.0)
    sentiment: Sentiment = Sentiment.NEUTRAL
    # set only by the overlap analyzer
    overlap: Optional[OverlapClass] = None
    overlap_proximity_deg: Optional[float] = None

    @property
    def key(self) -> Tuple[Planet, LineType, LineSource]:
        return self.planet, self.line_type, self.source


class LineSet(BaseModel):
    """Full geometry plus the subset that passes the caller's filters."""

    model_config = ConfigDict(frozen=True)

    all_lines: List[AstroLine]
    visible_lines: List[AstroLine]


class NearestLineResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    line: AstroLine
    distance: float = Field(ge=0.0)
    influence: Influence
    side: SideOfLine = SideOfLine.ON


class City(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    country: str
    lat: float
    lon: float

    @property
    def display_name(self) -> str:
        return f"{self.name}, {self.country}"


class Hotspot(BaseModel):
    model_config = ConfigDict(frozen=True)

    city: City
    lines: List[NearestLineResult]

    @property
    def closest(self) -> Optional[NearestLineResult]:
        return self.lines[0] if self.lines else None


__all__ = ["AstroLine", "City", "GeoPoint", "Hotspot", "LineSet", "NearestLineResult"]
