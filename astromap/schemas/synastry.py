from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from .common import LineType, OverlapClass, Planet, Sentiment
from .lines import AstroLine, City


class SynastryOverlap(BaseModel):
    model_config = ConfigDict(frozen=True)

    planet: Planet
    line_type: LineType
    classification: OverlapClass
    sentiment_a: Sentiment
    sentiment_b: Sentiment
    proximity_deg: float = Field(ge=0.0)


class OverlapReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    lines: List[AstroLine]
    overlaps: List[SynastryOverlap]


class OverlapInsight(BaseModel):
    model_config = ConfigDict(frozen=True)

    overlap: SynastryOverlap
    title: str
    text: str
    themes: List[str]
    cities: List[City] = []


class BondSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    harmonious: List[OverlapInsight] = []
    slightly_positive: List[OverlapInsight] = []
    neutral_overlap: List[OverlapInsight] = []
    tension: List[OverlapInsight] = []
    slightly_challenging: List[OverlapInsight] = []
    challenging: List[OverlapInsight] = []
    all_overlaps: List[SynastryOverlap] = []

    @property
    def total(self) -> int:
        return len(self.all_overlaps)

    def bucket(self, classification: OverlapClass) -> List[OverlapInsight]:
        return getattr(self, classification.value)


__all__ = ["BondSummary", "OverlapInsight", "OverlapReport", "SynastryOverlap"]
