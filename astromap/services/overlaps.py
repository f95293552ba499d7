"""Geographic coincidence between two charts' lines.

Proximity between corresponding lines:

* MC/IC: wrapped difference of the two meridian longitudes.
* ASC/DSC: smallest longitude gap along shared sample parallels, with each
  curve interpolated at the parallel. Curves sharing no sample parallel fall
  back to the smallest point-to-line distance.

Overlap decision table (sentiments unordered, beyond 10° no overlap):

=========================  ====================  ====================  ====================
pair                       tight (<= 1°)          close (<= 5°)         loose (<= 10°)
=========================  ====================  ====================  ====================
positive + positive        harmonious            harmonious            slightly_positive
difficult + difficult      harmonious            challenging           slightly_challenging
neutral + neutral          harmonious            neutral_overlap       neutral_overlap
positive + difficult       tension               tension               neutral_overlap
positive + neutral         slightly_positive     slightly_positive     neutral_overlap
difficult + neutral        slightly_challenging  slightly_challenging  neutral_overlap
=========================  ====================  ====================  ====================

Any matching pair within 1° is harmonious, difficult and neutral included.
Two charts whose lines coincide to within a degree share the same ground,
and a chart overlaid on itself must read as harmonious on every line. Past
1° matching sentiments fall back to their polarity, so difficult + difficult
steps from harmonious to challenging at the 1° boundary.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..config import get_settings
from ..schemas.charts import BirthProfile
from ..schemas.common import LineSource, LineType, NatalCondition, OverlapClass, Planet, Sentiment
from ..schemas.lines import AstroLine, City
from ..schemas.synastry import BondSummary, OverlapInsight, OverlapReport, SynastryOverlap
from . import ephem
from .angles import angle_diff
from .cities import cities_near_lines
from .classification import classify, interpretation_title, short_description
from .dignities import PlanetCondition, natal_conditions
from .lines import generate_lines
from .merger import synastry_pair
from .proximity import LineIndex

logger = logging.getLogger(__name__)

OVERLAP_THRESHOLD_DEG = 10.0
TIGHT_OVERLAP_DEG = 1.0
CLOSE_OVERLAP_DEG = 5.0
SAMPLE_LATITUDES: Tuple[float, ...] = tuple(float(lat) for lat in range(-60, 61, 5))

OVERLAP_DESCRIPTIONS: Dict[OverlapClass, str] = {
    OverlapClass.HARMONIOUS: "Both of you thrive here, with great energy for shared experiences",
    OverlapClass.CHALLENGING: "A place of shared intensity that asks patience from both",
    OverlapClass.TENSION: "Mixed energy: one partner may feel great while the other struggles",
    OverlapClass.SLIGHTLY_POSITIVE: "Generally good vibes, leaning positive for you both",
    OverlapClass.SLIGHTLY_CHALLENGING: "Slightly stressful, with one partner facing more friction",
    OverlapClass.NEUTRAL_OVERLAP: "Balanced shared energy, neither strongly positive nor difficult",
}


# ============================================================================
# DECISION TABLE
# ============================================================================

P, D, N = Sentiment.POSITIVE, Sentiment.DIFFICULT, Sentiment.NEUTRAL
H = OverlapClass

# pair -> (tight, close, loose)
OVERLAP_TABLE: Dict[frozenset, Tuple[OverlapClass, OverlapClass, OverlapClass]] = {
    frozenset({P}): (H.HARMONIOUS, H.HARMONIOUS, H.SLIGHTLY_POSITIVE),
    frozenset({D}): (H.HARMONIOUS, H.CHALLENGING, H.SLIGHTLY_CHALLENGING),
    frozenset({N}): (H.HARMONIOUS, H.NEUTRAL_OVERLAP, H.NEUTRAL_OVERLAP),
    frozenset({P, D}): (H.TENSION, H.TENSION, H.NEUTRAL_OVERLAP),
    frozenset({P, N}): (H.SLIGHTLY_POSITIVE, H.SLIGHTLY_POSITIVE, H.NEUTRAL_OVERLAP),
    frozenset({D, N}): (H.SLIGHTLY_CHALLENGING, H.SLIGHTLY_CHALLENGING, H.NEUTRAL_OVERLAP),
}

if len(OVERLAP_TABLE) != 6 or {c for row in OVERLAP_TABLE.values() for c in row} != set(OverlapClass):
    raise RuntimeError("overlap decision table must cover every sentiment pair and classification")


def proximity_band(proximity: float) -> Optional[int]:
    """0 = tight, 1 = close, 2 = loose, ``None`` beyond the overlap threshold."""

    if proximity <= TIGHT_OVERLAP_DEG:
        return 0
    if proximity <= CLOSE_OVERLAP_DEG:
        return 1
    if proximity <= OVERLAP_THRESHOLD_DEG:
        return 2
    return None


def classify_overlap(sentiment_a: Sentiment, sentiment_b: Sentiment, proximity: float) -> Optional[OverlapClass]:
    band = proximity_band(proximity)
    if band is None:
        return None
    return OVERLAP_TABLE[frozenset({Sentiment(sentiment_a), Sentiment(sentiment_b)})][band]


# ============================================================================
# PROXIMITY
# ============================================================================


def _lon_at_latitude(segment: AstroLine, lat: float) -> Optional[float]:
    pts = np.asarray(segment.points, dtype=float).reshape(-1, 2)
    if pts.shape[0] < 2:
        return None
    order = np.argsort(pts[:, 0])
    lats, lons = pts[order, 0], pts[order, 1]
    if lat < lats[0] or lat > lats[-1]:
        return None
    return float(np.interp(lat, lats, lons))


def _horizon_proximity(segments_a: Sequence[AstroLine], segments_b: Sequence[AstroLine]) -> float:
    best = float("inf")
    for lat in SAMPLE_LATITUDES:
        lons_a = [lon for lon in (_lon_at_latitude(s, lat) for s in segments_a) if lon is not None]
        lons_b = [lon for lon in (_lon_at_latitude(s, lat) for s in segments_b) if lon is not None]
        for la in lons_a:
            for lb in lons_b:
                best = min(best, angle_diff(la, lb))
    if best != float("inf"):
        return best

    # no shared parallel: compare the curves point to line, both ways
    def one_way(src: Sequence[AstroLine], dst: Sequence[AstroLine]) -> float:
        index = LineIndex(dst)
        dist = float("inf")
        for seg in src:
            for lat, lon in seg.points:
                hits = index.nearest(lat, lon, max_results=1)
                if hits:
                    dist = min(dist, hits[0].distance)
        return dist

    return min(one_way(segments_a, segments_b), one_way(segments_b, segments_a))


def line_proximity(segments_a: Sequence[AstroLine], segments_b: Sequence[AstroLine]) -> float:
    """Angular proximity in degrees between one line of chart A and its
    counterpart in chart B (every segment of each)."""

    if not segments_a or not segments_b:
        return float("inf")
    if segments_a[0].line_type.is_meridian:
        return min(
            angle_diff(a.points[0][1], b.points[0][1])
            for a in segments_a
            for b in segments_b
            if a.points and b.points
        )
    return _horizon_proximity(segments_a, segments_b)


# ============================================================================
# TAGGING
# ============================================================================


def _group(lines: Iterable[AstroLine], source: LineSource) -> "OrderedDict[Tuple[Planet, LineType], List[AstroLine]]":
    groups: "OrderedDict[Tuple[Planet, LineType], List[AstroLine]]" = OrderedDict()
    for line in lines:
        if line.source == source:
            groups.setdefault((line.planet, line.line_type), []).append(line)
    return groups


def tag_overlaps(
    tagged_lines: Sequence[AstroLine],
    first: LineSource = LineSource.OWN,
    second: LineSource = LineSource.PARTNER,
) -> OverlapReport:
    """Find coinciding (planet, line type) pairs between two tagged charts.

    Returns every input line (overlapping ones annotated) and the overlaps
    sorted closest first.
    """

    groups_a = _group(tagged_lines, first)
    groups_b = _group(tagged_lines, second)

    planet_order = {p: i for i, p in enumerate(Planet)}
    type_order = {t: i for i, t in enumerate(LineType)}
    overlaps: List[SynastryOverlap] = []
    for key in sorted(set(groups_a) & set(groups_b), key=lambda k: (planet_order[k[0]], type_order[k[1]])):
        segs_a, segs_b = groups_a[key], groups_b[key]
        proximity = line_proximity(segs_a, segs_b)
        classification = classify_overlap(segs_a[0].sentiment, segs_b[0].sentiment, proximity)
        if classification is None:
            continue
        overlaps.append(
            SynastryOverlap(
                planet=key[0],
                line_type=key[1],
                classification=classification,
                sentiment_a=segs_a[0].sentiment,
                sentiment_b=segs_b[0].sentiment,
                proximity_deg=proximity,
            )
        )
    overlaps.sort(key=lambda o: o.proximity_deg)

    by_key = {(o.planet, o.line_type): o for o in overlaps}
    lines: List[AstroLine] = []
    for line in tagged_lines:
        hit = by_key.get((line.planet, line.line_type))
        if hit is not None and line.source in (first, second):
            line = line.model_copy(update={"overlap": hit.classification, "overlap_proximity_deg": hit.proximity_deg})
        lines.append(line)

    logger.debug("overlaps_tagged", extra={"lines": len(lines), "overlaps": len(overlaps)})
    return OverlapReport(lines=lines, overlaps=overlaps)


# ============================================================================
# NATAL CONDITION SHIFT
# ============================================================================

_TOWARD_POSITIVE = {Sentiment.DIFFICULT: Sentiment.NEUTRAL, Sentiment.NEUTRAL: Sentiment.POSITIVE}
_TOWARD_DIFFICULT = {Sentiment.POSITIVE: Sentiment.NEUTRAL, Sentiment.NEUTRAL: Sentiment.DIFFICULT}


def shifted_sentiment(base: Sentiment, condition: NatalCondition) -> Sentiment:
    if condition == NatalCondition.STRONG:
        return _TOWARD_POSITIVE.get(base, base)
    if condition == NatalCondition.CHALLENGED:
        return _TOWARD_DIFFICULT.get(base, base)
    return base


def apply_natal_conditions(lines: Iterable[AstroLine], conditions: Mapping[Planet, PlanetCondition]) -> List[AstroLine]:
    """Shift each line's base sentiment one step by its planet's natal condition."""

    out: List[AstroLine] = []
    for line in lines:
        cond = conditions.get(line.planet)
        if cond is None:
            out.append(line)
            continue
        base = classify(line.planet, line.line_type).sentiment
        sentiment = shifted_sentiment(base, cond.tag)
        out.append(line if sentiment == line.sentiment else line.model_copy(update={"sentiment": sentiment}))
    return out


# ============================================================================
# BOND SUMMARY
# ============================================================================


def _chart_lines(
    profile: BirthProfile,
    include_minor: bool,
    points_per_degree: Optional[float],
    backend: Optional[str],
) -> List[AstroLine]:
    bodies = [p for p in Planet if include_minor or not p.is_minor]
    snapshot = ephem.chart_for_profile(profile, bodies=bodies, backend=backend)
    lines = generate_lines(snapshot.positions, snapshot.gst, LineSource.OWN, points_per_degree)
    return apply_natal_conditions(lines, natal_conditions(snapshot.positions))


def generate_bond_summary(
    profile_a: BirthProfile,
    profile_b: BirthProfile,
    include_minor_bodies: Optional[bool] = None,
    cities: Optional[Sequence[City]] = None,
    points_per_degree: Optional[float] = None,
    backend: Optional[str] = None,
) -> BondSummary:
    """Positions -> lines -> overlaps for two profiles, bucketed with text and
    the cities nearest to chart A's version of each overlapping line."""

    settings = get_settings()
    include_minor = settings.include_minor_bodies if include_minor_bodies is None else include_minor_bodies

    lines_a = _chart_lines(profile_a, include_minor, points_per_degree, backend)
    lines_b = _chart_lines(profile_b, include_minor, points_per_degree, backend)
    report = tag_overlaps(synastry_pair(lines_a, lines_b))

    buckets: Dict[OverlapClass, List[OverlapInsight]] = {c: [] for c in OverlapClass}
    for overlap in report.overlaps:
        segments = [l for l in lines_a if l.planet == overlap.planet and l.line_type == overlap.line_type]
        nearby = cities_near_lines(
            segments,
            settings.nearby_city_deg,
            cities=cities,
            limit=settings.max_nearby_cities,
        )
        insight = OverlapInsight(
            overlap=overlap,
            title=interpretation_title(overlap.planet, overlap.line_type),
            text=f"{OVERLAP_DESCRIPTIONS[overlap.classification]}. {short_description(overlap.planet, overlap.line_type)}",
            themes=list(classify(overlap.planet, overlap.line_type).keywords[:4]),
            cities=[city for city, _ in nearby],
        )
        buckets[overlap.classification].append(insight)

    logger.info(
        "overlaps_bond_summary_built",
        extra={"overlaps": len(report.overlaps), "include_minor": include_minor},
    )
    return BondSummary(
        harmonious=buckets[OverlapClass.HARMONIOUS],
        slightly_positive=buckets[OverlapClass.SLIGHTLY_POSITIVE],
        neutral_overlap=buckets[OverlapClass.NEUTRAL_OVERLAP],
        tension=buckets[OverlapClass.TENSION],
        slightly_challenging=buckets[OverlapClass.SLIGHTLY_CHALLENGING],
        challenging=buckets[OverlapClass.CHALLENGING],
        all_overlaps=report.overlaps,
    )


__all__ = [
    "CLOSE_OVERLAP_DEG",
    "OVERLAP_DESCRIPTIONS",
    "OVERLAP_TABLE",
    "OVERLAP_THRESHOLD_DEG",
    "SAMPLE_LATITUDES",
    "TIGHT_OVERLAP_DEG",
    "apply_natal_conditions",
    "classify_overlap",
    "generate_bond_summary",
    "line_proximity",
    "proximity_band",
    "shifted_sentiment",
    "tag_overlaps",
]
