"""Location synthesis: one narrative per place.

Reads the natal promise, the lines passing nearby, the relocated house
placements and the current transit timing into a single
:class:`~astromap.schemas.synthesis.LocationSynthesis`.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..schemas.charts import BirthProfile
from ..schemas.common import ActivationStrength, Planet
from ..schemas.lines import City, NearestLineResult
from ..schemas.synthesis import LocationSynthesis, RelocatedHighlight, TimingSummary
from . import ephem
from .constants import planet_label
from .dignities import condition_snippet, natal_conditions
from .lines import filter_lines, generate_lines
from .proximity import filter_by_impact, nearest_lines
from .relocation import DEFAULT_MAX_HIGHLIGHTS, compute_relocated_chart, relocated_highlights
from .transits import ScrubDate, city_activation

logger = logging.getLogger(__name__)

MAX_NEARBY_LINES = 15
EMPTY_PARAGRAPH = "No major planetary lines or timing highlights for this location."


def synthesis_paragraph(
    condition_snippets: Sequence[str],
    nearby_lines: Sequence[NearestLineResult],
    highlights: Sequence[RelocatedHighlight],
    timing: TimingSummary,
) -> str:
    """Natal promise, then the closest line, the first house highlight and timing."""

    parts = []
    if condition_snippets:
        parts.append(condition_snippets[0])
    if nearby_lines:
        top = nearby_lines[0]
        parts.append(
            f"You're near a {planet_label(top.line.planet)} {top.line.line_type.value} line "
            f"({top.influence.value} influence)."
        )
    if highlights:
        parts.append(highlights[0].text)
    if timing.best_visit_window is not None:
        parts.append(f"Transit-wise, {timing.best_visit_window.peak_description}: a good window to visit.")
    elif timing.strength != ActivationStrength.QUIET:
        parts.append(f"Right now your lines here are {timing.strength.value}.")
    return " ".join(parts) if parts else EMPTY_PARAGRAPH


def location_synthesis(
    profile: BirthProfile,
    lat: float,
    lon: float,
    scrub_date: ScrubDate,
    city_name: str = "",
    hide_mild: bool = False,
    include_minor: bool = True,
    max_highlights: int = DEFAULT_MAX_HIGHLIGHTS,
    include_house_shift: bool = False,
    backend: Optional[str] = None,
) -> LocationSynthesis:
    """Everything the engine can say about ``profile`` at ``(lat, lon)``.

    With ``include_house_shift`` the birthplace chart is also cast so a
    highlight can name a planet that changes house on the move.
    """

    bodies = [p for p in Planet if include_minor or not p.is_minor]
    snapshot = ephem.chart_for_profile(profile, bodies=bodies, backend=backend)
    eps = ephem.obliquity(ephem.centuries_since_j2000(snapshot.jd_ut))

    lines = filter_lines(generate_lines(snapshot.positions, snapshot.gst), include_minor=include_minor)
    nearby = filter_by_impact(nearest_lines(lines, lat, lon, max_results=MAX_NEARBY_LINES), hide_mild)
    nearby_planets = list(dict.fromkeys(r.line.planet for r in nearby))

    relocated = compute_relocated_chart(snapshot.positions, snapshot.gst, lat, lon, eps)
    birthplace = None
    if include_house_shift:
        birthplace = compute_relocated_chart(snapshot.positions, snapshot.gst, profile.lat, profile.lon, eps)
    highlights = relocated_highlights(relocated, nearby_planets, max_highlights, birthplace)

    conditions = natal_conditions(snapshot.positions)
    snippets = []
    for planet in dict.fromkeys(nearby_planets + [h.planet for h in highlights]):
        snippet = condition_snippet(conditions, planet)
        if snippet:
            snippets.append(snippet)

    activation = city_activation(
        City(name=city_name, country="", lat=lat, lon=lon),
        profile.date,
        profile.time,
        profile.lon,
        scrub_date,
        tz=profile.tz,
        hide_mild=hide_mild,
        backend=backend,
    )
    timing = TimingSummary(
        strength=activation.strength,
        best_visit_window=activation.best_visit_window,
        active_transits=len(activation.activations),
    )

    logger.debug(
        "synthesis_built",
        extra={"city": city_name, "nearby": len(nearby), "highlights": len(highlights), "strength": timing.strength.value},
    )
    return LocationSynthesis(
        lat=lat,
        lon=lon,
        city_name=city_name,
        condition_snippets=snippets,
        nearby_lines=nearby,
        relocated=relocated,
        highlights=highlights,
        timing=timing,
        paragraph=synthesis_paragraph(snippets, nearby[:3], highlights, timing),
    )


__all__ = ["EMPTY_PARAGRAPH", "location_synthesis", "synthesis_paragraph"]
