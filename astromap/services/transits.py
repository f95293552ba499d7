"""Transit activation of natal placements (cyclocartography).

A scrub date given as a calendar ``date`` (or ``YYYY-MM-DD`` string) is
evaluated at 12:00 UTC. Aware datetimes are converted to UTC; naive ones
are taken as UTC. The natal chart itself follows the civil-time policy of
:func:`astromap.services.ephem.to_utc`.

Orbs and intensity bands are scaled per moving body, see
``TRANSIT_ORB_MULTIPLIERS`` and ``PROGRESSION_ORB_MULTIPLIERS`` in
:mod:`astromap.services.transit_math`.
"""

from __future__ import annotations

import logging
import math
from collections import OrderedDict
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..schemas.charts import PlanetPosition
from ..schemas.common import CLASSICAL_PLANETS, ActivationStrength, Aspect, Intensity, Planet, Sentiment
from ..schemas.lines import AstroLine, City
from ..schemas.transits import (
    ActivationSource,
    ActivationWindow,
    CityActivation,
    ImportantDate,
    LineActivation,
    WindowType,
)
from . import ephem
from .constants import fmt_deg, planet_label
from .lines import generate_lines
from .proximity import INFLUENCE_BANDS, LineIndex, filter_by_impact, nearest_lines
from .transit_math import ASPECT_ANGLES, aspect_between, intensity_for_orb, is_applying, orb_multiplier

logger = logging.getLogger(__name__)

ScrubDate = Union[date, datetime, str]

TRANSIT_PLANETS: Tuple[Planet, ...] = CLASSICAL_PLANETS
NATAL_PLANETS: Tuple[Planet, ...] = CLASSICAL_PLANETS
PROGRESSION_PLANETS: Tuple[Planet, ...] = (Planet.SUN, Planet.MOON, Planet.MERCURY, Planet.VENUS, Planet.MARS)
OUTER_PLANETS: Tuple[Planet, ...] = (Planet.JUPITER, Planet.SATURN, Planet.URANUS, Planet.NEPTUNE, Planet.PLUTO)

DAYS_PER_YEAR = 365.25
WINDOW_GAP_FACTOR = 2.5
LOOKAHEAD_DAYS = 365
LOOKAHEAD_STEP_DAYS = 14
BEST_VISIT_MIN_SCORE = 1.2
PROGRESSION_VISIT_BONUS = 0.15
MAX_DATES_PER_MONTH = 3
MAX_AFFECTED_CITIES = 5
AFFECTED_CITY_DISTANCE = 10.0

INTENSITY_ORDER: Dict[Intensity, int] = {
    Intensity.EXACT: 0,
    Intensity.STRONG: 1,
    Intensity.MODERATE: 2,
    Intensity.MILD: 3,
}
INTENSITY_SCORE: Dict[Intensity, float] = {
    Intensity.EXACT: 1.0,
    Intensity.STRONG: 0.7,
    Intensity.MODERATE: 0.4,
    Intensity.MILD: 0.2,
}
ASPECT_NATURE: Dict[Aspect, str] = {
    Aspect.CONJUNCTION: "neutral",
    Aspect.TRINE: "harmonious",
    Aspect.SEXTILE: "harmonious",
    Aspect.SQUARE: "challenging",
    Aspect.OPPOSITION: "challenging",
}
NATURE_TEXT: Dict[str, str] = {
    "neutral": "powerful focus and intensity",
    "harmonious": "supportive, flowing energy",
    "challenging": "activating tension and growth",
}

# how welcome a window is when choosing when to visit
TRANSIT_FAVORABILITY_SCORE: Dict[Planet, float] = {
    Planet.JUPITER: 1.2,
    Planet.VENUS: 1.0,
    Planet.SUN: 0.8,
    Planet.MOON: 0.5,
    Planet.MERCURY: 0.3,
    Planet.MARS: -1.0,
    Planet.SATURN: -0.9,
    Planet.URANUS: -0.4,
    Planet.NEPTUNE: -0.3,
    Planet.PLUTO: -0.6,
}
ASPECT_FAVORABILITY_SCORE: Dict[Aspect, float] = {
    Aspect.TRINE: 1.1,
    Aspect.SEXTILE: 0.9,
    Aspect.CONJUNCTION: 0.5,
    Aspect.SQUARE: -1.1,
    Aspect.OPPOSITION: -0.8,
}
SENTIMENT_SCORE: Dict[Sentiment, float] = {
    Sentiment.POSITIVE: 1.0,
    Sentiment.NEUTRAL: 0.0,
    Sentiment.DIFFICULT: -1.0,
}

EVOLUTIONARY_LABELS: Dict[Planet, str] = {
    Planet.SATURN: "Structure Phase",
    Planet.PLUTO: "Deep Transformation",
    Planet.URANUS: "Sudden Pivot",
    Planet.MARS: "Action Phase",
}


# ============================================================================
# TIME
# ============================================================================


def scrub_instant(scrub: ScrubDate) -> datetime:
    """Aware UTC instant at which a scrub date is evaluated."""

    if isinstance(scrub, str):
        try:
            scrub = date.fromisoformat(scrub)
        except ValueError as exc:
            raise ephem.InvalidBirthDataError(f"malformed scrub date {scrub!r}") from exc
    if isinstance(scrub, datetime):
        if scrub.tzinfo is None:
            return scrub.replace(tzinfo=timezone.utc)
        return scrub.astimezone(timezone.utc)
    return datetime.combine(scrub, time(12, 0), tzinfo=timezone.utc)


def _natal_jd(natal_date: str, natal_time: str, natal_longitude: float, tz: Optional[str]) -> float:
    if natal_longitude is None or not math.isfinite(natal_longitude):
        raise ephem.InvalidBirthDataError(f"natal longitude is required, got {natal_longitude!r}")
    return ephem.to_jd_utc(natal_date, natal_time, tz=tz, reference_longitude=natal_longitude)


def _natal_chart(
    natal_date: str, natal_time: str, natal_longitude: float, tz: Optional[str], backend: Optional[str]
) -> Tuple[float, List[PlanetPosition]]:
    natal_jd = _natal_jd(natal_date, natal_time, natal_longitude, tz)
    return natal_jd, ephem.positions_at_jd(natal_jd, bodies=NATAL_PLANETS, backend=backend)


def progressed_jd(natal_jd: float, target_jd: float) -> float:
    """Secondary progression: one day after birth per year of life."""

    return natal_jd + (target_jd - natal_jd) / DAYS_PER_YEAR


def _as_date(value: ScrubDate) -> date:
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    return scrub_instant(value).date()


def _date_range(start: ScrubDate, end: ScrubDate, step_days: int) -> Tuple[date, date]:
    if step_days < 1:
        raise ValueError("step_days must be at least 1")
    first, last = _as_date(start), _as_date(end)
    if last < first:
        raise ValueError("end must not precede start")
    return first, last


# ============================================================================
# ASPECTS
# ============================================================================


def _summary(source: ActivationSource, moving: PlanetPosition, natal: PlanetPosition, aspect: Aspect, orb: float, applying: bool) -> str:
    label = "Progressed" if source == "progression" else "Transiting"
    phase = "applying" if applying else "separating"
    return (
        f"{label} {planet_label(moving.planet)} ({fmt_deg(moving.lon)}) {aspect.value} "
        f"natal {planet_label(natal.planet)} ({fmt_deg(natal.lon)}): "
        f"{NATURE_TEXT[ASPECT_NATURE[aspect]]} ({phase}, orb {orb:.1f}°)"
    )


def find_aspects(
    moving: Sequence[PlanetPosition],
    natal: Sequence[PlanetPosition],
    source: ActivationSource = "transit",
    planets: Optional[Iterable[Planet]] = None,
) -> List[LineActivation]:
    """Every (moving, natal) pair within orb, unsorted."""

    allowed = set(planets) if planets is not None else set(TRANSIT_PLANETS)
    found: List[LineActivation] = []
    for mov in moving:
        if mov.planet not in allowed:
            continue
        scale = orb_multiplier(mov.planet, source)
        for nat in natal:
            if nat.planet not in NATAL_PLANETS:
                continue
            # a progressed body always sits close to its own natal place
            if source == "progression" and mov.planet == nat.planet:
                continue
            hit = aspect_between(mov.lon, nat.lon, orb_scale=scale)
            if hit is None:
                continue
            aspect, orb = hit
            applying = is_applying(mov.lon, mov.speed, nat.lon, 0.0, ASPECT_ANGLES[aspect])
            found.append(
                LineActivation(
                    transit_planet=mov.planet,
                    natal_planet=nat.planet,
                    aspect=aspect,
                    intensity=intensity_for_orb(orb, scale=scale),
                    orb=orb,
                    applying=applying,
                    source=source,
                    summary=_summary(source, mov, nat, aspect, orb, applying),
                )
            )
    return found


def _sort_activations(items: List[LineActivation]) -> List[LineActivation]:
    return sorted(items, key=lambda a: (INTENSITY_ORDER[a.intensity], a.orb))


def activations_at(
    natal: Sequence[PlanetPosition],
    natal_jd: float,
    scrub: ScrubDate,
    include_progressions: bool = False,
    backend: Optional[str] = None,
) -> List[LineActivation]:
    """Activations for an already computed natal chart."""

    target_jd = ephem.jd_from_datetime(scrub_instant(scrub))
    moving = ephem.positions_at_jd(target_jd, bodies=TRANSIT_PLANETS, backend=backend)
    found = find_aspects(moving, natal, "transit", TRANSIT_PLANETS)
    if include_progressions:
        progressed = ephem.positions_at_jd(
            progressed_jd(natal_jd, target_jd), bodies=PROGRESSION_PLANETS, backend=backend
        )
        found.extend(find_aspects(progressed, natal, "progression", PROGRESSION_PLANETS))
    return _sort_activations(found)


def current_activations(
    natal_date: str,
    natal_time: str,
    natal_longitude: float,
    scrub_date: ScrubDate,
    tz: Optional[str] = None,
    include_progressions: bool = False,
    backend: Optional[str] = None,
) -> List[LineActivation]:
    """Moving planets within orb of natal placements on ``scrub_date``.

    Sorted by intensity (exact first), then by residual orb.
    """

    natal_jd, natal = _natal_chart(natal_date, natal_time, natal_longitude, tz, backend)
    out = activations_at(natal, natal_jd, scrub_date, include_progressions, backend)
    logger.debug(
        "transits_activations_computed",
        extra={"scrub": str(scrub_date), "count": len(out), "progressions": include_progressions},
    )
    return out


# ============================================================================
# WINDOWS
# ============================================================================


def window_label(transit_planet: Planet, aspect: Aspect) -> Tuple[WindowType, str]:
    """Window type and short label for a moving body in a given aspect."""

    nature = ASPECT_NATURE[aspect]
    if transit_planet in (Planet.JUPITER, Planet.VENUS):
        if nature == "harmonious":
            return "benefic", "Abundance Peak"
        if aspect == Aspect.CONJUNCTION:
            return "benefic", "Optimal Window for Flow"
    if transit_planet in EVOLUTIONARY_LABELS:
        return "evolutionary", EVOLUTIONARY_LABELS[transit_planet]
    return "neutral", "Activation Window"


def _close_window(
    key: Tuple[Planet, Planet, Aspect, ActivationSource],
    run: List[Tuple[date, LineActivation]],
) -> ActivationWindow:
    transit_planet, natal_planet, aspect, source = key
    peak_day, peak = min(run, key=lambda item: item[1].orb)
    window_type, short_label = window_label(transit_planet, aspect)
    label = "Progressed" if source == "progression" else "Transiting"
    return ActivationWindow(
        transit_planet=transit_planet,
        natal_planet=natal_planet,
        aspect=aspect,
        source=source,
        start=run[0][0],
        end=run[-1][0],
        exact_date=peak_day,
        min_orb=peak.orb,
        peak_intensity=peak.intensity,
        window_type=window_type,
        short_label=short_label,
        peak_description=(
            f"{label} {planet_label(transit_planet)} {aspect.value} natal "
            f"{planet_label(natal_planet)} (exact {peak_day.isoformat()})"
        ),
    )


def scan_windows(
    natal: Sequence[PlanetPosition],
    natal_jd: float,
    first: date,
    last: date,
    step_days: int = 7,
    include_progressions: bool = False,
    backend: Optional[str] = None,
) -> List[ActivationWindow]:
    """Windows for an already computed natal chart, sorted by start date."""

    hits: "OrderedDict[tuple, List[Tuple[date, LineActivation]]]" = OrderedDict()
    day = first
    while day <= last:
        for act in activations_at(natal, natal_jd, day, include_progressions, backend):
            key = (act.transit_planet, act.natal_planet, act.aspect, act.source)
            hits.setdefault(key, []).append((day, act))
        day += timedelta(days=step_days)

    max_gap = timedelta(days=step_days * WINDOW_GAP_FACTOR)
    windows: List[ActivationWindow] = []
    for key, samples in hits.items():
        run: List[Tuple[date, LineActivation]] = []
        for sample in samples:
            if run and sample[0] - run[-1][0] > max_gap:
                windows.append(_close_window(key, run))
                run = []
            run.append(sample)
        windows.append(_close_window(key, run))
    windows.sort(key=lambda w: (w.start, INTENSITY_ORDER[w.peak_intensity]))
    return windows


def find_activation_windows(
    natal_date: str,
    natal_time: str,
    natal_longitude: float,
    start: ScrubDate,
    end: ScrubDate,
    step_days: int = 7,
    tz: Optional[str] = None,
    include_progressions: bool = False,
    backend: Optional[str] = None,
) -> List[ActivationWindow]:
    """Step through ``start..end`` and merge consecutive hits into windows.

    A gap longer than ``2.5 * step_days`` between hits closes a window. The
    exact date is the sampled day with the smallest residual orb.
    """

    first, last = _date_range(start, end, step_days)
    natal_jd, natal = _natal_chart(natal_date, natal_time, natal_longitude, tz, backend)
    return scan_windows(natal, natal_jd, first, last, step_days, include_progressions, backend)


# ============================================================================
# CITY ACTIVATION
# ============================================================================


def strength_for(activations: Iterable[LineActivation]) -> ActivationStrength:
    intensities = {a.intensity for a in activations}
    if Intensity.EXACT in intensities:
        return ActivationStrength.PEAK
    if Intensity.STRONG in intensities:
        return ActivationStrength.ACTIVE
    if intensities:
        return ActivationStrength.BUILDING
    return ActivationStrength.QUIET


def visit_score(window: ActivationWindow, line_tone: float = 0.0) -> float:
    """How good a time ``window`` is for a visit; higher is better.

    ``line_tone`` is the sentiment (-1, 0 or 1) of the activated natal
    planet's line near the place in question.
    """

    bonus = PROGRESSION_VISIT_BONUS if window.source == "progression" else 0.0
    return (
        line_tone
        + TRANSIT_FAVORABILITY_SCORE.get(window.transit_planet, 0.0)
        + ASPECT_FAVORABILITY_SCORE[window.aspect]
        + bonus
    )


def best_visit_window(
    windows: Iterable[ActivationWindow],
    line_tones: Optional[Dict[Planet, float]] = None,
) -> Optional[ActivationWindow]:
    """Highest scoring window, provided it reaches ``BEST_VISIT_MIN_SCORE``.

    Ties keep the earlier window.
    """

    tones = line_tones or {}
    best: Optional[Tuple[float, ActivationWindow]] = None
    for window in windows:
        score = visit_score(window, tones.get(window.natal_planet, 0.0))
        if best is None or score > best[0]:
            best = (score, window)
    if best is None or best[0] < BEST_VISIT_MIN_SCORE:
        return None
    return best[1]


def line_tones(nearby: Iterable) -> Dict[Planet, float]:
    """Strongest sentiment score per planet among nearby line results."""

    tones: Dict[Planet, float] = {}
    for result in nearby:
        score = SENTIMENT_SCORE[result.line.sentiment]
        prev = tones.get(result.line.planet)
        if prev is None or abs(score) > abs(prev):
            tones[result.line.planet] = score
    return tones


def city_activation(
    city: City,
    natal_date: str,
    natal_time: str,
    natal_longitude: float,
    scrub_date: ScrubDate,
    tz: Optional[str] = None,
    natal_lines: Optional[Sequence[AstroLine]] = None,
    max_distance: float = INFLUENCE_BANDS[-1][0],
    hide_mild: bool = False,
    include_progressions: bool = False,
    lookahead_days: int = LOOKAHEAD_DAYS,
    lookahead_step_days: int = LOOKAHEAD_STEP_DAYS,
    backend: Optional[str] = None,
) -> CityActivation:
    """How strongly the natal lines passing near ``city`` are activated.

    With ``lookahead_days > 0`` the days after ``scrub_date`` are also
    scanned: ``next_activation`` is the first window touching a nearby
    planet and ``best_visit_window`` the best scoring one (see
    :func:`visit_score`). ``lookahead_days=0`` skips the scan.
    """

    if lookahead_step_days < 1:
        raise ValueError("lookahead_step_days must be at least 1")
    natal_jd, natal = _natal_chart(natal_date, natal_time, natal_longitude, tz, backend)
    if natal_lines is None:
        natal_lines = generate_lines(natal, ephem.greenwich_sidereal_time(natal_jd))

    nearby = filter_by_impact(
        nearest_lines(natal_lines, city.lat, city.lon, max_results=None, max_distance=max_distance),
        hide_mild,
    )
    tones = line_tones(nearby)
    relevant = [
        a
        for a in activations_at(natal, natal_jd, scrub_date, include_progressions, backend)
        if a.natal_planet in tones
    ]

    upcoming: List[ActivationWindow] = []
    if lookahead_days > 0 and tones:
        first = _as_date(scrub_date)
        upcoming = [
            w
            for w in scan_windows(
                natal,
                natal_jd,
                first,
                first + timedelta(days=lookahead_days),
                lookahead_step_days,
                include_progressions,
                backend,
            )
            if w.natal_planet in tones
        ]

    logger.debug(
        "transits_city_activation",
        extra={"city": city.name, "nearby": len(nearby), "active": len(relevant), "upcoming": len(upcoming)},
    )
    return CityActivation(
        city=city,
        strength=strength_for(relevant),
        score=round(sum(INTENSITY_SCORE[a.intensity] for a in relevant), 3),
        activations=relevant,
        next_activation=upcoming[0] if upcoming else None,
        best_visit_window=best_visit_window(upcoming, tones),
    )


# ============================================================================
# IMPORTANT DATES
# ============================================================================


def date_category(natal_planet: Planet, aspect: Aspect) -> str:
    nature = ASPECT_NATURE[aspect]
    if natal_planet == Planet.JUPITER and nature == "harmonious":
        return "travel"
    if nature == "challenging":
        return "caution"
    if natal_planet in (Planet.SUN, Planet.JUPITER, Planet.SATURN):
        return "career"
    if natal_planet in (Planet.VENUS, Planet.MOON):
        return "love"
    return "growth"


def date_significance(window: ActivationWindow) -> str:
    if window.aspect == Aspect.CONJUNCTION:
        return "major"
    if window.aspect == Aspect.OPPOSITION or window.transit_planet in OUTER_PLANETS:
        return "moderate"
    return "minor"


def _date_text(window: ActivationWindow) -> Tuple[str, str]:
    nature = ASPECT_NATURE[window.aspect]
    mover = planet_label(window.transit_planet)
    natal = planet_label(window.natal_planet)
    lowered = natal.lower()
    if nature == "harmonious":
        title = f"{mover} activates your {natal} lines: opportunity window"
        tail = f"This is a favorable period for activities related to your {lowered} energy."
    elif nature == "challenging":
        title = f"{mover} challenges your {natal} lines: growth period"
        tail = f"Expect some friction in {lowered}-related areas, but this tension drives meaningful growth."
    else:
        title = f"{mover} conjuncts your {natal} lines: intense focus"
        tail = f"A concentrated period of {lowered} themes; pay close attention to what comes up."
    description = f"From {window.start.isoformat()} to {window.end.isoformat()}, {window.peak_description}. {tail}"
    return title, description


def cap_per_month(dates: Iterable[ImportantDate], limit: int = MAX_DATES_PER_MONTH) -> List[ImportantDate]:
    """Keep at most ``limit`` dates per calendar month; major ones always stay.

    Kept major dates still count toward the month's total.
    """

    counts: Dict[Tuple[int, int], int] = {}
    kept: List[ImportantDate] = []
    for item in dates:
        month = (item.exact_date.year, item.exact_date.month)
        count = counts.get(month, 0)
        if item.significance == "major" or count < limit:
            counts[month] = count + 1
            kept.append(item)
    return kept


def find_important_dates(
    natal_date: str,
    natal_time: str,
    natal_longitude: float,
    start: ScrubDate,
    end: ScrubDate,
    cities: Optional[Sequence[City]] = None,
    tz: Optional[str] = None,
    include_progressions: bool = True,
    step_days: int = 7,
    backend: Optional[str] = None,
) -> List[ImportantDate]:
    """Notable activation windows in ``start..end``, one entry per window.

    Only conjunctions, oppositions and trines count, and plain transits only
    from Jupiter outward. With ``cities``, each entry names up to five that
    lie within 10° of a line of the activated natal planet.
    """

    first, last = _date_range(start, end, step_days)
    natal_jd, natal = _natal_chart(natal_date, natal_time, natal_longitude, tz, backend)
    windows = scan_windows(natal, natal_jd, first, last, step_days, include_progressions, backend)

    near_planets: List[Tuple[str, set]] = []
    if cities:
        index = LineIndex(generate_lines(natal, ephem.greenwich_sidereal_time(natal_jd)))
        for city in cities:
            hits = index.nearest(city.lat, city.lon, max_results=None, max_distance=AFFECTED_CITY_DISTANCE)
            near_planets.append((city.name, {h.line.planet for h in hits}))

    found: List[ImportantDate] = []
    for window in windows:
        if window.aspect not in (Aspect.CONJUNCTION, Aspect.OPPOSITION, Aspect.TRINE):
            continue
        if window.source == "transit" and window.transit_planet not in OUTER_PLANETS:
            continue
        affected = [name for name, planets in near_planets if window.natal_planet in planets]
        title, description = _date_text(window)
        found.append(
            ImportantDate(
                exact_date=window.exact_date,
                title=title,
                description=description,
                significance=date_significance(window),
                category=date_category(window.natal_planet, window.aspect),
                affected_cities=affected[:MAX_AFFECTED_CITIES],
                window=window,
            )
        )

    kept = cap_per_month(found)
    logger.debug(
        "transits_important_dates",
        extra={"windows": len(windows), "candidates": len(found), "kept": len(kept)},
    )
    return kept


__all__ = [
    "ASPECT_FAVORABILITY_SCORE",
    "ASPECT_NATURE",
    "INTENSITY_ORDER",
    "NATAL_PLANETS",
    "PROGRESSION_PLANETS",
    "TRANSIT_FAVORABILITY_SCORE",
    "TRANSIT_PLANETS",
    "activations_at",
    "best_visit_window",
    "cap_per_month",
    "city_activation",
    "current_activations",
    "date_category",
    "date_significance",
    "find_activation_windows",
    "find_aspects",
    "find_important_dates",
    "line_tones",
    "progressed_jd",
    "scan_windows",
    "scrub_instant",
    "strength_for",
    "visit_score",
    "window_label",
]
