"""Natal condition of the classical bodies: sign dignity plus natal aspects.

A planet is *strong* in domicile or exaltation, or when it only receives
soft aspects; *challenged* in detriment or fall, or when hard aspects
outnumber soft ones. Dignity wins over aspects when they disagree.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from ..schemas.charts import PlanetPosition
from ..schemas.common import CLASSICAL_PLANETS, Aspect, NatalCondition, Planet
from .angles import angle_diff
from .constants import SIGN_NAMES, planet_label, sign_name_from_lon

DOMICILE: Dict[Planet, Tuple[str, ...]] = {
    Planet.SUN: ("Leo",),
    Planet.MOON: ("Cancer",),
    Planet.MERCURY: ("Gemini", "Virgo"),
    Planet.VENUS: ("Taurus", "Libra"),
    Planet.MARS: ("Aries", "Scorpio"),
    Planet.JUPITER: ("Sagittarius", "Pisces"),
    Planet.SATURN: ("Capricorn", "Aquarius"),
    Planet.URANUS: ("Aquarius",),
    Planet.NEPTUNE: ("Pisces",),
    Planet.PLUTO: ("Scorpio",),
}
EXALT: Dict[Planet, str] = {
    Planet.SUN: "Aries",
    Planet.MOON: "Taurus",
    Planet.MERCURY: "Virgo",
    Planet.VENUS: "Pisces",
    Planet.MARS: "Capricorn",
    Planet.JUPITER: "Cancer",
    Planet.SATURN: "Libra",
    Planet.URANUS: "Aquarius",
    Planet.NEPTUNE: "Libra",
    Planet.PLUTO: "Aries",
}


def _opposite(sign: str) -> str:
    return SIGN_NAMES[(SIGN_NAMES.index(sign) + 6) % 12]


DETRIMENT: Dict[Planet, Tuple[str, ...]] = {p: tuple(_opposite(s) for s in signs) for p, signs in DOMICILE.items()}
FALL: Dict[Planet, str] = {p: _opposite(s) for p, s in EXALT.items()}

# (aspect, exact angle, max orb) for natal aspects; tighter than transit orbs.
PTOLEMAIC_ASPECTS: Tuple[Tuple[Aspect, float, float], ...] = (
    (Aspect.CONJUNCTION, 0.0, 8.0),
    (Aspect.OPPOSITION, 180.0, 6.0),
    (Aspect.TRINE, 120.0, 6.0),
    (Aspect.SQUARE, 90.0, 6.0),
    (Aspect.SEXTILE, 60.0, 4.0),
)
HARD_ASPECTS = frozenset({Aspect.SQUARE, Aspect.OPPOSITION})
SOFT_ASPECTS = frozenset({Aspect.TRINE, Aspect.SEXTILE})


@dataclass(frozen=True)
class NatalAspect:
    planet1: Planet
    planet2: Planet
    aspect: Aspect
    orb: float

    def other(self, planet: Planet) -> Planet:
        return self.planet2 if self.planet1 == planet else self.planet1


@dataclass(frozen=True)
class PlanetCondition:
    planet: Planet
    tag: NatalCondition
    aspects: Tuple[NatalAspect, ...] = field(default_factory=tuple)
    reason: Optional[str] = None


def dignity_for(planet: Planet, sign: str) -> str:
    if sign == EXALT.get(planet):
        return "exaltation"
    if sign == FALL.get(planet):
        return "fall"
    if sign in DOMICILE.get(planet, ()):
        return "domicile"
    if sign in DETRIMENT.get(planet, ()):
        return "detriment"
    return "neutral"


def natal_aspects(positions: Iterable[PlanetPosition]) -> List[NatalAspect]:
    core = [p for p in positions if p.planet in CLASSICAL_PLANETS]
    found: List[NatalAspect] = []
    for i in range(len(core)):
        for j in range(i + 1, len(core)):
            sep = angle_diff(core[i].lon, core[j].lon)
            for aspect, exact, max_orb in PTOLEMAIC_ASPECTS:
                orb = abs(sep - exact)
                if orb <= max_orb:
                    found.append(NatalAspect(core[i].planet, core[j].planet, aspect, round(orb, 1)))
    return found


def natal_conditions(positions: Iterable[PlanetPosition]) -> Dict[Planet, PlanetCondition]:
    """Condition of every classical body present in ``positions``."""

    positions = list(positions)
    aspects = natal_aspects(positions)
    out: Dict[Planet, PlanetCondition] = {}
    for pos in positions:
        if pos.planet not in CLASSICAL_PLANETS:
            continue
        planet = pos.planet
        mine = tuple(a for a in aspects if planet in (a.planet1, a.planet2))

        tag = NatalCondition.NEUTRAL
        reason: Optional[str] = None
        dignity = dignity_for(planet, sign_name_from_lon(pos.lon))
        if dignity in ("domicile", "exaltation"):
            tag, reason = NatalCondition.STRONG, f"in {dignity}"
        elif dignity in ("detriment", "fall"):
            tag, reason = NatalCondition.CHALLENGED, f"in {dignity}"

        hard = [a for a in mine if a.aspect in HARD_ASPECTS]
        soft = [a for a in mine if a.aspect in SOFT_ASPECTS]
        if hard and len(hard) > len(soft):
            if tag != NatalCondition.STRONG:
                tag = NatalCondition.CHALLENGED
                reason = f"{hard[0].aspect.value} {planet_label(hard[0].other(planet))}"
        elif soft and not hard:
            if tag != NatalCondition.CHALLENGED:
                tag = NatalCondition.STRONG
                reason = reason or "supportive aspects"

        out[planet] = PlanetCondition(planet=planet, tag=tag, aspects=mine, reason=reason)
    return out


def condition_snippet(conditions: Dict[Planet, PlanetCondition], planet: Planet) -> str:
    cond = conditions.get(planet)
    if cond is None or cond.tag == NatalCondition.NEUTRAL:
        return ""
    name = planet_label(planet)
    if cond.tag == NatalCondition.STRONG:
        return f"Natally, your {name} is strong and supportive."
    suffix = f" ({cond.reason})" if cond.reason else ""
    return f"Natally, your {name} is challenged{suffix}."


__all__ = [
    "DETRIMENT",
    "DOMICILE",
    "EXALT",
    "FALL",
    "NatalAspect",
    "PlanetCondition",
    "condition_snippet",
    "dignity_for",
    "natal_aspects",
    "natal_conditions",
]
