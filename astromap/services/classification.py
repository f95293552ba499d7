"""Static (planet, line type) classification library.

``classify`` is total over ``Planet`` x ``LineType``. Keywords come from the
bundled per-pair interpretation table (themes followed by best-for uses);
the table is loaded eagerly and checked for completeness at import time, so
a new body without an interpretation fails the import instead of a
downstream filter.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

from ..schemas.common import LineType, Planet, Sentiment
from .constants import planet_label

INTERPRETATIONS_PATH = Path(__file__).resolve().parents[1] / "data" / "interpretations.json"


class UnsupportedClassificationError(LookupError):
    """Raised for a (planet, line type) pair outside the supported domain."""


@dataclass(frozen=True)
class LineClassification:
    sentiment: Sentiment
    keywords: Tuple[str, ...]


@dataclass(frozen=True)
class LineInterpretation:
    title: str
    short_desc: str
    living_here: str
    visiting_here: str
    themes: Tuple[str, ...]
    best_for: Tuple[str, ...]
    challenges: Tuple[str, ...]


@dataclass(frozen=True)
class SideOfLineInfo:
    preferred_side: str
    summary: str
    west_house: str
    east_house: str
    west_desc: str
    east_desc: str


# ============================================================================
# KEYWORD TABLES
# ============================================================================

# Tag -> substrings that count as a match for that tag.
KEYWORD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "love": ("love", "romance", "romantic", "partner", "partnership", "relationship", "marriage", "attraction", "intimacy", "heart", "soulmate"),
    "money": ("money", "financ", "wealth", "income", "invest", "profit", "real estate", "property", "abundan", "prosper", "fortun", "luck", "salary", "commerce", "banking", "joint venture"),
    "career": ("career", "work", "business", "profession", "job", "vocation", "success", "achievement", "ambition", "management", "entrepreneur"),
    "home": ("home", "family", "domestic", "roots", "foundation", "living", "household", "nurtur", "property", "real estate"),
    "creativity": ("creativ", "art", "music", "expression", "inspiration", "talent", "performance", "writing", "design", "fashion"),
    "spiritual": ("spiritual", "soul", "mystical", "meditation", "transcend", "divine", "intuition", "psychic", "wisdom"),
    "travel": ("travel", "international", "abroad", "foreign", "migration", "exploration", "adventure"),
    "healing": ("heal", "therap", "recovery", "transform", "renewal", "wellness", "health"),
    "leadership": ("leader", "authority", "power", "influence", "command", "govern", "public", "fame"),
    "partnerships": ("partner", "collaborat", "relationship", "alliance", "marriage", "teamwork"),
}

# Per line type: west house, east house, west themes, east themes.
# West of a line the planet stays angular; east of it the planet falls cadent.
SIDE_DATA: Dict[LineType, Tuple[str, str, str, str]] = {
    LineType.ASC: ("1st house", "12th house", "self-expression and identity", "subconscious, dreams and spiritual life"),
    LineType.MC: ("10th house", "9th house", "career, reputation and public life", "travel, philosophy and higher learning"),
    LineType.DSC: ("7th house", "6th house", "partnerships and close relationships", "daily routines, health and service"),
    LineType.IC: ("4th house", "3rd house", "home, family and emotional roots", "communication, local community and learning"),
}


# ============================================================================
# SENTIMENT RULES
# ============================================================================


def _sentiment(planet: Planet, line_type: LineType) -> Sentiment:
    if planet in (Planet.VENUS, Planet.JUPITER, Planet.NORTH_NODE):
        return Sentiment.POSITIVE
    if planet == Planet.SATURN:
        return Sentiment.NEUTRAL if line_type == LineType.MC else Sentiment.DIFFICULT
    if planet == Planet.PLUTO:
        return Sentiment.NEUTRAL if line_type.is_meridian else Sentiment.DIFFICULT
    if planet == Planet.SUN:
        return Sentiment.POSITIVE if line_type in (LineType.MC, LineType.ASC) else Sentiment.NEUTRAL
    if planet == Planet.MOON:
        return Sentiment.POSITIVE if line_type in (LineType.IC, LineType.ASC) else Sentiment.NEUTRAL
    if planet == Planet.MARS:
        return Sentiment.NEUTRAL if line_type == LineType.IC else Sentiment.DIFFICULT
    if planet == Planet.NEPTUNE:
        return Sentiment.DIFFICULT if line_type in (LineType.ASC, LineType.IC) else Sentiment.NEUTRAL
    # mixed energy
    return Sentiment.NEUTRAL


def _load_interpretations() -> Dict[Tuple[Planet, LineType], LineInterpretation]:
    with INTERPRETATIONS_PATH.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    table: Dict[Tuple[Planet, LineType], LineInterpretation] = {}
    for planet_key, by_line in payload.items():
        for line_key, item in by_line.items():
            table[(Planet(planet_key), LineType(line_key))] = LineInterpretation(
                title=item["title"],
                short_desc=item["short_desc"],
                living_here=item["living_here"],
                visiting_here=item["visiting_here"],
                themes=tuple(item["themes"]),
                best_for=tuple(item["best_for"]),
                challenges=tuple(item["challenges"]),
            )
    return table


def _build_table(
    interpretations: Dict[Tuple[Planet, LineType], LineInterpretation],
) -> Dict[Tuple[Planet, LineType], LineClassification]:
    table: Dict[Tuple[Planet, LineType], LineClassification] = {}
    for (planet, line_type), interp in interpretations.items():
        keywords = tuple(k.lower() for k in interp.themes + interp.best_for)
        table[(planet, line_type)] = LineClassification(_sentiment(planet, line_type), keywords)
    return table


INTERPRETATIONS = _load_interpretations()
CLASSIFICATION_TABLE = _build_table(INTERPRETATIONS)

if len(CLASSIFICATION_TABLE) != len(Planet) * len(LineType) or not all(
    c.keywords for c in CLASSIFICATION_TABLE.values()
):
    raise RuntimeError("classification table does not cover every (planet, line type) pair")


# ============================================================================
# LOOKUPS
# ============================================================================


def _coerce(planet, line_type) -> Tuple[Planet, LineType]:
    try:
        return Planet(planet), LineType(line_type)
    except (TypeError, ValueError) as exc:
        raise UnsupportedClassificationError(f"no classification for ({planet!r}, {line_type!r})") from exc


def classify(planet: Planet, line_type: LineType) -> LineClassification:
    """Return the sentiment and theme keywords of a line."""

    return CLASSIFICATION_TABLE[_coerce(planet, line_type)]


def interpretation(planet: Planet, line_type: LineType) -> LineInterpretation:
    """Full reading of a line: title, short text, living/visiting notes, themes."""

    return INTERPRETATIONS[_coerce(planet, line_type)]


def expand_keyword(keyword: str) -> Tuple[str, ...]:
    tag = keyword.strip().lower()
    return KEYWORD_ALIASES.get(tag, (tag,))


def matches_keyword(planet: Planet, line_type: LineType, keyword: str) -> bool:
    """True when any alias of ``keyword`` occurs inside one of the line's keywords."""

    aliases = expand_keyword(keyword)
    return any(alias in kw for kw in classify(planet, line_type).keywords for alias in aliases)


def interpretation_title(planet: Planet, line_type: LineType) -> str:
    return interpretation(planet, line_type).title


def short_description(planet: Planet, line_type: LineType) -> str:
    return interpretation(planet, line_type).short_desc


def preferred_side(planet: Planet, line_type: LineType) -> str:
    """Side of a line where the planet expresses best: ``west``, ``east`` or ``both``."""

    planet, line_type = _coerce(planet, line_type)
    if planet in (Planet.VENUS, Planet.JUPITER, Planet.SUN, Planet.MOON, Planet.NORTH_NODE):
        return "west"
    if planet in (Planet.SATURN, Planet.PLUTO):
        return "east"
    if planet == Planet.MARS and line_type in (LineType.ASC, LineType.DSC):
        return "east"
    if planet == Planet.NEPTUNE and line_type in (LineType.ASC, LineType.IC):
        return "east"
    return "both"


def side_house(line_type: LineType, side: str) -> str:
    west, east, _, _ = SIDE_DATA[LineType(line_type)]
    return east if side == "east" else west


def side_of_line_info(
    planet: Planet,
    line_type: LineType,
    sentiment: Optional[Sentiment] = None,
) -> SideOfLineInfo:
    """How the planet reads on each side of its line.

    Saturn and Pluto, and any line whose sentiment is difficult, are
    described as easing on the cadent (east) side rather than gaining on
    the angular (west) side.
    """

    planet, line_type = _coerce(planet, line_type)
    west_house, east_house, west_label, east_label = SIDE_DATA[line_type]
    preferred = preferred_side(planet, line_type)
    label = planet_label(planet)
    difficult = (
        sentiment == Sentiment.DIFFICULT
        or planet in (Planet.SATURN, Planet.PLUTO)
        or classify(planet, line_type).sentiment == Sentiment.DIFFICULT
    )

    if difficult:
        summary = {
            "east": "Less challenging on the eastern side of the line.",
            "west": "More intense on the western side of the line.",
            "both": "Intensity varies by side; both have trade-offs.",
        }[preferred]
        west_desc = (
            f"West of the line, {label} sits in your {west_house}: its challenging energy hits at full "
            f"force through your {west_label}. Expect the difficulties to be more direct and unavoidable."
        )
        east_desc = (
            f"East of the line, {label} shifts to your {east_house}: its intensity is softened through "
            f"your {east_label}. Challenges are still present but more manageable and internalized."
        )
    else:
        summary = {
            "west": "More beneficial on the western side of the line.",
            "east": "Subtler on the eastern side of the line.",
            "both": "Both sides offer value, depending on your goals.",
        }[preferred]
        west_desc = (
            f"West of the line, {label} sits in your {west_house}: its energy directly shapes your "
            f"{west_label}. The benefits are more visible and tangible."
        )
        east_desc = (
            f"East of the line, {label} shifts to your {east_house}: its energy works through your "
            f"{east_label}. The benefits are subtler and more internalized."
        )

    return SideOfLineInfo(
        preferred_side=preferred,
        summary=summary,
        west_house=west_house,
        east_house=east_house,
        west_desc=west_desc,
        east_desc=east_desc,
    )


__all__ = [
    "CLASSIFICATION_TABLE",
    "INTERPRETATIONS",
    "KEYWORD_ALIASES",
    "LineClassification",
    "LineInterpretation",
    "SIDE_DATA",
    "SideOfLineInfo",
    "UnsupportedClassificationError",
    "classify",
    "expand_keyword",
    "interpretation",
    "interpretation_title",
    "matches_keyword",
    "preferred_side",
    "short_description",
    "side_house",
    "side_of_line_info",
]
