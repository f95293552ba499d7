from __future__ import annotations

from ..schemas.common import Planet

SIGN_NAMES = [
    "Aries", "Taurus", "Gemini", "Cancer", "Leo", "Virgo",
    "Libra", "Scorpio", "Sagittarius", "Capricorn", "Aquarius", "Pisces",
]

# Labels used in generated text.
PLANET_LABELS = {p: p.label for p in Planet}
PLANET_LABELS[Planet.LILITH] = "Black Moon Lilith"


def sign_index_from_lon(lon: float) -> int:
    return int(lon // 30) % 12


def sign_name_from_lon(lon: float) -> str:
    return SIGN_NAMES[sign_index_from_lon(lon)]


def fmt_deg(lon: float) -> str:
    # 0..360 to "Sign 12°34′"
    sidx = sign_index_from_lon(lon)
    within = lon % 30.0
    deg = int(within)
    mins = int((within - deg) * 60)
    return f"{SIGN_NAMES[sidx]} {deg:02d}°{mins:02d}′"


def planet_label(planet: Planet) -> str:
    return PLANET_LABELS[planet]
