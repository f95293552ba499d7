"""Degree arithmetic shared by the ephemeris, line and synastry services.

Everything here works in degrees; radians never leak out of a helper.
"""

from __future__ import annotations

import math

DEG = math.pi / 180.0
RAD = 180.0 / math.pi


def normalize(angle: float) -> float:
    """Wrap ``angle`` into [0, 360)."""

    wrapped = angle % 360.0
    # -1e-17 % 360 rounds to 360.0
    return 0.0 if wrapped == 360.0 else wrapped


def wrap_lon(angle: float) -> float:
    """Wrap ``angle`` into the geographic range [-180, 180)."""

    wrapped = (angle + 180.0) % 360.0 - 180.0
    return -180.0 if wrapped >= 180.0 else wrapped


def angle_diff(a: float, b: float) -> float:
    """Return the minimal angular distance between two longitudes (0..180)."""

    return abs((a - b + 180.0) % 360.0 - 180.0)


def opposite_meridian(lon: float) -> float:
    """Return the meridian 180° away, keeping the result in [-180, 180]."""

    return lon - 180.0 if lon >= 0.0 else lon + 180.0


def shorter_arc_midpoint(a: float, b: float) -> float:
    """Midpoint of two longitudes measured along the shorter arc.

    ``shorter_arc_midpoint(359, 1)`` is 0, never 180. Exactly opposed
    inputs resolve to the midpoint counted forward from ``min(a, b)``.
    """

    a = normalize(a)
    b = normalize(b)
    mid = (a + b) / 2.0
    if abs(a - b) > 180.0:
        mid += 180.0
    return normalize(mid)


def sin_d(x: float) -> float:
    return math.sin(x * DEG)


def cos_d(x: float) -> float:
    return math.cos(x * DEG)


def tan_d(x: float) -> float:
    return math.tan(x * DEG)


def atan2_d(y: float, x: float) -> float:
    return math.atan2(y, x) * RAD


def asin_d(x: float) -> float:
    return math.asin(max(-1.0, min(1.0, x))) * RAD


__all__ = [
    "DEG",
    "RAD",
    "angle_diff",
    "asin_d",
    "atan2_d",
    "cos_d",
    "normalize",
    "opposite_meridian",
    "shorter_arc_midpoint",
    "sin_d",
    "tan_d",
    "wrap_lon",
]
