"""Planetary positions and sidereal time for the astrocartography engine.

The default ``analytic`` backend is self-contained: low-order series for the
Sun and Moon, linear mean orbital elements solved with Kepler's equation for
the planets and asteroids, and mean elements for the lunar node and Black
Moon Lilith. Setting ``EPHEMERIS_BACKEND=moseph`` routes the classical bodies
through the Swiss Ephemeris Moshier model instead (see ``swiss_backend``).

Every function here is pure: nothing is cached between calls.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..config import configured_backend
from ..schemas.charts import BirthProfile, ChartSnapshot, PlanetPosition
from ..schemas.common import Planet
from .angles import asin_d, atan2_d, cos_d, normalize, sin_d, tan_d

logger = logging.getLogger(__name__)

J2000 = 2451545.0
DAYS_PER_CENTURY = 36525.0
AU_KM = 149_597_870.7
SPEED_STEP_DAYS = 0.5

BACKENDS = ("analytic", "moseph")


class InvalidBirthDataError(ValueError):
    """Raised when calendar fields, time or coordinates cannot describe an instant."""


class EphemerisBackendError(RuntimeError):
    """Raised when an unknown ephemeris backend is requested."""


# ============================================================================
# TIME
# ============================================================================


def julian_day(year: int, month: int, day: int, hour: float = 0.0) -> float:
    """Julian Day for a Gregorian calendar date and UT hour (Meeus, ch. 7)."""

    if month <= 2:
        year -= 1
        month += 12
    a = math.floor(year / 100)
    b = 2 - a + math.floor(a / 4)
    return (
        math.floor(365.25 * (year + 4716))
        + math.floor(30.6001 * (month + 1))
        + day
        + hour / 24.0
        + b
        - 1524.5
    )


def centuries_since_j2000(jd: float) -> float:
    return (jd - J2000) / DAYS_PER_CENTURY


def greenwich_sidereal_time(jd: float) -> float:
    """Greenwich mean sidereal time in degrees for a UT Julian Day."""

    t = centuries_since_j2000(jd)
    gst = (
        280.46061837
        + 360.98564736629 * (jd - J2000)
        + 0.000387933 * t * t
        - (t * t * t) / 38710000.0
    )
    return normalize(gst)


def local_sidereal_time(gst: float, longitude: float) -> float:
    return normalize(gst + longitude)


def longitude_offset_hours(longitude: float) -> int:
    """Civil offset implied by a longitude: 15° per hour, halves round up."""

    return math.floor(longitude / 15.0 + 0.5)


def to_utc(
    year: int,
    month: int,
    day: int,
    hour: int,
    minute: int,
    reference_longitude: Optional[float] = None,
    tz: Optional[str] = None,
    second: int = 0,
) -> datetime:
    """Interpret civil calendar fields as an aware UTC datetime.

    An explicit IANA ``tz`` wins. Without one, ``reference_longitude`` implies
    a fixed offset of ``round(longitude / 15)`` hours. With neither, the
    fields are already UTC.
    """

    try:
        naive = datetime(int(year), int(month), int(day), int(hour), int(minute), int(second))
    except (TypeError, ValueError) as exc:
        raise InvalidBirthDataError(
            f"invalid civil date/time {year}-{month}-{day} {hour}:{minute}:{second}: {exc}"
        ) from exc

    if tz:
        try:
            zone = ZoneInfo(tz)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise InvalidBirthDataError(f"unknown time zone {tz!r}") from exc
        return naive.replace(tzinfo=zone).astimezone(timezone.utc)

    if reference_longitude is not None:
        lon = float(reference_longitude)
        if not math.isfinite(lon) or not -180.0 <= lon <= 180.0:
            raise InvalidBirthDataError(f"reference longitude out of range: {reference_longitude!r}")
        offset = longitude_offset_hours(lon)
        return (naive - timedelta(hours=offset)).replace(tzinfo=timezone.utc)

    return naive.replace(tzinfo=timezone.utc)


def jd_from_datetime(moment: datetime) -> float:
    """Julian Day (UT) for an aware datetime; naive values are taken as UTC."""

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    utc = moment.astimezone(timezone.utc)
    hour = (
        utc.hour
        + utc.minute / 60
        + utc.second / 3600
        + utc.microsecond / 3_600_000_000
    )
    return julian_day(utc.year, utc.month, utc.day, hour)


def to_jd_utc(date_str: str, time_str: str, tz: Optional[str] = None, reference_longitude: Optional[float] = None) -> float:
    """Convert ISO date and ``HH:MM[:SS]`` strings to a UT Julian Day."""

    try:
        d = datetime.strptime(date_str, "%Y-%m-%d")
        parts = [int(p) for p in time_str.split(":")]
    except (TypeError, ValueError) as exc:
        raise InvalidBirthDataError(f"malformed date/time {date_str!r} {time_str!r}") from exc
    if len(parts) not in (2, 3):
        raise InvalidBirthDataError(f"time must be HH:MM or HH:MM:SS, got {time_str!r}")
    second = parts[2] if len(parts) == 3 else 0
    moment = to_utc(d.year, d.month, d.day, parts[0], parts[1], reference_longitude, tz, second)
    return jd_from_datetime(moment)


# ============================================================================
# COORDINATES
# ============================================================================


def obliquity(t: float) -> float:
    """Mean obliquity of the ecliptic in degrees for ``t`` centuries since J2000."""

    return 23.439291 - 0.0130042 * t - 1.64e-7 * t * t + 5.04e-7 * t * t * t


def ecliptic_to_equatorial(lon: float, lat: float, eps: float) -> Tuple[float, float]:
    """Return ``(ra, dec)`` in degrees for ecliptic ``lon``/``lat``."""

    sin_dec = sin_d(lat) * cos_d(eps) + cos_d(lat) * sin_d(eps) * sin_d(lon)
    dec = asin_d(sin_dec)
    y = sin_d(lon) * cos_d(eps) - tan_d(lat) * sin_d(eps)
    x = cos_d(lon)
    return normalize(atan2_d(y, x)), dec


# ============================================================================
# ANALYTIC SERIES
# ============================================================================


@dataclass(frozen=True)
class OrbitalElements:
    """Mean elements as ``(value at J2000, rate per Julian century)``."""

    mean_lon: Tuple[float, float]
    a: float
    e: Tuple[float, float]
    i: Tuple[float, float]
    arg_peri: Tuple[float, float]
    node: Tuple[float, float]

    def at(self, t: float) -> Tuple[float, float, float, float, float, float]:
        return (
            normalize(self.mean_lon[0] + self.mean_lon[1] * t),
            self.a,
            self.e[0] + self.e[1] * t,
            self.i[0] + self.i[1] * t,
            normalize(self.arg_peri[0] + self.arg_peri[1] * t),
            normalize(self.node[0] + self.node[1] * t),
        )


ORBITAL_ELEMENTS: Dict[Planet, OrbitalElements] = {
    Planet.MERCURY: OrbitalElements((252.2509, 149472.6746), 0.387098, (0.205635, 0.000020), (7.0050, 0.0019), (29.1241, 1.0148), (48.3313, -0.1254)),
    Planet.VENUS: OrbitalElements((181.9798, 58517.8157), 0.723332, (0.006773, -0.000048), (3.3947, 0.0010), (54.8842, 0.5082), (76.6799, -0.2780)),
    Planet.MARS: OrbitalElements((355.4330, 19140.2993), 1.523679, (0.093405, 0.000090), (1.8497, -0.0006), (286.5016, 0.7717), (49.5574, -0.2934)),
    Planet.JUPITER: OrbitalElements((34.3515, 3034.9057), 5.202561, (0.048498, 0.000163), (1.3033, -0.0019), (273.8777, 0.3254), (100.4542, 0.1768)),
    Planet.SATURN: OrbitalElements((49.9429, 1222.1138), 9.554747, (0.055546, -0.000346), (2.4889, 0.0025), (339.3939, 0.7372), (113.6634, -0.2507)),
    Planet.URANUS: OrbitalElements((313.2318, 428.2011), 19.218446, (0.046381, -0.000027), (0.7732, 0.0001), (96.9310, 0.3670), (74.0005, 0.0747)),
    Planet.NEPTUNE: OrbitalElements((304.8800, 218.4616), 30.110387, (0.009456, 0.000007), (1.7700, -0.0093), (276.3360, 0.3259), (131.7841, -0.0061)),
    Planet.PLUTO: OrbitalElements((238.9290, 145.2078), 39.482, (0.2488, 0.0), (17.14, 0.0), (113.76, 0.0), (110.30, 0.0)),
    Planet.CHIRON: OrbitalElements((309.8, 714.5), 13.699, (0.378, 0.0), (6.92, 0.0), (339.25, 0.0), (209.30, 0.0)),
    Planet.CERES: OrbitalElements((231.36, 7809.0), 2.7658, (0.0760, 0.0), (10.59, 0.0), (73.60, 0.0), (80.39, 0.0)),
    Planet.PALLAS: OrbitalElements((7.49, 7807.0), 2.7716, (0.2313, 0.0), (34.83, 0.0), (310.20, 0.0), (173.09, 0.0)),
    Planet.JUNO: OrbitalElements((173.68, 8259.0), 2.6691, (0.2562, 0.0), (12.99, 0.0), (248.41, 0.0), (169.87, 0.0)),
    Planet.VESTA: OrbitalElements((274.55, 9920.0), 2.3615, (0.0887, 0.0), (7.14, 0.0), (149.84, 0.0), (103.85, 0.0)),
}

# Calculated points carry no geocentric distance.
CALCULATED_POINTS = frozenset({Planet.NORTH_NODE, Planet.SOUTH_NODE, Planet.LILITH})

EclipticPoint = Tuple[float, float, Optional[float]]  # lon, lat, distance (AU)


def solve_kepler(mean_anomaly: float, e: float, iterations: int = 20, tol: float = 1e-8) -> float:
    """Eccentric anomaly in degrees by Newton iteration."""

    ecc = mean_anomaly
    for _ in range(iterations):
        step = (mean_anomaly - (ecc - math.degrees(e * sin_d(ecc)))) / (1.0 - e * cos_d(ecc))
        ecc += step
        if abs(step) < tol:
            break
    return ecc


def _sun(t: float) -> Tuple[float, float]:
    """Geocentric solar longitude and Earth-Sun distance in AU."""

    m = normalize(357.5291 + 35999.0503 * t)
    c = 1.9146 * sin_d(m) + 0.02 * sin_d(2 * m) + 0.0003 * sin_d(3 * m)
    lon = normalize(m + c + 180.0 + 102.9372)
    radius = 1.000001018 * (1 - 0.016709 ** 2) / (1 + 0.016709 * cos_d(m + c))
    return lon, radius


def _moon(t: float) -> EclipticPoint:
    l0 = normalize(218.3165 + 481267.8813 * t)
    m_moon = normalize(134.9634 + 477198.8676 * t)
    m_sun = normalize(357.5291 + 35999.0503 * t)
    d = normalize(297.8502 + 445267.1115 * t)
    f = normalize(93.2720 + 483202.0175 * t)

    lon = (
        l0
        + 6.289 * sin_d(m_moon)
        + 1.274 * sin_d(2 * d - m_moon)
        + 0.658 * sin_d(2 * d)
        + 0.214 * sin_d(2 * m_moon)
        - 0.186 * sin_d(m_sun)
        - 0.114 * sin_d(2 * f)
    )
    lat = 5.128 * sin_d(f) + 0.281 * sin_d(m_moon + f) + 0.278 * sin_d(m_moon - f)
    dist_km = (
        385000.56
        - 20905.355 * cos_d(m_moon)
        - 3699.111 * cos_d(2 * d - m_moon)
        - 2955.968 * cos_d(2 * d)
    )
    return normalize(lon), lat, dist_km / AU_KM


def _from_elements(elements: OrbitalElements, t: float, earth_lon: float, earth_r: float) -> EclipticPoint:
    mean_lon, a, e, inc, arg_peri, node = elements.at(t)
    mean_anomaly = normalize(mean_lon - arg_peri - node)
    ecc = solve_kepler(mean_anomaly, e)

    true_anomaly = 2.0 * atan2_d(math.sqrt(1 + e) * sin_d(ecc / 2), math.sqrt(1 - e) * cos_d(ecc / 2))
    r = a * (1 - e * cos_d(ecc))
    u = normalize(true_anomaly + arg_peri)

    xh = r * (cos_d(node) * cos_d(u) - sin_d(node) * sin_d(u) * cos_d(inc))
    yh = r * (sin_d(node) * cos_d(u) + cos_d(node) * sin_d(u) * cos_d(inc))
    zh = r * sin_d(u) * sin_d(inc)

    xg = xh - earth_r * cos_d(earth_lon)
    yg = yh - earth_r * sin_d(earth_lon)
    zg = zh
    planar = math.hypot(xg, yg)
    return normalize(atan2_d(yg, xg)), atan2_d(zg, planar), math.sqrt(planar * planar + zg * zg)


def mean_node(t: float) -> float:
    return normalize(125.0446 - 1934.1363 * t)


def mean_lilith(t: float) -> float:
    return normalize(263.3532 + 4069.0137 * t)


def analytic_ecliptic(jd: float, bodies: Iterable[Planet]) -> Dict[Planet, EclipticPoint]:
    """Geocentric ecliptic coordinates from the self-contained series."""

    t = centuries_since_j2000(jd)
    sun_lon, earth_r = _sun(t)
    earth_lon = normalize(sun_lon + 180.0)

    out: Dict[Planet, EclipticPoint] = {}
    for body in bodies:
        if body == Planet.SUN:
            out[body] = (sun_lon, 0.0, earth_r)
        elif body == Planet.MOON:
            out[body] = _moon(t)
        elif body == Planet.NORTH_NODE:
            out[body] = (mean_node(t), 0.0, None)
        elif body == Planet.SOUTH_NODE:
            out[body] = (normalize(mean_node(t) + 180.0), 0.0, None)
        elif body == Planet.LILITH:
            out[body] = (mean_lilith(t), 0.0, None)
        else:
            out[body] = _from_elements(ORBITAL_ELEMENTS[body], t, earth_lon, earth_r)
    return out


# ============================================================================
# PUBLIC API
# ============================================================================


def _resolve_backend(backend: Optional[str]) -> str:
    name = (backend or configured_backend()).strip().lower()
    if name not in BACKENDS:
        raise EphemerisBackendError(f"unknown ephemeris backend {name!r}; expected one of {BACKENDS}")
    return name


def _ecliptic(jd: float, bodies: List[Planet], backend: str) -> Dict[Planet, EclipticPoint]:
    if backend == "moseph":
        from . import swiss_backend

        swiss = swiss_backend.ecliptic(jd, [b for b in bodies if b in swiss_backend.SWISS_BODIES])
        rest = analytic_ecliptic(jd, [b for b in bodies if b not in swiss])
        rest.update(swiss)
        return rest
    return analytic_ecliptic(jd, bodies)


def _lon_rate(before: float, after: float, span_days: float) -> float:
    return (((after - before) + 180.0) % 360.0 - 180.0) / span_days


def positions_at_jd(
    jd: float,
    bodies: Optional[Iterable[Planet]] = None,
    backend: Optional[str] = None,
) -> List[PlanetPosition]:
    """Positions for a UT Julian Day, in ``Planet`` declaration order."""

    if not math.isfinite(jd):
        raise InvalidBirthDataError(f"non-finite Julian Day: {jd!r}")
    backend_name = _resolve_backend(backend)
    requested = None if bodies is None else set(bodies)
    wanted = [p for p in Planet if requested is None or p in requested]

    now = _ecliptic(jd, wanted, backend_name)
    before = _ecliptic(jd - SPEED_STEP_DAYS, wanted, backend_name)
    after = _ecliptic(jd + SPEED_STEP_DAYS, wanted, backend_name)
    eps = obliquity(centuries_since_j2000(jd))

    out: List[PlanetPosition] = []
    for body in wanted:
        lon, lat, dist = now[body]
        ra, dec = ecliptic_to_equatorial(lon, lat, eps)
        out.append(
            PlanetPosition(
                planet=body,
                lon=lon,
                lat=lat,
                ra=ra,
                dec=dec,
                distance=None if body in CALCULATED_POINTS else dist,
                speed=_lon_rate(before[body][0], after[body][0], 2 * SPEED_STEP_DAYS),
            )
        )
    logger.debug("ephem_positions_computed", extra={"jd": jd, "backend": backend_name, "bodies": len(out)})
    return out


def positions(
    year: int,
    month: int,
    day: int,
    hour: int,
    minute: int,
    reference_longitude: Optional[float] = None,
    tz: Optional[str] = None,
    bodies: Optional[Iterable[Planet]] = None,
    backend: Optional[str] = None,
) -> List[PlanetPosition]:
    """Planet positions for civil calendar fields (see :func:`to_utc`)."""

    moment = to_utc(year, month, day, hour, minute, reference_longitude, tz)
    return positions_at_jd(jd_from_datetime(moment), bodies=bodies, backend=backend)


def sidereal_time(
    year: int,
    month: int,
    day: int,
    hour: int,
    minute: int,
    reference_longitude: Optional[float] = None,
    tz: Optional[str] = None,
) -> float:
    """Greenwich sidereal time in degrees for civil calendar fields."""

    moment = to_utc(year, month, day, hour, minute, reference_longitude, tz)
    return greenwich_sidereal_time(jd_from_datetime(moment))


def snapshot_at_jd(jd: float, bodies: Optional[Iterable[Planet]] = None, backend: Optional[str] = None) -> ChartSnapshot:
    return ChartSnapshot(
        positions=positions_at_jd(jd, bodies=bodies, backend=backend),
        gst=greenwich_sidereal_time(jd),
        jd_ut=jd,
    )


def chart_for_profile(
    profile: BirthProfile,
    bodies: Optional[Iterable[Planet]] = None,
    backend: Optional[str] = None,
) -> ChartSnapshot:
    """Natal snapshot for a validated birth profile.

    The profile longitude doubles as the reference longitude when the profile
    carries no time zone.
    """

    jd = to_jd_utc(profile.date, profile.time, tz=profile.tz, reference_longitude=profile.lon)
    return snapshot_at_jd(jd, bodies=bodies, backend=backend)


__all__ = [
    "AU_KM",
    "BACKENDS",
    "CALCULATED_POINTS",
    "EphemerisBackendError",
    "InvalidBirthDataError",
    "OrbitalElements",
    "ORBITAL_ELEMENTS",
    "analytic_ecliptic",
    "centuries_since_j2000",
    "chart_for_profile",
    "ecliptic_to_equatorial",
    "greenwich_sidereal_time",
    "jd_from_datetime",
    "julian_day",
    "local_sidereal_time",
    "longitude_offset_hours",
    "mean_lilith",
    "mean_node",
    "obliquity",
    "positions",
    "positions_at_jd",
    "sidereal_time",
    "snapshot_at_jd",
    "solve_kepler",
    "to_jd_utc",
    "to_utc",
]
