"""Rise, transit, and set instants, plus circumpolar and never-rises checks."""

import math
from datetime import datetime, timedelta
from typing import Literal

from skycore.models import VisibilityResult, VisibilityStatus
from skycore.timesys import (
    SIDEREAL_RATE,
    gmst_hours,
    local_sidereal_time,
    normalize_hours,
    start_of_utc_day,
)

Solver = Literal["iterative", "linear"]
SOLVERS: tuple[str, ...] = ("iterative", "linear")

# sin(-0.833°): standard altitude of the apparent horizon (refraction + semi-diameter)
HORIZON_ALTITUDE_SINE = -0.01454

_SINGULAR = 1e-12
_TOLERANCE_HOURS = 1e-9
_MAX_PASSES = 8


def horizon_hour_angle_cosine(dec: float, latitude: float) -> float:
    """Cosine of the hour angle at which an object crosses the apparent horizon.

    Values above 1 mean the object never rises, below -1 that it never sets.
    At a terrestrial or celestial pole the ratio is singular; the result is
    then +inf or -inf by the sign of the numerator, never NaN.
    """
    dec_rad = math.radians(dec)
    lat_rad = math.radians(latitude)
    numerator = HORIZON_ALTITUDE_SINE - math.sin(lat_rad) * math.sin(dec_rad)
    denominator = math.cos(lat_rad) * math.cos(dec_rad)
    if abs(denominator) < _SINGULAR:
        return math.inf if numerator >= 0 else -math.inf
    return numerator / denominator


def reference_hour_angle_cosine(dec: float, latitude: float) -> float:
    """Tangent form of the horizon hour-angle cosine, used by the linear solver.

    ``-0.01454 - tan φ tan δ``: the horizon term is not divided by
    ``cos φ cos δ``. Near the circumpolar and never-rises limits this moves the
    classification threshold by a few tenths of a degree. Same pole guard as
    ``horizon_hour_angle_cosine``.
    """
    dec_rad = math.radians(dec)
    lat_rad = math.radians(latitude)
    if abs(math.cos(lat_rad) * math.cos(dec_rad)) < _SINGULAR:
        numerator = HORIZON_ALTITUDE_SINE - math.sin(lat_rad) * math.sin(dec_rad)
        return math.inf if numerator >= 0 else -math.inf
    return HORIZON_ALTITUDE_SINE - math.tan(lat_rad) * math.tan(dec_rad)


def classify(cos_h: float) -> VisibilityStatus:
    if cos_h > 1.0:
        return VisibilityStatus.NEVER_RISES
    if cos_h < -1.0:
        return VisibilityStatus.CIRCUMPOLAR
    return VisibilityStatus.RISES_AND_SETS


def is_star_visible(dec: float, latitude: float) -> bool:
    """Whether an object can ever be above the horizon from this latitude.

    Necessary, not sufficient, for being above the horizon right now.
    """
    return dec > latitude - 90.0


def _signed_hours(hours: float) -> float:
    """Wrap an hour difference into [-12, 12)."""
    return normalize_hours(hours + 12.0) - 12.0


def _solve_iterative(target_lst: float, longitude: float, day_start: datetime) -> datetime:
    lst0 = local_sidereal_time(day_start, longitude)
    instant = day_start + timedelta(
        hours=normalize_hours(target_lst - lst0) / SIDEREAL_RATE
    )
    for _ in range(_MAX_PASSES):
        residual = _signed_hours(target_lst - local_sidereal_time(instant, longitude))
        if abs(residual) < _TOLERANCE_HOURS:
            break
        instant += timedelta(hours=residual / SIDEREAL_RATE)
    return instant


def _solve_linear(target_lst: float, longitude: float, day_start: datetime) -> datetime:
    # Fraction of a day from midnight, taken over a 24 h sidereal span without
    # wrapping or rate correction. Can fall outside the day and drift by minutes.
    gmst_target = target_lst - longitude / 15.0
    fraction = (gmst_target - gmst_hours(day_start)) / 24.0
    return day_start + timedelta(days=fraction)


def sidereal_to_instant(
    target_lst: float, longitude: float, date: datetime, solver: Solver = "iterative"
) -> datetime:
    """Find the instant on ``date``'s UTC day at which local sidereal time equals ``target_lst``.

    Args:
        target_lst: Target local sidereal time (hours). Not required to be normalized.
        longitude: Observer longitude (degrees, east positive).
        date: Any instant on the day of interest. Not modified.
        solver: ``"iterative"`` refines against the sidereal clock and always
            returns an instant inside the UTC day. ``"linear"`` reproduces the
            single-step fraction-of-day estimate.

    Returns:
        Aware UTC datetime.

    Raises:
        ValueError: Unknown solver name.
    """
    day_start = start_of_utc_day(date)
    if solver == "iterative":
        return _solve_iterative(target_lst, longitude, day_start)
    if solver == "linear":
        return _solve_linear(target_lst, longitude, day_start)
    raise ValueError(f"unknown rise/set solver: {solver!r} (expected one of {SOLVERS})")


def rise_set_transit(
    ra: float,
    dec: float,
    latitude: float,
    longitude: float,
    date: datetime,
    solver: Solver = "iterative",
) -> VisibilityResult:
    """Compute rise, transit, and set instants for an object on a given day.

    Args:
        ra: Right ascension (hours).
        dec: Declination (degrees).
        latitude: Observer latitude (degrees).
        longitude: Observer longitude (degrees, east positive).
        date: Any instant on the day of interest. Not modified.
        solver: LST-to-instant strategy, see ``sidereal_to_instant``. The
            ``"linear"`` solver also uses ``reference_hour_angle_cosine``.

    Returns:
        VisibilityResult. For circumpolar and never-rising objects rise and set
        are None and only the transit (highest point) is reported.
    """
    transit = sidereal_to_instant(ra, longitude, date, solver)
    if solver == "linear":
        cos_h = reference_hour_angle_cosine(dec, latitude)
    else:
        cos_h = horizon_hour_angle_cosine(dec, latitude)
    status = classify(cos_h)
    if status is not VisibilityStatus.RISES_AND_SETS:
        return VisibilityResult(rise=None, set=None, transit=transit, status=status)

    h_hours = math.degrees(math.acos(cos_h)) / 15.0
    if solver == "linear":
        rise = sidereal_to_instant(ra - h_hours, longitude, date, solver)
        set_ = sidereal_to_instant(ra + h_hours, longitude, date, solver)
    else:
        offset = timedelta(hours=h_hours / SIDEREAL_RATE)
        rise = transit - offset
        set_ = transit + offset
    return VisibilityResult(rise=rise, set=set_, transit=transit, status=status)
