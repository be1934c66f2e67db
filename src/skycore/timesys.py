"""Julian Date, Greenwich and local sidereal time."""

from datetime import datetime, timedelta, timezone

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MS_PER_DAY = 86_400_000.0
_JD_UNIX_EPOCH = 2440587.5
_J2000 = 2451545.0

# Sidereal hours elapsed per solar hour
SIDEREAL_RATE = 1.00273790935


def normalize_hours(hours: float) -> float:
    """Wrap an hour value into [0, 24). Negative values wrap forward."""
    wrapped = hours % 24.0
    return 0.0 if wrapped >= 24.0 else wrapped


def normalize_degrees(degrees: float) -> float:
    """Wrap an angle into [0, 360). Negative values wrap forward."""
    wrapped = degrees % 360.0
    return 0.0 if wrapped >= 360.0 else wrapped


def to_utc(instant: datetime) -> datetime:
    """Return the instant as an aware UTC datetime. Naive input is read as UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def from_epoch_millis(millis: float) -> datetime:
    return _EPOCH + timedelta(milliseconds=millis)


def epoch_millis(instant: datetime) -> float:
    return (to_utc(instant) - _EPOCH) / timedelta(milliseconds=1)


def start_of_utc_day(instant: datetime) -> datetime:
    """Return a new datetime at 00:00 UTC on the instant's UTC date."""
    return to_utc(instant).replace(hour=0, minute=0, second=0, microsecond=0)


def julian_date(instant: datetime) -> float:
    """Julian Date of an instant: ``epochMillis / 86_400_000 + 2440587.5``."""
    return epoch_millis(instant) / _MS_PER_DAY + _JD_UNIX_EPOCH


def julian_centuries(jd: float) -> float:
    """Julian centuries elapsed since J2000.0."""
    return (jd - _J2000) / 36525.0


def gmst_hours(instant: datetime) -> float:
    """Greenwich Mean Sidereal Time in hours, [0, 24).

    Uses the IAU polynomial in Julian centuries since J2000.0. The degree value
    is wrapped with a floored modulo before dividing by 15.
    """
    jd = julian_date(instant)
    T = julian_centuries(jd)
    gmst = (
        280.46061837
        + 360.98564736629 * (jd - _J2000)
        + 0.000387933 * T * T
        - (T * T * T) / 38710000.0
    )
    return normalize_degrees(gmst) / 15.0


def local_sidereal_time(instant: datetime, longitude: float) -> float:
    """Local Sidereal Time in hours for a longitude in degrees (east positive)."""
    return normalize_hours(gmst_hours(instant) + longitude / 15.0)
