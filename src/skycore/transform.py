"""Coordinate transforms between equatorial, horizontal, and render-space cartesian frames.

Two cartesian projections live here and serve different purposes:

* ``horizontal_to_cartesian`` places an object on a horizon-relative dome for a
  specific observer and instant (+y is the zenith, +z is north, +x is east).
* ``equatorial_to_cartesian`` places an object on a fixed celestial sphere that
  ignores observer and time (+y is the north celestial pole). Used for the
  sky-sphere view.
"""

import math
from datetime import datetime

import numpy as np

from skycore.models import CartesianPoint, EquatorialCoordinate, HorizontalCoordinate
from skycore.timesys import local_sidereal_time, normalize_degrees, normalize_hours

# Below this, cos(latitude) is treated as zero
_SINGULAR = 1e-12
# Zenith or nadir: asin turns a one-ulp error in sin(alt) into cos(alt) ~ 1e-8
_ZENITH_SINE = 1e-9

# J2000 mean obliquity of the ecliptic (degrees)
J2000_OBLIQUITY = 23.439281


def _clamp(x: float, lo: float = -1.0, hi: float = 1.0) -> float:
    return lo if x < lo else hi if x > hi else x


def hour_angle(lst: float, ra: float) -> float:
    """Hour angle in hours, [0, 24). Values past 12 are east of the meridian."""
    return normalize_hours(lst - ra)


def equatorial_to_horizontal(
    ra: float, dec: float, lst: float, latitude: float
) -> HorizontalCoordinate:
    """Convert RA/Dec to altitude/azimuth.

    Args:
        ra: Right ascension (hours).
        dec: Declination (degrees).
        lst: Local sidereal time (hours).
        latitude: Observer latitude (degrees).

    Returns:
        HorizontalCoordinate with azimuth measured from north through east.
        At a pole, or for an object at the zenith/nadir, the azimuth is
        undefined and reported as 0.
    """
    ha_rad = math.radians(hour_angle(lst, ra) * 15.0)
    dec_rad = math.radians(dec)
    lat_rad = math.radians(latitude)

    sin_alt = _clamp(
        math.sin(dec_rad) * math.sin(lat_rad)
        + math.cos(dec_rad) * math.cos(lat_rad) * math.cos(ha_rad)
    )
    alt_rad = math.asin(sin_alt)

    denom = math.cos(lat_rad) * math.cos(alt_rad)
    if abs(math.cos(lat_rad)) < _SINGULAR or 1.0 - abs(sin_alt) < _ZENITH_SINE:
        azimuth = 0.0
    else:
        cos_az = _clamp((math.sin(dec_rad) - math.sin(lat_rad) * sin_alt) / denom)
        azimuth = math.degrees(math.acos(cos_az))
        # acos only spans [0, 180]; a positive hour angle means west of the meridian
        if math.sin(ha_rad) > 0:
            azimuth = 360.0 - azimuth

    return HorizontalCoordinate(
        altitude=math.degrees(alt_rad), azimuth=normalize_degrees(azimuth)
    )


def equatorial_to_horizontal_many(
    ra: np.ndarray, dec: np.ndarray, lst: float, latitude: float
) -> tuple[np.ndarray, np.ndarray]:
    """Vectorized ``equatorial_to_horizontal`` for catalog-sized arrays.

    Args:
        ra: Right ascensions (hours).
        dec: Declinations (degrees).
        lst: Local sidereal time (hours).
        latitude: Observer latitude (degrees).

    Returns:
        (altitude, azimuth) arrays in degrees, same guards as the scalar version.
    """
    ha_rad = np.radians(np.mod(lst - np.asarray(ra, dtype=float), 24.0) * 15.0)
    dec_rad = np.radians(np.asarray(dec, dtype=float))
    lat_rad = math.radians(latitude)

    sin_alt = np.clip(
        np.sin(dec_rad) * math.sin(lat_rad)
        + np.cos(dec_rad) * math.cos(lat_rad) * np.cos(ha_rad),
        -1.0,
        1.0,
    )
    alt_rad = np.arcsin(sin_alt)
    cos_alt = np.cos(alt_rad)

    singular = (abs(math.cos(lat_rad)) < _SINGULAR) | (
        1.0 - np.abs(sin_alt) < _ZENITH_SINE
    )
    denom = np.where(singular, 1.0, math.cos(lat_rad) * cos_alt)
    cos_az = np.clip((np.sin(dec_rad) - math.sin(lat_rad) * sin_alt) / denom, -1.0, 1.0)
    az = np.degrees(np.arccos(cos_az))
    az = np.where(np.sin(ha_rad) > 0, 360.0 - az, az)
    az = np.where(singular, 0.0, np.mod(az, 360.0))
    return np.degrees(alt_rad), az


def horizontal_to_cartesian(
    altitude: float, azimuth: float, radius: float
) -> CartesianPoint:
    """Place an alt/az position on a horizon-relative dome of the given radius."""
    alt_rad = math.radians(altitude)
    az_rad = math.radians(azimuth)
    return CartesianPoint(
        x=radius * math.cos(alt_rad) * math.sin(az_rad),
        y=radius * math.sin(alt_rad),
        z=radius * math.cos(alt_rad) * math.cos(az_rad),
    )


def cartesian_to_horizontal(point: CartesianPoint) -> HorizontalCoordinate:
    """Inverse of ``horizontal_to_cartesian``. The origin maps to (0, 0)."""
    r = math.sqrt(point.x * point.x + point.y * point.y + point.z * point.z)
    if r == 0.0:
        return HorizontalCoordinate(altitude=0.0, azimuth=0.0)
    altitude = math.degrees(math.asin(_clamp(point.y / r)))
    if math.hypot(point.x, point.z) < _SINGULAR * r:
        return HorizontalCoordinate(altitude=altitude, azimuth=0.0)
    azimuth = normalize_degrees(math.degrees(math.atan2(point.x, point.z)))
    return HorizontalCoordinate(altitude=altitude, azimuth=azimuth)


def equatorial_to_cartesian(ra: float, dec: float, radius: float) -> CartesianPoint:
    """Place RA/Dec on the fixed celestial sphere (not observer- or time-relative)."""
    phi = math.radians(90.0 - dec)
    theta = math.radians(ra * 15.0)
    return CartesianPoint(
        x=radius * math.sin(phi) * math.cos(theta),
        y=radius * math.cos(phi),
        z=radius * math.sin(phi) * math.sin(theta),
    )


def altitude_at(
    ra: float, dec: float, instant: datetime, latitude: float, longitude: float
) -> float:
    """Altitude in degrees of an object at an instant."""
    lst = local_sidereal_time(instant, longitude)
    return equatorial_to_horizontal(ra, dec, lst, latitude).altitude


def ecliptic_to_equatorial(
    longitude: float, obliquity: float = J2000_OBLIQUITY
) -> EquatorialCoordinate:
    """RA/Dec of a point on the ecliptic (ecliptic latitude 0).

    Args:
        longitude: Ecliptic longitude (degrees).
        obliquity: Obliquity of the ecliptic (degrees). Defaults to J2000.

    Returns:
        EquatorialCoordinate with RA in hours.
    """
    lam = math.radians(longitude)
    eps = math.radians(obliquity)
    dec = math.asin(_clamp(math.sin(lam) * math.sin(eps)))
    ra = math.atan2(math.sin(lam) * math.cos(eps), math.cos(lam))
    return EquatorialCoordinate(
        right_ascension=normalize_hours(math.degrees(ra) / 15.0),
        declination=math.degrees(dec),
    )
