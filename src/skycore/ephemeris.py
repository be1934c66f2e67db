"""Ephemeris providers: where body right ascension / declination comes from.

The core never computes orbits. It asks an ``EphemerisProvider`` for the
apparent equatorial position of a ``Body`` and works from there.
``SkyfieldEphemeris`` is the bundled provider, backed by a JPL kernel.
"""

import logging
import math
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from skyfield import almanac
from skyfield.api import Loader, wgs84
from skyfield.magnitudelib import planetary_magnitude

from skycore.models import Body, BodyPosition, EquatorialCoordinate, Observer
from skycore.timesys import to_utc

LOG = logging.getLogger(__name__)

AU_KM = 149597870.7
_ARCSEC_PER_RADIAN = 206265.0
SUN_MAGNITUDE = -26.74

# Mean physical diameters (km)
BODY_DIAMETER_KM: dict[Body, float] = {
    Body.SUN: 1392700.0,
    Body.MOON: 3474.0,
    Body.MERCURY: 4879.0,
    Body.VENUS: 12104.0,
    Body.MARS: 6779.0,
    Body.JUPITER: 139820.0,
    Body.SATURN: 116460.0,
    Body.URANUS: 50724.0,
    Body.NEPTUNE: 49244.0,
}

# Segment names inside de421.bsp / de440s.bsp
KERNEL_TARGETS: dict[Body, str] = {
    Body.SUN: "sun",
    Body.MOON: "moon",
    Body.MERCURY: "mercury barycenter",
    Body.VENUS: "venus barycenter",
    Body.MARS: "mars barycenter",
    Body.JUPITER: "jupiter barycenter",
    Body.SATURN: "saturn barycenter",
    Body.URANUS: "uranus barycenter",
    Body.NEPTUNE: "neptune barycenter",
}


class EphemerisError(Exception):
    """Ephemeris kernel could not be loaded or queried."""


class EphemerisProvider(Protocol):
    """Anything that can report where a body is for an observer and instant."""

    def position(
        self, body: Body, instant: datetime, observer: Observer
    ) -> BodyPosition: ...


def angular_size_arcsec(body: Body, distance_au: float) -> float:
    """Apparent diameter in arcseconds (small-angle approximation).

    Returns 0 for a non-positive distance.
    """
    if distance_au <= 0:
        return 0.0
    return BODY_DIAMETER_KM[body] / (distance_au * AU_KM) * _ARCSEC_PER_RADIAN


def moon_magnitude(phase_angle_deg: float) -> float:
    """Apparent magnitude of the Moon from its phase angle (degrees)."""
    psi = abs(phase_angle_deg)
    return -12.73 + 0.026 * psi + 4e-9 * psi**4


class SkyfieldEphemeris:
    """EphemerisProvider backed by skyfield and a JPL SPK kernel.

    The kernel is opened on first use, downloading it into ``directory`` if
    it is missing.
    """

    def __init__(
        self,
        directory: Path | str,
        kernel: str = "de421.bsp",
        loader: Any = None,
    ) -> None:
        self._loader = loader if loader is not None else Loader(str(directory))
        self._kernel_name = kernel
        self._kernel: Any = None
        self._timescale: Any = None

    def _eph(self) -> Any:
        if self._kernel is None:
            LOG.info("Loading ephemeris kernel %s", self._kernel_name)
            try:
                self._kernel = self._loader(self._kernel_name)
                self._timescale = self._loader.timescale()
            except (OSError, ValueError) as exc:
                raise EphemerisError(
                    f"cannot load kernel {self._kernel_name}: {exc}"
                ) from exc
        return self._kernel

    def position(self, body: Body, instant: datetime, observer: Observer) -> BodyPosition:
        """Topocentric apparent RA/Dec (equinox of date) of a body.

        Args:
            body: Body to locate.
            instant: Observation time. Naive datetimes are read as UTC.
            observer: Observer location.

        Returns:
            BodyPosition with distance in AU, magnitude, illuminated fraction
            and apparent diameter.

        Raises:
            EphemerisError: Kernel missing or body not covered for the instant.
        """
        eph = self._eph()
        t = self._timescale.from_datetime(to_utc(instant))
        name = KERNEL_TARGETS[body]
        try:
            ground = eph["earth"] + wgs84.latlon(
                latitude_degrees=observer.latitude,
                longitude_degrees=observer.longitude,
            )
            astrometric = ground.at(t).observe(eph[name])
            ra, dec, distance = astrometric.apparent().radec(epoch="date")
        except (KeyError, ValueError) as exc:
            raise EphemerisError(f"cannot compute {body.value}: {exc}") from exc

        if body is Body.SUN:
            magnitude: float | None = SUN_MAGNITUDE
            phase = 1.0
        else:
            phase = float(almanac.fraction_illuminated(eph, name, t))
            magnitude = self._magnitude(body, eph, name, t, astrometric)

        return BodyPosition(
            body=body,
            equatorial=EquatorialCoordinate(
                right_ascension=float(ra.hours), declination=float(dec.degrees)
            ),
            distance_au=float(distance.au),
            magnitude=magnitude,
            phase=phase,
            angular_size_arcsec=angular_size_arcsec(body, float(distance.au)),
        )

    @staticmethod
    def _magnitude(
        body: Body, eph: Any, name: str, t: Any, astrometric: Any
    ) -> float | None:
        if body is Body.MOON:
            return moon_magnitude(float(almanac.phase_angle(eph, name, t).degrees))
        try:
            magnitude = float(planetary_magnitude(astrometric))
        except ValueError:
            LOG.debug("No magnitude model for %s", body.value)
            return None
        # Saturn's model is undefined outside its fitted ring-tilt range
        return magnitude if math.isfinite(magnitude) else None
