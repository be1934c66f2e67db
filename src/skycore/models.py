"""Data model definitions — value types shared by the time, transform, and visibility layers."""

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class InvalidObserverError(ValueError):
    """Observer latitude/longitude outside the valid range."""


@dataclass(frozen=True)
class Observer:
    """Observer location on the Earth's surface. Validated on construction."""

    latitude: float  # Degrees, north positive, [-90, 90]
    longitude: float  # Degrees, east positive, [-180, 180]

    def __post_init__(self) -> None:
        if not math.isfinite(self.latitude) or not -90.0 <= self.latitude <= 90.0:
            raise InvalidObserverError(f"latitude out of range: {self.latitude}")
        if not math.isfinite(self.longitude) or not -180.0 <= self.longitude <= 180.0:
            raise InvalidObserverError(f"longitude out of range: {self.longitude}")


@dataclass(frozen=True)
class EquatorialCoordinate:
    """Right ascension / declination pair. RA is normalized into [0, 24)."""

    right_ascension: float  # Hours, [0, 24)
    declination: float  # Degrees, [-90, 90]

    def __post_init__(self) -> None:
        ra = self.right_ascension % 24.0
        # x % 24.0 can round up to exactly 24.0 for tiny negative x
        object.__setattr__(self, "right_ascension", 0.0 if ra >= 24.0 else ra)


@dataclass(frozen=True)
class HorizontalCoordinate:
    """Horizon-relative position."""

    altitude: float  # Degrees above the horizon, [-90, 90]
    azimuth: float  # Degrees from true north, increasing eastward, [0, 360)


@dataclass(frozen=True)
class CartesianPoint:
    """Point in the render frame. +y is up."""

    x: float
    y: float
    z: float


class VisibilityStatus(Enum):
    """How an object behaves relative to the horizon over one sidereal day."""

    RISES_AND_SETS = "rises_and_sets"
    CIRCUMPOLAR = "circumpolar"  # Never sets
    NEVER_RISES = "never_rises"


@dataclass(frozen=True)
class VisibilityResult:
    """Rise/transit/set instants. rise and set are None unless status is RISES_AND_SETS."""

    rise: datetime | None
    set: datetime | None
    transit: datetime
    status: VisibilityStatus

    @property
    def circumpolar(self) -> bool:
        return self.status is VisibilityStatus.CIRCUMPOLAR

    @property
    def never_rises(self) -> bool:
        return self.status is VisibilityStatus.NEVER_RISES


class Body(Enum):
    """Solar-system bodies an ephemeris provider can be asked about."""

    SUN = "Sun"
    MOON = "Moon"
    MERCURY = "Mercury"
    VENUS = "Venus"
    MARS = "Mars"
    JUPITER = "Jupiter"
    SATURN = "Saturn"
    URANUS = "Uranus"
    NEPTUNE = "Neptune"


@dataclass(frozen=True)
class BodyPosition:
    """Apparent position of a body as reported by an ephemeris provider."""

    body: Body
    equatorial: EquatorialCoordinate
    distance_au: float  # Distance from the observer (AU)
    magnitude: float | None  # Apparent magnitude, None when the provider has no model
    phase: float  # Illuminated fraction, 0-1
    angular_size_arcsec: float  # Apparent diameter


@dataclass(frozen=True)
class StarRecord:
    """A single catalog star."""

    hip: int  # Hipparcos catalogue number
    equatorial: EquatorialCoordinate
    magnitude: float  # Apparent magnitude


@dataclass(frozen=True)
class SkyObjectView:
    """One object placed in the sky for a given observer and instant."""

    name: str  # Body name ("Mars") or "HIP <n>" for catalog stars
    equatorial: EquatorialCoordinate
    horizontal: HorizontalCoordinate
    cartesian: CartesianPoint  # Horizon-relative render position
    magnitude: float | None
    visibility: VisibilityResult | None  # None for bulk catalog stars
    angular_size_arcsec: float | None = None  # Bodies only; stars are point sources

    @property
    def above_horizon(self) -> bool:
        return self.horizontal.altitude > 0.0


@dataclass(frozen=True)
class QueryInput:
    """Raw user input. Not yet validated."""

    latitude: float  # Decimal degrees
    longitude: float  # Decimal degrees
    when: str  # Local wall-clock time, "YYYY-MM-DD HH:MM" format


@dataclass(frozen=True)
class ObserverContext:
    """Validated observer + UTC instant. Input to sky computation."""

    observer: Observer
    utc_dt: datetime  # UTC datetime (with tzinfo=utc)
    timezone_name: str  # IANA name resolved for the observer ("Asia/Seoul")


@dataclass(frozen=True)
class SkySnapshot:
    """Everything computed for one observer and instant. The sole input to renderers."""

    observer: Observer
    instant: datetime
    local_sidereal_time: float  # Hours, [0, 24)
    radius: float  # Render sphere radius used for cartesian positions
    bodies: tuple[SkyObjectView, ...]
    stars: tuple[SkyObjectView, ...]  # After magnitude and latitude filter

    def visible_bodies(self) -> tuple[SkyObjectView, ...]:
        """Bodies currently above the horizon."""
        return tuple(view for view in self.bodies if view.above_horizon)
