"""Sky computation layer — observer/time resolution and per-instant sky snapshots."""

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime

import numpy as np
from pytz import UnknownTimeZoneError, timezone, utc
from pytz.exceptions import InvalidTimeError
from timezonefinder import TimezoneFinder

from skycore.config import Settings, load_settings
from skycore.ephemeris import EphemerisProvider
from skycore.models import (
    Body,
    EquatorialCoordinate,
    HorizontalCoordinate,
    Observer,
    ObserverContext,
    QueryInput,
    SkyObjectView,
    SkySnapshot,
    StarRecord,
)
from skycore.timesys import local_sidereal_time, to_utc
from skycore.transform import (
    equatorial_to_horizontal,
    equatorial_to_horizontal_many,
    horizontal_to_cartesian,
)
from skycore.visibility import Solver, is_star_visible, rise_set_transit

LOG = logging.getLogger(__name__)

_tf = TimezoneFinder()


class TimeResolutionError(Exception):
    """Local time string could not be turned into a UTC instant."""


def resolve_context(query: QueryInput) -> ObserverContext:
    """Validate the observer and convert local wall-clock time to UTC.

    Args:
        query: Latitude/longitude and a local time string in "YYYY-MM-DD HH:MM" format.

    Returns:
        ObserverContext with the validated observer and UTC datetime.

    Raises:
        InvalidObserverError: Latitude/longitude out of range.
        TimeResolutionError: Unparseable time, unknown timezone, or a local
            time that is skipped or repeated by a DST transition.
    """
    observer = Observer(latitude=query.latitude, longitude=query.longitude)
    try:
        dt = datetime.strptime(query.when, "%Y-%m-%d %H:%M")
    except ValueError as exc:
        raise TimeResolutionError(f"Invalid time {query.when!r}: {exc}") from exc

    tz_str = _tf.timezone_at(lat=observer.latitude, lng=observer.longitude)
    if tz_str is None:
        raise TimeResolutionError(
            f"Timezone not found: lat={observer.latitude}, lng={observer.longitude}"
        )
    try:
        local_tz = timezone(tz_str)
        utc_dt = local_tz.localize(dt, is_dst=None).astimezone(utc)
    except (UnknownTimeZoneError, InvalidTimeError) as exc:
        raise TimeResolutionError(f"Cannot localize {query.when!r} in {tz_str}") from exc

    return ObserverContext(observer=observer, utc_dt=utc_dt, timezone_name=tz_str)


def observe(
    name: str,
    equatorial: EquatorialCoordinate,
    observer: Observer,
    instant: datetime,
    radius: float = 100.0,
    magnitude: float | None = None,
    solver: Solver = "iterative",
    angular_size_arcsec: float | None = None,
) -> SkyObjectView:
    """Place a single object in the sky with its rise/transit/set for the day."""
    lst = local_sidereal_time(instant, observer.longitude)
    horizontal = equatorial_to_horizontal(
        equatorial.right_ascension, equatorial.declination, lst, observer.latitude
    )
    visibility = rise_set_transit(
        equatorial.right_ascension,
        equatorial.declination,
        observer.latitude,
        observer.longitude,
        instant,
        solver,
    )
    return SkyObjectView(
        name=name,
        equatorial=equatorial,
        horizontal=horizontal,
        cartesian=horizontal_to_cartesian(
            horizontal.altitude, horizontal.azimuth, radius
        ),
        magnitude=magnitude,
        visibility=visibility,
        angular_size_arcsec=angular_size_arcsec,
    )


def _place_stars(
    stars: Sequence[StarRecord], observer: Observer, lst: float, radius: float
) -> tuple[SkyObjectView, ...]:
    """Bulk-place catalog stars. Stars that never rise at this latitude are dropped."""
    candidates = [
        s for s in stars if is_star_visible(s.equatorial.declination, observer.latitude)
    ]
    if not candidates:
        return ()
    ra = np.array([s.equatorial.right_ascension for s in candidates])
    dec = np.array([s.equatorial.declination for s in candidates])
    alt, az = equatorial_to_horizontal_many(ra, dec, lst, observer.latitude)

    views: list[SkyObjectView] = []
    for star, alt_deg, az_deg in zip(candidates, alt, az):
        horizontal = HorizontalCoordinate(altitude=float(alt_deg), azimuth=float(az_deg))
        views.append(
            SkyObjectView(
                name=f"HIP {star.hip}",
                equatorial=star.equatorial,
                horizontal=horizontal,
                cartesian=horizontal_to_cartesian(
                    horizontal.altitude, horizontal.azimuth, radius
                ),
                magnitude=star.magnitude,
                visibility=None,
            )
        )
    return tuple(views)


def compute_sky_snapshot(
    observer: Observer,
    instant: datetime,
    provider: EphemerisProvider,
    stars: Sequence[StarRecord] = (),
    bodies: Iterable[Body] = tuple(Body),
    radius: float = 100.0,
    solver: Solver = "iterative",
) -> SkySnapshot:
    """Compute where every requested body and catalog star is for one instant.

    Args:
        observer: Validated observer location.
        instant: Observation time. Naive datetimes are read as UTC.
        provider: Source of body right ascension / declination.
        stars: Catalog stars to place (already magnitude filtered).
        bodies: Solar-system bodies to query from the provider.
        radius: Render sphere radius for cartesian positions.
        solver: Rise/set LST-to-instant strategy.

    Returns:
        SkySnapshot for the instant.
    """
    utc_instant = to_utc(instant)
    lst = local_sidereal_time(utc_instant, observer.longitude)

    body_views: list[SkyObjectView] = []
    for body in bodies:
        position = provider.position(body, utc_instant, observer)
        body_views.append(
            observe(
                body.value,
                position.equatorial,
                observer,
                utc_instant,
                radius=radius,
                magnitude=position.magnitude,
                solver=solver,
                angular_size_arcsec=position.angular_size_arcsec,
            )
        )

    star_views = _place_stars(stars, observer, lst, radius)
    LOG.debug(
        "Snapshot at %s: %d bodies, %d of %d stars placed",
        utc_instant.isoformat(),
        len(body_views),
        len(star_views),
        len(stars),
    )
    return SkySnapshot(
        observer=observer,
        instant=utc_instant,
        local_sidereal_time=lst,
        radius=radius,
        bodies=tuple(body_views),
        stars=star_views,
    )


def run(
    query: QueryInput,
    provider: EphemerisProvider,
    stars: Sequence[StarRecord] = (),
    bodies: Iterable[Body] = tuple(Body),
    settings: Settings | None = None,
) -> SkySnapshot:
    """Top-level entry point: takes a QueryInput and returns a SkySnapshot.

    Args:
        query: User input (observer coordinates, local time string).
        provider: Source of body right ascension / declination.
        stars: Catalog stars; fainter than the configured limit are skipped.
        bodies: Solar-system bodies to query from the provider.
        settings: Resolved settings. Read from the environment when None.

    Returns:
        Fully computed SkySnapshot.
    """
    settings = settings or load_settings()
    context = resolve_context(query)
    bright = [s for s in stars if s.magnitude <= settings.limiting_magnitude]
    return compute_sky_snapshot(
        context.observer,
        context.utc_dt,
        provider,
        stars=bright,
        bodies=bodies,
        radius=settings.sky_radius,
        solver=settings.rise_set_solver,
    )
