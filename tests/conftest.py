from __future__ import annotations

from datetime import UTC, datetime

import pytest

from skycore.models import Body, BodyPosition, EquatorialCoordinate, Observer


class FixedEphemeris:
    """Provider that reports the same position for every instant."""

    def __init__(self, positions: dict[Body, EquatorialCoordinate]) -> None:
        self.positions = positions
        self.calls: list[tuple[Body, datetime, Observer]] = []

    def position(self, body: Body, instant: datetime, observer: Observer) -> BodyPosition:
        self.calls.append((body, instant, observer))
        return BodyPosition(
            body=body,
            equatorial=self.positions[body],
            distance_au=1.0,
            magnitude=-1.0,
            phase=1.0,
            angular_size_arcsec=1800.0,
        )


@pytest.fixture
def new_york() -> Observer:
    return Observer(latitude=40.0, longitude=-74.0)


@pytest.fixture
def equinox_noon() -> datetime:
    return datetime(2024, 3, 20, 12, 0, tzinfo=UTC)


@pytest.fixture
def fixed_ephemeris() -> FixedEphemeris:
    return FixedEphemeris(
        {
            Body.SUN: EquatorialCoordinate(right_ascension=0.0, declination=0.0),
            Body.MARS: EquatorialCoordinate(right_ascension=6.0, declination=20.0),
            Body.MOON: EquatorialCoordinate(right_ascension=18.0, declination=-80.0),
        }
    )
