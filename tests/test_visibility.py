from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta

import pytest

from skycore.models import VisibilityStatus
from skycore.timesys import SIDEREAL_RATE, gmst_hours, local_sidereal_time, start_of_utc_day
from skycore.visibility import (
    classify,
    horizon_hour_angle_cosine,
    is_star_visible,
    reference_hour_angle_cosine,
    rise_set_transit,
    sidereal_to_instant,
)


def test_new_york_object_rises_transits_and_sets(equinox_noon: datetime) -> None:
    cos_h = horizon_hour_angle_cosine(20.0, 40.0)
    assert -1.0 < cos_h < 1.0
    assert cos_h == pytest.approx(-0.325606, abs=1e-5)

    result = rise_set_transit(6.0, 20.0, 40.0, -74.0, equinox_noon)

    assert result.status is VisibilityStatus.RISES_AND_SETS
    assert result.rise is not None and result.set is not None
    assert result.rise < result.transit < result.set
    assert is_star_visible(20.0, 40.0)


def test_transit_is_when_lst_equals_ra(equinox_noon: datetime) -> None:
    result = rise_set_transit(6.0, 20.0, 40.0, -74.0, equinox_noon)
    assert local_sidereal_time(result.transit, -74.0) == pytest.approx(6.0, abs=1e-6)

    day_start = start_of_utc_day(equinox_noon)
    assert day_start <= result.transit < day_start + timedelta(days=1)


def test_rise_and_set_are_symmetric_about_transit(equinox_noon: datetime) -> None:
    result = rise_set_transit(6.0, 20.0, 40.0, -74.0, equinox_noon)
    assert result.rise is not None and result.set is not None

    h_hours = math.degrees(math.acos(horizon_hour_angle_cosine(20.0, 40.0))) / 15.0
    half_arc = timedelta(hours=h_hours / SIDEREAL_RATE)
    assert abs((result.transit - result.rise) - half_arc) < timedelta(milliseconds=1)
    assert abs((result.set - result.transit) - half_arc) < timedelta(milliseconds=1)


def test_polaris_like_object_is_circumpolar(equinox_noon: datetime) -> None:
    assert horizon_hour_angle_cosine(89.0, 40.0) < -1.0

    result = rise_set_transit(2.5, 89.0, 40.0, -74.0, equinox_noon)

    assert result.status is VisibilityStatus.CIRCUMPOLAR
    assert result.circumpolar and not result.never_rises
    assert result.rise is None
    assert result.set is None
    assert result.transit is not None


def test_deep_southern_object_never_rises_in_the_north(equinox_noon: datetime) -> None:
    assert horizon_hour_angle_cosine(-80.0, 60.0) > 1.0

    result = rise_set_transit(14.0, -80.0, 60.0, 10.0, equinox_noon)

    assert result.status is VisibilityStatus.NEVER_RISES
    assert result.never_rises and not result.circumpolar
    assert result.rise is None
    assert result.set is None
    assert local_sidereal_time(result.transit, 10.0) == pytest.approx(14.0, abs=1e-6)


def test_out_of_range_cosine_never_yields_rise_or_set(equinox_noon: datetime) -> None:
    for lat in range(-90, 91, 10):
        for dec in range(-90, 91, 5):
            cos_h = horizon_hour_angle_cosine(float(dec), float(lat))
            assert not math.isnan(cos_h)
            result = rise_set_transit(3.0, float(dec), float(lat), 0.0, equinox_noon)
            if cos_h > 1.0 or cos_h < -1.0:
                assert result.rise is None and result.set is None
            else:
                assert result.rise is not None and result.set is not None
                assert result.rise < result.transit < result.set


@pytest.mark.parametrize("latitude", [90.0, -90.0])
def test_poles_do_not_divide_by_zero(latitude: float) -> None:
    above = 10.0 if latitude > 0 else -10.0
    assert horizon_hour_angle_cosine(above, latitude) == -math.inf
    assert horizon_hour_angle_cosine(-above, latitude) == math.inf
    assert classify(horizon_hour_angle_cosine(above, latitude)) is VisibilityStatus.CIRCUMPOLAR
    assert classify(horizon_hour_angle_cosine(-above, latitude)) is VisibilityStatus.NEVER_RISES


def test_classify_boundaries() -> None:
    assert classify(1.0000001) is VisibilityStatus.NEVER_RISES
    assert classify(-1.0000001) is VisibilityStatus.CIRCUMPOLAR
    assert classify(1.0) is VisibilityStatus.RISES_AND_SETS
    assert classify(-1.0) is VisibilityStatus.RISES_AND_SETS


def test_is_star_visible_is_monotonic_in_declination() -> None:
    for lat in range(-90, 91, 15):
        seen_visible = False
        for tenth in range(-900, 901):
            visible = is_star_visible(tenth / 10.0, float(lat))
            assert visible or not seen_visible
            seen_visible = seen_visible or visible


def test_is_star_visible_threshold() -> None:
    assert not is_star_visible(-50.0, 40.0)
    assert not is_star_visible(-51.0, 40.0)
    assert is_star_visible(-49.0, 40.0)


def test_iterative_solver_stays_inside_the_utc_day() -> None:
    date = datetime(2024, 12, 31, 23, 59, tzinfo=UTC)
    day_start = start_of_utc_day(date)
    for tenth in range(0, 240, 7):
        target = tenth / 10.0
        instant = sidereal_to_instant(target, 139.7, date)
        assert day_start <= instant < day_start + timedelta(days=1)
        assert local_sidereal_time(instant, 139.7) == pytest.approx(target, abs=1e-6)


def test_linear_solver_reproduces_fraction_of_day_estimate(equinox_noon: datetime) -> None:
    day_start = start_of_utc_day(equinox_noon)
    fraction = (6.0 + 74.0 / 15.0 - gmst_hours(day_start)) / 24.0

    result = rise_set_transit(6.0, 20.0, 40.0, -74.0, equinox_noon, solver="linear")

    assert result.transit == day_start + timedelta(days=fraction)
    assert result.rise is not None and result.set is not None
    assert result.rise < result.transit < result.set
    h_hours = math.degrees(math.acos(reference_hour_angle_cosine(20.0, 40.0))) / 15.0
    assert abs((result.set - result.transit) - timedelta(hours=h_hours)) < timedelta(
        milliseconds=1
    )


def test_linear_solver_drifts_from_true_transit(equinox_noon: datetime) -> None:
    linear = rise_set_transit(6.0, 20.0, 40.0, -74.0, equinox_noon, solver="linear")
    # Negative fraction here: the estimate lands on the previous UTC day and
    # ignores the sidereal rate, so its LST is close to, but not exactly, the RA.
    assert linear.transit < start_of_utc_day(equinox_noon)
    assert local_sidereal_time(linear.transit, -74.0) == pytest.approx(6.0, abs=0.01)



def test_reference_cosine_is_the_tangent_form() -> None:
    assert reference_hour_angle_cosine(49.3, 40.0) == pytest.approx(-0.99008, abs=1e-4)
    assert horizon_hour_angle_cosine(49.3, 40.0) == pytest.approx(-1.00465, abs=1e-4)
    expected = -0.01454 - math.tan(math.radians(40.0)) * math.tan(math.radians(20.0))
    assert reference_hour_angle_cosine(20.0, 40.0) == pytest.approx(expected)


def test_solvers_disagree_just_below_the_circumpolar_limit(equinox_noon: datetime) -> None:
    linear = rise_set_transit(6.0, 49.3, 40.0, -74.0, equinox_noon, solver="linear")
    iterative = rise_set_transit(6.0, 49.3, 40.0, -74.0, equinox_noon)
    assert linear.status is VisibilityStatus.RISES_AND_SETS
    assert linear.rise is not None and linear.set is not None
    assert iterative.status is VisibilityStatus.CIRCUMPOLAR
    assert iterative.rise is None and iterative.set is None


@pytest.mark.parametrize("latitude", [90.0, -90.0])
def test_reference_cosine_keeps_the_pole_guard(latitude: float) -> None:
    above = 10.0 if latitude > 0 else -10.0
    assert reference_hour_angle_cosine(above, latitude) == -math.inf
    assert reference_hour_angle_cosine(-above, latitude) == math.inf


def test_unknown_solver_is_rejected(equinox_noon: datetime) -> None:
    with pytest.raises(ValueError):
        rise_set_transit(6.0, 20.0, 40.0, -74.0, equinox_noon, solver="bisect")  # type: ignore[arg-type]


def test_input_instant_is_not_modified(equinox_noon: datetime) -> None:
    before = equinox_noon.isoformat()
    rise_set_transit(6.0, 20.0, 40.0, -74.0, equinox_noon)
    rise_set_transit(6.0, 20.0, 40.0, -74.0, equinox_noon, solver="linear")
    assert equinox_noon.isoformat() == before


def test_naive_date_is_read_as_utc() -> None:
    naive = rise_set_transit(6.0, 20.0, 40.0, -74.0, datetime(2024, 3, 20, 12, 0))
    aware = rise_set_transit(6.0, 20.0, 40.0, -74.0, datetime(2024, 3, 20, 12, 0, tzinfo=UTC))
    assert naive == aware
