"""
tests.test_geofence

Haversine distance and inclusive range checks.
"""

from __future__ import annotations

import math

import pytest

from mfa_gateway.verification.geofence import (
    EARTH_RADIUS_METERS,
    GeofenceValidator,
    GeoPoint,
    haversine_distance,
    is_within_range,
)

REFERENCE = GeoPoint(latitude=10.0, longitude=78.0)


def _north_of(ref: GeoPoint, meters: float) -> GeoPoint:
    return GeoPoint(
        latitude=ref.latitude + math.degrees(meters / EARTH_RADIUS_METERS),
        longitude=ref.longitude,
    )


def test_distance_along_a_meridian() -> None:
    assert haversine_distance(REFERENCE, _north_of(REFERENCE, 150.0)) == pytest.approx(150.0, abs=1e-6)
    assert haversine_distance(REFERENCE, REFERENCE) == 0.0


def test_distance_is_symmetric() -> None:
    other = GeoPoint(latitude=10.003, longitude=78.004)
    assert haversine_distance(REFERENCE, other) == pytest.approx(haversine_distance(other, REFERENCE))


def test_outside_range_is_rejected() -> None:
    assert is_within_range(_north_of(REFERENCE, 50.0), REFERENCE, 100.0)
    assert not is_within_range(_north_of(REFERENCE, 150.0), REFERENCE, 100.0)


def test_boundary_is_inclusive() -> None:
    point = _north_of(REFERENCE, 100.0)
    exact = haversine_distance(point, REFERENCE)
    assert is_within_range(point, REFERENCE, exact)


@pytest.mark.parametrize(
    ("point", "reference", "max_distance"),
    [
        (None, REFERENCE, 100.0),
        (REFERENCE, None, 100.0),
        (REFERENCE, REFERENCE, None),
        (GeoPoint(latitude=95.0, longitude=78.0), REFERENCE, 1e9),
        (GeoPoint(latitude=float("nan"), longitude=78.0), REFERENCE, 1e9),
    ],
)
def test_unconfigured_or_invalid_fails_closed(point, reference, max_distance) -> None:
    assert is_within_range(point, reference, max_distance) is False


def test_validator_prefers_the_principal_reference() -> None:
    fallback = GeoPoint(latitude=0.0, longitude=0.0)
    validator = GeofenceValidator(max_distance_meters=100.0, default_reference=fallback)
    assert validator.reference_for(10.0, 78.0) == REFERENCE
    assert validator.reference_for(None, None) == fallback
    assert GeofenceValidator(max_distance_meters=100.0).reference_for(None, 78.0) is None


def test_validator_without_radius_is_not_configured() -> None:
    validator = GeofenceValidator(max_distance_meters=None, default_reference=REFERENCE)
    assert validator.is_configured is False
    assert validator.is_within_range(REFERENCE, REFERENCE) is False
