"""
mfa_gateway.verification.geofence

Great-circle geofence check.

Responsibilities:
- Haversine distance between two points (Earth radius 6,371,000 m).
- Inclusive range check against a reference point and max distance, failing closed when either
  is not configured.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

EARTH_RADIUS_METERS = 6_371_000.0


@dataclass(frozen=True, slots=True)
class GeoPoint:
    latitude: float
    longitude: float
    # Reported accuracy radius of the reading in meters; informational only.
    accuracy: float | None = None

    @property
    def is_valid(self) -> bool:
        return (
            math.isfinite(self.latitude)
            and math.isfinite(self.longitude)
            and -90.0 <= self.latitude <= 90.0
            and -180.0 <= self.longitude <= 180.0
        )


def haversine_distance(a: GeoPoint, b: GeoPoint) -> float:
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    d_phi = math.radians(b.latitude - a.latitude)
    d_lambda = math.radians(b.longitude - a.longitude)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def is_within_range(
    point: GeoPoint | None,
    reference: GeoPoint | None,
    max_distance_meters: float | None,
) -> bool:
    if point is None or reference is None or max_distance_meters is None:
        return False
    if not (point.is_valid and reference.is_valid) or not math.isfinite(max_distance_meters):
        return False
    return haversine_distance(point, reference) <= max_distance_meters


class GeofenceValidator:
    """
    Deployment-bound geofence.

    A staff member's own reference point wins; the deployment reference is the fallback. With
    neither configured (or no max distance) every check fails.
    """

    def __init__(
        self,
        *,
        max_distance_meters: float | None,
        default_reference: GeoPoint | None = None,
    ) -> None:
        self.max_distance_meters = max_distance_meters
        self.default_reference = default_reference

    def reference_for(
        self, latitude: float | None, longitude: float | None
    ) -> GeoPoint | None:
        if latitude is not None and longitude is not None:
            return GeoPoint(latitude=latitude, longitude=longitude)
        return self.default_reference

    @property
    def is_configured(self) -> bool:
        return self.max_distance_meters is not None

    def is_within_range(self, point: GeoPoint | None, reference: GeoPoint | None) -> bool:
        return is_within_range(point, reference, self.max_distance_meters)
