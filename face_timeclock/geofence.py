from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from .config import MAX_CLOCK_DISTANCE_METERS

EARTH_RADIUS_METERS = 6_371_000.0
NO_LOCATION_MESSAGE = "Unable to get location. Please enable location services."


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass
class GeofenceResult:
    within_range: bool
    distance_meters: Optional[float]
    message: str = ""


def haversine_meters(a: GeoPoint, b: GeoPoint) -> float:
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    d_lat = lat2 - lat1
    d_lon = math.radians(b.longitude - a.longitude)

    h = math.sin(d_lat / 2.0) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2.0) ** 2
    return 2.0 * EARTH_RADIUS_METERS * math.asin(min(1.0, math.sqrt(h)))


def check_geofence(
    user: Optional[GeoPoint],
    business: Optional[GeoPoint],
    max_distance_meters: float = MAX_CLOCK_DISTANCE_METERS,
) -> GeofenceResult:
    # Businesses without a saved location do not restrict clocking.
    if business is None:
        return GeofenceResult(within_range=True, distance_meters=None)

    if user is None:
        return GeofenceResult(within_range=False, distance_meters=None, message=NO_LOCATION_MESSAGE)

    distance = haversine_meters(user, business)
    if distance > max_distance_meters:
        return GeofenceResult(
            within_range=False,
            distance_meters=distance,
            message=f"You are {round(distance)}m away. Must be within {round(max_distance_meters)}m.",
        )
    return GeofenceResult(within_range=True, distance_meters=distance)
