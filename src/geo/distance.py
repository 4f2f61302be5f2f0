"""Great-circle distance between coordinates.

Used by the similarity analyzer to refine coarse zone matches by true
geographic proximity of trip endpoints.
"""

from math import atan2, cos, radians, sin, sqrt

EARTH_RADIUS_KM = 6371.0


def haversine_distance_km(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """Calculate the great-circle distance between two points in kilometers.

    Args:
        lat1: Latitude of first point in degrees
        lon1: Longitude of first point in degrees
        lat2: Latitude of second point in degrees
        lon2: Longitude of second point in degrees

    Returns:
        Distance between the two points in kilometers
    """
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def endpoints_within(
    origin: tuple[float, float],
    destination: tuple[float, float],
    other_origin: tuple[float, float],
    other_destination: tuple[float, float],
    max_distance_km: float,
) -> bool:
    """Check that both endpoints of two routes lie within max_distance_km of each other."""
    from_distance = haversine_distance_km(*origin, *other_origin)
    if from_distance > max_distance_km:
        return False
    to_distance = haversine_distance_km(*destination, *other_destination)
    return to_distance <= max_distance_km
