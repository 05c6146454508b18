"""
Coordinate helpers: GeoJSON points, validity checks and distances
"""

from math import radians, sin, cos, sqrt, atan2
from typing import Any, Dict, Optional, Tuple

EARTH_RADIUS_KM = 6371.0


def _check_range(latitude: float, longitude: float) -> None:
    if latitude is None or longitude is None:
        raise ValueError("latitude and longitude are required")
    if not -90 <= latitude <= 90:
        raise ValueError(f"latitude {latitude} out of range [-90, 90]")
    if not -180 <= longitude <= 180:
        raise ValueError(f"longitude {longitude} out of range [-180, 180]")


def create_geography_point(longitude: float, latitude: float) -> Dict[str, Any]:
    """
    Build a GeoJSON Point. Coordinates are ordered [longitude, latitude]

    Raises:
        ValueError: if either coordinate is missing or out of range
    """
    _check_range(latitude, longitude)
    return {"type": "Point", "coordinates": [float(longitude), float(latitude)]}


def extract_coordinates(point: Dict[str, Any]) -> Tuple[float, float]:
    """Inverse of create_geography_point: returns (latitude, longitude)"""
    if not point or point.get("type") != "Point":
        raise ValueError("Expected a GeoJSON Point")
    coordinates = point.get("coordinates") or []
    if len(coordinates) != 2:
        raise ValueError("A GeoJSON Point needs exactly two coordinates")
    longitude, latitude = float(coordinates[0]), float(coordinates[1])
    _check_range(latitude, longitude)
    return latitude, longitude


def has_valid_coordinates(latitude: Optional[float], longitude: Optional[float]) -> bool:
    """Present, in range and not the (0, 0) placeholder"""
    if latitude is None or longitude is None:
        return False
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        return False
    return not (latitude == 0 and longitude == 0)


def listing_geolocation(listing) -> Optional[Dict[str, Any]]:
    if not has_valid_coordinates(listing.latitude, listing.longitude):
        return None
    return create_geography_point(listing.longitude, listing.latitude)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1, phi2 = radians(lat1), radians(lat2)
    dphi = radians(lat2 - lat1)
    dlambda = radians(lon2 - lon1)
    a = sin(dphi / 2) ** 2 + cos(phi1) * cos(phi2) * sin(dlambda / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))
    return EARTH_RADIUS_KM * c
