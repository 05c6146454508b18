"""
Forward and reverse geocoding through geopy
"""

from typing import Optional

from fastapi import HTTPException
from geopy.exc import GeocoderServiceError, GeocoderTimedOut
from geopy.geocoders import GoogleV3, Nominatim

from ..config import settings
from ..core.logging import get_logger

logger = get_logger(__name__)

GEOCODER_TIMEOUT_SECONDS = 10

_geocoder = None


def get_geocoder():
    """GoogleV3 when a Maps key is configured, Nominatim otherwise"""
    global _geocoder
    if _geocoder is None:
        if settings.google_maps_api_key:
            _geocoder = GoogleV3(api_key=settings.google_maps_api_key, timeout=GEOCODER_TIMEOUT_SECONDS)
            logger.info("Using Google geocoder")
        else:
            _geocoder = Nominatim(user_agent=settings.geocoder_user_agent, timeout=GEOCODER_TIMEOUT_SECONDS)
            logger.info("Using Nominatim geocoder")
    return _geocoder


def geocode_address(address: str) -> Optional[dict]:
    """
    Resolve an address to coordinates

    Returns:
        {"latitude", "longitude", "address"} or None when nothing matched
    """
    try:
        location = get_geocoder().geocode(address)
    except GeocoderTimedOut:
        logger.error(f"Geocoding timed out for '{address}'")
        raise HTTPException(status_code=504, detail="Geocoding service timed out")
    except GeocoderServiceError as e:
        logger.error(f"Geocoding failed for '{address}': {e}")
        raise HTTPException(status_code=502, detail="Geocoding service error")

    if not location:
        return None
    return {
        "latitude": location.latitude,
        "longitude": location.longitude,
        "address": location.address,
    }


def reverse_geocode(latitude: float, longitude: float) -> Optional[str]:
    """Resolve coordinates to a formatted address"""
    try:
        location = get_geocoder().reverse(f"{latitude}, {longitude}", language="en")
    except GeocoderTimedOut:
        logger.error(f"Reverse geocoding timed out for {latitude}, {longitude}")
        raise HTTPException(status_code=504, detail="Geocoding service timed out")
    except GeocoderServiceError as e:
        logger.error(f"Reverse geocoding failed for {latitude}, {longitude}: {e}")
        raise HTTPException(status_code=502, detail="Geocoding service error")

    if not location:
        return None
    return location.address
