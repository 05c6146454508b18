"""
Map routes: listings with coordinates, nearby search, coordinate checks and geocoding
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session, joinedload

from ..auth.dependencies import get_current_active_user, require_admin
from ..config import settings
from ..core.logging import get_logger
from ..database import get_db
from ..enums.listing import ListingStatus
from ..models.listing import Listing
from ..models.user import User
from ..schemas.material import MaterialTypeResponse
from ..schemas.geo import CoordinateCheck, CoordinateFixResult, GeocodeResult, MapListing, NearbyListing
from ..utils.geo import has_valid_coordinates, haversine_km
from ..utils.geocoding import geocode_address, reverse_geocode

logger = get_logger(__name__)
router = APIRouter()


def _map_listing(listing: Listing) -> dict:
    return {
        "id": listing.id,
        "title": listing.title,
        "description": listing.description,
        "material_type_id": listing.material_type_id,
        "quantity": listing.quantity,
        "unit": listing.unit,
        "listed_price": listing.listed_price,
        "address": listing.address,
        "latitude": listing.latitude,
        "longitude": listing.longitude,
        "status": ListingStatus(listing.status).value,
        "seller_id": listing.seller_id,
        "material_type": MaterialTypeResponse.model_validate(listing.material_type) if listing.material_type else None,
    }


def listings_with_coordinates(db: Session) -> List[dict]:
    """Every visible listing that has a location, with its material type"""
    listings = db.query(Listing).options(joinedload(Listing.material_type)).filter(
        Listing.status != ListingStatus.DELETED,
        Listing.latitude.isnot(None),
        Listing.longitude.isnot(None)
    ).order_by(Listing.id).all()
    return [_map_listing(listing) for listing in listings]


def verify_listing_coordinates(db: Session) -> List[dict]:
    """Coordinate validity per active listing, invalid ones first"""
    listings = db.query(Listing).filter(Listing.status == ListingStatus.ACTIVE).order_by(Listing.id).all()
    checks = [
        {
            "id": listing.id,
            "title": listing.title,
            "has_valid_coords": has_valid_coordinates(listing.latitude, listing.longitude),
            "latitude": listing.latitude,
            "longitude": listing.longitude,
        }
        for listing in listings
    ]
    checks.sort(key=lambda check: check["has_valid_coords"])
    return checks


def fix_listing_coordinates(db: Session, listing_id: Optional[int] = None) -> List[int]:
    """
    Move listings with missing or invalid coordinates to the default location.
    Returns the ids that were updated.
    """
    query = db.query(Listing).filter(Listing.status != ListingStatus.DELETED)
    if listing_id is not None:
        query = query.filter(Listing.id == listing_id)

    updated = []
    for listing in query.all():
        if has_valid_coordinates(listing.latitude, listing.longitude):
            continue
        listing.latitude = settings.default_latitude
        listing.longitude = settings.default_longitude
        listing.updated_by = "coordinate-fix"
        updated.append(listing.id)

    db.commit()
    if updated:
        logger.info(f"Assigned default coordinates to listings {updated}")
    return updated


@router.get("/listings", response_model=List[MapListing])
def get_map_listings(db: Session = Depends(get_db)):
    return listings_with_coordinates(db)


@router.get("/nearby", response_model=List[NearbyListing])
def get_nearby_listings(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius_km: float = Query(10.0, gt=0, le=500),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db)
):
    """Active listings within radius_km of a point, nearest first"""
    listings = db.query(Listing).options(joinedload(Listing.material_type)).filter(
        Listing.status == ListingStatus.ACTIVE,
        Listing.latitude.isnot(None),
        Listing.longitude.isnot(None)
    ).all()

    nearby = []
    for listing in listings:
        if not has_valid_coordinates(listing.latitude, listing.longitude):
            continue
        distance = haversine_km(latitude, longitude, listing.latitude, listing.longitude)
        if distance <= radius_km:
            nearby.append({**_map_listing(listing), "distance_km": round(distance, 3)})

    nearby.sort(key=lambda item: item["distance_km"])
    return nearby[:limit]


@router.get("/coordinates/verify", response_model=List[CoordinateCheck])
def verify_coordinates(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    return verify_listing_coordinates(db)


@router.post("/coordinates/fix", response_model=CoordinateFixResult)
def fix_coordinates(
    listing_id: Optional[int] = None,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Assign the default location to listings with missing or invalid coordinates (admin only)"""
    if listing_id is not None and not db.query(Listing).filter(Listing.id == listing_id).first():
        raise HTTPException(status_code=404, detail="Listing not found")

    updated = fix_listing_coordinates(db, listing_id)
    return {
        "updated_ids": updated,
        "message": f"Updated {len(updated)} listing(s) to the default location",
    }


@router.get("/geocode", response_model=GeocodeResult)
async def geocode(address: str = Query(..., min_length=3)):
    result = await run_in_threadpool(geocode_address, address)
    if not result:
        raise HTTPException(status_code=404, detail="Address not found")
    return result


@router.get("/reverse-geocode", response_model=GeocodeResult)
async def reverse(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180)
):
    address = await run_in_threadpool(reverse_geocode, latitude, longitude)
    if not address:
        raise HTTPException(status_code=404, detail="No address found for these coordinates")
    return {"latitude": latitude, "longitude": longitude, "address": address}
