"""
Scrap listing routes: creation (single, mixed-material, donation), browsing,
ownership-checked edits and listing statistics
"""

from datetime import datetime, timezone
from math import floor
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session, joinedload

from ..auth.dependencies import get_current_active_user
from ..core.logging import get_logger
from ..database import get_db
from ..enums.listing import ListingStatus, TransactionStatus
from ..enums.user import UserRole
from ..models.listing import Listing
from ..models.material_type import MaterialType
from ..models.ngo import NGO
from ..models.transaction import Transaction
from ..models.user import User
from ..schemas.listing import (
    DonationCreate, ListingCreate, ListingDetailResponse, ListingResponse,
    ListingStatsResponse, ListingUpdate, LocationUpdate, MixedListingCreate,
    MixedListingResponse, RecyclabilityBreakdown
)
from ..schemas.material import MaterialTypeResponse
from ..schemas.ngo import NGOBrief
from ..schemas.user import ProfileBrief
from ..utils.geo import listing_geolocation
from ..utils.impact import environmental_impact, recyclability_breakdown, recyclability_stats
from ..utils.material_detection import calculate_combined_price
from ..utils.transitions import ensure_listing_transition

logger = get_logger(__name__)
router = APIRouter()


def get_listing_or_404(db: Session, listing_id: int, include_deleted: bool = False) -> Listing:
    """Deleted listings are invisible unless explicitly requested"""
    listing = db.query(Listing).filter(Listing.id == listing_id).first()
    if not listing or (listing.status == ListingStatus.DELETED and not include_deleted):
        raise HTTPException(status_code=404, detail="Listing not found")
    return listing


def ensure_can_modify(listing: Listing, user: User, allow_admin: bool = True) -> None:
    if listing.seller_id == user.id:
        return
    if allow_admin and user.role == UserRole.ADMIN:
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Not authorized to modify this listing"
    )


def get_material_type_or_404(db: Session, material_type_id: int) -> MaterialType:
    material_type = db.query(MaterialType).filter(MaterialType.id == material_type_id).first()
    if not material_type:
        raise HTTPException(status_code=404, detail=f"Material type {material_type_id} not found")
    return material_type


def change_listing_status(db: Session, listing: Listing, target: ListingStatus, actor: User) -> None:
    """
    Move a listing to a new status and keep its pickup transaction in step.
    The caller commits.
    """
    ensure_listing_transition(listing.status, target)
    previous = listing.status
    listing.status = target
    listing.updated_by = actor.username

    pending = db.query(Transaction).filter(
        Transaction.listing_id == listing.id,
        Transaction.status == TransactionStatus.PENDING
    ).all()
    if target == ListingStatus.SOLD:
        for transaction in pending:
            transaction.status = TransactionStatus.COMPLETED
            transaction.completed_at = datetime.now(timezone.utc)
    elif target in (ListingStatus.ACTIVE, ListingStatus.DELETED) and previous == ListingStatus.PENDING_PICKUP:
        for transaction in pending:
            transaction.status = TransactionStatus.CANCELLED

    logger.info(f"Listing {listing.id} status {ListingStatus(previous).value} -> {target.value} by user {actor.id}")


def listing_detail(listing: Listing) -> ListingDetailResponse:
    return ListingDetailResponse(
        **ListingResponse.model_validate(listing).model_dump(),
        material_type=MaterialTypeResponse.model_validate(listing.material_type) if listing.material_type else None,
        profiles=ProfileBrief.model_validate(listing.seller) if listing.seller else None,
        ngo=NGOBrief.model_validate(listing.ngo) if listing.ngo else None,
        geolocation=listing_geolocation(listing),
    )


@router.post("/", response_model=ListingResponse, status_code=status.HTTP_201_CREATED)
def create_listing(
    listing_data: ListingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Create a single-material listing. The price defaults to the material's base price.
    """
    material_type = get_material_type_or_404(db, listing_data.material_type_id)
    listing_dict = listing_data.model_dump()
    if listing_dict["listed_price"] is None:
        listing_dict["listed_price"] = material_type.base_price or 0

    try:
        db_listing = Listing(
            **listing_dict,
            seller_id=current_user.id,
            status=ListingStatus.ACTIVE,
            created_by=current_user.username
        )
        db.add(db_listing)
        db.commit()
        db.refresh(db_listing)
        return db_listing
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create listing for user {current_user.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create listing: {str(e)}"
        )


@router.post("/mixed", response_model=MixedListingResponse, status_code=status.HTTP_201_CREATED)
def create_mixed_listing(
    listing_data: MixedListingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Create a parent listing for a detected material mix plus one child listing per material
    """
    components = []
    for component in listing_data.materials:
        material_type = get_material_type_or_404(db, component.material_type_id)
        components.append((component, material_type))

    combined_price = calculate_combined_price(
        {
            "quantity": component.quantity,
            "custom_price": component.custom_price,
            "base_price": material_type.base_price,
        }
        for component, material_type in components
    )
    total_count = sum(component.count for component, _ in components)
    shared = {
        "unit": listing_data.unit,
        "image_url": listing_data.image_url,
        "address": listing_data.address,
        "latitude": listing_data.latitude,
        "longitude": listing_data.longitude,
        "seller_id": current_user.id,
        "status": ListingStatus.ACTIVE,
        "created_by": current_user.username,
    }

    try:
        parent = Listing(
            title=listing_data.title,
            description=listing_data.description or "",
            material_type_id=components[0][1].id,
            quantity=listing_data.quantity,
            listed_price=combined_price,
            **shared
        )
        db.add(parent)
        db.flush()

        children = []
        for component, material_type in components:
            percentage = floor(component.count / total_count * 100 + 0.5)
            price = component.custom_price if component.custom_price is not None else (material_type.base_price or 0)
            child = Listing(
                title=f"{material_type.name} from {listing_data.title}",
                description=(
                    f"{listing_data.description or ''}\n\nThis is part of a mixed material listing. "
                    f"Material: {material_type.name} ({percentage}%)"
                ),
                material_type_id=material_type.id,
                quantity=component.quantity,
                listed_price=price,
                parent_listing_id=parent.id,
                **shared
            )
            db.add(child)
            children.append(child)

        db.commit()
        db.refresh(parent)
        for child in children:
            db.refresh(child)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create mixed listing for user {current_user.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create mixed listing: {str(e)}"
        )

    logger.info(f"Mixed listing {parent.id} created with {len(children)} material listings")
    return MixedListingResponse(parent=parent, children=children)


@router.post("/donations", response_model=ListingResponse, status_code=status.HTTP_201_CREATED)
def create_donation(
    donation: DonationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Donate items to an NGO. Donations are free and counted per item.
    """
    get_material_type_or_404(db, donation.material_type_id)
    ngo = db.query(NGO).filter(NGO.id == donation.ngo_id).first()
    if not ngo:
        raise HTTPException(status_code=404, detail="NGO not found")

    try:
        db_listing = Listing(
            title=donation.title,
            description=donation.description,
            material_type_id=donation.material_type_id,
            quantity=donation.quantity,
            unit="item",
            listed_price=0,
            image_url=donation.image_url,
            address=donation.address or ngo.address,
            is_donation=True,
            ngo_id=ngo.id,
            seller_id=current_user.id,
            status=ListingStatus.ACTIVE,
            created_by=current_user.username
        )
        db.add(db_listing)
        db.commit()
        db.refresh(db_listing)
        return db_listing
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create donation for user {current_user.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create donation: {str(e)}"
        )


@router.get("/", response_model=List[ListingResponse])
def get_listings(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[ListingStatus] = None,
    material_type_id: Optional[int] = None,
    category: Optional[str] = None,
    is_donation: Optional[bool] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    search: Optional[str] = None,
    seller_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """
    Browse listings (public endpoint). Deleted listings are never returned.
    """
    query = db.query(Listing).filter(Listing.status != ListingStatus.DELETED)

    # Default to only showing active listings for public view
    query = query.filter(Listing.status == (status or ListingStatus.ACTIVE))

    if material_type_id:
        query = query.filter(Listing.material_type_id == material_type_id)
    if category:
        query = query.join(MaterialType).filter(MaterialType.category.ilike(category))
    if is_donation is not None:
        query = query.filter(Listing.is_donation == is_donation)
    if seller_id:
        query = query.filter(Listing.seller_id == seller_id)
    if min_price is not None:
        query = query.filter(Listing.listed_price >= min_price)
    if max_price is not None:
        query = query.filter(Listing.listed_price <= max_price)
    if search:
        search_term = f"%{search}%"
        query = query.filter(
            (Listing.title.ilike(search_term)) |
            (Listing.description.ilike(search_term))
        )

    return query.order_by(Listing.created_at.desc(), Listing.id.desc()).offset(skip).limit(limit).all()


@router.get("/my-listings", response_model=List[ListingResponse])
def get_my_listings(
    status: Optional[ListingStatus] = None,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Get the caller's listings. Deleted ones only appear when asked for by status.
    """
    query = db.query(Listing).filter(Listing.seller_id == current_user.id)
    if status:
        query = query.filter(Listing.status == status)
    else:
        query = query.filter(Listing.status != ListingStatus.DELETED)
    return query.order_by(Listing.created_at.desc(), Listing.id.desc()).all()


@router.get("/stats", response_model=ListingStatsResponse)
def get_my_listing_stats(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Recyclability and paper-recycling impact over the caller's sold listings"""
    sold = db.query(Listing).options(joinedload(Listing.material_type)).filter(
        Listing.seller_id == current_user.id,
        Listing.status == ListingStatus.SOLD
    ).all()
    return {
        "recyclability": recyclability_stats(sold),
        "environmental_impact": environmental_impact(sold),
    }


@router.get("/{listing_id}", response_model=ListingDetailResponse)
def get_listing(listing_id: int, db: Session = Depends(get_db)):
    """
    Get one listing with its material type, seller profile, NGO and geolocation
    """
    return listing_detail(get_listing_or_404(db, listing_id))


@router.get("/{listing_id}/coordinates")
def get_listing_coordinates(listing_id: int, db: Session = Depends(get_db)):
    listing = get_listing_or_404(db, listing_id)
    return {"id": listing.id, "latitude": listing.latitude, "longitude": listing.longitude}


@router.get("/{listing_id}/recyclability", response_model=RecyclabilityBreakdown)
def get_listing_recyclability(listing_id: int, db: Session = Depends(get_db)):
    return recyclability_breakdown(get_listing_or_404(db, listing_id))


@router.put("/{listing_id}", response_model=ListingResponse)
def update_listing(
    listing_id: int,
    listing_update: ListingUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Update a listing (owner or admin). Status changes follow the listing lifecycle.
    """
    listing = get_listing_or_404(db, listing_id)
    ensure_can_modify(listing, current_user)

    changes = listing_update.model_dump(exclude_unset=True)
    target_status = changes.pop("status", None)

    if changes.get("material_type_id") is not None:
        get_material_type_or_404(db, changes["material_type_id"])

    # Pending pickup is entered through a buyer's pickup request only
    if target_status == ListingStatus.PENDING_PICKUP and listing.status != ListingStatus.PENDING_PICKUP:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Listings move to pending pickup when a buyer requests a pickup"
        )

    try:
        for field, value in changes.items():
            setattr(listing, field, value)
        if target_status is not None and target_status != listing.status:
            change_listing_status(db, listing, target_status, current_user)
        listing.updated_by = current_user.username
        db.commit()
        db.refresh(listing)
        return listing
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to update listing {listing_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update listing: {str(e)}"
        )


@router.put("/{listing_id}/location", response_model=ListingResponse)
def update_listing_location(
    listing_id: int,
    location: LocationUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """Set the pickup location of a listing (owner only)"""
    listing = get_listing_or_404(db, listing_id)
    ensure_can_modify(listing, current_user, allow_admin=False)

    listing.latitude = location.latitude
    listing.longitude = location.longitude
    if location.address is not None:
        listing.address = location.address
    listing.updated_by = current_user.username
    db.commit()
    db.refresh(listing)
    return listing


@router.post("/{listing_id}/mark-sold", response_model=ListingResponse)
def mark_listing_sold(
    listing_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Mark a listing as sold (owner only). Completes any pending pickup.
    """
    listing = get_listing_or_404(db, listing_id)
    ensure_can_modify(listing, current_user, allow_admin=False)

    change_listing_status(db, listing, ListingStatus.SOLD, current_user)
    db.commit()
    db.refresh(listing)
    return listing


@router.delete("/{listing_id}")
def delete_listing(
    listing_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Delete a listing (owner or admin only) - soft delete by marking as deleted
    """
    listing = get_listing_or_404(db, listing_id)
    ensure_can_modify(listing, current_user)

    change_listing_status(db, listing, ListingStatus.DELETED, current_user)
    db.commit()
    return {"message": "Listing deleted successfully"}
