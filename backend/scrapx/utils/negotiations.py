"""
Negotiation persistence shared by the negotiation routes and admin diagnostics
"""

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.logging import get_logger
from ..enums.listing import ListingStatus
from ..enums.negotiation import ACTIVE_NEGOTIATION_STATUSES, NegotiationStatus
from ..models.listing import Listing
from ..models.negotiation import Negotiation

logger = get_logger(__name__)

DUPLICATE_DETAIL = "You already have an active negotiation on this listing"


def find_active_negotiation(db: Session, listing_id: int, dealer_id: int):
    return db.query(Negotiation).filter(
        Negotiation.listing_id == listing_id,
        Negotiation.dealer_id == dealer_id,
        Negotiation.status.in_(ACTIVE_NEGOTIATION_STATUSES)
    ).first()


def insert_negotiation(
    db: Session,
    listing_id: int,
    dealer_id: int,
    initial_offer: float,
    created_by: str = None
) -> Negotiation:
    """
    Insert a pending negotiation with the seller copied from the listing.
    No caller checks happen here; the one-active-thread rule still holds.

    Raises:
        HTTPException: 404 for an unknown listing, 409 for a duplicate active thread
    """
    listing = db.query(Listing).filter(Listing.id == listing_id).first()
    if not listing:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Listing not found")

    if find_active_negotiation(db, listing_id, dealer_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_DETAIL)

    negotiation = Negotiation(
        listing_id=listing.id,
        dealer_id=dealer_id,
        seller_id=listing.seller_id,
        initial_offer=initial_offer,
        status=NegotiationStatus.PENDING,
        created_by=created_by,
    )
    db.add(negotiation)
    try:
        db.commit()
    except IntegrityError:
        # Lost the race against a concurrent insert for the same (listing, dealer)
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_DETAIL)
    db.refresh(negotiation)
    logger.info(f"Negotiation {negotiation.id} opened on listing {listing.id} by dealer {dealer_id}")
    return negotiation


def ensure_negotiable(listing: Listing, dealer_id: int) -> None:
    if listing.status == ListingStatus.DELETED:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Listing not found")
    if listing.status == ListingStatus.SOLD:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Listing has already been sold")
    if listing.seller_id == dealer_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You cannot make an offer on your own listing"
        )
