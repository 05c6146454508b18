"""
Negotiation routes: dealers make offers, sellers counter, either side closes the thread
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..auth.dependencies import get_current_active_user
from ..core.logging import get_logger
from ..database import get_db
from ..enums.listing import ListingStatus
from ..enums.negotiation import NegotiationAction, NegotiationStatus
from ..models.listing import Listing
from ..models.negotiation import Negotiation
from ..models.user import User
from ..schemas.negotiation import (
    CounterOfferRequest, NegotiationCreate, NegotiationDetailResponse, NegotiationResponse
)
from ..utils.negotiations import ensure_negotiable, insert_negotiation
from ..utils.transitions import negotiation_party, next_negotiation_status

logger = get_logger(__name__)
router = APIRouter()


def negotiation_detail(negotiation: Negotiation) -> NegotiationDetailResponse:
    listing = negotiation.listing
    return NegotiationDetailResponse(
        **NegotiationResponse.model_validate(negotiation).model_dump(),
        listing_title=listing.title if listing else None,
        listed_price=listing.listed_price if listing else None,
        dealer_name=negotiation.dealer.full_name or negotiation.dealer.username if negotiation.dealer else None,
        seller_name=negotiation.seller.full_name or negotiation.seller.username if negotiation.seller else None,
    )


def _get_negotiation_for_party(db: Session, negotiation_id: int, user: User):
    negotiation = db.query(Negotiation).filter(Negotiation.id == negotiation_id).first()
    if not negotiation:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Negotiation not found")
    party = negotiation_party(negotiation, user.id)
    if party is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not a participant in this negotiation"
        )
    return negotiation, party


def _apply_action(
    db: Session,
    negotiation_id: int,
    user: User,
    action: NegotiationAction,
    counter_offer: Optional[float] = None
) -> Negotiation:
    negotiation, party = _get_negotiation_for_party(db, negotiation_id, user)
    closed_listing = negotiation.listing.status in (ListingStatus.SOLD, ListingStatus.DELETED)
    if closed_listing and action != NegotiationAction.REJECT:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="The listing is no longer available"
        )
    new_status = next_negotiation_status(negotiation.status, party, action)

    if action == NegotiationAction.COUNTER:
        negotiation.counter_offer = counter_offer
    negotiation.status = new_status
    negotiation.updated_by = user.username

    try:
        db.commit()
        db.refresh(negotiation)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to {action.value} negotiation {negotiation_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update negotiation: {str(e)}"
        )

    logger.info(f"Negotiation {negotiation.id}: {party} chose {action.value} -> {new_status.value}")
    return negotiation


@router.post("/", response_model=NegotiationResponse, status_code=status.HTTP_201_CREATED)
def create_negotiation(
    negotiation_data: NegotiationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Open a negotiation with an initial offer on someone else's listing
    """
    listing = db.query(Listing).filter(Listing.id == negotiation_data.listing_id).first()
    if not listing:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Listing not found")
    ensure_negotiable(listing, current_user.id)

    return insert_negotiation(
        db,
        listing_id=listing.id,
        dealer_id=current_user.id,
        initial_offer=negotiation_data.initial_offer,
        created_by=current_user.username,
    )


@router.get("/", response_model=List[NegotiationDetailResponse])
def get_my_negotiations(
    role: str = Query("all", pattern="^(all|dealer|seller)$"),
    status: Optional[NegotiationStatus] = None,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Negotiations the caller takes part in, as dealer, seller or both
    """
    query = db.query(Negotiation)
    if role == "dealer":
        query = query.filter(Negotiation.dealer_id == current_user.id)
    elif role == "seller":
        query = query.filter(Negotiation.seller_id == current_user.id)
    else:
        query = query.filter(
            or_(Negotiation.dealer_id == current_user.id, Negotiation.seller_id == current_user.id)
        )
    if status:
        query = query.filter(Negotiation.status == status)

    negotiations = query.order_by(Negotiation.created_at.desc(), Negotiation.id.desc()).all()
    return [negotiation_detail(n) for n in negotiations]


@router.get("/listing/{listing_id}", response_model=List[NegotiationDetailResponse])
def get_listing_negotiations(
    listing_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """All negotiations on one listing (seller only)"""
    listing = db.query(Listing).filter(Listing.id == listing_id).first()
    if not listing:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Listing not found")
    if listing.seller_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the seller can view all negotiations on a listing"
        )

    negotiations = db.query(Negotiation).filter(
        Negotiation.listing_id == listing_id
    ).order_by(Negotiation.created_at.desc(), Negotiation.id.desc()).all()
    return [negotiation_detail(n) for n in negotiations]


@router.get("/listing/{listing_id}/mine", response_model=NegotiationDetailResponse)
def get_my_latest_negotiation(
    listing_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """The caller's most recent negotiation on a listing"""
    negotiation = db.query(Negotiation).filter(
        Negotiation.listing_id == listing_id,
        Negotiation.dealer_id == current_user.id
    ).order_by(Negotiation.created_at.desc(), Negotiation.id.desc()).first()
    if not negotiation:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No negotiation found")
    return negotiation_detail(negotiation)


@router.get("/{negotiation_id}", response_model=NegotiationDetailResponse)
def get_negotiation(
    negotiation_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    negotiation, _ = _get_negotiation_for_party(db, negotiation_id, current_user)
    return negotiation_detail(negotiation)


@router.post("/{negotiation_id}/counter", response_model=NegotiationResponse)
def counter_negotiation(
    negotiation_id: int,
    counter: CounterOfferRequest,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Seller answers a pending offer with a counter offer"""
    return _apply_action(db, negotiation_id, current_user, NegotiationAction.COUNTER, counter.counter_offer)


@router.post("/{negotiation_id}/accept", response_model=NegotiationResponse)
def accept_negotiation(
    negotiation_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    return _apply_action(db, negotiation_id, current_user, NegotiationAction.ACCEPT)


@router.post("/{negotiation_id}/reject", response_model=NegotiationResponse)
def reject_negotiation(
    negotiation_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    return _apply_action(db, negotiation_id, current_user, NegotiationAction.REJECT)
