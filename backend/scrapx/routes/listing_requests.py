"""
Listing request routes: buyers ask for a quantity at a price, sellers answer
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth.dependencies import get_current_active_user
from ..core.logging import get_logger
from ..database import get_db
from ..enums.listing import ListingRequestStatus, ListingStatus
from ..models.listing_request import ListingRequest
from ..models.user import User
from ..schemas.listing_request import ListingRequestCreate, ListingRequestResponse
from .listings import get_listing_or_404

logger = get_logger(__name__)
router = APIRouter()


@router.post("/", response_model=ListingRequestResponse, status_code=status.HTTP_201_CREATED)
def create_listing_request(
    request_data: ListingRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    listing = get_listing_or_404(db, request_data.listing_id)
    if listing.seller_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You cannot request your own listing"
        )
    if listing.status != ListingStatus.ACTIVE:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Listing is not available")

    existing = db.query(ListingRequest).filter(
        ListingRequest.listing_id == listing.id,
        ListingRequest.buyer_id == current_user.id,
        ListingRequest.status == ListingRequestStatus.PENDING
    ).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="You already have a pending request for this listing"
        )

    try:
        listing_request = ListingRequest(
            **request_data.model_dump(),
            buyer_id=current_user.id,
            status=ListingRequestStatus.PENDING,
            created_by=current_user.username
        )
        db.add(listing_request)
        db.commit()
        db.refresh(listing_request)
        return listing_request
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create request on listing {listing.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create request: {str(e)}"
        )


@router.get("/mine", response_model=List[ListingRequestResponse])
def get_my_requests(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    return db.query(ListingRequest).filter(
        ListingRequest.buyer_id == current_user.id
    ).order_by(ListingRequest.created_at.desc(), ListingRequest.id.desc()).all()


@router.get("/listing/{listing_id}", response_model=List[ListingRequestResponse])
def get_listing_requests(
    listing_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Requests on one of the caller's listings"""
    listing = get_listing_or_404(db, listing_id)
    if listing.seller_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the seller can view requests on this listing"
        )
    return db.query(ListingRequest).filter(
        ListingRequest.listing_id == listing_id
    ).order_by(ListingRequest.created_at.desc(), ListingRequest.id.desc()).all()


def _respond(db: Session, request_id: int, user: User, new_status: ListingRequestStatus) -> ListingRequest:
    listing_request = db.query(ListingRequest).filter(ListingRequest.id == request_id).first()
    if not listing_request:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Request not found")
    if listing_request.listing.seller_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the seller can respond to this request"
        )
    if listing_request.status != ListingRequestStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Request has already been {ListingRequestStatus(listing_request.status).value}"
        )

    listing_request.status = new_status
    listing_request.updated_by = user.username
    db.commit()
    db.refresh(listing_request)
    logger.info(f"Listing request {request_id} {new_status.value} by seller {user.id}")
    return listing_request


@router.post("/{request_id}/accept", response_model=ListingRequestResponse)
def accept_listing_request(
    request_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    return _respond(db, request_id, current_user, ListingRequestStatus.ACCEPTED)


@router.post("/{request_id}/reject", response_model=ListingRequestResponse)
def reject_listing_request(
    request_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    return _respond(db, request_id, current_user, ListingRequestStatus.REJECTED)
