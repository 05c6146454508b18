"""
Pickup routes: a buyer books an active listing for pickup, creating a pending transaction
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth.dependencies import get_current_active_user
from ..core.logging import get_logger
from ..database import get_db
from ..enums.listing import ListingStatus, TransactionStatus
from ..models.transaction import Transaction
from ..models.user import User
from ..schemas.transaction import PickupRequestCreate, TransactionResponse
from .listings import change_listing_status, get_listing_or_404

logger = get_logger(__name__)
router = APIRouter()


@router.post("/listings/{listing_id}", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
def request_pickup(
    listing_id: int,
    pickup: PickupRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Book an active listing for pickup at its listed price
    """
    listing = get_listing_or_404(db, listing_id)
    if listing.seller_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You cannot request pickup of your own listing"
        )
    if listing.status != ListingStatus.ACTIVE:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Listing is not available for pickup")

    try:
        transaction = Transaction(
            listing_id=listing.id,
            seller_id=listing.seller_id,
            buyer_id=current_user.id,
            amount=listing.listed_price,
            status=TransactionStatus.PENDING,
            notes=pickup.notes,
            created_by=current_user.username
        )
        db.add(transaction)
        change_listing_status(db, listing, ListingStatus.PENDING_PICKUP, current_user)
        db.commit()
        db.refresh(transaction)
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to request pickup for listing {listing_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to request pickup: {str(e)}"
        )

    logger.info(f"Pickup {transaction.id} requested for listing {listing.id} by user {current_user.id}")
    return transaction


@router.get("/mine", response_model=List[TransactionResponse])
def get_my_pickups(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Pickups the caller booked as a buyer"""
    return db.query(Transaction).filter(
        Transaction.buyer_id == current_user.id
    ).order_by(Transaction.created_at.desc(), Transaction.id.desc()).all()


@router.get("/selling", response_model=List[TransactionResponse])
def get_pickups_on_my_listings(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    return db.query(Transaction).filter(
        Transaction.seller_id == current_user.id
    ).order_by(Transaction.created_at.desc(), Transaction.id.desc()).all()


@router.post("/{transaction_id}/cancel", response_model=TransactionResponse)
def cancel_pickup(
    transaction_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Cancel a pending pickup (buyer only). The listing goes back to active.
    """
    transaction = db.query(Transaction).filter(Transaction.id == transaction_id).first()
    if not transaction:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pickup not found")
    if transaction.buyer_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the buyer can cancel this pickup"
        )
    if transaction.status != TransactionStatus.PENDING:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Pickup is no longer pending")

    listing = transaction.listing
    if listing.status == ListingStatus.PENDING_PICKUP:
        # Cancels the pending transaction along with the listing
        change_listing_status(db, listing, ListingStatus.ACTIVE, current_user)
    else:
        transaction.status = TransactionStatus.CANCELLED
    transaction.updated_by = current_user.username
    db.commit()
    db.refresh(transaction)
    return transaction
