"""
Admin diagnostics: table sizes, listing status spread, coordinate health
and direct negotiation inserts for troubleshooting
"""

from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..auth.dependencies import require_admin
from ..database import get_db
from ..enums.listing import ListingStatus
from ..models.listing import Listing
from ..models.listing_request import ListingRequest
from ..models.material_type import MaterialType
from ..models.negotiation import Negotiation
from ..models.ngo import NGO
from ..models.token_reward import TokenReward
from ..models.transaction import Transaction
from ..models.user import User
from ..schemas.negotiation import NegotiationInsert, NegotiationResponse
from ..utils.negotiations import insert_negotiation
from .maps import verify_listing_coordinates

router = APIRouter(dependencies=[Depends(require_admin)])

DIAGNOSTIC_TABLES = (User, MaterialType, NGO, Listing, Negotiation, ListingRequest, Transaction, TokenReward)


@router.get("/table-counts", response_model=Dict[str, int])
def get_table_counts(db: Session = Depends(get_db)):
    return {model.__tablename__: db.query(func.count(model.id)).scalar() for model in DIAGNOSTIC_TABLES}


@router.get("/listing-status", response_model=Dict[str, int])
def get_listing_status_counts(db: Session = Depends(get_db)):
    """Number of listings per status, including statuses with none"""
    counts = {listing_status.value: 0 for listing_status in ListingStatus}
    rows = db.query(Listing.status, func.count(Listing.id)).group_by(Listing.status).all()
    for listing_status, count in rows:
        counts[ListingStatus(listing_status).value] = count
    return counts


@router.get("/coordinates")
def get_coordinate_summary(db: Session = Depends(get_db)):
    checks = verify_listing_coordinates(db)
    valid = sum(1 for check in checks if check["has_valid_coords"])
    return {
        "total_active": len(checks),
        "valid": valid,
        "invalid": len(checks) - valid,
        "invalid_listings": [check for check in checks if not check["has_valid_coords"]],
    }


@router.post("/negotiations", response_model=NegotiationResponse, status_code=status.HTTP_201_CREATED)
def insert_negotiation_directly(
    data: NegotiationInsert,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Insert a negotiation for any dealer, skipping the caller checks of the public route
    """
    if not db.query(User).filter(User.id == data.dealer_id).first():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Dealer not found")
    return insert_negotiation(
        db,
        listing_id=data.listing_id,
        dealer_id=data.dealer_id,
        initial_offer=data.initial_offer,
        created_by=admin.username,
    )
