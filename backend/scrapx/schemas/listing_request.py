"""
Listing request schemas
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from ..enums.listing import ListingRequestStatus


class ListingRequestCreate(BaseModel):
    listing_id: int
    quantity_requested: float = Field(..., gt=0)
    price_offered: float = Field(..., ge=0)
    message: Optional[str] = None


class ListingRequestResponse(BaseModel):
    id: int
    listing_id: int
    buyer_id: int
    quantity_requested: float
    price_offered: float
    message: Optional[str]
    status: ListingRequestStatus
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True
