"""
Negotiation schemas
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from ..enums.negotiation import NegotiationStatus


class NegotiationCreate(BaseModel):
    listing_id: int
    initial_offer: float = Field(..., gt=0, description="Offer must be greater than 0")


class CounterOfferRequest(BaseModel):
    counter_offer: float = Field(..., gt=0, description="Counter offer must be greater than 0")


class NegotiationResponse(BaseModel):
    id: int
    listing_id: int
    dealer_id: int
    seller_id: int
    initial_offer: float
    counter_offer: Optional[float]
    status: NegotiationStatus
    agreed_price: Optional[float] = None
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class NegotiationDetailResponse(NegotiationResponse):
    listing_title: Optional[str] = None
    listed_price: Optional[float] = None
    dealer_name: Optional[str] = None
    seller_name: Optional[str] = None


class NegotiationInsert(NegotiationCreate):
    dealer_id: int
