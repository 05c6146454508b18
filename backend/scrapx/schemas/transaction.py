"""
Transaction schemas
"""

from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from ..enums.listing import TransactionStatus


class TransactionResponse(BaseModel):
    id: int
    listing_id: int
    seller_id: int
    buyer_id: int
    amount: float
    status: TransactionStatus
    completed_at: Optional[datetime]
    notes: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class PickupRequestCreate(BaseModel):
    notes: Optional[str] = None
