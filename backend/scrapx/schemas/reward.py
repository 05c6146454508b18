"""
Token reward schemas
"""

from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from ..enums.listing import RewardStatus


class RewardClaimRequest(BaseModel):
    listing_id: int
    wallet_address: str


class RewardResponse(BaseModel):
    id: int
    listing_id: int
    wallet_address: str
    amount: float
    tx_hash: Optional[str]
    status: RewardStatus
    created_at: datetime

    class Config:
        from_attributes = True
