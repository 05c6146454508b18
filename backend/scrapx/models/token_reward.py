"""
RECYCLE token payouts for sold listings
"""

from sqlalchemy import Column, Integer, ForeignKey, String, Float
from sqlalchemy.orm import relationship
from .base import BaseModel, enum_type
from ..enums.listing import RewardStatus


class TokenReward(BaseModel):
    __tablename__ = "token_rewards"

    user_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    listing_id = Column(Integer, ForeignKey("scrap_listings.id"), nullable=False, unique=True)
    wallet_address = Column(String(42), nullable=False)
    amount = Column(Float, nullable=False)
    tx_hash = Column(String(80), nullable=True)
    status = Column(enum_type(RewardStatus), nullable=False)

    user = relationship("User", backref="token_rewards")
    listing = relationship("Listing")
