"""
Listing request model (buyer asks for a quantity at a price)
"""

from sqlalchemy import Column, Integer, ForeignKey, Float, Text
from sqlalchemy.orm import relationship
from .base import BaseModel, enum_type
from ..enums.listing import ListingRequestStatus


class ListingRequest(BaseModel):
    __tablename__ = "listing_requests"

    listing_id = Column(Integer, ForeignKey("scrap_listings.id"), nullable=False, index=True)
    buyer_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    quantity_requested = Column(Float, nullable=False)
    price_offered = Column(Float, nullable=False)
    message = Column(Text, nullable=True)
    status = Column(enum_type(ListingRequestStatus), default=ListingRequestStatus.PENDING, nullable=False, index=True)

    # Relationships
    listing = relationship("Listing", backref="requests")
    buyer = relationship("User", foreign_keys=[buyer_id], backref="listing_requests")
