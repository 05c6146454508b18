"""
Transaction model for pickup requests
"""

from sqlalchemy import Column, Integer, ForeignKey, Float, DateTime, Text
from sqlalchemy.orm import relationship
from .base import BaseModel, enum_type
from ..enums.listing import TransactionStatus


class Transaction(BaseModel):
    __tablename__ = "transactions"

    # Transaction details
    listing_id = Column(Integer, ForeignKey("scrap_listings.id"), nullable=False, index=True)
    seller_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    buyer_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)

    # Listed price at the time of the pickup request
    amount = Column(Float, nullable=False)

    # Status
    status = Column(enum_type(TransactionStatus), default=TransactionStatus.PENDING, nullable=False, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    # Optional notes
    notes = Column(Text, nullable=True)

    # Relationships
    listing = relationship("Listing", backref="transactions")
    seller = relationship("User", foreign_keys=[seller_id], backref="sales")
    buyer = relationship("User", foreign_keys=[buyer_id], backref="purchases")
