"""
Negotiation model for buyer price offers on a listing
"""

from sqlalchemy import Column, Integer, ForeignKey, Float, Index, text
from sqlalchemy.orm import relationship
from .base import BaseModel, enum_type
from ..enums.negotiation import NegotiationStatus


class Negotiation(BaseModel):
    __tablename__ = "negotiations"

    listing_id = Column(Integer, ForeignKey("scrap_listings.id"), nullable=False, index=True)
    dealer_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)  # Buyer making the offer
    seller_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)

    initial_offer = Column(Float, nullable=False)
    counter_offer = Column(Float, nullable=True)
    status = Column(enum_type(NegotiationStatus), default=NegotiationStatus.PENDING, nullable=False, index=True)

    # Relationships
    listing = relationship("Listing", backref="negotiations")
    dealer = relationship("User", foreign_keys=[dealer_id], backref="negotiations_as_dealer")
    seller = relationship("User", foreign_keys=[seller_id], backref="negotiations_as_seller")

    @property
    def agreed_price(self):
        if self.status != NegotiationStatus.ACCEPTED:
            return None
        return self.counter_offer if self.counter_offer is not None else self.initial_offer

    # One open thread per (listing, dealer)
    __table_args__ = (
        Index(
            "uq_negotiations_active_listing_dealer",
            "listing_id",
            "dealer_id",
            unique=True,
            postgresql_where=text("status IN ('pending', 'countered')"),
            sqlite_where=text("status IN ('pending', 'countered')"),
        ),
    )
