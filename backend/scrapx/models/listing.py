"""
Scrap listing model
"""

from sqlalchemy import Column, Integer, ForeignKey, String, Text, Float, Boolean
from sqlalchemy.orm import relationship
from .base import BaseModel, enum_type
from ..enums.listing import ListingStatus


class Listing(BaseModel):
    __tablename__ = "scrap_listings"

    seller_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    material_type_id = Column(Integer, ForeignKey("material_types.id"), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    quantity = Column(Float, nullable=False)
    unit = Column(String(20), default="kg", nullable=False)
    listed_price = Column(Float, nullable=False)
    image_url = Column(String(500), nullable=True)

    # Detection output kept alongside the listing
    classification = Column(String(100), nullable=True)
    confidence = Column(Float, nullable=True)
    weight_estimation = Column(Float, nullable=True)

    # Pickup location
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    address = Column(Text, nullable=True)

    status = Column(enum_type(ListingStatus), default=ListingStatus.ACTIVE, nullable=False, index=True)

    # Donations
    is_donation = Column(Boolean, default=False, nullable=False, index=True)
    ngo_id = Column(Integer, ForeignKey("ngos.id"), nullable=True, index=True)

    # Mixed-material listings are split into one child per material
    parent_listing_id = Column(Integer, ForeignKey("scrap_listings.id"), nullable=True, index=True)

    # Relationships
    seller = relationship("User", foreign_keys=[seller_id], backref="listings")
    material_type = relationship("MaterialType")
    ngo = relationship("NGO", backref="donations")
    parent = relationship("Listing", remote_side="Listing.id", backref="children")
