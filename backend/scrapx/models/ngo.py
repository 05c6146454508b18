"""
NGO reference data for donation listings
"""

from sqlalchemy import Column, String, Text
from .base import BaseModel


class NGO(BaseModel):
    __tablename__ = "ngos"

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    address = Column(Text, nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    website = Column(String(500), nullable=True)
    image_url = Column(String(500), nullable=True)
