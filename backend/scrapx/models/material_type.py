"""
Material type reference data
"""

from sqlalchemy import Column, String, Text, Float
from .base import BaseModel


class MaterialType(BaseModel):
    __tablename__ = "material_types"

    name = Column(String(100), unique=True, nullable=False, index=True)  # Matches detector class names, e.g. "Plastic"
    category = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=True)
    base_price = Column(Float, nullable=True)  # Price per kg
