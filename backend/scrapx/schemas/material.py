"""
Material type schemas
"""

from pydantic import BaseModel
from typing import Optional


class MaterialTypeResponse(BaseModel):
    id: int
    name: str
    category: str
    description: Optional[str] = None
    base_price: Optional[float] = None

    class Config:
        from_attributes = True
