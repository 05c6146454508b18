"""
NGO schemas
"""

from pydantic import BaseModel
from typing import Optional


class NGOResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    image_url: Optional[str] = None

    class Config:
        from_attributes = True


class NGOBrief(BaseModel):
    id: int
    name: str
    description: Optional[str] = None

    class Config:
        from_attributes = True
