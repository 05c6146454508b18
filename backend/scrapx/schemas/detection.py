"""
Material detection and composition pricing schemas
"""

from pydantic import BaseModel, Field
from typing import Optional, List


class DetectedMaterial(BaseModel):
    name: str
    count: int
    material_type_id: Optional[int] = None
    base_price: Optional[float] = None


class DetectionResponse(BaseModel):
    materials: List[DetectedMaterial]
    visualized_image_url: Optional[str] = None
    suggested_title: str
    suggested_description: str


class CompositionItem(BaseModel):
    quantity: float = Field(0, ge=0)
    base_price: Optional[float] = Field(None, ge=0)
    custom_price: Optional[float] = Field(None, ge=0)


class CompositionPriceRequest(BaseModel):
    materials: List[CompositionItem]


class CompositionPriceResponse(BaseModel):
    combined_price: float
    total_quantity: float
    total_value: float
