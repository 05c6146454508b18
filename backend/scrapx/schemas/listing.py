"""
Listing schemas for request/response models
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime
from ..enums.listing import ListingStatus
from .material import MaterialTypeResponse
from .ngo import NGOBrief
from .user import ProfileBrief


class _LocatedInput(BaseModel):
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    @model_validator(mode='after')
    def check_coordinate_pair(self):
        """Latitude and longitude travel together"""
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be provided together")
        return self


class ListingCreate(_LocatedInput):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    material_type_id: int
    quantity: float = Field(..., gt=0)
    unit: str = "kg"
    listed_price: Optional[float] = Field(None, ge=0)  # Falls back to the material's base price
    image_url: Optional[str] = None
    address: Optional[str] = None
    classification: Optional[str] = None
    confidence: Optional[float] = Field(None, ge=0, le=1)
    weight_estimation: Optional[float] = Field(None, ge=0)


class MaterialComponent(BaseModel):
    material_type_id: int
    count: int = Field(1, ge=1)  # Detections of this material in the image
    quantity: float = Field(..., gt=0)
    custom_price: Optional[float] = Field(None, ge=0)


class MixedListingCreate(_LocatedInput):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    unit: str = "kg"
    quantity: float = Field(..., gt=0)
    image_url: Optional[str] = None
    address: Optional[str] = None
    materials: List[MaterialComponent] = Field(..., min_length=1)


class DonationCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    material_type_id: int
    quantity: float = Field(..., gt=0)
    ngo_id: int
    image_url: Optional[str] = None
    address: Optional[str] = None  # Defaults to the NGO's address


class ListingUpdate(_LocatedInput):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    material_type_id: Optional[int] = None
    quantity: Optional[float] = Field(None, gt=0)
    unit: Optional[str] = None
    listed_price: Optional[float] = Field(None, ge=0)
    image_url: Optional[str] = None
    address: Optional[str] = None
    status: Optional[ListingStatus] = None

    @field_validator("title", "material_type_id", "quantity", "unit", "listed_price", "status")
    @classmethod
    def not_null(cls, value, info):
        # Optional means "leave unchanged"; these columns cannot be cleared
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


class LocationUpdate(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address: Optional[str] = None


class ListingResponse(BaseModel):
    id: int
    seller_id: int
    material_type_id: int
    title: str
    description: Optional[str]
    quantity: float
    unit: str
    listed_price: float
    image_url: Optional[str]
    classification: Optional[str]
    confidence: Optional[float]
    weight_estimation: Optional[float]
    latitude: Optional[float]
    longitude: Optional[float]
    address: Optional[str]
    status: ListingStatus
    is_donation: bool
    ngo_id: Optional[int]
    parent_listing_id: Optional[int]
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class GeoJSONPoint(BaseModel):
    type: str = "Point"
    coordinates: List[float]  # [longitude, latitude]


class ListingDetailResponse(ListingResponse):
    material_type: Optional[MaterialTypeResponse] = None
    profiles: Optional[ProfileBrief] = None
    ngo: Optional[NGOBrief] = None
    geolocation: Optional[GeoJSONPoint] = None


class MixedListingResponse(BaseModel):
    parent: ListingResponse
    children: List[ListingResponse]


class RecyclabilityBreakdown(BaseModel):
    listing_id: int
    materials: List[str]
    total_materials: int
    recyclable_count: int
    non_recyclable_count: int
    recyclable_percentage: float
    non_recyclable_percentage: float


class RecyclabilityStats(BaseModel):
    total_sold: int
    recyclable_count: int
    non_recyclable_count: int
    recyclable_percentage: float


class EnvironmentalImpact(BaseModel):
    total_paper_weight_kg: float
    trees_saved: float
    oxygen_per_year_kg: float
    oxygen_per_year_mg_per_l: float
    cumulative_oxygen_kg: float
    cumulative_oxygen_mg_per_l: float


class ListingStatsResponse(BaseModel):
    recyclability: RecyclabilityStats
    environmental_impact: EnvironmentalImpact
