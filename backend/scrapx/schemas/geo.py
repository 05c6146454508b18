"""
Map and geocoding schemas
"""

from pydantic import BaseModel
from typing import Optional, List
from .material import MaterialTypeResponse


class MapListing(BaseModel):
    id: int
    title: str
    description: Optional[str]
    material_type_id: int
    quantity: float
    unit: str
    listed_price: float
    address: Optional[str]
    latitude: Optional[float]
    longitude: Optional[float]
    status: str
    seller_id: int
    material_type: Optional[MaterialTypeResponse] = None


class NearbyListing(MapListing):
    distance_km: float


class CoordinateCheck(BaseModel):
    id: int
    title: str
    has_valid_coords: bool
    latitude: Optional[float]
    longitude: Optional[float]


class CoordinateFixResult(BaseModel):
    updated_ids: List[int]
    message: str


class GeocodeResult(BaseModel):
    latitude: float
    longitude: float
    address: Optional[str] = None
