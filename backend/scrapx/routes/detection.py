"""
Material detection routes: classify a scrap photo and price a material mix
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from ..auth.dependencies import get_current_active_user
from ..database import get_db
from ..models.user import User
from ..schemas.detection import CompositionPriceRequest, CompositionPriceResponse, DetectionResponse
from ..utils.material_detection import calculate_combined_price, detect_materials
from ..utils.storage import read_image_upload

router = APIRouter()


@router.post("/detect", response_model=DetectionResponse)
async def detect_listing_materials(
    image_url: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Detect scrap materials in an image given by URL or uploaded directly

    - **image_url**: publicly reachable image URL
    - **file**: image upload (max 5 MB); takes precedence over image_url
    """
    image_bytes = None
    if file is not None and file.filename:
        image_bytes = await read_image_upload(file)
    elif not image_url:
        raise HTTPException(status_code=400, detail="Provide an image_url or upload an image file")

    return await run_in_threadpool(detect_materials, db, image_url=image_url, image_bytes=image_bytes)


@router.post("/combined-price", response_model=CompositionPriceResponse)
def get_combined_price(request: CompositionPriceRequest):
    """Weighted average price per unit of a material mix"""
    materials = [item.model_dump() for item in request.materials]
    total_quantity = sum(item.quantity for item in request.materials)
    combined = calculate_combined_price(materials)
    return {
        "combined_price": combined,
        "total_quantity": total_quantity,
        "total_value": combined * total_quantity,
    }
