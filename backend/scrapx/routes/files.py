"""
Image upload routes using the configured storage backend (GitHub or S3)
"""

from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
from typing import Dict, Any
from ..auth.dependencies import get_current_active_user
from ..config import settings
from ..core.logging import get_logger
from ..models.user import User
from ..utils.storage import get_file_storage

logger = get_logger(__name__)
router = APIRouter(tags=["File Management"])


@router.post("/upload", response_model=Dict[str, Any])
async def upload_file(
    file: UploadFile = File(...),
    upload_type: str = "listing",
    current_user: User = Depends(get_current_active_user)
):
    """
    Upload an image and return its public URL

    - **file**: The image to upload (jpg, jpeg, png, gif, webp; max 5 MB)
    - **upload_type**: "listing" for listing photos, "profile" for profile pictures

    S3 keys are grouped per user (listings/user_{id}/, profile-pictures/user_{id}/).
    GitHub uploads always land under images/ in the configured repository.
    """
    if not file.filename:
        raise HTTPException(status_code=400, detail="File must have a name")

    if upload_type == "profile":
        upload_folder = f"profile-pictures/user_{current_user.id}"
    else:
        upload_folder = f"listings/user_{current_user.id}"

    storage = get_file_storage()
    file_url = await storage.upload_file(file=file, folder=upload_folder)
    logger.info(f"User {current_user.id} uploaded {file.filename} to {settings.storage_backend}")

    return {
        "success": True,
        "message": "File uploaded successfully",
        "data": {
            "original_filename": file.filename,
            "file_url": file_url,
            "content_type": file.content_type,
            "uploaded_by": current_user.id,
            "upload_type": upload_type,
            "storage_backend": settings.storage_backend,
        }
    }
