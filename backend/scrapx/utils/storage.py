"""
Storage factory - chooses between GitHub and S3 image storage
"""

from fastapi import HTTPException, UploadFile
import magic

from ..config import settings
from ..core.logging import get_logger

logger = get_logger(__name__)


def get_file_extension(filename: str) -> str:
    """Extract file extension from filename"""
    if not filename or '.' not in filename:
        return ""
    return f".{filename.split('.')[-1].lower()}"


def validate_image_bytes(content: bytes, filename: str) -> None:
    """
    Check size, extension and sniffed content type of an uploaded image

    Raises:
        HTTPException: 413 when too large, 400 for a disallowed or non-image file
    """
    if len(content) > settings.max_upload_size:
        raise HTTPException(
            status_code=413,
            detail=f"File size {len(content)} exceeds maximum allowed size {settings.max_upload_size}"
        )

    extension = get_file_extension(filename).lstrip('.')
    allowed_exts = settings.get_allowed_image_extensions()
    if extension not in allowed_exts:
        raise HTTPException(
            status_code=400,
            detail=f"File type .{extension} not allowed. Allowed types: {sorted(allowed_exts)}"
        )

    mime_type = magic.from_buffer(content[:2048], mime=True)
    if not mime_type.startswith("image/"):
        raise HTTPException(status_code=400, detail=f"File content is not an image ({mime_type})")


async def read_image_upload(file: UploadFile) -> bytes:
    """Read an UploadFile fully and validate it as an image"""
    content = await file.read()
    await file.seek(0)
    validate_image_bytes(content, file.filename or "")
    return content


def get_storage():
    """
    Build the configured storage backend

    Returns:
        GitHubStorage or S3Client instance
    """
    backend = settings.storage_backend.lower()

    if backend == "github":
        if not (settings.github_token and settings.github_username and settings.github_repo):
            raise HTTPException(
                status_code=503,
                detail="GitHub storage is not configured. Set GITHUB_TOKEN, GITHUB_USERNAME and GITHUB_REPO."
            )
        from .github_storage import GitHubStorage
        logger.info("Using GitHub image storage")
        return GitHubStorage()

    if backend == "s3":
        aws_key = settings.aws_access_key_id or ''
        s3_bucket = settings.s3_bucket_name or ''
        if not aws_key.strip() or not s3_bucket.strip():
            raise HTTPException(
                status_code=503,
                detail="S3 credentials are missing. Please configure AWS S3 settings in .env file."
            )
        from .s3_client import S3Client
        logger.info("Using AWS S3 storage")
        return S3Client()

    raise HTTPException(status_code=503, detail=f"Unknown storage backend '{settings.storage_backend}'")


# Global storage instance (lazy initialization)
_storage_instance = None


def get_file_storage():
    """
    Get the shared file storage instance
    """
    global _storage_instance

    if _storage_instance is None:
        _storage_instance = get_storage()
        logger.info("Storage instance initialized")

    return _storage_instance
