"""
AWS S3 client for listing image uploads
"""

import boto3
from botocore.exceptions import ClientError, NoCredentialsError
from fastapi import HTTPException, UploadFile
from typing import Optional
import uuid
from ..config import settings
from ..core.logging import get_logger
from .storage import read_image_upload, get_file_extension

logger = get_logger(__name__)


class S3Client:
    def __init__(self):
        """Initialize S3 client with configuration from settings"""
        try:
            self.s3_client = boto3.client(
                's3',
                aws_access_key_id=settings.aws_access_key_id,
                aws_secret_access_key=settings.aws_secret_access_key,
                region_name=settings.aws_region
            )
        except Exception as e:
            logger.error(f"Failed to initialize S3 client: {e}")
            raise HTTPException(status_code=500, detail="S3 configuration error")

        self.bucket_name = settings.s3_bucket_name
        self.region = settings.aws_region
        # Default to the virtual-hosted bucket URL when no public base URL is set
        self.base_url = (
            settings.s3_base_url or f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com"
        ).rstrip('/')

    async def upload_file(
        self,
        file: UploadFile,
        folder: str = "listings",
        custom_filename: Optional[str] = None
    ) -> str:
        """
        Upload an image to the S3 bucket

        Args:
            file: FastAPI UploadFile object
            folder: S3 folder/prefix, e.g. "listings/user_3"
            custom_filename: Optional custom filename (generates UUID if not provided)

        Returns:
            str: Full S3 URL of uploaded file
        """
        content = await read_image_upload(file)
        file_extension = get_file_extension(file.filename)
        filename = f"{custom_filename or uuid.uuid4().hex}{file_extension}"
        s3_key = f"{folder.strip('/')}/{filename}"

        try:
            # Try with public-read ACL first, fall back to without ACL if bucket has ACLs disabled
            try:
                self.s3_client.put_object(
                    Bucket=self.bucket_name,
                    Key=s3_key,
                    Body=content,
                    ContentType=file.content_type or "application/octet-stream",
                    ContentDisposition="inline",
                    ACL='public-read'
                )
            except ClientError as acl_error:
                # Bucket must be configured with public access via bucket policy instead
                logger.warning(f"Failed to upload with ACL, retrying without: {acl_error}")
                self.s3_client.put_object(
                    Bucket=self.bucket_name,
                    Key=s3_key,
                    Body=content,
                    ContentType=file.content_type or "application/octet-stream",
                    ContentDisposition="inline"
                )
        except ClientError as e:
            logger.error(f"S3 upload error: {e}")
            raise HTTPException(status_code=502, detail="Failed to upload file to S3")
        except NoCredentialsError:
            logger.error("S3 credentials not found")
            raise HTTPException(status_code=503, detail="S3 credentials not configured")

        s3_url = f"{self.base_url}/{s3_key}"
        logger.debug(f"Generated S3 URL: {s3_url}")
        return s3_url
