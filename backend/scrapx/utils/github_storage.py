"""
Image storage on a GitHub repository, served through the jsDelivr CDN
"""

import base64
import random
import re
import string
import time
from typing import Optional

import httpx
from fastapi import HTTPException, UploadFile

from ..config import settings
from ..core.logging import get_logger
from .storage import read_image_upload

logger = get_logger(__name__)

UPLOAD_TIMEOUT_SECONDS = 30.0


def sanitize_filename(filename: str) -> str:
    return re.sub(r"[^a-zA-Z0-9.-]", "_", filename)


def build_image_path(filename: str) -> str:
    """images/{millis}_{random6}_{safe name}"""
    timestamp = int(time.time() * 1000)
    random_part = ''.join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"images/{timestamp}_{random_part}_{sanitize_filename(filename)}"


class GitHubStorage:
    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self.username = settings.github_username
        self.repo = settings.github_repo
        self.branch = settings.github_branch
        self.api_url = settings.github_api_url.rstrip('/')
        self._client = client

    def _headers(self) -> dict:
        return {
            "Authorization": f"token {settings.github_token}",
            "Accept": "application/vnd.github.v3+json",
            "Content-Type": "application/json",
        }

    def cdn_url(self, path: str) -> str:
        return f"https://cdn.jsdelivr.net/gh/{self.username}/{self.repo}@{self.branch}/{path}"

    async def upload_bytes(self, content: bytes, filename: str) -> str:
        """
        Commit the content under images/ and return its CDN URL

        Raises:
            HTTPException: 504 on timeout, 502 when GitHub rejects the upload
        """
        path = build_image_path(filename)
        url = f"{self.api_url}/repos/{self.username}/{self.repo}/contents/{path}"
        body = {
            "message": f"Upload image: {path.split('/')[-1]}",
            "content": base64.b64encode(content).decode("ascii"),
            "branch": self.branch,
        }

        client = self._client or httpx.AsyncClient(timeout=UPLOAD_TIMEOUT_SECONDS)
        try:
            response = await client.put(url, json=body, headers=self._headers())
        except httpx.TimeoutException:
            logger.error(f"GitHub upload timed out for {path}")
            raise HTTPException(status_code=504, detail="Image upload timed out")
        except httpx.HTTPError as e:
            logger.error(f"GitHub upload failed for {path}: {e}")
            raise HTTPException(status_code=502, detail="Failed to upload image to GitHub")
        finally:
            if self._client is None:
                await client.aclose()

        if response.status_code not in (200, 201):
            logger.error(f"GitHub API error {response.status_code}: {response.text[:300]}")
            raise HTTPException(
                status_code=502,
                detail=f"Failed to upload to GitHub: {response.reason_phrase or response.status_code}"
            )

        cdn_url = self.cdn_url(path)
        logger.info(f"Image uploaded to GitHub: {cdn_url}")
        return cdn_url

    async def upload_file(
        self,
        file: UploadFile,
        folder: str = "images",
        custom_filename: Optional[str] = None
    ) -> str:
        """Upload an image; the repository layout is always images/"""
        content = await read_image_upload(file)
        return await self.upload_bytes(content, custom_filename or file.filename)
