"""
Supabase Storage Connector
Stores uploaded product, variation and category images

Files go to <folder>/<uuid><ext> inside STORAGE_BUCKET and are served
from the bucket's public URL.

Author: TM3
Date: 2026-10-17
"""
import os
import uuid
import logging
from typing import List, Optional

import httpx
from supabase import create_client, Client, StorageException

from marketplace.core.config import settings
from marketplace.core.errors import InvalidError, UpstreamError

logger = logging.getLogger(__name__)

UPLOAD_FOLDERS = ("products", "variations", "categories")


class SupabaseStorageConnector:
    """Object storage backed by a Supabase Storage bucket"""

    def __init__(self, client: Optional[Client] = None, bucket: Optional[str] = None):
        self.bucket = bucket or settings.STORAGE_BUCKET
        self._client = client

    @property
    def client(self) -> Client:
        # Created lazily so the API starts without storage credentials
        if self._client is None:
            if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
                raise UpstreamError("storage credentials not configured")
            self._client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
        return self._client

    @staticmethod
    def build_path(folder: str, filename: str) -> str:
        """products + photo.JPG -> products/<uuid>.jpg"""
        if folder not in UPLOAD_FOLDERS:
            raise InvalidError(f"unknown upload folder '{folder}'")
        extension = os.path.splitext(filename or "")[1].lower()
        return f"{folder}/{uuid.uuid4().hex}{extension}"

    def upload(self, file_bytes: bytes, path: str, content_type: str) -> str:
        """
        Upload bytes to the bucket

        Returns:
            Public URL of the stored object

        Raises:
            UpstreamError: storage rejected the upload or was unreachable
        """
        bucket = self.client.storage.from_(self.bucket)
        try:
            bucket.upload(path=path, file=file_bytes, file_options={"content-type": content_type})
            url = bucket.get_public_url(path)
        except (StorageException, httpx.HTTPError) as e:
            logger.error(f"Upload of {path} to bucket {self.bucket} failed: {e}")
            raise UpstreamError(f"storage upload failed: {e}") from e

        logger.info(f"Uploaded {path} ({len(file_bytes)} bytes)")
        return url

    def remove(self, paths: List[str]) -> None:
        """
        Delete objects from the bucket

        Raises:
            UpstreamError: storage rejected the request or was unreachable
        """
        if not paths:
            return
        try:
            self.client.storage.from_(self.bucket).remove(paths)
        except (StorageException, httpx.HTTPError) as e:
            logger.error(f"Removal of {len(paths)} object(s) from bucket {self.bucket} failed: {e}")
            raise UpstreamError(f"storage removal failed: {e}") from e

        logger.info(f"Removed {len(paths)} object(s) from bucket {self.bucket}")
