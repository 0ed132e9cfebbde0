"""
Uploads API Endpoints
Stores product, variation and category images in object storage

Author: TM3
Date: 2026-10-17
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile

from marketplace.api.deps import get_storage
from marketplace.connectors.storage_connector import SupabaseStorageConnector
from marketplace.core.auth import TokenUser, get_current_user
from marketplace.core.config import settings
from marketplace.core.errors import InvalidError, UpstreamError

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_FILES_PER_REQUEST = 10


def read_upload(file: UploadFile, max_bytes: Optional[int] = None) -> bytes:
    """Read an uploaded file, rejecting it once it exceeds max_bytes"""
    max_bytes = max_bytes or settings.MAX_UPLOAD_BYTES
    content = file.file.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise InvalidError(f"file '{file.filename}' exceeds {max_bytes} bytes")
    return content


@router.post("/{folder}")
def upload_files(
    folder: str,
    files: List[UploadFile] = File(...),
    current_user: TokenUser = Depends(get_current_user),
    storage: SupabaseStorageConnector = Depends(get_storage)
):
    """
    Upload one or more files to <folder>/<uuid><ext>

    folder: products, variations or categories. Returns the public URLs in
    upload order, ready to be used as product or variation images.
    Every file is size-checked before the first upload; when an upload
    fails, the files already stored by this request are removed.
    """
    if len(files) > MAX_FILES_PER_REQUEST:
        raise InvalidError(f"at most {MAX_FILES_PER_REQUEST} files per request")

    paths = [storage.build_path(folder, f.filename) for f in files]
    contents = [read_upload(f) for f in files]

    urls = []
    stored: List[str] = []
    try:
        for f, path, content in zip(files, paths, contents):
            urls.append(storage.upload(content, path, f.content_type or "application/octet-stream"))
            stored.append(path)
    except UpstreamError:
        if stored:
            try:
                storage.remove(stored)
            except UpstreamError as cleanup_error:
                logger.warning(f"Orphaned uploads {stored} left in storage: {cleanup_error.message}")
        raise

    return {"status": "success", "count": len(urls), "data": {"urls": urls}}
