"""Validation of multipart media uploads before they reach the services."""

from typing import Optional

from fastapi import HTTPException, UploadFile

from uturn.services.lifecycle import MediaUpload

MAX_VIDEO_BYTES = 50 * 1024 * 1024
MAX_IMAGE_BYTES = 10 * 1024 * 1024


async def read_media(
    file: Optional[UploadFile], kind: str, max_bytes: int
) -> Optional[MediaUpload]:
    """Read *file* if present, enforcing a ``kind/*`` content type and size."""
    if file is None:
        return None
    content_type = file.content_type or ""
    if not content_type.startswith(f"{kind}/"):
        raise HTTPException(status_code=400, detail=f"Only {kind} files allowed")
    data = await file.read()
    if len(data) > max_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File too large (max {max_bytes // (1024 * 1024)} MB)",
        )
    return MediaUpload(data=data, content_type=content_type, filename=file.filename or "")
