"""
Notecard — Signed Media Route
===============================

What:  Serves objects of the local storage backend behind signed URLs.
How:   The `token` query parameter must be an unexpired signature for exactly
       the requested key (see LocalStorageService.presign). With the S3
       backend URLs point at the bucket instead and this route returns 404.
"""

import mimetypes

from fastapi import APIRouter, Depends, Query
from fastapi.responses import FileResponse

from notecard.exceptions import NotFoundError
from notecard.schemas.note import ErrorResponse
from notecard.services.base import StorageService
from notecard.services.storage_service import LocalStorageService, get_storage_service

router = APIRouter(tags=["Storage"])


@router.get(
    "/storage/{key:path}",
    responses={
        200: {"description": "Stored object"},
        401: {"description": "Missing, expired or foreign signature", "model": ErrorResponse},
        404: {"description": "No such object", "model": ErrorResponse},
    },
    summary="Fetch a stored image through a signed URL",
)
async def serve_object(
    key: str,
    token: str = Query(default="", description="URL signature"),
    storage: StorageService = Depends(get_storage_service),
) -> FileResponse:
    if not isinstance(storage, LocalStorageService):
        raise NotFoundError(resource="file", resource_id=key)

    path = storage.open_object(key, token)
    media_type, _ = mimetypes.guess_type(path.name)
    return FileResponse(
        path=str(path),
        media_type=media_type or "application/octet-stream",
        headers={"Cache-Control": "private, max-age=300"},
    )
