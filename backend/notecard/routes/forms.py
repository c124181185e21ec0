"""Helpers shared by the form-handling routes."""

from typing import Optional

from fastapi import UploadFile

from notecard.schemas.note import Attachment
from notecard.services.file_service import FileService, file_service


async def read_attachment(
    upload: Optional[UploadFile],
    validator: FileService = file_service,
) -> Optional[Attachment]:
    """
    Read an optional file input into an Attachment.

    Browsers submit an empty part with an empty file name when no file was
    chosen; that counts as no attachment. Oversized parts are refused on
    their declared size before reading, and never more than one byte past
    the limit is read into memory.
    """
    if upload is None or not upload.filename:
        return None

    limit = validator.max_file_size
    try:
        if upload.size is not None and upload.size > limit:
            validator.validate_size(upload.size)
        content = await upload.read(limit + 1)
    finally:
        await upload.close()

    if len(content) > limit:
        validator.validate_size(len(content))

    return Attachment(
        filename=upload.filename,
        content=content,
        content_type=upload.content_type,
    )
