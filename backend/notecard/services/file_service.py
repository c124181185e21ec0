"""
Notecard — Attachment Validation
==================================

What:  Checks an image attached to the creation form before any record is
       created, and derives the storage key from its file name.
Who:   Called by NotesView.create_note().

Checks, cheapest first:
    1. Extension:     .png, .jpg or .jpeg (case-insensitive)
    2. Content type:  image/png or image/jpeg when the client declares one
    3. Size:          non-empty and at most MAX_FILE_SIZE bytes
    4. Content:       the leading bytes are a PNG or JPEG signature (libmagic),
                      so a renamed non-image is refused whatever it is called

The storage key is the file's original name with any directory part removed,
so `C:\\fakepath\\cat.png` and `cat.png` both become `cat.png`. Keys longer
than MAX_KEY_LENGTH are refused; the `image` column holds 255 characters.
"""

import logging
from pathlib import PurePosixPath, PureWindowsPath
from typing import Optional

from notecard.config import settings
from notecard.exceptions import StorageError, ValidationError
from notecard.schemas.note import Attachment

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg"}

ALLOWED_CONTENT_TYPES = {"image/png", "image/jpeg", "image/jpg"}

DETECTED_CONTENT_TYPES = {"image/png", "image/jpeg"}

MAX_KEY_LENGTH = 255

# libmagic needs only the file header to recognize PNG and JPEG
SNIFF_BYTES = 2048


class FileService:
    """Validation rules for note image attachments."""

    def __init__(self, max_file_size: Optional[int] = None):
        self._max_file_size = max_file_size

    @property
    def max_file_size(self) -> int:
        return self._max_file_size or settings.max_file_size

    def storage_key(self, filename: str) -> str:
        """Original file name without any client-side directory components."""
        name = PureWindowsPath(PurePosixPath(filename).name).name.strip()
        if not name or name in (".", ".."):
            raise ValidationError(
                message="The attached file has no usable name.",
                field="image",
                context={"filename": filename},
            )
        if len(name) > MAX_KEY_LENGTH:
            raise ValidationError(
                message=f"The file name is too long (at most {MAX_KEY_LENGTH} characters).",
                field="image",
                context={"length": len(name)},
            )
        return name

    def validate_extension(self, filename: str) -> str:
        """Returns the normalized (lowercase) extension or raises ValidationError."""
        ext = PurePosixPath(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="image",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_content_type(self, content_type: Optional[str]) -> None:
        # Browsers send application/octet-stream when they cannot tell; the
        # extension check already covered that case
        if not content_type or content_type == "application/octet-stream":
            return
        if content_type.split(";")[0].strip().lower() not in ALLOWED_CONTENT_TYPES:
            raise ValidationError(
                message=(
                    f"File content type '{content_type}' is not supported. "
                    "The file must be a PNG or JPEG image."
                ),
                field="image",
                context={"content_type": content_type},
            )

    def validate_size(self, size: int) -> None:
        if size == 0:
            raise ValidationError(message="The attached file is empty.", field="image")
        if size > self.max_file_size:
            max_mb = self.max_file_size / (1024 * 1024)
            raise ValidationError(
                message=f"File size ({size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="image",
                context={"max_size_mb": max_mb, "actual_size": size},
            )

    def validate_file_content(self, content: bytes, filename: str) -> str:
        """
        Detect the real type from the file's leading bytes.

        Extension and declared type are both client-controlled; a renamed
        HTML page or executable only fails here.

        Returns:
            The detected MIME type ("image/png" or "image/jpeg").
        Raises:
            ValidationError if the content is neither PNG nor JPEG.
        """
        import magic

        try:
            mime_type = magic.from_buffer(content[:SNIFF_BYTES], mime=True)
        except magic.MagicException as e:
            logger.error("MIME type detection failed for %s: %s", filename, str(e))
            raise StorageError(
                message="Could not verify file type. Please try again.",
                context={"filename": filename, "error": str(e)},
            )

        if mime_type not in DETECTED_CONTENT_TYPES:
            raise ValidationError(
                message=(
                    f"File content type '{mime_type}' is not supported. "
                    "The file must be a valid image (PNG or JPEG)."
                ),
                field="image",
                context={"detected_mime": mime_type, "filename": filename},
            )
        return mime_type

    def validate(self, attachment: Attachment) -> str:
        """
        Run every check on an attachment.

        Returns:
            The storage key for the attachment.
        Raises:
            ValidationError describing the first failed check.
        """
        key = self.storage_key(attachment.filename)
        self.validate_extension(key)
        self.validate_content_type(attachment.content_type)
        self.validate_size(attachment.size)
        self.validate_file_content(attachment.content, key)
        logger.debug("Attachment accepted: %s (%d bytes)", key, attachment.size)
        return key


file_service = FileService()
