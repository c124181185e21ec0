"""
Notecard — Collaborator Service Interfaces
============================================

What:  Abstract base classes for the two remote collaborators of the notes view:
       the data service (Note records) and the object storage service (images).
How:   Concrete implementations inherit from these and are selected by
       configuration; the view only ever talks to the interfaces.
Who:   Implemented by SqlDataService, LocalStorageService, S3StorageService;
       consumed by NotesView.

Identity injection:
    Storage paths are a function of the caller's identity. The view never
    passes the identity: it asks `StorageService.bind(identity_id)` once and
    then hands paths to the binding, either as a finished string or as a
    callable receiving the identity id:

        storage.get_url(lambda identity_id: f"media/{identity_id}/{key}")
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, List, Optional, Union

from notecard.exceptions import ValidationError
from notecard.schemas.note import NoteCreate, NoteRecord, SignedUrl

logger = logging.getLogger(__name__)

StoragePath = Union[str, Callable[[str], str]]

MEDIA_PREFIX = "media"


def media_path(image_key: str) -> Callable[[str], str]:
    """Path resolver for a note image: media/{identityId}/{imageKey}."""
    return lambda identity_id: f"{MEDIA_PREFIX}/{identity_id}/{image_key}"


def normalize_key(key: str) -> str:
    """
    Validate an object key before it reaches a storage backend.

    Keys are relative, slash-separated, and may not contain empty, "." or ".."
    segments.
    """
    parts = key.split("/")
    if not key or key.startswith("/") or any(p in ("", ".", "..") for p in parts):
        raise ValidationError(
            message="Invalid storage path",
            field="path",
            context={"path": key},
        )
    return key


# ══════════════════════════════════════════════════════════════════════════
# Data Service
# ══════════════════════════════════════════════════════════════════════════


class DataService(ABC):
    """
    Owner-scoped access to Note records.

    Contract:
        - Every method acts on the records of the owner the service is bound to
        - create_note() assigns id, owner and timestamps
        - delete_note() returns False when nothing matched; it never raises for
          a missing id
        - Implementation-specific failures are wrapped in DatabaseError
    """

    @abstractmethod
    async def list_notes(self) -> List[NoteRecord]:
        """Return the owner's notes in a stable order."""
        ...

    @abstractmethod
    async def create_note(self, data: NoteCreate) -> NoteRecord:
        """Persist a new note and return it as stored."""
        ...

    @abstractmethod
    async def delete_note(self, note_id: uuid.UUID) -> bool:
        """Remove a note; True if a record was deleted."""
        ...


# ══════════════════════════════════════════════════════════════════════════
# Storage Service
# ══════════════════════════════════════════════════════════════════════════


class UploadTask:
    """
    Completion handle returned by StorageBinding.upload_data().

    The upload starts immediately; callers that need to know it finished
    await `task.result`, which yields the stored key or raises StorageError.
    """

    def __init__(self, key: str, operation: Awaitable[None]):
        self.key = key
        self._task = asyncio.ensure_future(self._run(operation))

    async def _run(self, operation: Awaitable[None]) -> str:
        await operation
        return self.key

    @property
    def result(self) -> "asyncio.Future[str]":
        return self._task

    def done(self) -> bool:
        return self._task.done()


class StorageService(ABC):
    """
    Binary object storage with time-limited retrieval URLs.

    Implementations provide the raw operations on object keys; per-user path
    handling lives in StorageBinding.
    """

    def __init__(self, url_expires: int):
        self.url_expires = url_expires

    def bind(self, identity_id: str) -> "StorageBinding":
        """Return a view of this storage scoped to one user identity."""
        return StorageBinding(self, identity_id)

    @abstractmethod
    async def put_object(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        """
        Store `data` under `key`, replacing any existing object.

        Raises:
            StorageError: the backend rejected or failed the write.
        """
        ...

    @abstractmethod
    async def presign(self, key: str, expires_in: int) -> str:
        """
        Produce a URL that retrieves `key` for `expires_in` seconds.

        Raises:
            StorageError: the URL could not be produced.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Lightweight reachability check used by GET /health."""
        ...


class StorageBinding:
    """StorageService operations with the caller's identity injected into paths."""

    def __init__(self, service: StorageService, identity_id: str):
        self.service = service
        self.identity_id = identity_id

    def resolve(self, path: StoragePath) -> str:
        key = path(self.identity_id) if callable(path) else path
        return normalize_key(key)

    async def get_url(self, path: StoragePath) -> SignedUrl:
        key = self.resolve(path)
        expires_in = self.service.url_expires
        url = await self.service.presign(key, expires_in)
        return SignedUrl(
            url=url,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        )

    def upload_data(
        self,
        path: StoragePath,
        data: bytes,
        content_type: Optional[str] = None,
    ) -> UploadTask:
        key = self.resolve(path)
        logger.debug("Uploading %d bytes to %s", len(data), key)
        return UploadTask(key, self.service.put_object(key, data, content_type))
