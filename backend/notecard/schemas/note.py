"""
Notecard — Pydantic Schemas
=============================

What:  Pydantic models for the data service contract, the view state and the
       JSON API.
How:   FastAPI uses the response models to serialize and document endpoints;
       services exchange the record models instead of ORM objects.

Two note shapes:
    NoteRecord  what the data service persists: carries the storage `image_key`
    NoteCard    what the view renders: carries the derived `image_url`
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Data Service Contract
# ══════════════════════════════════════════════════════════════════════════


class NoteCreate(BaseModel):
    """Input of DataService.create_note(); server assigns everything else."""
    name: str = Field(description="Display title")
    description: str = Field(description="Free text body")
    image: str = Field(default="", description="Storage key of the attachment, empty when none")


class NoteRecord(BaseModel):
    """A persisted note as returned by the data service."""
    id: uuid.UUID = Field(description="Unique note identifier")
    name: Optional[str] = Field(default=None, description="Display title")
    description: Optional[str] = Field(default=None, description="Free text body")
    image_key: str = Field(default="", description="Storage object key, empty when no image")
    owner: str = Field(description="Identifier of the creator")
    created_at: datetime = Field(description="Creation timestamp (UTC)")
    updated_at: datetime = Field(description="Last write timestamp (UTC)")


# ══════════════════════════════════════════════════════════════════════════
# View Models
# ══════════════════════════════════════════════════════════════════════════


class NoteCard(BaseModel):
    """
    What:  One rendered note in the grid.
    How:   Built from a NoteRecord during fetch; `image_url` is a signed URL or
           None when the note has no image or its URL could not be resolved.
    """
    id: uuid.UUID = Field(description="Unique note identifier")
    name: Optional[str] = Field(default=None, description="Display title")
    description: Optional[str] = Field(default=None, description="Free text body")
    image_url: Optional[str] = Field(default=None, description="Signed image URL")


class Attachment(BaseModel):
    """An uploaded file as received from the creation form."""
    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)


class NoteSubmission(BaseModel):
    """The three fields of the creation form."""
    name: str
    description: str
    image: Optional[Attachment] = None


class NoteForm(BaseModel):
    """Creation form state: the values shown in the inputs plus the last error."""
    name: str = ""
    description: str = ""
    error: Optional[str] = None


class SignedUrl(BaseModel):
    """Result of StorageService.get_url()."""
    url: str
    expires_at: datetime


class SessionInfo(BaseModel):
    """The principal admitted by the auth gate."""
    owner: str = Field(description="Owner identifier stamped on created notes")
    identity_id: str = Field(description="Storage namespace of this user")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteListResponse(BaseModel):
    """The caller's notes in the order returned by the last fetch."""
    notes: List[NoteCard] = Field(description="Notes with resolved image URLs")


class NoteCreatedResponse(BaseModel):
    """Returned by POST /api/notes with HTTP 201."""
    message: str = Field(default="Note created")
    note: NoteRecord = Field(description="The record as persisted")
    notes: List[NoteCard] = Field(description="Refreshed list after creation")


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "validation_error",
            "message": "File type '.gif' is not supported",
            "details": {"field": "image"},
            "request_id": "1f2e3d4c"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Service and dependency status returned by GET /health."""
    status: str = Field(description="Overall status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    storage: str = Field(description="Object storage: available, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")
