"""
Notecard — Notes API Route Handlers
=====================================

What:  JSON equivalents of the page actions.
How:   Each handler drives the request's NotesView and returns its refreshed
       note list. Errors propagate to the global exception handlers.

Endpoints:
    GET    /api/notes            list with signed image URLs
    POST   /api/notes            multipart create (name, description, image?)
    DELETE /api/notes/{note_id}  delete, then list
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile

from notecard.routes.deps import get_notes_view
from notecard.routes.forms import read_attachment
from notecard.schemas.note import (
    ErrorResponse,
    NoteCreatedResponse,
    NoteListResponse,
    NoteSubmission,
)
from notecard.services.notes_view import NotesView

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Notes"])


@router.get(
    "/notes",
    response_model=NoteListResponse,
    responses={
        401: {"description": "No valid session", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="List the caller's notes",
    description=(
        "Returns the signed-in user's notes. Notes with an image carry a "
        "time-limited `image_url`; notes whose image could not be resolved "
        "are returned without one."
    ),
)
async def list_notes(
    response: Response,
    view: NotesView = Depends(get_notes_view),
) -> NoteListResponse:
    notes = await view.fetch_notes()
    # Signed URLs expire; a cached list would hand out dead links
    response.headers["Cache-Control"] = "private, no-store"
    return NoteListResponse(notes=notes)


@router.post(
    "/notes",
    status_code=201,
    response_model=NoteCreatedResponse,
    responses={
        400: {"description": "Missing field or unsupported image", "model": ErrorResponse},
        401: {"description": "No valid session", "model": ErrorResponse},
        502: {"description": "Image upload failed", "model": ErrorResponse},
    },
    summary="Create a note",
    description="Creates a note and, when an image is attached, uploads it (PNG or JPEG).",
)
async def create_note(
    name: str = Form(..., description="Note name"),
    description: str = Form(..., description="Note description"),
    image: UploadFile | None = File(default=None, description="Optional PNG or JPEG image"),
    view: NotesView = Depends(get_notes_view),
) -> NoteCreatedResponse:
    attachment = await read_attachment(image)
    record = await view.create_note(
        NoteSubmission(name=name, description=description, image=attachment)
    )
    return NoteCreatedResponse(note=record, notes=view.notes)


@router.delete(
    "/notes/{note_id}",
    response_model=NoteListResponse,
    responses={401: {"description": "No valid session", "model": ErrorResponse}},
    summary="Delete a note",
    description=(
        "Deletes the note if it belongs to the caller and returns the refreshed list. "
        "Unknown ids are not an error. The stored image is not removed."
    ),
)
async def delete_note(
    note_id: UUID,
    view: NotesView = Depends(get_notes_view),
) -> NoteListResponse:
    await view.delete_note(note_id)
    return NoteListResponse(notes=view.notes)
