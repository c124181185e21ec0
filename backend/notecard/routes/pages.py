"""
Notecard — Page Route Handlers
================================

What:  The server-rendered notes page and its form actions.
How:   Jinja2 templates rendered from NotesView.context(). Successful form
       posts redirect back to the page (303), which shows an empty form; a
       failed create re-renders the page with the user's input kept.

Endpoints:
    GET  /                        challenge or notes UI
    POST /notes                   create from the form
    POST /notes/{note_id}/delete  delete button
"""

import logging
from pathlib import Path
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from notecard.exceptions import NotecardError, ValidationError
from notecard.routes.deps import get_page_view
from notecard.routes.forms import read_attachment
from notecard.schemas.note import NoteForm, NoteSubmission
from notecard.services.notes_view import NotesView

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

router = APIRouter(tags=["Pages"], include_in_schema=False)


def render_page(request: Request, view: NotesView, status_code: int = 200) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "index.html",
        view.context(),
        status_code=status_code,
    )


def back_to_page() -> RedirectResponse:
    return RedirectResponse("/", status_code=303)


async def render_create_failure(
    request: Request, view: NotesView, error: NotecardError
) -> HTMLResponse:
    """Re-render the page with the form input kept and the error shown."""
    logger.warning("Create from form failed: %s", error.message)
    if not view.notes:
        try:
            await view.fetch_notes()
        except NotecardError as fetch_error:
            logger.warning("Could not list notes for the error page: %s", fetch_error.message)
    return render_page(request, view, status_code=error.status_code)


@router.get("/", response_class=HTMLResponse)
async def notes_page(request: Request, view: NotesView = Depends(get_page_view)) -> HTMLResponse:
    if view.is_authenticated:
        await view.fetch_notes()
    return render_page(request, view)


@router.post("/notes")
async def create_note(
    request: Request,
    name: str = Form(default=""),
    description: str = Form(default=""),
    image: UploadFile | None = File(default=None),
    view: NotesView = Depends(get_page_view),
) -> Response:
    if not view.is_authenticated:
        return back_to_page()

    try:
        attachment = await read_attachment(image)
    except ValidationError as e:
        view.form = NoteForm(name=name, description=description, error=e.message)
        return await render_create_failure(request, view, e)

    try:
        await view.create_note(
            NoteSubmission(name=name, description=description, image=attachment)
        )
    except NotecardError as e:
        return await render_create_failure(request, view, e)

    return back_to_page()


@router.post("/notes/{note_id}/delete")
async def delete_note(note_id: UUID, view: NotesView = Depends(get_page_view)) -> Response:
    if not view.is_authenticated:
        return back_to_page()
    await view.delete_note(note_id)
    return back_to_page()
