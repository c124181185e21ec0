"""
Notecard — Route Dependencies
===============================

What:  Builds a NotesView per request from the session, the database session
       and the storage backend.
How:   FastAPI Depends chains; tests swap get_db_session and
       get_storage_service through app.dependency_overrides.
"""

from typing import Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from notecard.auth import get_optional_session, get_session
from notecard.database import get_db_session
from notecard.schemas.note import SessionInfo
from notecard.services.base import StorageService
from notecard.services.data_service import SqlDataService
from notecard.services.notes_view import NotesView
from notecard.services.storage_service import get_storage_service


def build_view(session: SessionInfo, db: AsyncSession, storage: StorageService) -> NotesView:
    return NotesView(
        SqlDataService(db, owner=session.owner),
        storage.bind(session.identity_id),
    )


async def get_notes_view(
    session: SessionInfo = Depends(get_session),
    db: AsyncSession = Depends(get_db_session),
    storage: StorageService = Depends(get_storage_service),
) -> NotesView:
    """Authenticated view; a missing session is a 401 before this runs."""
    return build_view(session, db, storage)


async def get_page_view(
    session: Optional[SessionInfo] = Depends(get_optional_session),
    db: AsyncSession = Depends(get_db_session),
    storage: StorageService = Depends(get_storage_service),
) -> NotesView:
    """View for HTML pages; signed-out visitors get an UNAUTHENTICATED view."""
    if session is None:
        return NotesView()
    return build_view(session, db, storage)
