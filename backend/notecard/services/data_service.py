"""
Notecard — SQL Data Service
=============================

What:  DataService implementation on async SQLAlchemy.
How:   Bound to one request's session and one owner; every query filters on
       the owner, so one user can never list or delete another user's notes.
Who:   Built per request by the notes dependencies; called by NotesView.

Transactions:
    Each mutation commits on its own, the way a managed data API acknowledges
    a write. A later failure in the same request (an image upload, say) does
    not undo a note that was already created.

Query plan (list):
    SELECT * FROM notes WHERE owner = :owner ORDER BY created_at, id
    → served by idx_notes_owner_created_at
"""

import logging
import uuid
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from notecard.exceptions import DatabaseError
from notecard.models.note import Note
from notecard.schemas.note import NoteCreate, NoteRecord
from notecard.services.base import DataService

logger = logging.getLogger(__name__)


def to_record(note: Note) -> NoteRecord:
    return NoteRecord(
        id=note.id,
        name=note.name,
        description=note.description,
        image_key=note.image or "",
        owner=note.owner,
        created_at=note.created_at,
        updated_at=note.updated_at,
    )


class SqlDataService(DataService):
    """Owner-scoped Note records stored in the `notes` table."""

    def __init__(self, db: AsyncSession, owner: str):
        self.db = db
        self.owner = owner

    async def list_notes(self) -> List[NoteRecord]:
        try:
            result = await self.db.execute(
                select(Note)
                .where(Note.owner == self.owner)
                .order_by(Note.created_at, Note.id)
            )
            return [to_record(note) for note in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("Database error listing notes for %s: %s", self.owner, str(e))
            raise DatabaseError(
                message="Could not retrieve notes. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def create_note(self, data: NoteCreate) -> NoteRecord:
        note = Note(
            name=data.name,
            description=data.description,
            image=data.image,
            owner=self.owner,
        )
        try:
            self.db.add(note)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Database error creating note: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the note. Please try again.",
                context={"error_type": type(e).__name__},
            )
        logger.info("Note created: %s (owner=%s, image=%r)", note.id, self.owner, note.image)
        return to_record(note)

    async def delete_note(self, note_id: uuid.UUID) -> bool:
        try:
            result = await self.db.execute(
                delete(Note).where(Note.id == note_id, Note.owner == self.owner)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Database error deleting note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not delete the note. Please try again.",
                context={"note_id": str(note_id)},
            )
        deleted = result.rowcount > 0
        if deleted:
            logger.info("Note deleted: %s", note_id)
        else:
            logger.debug("Delete matched nothing: %s (owner=%s)", note_id, self.owner)
        return deleted
