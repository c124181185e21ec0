"""
Notecard — Notes View/Controller
==================================

What:  The component that turns form events into data/storage calls and holds
       the notes shown to the user.
Who:   Built once per request by the route dependencies; the page and the JSON
       API both drive it.

Orchestration (create):
    ┌──────────┐   ┌──────────────┐   ┌──────────────┐   ┌────────────┐   ┌────────────┐
    │ Validate │──▶│ DataService  │──▶│ StorageBind. │──▶│ fetch_notes│──▶│ reset form │
    │ image    │   │ create_note  │   │ upload_data  │   │            │   │            │
    └──────────┘   └──────────────┘   └──────────────┘   └────────────┘   └────────────┘

    Any failure leaves the form populated with what the user typed.

State machine (one instance):
    UNAUTHENTICATED ──session──▶ AUTHENTICATED(notes=[]) ──fetch──▶ AUTHENTICATED(notes=[...])
          ▲                                                              │
          └──────────────────────────── sign_out ───────────────────────┘

The notes slot is only ever replaced as a whole. It is an ordered map keyed
by note id so lookups by id do not scan the list.
"""

import asyncio
import logging
import uuid
from collections import OrderedDict
from enum import Enum
from typing import Any, Dict, List, Optional

from notecard.config import settings
from notecard.exceptions import AuthenticationError, NotecardError, ValidationError
from notecard.schemas.note import (
    Attachment,
    NoteCard,
    NoteCreate,
    NoteForm,
    NoteRecord,
    NoteSubmission,
)
from notecard.services.base import DataService, StorageBinding, media_path
from notecard.services.file_service import FileService, file_service

logger = logging.getLogger(__name__)


class ViewState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


class NotesView:
    """
    View/controller for one user's notes.

    Attributes:
        state:  ViewState of this instance
        form:   current creation form values and last error
        notes:  cards from the most recent successful fetch, in fetch order
    """

    def __init__(
        self,
        data: Optional[DataService] = None,
        storage: Optional[StorageBinding] = None,
        *,
        validator: FileService = file_service,
        rollback_on_upload_failure: Optional[bool] = None,
    ):
        self.data = data
        self.storage = storage
        self.validator = validator
        if rollback_on_upload_failure is None:
            rollback_on_upload_failure = settings.rollback_on_upload_failure
        self.rollback_on_upload_failure = rollback_on_upload_failure

        self.state = (
            ViewState.AUTHENTICATED
            if data is not None and storage is not None
            else ViewState.UNAUTHENTICATED
        )
        self.form = NoteForm()
        self._notes: "OrderedDict[uuid.UUID, NoteCard]" = OrderedDict()

    @property
    def notes(self) -> List[NoteCard]:
        return list(self._notes.values())

    @property
    def is_authenticated(self) -> bool:
        return self.state is ViewState.AUTHENTICATED

    def get(self, note_id: uuid.UUID) -> Optional[NoteCard]:
        return self._notes.get(note_id)

    def _require_session(self) -> None:
        if not self.is_authenticated:
            raise AuthenticationError()

    # ── Fetch ─────────────────────────────────────────────────────────────

    async def _resolve(self, record: NoteRecord) -> NoteCard:
        """Build a card, swapping the image key for a signed URL."""
        image_url = None
        if record.image_key:
            try:
                signed = await self.storage.get_url(media_path(record.image_key))
                image_url = signed.url
            except NotecardError as e:
                # One unresolvable image must not hide the other notes
                logger.warning(
                    "Image URL resolution failed for note %s (%s): %s",
                    record.id,
                    record.image_key,
                    e.message,
                )
        return NoteCard(
            id=record.id,
            name=record.name,
            description=record.description,
            image_url=image_url,
        )

    async def fetch_notes(self) -> List[NoteCard]:
        """
        List the user's notes and resolve their images concurrently.

        The notes slot is replaced only after every resolution finished; if
        the list call itself fails the previous notes stay in place.
        """
        self._require_session()
        records = await self.data.list_notes()
        cards = await asyncio.gather(*(self._resolve(record) for record in records))
        self._notes = OrderedDict((card.id, card) for card in cards)
        logger.debug("Fetched %d notes", len(cards))
        return self.notes

    # ── Create ────────────────────────────────────────────────────────────

    async def _upload(self, record: NoteRecord, attachment: Attachment) -> None:
        task = self.storage.upload_data(
            media_path(record.image_key),
            attachment.content,
            attachment.content_type,
        )
        try:
            await task.result
        except NotecardError:
            if self.rollback_on_upload_failure:
                logger.warning("Upload failed, removing note %s", record.id)
                try:
                    await self.data.delete_note(record.id)
                except NotecardError as cleanup_error:
                    # The upload failure is what the caller reports
                    logger.error(
                        "Could not remove note %s after failed upload: %s",
                        record.id,
                        cleanup_error.message,
                    )
            else:
                logger.warning(
                    "Upload failed, note %s keeps unresolvable image %r",
                    record.id,
                    record.image_key,
                )
            raise

    async def create_note(self, submission: NoteSubmission) -> NoteRecord:
        """
        Create a note, upload its image if one is attached, refresh, reset.

        Returns:
            The record as persisted by the data service.
        Raises:
            ValidationError, DatabaseError, StorageError; the form keeps the
            user's input and carries the error message.
        """
        self._require_session()
        self.form = NoteForm(name=submission.name, description=submission.description)

        try:
            if not submission.name.strip():
                raise ValidationError(message="Give the note a name.", field="name")
            if not submission.description.strip():
                raise ValidationError(message="Give the note a description.", field="description")

            image_key = ""
            if submission.image is not None:
                image_key = self.validator.validate(submission.image)

            record = await self.data.create_note(
                NoteCreate(
                    name=submission.name,
                    description=submission.description,
                    image=image_key,
                )
            )

            if record.image_key and submission.image is not None:
                await self._upload(record, submission.image)

            await self.fetch_notes()
        except NotecardError as e:
            self.form.error = e.message
            raise

        self.form = NoteForm()
        return record

    # ── Delete ────────────────────────────────────────────────────────────

    async def delete_note(self, note_id: uuid.UUID) -> None:
        """Delete a note and refresh; the image object stays in storage."""
        self._require_session()
        await self.data.delete_note(note_id)
        await self.fetch_notes()

    # ── Session ───────────────────────────────────────────────────────────

    def sign_out(self) -> None:
        """Return to UNAUTHENTICATED, discarding every in-memory note."""
        self.data = None
        self.storage = None
        self.state = ViewState.UNAUTHENTICATED
        self._notes = OrderedDict()
        self.form = NoteForm()

    def context(self) -> Dict[str, Any]:
        """Template context for the page."""
        return {
            "authenticated": self.is_authenticated,
            "notes": self.notes,
            "form": self.form,
        }
