"""
Notecard — Note SQLAlchemy Model
==================================

What:  ORM model representing the `notes` table.
How:   Inherits from SQLAlchemy's DeclarativeBase; Alembic reads this for migrations.
Who:   Used by SqlDataService for list/create/delete and by Alembic.

Table Design:
    - id: UUID primary key, assigned at creation, immutable
    - name / description: user-supplied, optional
    - image: storage object key (the uploaded file's original name) or ""
    - owner: identifier of the authenticated creator, assigned server-side
    - created_at / updated_at: UTC timestamps assigned server-side

    Index on (owner, created_at) serves the only list query:
    "this owner's notes in creation order".
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from notecard.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A user's note with an optional image attachment.

    Lifecycle:
        1. Created by the data service (id, owner, timestamps assigned)
        2. Optionally paired with one storage upload keyed by `image`
        3. Deleted by the data service; the storage object is left in place
    """

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier assigned at creation",
    )

    name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Display title",
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Free text body",
    )

    # Key only: the signed URL is derived per fetch and never stored
    image: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        default="",
        comment="Storage object key of the attached image, empty when none",
    )

    owner: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Identifier of the authenticated creator",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        comment="When this note was created (UTC)",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        comment="When this note was last written (UTC)",
    )

    __table_args__ = (
        Index("idx_notes_owner_created_at", "owner", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, owner='{self.owner}', image='{self.image}')>"
