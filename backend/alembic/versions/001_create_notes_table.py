"""Create notes table

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates the `notes` table: owner-scoped notes with an optional image key.
How:   Portable column types (sa.Uuid, timezone-aware DateTime) so the same
       revision applies to PostgreSQL and to SQLite in development.

Rollback: downgrade() drops the table. Stored image objects are untouched.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "notes",
        sa.Column(
            "id",
            sa.Uuid(as_uuid=True),
            nullable=False,
            comment="Unique identifier assigned at creation",
        ),
        sa.Column("name", sa.String(255), nullable=True, comment="Display title"),
        sa.Column("description", sa.Text(), nullable=True, comment="Free text body"),
        sa.Column(
            "image",
            sa.String(255),
            nullable=True,
            server_default=sa.text("''"),
            comment="Storage object key of the attached image, empty when none",
        ),
        sa.Column(
            "owner",
            sa.String(255),
            nullable=False,
            comment="Identifier of the authenticated creator",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When this note was created (UTC)",
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When this note was last written (UTC)",
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    # The list query is "this owner's notes in creation order"
    op.create_index(
        "idx_notes_owner_created_at",
        "notes",
        ["owner", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("idx_notes_owner_created_at", table_name="notes")
    op.drop_table("notes")
