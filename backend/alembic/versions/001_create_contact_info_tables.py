"""Create contact_info and contact_info_history tables

Revision ID: 001
Revises: None
Create Date: 2026-10-16 00:00:00.000000+00:00

What:  The singleton contact-info record and its append-only history.
How:   Portable column types only (JSON, TIMESTAMP WITH TIME ZONE), matching
       portfolio/models/contact_info.py.

Rollback: downgrade() drops both tables (destructive: history is lost).
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
        "contact_info",
        # Always 1: the primary key is what keeps the record a singleton
        sa.Column("id", sa.Integer(), nullable=False, comment="Singleton key, always 1"),
        sa.Column(
            "version",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("1"),
            comment="Incremented by every write; used for optimistic concurrency",
        ),
        sa.Column("email", sa.String(320), nullable=False, server_default=sa.text("''")),
        sa.Column("alternate_email", sa.String(320), nullable=False, server_default=sa.text("''")),
        sa.Column("phone", sa.String(64), nullable=False, server_default=sa.text("''")),
        sa.Column("alternate_phone", sa.String(64), nullable=False, server_default=sa.text("''")),
        sa.Column("address", sa.JSON(), nullable=False, comment="street, city, state, zipCode, country"),
        sa.Column("business_hours", sa.JSON(), nullable=False, comment="monday through sunday → free text"),
        sa.Column("social_links", sa.JSON(), nullable=False, comment="provider → URL"),
        sa.Column("website", sa.String(2048), nullable=False, server_default=sa.text("''")),
        sa.Column("resume", sa.String(2048), nullable=False, server_default=sa.text("''")),
        sa.Column("portfolio", sa.String(2048), nullable=False, server_default=sa.text("''")),
        sa.Column(
            "preferred_contact_method",
            sa.String(32),
            nullable=False,
            server_default=sa.text("'email'"),
            comment="email, phone, linkedin, other",
        ),
        sa.Column(
            "availability",
            sa.String(32),
            nullable=False,
            server_default=sa.text("'available'"),
            comment="available, busy, unavailable, open",
        ),
        sa.Column("response_time", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("timezone", sa.String(64), nullable=False, server_default=sa.text("''")),
        sa.Column("languages", sa.JSON(), nullable=False, comment="[{language, proficiency}]"),
        sa.Column("call_to_action", sa.JSON(), nullable=False, comment="title, subtitle, buttonText"),
        sa.Column("display_settings", sa.JSON(), nullable=False, comment="show* flags for the public page"),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_by", sa.String(255), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_contact_info"),
    )

    op.create_table(
        "contact_info_history",
        sa.Column(
            "id",
            sa.Integer(),
            autoincrement=True,
            nullable=False,
            comment="Insertion sequence; breaks ties between equal timestamps",
        ),
        sa.Column("snapshot_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("action", sa.String(16), nullable=False, comment="CREATE or UPDATE"),
        sa.Column("actor", sa.String(255), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False, comment="Full content after the write"),
        sa.PrimaryKeyConstraint("id", name="pk_contact_info_history"),
        sa.CheckConstraint("action IN ('CREATE', 'UPDATE')", name="ck_contact_info_history_action"),
    )

    op.create_index(
        "idx_contact_info_history_recent",
        "contact_info_history",
        [sa.text("snapshot_at DESC"), sa.text("id DESC")],
    )


def downgrade() -> None:
    op.drop_index("idx_contact_info_history_recent", table_name="contact_info_history")
    op.drop_table("contact_info_history")
    op.drop_table("contact_info")
