"""
Portfolio Backend — Contact Info ORM Models
=============================================

What:  The `contact_info` singleton table and the `contact_info_history`
       append-only log.
How:   Portable column types (JSON, DateTime with timezone) so the same models
       run on PostgreSQL and SQLite. Alembic migration 001 mirrors them.

Table Design:
    contact_info
        - id is always SINGLETON_ID; the primary key makes a second "current"
          row impossible, and a racing first insert fails with IntegrityError
        - version increments on every replace; writers update
          `WHERE version = :seen` to detect concurrent replacements
    contact_info_history
        - id autoincrements and defines insertion order
        - data holds the full post-write content (not a diff)
        - rows are inserted once and never updated or deleted here

    Index on (snapshot_at DESC, id DESC) serves the newest-first listing.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy import JSON, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from portfolio.database import Base
from portfolio.schemas.contact_info import (
    CONTENT_FIELDS,
    ContactInfo,
    ContactInfoData,
    HistoryAction,
    HistorySnapshot,
)

SINGLETON_ID = 1


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; every stored timestamp is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ContactInfoRecord(Base):
    """
    The current contact-info record. At most one row (id = SINGLETON_ID).

    Lifecycle:
        1. Inserted by the first accepted write (version = 1, action CREATE)
        2. Replaced in place by every later write (version + 1, action UPDATE)
        3. Never deleted; an admin reset writes neutral values instead
    """

    __tablename__ = "contact_info"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=SINGLETON_ID)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    email: Mapped[str] = mapped_column(String(320), nullable=False, default="")
    alternate_email: Mapped[str] = mapped_column(String(320), nullable=False, default="")
    phone: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    alternate_phone: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    address: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    business_hours: Mapped[Dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)
    social_links: Mapped[Dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)
    website: Mapped[str] = mapped_column(String(2048), nullable=False, default="")
    resume: Mapped[str] = mapped_column(String(2048), nullable=False, default="")
    portfolio: Mapped[str] = mapped_column(String(2048), nullable=False, default="")
    preferred_contact_method: Mapped[str] = mapped_column(String(32), nullable=False, default="email")
    availability: Mapped[str] = mapped_column(String(32), nullable=False, default="available")
    response_time: Mapped[str] = mapped_column(Text, nullable=False, default="")
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    languages: Mapped[List[Dict[str, str]]] = mapped_column(JSON, nullable=False, default=list)
    call_to_action: Mapped[Dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)
    display_settings: Mapped[Dict[str, bool]] = mapped_column(JSON, nullable=False, default=dict)

    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_by: Mapped[str] = mapped_column(String(255), nullable=False)

    @staticmethod
    def columns_from(info: ContactInfo) -> Dict[str, Any]:
        """Column values for an INSERT or UPDATE of the given record."""
        columns = info.model_dump(include=set(CONTENT_FIELDS))
        columns["updated_at"] = info.updated_at
        columns["updated_by"] = info.updated_by
        return columns

    def to_contact_info(self) -> ContactInfo:
        return ContactInfo(
            **{name: getattr(self, name) for name in CONTENT_FIELDS},
            updated_at=as_utc(self.updated_at),
            updated_by=self.updated_by,
        )

    def __repr__(self) -> str:
        return (
            f"<ContactInfoRecord(version={self.version}, "
            f"updated_at='{self.updated_at}', updated_by='{self.updated_by}')>"
        )


class ContactInfoHistoryEntry(Base):
    """One immutable snapshot of the record, written in the same transaction as it."""

    __tablename__ = "contact_info_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    snapshot_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    action: Mapped[str] = mapped_column(String(16), nullable=False)
    actor: Mapped[str] = mapped_column(String(255), nullable=False)
    data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)

    __table_args__ = (
        Index("idx_contact_info_history_recent", snapshot_at.desc(), id.desc()),
    )

    def to_snapshot(self) -> HistorySnapshot:
        return HistorySnapshot(
            id=self.id,
            snapshot_at=as_utc(self.snapshot_at),
            action=HistoryAction(self.action),
            actor=self.actor,
            data=ContactInfoData.model_validate(self.data),
        )

    def __repr__(self) -> str:
        return (
            f"<ContactInfoHistoryEntry(id={self.id}, action='{self.action}', "
            f"snapshot_at='{self.snapshot_at}')>"
        )


def snapshot_payload(data: ContactInfoData) -> Dict[str, Any]:
    """JSON-safe dict stored in ContactInfoHistoryEntry.data."""
    return data.model_dump(mode="json")


__all__ = [
    "SINGLETON_ID",
    "ContactInfoRecord",
    "ContactInfoHistoryEntry",
    "as_utc",
    "snapshot_payload",
]
