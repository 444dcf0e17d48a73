"""
Portfolio Backend — Contact Info History Log
==============================================

What:  Append-only log of contact-info snapshots, read newest first.
How:   `append()` inserts one row on the caller's session, so the snapshot
       commits (or rolls back) together with the record it describes.
       `list()` returns a HistoryView: a lazy, restartable async sequence
       that runs its query each time it is iterated.
Who:   Written only by ContactInfoStore; read by the history endpoint.

Ordering:
    ORDER BY snapshot_at DESC, id DESC
    Two snapshots with the same timestamp are ordered by insertion sequence,
    the later insertion counting as more recent.
    → served by idx_contact_info_history_recent
"""

import logging
from datetime import datetime
from typing import AsyncIterator, List, Optional

from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portfolio.exceptions import DatabaseError, ValidationError
from portfolio.models.contact_info import ContactInfoHistoryEntry, snapshot_payload
from portfolio.schemas.contact_info import ContactInfoData, HistoryAction, HistorySnapshot

logger = logging.getLogger(__name__)

MAX_HISTORY_PAGE = 100
# Largest OFFSET a signed 64-bit bind parameter can carry
MAX_HISTORY_OFFSET = 2**63 - 1


class HistoryView:
    """
    A finite view over the history log, newest first.

    Nothing is read until the view is iterated, and every `async for`
    starts a fresh query, so a view can be reused after new writes.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        limit: Optional[int],
        offset: int,
    ):
        self._session_factory = session_factory
        self.limit = limit
        self.offset = offset

    def _query(self):
        query = (
            select(ContactInfoHistoryEntry)
            .order_by(desc(ContactInfoHistoryEntry.snapshot_at), desc(ContactInfoHistoryEntry.id))
            .offset(self.offset)
        )
        if self.limit is not None:
            query = query.limit(self.limit)
        return query

    async def all(self) -> List[HistorySnapshot]:
        """Run the query once and collect every snapshot in the view."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(self._query())
                return [row.to_snapshot() for row in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("Database error listing contact info history: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve the contact info history. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def __aiter__(self) -> AsyncIterator[HistorySnapshot]:
        for snapshot in await self.all():
            yield snapshot

    def __repr__(self) -> str:
        return f"<HistoryView(limit={self.limit}, offset={self.offset})>"


class HistoryLog:
    """
    Append-only snapshot log.

    Responsibilities:
        - append(): insert one snapshot inside the writer's transaction
        - list():   validated, lazy, newest-first view
        - count():  total number of snapshots
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def append(
        self,
        session: AsyncSession,
        *,
        action: HistoryAction,
        actor: str,
        data: ContactInfoData,
        snapshot_at: datetime,
    ) -> ContactInfoHistoryEntry:
        """
        Insert one snapshot on `session` without committing.

        The flush assigns the sequence id, which fixes this entry's
        position among snapshots sharing its timestamp.
        """
        entry = ContactInfoHistoryEntry(
            snapshot_at=snapshot_at,
            action=action.value,
            actor=actor,
            data=snapshot_payload(data),
        )
        session.add(entry)
        await session.flush()
        return entry

    def list(self, limit: Optional[int] = None, offset: int = 0) -> HistoryView:
        """
        Newest-first view of the log.

        Pagination bounds are checked here, before any query runs.

        Raises:
            ValidationError: limit outside 1..MAX_HISTORY_PAGE, or offset
                             outside 0..MAX_HISTORY_OFFSET.
        """
        if limit is not None and limit < 1:
            raise ValidationError(message="limit must be at least 1", field="limit")
        if limit is not None and limit > MAX_HISTORY_PAGE:
            raise ValidationError(message=f"limit must be at most {MAX_HISTORY_PAGE}", field="limit")
        if offset < 0:
            raise ValidationError(message="offset must not be negative", field="offset")
        if offset > MAX_HISTORY_OFFSET:
            raise ValidationError(message=f"offset must be at most {MAX_HISTORY_OFFSET}", field="offset")
        return HistoryView(self._session_factory, limit, offset)

    async def count(self) -> int:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(func.count(ContactInfoHistoryEntry.id)))
                return result.scalar() or 0
        except SQLAlchemyError as e:
            logger.error("Database error counting contact info history: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve the contact info history. Please try again.",
                context={"error_type": type(e).__name__},
            )
