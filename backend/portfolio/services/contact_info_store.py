"""
Portfolio Backend — Contact Info Store
========================================

What:  Owns the single current contact-info record and keeps the history log
       in step with it.
How:   Every write runs one critical section (an asyncio.Lock) around one
       database transaction:

    ┌────────────┐   ┌─────────┐   ┌──────────────┐   ┌───────────────┐
    │  Existence │──▶│  Merge  │──▶│  Replace row │──▶│ Append history│
    │   check    │   │         │   │  (version+1) │   │   snapshot    │
    └────────────┘   └─────────┘   └──────────────┘   └───────────────┘
                 all inside one lock hold and one transaction

    The existence check decides the action: CREATE when no record existed
    when the write began, UPDATE otherwise (even if nothing changed).

Who:   Called by the contact-info routes.

Concurrency:
    - Writers in this process queue on the lock, so two concurrent first
      writes yield exactly one CREATE followed by one UPDATE.
    - Writers in other processes are caught by the version column (or the
      primary key on first insert) and raise ConflictError. Tenacity retries
      the whole attempt, re-reading the record, up to write_max_attempts.
    - Readers never take the lock. They see committed rows only, and the row
      and its snapshot commit together.

Rejected writes (permission, validation) raise before the transaction opens;
any failure inside it rolls back, so state and history stay unchanged.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from portfolio.config import settings
from portfolio.database import async_session_factory
from portfolio.exceptions import (
    ConflictError,
    DatabaseError,
    NotFoundError,
    PermissionDeniedError,
    PortfolioError,
)
from portfolio.models.contact_info import SINGLETON_ID, ContactInfoRecord
from portfolio.schemas.contact_info import ContactInfo, ContactInfoUpdate, HistoryAction
from portfolio.services.auth_service import ADMIN_ROLE, EDIT_PROFILE, Actor
from portfolio.services.contact_info_merge import merge_contact_info, validate_update
from portfolio.services.history_log import HistoryLog

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class UpsertResult:
    """Outcome of an accepted write."""

    contact_info: ContactInfo
    action: HistoryAction
    timestamp: datetime
    snapshot_id: int


class ContactInfoStore:
    """
    Singleton content store with an append-only audit trail.

    Responsibilities:
        - upsert():      validated, merged write; CREATE or UPDATE
        - get_current(): the committed record, or ContactInfo.empty()
        - reset():       admin-only write of neutral values (an UPDATE)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        history: HistoryLog,
        clock: Clock = utc_now,
        max_attempts: Optional[int] = None,
        min_wait: Optional[float] = None,
        max_wait: Optional[float] = None,
    ):
        self._session_factory = session_factory
        self.history = history
        self._clock = clock
        self._max_attempts = max_attempts or settings.write_max_attempts
        self._min_wait = settings.write_retry_min_wait if min_wait is None else min_wait
        self._max_wait = settings.write_retry_max_wait if max_wait is None else max_wait
        self._write_lock = asyncio.Lock()

    # ── Reads ─────────────────────────────────────────────────────────────

    async def get_current(self) -> ContactInfo:
        """The current record, or the empty sentinel before the first write."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(ContactInfoRecord).where(ContactInfoRecord.id == SINGLETON_ID)
                )
                row = result.scalar_one_or_none()
                return row.to_contact_info() if row else ContactInfo.empty()
        except SQLAlchemyError as e:
            logger.error("Database error reading contact info: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve contact info. Please try again.",
                context={"error_type": type(e).__name__},
            )

    # ── Writes ────────────────────────────────────────────────────────────

    async def upsert(self, payload: ContactInfoUpdate, actor: Actor) -> UpsertResult:
        """
        Merge `payload` over the current record and log the result.

        Raises:
            PermissionDeniedError: actor lacks canEditProfile
            ValidationError:       payload breaks a contact-info rule
            ConflictError:         still conflicting after every retry
            DatabaseError:         persistence failed
        """
        if not actor.can(EDIT_PROFILE):
            raise PermissionDeniedError(EDIT_PROFILE, actor=actor.subject)
        validated = validate_update(payload)
        return await self._write(validated, actor, require_existing=False)

    async def reset(self, actor: Actor) -> UpsertResult:
        """
        Reset every field to its neutral value. Logged as an UPDATE.

        Raises:
            PermissionDeniedError: actor is not an admin
            NotFoundError:         contact info was never set
        """
        if not actor.is_admin:
            raise PermissionDeniedError(ADMIN_ROLE, actor=actor.subject)
        return await self._write(ContactInfoUpdate.clear_all(), actor, require_existing=True)

    async def _write(
        self, payload: ContactInfoUpdate, actor: Actor, require_existing: bool
    ) -> UpsertResult:
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(ConflictError),
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential_jitter(initial=self._min_wait, max=self._max_wait, jitter=self._min_wait),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        result = await retrying(self._write_once, payload, actor, require_existing)
        logger.info(
            "Contact info %s by %s (snapshot %d)",
            result.action.past_tense,
            actor.subject,
            result.snapshot_id,
        )
        return result

    async def _write_once(
        self, payload: ContactInfoUpdate, actor: Actor, require_existing: bool
    ) -> UpsertResult:
        """One attempt: a single lock hold and a single transaction."""
        async with self._write_lock:
            try:
                async with self._session_factory() as session:
                    async with session.begin():
                        return await self._apply(session, payload, actor, require_existing)
            except IntegrityError:
                # Another process inserted the singleton row first
                raise ConflictError(context={"reason": "concurrent_create"})
            except PortfolioError:
                raise
            except SQLAlchemyError as e:
                logger.error("Database error writing contact info: %s", str(e), exc_info=True)
                raise DatabaseError(
                    message="Could not save contact info. Please try again.",
                    context={"error_type": type(e).__name__},
                )

    async def _apply(
        self,
        session: AsyncSession,
        payload: ContactInfoUpdate,
        actor: Actor,
        require_existing: bool,
    ) -> UpsertResult:
        result = await session.execute(
            select(ContactInfoRecord).where(ContactInfoRecord.id == SINGLETON_ID)
        )
        row = result.scalar_one_or_none()
        if row is None and require_existing:
            raise NotFoundError(resource="contact info")

        current = row.to_contact_info() if row else ContactInfo.empty()
        action = HistoryAction.UPDATE if row else HistoryAction.CREATE

        # Snapshot timestamps never go backwards, even if the clock does
        timestamp = self._clock()
        if current.updated_at is not None and timestamp < current.updated_at:
            timestamp = current.updated_at

        merged = merge_contact_info(current.content(), payload)
        record = ContactInfo(**merged.model_dump(), updated_at=timestamp, updated_by=actor.subject)
        values = ContactInfoRecord.columns_from(record)

        if row is None:
            session.add(ContactInfoRecord(id=SINGLETON_ID, version=1, **values))
            await session.flush()
        else:
            replaced = await session.execute(
                update(ContactInfoRecord)
                .where(
                    ContactInfoRecord.id == SINGLETON_ID,
                    ContactInfoRecord.version == row.version,
                )
                .values(version=row.version + 1, **values)
                .execution_options(synchronize_session=False)
            )
            if replaced.rowcount != 1:
                raise ConflictError(context={"reason": "concurrent_update", "version": row.version})

        entry = await self.history.append(
            session,
            action=action,
            actor=actor.subject,
            data=merged,
            snapshot_at=timestamp,
        )
        return UpsertResult(
            contact_info=record,
            action=action,
            timestamp=timestamp,
            snapshot_id=entry.id,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
# Routes resolve the store through routes.dependencies.get_contact_info_store
contact_info_store = ContactInfoStore(async_session_factory, HistoryLog(async_session_factory))
