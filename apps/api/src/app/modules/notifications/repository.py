"""
Notification Repository

Database operations for the notification log.

The notification engine only reads the unread set and appends new rows in a
single transaction. The read/unread mutations below exist for the dashboard's
notification panel and are never called by a run.
"""

import logging
from collections.abc import Sequence
from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .formatting import AlertCandidate
from .models import Notification

logger = logging.getLogger(__name__)


class NotificationPersistenceError(Exception):
    """Raised when a batch of notifications could not be committed."""


async def list_unread_keys(db: AsyncSession) -> set[str]:
    """
    Get the matching keys of all unread notifications.

    Rows written without a dedupe key are matched by their message.
    """
    result = await db.execute(
        select(func.coalesce(Notification.dedupe_key, Notification.message)).where(
            Notification.read == False  # noqa: E712
        )
    )
    return set(result.scalars().all())


async def append_all(
    db: AsyncSession,
    candidates: Sequence[AlertCandidate],
    created_at: datetime,
) -> list[Notification]:
    """
    Insert a batch of notifications atomically.

    Every row gets a fresh id and read=False. The batch is committed once;
    if anything fails the transaction is rolled back so no row of the batch
    is persisted.

    Args:
        db: Database session
        candidates: Alerts to insert
        created_at: Timestamp shared by the whole batch

    Returns:
        The inserted notifications

    Raises:
        NotificationPersistenceError: If the batch could not be committed
    """
    if not candidates:
        return []

    rows = [
        Notification(
            id=uuid4(),
            message=candidate.message,
            dedupe_key=candidate.dedupe_key,
            type=candidate.type,
            read=False,
            created_at=created_at,
        )
        for candidate in candidates
    ]

    try:
        db.add_all(rows)
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to insert {len(rows)} notifications, batch rolled back: {e}")
        raise NotificationPersistenceError(str(e)) from e

    return rows


async def list_notifications(
    db: AsyncSession,
    unread_only: bool = False,
    limit: int = 50,
    offset: int = 0,
) -> list[Notification]:
    """Get notifications, newest first."""
    query = select(Notification)
    if unread_only:
        query = query.where(Notification.read == False)  # noqa: E712
    query = query.order_by(Notification.created_at.desc(), Notification.id).limit(limit)
    query = query.offset(offset)

    result = await db.execute(query)
    return list(result.scalars().all())


async def count_unread(db: AsyncSession) -> int:
    """Count unread notifications."""
    result = await db.execute(
        select(func.count(Notification.id)).where(Notification.read == False)  # noqa: E712
    )
    return result.scalar_one()


async def mark_as_read(db: AsyncSession, id: UUID) -> Notification | None:
    """
    Mark one notification as read.

    Returns:
        The updated notification, or None if it does not exist
    """
    notification = await db.get(Notification, id)
    if notification is None:
        return None

    if not notification.read:
        notification.read = True
        await db.commit()
        await db.refresh(notification)

    return notification


async def mark_all_as_read(db: AsyncSession) -> int:
    """
    Mark every unread notification as read.

    Returns:
        Number of notifications updated
    """
    result = await db.execute(
        update(Notification).where(Notification.read == False).values(read=True)  # noqa: E712
    )
    await db.commit()
    return result.rowcount or 0
