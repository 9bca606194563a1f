"""
Notification Service Layer

Runs the notification engine: one run fetches the current students and group
classes, classifies them, renders alert candidates, drops those already
represented by an unread notification, and appends the rest to the log.

Run phases: idle -> fetching -> detecting -> deduping -> persisting -> idle.

Guarantees:
- A fetch failure aborts the run before anything is written
- The surviving candidates are appended in one transaction (all or nothing)
- A run with nothing new to insert is a successful no-op
- Two runs back to back without data changes insert nothing the second time
- Runs are serialized by a single-flight lock and bounded by a deadline
- Nothing is retried within a run; the next scheduled run starts from scratch
"""

import asyncio
import enum
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import async_session_maker
from app.modules.groups.repository import GroupClassRepository
from app.modules.notifications import repository
from app.modules.notifications.dedup import filter_new_candidates
from app.modules.notifications.detection import (
    DUE_SOON_WINDOW,
    assess_group,
    assess_student,
)
from app.modules.notifications.formatting import (
    AlertCandidate,
    format_group_alert,
    format_student_alert,
)
from app.modules.notifications.locking import RunLockUnavailableError, run_lock
from app.modules.notifications.models import Notification
from app.modules.notifications.repository import NotificationPersistenceError
from app.modules.notifications.schemas import NotificationRunSummary
from app.modules.students.repository import StudentRepository

logger = logging.getLogger(__name__)

RUN_LOCK_NAME = "notifications:generate"
# Redis lock outlives the run deadline by this much
LOCK_HOLD_MARGIN_SECONDS = 30


class RunPhase(str, enum.Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    DETECTING = "detecting"
    DEDUPING = "deduping"
    PERSISTING = "persisting"


class NotificationRunError(Exception):
    """Base exception for failed notification runs."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 500,
        phase: RunPhase | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.phase = phase
        super().__init__(message)


class FetchError(NotificationRunError):
    """Raised when reading from the data store fails."""

    def __init__(self, detail: str, phase: RunPhase = RunPhase.FETCHING):
        super().__init__(
            message=f"Failed to read data while {phase.value}: {detail}",
            error_code="FETCH_FAILED",
            status_code=500,
            phase=phase,
        )


class DetectionError(NotificationRunError):
    """Raised when records cannot be classified or rendered."""

    def __init__(self, detail: str):
        super().__init__(
            message=f"Failed to evaluate records while detecting: {detail}",
            error_code="DETECT_FAILED",
            status_code=500,
            phase=RunPhase.DETECTING,
        )


class PersistenceError(NotificationRunError):
    """Raised when the batch of new notifications could not be committed."""

    def __init__(self, detail: str):
        super().__init__(
            message=f"Failed to insert notifications: {detail}",
            error_code="PERSIST_FAILED",
            status_code=500,
            phase=RunPhase.PERSISTING,
        )


class RunTimeoutError(NotificationRunError):
    """Raised when a run exceeds its deadline."""

    def __init__(self, timeout_seconds: float, phase: RunPhase):
        super().__init__(
            message=f"Notification run timed out after {timeout_seconds:g}s while {phase.value}",
            error_code="RUN_TIMEOUT",
            status_code=504,
            phase=phase,
        )


class RunInProgressError(NotificationRunError):
    """Raised when another run still holds the run lock."""

    def __init__(self):
        super().__init__(
            message="Another notification run is in progress. Try again later.",
            error_code="RUN_IN_PROGRESS",
            status_code=409,
            phase=RunPhase.IDLE,
        )


@dataclass
class NotificationPlan:
    """Result of the pure planning step for one snapshot."""

    candidates: list[AlertCandidate] = field(default_factory=list)
    accepted: list[AlertCandidate] = field(default_factory=list)
    suppressed: list[AlertCandidate] = field(default_factory=list)


def detect_candidates(
    students: Iterable[Any],
    groups: Iterable[Any],
    now: datetime,
    locale: str = "en",
    window: timedelta = DUE_SOON_WINDOW,
) -> list[AlertCandidate]:
    """
    Generate alert candidates for a snapshot of students and group classes.

    Student alerts come first (in input order), then capacity alerts.
    """
    candidates: list[AlertCandidate] = []

    for student in students:
        candidate = format_student_alert(assess_student(student, now, window), locale)
        if candidate is not None:
            candidates.append(candidate)

    for group in groups:
        assessment = assess_group(group)
        if assessment is None:
            continue
        candidate = format_group_alert(assessment, locale)
        if candidate is not None:
            candidates.append(candidate)

    return candidates


def plan_notifications(
    students: Iterable[Any],
    groups: Iterable[Any],
    unread_keys: Iterable[str],
    now: datetime,
    locale: str = "en",
    window: timedelta = DUE_SOON_WINDOW,
) -> NotificationPlan:
    """
    Decide which notifications a run should insert.

    Pure function over an explicit snapshot; performs no I/O.

    Args:
        students: Current student records
        groups: Current group class records
        unread_keys: Dedupe keys of currently unread notifications
        now: Timezone-aware reference instant
        locale: Message locale
        window: Due-soon lookahead

    Returns:
        The candidates and their split into accepted and suppressed
    """
    candidates = detect_candidates(students, groups, now, locale, window)
    accepted, suppressed = filter_new_candidates(candidates, unread_keys)
    return NotificationPlan(candidates=candidates, accepted=accepted, suppressed=suppressed)


class _RunState:
    """Tracks the current phase of a run for logging and error reporting."""

    def __init__(self) -> None:
        self.phase = RunPhase.IDLE

    def enter(self, phase: RunPhase) -> None:
        logger.debug(f"Notification run: {self.phase.value} -> {phase.value}")
        self.phase = phase


async def _execute_run(state: _RunState, now: datetime) -> NotificationRunSummary:
    window = timedelta(days=settings.notification_due_soon_days)

    async with async_session_maker() as db:
        state.enter(RunPhase.FETCHING)
        try:
            students = await StudentRepository.list_all(db)
            groups = await GroupClassRepository.list_all(db)
        except Exception as e:
            logger.error(f"Notification run failed while fetching records: {e}", exc_info=True)
            raise FetchError(str(e)) from e

        state.enter(RunPhase.DETECTING)
        try:
            candidates = detect_candidates(
                students, groups, now, settings.notification_locale, window
            )
        except Exception as e:
            logger.error(f"Notification run failed while detecting: {e}", exc_info=True)
            raise DetectionError(str(e)) from e

        summary = NotificationRunSummary(
            executed_at=now,
            students_checked=len(students),
            groups_checked=len(groups),
            candidates=len(candidates),
        )

        if not candidates:
            logger.info("No potential notifications generated")
            state.enter(RunPhase.IDLE)
            return summary

        state.enter(RunPhase.DEDUPING)
        try:
            unread_keys = await repository.list_unread_keys(db)
        except Exception as e:
            logger.error(f"Notification run failed while reading unread set: {e}", exc_info=True)
            raise FetchError(str(e), phase=RunPhase.DEDUPING) from e

        accepted, suppressed = filter_new_candidates(candidates, unread_keys)
        summary.suppressed = len(suppressed)

        if not accepted:
            logger.info(f"No new notifications to insert ({len(suppressed)} already unread)")
            state.enter(RunPhase.IDLE)
            return summary

        state.enter(RunPhase.PERSISTING)
        try:
            await repository.append_all(db, accepted, created_at=now)
        except NotificationPersistenceError as e:
            raise PersistenceError(str(e)) from e

        summary.inserted = len(accepted)
        logger.info(f"Inserted {len(accepted)} new notifications ({len(suppressed)} suppressed)")

    state.enter(RunPhase.IDLE)
    return summary


async def generate_notifications(now: datetime | None = None) -> NotificationRunSummary:
    """
    Execute one notification run.

    Args:
        now: Reference instant (defaults to the current time in the
            configured notification timezone)

    Returns:
        Summary of the run

    Raises:
        RunInProgressError: If another run holds the lock past the wait time
        FetchError: If reading students, groups or unread notifications fails
        DetectionError: If classifying or rendering the records fails
        PersistenceError: If the batch insert fails (nothing is committed)
        RunTimeoutError: If the run exceeds its deadline
    """
    if now is None:
        now = datetime.now(ZoneInfo(settings.notification_timezone))

    timeout_seconds = settings.notification_run_timeout_seconds
    state = _RunState()

    logger.info(f"Starting notification run at {now.isoformat()}")

    try:
        async with asyncio.timeout(timeout_seconds):
            async with run_lock(
                RUN_LOCK_NAME,
                wait_seconds=settings.notification_lock_wait_seconds,
                hold_seconds=timeout_seconds + LOCK_HOLD_MARGIN_SECONDS,
            ):
                summary = await _execute_run(state, now)
    except RunLockUnavailableError as e:
        logger.warning(f"Skipping notification run: {e}")
        raise RunInProgressError() from e
    except TimeoutError as e:
        logger.error(
            f"Notification run timed out after {timeout_seconds:g}s "
            f"while {state.phase.value}; nothing committed"
        )
        raise RunTimeoutError(timeout_seconds, state.phase) from e

    logger.info(
        f"Notification run completed. Candidates: {summary.candidates}, "
        f"Inserted: {summary.inserted}, Suppressed: {summary.suppressed}"
    )
    return summary


# ============================================
# Notification panel operations
# ============================================
# Used by the dashboard only; a notification run never reads or changes
# the read flag of existing rows.


class NotificationNotFoundError(Exception):
    """Raised when a notification does not exist."""

    def __init__(self, notification_id: UUID):
        self.notification_id = notification_id
        super().__init__(f"Notification {notification_id} not found")


async def get_notifications_page(
    db: AsyncSession,
    unread_only: bool = False,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Notification], int]:
    """
    Get a page of notifications together with the unread count.

    Returns:
        Tuple of (notifications newest first, total unread)
    """
    items = await repository.list_notifications(
        db, unread_only=unread_only, limit=limit, offset=offset
    )
    unread = await repository.count_unread(db)
    return items, unread


async def mark_notification_read(db: AsyncSession, notification_id: UUID) -> Notification:
    """
    Mark one notification as read.

    Raises:
        NotificationNotFoundError: If the notification does not exist
    """
    notification = await repository.mark_as_read(db, notification_id)
    if notification is None:
        raise NotificationNotFoundError(notification_id)
    return notification


async def mark_all_notifications_read(db: AsyncSession) -> int:
    """Mark every unread notification as read and return how many changed."""
    updated = await repository.mark_all_as_read(db)
    logger.info(f"Marked {updated} notifications as read")
    return updated
