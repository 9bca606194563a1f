"""
Fixtures for notification engine tests.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from app.modules.groups.models import GroupClass
from app.modules.notifications import locking
from app.modules.notifications.repository import NotificationPersistenceError
from app.modules.students.models import (
    LifecycleStatus,
    PaymentStatus,
    Student,
    SubscriptionType,
)

# Sunday 10 March 2024, 09:00 UTC
NOW = datetime(2024, 3, 10, 9, 0, tzinfo=UTC)


def make_student(
    name: str = "Sara Ali",
    payment_status: PaymentStatus = PaymentStatus.PAID,
    last_payment_date: str | None = "15/02/2024",
    subscription_type: SubscriptionType = SubscriptionType.MONTHLY,
    status: LifecycleStatus = LifecycleStatus.ACTIVE,
):
    student = MagicMock(spec=Student)
    student.id = uuid4()
    student.student_name = name
    student.payment_status = payment_status
    student.last_payment_date = last_payment_date
    student.subscription_type = subscription_type
    student.status = status
    return student


def make_group(name: str = "Intermediate B", students_count: int = 8, max_capacity: int = 10):
    group = MagicMock(spec=GroupClass)
    group.id = uuid4()
    group.name = name
    group.students_count = students_count
    group.max_capacity = max_capacity
    return group


class InMemoryNotificationLog:
    """
    Stand-in for the notification repository used by a run.

    append_all stages the whole batch before publishing it, the way a
    transaction would; fail_at_row makes it fail part way through.
    """

    def __init__(self):
        self.rows: list[dict] = []
        self.fail_at_row: int | None = None
        self.append_calls = 0

    async def list_unread_keys(self, db) -> set[str]:
        return {row["dedupe_key"] for row in self.rows if not row["read"]}

    async def append_all(self, db, candidates, created_at):
        self.append_calls += 1
        staged = []
        for index, candidate in enumerate(candidates):
            if self.fail_at_row is not None and index == self.fail_at_row:
                raise NotificationPersistenceError("connection reset during insert")
            staged.append(
                {
                    "id": uuid4(),
                    "message": candidate.message,
                    "dedupe_key": candidate.dedupe_key,
                    "type": candidate.type,
                    "read": False,
                    "created_at": created_at,
                }
            )
        self.rows.extend(staged)
        return staged

    def mark_all_read(self) -> None:
        for row in self.rows:
            row["read"] = True

    @property
    def messages(self) -> list[str]:
        return [row["message"] for row in self.rows]


@pytest.fixture(autouse=True)
def reset_memory_locks():
    """Run locks are per event loop; start each test with none."""
    locking._memory_locks.clear()
    yield
    locking._memory_locks.clear()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def student_factory():
    return make_student


@pytest.fixture
def group_factory():
    return make_group


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    db.add_all = MagicMock()
    return db


@pytest.fixture
def notification_log():
    return InMemoryNotificationLog()


@pytest.fixture
def dataset():
    """Mutable snapshot returned by the patched student/group repositories."""
    return {"students": [], "groups": []}


@pytest.fixture
def run_env(mock_db, notification_log, dataset):
    """
    Patch the data access used by generate_notifications.

    Yields a dict with the patched student/group repositories so tests can
    inject failures.
    """
    session_maker = MagicMock()
    session_maker.return_value.__aenter__ = AsyncMock(return_value=mock_db)
    session_maker.return_value.__aexit__ = AsyncMock(return_value=False)

    students_repo = MagicMock()
    students_repo.list_all = AsyncMock(side_effect=lambda db: list(dataset["students"]))
    groups_repo = MagicMock()
    groups_repo.list_all = AsyncMock(side_effect=lambda db: list(dataset["groups"]))

    with (
        patch("app.modules.notifications.service.async_session_maker", session_maker),
        patch("app.modules.notifications.service.StudentRepository", students_repo),
        patch("app.modules.notifications.service.GroupClassRepository", groups_repo),
        patch("app.modules.notifications.service.repository", notification_log),
    ):
        yield {"students": students_repo, "groups": groups_repo, "session_maker": session_maker}
