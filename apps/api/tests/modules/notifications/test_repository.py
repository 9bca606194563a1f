"""
Unit tests for the notification repository.

Focus on the append-only batch insert: one commit for the whole batch and a
rollback when it fails.
"""

from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from app.modules.notifications import repository
from app.modules.notifications.formatting import AlertCandidate
from app.modules.notifications.models import Notification, NotificationType
from app.modules.notifications.repository import NotificationPersistenceError


def _candidates(count: int) -> list[AlertCandidate]:
    return [
        AlertCandidate(
            type=NotificationType.LATE_PAYMENT,
            dedupe_key=f"Reminder: payment for student S{i} is overdue.",
            message=f"Reminder: payment for student S{i} is overdue.",
        )
        for i in range(count)
    ]


class TestListUnreadKeys:
    """Tests for list_unread_keys."""

    @pytest.mark.asyncio
    async def test_returns_distinct_keys(self, mock_db):
        result = MagicMock()
        result.scalars.return_value.all.return_value = ["a", "b", "a"]
        mock_db.execute.return_value = result

        keys = await repository.list_unread_keys(mock_db)

        assert keys == {"a", "b"}
        mock_db.execute.assert_awaited_once()


class TestAppendAll:
    """Tests for append_all."""

    @pytest.mark.asyncio
    async def test_inserts_batch_with_single_commit(self, mock_db, now):
        rows = await repository.append_all(mock_db, _candidates(5), created_at=now)

        assert len(rows) == 5
        mock_db.add_all.assert_called_once()
        mock_db.commit.assert_awaited_once()
        mock_db.rollback.assert_not_awaited()

        added = mock_db.add_all.call_args.args[0]
        assert all(isinstance(row, Notification) for row in added)
        assert all(row.read is False for row in added)
        assert all(row.created_at == now for row in added)
        assert len({row.id for row in added}) == 5
        assert added[0].dedupe_key == added[0].message

    @pytest.mark.asyncio
    async def test_failure_rolls_back_whole_batch(self, mock_db, now):
        mock_db.commit.side_effect = RuntimeError("unique violation")

        with pytest.raises(NotificationPersistenceError, match="unique violation"):
            await repository.append_all(mock_db, _candidates(5), created_at=now)

        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_empty_batch_does_nothing(self, mock_db, now):
        rows = await repository.append_all(mock_db, [], created_at=now)

        assert rows == []
        mock_db.add_all.assert_not_called()
        mock_db.commit.assert_not_awaited()


class TestReadState:
    """Tests for the dashboard's read/unread operations."""

    @pytest.mark.asyncio
    async def test_mark_as_read_missing_returns_none(self, mock_db):
        mock_db.get.return_value = None

        assert await repository.mark_as_read(mock_db, uuid4()) is None
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_mark_as_read_sets_flag(self, mock_db):
        notification = MagicMock(spec=Notification)
        notification.read = False
        mock_db.get.return_value = notification

        result = await repository.mark_as_read(mock_db, uuid4())

        assert result is notification
        assert notification.read is True
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_mark_as_read_already_read_skips_commit(self, mock_db):
        notification = MagicMock(spec=Notification)
        notification.read = True
        mock_db.get.return_value = notification

        await repository.mark_as_read(mock_db, uuid4())

        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_mark_all_as_read_returns_rowcount(self, mock_db):
        mock_db.execute.return_value = MagicMock(rowcount=3)

        assert await repository.mark_all_as_read(mock_db) == 3
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_count_unread(self, mock_db):
        result = MagicMock()
        result.scalar_one.return_value = 2
        mock_db.execute.return_value = result

        assert await repository.count_unread(mock_db) == 2
