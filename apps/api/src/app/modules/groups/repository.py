"""
Group Class Repository

Read-only database operations for group classes.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.groups.models import GroupClass

logger = logging.getLogger(__name__)


class GroupClassRepository:
    """Repository for group class read operations."""

    @staticmethod
    async def list_all(db: AsyncSession) -> list[GroupClass]:
        """Get every group class ordered by name."""
        result = await db.execute(select(GroupClass).order_by(GroupClass.name, GroupClass.id))
        return list(result.scalars().all())
