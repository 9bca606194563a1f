"""
Student Repository

Read-only database operations for student records.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.students.models import Student

logger = logging.getLogger(__name__)


class StudentRepository:
    """Repository for student read operations."""

    @staticmethod
    async def list_all(db: AsyncSession) -> list[Student]:
        """
        Get every student record.

        The notification engine classifies the whole collection in memory, so
        no filtering happens at the query level.

        Args:
            db: Database session

        Returns:
            List of Student instances ordered by name
        """
        result = await db.execute(select(Student).order_by(Student.student_name, Student.id))
        return list(result.scalars().all())
