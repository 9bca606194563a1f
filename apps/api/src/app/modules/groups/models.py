"""
Group Class Models

Group classes are maintained by the dashboard. The notification engine reads
enrollment and capacity to raise capacity alerts.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class GroupClass(Base):
    """A group class with a fixed seat capacity."""

    __tablename__ = "group_classes"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)

    students_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Zero or negative means uncapped
    max_capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<GroupClass {self.name} ({self.students_count}/{self.max_capacity})>"
