"""
Notification Models

The notification log is append-only for the notification engine: rows are
inserted by a run and only ever change through the "mark as read" actions
used by the dashboard.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, Index, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class NotificationType(str, enum.Enum):
    """Kinds of alerts raised by the notification engine."""

    LATE_PAYMENT = "late_payment"
    PAYMENT_DUE_SOON = "payment_due_soon"
    CAPACITY = "capacity"


class Notification(Base):
    """A single alert shown in the dashboard's notification panel."""

    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    message: Mapped[str] = mapped_column(Text, nullable=False)
    # Stable matching key; rows from other producers may leave it empty, in
    # which case the message is the key
    dedupe_key: Mapped[str | None] = mapped_column(String(500), nullable=True)
    type: Mapped[NotificationType] = mapped_column(
        Enum(NotificationType, name="notification_type"), nullable=False
    )

    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_notifications_read", "read"),
        Index("ix_notifications_created_at", "created_at"),
    )
