"""
Student Models

Student records are maintained by the dashboard's data-entry screens. This
service only reads the subset of columns the notification engine needs.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, Index, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class PaymentStatus(str, enum.Enum):
    """Payment standing of a student."""

    PAID = "paid"
    LATE = "late"
    SUSPENDED = "suspended"


class SubscriptionType(str, enum.Enum):
    """Billing cadence of a student's subscription."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMIANNUAL = "semiannual"


class LifecycleStatus(str, enum.Enum):
    """Enrollment lifecycle of a student."""

    ACTIVE = "active"
    SUSPENDED = "suspended"
    WITHDRAWN = "withdrawn"


class Student(Base):
    """A student enrolled at the school."""

    __tablename__ = "students"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_name: Mapped[str] = mapped_column(String(200), nullable=False)

    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, name="payment_status"),
        nullable=False,
        default=PaymentStatus.PAID,
    )
    # Stored as entered on the dashboard (dd/mm/yyyy); may be empty or malformed
    last_payment_date: Mapped[str | None] = mapped_column(String(20), nullable=True)
    subscription_type: Mapped[SubscriptionType] = mapped_column(
        Enum(SubscriptionType, name="subscription_type"),
        nullable=False,
        default=SubscriptionType.MONTHLY,
    )
    status: Mapped[LifecycleStatus] = mapped_column(
        Enum(LifecycleStatus, name="student_status"),
        nullable=False,
        default=LifecycleStatus.ACTIVE,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_students_payment_status", "payment_status"),
        Index("ix_students_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Student {self.student_name} ({self.payment_status.value})>"
