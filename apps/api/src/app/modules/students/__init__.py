"""
Students module - Student records read by the notification engine.
"""

from app.modules.students.models import (
    LifecycleStatus,
    PaymentStatus,
    Student,
    SubscriptionType,
)
from app.modules.students.repository import StudentRepository

__all__ = [
    "LifecycleStatus",
    "PaymentStatus",
    "Student",
    "StudentRepository",
    "SubscriptionType",
]
