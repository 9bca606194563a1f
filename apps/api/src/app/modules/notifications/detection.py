"""
Risk Detection

Pure classification of students (late / due soon / fine) and group classes
(full / near full / normal). No I/O happens here.
"""

import enum
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Any

from app.modules.notifications.renewal import next_due_date
from app.modules.students.models import LifecycleStatus, PaymentStatus

DUE_SOON_WINDOW = timedelta(days=7)

# near-full threshold is 4/5 of capacity
NEAR_FULL_NUMERATOR = 4
NEAR_FULL_DENOMINATOR = 5


class StudentRisk(str, enum.Enum):
    LATE = "late"
    DUE_SOON = "due_soon"
    FINE = "fine"


class CapacityLevel(str, enum.Enum):
    FULL = "full"
    NEAR_FULL = "near_full"
    NORMAL = "normal"


@dataclass(frozen=True)
class StudentAssessment:
    """Outcome of classifying one student."""

    student_name: str
    risk: StudentRisk
    due_date: date | None = None


@dataclass(frozen=True)
class GroupAssessment:
    """Outcome of classifying one group class."""

    group_name: str
    level: CapacityLevel
    enrolled: int
    capacity: int


def _value(field: Any) -> Any:
    return field.value if isinstance(field, enum.Enum) else field


def due_instant(due_date: date, tz: tzinfo) -> datetime:
    """Start of the due date in the given timezone."""
    return datetime.combine(due_date, time.min, tzinfo=tz)


def is_within_due_window(
    due_at: datetime,
    now: datetime,
    window: timedelta = DUE_SOON_WINDOW,
) -> bool:
    """
    Check the half-open lookahead window ``(now, now + window]``.

    A due instant equal to ``now`` is already due and does not qualify; one
    exactly ``window`` ahead does.
    """
    return now < due_at <= now + window


def assess_student(
    student: Any,
    now: datetime,
    window: timedelta = DUE_SOON_WINDOW,
) -> StudentAssessment:
    """
    Classify a student for this run.

    A late student is reported as LATE only; the due-soon check is reserved
    for active students who are not late. Students whose due date cannot be
    computed are FINE.

    Args:
        student: Object with student_name, payment_status, status,
            last_payment_date and subscription_type attributes
        now: Timezone-aware reference instant
        window: Lookahead for the due-soon check

    Returns:
        The student's assessment
    """
    payment_status = _value(student.payment_status)
    if payment_status == PaymentStatus.LATE.value:
        return StudentAssessment(student.student_name, StudentRisk.LATE)

    if _value(student.status) != LifecycleStatus.ACTIVE.value:
        return StudentAssessment(student.student_name, StudentRisk.FINE)

    due_date = next_due_date(student.last_payment_date, _value(student.subscription_type))
    if due_date is None:
        return StudentAssessment(student.student_name, StudentRisk.FINE)

    if is_within_due_window(due_instant(due_date, now.tzinfo), now, window):
        return StudentAssessment(student.student_name, StudentRisk.DUE_SOON, due_date)

    return StudentAssessment(student.student_name, StudentRisk.FINE)


def classify_capacity(enrolled: int, capacity: int) -> CapacityLevel | None:
    """
    Classify occupancy of a group class.

    Uses integer comparison so the 0.8 boundary is exact.

    Returns:
        None when capacity <= 0 (uncapped, the class is skipped), otherwise
        the capacity level
    """
    if capacity <= 0:
        return None
    if enrolled >= capacity:
        return CapacityLevel.FULL
    if enrolled * NEAR_FULL_DENOMINATOR >= capacity * NEAR_FULL_NUMERATOR:
        return CapacityLevel.NEAR_FULL
    return CapacityLevel.NORMAL


def assess_group(group: Any) -> GroupAssessment | None:
    """
    Classify a group class.

    Args:
        group: Object with name, students_count and max_capacity attributes

    Returns:
        The assessment, or None when the class has no valid capacity
    """
    enrolled = group.students_count or 0
    capacity = group.max_capacity or 0
    level = classify_capacity(enrolled, capacity)
    if level is None:
        return None
    return GroupAssessment(group.name, level, enrolled, capacity)
