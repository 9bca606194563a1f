"""
Notification Message Formatting

Turns detector results into alert candidates. Each candidate carries the
rendered message and a separate dedupe key:

- stable alerts (late payment, payment due soon, group full) use the full
  message as the key;
- the near-full capacity alert appends a volatile " (enrolled/capacity)"
  fragment to its message, and its key is the message without that fragment.

Templates exist for English and Arabic; every locale must keep the near-full
base text free of the volatile fragment.
"""

from dataclasses import dataclass

from app.modules.notifications.detection import (
    CapacityLevel,
    GroupAssessment,
    StudentAssessment,
    StudentRisk,
)
from app.modules.notifications.models import NotificationType

DEFAULT_LOCALE = "en"

MESSAGE_TEMPLATES: dict[str, dict[str, str]] = {
    "en": {
        "late_payment": "Reminder: payment for student {name} is overdue.",
        "payment_due_soon": "Notice: payment for student {name} is due soon on {due_date}.",
        "capacity_full": "Notice: group {name} has reached full capacity.",
        "capacity_near_full": "Notice: group {name} is nearing full capacity",
    },
    "ar": {
        "late_payment": "تذكير: دفعة الطالب {name} متأخرة.",
        "payment_due_soon": "تنبيه: دفعة الطالب {name} مستحقة قريباً بتاريخ {due_date}.",
        "capacity_full": "تنبيه: اكتملت الطاقة الاستيعابية لمجموعة {name}.",
        "capacity_near_full": "تنبيه: اقتربت مجموعة {name} من طاقتها الاستيعابية",
    },
}

DUE_DATE_FORMAT = "%d/%m/%Y"


@dataclass(frozen=True)
class AlertCandidate:
    """A notification the current run would like to insert."""

    type: NotificationType
    dedupe_key: str
    message: str
    # True when message carries a fragment that changes between runs
    volatile: bool = False


def _templates(locale: str) -> dict[str, str]:
    try:
        return MESSAGE_TEMPLATES[locale]
    except KeyError:
        raise ValueError(
            f"Unsupported notification locale {locale!r}. "
            f"Available locales: {sorted(MESSAGE_TEMPLATES)}"
        ) from None


def _stable(type_: NotificationType, message: str) -> AlertCandidate:
    return AlertCandidate(type=type_, dedupe_key=message, message=message)


def format_student_alert(
    assessment: StudentAssessment,
    locale: str = DEFAULT_LOCALE,
) -> AlertCandidate | None:
    """Render a student alert, or None when the student needs no alert."""
    templates = _templates(locale)

    if assessment.risk is StudentRisk.LATE:
        message = templates["late_payment"].format(name=assessment.student_name)
        return _stable(NotificationType.LATE_PAYMENT, message)

    if assessment.risk is StudentRisk.DUE_SOON and assessment.due_date is not None:
        message = templates["payment_due_soon"].format(
            name=assessment.student_name,
            due_date=assessment.due_date.strftime(DUE_DATE_FORMAT),
        )
        return _stable(NotificationType.PAYMENT_DUE_SOON, message)

    return None


def format_group_alert(
    assessment: GroupAssessment,
    locale: str = DEFAULT_LOCALE,
) -> AlertCandidate | None:
    """Render a capacity alert, or None below the near-full threshold."""
    templates = _templates(locale)

    if assessment.level is CapacityLevel.FULL:
        message = templates["capacity_full"].format(name=assessment.group_name)
        return _stable(NotificationType.CAPACITY, message)

    if assessment.level is CapacityLevel.NEAR_FULL:
        base = templates["capacity_near_full"].format(name=assessment.group_name)
        return AlertCandidate(
            type=NotificationType.CAPACITY,
            dedupe_key=base,
            message=f"{base} ({assessment.enrolled}/{assessment.capacity}).",
            volatile=True,
        )

    return None
