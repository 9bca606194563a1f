"""
Subscription Renewal

Projects the next payment due date from the last payment date and the
student's billing cadence.

Month arithmetic uses ``dateutil.relativedelta``, which clamps to the last
day of a shorter target month: 2024-01-31 + 1 month is 2024-02-29 and
2023-08-31 + 6 months is 2024-02-29. Tests pin this behavior.
"""

import logging
from datetime import date, datetime

from dateutil.relativedelta import relativedelta

from app.modules.students.models import SubscriptionType

logger = logging.getLogger(__name__)

CADENCE_MONTHS: dict[SubscriptionType, int] = {
    SubscriptionType.MONTHLY: 1,
    SubscriptionType.QUARTERLY: 3,
    SubscriptionType.SEMIANNUAL: 6,
}

# Dashboard entry format first, then ISO as exported by the database
_DATE_FORMATS = ("%d/%m/%Y", "%Y-%m-%d")


def parse_payment_date(value: date | datetime | str | None) -> date | None:
    """
    Parse a stored last-payment date.

    Accepts ``date``/``datetime`` objects and ``dd/mm/yyyy`` or ``yyyy-mm-dd``
    strings (leading zeros optional).

    Args:
        value: The stored value

    Returns:
        The calendar date, or None when the value is empty or unparseable
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = value.strip()
    if not text:
        return None

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    logger.debug(f"Unparseable last payment date: {text!r}")
    return None


def next_due_date(
    last_payment_date: date | datetime | str | None,
    subscription_type: SubscriptionType | str,
) -> date | None:
    """
    Compute when the next payment falls due.

    Args:
        last_payment_date: Date of the last payment, in any form accepted by
            parse_payment_date
        subscription_type: Billing cadence

    Returns:
        The next due date, or None when it cannot be computed (missing or
        malformed date, unknown cadence, due date past the calendar range)
    """
    paid_on = parse_payment_date(last_payment_date)
    if paid_on is None:
        return None

    try:
        cadence = SubscriptionType(subscription_type)
    except ValueError:
        logger.debug(f"Unknown subscription type: {subscription_type!r}")
        return None

    try:
        return paid_on + relativedelta(months=CADENCE_MONTHS[cadence])
    except (ValueError, OverflowError):
        logger.debug(f"Next due date out of range for last payment {paid_on.isoformat()}")
        return None
