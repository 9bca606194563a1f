"""
Seed Demo Data

Creates demo students and group classes covering every notification case:
late payment, payment due within the week, full group, near-full group.
Records that already exist (by name) are left untouched.

Usage:
    cd apps/api
    python scripts/seed_demo_data.py
"""

import asyncio
import sys
from datetime import UTC, datetime
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dateutil.relativedelta import relativedelta
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings
from app.core.database import Base
from app.modules.groups.models import GroupClass
from app.modules.notifications import models as _notification_models  # noqa: F401
from app.modules.students.models import (
    LifecycleStatus,
    PaymentStatus,
    Student,
    SubscriptionType,
)


def _demo_students() -> list[dict]:
    today = datetime.now(UTC).date()
    # Paid one month minus three days ago: due in three days
    due_soon = (today - relativedelta(months=1) + relativedelta(days=3)).strftime("%d/%m/%Y")
    recently_paid = today.strftime("%d/%m/%Y")

    return [
        {
            "student_name": "Ahmed Ali",
            "payment_status": PaymentStatus.LATE,
            "last_payment_date": "01/01/2024",
            "subscription_type": SubscriptionType.MONTHLY,
            "status": LifecycleStatus.ACTIVE,
        },
        {
            "student_name": "Fatima Hassan",
            "payment_status": PaymentStatus.PAID,
            "last_payment_date": due_soon,
            "subscription_type": SubscriptionType.MONTHLY,
            "status": LifecycleStatus.ACTIVE,
        },
        {
            "student_name": "Omar Khaled",
            "payment_status": PaymentStatus.PAID,
            "last_payment_date": recently_paid,
            "subscription_type": SubscriptionType.QUARTERLY,
            "status": LifecycleStatus.ACTIVE,
        },
        {
            "student_name": "Layla Mahmoud",
            "payment_status": PaymentStatus.PAID,
            "last_payment_date": None,
            "subscription_type": SubscriptionType.SEMIANNUAL,
            "status": LifecycleStatus.WITHDRAWN,
        },
    ]


DEMO_GROUPS = [
    {"name": "Beginners A", "students_count": 15, "max_capacity": 15},
    {"name": "Intermediate B", "students_count": 12, "max_capacity": 15},
    {"name": "Advanced C", "students_count": 4, "max_capacity": 12},
    {"name": "Open Workshop", "students_count": 30, "max_capacity": 0},
]


async def seed_demo_data() -> None:
    """Insert demo students and group classes if they don't exist."""

    engine = create_async_engine(settings.database_url, echo=False)
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as db:
        existing_students = set(
            (await db.execute(select(Student.student_name))).scalars().all()
        )
        existing_groups = set((await db.execute(select(GroupClass.name))).scalars().all())

        created = 0
        for data in _demo_students():
            if data["student_name"] in existing_students:
                print(f"Student already exists: {data['student_name']}")
                continue
            db.add(Student(**data))
            created += 1

        for data in DEMO_GROUPS:
            if data["name"] in existing_groups:
                print(f"Group already exists: {data['name']}")
                continue
            db.add(GroupClass(**data))
            created += 1

        await db.commit()
        print(f"Demo data seeded: {created} record(s) created")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
