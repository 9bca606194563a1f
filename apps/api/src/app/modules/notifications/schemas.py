"""
Notification Schemas

Pydantic schemas for notification responses and run summaries.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.modules.notifications.models import NotificationType


class NotificationResponse(BaseModel):
    """A notification as shown in the dashboard panel."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    message: str
    type: NotificationType
    read: bool
    created_at: datetime


class NotificationListResponse(BaseModel):
    """Response for GET /notifications."""

    items: list[NotificationResponse]
    unread_count: int = Field(..., ge=0)
    limit: int
    offset: int


class MarkAllReadResponse(BaseModel):
    """Response for POST /notifications/read-all."""

    updated: int = Field(..., ge=0)


class NotificationRunSummary(BaseModel):
    """Outcome of one successful notification run."""

    executed_at: datetime
    students_checked: int = 0
    groups_checked: int = 0
    candidates: int = 0
    inserted: int = 0
    suppressed: int = 0


class GenerateNotificationsResponse(BaseModel):
    """Success envelope for POST /notifications/generate."""

    message: str


class ErrorResponse(BaseModel):
    """Failure envelope for POST /notifications/generate."""

    error: str
