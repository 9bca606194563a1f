"""
Notifications Router

Endpoints:
- POST /notifications/generate - Run the notification engine once
- GET /notifications - List notifications with the unread count
- POST /notifications/{id}/read - Mark one notification as read
- POST /notifications/read-all - Mark every notification as read

The generate endpoint is what an external scheduler calls. It takes no body
and answers with {"message": ...} on success or {"error": ...} with a non-2xx
status on failure. The read endpoints serve the dashboard's notification
panel.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.modules.notifications import service
from app.modules.notifications.schemas import (
    ErrorResponse,
    GenerateNotificationsResponse,
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
)
from app.modules.notifications.service import (
    NotificationNotFoundError,
    NotificationRunError,
)

logger = logging.getLogger(__name__)

router = APIRouter()

SUCCESS_MESSAGE = "Notification check completed successfully."


@router.post(
    "/generate",
    response_model=GenerateNotificationsResponse,
    summary="Run Notification Check",
    description="""
Run the notification engine once.

Checks every student for late or soon-due payments and every group class for
capacity, then appends alerts that are not already unread in the log.

Safe to call repeatedly: a second call without data changes inserts nothing.
Overlapping calls are serialized; a call that cannot start in time gets 409.
""",
    responses={
        409: {"description": "Another run is in progress", "model": ErrorResponse},
        500: {"description": "Run failed, nothing was committed", "model": ErrorResponse},
        504: {"description": "Run timed out, nothing was committed", "model": ErrorResponse},
    },
)
async def generate_notifications():
    """Trigger one notification run."""
    try:
        summary = await service.generate_notifications()
    except NotificationRunError as e:
        return JSONResponse(status_code=e.status_code, content={"error": e.message})
    except Exception as e:
        logger.exception(f"Unexpected error during notification run: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "An unexpected error occurred during the notification run."},
        )

    logger.info(f"Notification run via API inserted {summary.inserted} notifications")
    return GenerateNotificationsResponse(message=SUCCESS_MESSAGE)


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="List Notifications",
)
async def list_notifications(
    unread_only: bool = Query(False, description="Only return unread notifications"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """List notifications newest first, with the total unread count."""
    items, unread_count = await service.get_notifications_page(
        db, unread_only=unread_only, limit=limit, offset=offset
    )
    return NotificationListResponse(
        items=[NotificationResponse.model_validate(item) for item in items],
        unread_count=unread_count,
        limit=limit,
        offset=offset,
    )


@router.post(
    "/read-all",
    response_model=MarkAllReadResponse,
    summary="Mark All Notifications As Read",
)
async def mark_all_read(db: AsyncSession = Depends(get_db)):
    updated = await service.mark_all_notifications_read(db)
    return MarkAllReadResponse(updated=updated)


@router.post(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark Notification As Read",
    responses={404: {"description": "Notification not found"}},
)
async def mark_read(notification_id: UUID, db: AsyncSession = Depends(get_db)):
    try:
        notification = await service.mark_notification_read(db, notification_id)
    except NotificationNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "NOTIFICATION_NOT_FOUND", "message": str(e)},
        ) from e
    return NotificationResponse.model_validate(notification)
