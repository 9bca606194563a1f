"""
Notifications Module

Notification engine for the school dashboard:
1. Late-payment alerts for students marked late
2. Payment-due-soon alerts for active students whose next renewal falls in
   the next 7 days (monthly, quarterly or semiannual cadence)
3. Capacity alerts for group classes at or above 80% of capacity
4. Deduplication against unread notifications so repeated runs stay quiet

API Endpoints:
- POST /notifications/generate - Run the engine (external scheduler trigger)
- GET /notifications - List notifications
- POST /notifications/{id}/read - Mark one as read
- POST /notifications/read-all - Mark all as read

Background Jobs (via APScheduler):
- notifications_generate: Runs every NOTIFICATION_CHECK_INTERVAL_MINUTES
"""

from .jobs import register_notification_jobs
from .router import router

__all__ = ["router", "register_notification_jobs"]
