from fastapi import APIRouter, Depends, HTTPException, status
import logging

from ..application.services import NotificationService, SendResult
from ..core.config import settings
from ..dependencies import get_notification_service
from ..utils import utcnow
from ..schemas import (
    NotificationResponse,
    NotificationScheduleRequest,
    NotificationStatsResponse,
    PendingNotificationsResponse,
    SendNotificationRequest,
    SendNotificationResponse,
    TypeCount,
    UserNotificationsResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.post("/send", response_model=SendNotificationResponse)
def send_notification(
    request: SendNotificationRequest,
    service: NotificationService = Depends(get_notification_service),
):
    """Send a notification to a user immediately"""
    logger.info(f"Received request to send notification to user: {request.user_id}")
    result = service.send_now(request.user_id, request.subject, request.message)

    if result == SendResult.USER_NOT_FOUND:
        raise HTTPException(status_code=404, detail=f"User '{request.user_id}' not found or inactive")
    if result == SendResult.DELIVERY_FAILED:
        raise HTTPException(
            status_code=502,
            detail=f"Notification to '{request.user_id}' failed to send and will be retried automatically",
        )
    return SendNotificationResponse(user_id=request.user_id, subject=request.subject)


@router.get("/user/{user_id}", response_model=UserNotificationsResponse)
def get_user_notifications(user_id: str, service: NotificationService = Depends(get_notification_service)):
    """Most recent notifications for a user"""
    logger.info(f"Fetching notifications for user: {user_id}")
    notifications = service.list_for_user(user_id)
    return UserNotificationsResponse(
        user_id=user_id,
        count=len(notifications),
        notifications=[NotificationResponse.from_record(n) for n in notifications],
    )


@router.get("/pending", response_model=PendingNotificationsResponse)
def get_pending_notifications(service: NotificationService = Depends(get_notification_service)):
    """Notifications the next dispatch cycle would attempt"""
    notifications = service.list_pending(settings.DISPATCH_BATCH_SIZE)
    return PendingNotificationsResponse(
        count=len(notifications),
        notifications=[NotificationResponse.from_record(n) for n in notifications],
    )


@router.post("/schedule", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
def schedule_notification(
    request: NotificationScheduleRequest,
    service: NotificationService = Depends(get_notification_service),
):
    """Queue a notification for the dispatch cycle without sending it now"""
    logger.info(f"Creating scheduled notification for user: {request.user_id}")
    created = service.schedule(request.to_draft())
    return NotificationResponse.from_record(created)


@router.get("/stats", response_model=NotificationStatsResponse)
def get_stats(service: NotificationService = Depends(get_notification_service)):
    stats = service.stats()
    return NotificationStatsResponse(
        total_pending=stats.total_pending,
        ready_to_send=stats.ready_to_send,
        scheduled=stats.scheduled,
        abandoned=stats.abandoned,
        by_type=[TypeCount(type=t, count=c) for t, c in sorted(stats.by_type.items())],
    )


@router.get("/health")
def health():
    return {
        "status": "healthy",
        "service": "NotificationService",
        "timestamp": utcnow().isoformat(),
    }
