from .notification import (
    SendNotificationRequest,
    SendNotificationResponse,
    NotificationScheduleRequest,
    NotificationResponse,
    UserNotificationsResponse,
    PendingNotificationsResponse,
    TypeCount,
    NotificationStatsResponse,
)

__all__ = [
    "SendNotificationRequest",
    "SendNotificationResponse",
    "NotificationScheduleRequest",
    "NotificationResponse",
    "UserNotificationsResponse",
    "PendingNotificationsResponse",
    "TypeCount",
    "NotificationStatsResponse",
]
