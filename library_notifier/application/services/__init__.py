# Services package (re-export for stable imports)
from .dispatch_service import DispatchService
from .reminder_service import OverdueReminderService
from .notification_service import NotificationService, SendResult
from .scheduler import NotificationScheduler, SchedulerState

__all__ = [
    "DispatchService",
    "OverdueReminderService",
    "NotificationService",
    "SendResult",
    "NotificationScheduler",
    "SchedulerState",
]
