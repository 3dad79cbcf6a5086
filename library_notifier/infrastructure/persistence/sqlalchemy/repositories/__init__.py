from .notification_repository_sql import SqlNotificationRepository
from .library_repository_sql import SqlLibraryRepository

__all__ = [
    "SqlNotificationRepository",
    "SqlLibraryRepository",
]
