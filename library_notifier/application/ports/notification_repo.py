from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional, Protocol


MAX_RETRIES = 3
CLAIM_LEASE = timedelta(minutes=10)


class NotificationType(str, Enum):
    BOOK_BORROWED = "BookBorrowed"
    BOOK_RETURNED = "BookReturned"
    DUE_SOON_REMINDER = "DueSoonReminder"
    OVERDUE_NOTICE = "OverdueNotice"
    WELCOME_EMAIL = "WelcomeEmail"
    MANUAL_NOTIFICATION = "ManualNotification"


@dataclass
class NotificationDraft:
    user_id: str
    user_email: str
    user_name: str
    type: NotificationType
    subject: str
    message: str
    book_id: Optional[int] = None
    borrowing_record_id: Optional[int] = None
    scheduled_for: Optional[datetime] = None


@dataclass
class NotificationRecord:
    id: int
    user_id: str
    user_email: str
    user_name: str
    type: NotificationType
    subject: str
    message: str
    book_id: Optional[int]
    borrowing_record_id: Optional[int]
    created_at: datetime
    scheduled_for: datetime
    is_sent: bool
    sent_at: Optional[datetime]
    retry_count: int
    error_message: Optional[str]

    def is_pending(self, now: datetime, max_retries: int = MAX_RETRIES) -> bool:
        return not self.is_sent and self.scheduled_for <= now and self.retry_count < max_retries


@dataclass
class BacklogStats:
    total_pending: int = 0
    ready_to_send: int = 0
    scheduled: int = 0
    abandoned: int = 0
    by_type: Dict[str, int] = field(default_factory=dict)


class NotificationRepository(Protocol):
    def create(self, draft: NotificationDraft) -> NotificationRecord:
        ...

    def find_pending(self, limit: int = 100) -> List[NotificationRecord]:
        ...

    def find_by_user(self, user_id: str) -> List[NotificationRecord]:
        ...

    def get(self, notification_id: int) -> Optional[NotificationRecord]:
        ...

    def claim(self, notification_id: int, until: datetime) -> bool:
        """Take a pending notification out of the backlog until `until`; False if not pending."""
        ...

    def mark_sent(self, notification_id: int, sent_at: datetime) -> bool:
        ...

    def mark_failed(self, notification_id: int, error_message: str) -> bool:
        ...

    def exists_recent_overdue_notice(self, borrowing_record_id: int, since: datetime) -> bool:
        ...

    def create_overdue_notice(self, draft: NotificationDraft, since: datetime) -> Optional[NotificationRecord]:
        ...

    def backlog_stats(self) -> BacklogStats:
        ...
