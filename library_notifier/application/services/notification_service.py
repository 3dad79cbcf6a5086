from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, List
import logging

from ..ports.library_repo import LibraryRepository
from ..ports.mailer import Mailer
from ..ports.notification_repo import (
    CLAIM_LEASE,
    BacklogStats,
    NotificationDraft,
    NotificationRecord,
    NotificationRepository,
    NotificationType,
)
from ...utils import utcnow

logger = logging.getLogger(__name__)


class SendResult(str, Enum):
    DELIVERED = "Delivered"
    USER_NOT_FOUND = "UserNotFound"
    DELIVERY_FAILED = "DeliveryFailed"


@dataclass
class NotificationService:
    """On-demand path: synchronous sends and scheduling into the shared backlog."""

    notifications: NotificationRepository
    library: LibraryRepository
    mailer: Mailer
    claim_lease: timedelta = CLAIM_LEASE
    clock: Callable[[], datetime] = field(default=utcnow)

    def send_now(self, user_id: str, subject: str, message: str) -> SendResult:
        member = self.library.get_active_member(user_id)
        if member is None:
            logger.warning(f"User {user_id} not found or inactive")
            return SendResult.USER_NOT_FOUND

        notification = self.notifications.create(
            NotificationDraft(
                user_id=member.user_id,
                user_email=member.email,
                user_name=member.user_name,
                type=NotificationType.MANUAL_NOTIFICATION,
                subject=subject,
                message=message,
                # Created claimed; a dispatch cycle during the send leaves it alone
                scheduled_for=self.clock() + self.claim_lease,
            )
        )

        try:
            self.mailer.send(member.email, subject, message)
        except Exception as e:
            # Left pending; the dispatch cycle retries it while under the retry cap
            self.notifications.mark_failed(notification.id, str(e) or e.__class__.__name__)
            logger.error(f"Failed to send notification {notification.id} to {user_id}: {e}")
            return SendResult.DELIVERY_FAILED

        if not self.notifications.mark_sent(notification.id, self.clock()):
            logger.warning(f"Notification {notification.id} was already marked sent by another process")
        logger.info(f"Notification sent successfully to {user_id} ({member.email})")
        return SendResult.DELIVERED

    def schedule(self, draft: NotificationDraft) -> NotificationRecord:
        created = self.notifications.create(draft)
        logger.info(f"Created notification {created.id} for user {created.user_id}, scheduled for {created.scheduled_for}")
        return created

    def list_for_user(self, user_id: str) -> List[NotificationRecord]:
        return self.notifications.find_by_user(user_id)

    def list_pending(self, limit: int = 100) -> List[NotificationRecord]:
        return self.notifications.find_pending(limit)

    def stats(self) -> BacklogStats:
        return self.notifications.backlog_stats()
