from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable
import logging

from ..ports.mailer import Mailer
from ..ports.notification_repo import CLAIM_LEASE, MAX_RETRIES, NotificationRecord, NotificationRepository
from ...utils import utcnow

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100


@dataclass
class DispatchService:
    """Delivers the current pending backlog, one attempt per notification per run.

    Each row is claimed before the send; a row another sender already claimed
    or finalized is skipped.
    """

    repo: NotificationRepository
    mailer: Mailer
    batch_size: int = DEFAULT_BATCH_SIZE
    max_retries: int = MAX_RETRIES
    claim_lease: timedelta = CLAIM_LEASE
    clock: Callable[[], datetime] = field(default=utcnow)

    def run(self) -> None:
        pending = self.repo.find_pending(self.batch_size)
        if not pending:
            logger.info("No pending notifications found")
            return

        logger.info(f"Found {len(pending)} pending notifications to process")
        sent = failed = skipped = 0
        for notification in pending:
            if not self.repo.claim(notification.id, self.clock() + self.claim_lease):
                logger.info(f"Notification {notification.id} is owned by another sender; skipping")
                skipped += 1
            elif self._deliver(notification):
                sent += 1
            else:
                failed += 1
        logger.info(f"Processed {len(pending)} notifications: {sent} sent, {failed} failed, {skipped} skipped")

    def _deliver(self, notification: NotificationRecord) -> bool:
        try:
            self.mailer.send(notification.user_email, notification.subject, notification.message)
        except Exception as e:
            # A send failure is charged to this notification only; store errors below still propagate
            if self.repo.mark_failed(notification.id, str(e) or e.__class__.__name__):
                logger.error(
                    f"Failed to send notification {notification.id} "
                    f"(retry {notification.retry_count + 1}/{self.max_retries}): {e}"
                )
            else:
                logger.warning(f"Notification {notification.id} was finalized elsewhere; failure not recorded")
            return False

        if self.repo.mark_sent(notification.id, self.clock()):
            logger.info(f"Sent notification {notification.id} to {notification.user_email}: {notification.subject}")
        else:
            logger.warning(f"Notification {notification.id} was already marked sent by another process")
        return True
