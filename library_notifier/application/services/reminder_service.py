from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable
import html
import logging

from ..ports.library_repo import BookDto, BorrowingDto, LibraryRepository, MemberDto
from ..ports.notification_repo import NotificationDraft, NotificationRepository, NotificationType
from ...utils import utcnow

logger = logging.getLogger(__name__)

OVERDUE_SUBJECT = "Book Overdue - Please Return"
DEDUP_WINDOW = timedelta(hours=24)


def days_overdue(due_date: datetime, now: datetime) -> int:
    # timedelta.days is the floor of elapsed whole days
    return (now - due_date).days


def render_overdue_message(member: MemberDto, book: BookDto, record: BorrowingDto, days: int) -> str:
    return f"""
<h2>Book Overdue Reminder</h2>
<p>Dear {html.escape(member.full_name)},</p>
<p>The following book is <strong>{days} day(s) overdue</strong>:</p>
<ul>
    <li><strong>Title:</strong> {html.escape(book.title)}</li>
    <li><strong>Author:</strong> {html.escape(book.author)}</li>
    <li><strong>Due Date:</strong> {record.due_date:%Y-%m-%d}</li>
</ul>
<p>Please return this book as soon as possible to avoid additional late fees.</p>
<p>Thank you,<br/>Library Management System</p>
""".strip()


@dataclass
class OverdueReminderService:
    notifications: NotificationRepository
    library: LibraryRepository
    dedup_window: timedelta = DEDUP_WINDOW
    clock: Callable[[], datetime] = field(default=utcnow)

    def run(self) -> int:
        """Create OverdueNotice rows for overdue borrowings not reminded within the window.

        Returns the number of notices created.
        """
        logger.info("Checking for overdue book reminders...")
        now = self.clock()
        since = now - self.dedup_window

        overdue = self.library.find_overdue(now)
        if not overdue:
            logger.info("No overdue books found")
            return 0

        logger.info(f"Found {len(overdue)} overdue borrowing records")
        created = 0
        for record in overdue:
            member = self.library.get_member(record.user_id)
            if member is None:
                logger.warning(f"Skipping borrowing {record.id}: no member with user id '{record.user_id}'")
                continue
            book = self.library.get_book(record.book_id)
            if book is None:
                logger.warning(f"Skipping borrowing {record.id}: book {record.book_id} not found")
                continue

            if self.notifications.exists_recent_overdue_notice(record.id, since):
                logger.debug(f"Overdue notice already sent for borrowing {record.id}")
                continue

            draft = NotificationDraft(
                user_id=member.user_id,
                user_email=member.email,
                user_name=member.user_name,
                type=NotificationType.OVERDUE_NOTICE,
                subject=OVERDUE_SUBJECT,
                message=render_overdue_message(member, book, record, days_overdue(record.due_date, now)),
                book_id=book.id,
                borrowing_record_id=record.id,
                scheduled_for=now,
            )
            if self.notifications.create_overdue_notice(draft, since) is None:
                logger.debug(f"Overdue notice for borrowing {record.id} was created concurrently")
                continue

            created += 1
            logger.info(f"Created overdue notice for user {member.user_id}, book: {book.title}")

        logger.info(f"Overdue reminder check complete: {created} notice(s) created")
        return created
