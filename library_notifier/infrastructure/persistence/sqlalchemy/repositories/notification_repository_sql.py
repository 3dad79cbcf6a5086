from datetime import datetime
from typing import Callable, List, Optional
from sqlalchemy import insert, literal, update
from sqlalchemy import select as core_select
from sqlmodel import Session, select, func

from .....db.models import Notification, BorrowingRecord
from .....application.ports.notification_repo import (
    MAX_RETRIES,
    BacklogStats,
    NotificationDraft,
    NotificationRecord,
    NotificationRepository,
    NotificationType,
)
from .....utils import utcnow
from ..session_errors import store_errors

USER_HISTORY_LIMIT = 50


class SqlNotificationRepository(NotificationRepository):
    def __init__(self, session: Session, clock: Callable[[], datetime] = utcnow, max_retries: int = MAX_RETRIES):
        self.session = session
        self.clock = clock
        self.max_retries = max_retries

    def _to_dto(self, n: Notification) -> NotificationRecord:
        return NotificationRecord(
            id=n.id,
            user_id=n.user_id,
            user_email=n.user_email,
            user_name=n.user_name,
            type=NotificationType(n.type),
            subject=n.subject,
            message=n.message,
            book_id=n.book_id,
            borrowing_record_id=n.borrowing_record_id,
            created_at=n.created_at,
            scheduled_for=n.scheduled_for or n.created_at,
            is_sent=bool(n.is_sent),
            sent_at=n.sent_at,
            retry_count=n.retry_count,
            error_message=n.error_message,
        )

    def _new_row(self, draft: NotificationDraft) -> Notification:
        now = self.clock()
        return Notification(
            user_id=draft.user_id,
            user_email=draft.user_email,
            user_name=draft.user_name,
            type=draft.type,
            subject=draft.subject,
            message=draft.message,
            book_id=draft.book_id,
            borrowing_record_id=draft.borrowing_record_id,
            created_at=now,
            scheduled_for=draft.scheduled_for or now,
            is_sent=False,
            retry_count=0,
        )

    @staticmethod
    def _eligible_at():
        # Rows written by other services may leave scheduled_for empty
        return func.coalesce(Notification.scheduled_for, Notification.created_at)

    def create(self, draft: NotificationDraft) -> NotificationRecord:
        row = self._new_row(draft)
        with store_errors(self.session, "create notification"):
            self.session.add(row)
            self.session.commit()
            self.session.refresh(row)
        return self._to_dto(row)

    def find_pending(self, limit: int = 100) -> List[NotificationRecord]:
        now = self.clock()
        with store_errors(self.session, "find pending notifications"):
            rows = self.session.exec(
                select(Notification)
                .where(Notification.is_sent == False)
                .where(self._eligible_at() <= now)
                .where(Notification.retry_count < self.max_retries)
                .order_by(self._eligible_at(), Notification.id)
                .limit(limit)
            ).all()
        return [self._to_dto(r) for r in rows]

    def find_by_user(self, user_id: str) -> List[NotificationRecord]:
        with store_errors(self.session, "find notifications by user"):
            rows = self.session.exec(
                select(Notification)
                .where(Notification.user_id == user_id)
                .order_by(Notification.created_at.desc(), Notification.id.desc())
                .limit(USER_HISTORY_LIMIT)
            ).all()
        return [self._to_dto(r) for r in rows]

    def get(self, notification_id: int) -> Optional[NotificationRecord]:
        with store_errors(self.session, "get notification"):
            n = self.session.exec(
                select(Notification)
                .where(Notification.id == notification_id)
                .execution_options(populate_existing=True)
            ).first()
        return self._to_dto(n) if n else None

    def _conditional_update(self, notification_id: int, operation: str, *conditions, **values) -> bool:
        # Compare-and-set on is_sent: a finalized row is never touched again
        table = Notification.__table__
        stmt = (
            update(table)
            .where(table.c.id == notification_id)
            .where(table.c.is_sent == False)
            .where(*conditions)
            .values(**values)
        )
        with store_errors(self.session, operation):
            result = self.session.connection().execute(stmt)
            self.session.commit()
        return result.rowcount == 1

    def claim(self, notification_id: int, until: datetime) -> bool:
        table = Notification.__table__
        return self._conditional_update(
            notification_id,
            "claim notification",
            func.coalesce(table.c.scheduled_for, table.c.created_at) <= self.clock(),
            table.c.retry_count < self.max_retries,
            scheduled_for=until,
        )

    def mark_sent(self, notification_id: int, sent_at: datetime) -> bool:
        return self._conditional_update(
            notification_id, "mark notification sent", is_sent=True, sent_at=sent_at
        )

    def mark_failed(self, notification_id: int, error_message: str) -> bool:
        table = Notification.__table__
        # Releases any claim: the row is eligible again on the next cycle
        return self._conditional_update(
            notification_id,
            "mark notification failed",
            retry_count=table.c.retry_count + 1,
            error_message=error_message,
            scheduled_for=self.clock(),
        )

    def _recent_overdue_query(self, borrowing_record_id: int, since: datetime):
        return (
            select(Notification.id)
            .where(Notification.borrowing_record_id == borrowing_record_id)
            .where(Notification.type == NotificationType.OVERDUE_NOTICE)
            .where(Notification.created_at >= since)
            .limit(1)
        )

    def exists_recent_overdue_notice(self, borrowing_record_id: int, since: datetime) -> bool:
        with store_errors(self.session, "check recent overdue notice"):
            found = self.session.exec(self._recent_overdue_query(borrowing_record_id, since)).first()
        return found is not None

    def create_overdue_notice(self, draft: NotificationDraft, since: datetime) -> Optional[NotificationRecord]:
        """Insert an OverdueNotice unless the borrowing already has one since `since`.

        The window check and the insert are one INSERT ... SELECT ... WHERE NOT EXISTS
        statement. On PostgreSQL the borrowing row is locked first, so the check
        sees a notice committed by a generator that held the lock before us.
        Returns None when nothing was inserted.
        """
        table = Notification.__table__
        row = self._new_row(draft)
        values = {c.name: getattr(row, c.name) for c in table.columns if c.name != "id"}
        recent = self._recent_overdue_query(draft.borrowing_record_id, since).correlate(None)
        stmt = insert(table).from_select(
            list(values),
            core_select(
                *[literal(v, type_=table.c[name].type).label(name) for name, v in values.items()]
            ).where(~recent.exists()),
        )

        with store_errors(self.session, "create overdue notice"):
            self.session.exec(
                select(BorrowingRecord.id)
                .where(BorrowingRecord.id == draft.borrowing_record_id)
                .with_for_update()
            ).first()
            if self.session.connection().execute(stmt).rowcount != 1:
                self.session.rollback()
                return None
            new_id = self.session.exec(
                select(Notification.id)
                .where(Notification.borrowing_record_id == draft.borrowing_record_id)
                .where(Notification.type == NotificationType.OVERDUE_NOTICE)
                .order_by(Notification.id.desc())
                .limit(1)
            ).one()
            self.session.commit()
        return self.get(new_id)

    def backlog_stats(self) -> BacklogStats:
        now = self.clock()
        unsent = Notification.is_sent == False
        live = Notification.retry_count < self.max_retries
        with store_errors(self.session, "compute backlog stats"):
            by_type_rows = self.session.exec(
                select(Notification.type, func.count())
                .where(unsent)
                .where(live)
                .group_by(Notification.type)
            ).all()
            ready = self.session.exec(
                select(func.count()).select_from(Notification).where(unsent).where(live).where(self._eligible_at() <= now)
            ).one()
            abandoned = self.session.exec(
                select(func.count()).select_from(Notification).where(unsent).where(Notification.retry_count >= self.max_retries)
            ).one()

        by_type = {NotificationType(t).value: c for t, c in by_type_rows}
        total = sum(by_type.values())
        return BacklogStats(
            total_pending=total,
            ready_to_send=ready,
            scheduled=total - ready,
            abandoned=abandoned,
            by_type=by_type,
        )
