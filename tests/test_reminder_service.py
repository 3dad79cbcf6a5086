from datetime import timedelta

import pytest

from library_notifier.application.ports.library_repo import BookDto, BorrowingDto, MemberDto
from library_notifier.application.ports.notification_repo import NotificationType
from library_notifier.application.services.reminder_service import (
    OVERDUE_SUBJECT,
    OverdueReminderService,
    days_overdue,
    render_overdue_message,
)
from library_notifier.infrastructure.persistence.sqlalchemy.repositories import (
    SqlLibraryRepository,
    SqlNotificationRepository,
)


@pytest.fixture
def notifications(session, clock):
    return SqlNotificationRepository(session, clock=clock)


@pytest.fixture
def service(session, clock, notifications):
    return OverdueReminderService(
        notifications=notifications,
        library=SqlLibraryRepository(session),
        clock=clock,
    )


def overdue_notices(notifications, user_id):
    return [n for n in notifications.find_by_user(user_id) if n.type == NotificationType.OVERDUE_NOTICE]


def test_creates_one_notice_for_overdue_borrowing(service, notifications, library, clock):
    library.add_member("reader", email="reader@example.com", full_name="Ada Reader")
    book = library.add_book("Dune", "Frank Herbert")
    record = library.add_borrowing(book.id, "reader", due_date=clock.now - timedelta(days=5))

    assert service.run() == 1

    [notice] = overdue_notices(notifications, "reader")
    assert notice.borrowing_record_id == record.id
    assert notice.book_id == book.id
    assert notice.user_email == "reader@example.com"
    assert notice.subject == OVERDUE_SUBJECT
    assert notice.scheduled_for == clock.now
    assert "5 day(s) overdue" in notice.message
    assert "Dune" in notice.message and "Frank Herbert" in notice.message
    assert "Dear Ada Reader," in notice.message
    assert (clock.now - timedelta(days=5)).strftime("%Y-%m-%d") in notice.message

    # Immediate second run is deduplicated
    assert service.run() == 0
    assert len(overdue_notices(notifications, "reader")) == 1


def test_dedup_window_reopens_after_24_hours(service, notifications, library, clock):
    library.add_member("reader")
    book = library.add_book()
    library.add_borrowing(book.id, "reader", due_date=clock.now - timedelta(days=1))

    assert service.run() == 1
    clock.advance(hours=1)
    assert service.run() == 0
    clock.advance(hours=22, minutes=59)
    assert service.run() == 0

    clock.advance(hours=1, minutes=1)  # T + 25h
    assert service.run() == 1
    assert len(overdue_notices(notifications, "reader")) == 2


def test_ignores_returned_and_not_yet_due_borrowings(service, notifications, library, clock):
    library.add_member("reader")
    book = library.add_book()
    library.add_borrowing(book.id, "reader", due_date=clock.now - timedelta(days=3), returned_date=clock.now - timedelta(days=1))
    library.add_borrowing(book.id, "reader", due_date=clock.now + timedelta(days=3))

    assert service.run() == 0
    assert notifications.find_by_user("reader") == []


def test_missing_member_or_book_skips_only_that_record(service, notifications, library, clock):
    library.add_member("reader")
    book = library.add_book()
    library.add_borrowing(book.id, "ghost", due_date=clock.now - timedelta(days=2))
    library.add_borrowing(9999, "reader", due_date=clock.now - timedelta(days=2))
    good = library.add_borrowing(book.id, "reader", due_date=clock.now - timedelta(days=2))

    assert service.run() == 1
    [notice] = overdue_notices(notifications, "reader")
    assert notice.borrowing_record_id == good.id
    assert notifications.find_by_user("ghost") == []


def test_two_generators_on_separate_sessions_create_one_notice(engine, session, library, clock):
    from sqlmodel import Session

    library.add_member("reader")
    book = library.add_book()
    library.add_borrowing(book.id, "reader", due_date=clock.now - timedelta(days=2))

    with Session(engine) as s1, Session(engine) as s2:
        a = OverdueReminderService(SqlNotificationRepository(s1, clock=clock), SqlLibraryRepository(s1), clock=clock)
        b = OverdueReminderService(SqlNotificationRepository(s2, clock=clock), SqlLibraryRepository(s2), clock=clock)
        assert a.run() + b.run() == 1


class StaleCheckRepo:
    """Dedup check says 'no notice' but the locked insert finds one (lost race)."""

    def exists_recent_overdue_notice(self, borrowing_record_id, since):
        return False

    def create_overdue_notice(self, draft, since):
        return None


class OneOverdueLibrary:
    def __init__(self, now):
        self.record = BorrowingDto(id=1, book_id=2, user_id="reader", user_name="reader",
                                   borrowed_date=now - timedelta(days=20), due_date=now - timedelta(days=6))

    def find_overdue(self, now):
        return [self.record]

    def get_member(self, user_id):
        return MemberDto(id=1, user_id="reader", user_name="reader", email="r@example.com", full_name="R", is_active=True)

    def get_book(self, book_id):
        return BookDto(id=2, title="Emma", author="Jane Austen")


def test_lost_race_on_insert_is_not_counted(clock):
    svc = OverdueReminderService(StaleCheckRepo(), OneOverdueLibrary(clock.now), clock=clock)
    assert svc.run() == 0


def test_days_overdue_floors_partial_days(clock):
    assert days_overdue(clock.now - timedelta(days=5), clock.now) == 5
    assert days_overdue(clock.now - timedelta(days=5, hours=23), clock.now) == 5
    assert days_overdue(clock.now - timedelta(hours=3), clock.now) == 0


def test_message_escapes_catalog_text(clock):
    member = MemberDto(id=1, user_id="u", user_name="u", email="u@example.com", full_name="<b>Bob</b>", is_active=True)
    book = BookDto(id=1, title="Tom & Jerry", author="Anon")
    record = BorrowingDto(id=1, book_id=1, user_id="u", user_name="u",
                          borrowed_date=clock.now - timedelta(days=10), due_date=clock.now - timedelta(days=1))
    body = render_overdue_message(member, book, record, 1)
    assert "&lt;b&gt;Bob&lt;/b&gt;" in body
    assert "Tom &amp; Jerry" in body
