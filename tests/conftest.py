from datetime import datetime, timedelta
from typing import Optional

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from library_notifier.db.models import Book, BorrowingRecord, User


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class Library:
    """Seeds the read-only library tables the way the library API would."""

    def __init__(self, session: Session):
        self.session = session

    def add_member(self, user_id: str, email: Optional[str] = None, full_name: str = "Jane Reader", is_active: bool = True) -> User:
        u = User(
            user_id=user_id,
            user_name=user_id,
            email=email or f"{user_id}@example.com",
            full_name=full_name,
            joined_date=datetime(2024, 1, 1),
            is_active=is_active,
        )
        self.session.add(u)
        self.session.commit()
        self.session.refresh(u)
        return u

    def add_book(self, title: str = "Dune", author: str = "Frank Herbert") -> Book:
        b = Book(title=title, author=author, isbn="9780441013593")
        self.session.add(b)
        self.session.commit()
        self.session.refresh(b)
        return b

    def add_borrowing(self, book_id: int, user_id: str, due_date: datetime, returned_date: Optional[datetime] = None) -> BorrowingRecord:
        br = BorrowingRecord(
            book_id=book_id,
            user_id=user_id,
            user_name=user_id,
            borrowed_date=due_date - timedelta(days=14),
            due_date=due_date,
            returned_date=returned_date,
        )
        self.session.add(br)
        self.session.commit()
        self.session.refresh(br)
        return br


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 11, 10, 9, 0, 0))


@pytest.fixture
def library(session):
    return Library(session)
