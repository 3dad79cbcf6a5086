from datetime import datetime
from typing import List, Optional
from sqlmodel import Session, select

from .....db.models import Book, BorrowingRecord, User
from .....application.ports.library_repo import (
    LibraryRepository,
    BookDto,
    BorrowingDto,
    MemberDto,
)
from ..session_errors import store_errors


class SqlLibraryRepository(LibraryRepository):
    def __init__(self, session: Session):
        self.session = session

    def _borrowing_to_dto(self, br: BorrowingRecord) -> BorrowingDto:
        return BorrowingDto(
            id=br.id,
            book_id=br.book_id,
            user_id=br.user_id,
            user_name=br.user_name,
            borrowed_date=br.borrowed_date,
            due_date=br.due_date,
            returned_date=br.returned_date,
        )

    def _member_to_dto(self, u: User) -> MemberDto:
        return MemberDto(
            id=u.id,
            user_id=u.user_id,
            user_name=u.user_name,
            email=u.email,
            full_name=u.full_name or u.user_name,
            is_active=bool(u.is_active),
        )

    def find_overdue(self, now: datetime) -> List[BorrowingDto]:
        with store_errors(self.session, "find overdue borrowings"):
            rows = self.session.exec(
                select(BorrowingRecord)
                .where(BorrowingRecord.returned_date == None)
                .where(BorrowingRecord.due_date < now)
                .order_by(BorrowingRecord.due_date, BorrowingRecord.id)
            ).all()
        return [self._borrowing_to_dto(r) for r in rows]

    def get_member(self, user_id: str) -> Optional[MemberDto]:
        with store_errors(self.session, "get member"):
            u = self.session.exec(select(User).where(User.user_id == user_id)).first()
        return self._member_to_dto(u) if u else None

    def get_active_member(self, user_id: str) -> Optional[MemberDto]:
        with store_errors(self.session, "get active member"):
            u = self.session.exec(
                select(User).where(User.user_id == user_id).where(User.is_active == True)
            ).first()
        return self._member_to_dto(u) if u else None

    def get_book(self, book_id: int) -> Optional[BookDto]:
        with store_errors(self.session, "get book"):
            b = self.session.exec(select(Book).where(Book.id == book_id)).first()
        return BookDto(id=b.id, title=b.title, author=b.author) if b else None
