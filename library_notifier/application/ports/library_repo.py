from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Protocol


@dataclass
class BorrowingDto:
    id: int
    book_id: int
    user_id: str
    user_name: str
    borrowed_date: datetime
    due_date: datetime
    returned_date: Optional[datetime] = None

    @property
    def is_returned(self) -> bool:
        return self.returned_date is not None

    def is_overdue(self, now: datetime) -> bool:
        return not self.is_returned and now > self.due_date


@dataclass
class MemberDto:
    id: int
    user_id: str
    user_name: str
    email: str
    full_name: str
    is_active: bool


@dataclass
class BookDto:
    id: int
    title: str
    author: str


class LibraryRepository(Protocol):
    """Read-only view of the tables owned by the library API."""

    def find_overdue(self, now: datetime) -> List[BorrowingDto]:
        ...

    def get_member(self, user_id: str) -> Optional[MemberDto]:
        ...

    def get_active_member(self, user_id: str) -> Optional[MemberDto]:
        ...

    def get_book(self, book_id: int) -> Optional[BookDto]:
        ...
