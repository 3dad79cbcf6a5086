# Models package (re-export tables for stable imports)
from .notification import Notification
from .library import Book, BorrowingRecord, User

__all__ = [
    "Notification",
    "Book",
    "BorrowingRecord",
    "User",
]
