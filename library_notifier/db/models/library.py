# library_notifier/db/models/library.py
# Tables owned and migrated by the library API. This service only reads them.
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime

class Book(SQLModel, table=True):
    __tablename__ = "books"
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(max_length=200)
    author: str = Field(max_length=200)
    isbn: str = Field(default="", max_length=20)
    published_date: Optional[datetime] = Field(default=None)
    genre: str = Field(default="", max_length=100)
    is_available: bool = Field(default=True)
    description: str = Field(default="")


class BorrowingRecord(SQLModel, table=True):
    __tablename__ = "borrowing_records"
    id: Optional[int] = Field(default=None, primary_key=True)
    book_id: int = Field(index=True)
    user_id: str = Field(max_length=100, index=True)
    user_name: str = Field(default="", max_length=100)
    borrowed_date: datetime
    due_date: datetime = Field(index=True)
    returned_date: Optional[datetime] = Field(default=None)


class User(SQLModel, table=True):
    __tablename__ = "users"
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(max_length=100, unique=True, index=True)
    user_name: str = Field(max_length=100)
    email: str = Field(max_length=200)
    full_name: str = Field(default="", max_length=200)
    membership_type: str = Field(default="Standard", max_length=20)
    joined_date: Optional[datetime] = Field(default=None)
    is_active: bool = Field(default=True)
