# library_notifier/db/models/notification.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime

from ...application.ports.notification_repo import NotificationType
from ...utils import utcnow

class Notification(SQLModel, table=True):
    __tablename__ = "notifications"
    id: Optional[int] = Field(default=None, primary_key=True)
    # Snapshot of the member at creation time; deliberately not a foreign key.
    user_id: str = Field(max_length=100, index=True)
    user_email: str = Field(max_length=200)
    user_name: str = Field(max_length=100)
    type: NotificationType
    subject: str = Field(max_length=200)
    message: str
    book_id: Optional[int] = Field(default=None)
    borrowing_record_id: Optional[int] = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    scheduled_for: Optional[datetime] = Field(default=None, index=True)
    is_sent: bool = Field(default=False, index=True)
    sent_at: Optional[datetime] = Field(default=None)
    retry_count: int = Field(default=0)
    error_message: Optional[str] = Field(default=None)
