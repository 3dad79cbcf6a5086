# library_notifier/schemas/notification.py
from dataclasses import asdict
from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..application.ports.notification_repo import NotificationDraft, NotificationRecord, NotificationType


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SendNotificationRequest(CamelModel):
    user_id: str = Field(min_length=1, max_length=100)
    subject: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1)


class SendNotificationResponse(CamelModel):
    message: str = "Notification sent successfully"
    user_id: str
    subject: str


class NotificationScheduleRequest(CamelModel):
    user_id: str = Field(min_length=1, max_length=100)
    user_email: str = Field(min_length=3, max_length=200, pattern=r"^[^@\s]+@[^@\s]+$")
    user_name: str = Field(default="", max_length=100)
    type: NotificationType = NotificationType.MANUAL_NOTIFICATION
    subject: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1)
    book_id: Optional[int] = None
    borrowing_record_id: Optional[int] = None
    scheduled_for: Optional[datetime] = None

    @field_validator("scheduled_for")
    @classmethod
    def _to_naive_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

    def to_draft(self) -> NotificationDraft:
        return NotificationDraft(
            user_id=self.user_id,
            user_email=self.user_email,
            user_name=self.user_name,
            type=self.type,
            subject=self.subject,
            message=self.message,
            book_id=self.book_id,
            borrowing_record_id=self.borrowing_record_id,
            scheduled_for=self.scheduled_for,
        )


class NotificationResponse(CamelModel):
    id: int
    user_id: str
    user_email: str
    user_name: str
    type: NotificationType
    subject: str
    message: str
    book_id: Optional[int] = None
    borrowing_record_id: Optional[int] = None
    created_at: datetime
    scheduled_for: datetime
    is_sent: bool
    sent_at: Optional[datetime] = None
    retry_count: int
    error_message: Optional[str] = None

    @classmethod
    def from_record(cls, record: NotificationRecord) -> "NotificationResponse":
        return cls(**asdict(record))


class UserNotificationsResponse(CamelModel):
    user_id: str
    count: int
    notifications: List[NotificationResponse]


class PendingNotificationsResponse(CamelModel):
    count: int
    notifications: List[NotificationResponse]


class TypeCount(CamelModel):
    type: str
    count: int


class NotificationStatsResponse(CamelModel):
    total_pending: int
    ready_to_send: int
    scheduled: int
    abandoned: int
    by_type: List[TypeCount]
