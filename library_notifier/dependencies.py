from functools import lru_cache
from typing import Callable
from datetime import timedelta
from fastapi import Depends
from sqlalchemy.engine import Engine
from sqlmodel import Session

from .core.config import Settings, settings
from .database import get_session
from .application.ports.mailer import Mailer
from .application.services import (
    DispatchService,
    NotificationScheduler,
    NotificationService,
    OverdueReminderService,
)
from .infrastructure.mail import build_mailer
from .infrastructure.persistence.sqlalchemy.repositories import (
    SqlLibraryRepository,
    SqlNotificationRepository,
)


@lru_cache()
def get_mailer() -> Mailer:
    return build_mailer(settings)


def get_notification_service(
    session: Session = Depends(get_session),
    mailer: Mailer = Depends(get_mailer),
) -> NotificationService:
    return NotificationService(
        notifications=SqlNotificationRepository(session, max_retries=settings.MAX_RETRIES),
        library=SqlLibraryRepository(session),
        mailer=mailer,
        claim_lease=timedelta(seconds=settings.DISPATCH_CLAIM_LEASE_SECONDS),
    )


def make_dispatch_phase(bind: Engine, mailer: Mailer, config: Settings) -> Callable[[], None]:
    def dispatch_phase() -> None:
        # Fresh session per phase
        with Session(bind) as session:
            DispatchService(
                repo=SqlNotificationRepository(session, max_retries=config.MAX_RETRIES),
                mailer=mailer,
                batch_size=config.DISPATCH_BATCH_SIZE,
                max_retries=config.MAX_RETRIES,
                claim_lease=timedelta(seconds=config.DISPATCH_CLAIM_LEASE_SECONDS),
            ).run()
    return dispatch_phase


def make_reminder_phase(bind: Engine, config: Settings) -> Callable[[], int]:
    def reminder_phase() -> int:
        with Session(bind) as session:
            return OverdueReminderService(
                notifications=SqlNotificationRepository(session, max_retries=config.MAX_RETRIES),
                library=SqlLibraryRepository(session),
                dedup_window=timedelta(hours=config.OVERDUE_DEDUP_HOURS),
            ).run()
    return reminder_phase


def build_scheduler(bind: Engine, mailer: Mailer, config: Settings) -> NotificationScheduler:
    return NotificationScheduler(
        dispatch_phase=make_dispatch_phase(bind, mailer, config),
        reminder_phase=make_reminder_phase(bind, config),
        interval_seconds=config.POLL_INTERVAL_SECONDS,
        startup_delay_seconds=config.STARTUP_DELAY_SECONDS,
    )
