"""Standalone scheduler process: ``python -m library_notifier.worker``.

Runs the dispatch/overdue loop without the HTTP API, against the same database.
"""
import asyncio
import logging
import signal

from dotenv import load_dotenv

load_dotenv()

from .core.config import settings
from .database import engine, create_db_and_tables, verify_database
from .dependencies import build_scheduler, get_mailer

logger = logging.getLogger(__name__)


async def run_worker() -> None:
    if settings.CREATE_TABLES_ON_STARTUP:
        create_db_and_tables()
    verify_database()

    scheduler = build_scheduler(engine, get_mailer(), settings)
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, scheduler.request_stop)
        except NotImplementedError:
            pass

    await scheduler.start()


def main() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL),
        format=settings.LOG_FORMAT
    )
    asyncio.run(run_worker())


if __name__ == "__main__":
    main()
