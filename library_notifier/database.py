from sqlmodel import SQLModel, create_engine, Session, select, func
from sqlalchemy.engine import Engine
import logging

from .core.config import settings
from .db.models import User

logger = logging.getLogger(__name__)


def build_engine(db_url: str, echo: bool = False) -> Engine:
    """Choose engine options based on database scheme"""
    engine_kwargs = {}

    if db_url.startswith("sqlite"):
        # Scheduler phases run in worker threads
        engine_kwargs.update({
            "connect_args": {"check_same_thread": False}
        })
    else:
        # Better resiliency for managed Postgres
        engine_kwargs.update({
            "pool_pre_ping": True,
            "pool_recycle": 300,
            "pool_size": 5,
            "max_overflow": 10,
        })

    return create_engine(db_url, echo=echo, **engine_kwargs)


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)


def create_db_and_tables(bind: Engine = engine):
    # The library API owns the schema in production; this is for local runs and tests.
    SQLModel.metadata.create_all(bind)


def verify_database(bind: Engine = engine) -> int:
    """Check connectivity and that the shared tables exist. Returns the member count."""
    logger.info(f"Checking database connection: {bind.url.render_as_string(hide_password=True)}")
    with Session(bind) as session:
        user_count = session.exec(select(func.count()).select_from(User)).one()
    logger.info(f"Users in database: {user_count}")
    if user_count == 0:
        logger.warning("Users table is empty. Make sure the library API has run its migrations and seeded data.")
    return user_count


def get_session():
    with Session(engine) as session:
        yield session
