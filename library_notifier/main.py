from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from dotenv import load_dotenv
import logging

# Load environment variables as early as possible
load_dotenv()

from .core.config import settings
from .database import engine, create_db_and_tables, verify_database
from .dependencies import build_scheduler, get_mailer
from .exceptions import StoreUnavailable, http_exception_handler, store_unavailable_handler
from .middleware import LoggingMiddleware, ErrorHandlingMiddleware
from .routers import notifications_router
from .utils import utcnow

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Starting {settings.APP_NAME}...")
    app.state.db_init_ok = True
    app.state.db_init_error = None
    app.state.scheduler = None
    try:
        if settings.CREATE_TABLES_ON_STARTUP:
            create_db_and_tables()
        verify_database()
        logger.info("Database connection successful")
    except Exception as e:
        # Do not crash the app; report via health endpoint
        app.state.db_init_ok = False
        app.state.db_init_error = str(e)
        logger.exception("Database verification failed. The library API must create the schema first.")

    if settings.SCHEDULER_ENABLED:
        app.state.scheduler = build_scheduler(engine, get_mailer(), settings)
        app.state.scheduler.start()

    yield

    # Shutdown
    if app.state.scheduler is not None:
        await app.state.scheduler.stop()
    logger.info(f"Shutting down {settings.APP_NAME}...")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Library Notification Service - Handles email notifications for library operations",
    debug=settings.DEBUG,
    lifespan=lifespan,
    docs_url=("/docs" if settings.DOCS_ENABLED else None),
    redoc_url=("/redoc" if settings.DOCS_ENABLED else None),
    openapi_url=("/openapi.json" if settings.DOCS_ENABLED else None)
)

app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(StoreUnavailable, store_unavailable_handler)

app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(notifications_router.router)


@app.get("/health")
def health_check():
    scheduler = getattr(app.state, "scheduler", None)
    return {
        "status": "healthy" if getattr(app.state, "db_init_ok", True) else "degraded",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": utcnow().isoformat(),
        "database_error": getattr(app.state, "db_init_error", None),
        "scheduler": scheduler.state.value if scheduler else "disabled",
    }
