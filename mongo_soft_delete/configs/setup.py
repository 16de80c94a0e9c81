from contextlib import asynccontextmanager
from typing import List, Optional, Type

from beanie import Document

from mongo_soft_delete.configs.settings import settings
from mongo_soft_delete.databases import mongodb
from mongo_soft_delete.utils import setup_logging, get_logger, init_sentry

logger = get_logger(__name__)


def _setup_logging() -> None:
    """Setup logging from LOG_* settings"""
    setup_logging(
        level="DEBUG" if settings.APP_DEBUG else settings.LOG_LEVEL,
        app_name=settings.APP_NAME,
        enable_json=settings.LOG_JSON or settings.APP_ENV == "prod",
        log_file=settings.LOG_FILE,
    )


def _setup_sentry() -> None:
    """Setup Sentry monitoring for production environment"""
    if not settings.SENTRY_DSN:
        logger.debug("Sentry DSN not configured - monitoring disabled")
        return

    if settings.APP_ENV != "prod":
        logger.info("Sentry monitoring disabled - not in production environment")
        return

    init_sentry(
        dsn=settings.SENTRY_DSN,
        environment=settings.APP_ENV,
        release=settings.RELEASE,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        send_default_pii=settings.SENTRY_SEND_DEFAULT_PII,
    )
    logger.info("Sentry monitoring initialized for production environment")


@asynccontextmanager
async def lifespan(document_models: Optional[List[Type[Document]]] = None):
    """
    Configure logging and monitoring, connect MongoDB, disconnect on exit

    Usable directly as a FastAPI lifespan body or around a script:

        async with lifespan([Folder]) as db:
            folders = db.collection("folders")
    """
    _setup_logging()
    _setup_sentry()

    try:
        await mongodb.connect(document_models=document_models)
    except Exception as e:
        logger.error(f"Failed to initialize MongoDB: {str(e)}")
        raise

    try:
        yield mongodb
    finally:
        await mongodb.disconnect()
