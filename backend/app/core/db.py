import logging

from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, create_engine

from app.core.config import settings

# Registers the table models on SQLModel.metadata.
from app import models  # noqa: F401

logger = logging.getLogger(__name__)

# Remote MySQL hosts drop idle connections well before the server-side
# wait_timeout; recycle below that and ping on checkout.
POOL_RECYCLE_SECONDS = 280


def build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=POOL_RECYCLE_SECONDS,
        connect_args={"connect_timeout": settings.DB_CONNECT_TIMEOUT},
    )


engine = build_engine(settings.SQLALCHEMY_DATABASE_URI)


def init_db(db_engine: Engine) -> bool:
    """Create the tables if they are missing.

    A failure here is logged and swallowed: the API keeps serving and every
    later storage call reports its own error.
    """
    try:
        SQLModel.metadata.create_all(db_engine)
    except SQLAlchemyError as exc:
        logger.error("Database schema initialization failed: %s", exc)
        return False
    logger.info("Database tables verified/created.")
    return True
