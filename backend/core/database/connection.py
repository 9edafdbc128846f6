# ------------------------------ IMPORTS ------------------------------
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from typing import Generator
import logging

from core.config.settings import settings

# ------------------------------ LOGGING ------------------------------
logger = logging.getLogger(__name__)

# ------------------------------ BASE CLASS ------------------------------
Base = declarative_base()

# ------------------------------ DATABASE ENGINE ------------------------------

def _engine_options() -> dict:
    """SQLite connections are shared across the API's worker threads."""
    if settings.database.is_sqlite:
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_size": settings.database.pool_size,
        "max_overflow": settings.database.max_overflow,
    }

engine = create_engine(settings.database.url, echo=False, **_engine_options())

# ------------------------------ SESSION FACTORY ------------------------------
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# ------------------------------ DATABASE FUNCTIONS ------------------------------

def get_db() -> Generator[Session, None, None]:
    """Request-scoped session for the bid ledger endpoints."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db() -> None:
    """Create the session storage and bid ledger tables if they do not exist."""
    try:
        from core.database.models import SessionStorage, BidRecord
        Base.metadata.create_all(bind=engine)
        logger.info(f"Database tables ready ({engine.dialect.name})")

    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        raise

# ------------------------------ END OF FILE ------------------------------
