# ------------------------------ IMPORTS ------------------------------
from .connection import get_db, init_db, engine, Base, SessionLocal
from .models import SessionStorage, SessionKind, BidRecord
from .db_service import DatabaseService

__all__ = [
    "get_db",
    "init_db",
    "engine",
    "Base",
    "SessionLocal",
    "SessionStorage",
    "SessionKind",
    "BidRecord",
    "DatabaseService",
]
