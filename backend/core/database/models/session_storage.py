# ------------------------------ IMPORTS ------------------------------
from enum import Enum

from sqlalchemy import Column, Integer, String, DateTime, Text, func
from core.database.connection import Base

# ------------------------------ SESSION KINDS ------------------------------

class SessionKind(str, Enum):
    LOGIN = "login"
    TEMPORARY = "temporary"

# ------------------------------ SESSION STORAGE MODEL ------------------------------

class SessionStorage(Base):
    """Session storage model - stores browser storage state for the Buyee login."""

    __tablename__ = "session_storage"

    id = Column(Integer, primary_key=True, index=True)

    kind = Column(String, nullable=False, unique=True, index=True, comment="login or temporary (pre-2FA)")
    storage_state = Column(Text, nullable=True, comment="JSON string of browser storage state")
    user_agent = Column(String, nullable=True, comment="User agent the state was captured with")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    expires_at = Column(DateTime(timezone=True), nullable=True, comment="Session expiration timestamp")

    def __repr__(self):
        return f"<SessionStorage(id={self.id}, kind={self.kind})>"

# ------------------------------ END OF FILE ------------------------------
