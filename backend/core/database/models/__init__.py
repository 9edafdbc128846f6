# ------------------------------ IMPORTS ------------------------------
from .session_storage import SessionStorage, SessionKind
from .bid import BidRecord

__all__ = [
    "SessionStorage",
    "SessionKind",
    "BidRecord",
]
