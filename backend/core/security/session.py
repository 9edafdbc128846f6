# ------------------------------ SESSION HELPERS ------------------------------
from typing import Any, Dict, Iterable, List, Optional
import json
import time
from datetime import datetime, timezone
from playwright.async_api import BrowserContext
import logging

from core.config.settings import settings
from core.database import SessionLocal
from core.database.models import SessionKind
from core.database.db_service import DatabaseService

logger = logging.getLogger(__name__)

REQUIRED_COOKIES = ["otherbuyee", "userProfile", "userId"]

# ------------------------------ COOKIE VALIDATION ------------------------------

def _cookie_is_live(cookie: Dict[str, Any], now: float) -> bool:
    """A cookie without an expiry (-1) lives for the browser session."""
    expires = cookie.get("expires", -1)
    if expires is None or expires == -1:
        return True
    try:
        return float(expires) > now
    except (TypeError, ValueError):
        return False

def missing_required_cookies(
    storage_state: Dict[str, Any],
    required: Iterable[str] = REQUIRED_COOKIES,
    now: Optional[float] = None
) -> List[str]:
    """Return the required cookie names that are absent or expired."""
    now = time.time() if now is None else now
    cookies = storage_state.get("cookies") or []
    live_names = {
        cookie.get("name") for cookie in cookies
        if isinstance(cookie, dict) and _cookie_is_live(cookie, now)
    }
    return [name for name in required if name not in live_names]

# ------------------------------ STORAGE STATE PERSISTENCE ------------------------------

async def save_storage_state(context: BrowserContext, kind: SessionKind = SessionKind.LOGIN, user_agent: Optional[str] = None) -> bool:
    """Save browser storage state to the database."""
    try:
        storage_state = await context.storage_state()
        storage_state_json = json.dumps(storage_state)

        db = SessionLocal()
        try:
            saved = DatabaseService.save_session_storage(
                db,
                kind,
                storage_state_json,
                user_agent or settings.scraping.user_agent,
                settings.scraping.session_expiry_hours,
            )
            if saved:
                logger.info(f"Saved {kind.value} session ({len(storage_state.get('cookies', []))} cookies)")
            return saved
        finally:
            db.close()

    except Exception as e:
        logger.error(f"Failed to save {kind.value} storage state: {e}")
        return False

def get_storage_state(kind: SessionKind = SessionKind.LOGIN) -> Optional[Dict[str, Any]]:
    """Load a stored storage state; missing, expired or corrupt state yields None."""
    try:
        db = SessionLocal()
        try:
            session_storage = DatabaseService.get_session_storage(db, kind)
            if not session_storage or not session_storage.storage_state:
                return None

            if session_storage.expires_at:
                expires_at = session_storage.expires_at
                if expires_at.tzinfo is None:
                    expires_at = expires_at.replace(tzinfo=timezone.utc)
                if expires_at < datetime.now(timezone.utc):
                    logger.info(f"Stored {kind.value} session has expired")
                    return None

            storage_state = json.loads(session_storage.storage_state)
            if not isinstance(storage_state, dict):
                logger.warning(f"Stored {kind.value} session is not a storage state object")
                return None
            return storage_state

        finally:
            db.close()

    except ValueError as e:
        logger.warning(f"Stored {kind.value} session is malformed: {e}")
        return None
    except Exception as e:
        logger.error(f"Error retrieving {kind.value} session: {e}")
        return None

def delete_storage_state(kind: SessionKind) -> None:
    """Remove a stored storage state if present."""
    try:
        db = SessionLocal()
        try:
            if DatabaseService.delete_session_storage(db, kind):
                logger.info(f"Cleared {kind.value} session")
        finally:
            db.close()
    except Exception as e:
        logger.warning(f"Failed to clear {kind.value} session: {e}")

# ------------------------------ END OF FILE ------------------------------
