import logging
from typing import Optional, List
from datetime import datetime, timedelta, timezone
from sqlalchemy.orm import Session

from core.database.models import SessionStorage, SessionKind, BidRecord

# ------------------------------ LOGGING ------------------------------
logger = logging.getLogger(__name__)

# ------------------------------ DATABASE SERVICE ------------------------------

class DatabaseService:
    """Queries and upserts for session storage and the bid ledger."""

    # ------------------------------ HELPER METHODS ------------------------------

    @staticmethod
    def _save_entity(
        db: Session,
        entity,
        error_context: str = "entity"
    ) -> bool:
        """Commit a single entity, rolling back on failure."""
        try:
            db.commit()
            db.refresh(entity)
            return True
        except Exception as e:
            logger.error(f"Error saving {error_context}: {e}")
            db.rollback()
            return False

    # ------------------------------ SESSION STORAGE ------------------------------

    @staticmethod
    def get_session_storage(db: Session, kind: SessionKind) -> Optional[SessionStorage]:
        """Get stored session state by kind."""
        return db.query(SessionStorage).filter(SessionStorage.kind == kind.value).first()

    @staticmethod
    def save_session_storage(
        db: Session,
        kind: SessionKind,
        storage_state_json: str,
        user_agent: Optional[str],
        expiry_hours: int
    ) -> bool:
        """Create or replace the stored session state of a kind."""
        session_storage = DatabaseService.get_session_storage(db, kind)
        if not session_storage:
            session_storage = SessionStorage(kind=kind.value)
            db.add(session_storage)

        session_storage.storage_state = storage_state_json
        session_storage.user_agent = user_agent
        session_storage.expires_at = datetime.now(timezone.utc) + timedelta(hours=expiry_hours)

        return DatabaseService._save_entity(db, session_storage, f"{kind.value} session")

    @staticmethod
    def delete_session_storage(db: Session, kind: SessionKind) -> bool:
        """Delete stored session state. Returns True if a row was removed."""
        session_storage = DatabaseService.get_session_storage(db, kind)
        if not session_storage:
            return False
        db.delete(session_storage)
        db.commit()
        return True

    # ------------------------------ BID LEDGER ------------------------------

    @staticmethod
    def get_bid(db: Session, product_url: str) -> Optional[BidRecord]:
        """Get the bid record for a product URL."""
        return db.query(BidRecord).filter(BidRecord.product_url == product_url).first()

    @staticmethod
    def get_bids(db: Session) -> List[BidRecord]:
        """Get all bid records, most recent first."""
        return db.query(BidRecord).order_by(BidRecord.placed_at.desc()).all()

    @staticmethod
    def upsert_bid(
        db: Session,
        product_url: str,
        bid_amount: float,
        auction_id: Optional[str] = None,
        title: Optional[str] = None,
        thumbnail: Optional[str] = None,
        placed_at: Optional[datetime] = None
    ) -> Optional[BidRecord]:
        """Insert a bid record or update the existing one for the same URL."""
        bid = DatabaseService.get_bid(db, product_url)
        if not bid:
            bid = BidRecord(product_url=product_url)
            db.add(bid)

        bid.bid_amount = bid_amount
        bid.placed_at = placed_at or datetime.now(timezone.utc)
        if auction_id:
            bid.auction_id = auction_id
        if title:
            bid.title = title
        if thumbnail:
            bid.thumbnail = thumbnail

        if DatabaseService._save_entity(db, bid, f"bid for {product_url}"):
            logger.info(f"Bid ledger updated: {product_url} -> {bid_amount}")
            return bid
        return None

    @staticmethod
    def update_bid_status(
        db: Session,
        product_url: str,
        current_price: Optional[str],
        time_remaining: Optional[str]
    ) -> Optional[BidRecord]:
        """Store refreshed price/time on an existing bid record."""
        bid = DatabaseService.get_bid(db, product_url)
        if not bid:
            return None

        bid.current_price = current_price
        bid.time_remaining = time_remaining
        if DatabaseService._save_entity(db, bid, f"bid status for {product_url}"):
            return bid
        return None

# ------------------------------ END OF FILE ------------------------------
