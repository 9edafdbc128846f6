# ------------------------------ IMPORTS ------------------------------
from sqlalchemy import Column, Integer, String, Float, DateTime, func
from core.database.connection import Base

# ------------------------------ BID RECORD MODEL ------------------------------

class BidRecord(Base):
    """Bid record model - one row per product a bid was placed on."""

    __tablename__ = "bids"

    id = Column(Integer, primary_key=True, index=True)

    product_url = Column(String, nullable=False, unique=True, index=True, comment="Product page URL")
    auction_id = Column(String, nullable=True, index=True, comment="Auction ID parsed from the URL")
    bid_amount = Column(Float, nullable=False, comment="Last bid amount placed")

    title = Column(String, nullable=True)
    thumbnail = Column(String, nullable=True)

    current_price = Column(String, nullable=True, comment="Display price from the last refresh")
    time_remaining = Column(String, nullable=True, comment="Display time remaining from the last refresh")

    placed_at = Column(DateTime(timezone=True), nullable=False, comment="Timestamp of the last bid")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<BidRecord(id={self.id}, product_url={self.product_url}, bid_amount={self.bid_amount})>"

# ------------------------------ END OF FILE ------------------------------
