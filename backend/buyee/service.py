# ------------------------------ IMPORTS ------------------------------
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
import logging

from core.config.browser_settings import BrowserManager
from core.database import SessionLocal
from core.database.db_service import DatabaseService
from buyee.data.bidding import BidResult, BidNavigationStrategy, extract_auction_id, get_bid_strategy, place_bid
from buyee.data.details import refresh_details
from buyee.data.login import LoginResult, SessionManager
from buyee.search_context import SearchContext, SearchContextStore, SearchService, SearchTerm

logger = logging.getLogger(__name__)

# ------------------------------ BUYEE SERVICE ------------------------------

class BuyeeService:
    """Single entry point the API uses for login, search, details and bidding."""

    def __init__(
        self,
        browser_manager: Optional[BrowserManager] = None,
        store: Optional[SearchContextStore] = None,
        bid_strategy: Optional[BidNavigationStrategy] = None
    ):
        self.browser_manager = browser_manager or BrowserManager()
        self.session_manager = SessionManager(self.browser_manager)
        self.store = store or SearchContextStore()
        self.search_service = SearchService(self.browser_manager, self.store)
        self.bid_strategy = bid_strategy or get_bid_strategy()

    # ------------------------------ AUTHENTICATION ------------------------------

    async def login(self, username: str, password: str) -> LoginResult:
        return await self.session_manager.login(username, password)

    async def submit_two_factor_code(self, code: str) -> LoginResult:
        return await self.session_manager.submit_two_factor_code(code)

    def check_login_state(self) -> bool:
        return self.session_manager.check_login_state()

    # ------------------------------ SEARCH ------------------------------

    async def search(self, terms: List[SearchTerm]) -> Tuple[SearchContext, List[Dict[str, Any]]]:
        return await self.search_service.start(terms)

    async def load_more(self, context_id: str) -> Tuple[SearchContext, List[Dict[str, Any]]]:
        return await self.search_service.load_more(context_id)

    async def sweep_search_contexts(self) -> int:
        return self.store.sweep()

    # ------------------------------ DETAILS ------------------------------

    async def get_details(self, product_urls: List[str]) -> List[Dict[str, Any]]:
        return await refresh_details(self.browser_manager, product_urls)

    async def update_bid_prices(self, product_urls: List[str]) -> List[Dict[str, Any]]:
        """Refresh each product and copy its price and time remaining onto the bid ledger."""
        updated_details = await refresh_details(self.browser_manager, product_urls)

        db = SessionLocal()
        try:
            for detail in updated_details:
                if "error" in detail:
                    continue
                if not DatabaseService.update_bid_status(
                    db, detail["productUrl"], detail.get("price"), detail.get("timeRemaining")
                ):
                    logger.debug(f"No bid record for {detail['productUrl']}, skipping status update")
        finally:
            db.close()

        return updated_details

    # ------------------------------ BIDDING ------------------------------

    async def place_bid(self, product_url: str, amount: float) -> BidResult:
        """Place a bid, refreshing the session once if the site bounced us to login before submit."""
        extract_auction_id(product_url)
        await self.session_manager.ensure_session()

        result = await place_bid(self.browser_manager, product_url, amount, strategy=self.bid_strategy)

        if not result.success and result.session_expired and not result.submitted:
            logger.info("Session expired during bid navigation, refreshing and retrying once...")
            await self.session_manager.refresh_login_session()
            result = await place_bid(self.browser_manager, product_url, amount, strategy=self.bid_strategy)

        if result.success:
            self._record_bid(result.details)

        return result

    def _record_bid(self, details: Dict[str, Any]) -> None:
        db = SessionLocal()
        try:
            DatabaseService.upsert_bid(
                db,
                product_url=details["productUrl"],
                bid_amount=details["bidAmount"],
                auction_id=details.get("auctionId"),
                title=details.get("title"),
                thumbnail=details.get("thumbnail"),
                placed_at=datetime.fromisoformat(details["timestamp"]),
            )
        finally:
            db.close()

    # ------------------------------ LIFECYCLE ------------------------------

    async def shutdown(self) -> None:
        await self.browser_manager.close()

# ------------------------------ END OF FILE ------------------------------
