# ------------------------------ IMPORTS ------------------------------
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
import logging

from playwright.async_api import Page

from core.config.browser_settings import BrowserManager
from core.config.settings import (
    settings, TIMEOUT_PRODUCT_NAVIGATION, TIMEOUT_BID_NAVIGATION, TIMEOUT_SHORT_CHECK, DELAY_LONG, DELAY_MEDIUM
)
from core.database.models import SessionKind
from core.security.session import get_storage_state
from core.utils.browser_helpers import capture_diagnostics
from buyee.exceptions import InvalidProductUrlError, SessionError
from .helpers import extract_with_regex, format_amount, query_first, strip_query, wait_for_first_selector
from .locators import try_selectors
from .selectors import (
    BID_URL, AUCTION_ID_PATTERN, LOGIN_REDIRECT_MARKER, BID_PAGE_MARKER, BID_COMPLETION_MARKERS,
    PRODUCT_TITLE_LOCATORS, PRODUCT_THUMBNAIL_LOCATORS,
    BID_BUTTON_SELECTORS, BID_PRICE_INPUT_SELECTORS, BID_PLAN_SELECTORS, BID_PAYMENT_SELECTORS,
    BID_SUBMIT_SELECTORS, SELECT_OPTION_SCRIPT
)

logger = logging.getLogger(__name__)

# ------------------------------ STATES & RESULTS ------------------------------

class BidState(Enum):
    IDLE = "idle"
    NAVIGATING = "navigating"
    AWAITING_BID_BUTTON = "awaiting_bid_button"
    BID_FORM_OPEN = "bid_form_open"
    SUBMITTING = "submitting"
    CONFIRMED = "confirmed"
    FAILED = "failed"

@dataclass
class BidAttempt:
    """Progress of one bid through the submission states."""
    product_url: str
    amount: float
    auction_id: str
    state: BidState = BidState.IDLE
    history: List[BidState] = field(default_factory=lambda: [BidState.IDLE])

    def advance(self, state: BidState) -> None:
        logger.info(f"Bid {self.auction_id}: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    @property
    def submitted(self) -> bool:
        """True once the submit button may have been clicked."""
        return BidState.SUBMITTING in self.history

@dataclass
class BidResult:
    success: bool
    message: str
    state: BidState
    details: Optional[Dict[str, Any]] = None
    debug: Optional[Dict[str, Any]] = None
    session_expired: bool = False
    submitted: bool = False

class BidFlowError(Exception):
    """A step of the bid flow failed."""

    def __init__(self, message: str, session_expired: bool = False):
        super().__init__(message)
        self.session_expired = session_expired

# ------------------------------ URL HELPERS ------------------------------

def extract_auction_id(product_url: str) -> str:
    """Pull the auction ID out of a product URL, e.g. .../item/yahoo/auction/x123456789."""
    auction_id = extract_with_regex(product_url or "", AUCTION_ID_PATTERN, flags=re.IGNORECASE)
    if not auction_id:
        raise InvalidProductUrlError(f"Invalid product URL format: {product_url}")
    return auction_id

def build_bid_url(auction_id: str) -> str:
    return f"{BID_URL}/{auction_id}"

# ------------------------------ NAVIGATION STRATEGIES ------------------------------

class BidNavigationStrategy(ABC):
    """Gets the page from a loaded product page onto the bid form."""

    name: str = ""

    @abstractmethod
    async def open_bid_form(self, page: Page, attempt: BidAttempt) -> None: ...

class DirectUrlStrategy(BidNavigationStrategy):
    """Go straight to the bid form URL built from the auction ID."""

    name = "direct"

    async def open_bid_form(self, page: Page, attempt: BidAttempt) -> None:
        bid_url = build_bid_url(attempt.auction_id)
        logger.info(f"Navigating to bid URL: {bid_url}")
        await page.goto(bid_url, wait_until="domcontentloaded", timeout=TIMEOUT_BID_NAVIGATION)

class BidButtonStrategy(BidNavigationStrategy):
    """Click the product page's bid button and follow the site's redirect."""

    name = "button"

    async def open_bid_form(self, page: Page, attempt: BidAttempt) -> None:
        selector, buttons = await wait_for_first_selector(page, BID_BUTTON_SELECTORS, TIMEOUT_SHORT_CHECK)
        if not buttons:
            raise BidFlowError("Bid button not found")

        logger.info(f"Bid button found ({selector}), clicking...")
        await buttons[0].click()
        try:
            await page.wait_for_url(
                lambda url: BID_PAGE_MARKER in url or LOGIN_REDIRECT_MARKER in url,
                wait_until="domcontentloaded",
                timeout=TIMEOUT_BID_NAVIGATION
            )
        except Exception as e:
            raise BidFlowError(f"Bid button did not lead to the bid page: {e}") from e

BID_STRATEGIES = {
    DirectUrlStrategy.name: DirectUrlStrategy,
    BidButtonStrategy.name: BidButtonStrategy,
}

def get_bid_strategy(name: Optional[str] = None) -> BidNavigationStrategy:
    """Instantiate the configured navigation strategy."""
    name = (name or settings.buyee.bid_strategy).lower()
    if name not in BID_STRATEGIES:
        raise ValueError(f"Unknown bid strategy '{name}'. Expected one of: {', '.join(BID_STRATEGIES)}")
    return BID_STRATEGIES[name]()

# ------------------------------ FLOW STEPS ------------------------------

async def load_product_page(page: Page, attempt: BidAttempt) -> Dict[str, Optional[str]]:
    """Open the product page and read its title and thumbnail for the ledger."""
    logger.info(f"Navigating to product page: {attempt.product_url}")
    await page.goto(attempt.product_url, wait_until="domcontentloaded", timeout=TIMEOUT_PRODUCT_NAVIGATION)
    await page.wait_for_timeout(DELAY_LONG)

    title = await try_selectors(page, PRODUCT_TITLE_LOCATORS)
    thumbnail = await try_selectors(page, PRODUCT_THUMBNAIL_LOCATORS)
    return {"title": title, "thumbnail": strip_query(thumbnail) if thumbnail else None}

def verify_bid_page(page: Page) -> None:
    """Fail unless the page is on the bid form (and not bounced to login)."""
    current_url = page.url
    logger.info(f"Current URL after navigation: {current_url}")

    if LOGIN_REDIRECT_MARKER in current_url:
        raise BidFlowError("Redirected to login page - session invalid", session_expired=True)
    if BID_PAGE_MARKER not in current_url:
        raise BidFlowError("Failed to reach bid page")

async def select_option(page: Page, selectors: List[str], value: str) -> bool:
    """Set a <select> by script and fire its change event; True if one selector took the value."""
    for selector in selectors:
        try:
            if await page.evaluate(SELECT_OPTION_SCRIPT, {"selector": selector, "value": value}):
                return True
        except Exception as e:
            logger.debug(f"Could not set {selector} to {value}: {e}")
    return False

async def fill_bid_form(page: Page, amount: float, service_plan: Optional[str], payment_method: Optional[str]) -> None:
    """Enter the amount and choose the service plan and payment method."""
    selector, inputs = await wait_for_first_selector(page, BID_PRICE_INPUT_SELECTORS, TIMEOUT_SHORT_CHECK)
    if not inputs:
        raise BidFlowError("Bid input field not found")

    await inputs[0].fill(format_amount(amount))
    logger.info(f"Bid amount filled: {amount}")

    if service_plan and not await select_option(page, BID_PLAN_SELECTORS, service_plan):
        logger.warning(f"Service plan '{service_plan}' could not be selected, keeping the form default")

    if payment_method and not await select_option(page, BID_PAYMENT_SELECTORS, payment_method):
        logger.warning(f"Payment method '{payment_method}' could not be selected, keeping the form default")

    await page.wait_for_timeout(DELAY_MEDIUM)

async def submit_bid_form(page: Page, attempt: BidAttempt) -> str:
    """Click submit once and return the confirmation URL. Never resubmits."""
    selector, submit_button = await query_first(page, BID_SUBMIT_SELECTORS)
    if not submit_button:
        raise BidFlowError("Bid submit button not found")

    attempt.advance(BidState.SUBMITTING)
    try:
        async with page.expect_navigation(wait_until="domcontentloaded", timeout=TIMEOUT_BID_NAVIGATION):
            await submit_button.click()
    except Exception as e:
        raise BidFlowError(
            f"Bid form was submitted but no confirmation page loaded ({e}); verify the bid manually"
        ) from e

    confirmation_url = page.url
    if not any(marker in confirmation_url for marker in BID_COMPLETION_MARKERS):
        raise BidFlowError(f"Bid was not confirmed, landed on {confirmation_url}")
    return confirmation_url

# ------------------------------ BID FLOW ------------------------------

async def run_bid_flow(
    page: Page,
    product_url: str,
    amount: float,
    strategy: Optional[BidNavigationStrategy] = None,
    service_plan: Optional[str] = None,
    payment_method: Optional[str] = None,
    diagnostics_dir: Optional[str] = None
) -> BidResult:
    """Drive one bid from product page to confirmation on an authenticated page."""
    attempt = BidAttempt(product_url=product_url, amount=amount, auction_id=extract_auction_id(product_url))
    strategy = strategy or get_bid_strategy()

    try:
        attempt.advance(BidState.NAVIGATING)
        product_info = await load_product_page(page, attempt)

        attempt.advance(BidState.AWAITING_BID_BUTTON)
        await strategy.open_bid_form(page, attempt)
        verify_bid_page(page)

        attempt.advance(BidState.BID_FORM_OPEN)
        await fill_bid_form(page, amount, service_plan, payment_method)

        confirmation_url = await submit_bid_form(page, attempt)
        attempt.advance(BidState.CONFIRMED)

        details = {
            "productUrl": product_url,
            "auctionId": attempt.auction_id,
            "bidAmount": amount,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "title": product_info.get("title"),
            "thumbnail": product_info.get("thumbnail"),
            "confirmationUrl": confirmation_url,
        }
        return BidResult(
            success=True,
            message=f"Bid of {format_amount(amount)} placed on auction {attempt.auction_id}",
            state=attempt.state,
            details=details,
            submitted=True,
        )

    except Exception as e:
        logger.error(f"Error during bid placement: {e}")
        attempt.advance(BidState.FAILED)
        debug = await capture_diagnostics(page, f"bid-error-{attempt.auction_id}", e, diagnostics_dir)
        return BidResult(
            success=False,
            message=f"Failed to place bid: {e}",
            state=attempt.state,
            debug=debug,
            session_expired=isinstance(e, BidFlowError) and e.session_expired,
            submitted=attempt.submitted,
        )

async def place_bid(
    browser_manager: BrowserManager,
    product_url: str,
    amount: float,
    strategy: Optional[BidNavigationStrategy] = None
) -> BidResult:
    """Place one bid with the stored login session on a fresh context."""
    extract_auction_id(product_url)

    storage_state = get_storage_state(SessionKind.LOGIN)
    if not storage_state:
        raise SessionError("No login session available. Please log in first.")

    async with browser_manager.page(storage_state=storage_state, timeout=TIMEOUT_PRODUCT_NAVIGATION) as page:
        return await run_bid_flow(
            page,
            product_url,
            amount,
            strategy=strategy,
            service_plan=settings.buyee.service_plan,
            payment_method=settings.buyee.payment_method,
            diagnostics_dir=settings.buyee.diagnostics_dir,
        )

# ------------------------------ END OF FILE ------------------------------
