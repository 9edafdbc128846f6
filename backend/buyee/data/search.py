# ------------------------------ IMPORTS ------------------------------
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote, urlencode
import logging

from playwright.async_api import ElementHandle, Page

from core.config.browser_settings import BrowserManager
from core.config.settings import TIMEOUT_NAVIGATION, TIMEOUT_SELECTOR_WAIT, TIMEOUT_FALLBACK_SELECTOR
from core.database.models import SessionKind
from core.security.session import get_storage_state
from core.utils.browser_helpers import safe_text
from .helpers import navigate_to_page, wait_for_first_selector, parse_total_count, absolute_url, strip_query
from .locators import try_selectors
from .selectors import (
    SEARCH_URL, SEARCH_TRANSLATION_TYPE,
    RESULT_COUNT_SELECTOR, NO_RESULTS_SELECTOR,
    ITEM_CARD_SELECTOR, ITEM_CARD_FALLBACK_SELECTORS,
    CARD_TITLE_LOCATORS, CARD_URL_LOCATORS, CARD_IMAGE_LOCATORS, CARD_PRICE_LOCATORS, CARD_TIME_LOCATORS,
    NO_TITLE, PRICE_NOT_AVAILABLE, TIME_NOT_AVAILABLE
)

logger = logging.getLogger(__name__)

Price = Union[str, int, float, None]

# ------------------------------ URL BUILDING ------------------------------

def build_search_url(term: str, min_price: Price = None, max_price: Price = None, page: int = 1) -> str:
    """Build the search URL for one term, optional price bounds and a page number."""
    params = {}
    if min_price not in (None, ""):
        params["aucminprice"] = min_price
    if max_price not in (None, ""):
        params["aucmaxprice"] = max_price
    params["translationType"] = SEARCH_TRANSLATION_TYPE
    params["page"] = page

    return f"{SEARCH_URL}/{quote(term, safe='')}?{urlencode(params)}"

def empty_search_result(page: int) -> Dict[str, Any]:
    return {"products": [], "totalProducts": 0, "currentPage": page}

# ------------------------------ CARD EXTRACTION ------------------------------

async def extract_product_card(card: ElementHandle) -> Optional[Dict[str, Any]]:
    """Parse one listing card. Cards without a link are dropped; other fields fall back to sentinels."""
    href = await try_selectors(card, CARD_URL_LOCATORS)
    if not href:
        return None

    title = await try_selectors(card, CARD_TITLE_LOCATORS, default=NO_TITLE)
    image = await try_selectors(card, CARD_IMAGE_LOCATORS)
    price = await try_selectors(card, CARD_PRICE_LOCATORS, default=PRICE_NOT_AVAILABLE)
    time_remaining = await try_selectors(card, CARD_TIME_LOCATORS, default=TIME_NOT_AVAILABLE)

    return {
        "title": title,
        "price": price,
        "url": absolute_url(href),
        "time_remaining": time_remaining,
        "images": [strip_query(image)] if image else [],
    }

async def extract_total_products(page: Page) -> int:
    """Read the total result count from the counter element; 0 when unavailable."""
    try:
        counter = await page.query_selector(RESULT_COUNT_SELECTOR)
        return parse_total_count(await safe_text(counter))
    except Exception as e:
        logger.warning(f"Could not extract total products: {e}")
        return 0

async def find_item_cards(page: Page) -> List[ElementHandle]:
    """Wait for the primary card selector, then each fallback in turn."""
    selector, cards = await wait_for_first_selector(page, [ITEM_CARD_SELECTOR], TIMEOUT_SELECTOR_WAIT)
    if cards:
        return cards

    logger.info(f"Timeout waiting for {ITEM_CARD_SELECTOR}, checking alternative selectors...")
    selector, cards = await wait_for_first_selector(page, ITEM_CARD_FALLBACK_SELECTORS, TIMEOUT_FALLBACK_SELECTOR)
    if selector:
        logger.info(f"Using alternative card selector {selector}")
    return cards

# ------------------------------ PAGE SCRAPING ------------------------------

async def parse_search_page(page: Page, page_number: int) -> Dict[str, Any]:
    """Extract products and totals from an already loaded search results page."""
    total_products = await extract_total_products(page) if page_number == 1 else 0

    if await page.query_selector(NO_RESULTS_SELECTOR):
        logger.info("No results found for search")
        return empty_search_result(page_number)

    cards = await find_item_cards(page)
    logger.info(f"Found {len(cards)} items on page {page_number}")

    products = []
    for index, card in enumerate(cards):
        try:
            product = await extract_product_card(card)
        except Exception as e:
            logger.debug(f"Error processing item {index}: {e}")
            continue
        if product:
            products.append(product)

    return {
        "products": products,
        "totalProducts": total_products or len(products),
        "currentPage": page_number,
    }

async def scrape_search_results(
    browser_manager: BrowserManager,
    term: str,
    min_price: Price = None,
    max_price: Price = None,
    page: int = 1
) -> Dict[str, Any]:
    """Fetch one page of results for one term. Never raises; failures return an empty result."""
    logger.info(f"Searching for '{term}' - Page {page}")
    search_url = build_search_url(term, min_price, max_price, page)

    try:
        storage_state = get_storage_state(SessionKind.LOGIN)
        async with browser_manager.page(storage_state=storage_state, timeout=TIMEOUT_NAVIGATION) as browser_page:
            if not await navigate_to_page(browser_page, search_url, f"search page {page}", timeout=TIMEOUT_NAVIGATION):
                return empty_search_result(page)
            return await parse_search_page(browser_page, page)

    except Exception as e:
        logger.exception(f"Search failed for '{term}' page {page}: {e}")
        return empty_search_result(page)

# ------------------------------ END OF FILE ------------------------------
