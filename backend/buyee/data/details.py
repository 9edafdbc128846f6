# ------------------------------ IMPORTS ------------------------------
import asyncio
from typing import Any, Dict, List, Optional
import logging

from playwright.async_api import Page

from core.config.browser_settings import BrowserManager
from core.config.settings import settings, TIMEOUT_PRODUCT_NAVIGATION
from core.database.models import SessionKind
from core.security.session import get_storage_state
from .helpers import retry_async
from .locators import try_selectors
from .selectors import (
    PRODUCT_PRICE_LOCATORS, PRODUCT_TIME_LOCATORS,
    PRICE_NOT_AVAILABLE, TIME_NOT_AVAILABLE
)

logger = logging.getLogger(__name__)

# ------------------------------ EXTRACTION ------------------------------

async def extract_price_and_time(page: Page) -> Dict[str, str]:
    """Read current price and time remaining, each falling back to its sentinel."""
    price = await try_selectors(page, PRODUCT_PRICE_LOCATORS, default=PRICE_NOT_AVAILABLE)
    time_remaining = await try_selectors(page, PRODUCT_TIME_LOCATORS, default=TIME_NOT_AVAILABLE)
    return {"price": price, "timeRemaining": time_remaining}

async def scrape_product_details(browser_manager: BrowserManager, product_url: str) -> Dict[str, Any]:
    """Re-fetch price and time remaining for one product; errors become an error entry."""
    try:
        storage_state = get_storage_state(SessionKind.LOGIN)
        async with browser_manager.page(storage_state=storage_state, timeout=TIMEOUT_PRODUCT_NAVIGATION) as page:
            await retry_async(
                lambda: page.goto(product_url, wait_until="domcontentloaded", timeout=TIMEOUT_PRODUCT_NAVIGATION),
                label=f"Loading {product_url}"
            )
            details = await extract_price_and_time(page)
            return {"productUrl": product_url, **details}

    except Exception as e:
        logger.error(f"Error fetching details for {product_url}: {e}")
        return {"productUrl": product_url, "error": str(e) or "Failed to retrieve details"}

# ------------------------------ BATCH REFRESH ------------------------------

async def refresh_details(
    browser_manager: BrowserManager,
    product_urls: List[str],
    delay_seconds: Optional[float] = None
) -> List[Dict[str, Any]]:
    """Refresh product URLs one at a time with a fixed pause between them."""
    delay_seconds = settings.search.detail_refresh_delay_seconds if delay_seconds is None else delay_seconds
    results = []

    for index, product_url in enumerate(product_urls):
        results.append(await scrape_product_details(browser_manager, product_url))

        if index < len(product_urls) - 1 and delay_seconds > 0:
            await asyncio.sleep(delay_seconds)

    failed = sum(1 for result in results if "error" in result)
    logger.info(f"Refreshed {len(results) - failed}/{len(results)} products")
    return results

# ------------------------------ END OF FILE ------------------------------
