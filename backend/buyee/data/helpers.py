# ------------------------------ IMPORTS ------------------------------

import asyncio
import re
import logging
from typing import Optional, List, Any, Awaitable, Callable, Sequence, Tuple, TypeVar
from urllib.parse import urljoin, urlsplit, urlunsplit
from playwright.async_api import Page

from core.config.settings import settings
from .selectors import BASE_URL

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ------------------------------ COMMON EXTRACTION HELPERS ------------------------------

def extract_with_regex(text: str, pattern: str, group: int = 1, flags: int = 0) -> Optional[str]:
    """Extract text using regex pattern."""
    if not text:
        return None
    match = re.search(pattern, text, flags)
    return match.group(group) if match else None

def parse_total_count(text: Optional[str]) -> int:
    """Parse the total from a result counter like '1 - 20 / 1,234'. Unparseable text yields 0."""
    count = extract_with_regex(text or "", r"/\s*([\d,]+)")
    if not count:
        return 0
    try:
        return int(count.replace(",", ""))
    except ValueError:
        return 0

def absolute_url(href: str) -> str:
    """Resolve a site-relative link against the site root."""
    if href.startswith("http"):
        return href
    return urljoin(BASE_URL + "/", href)

def strip_query(url: str) -> str:
    """Drop query string and fragment from a URL."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))

def format_amount(amount: float) -> str:
    """Render whole amounts without a trailing '.0'."""
    if float(amount).is_integer():
        return str(int(amount))
    return str(amount)

# ------------------------------ NAVIGATION HELPERS ------------------------------

async def navigate_to_page(page: Page, url: str, page_name: str, timeout: Optional[int] = None, wait_until: str = "domcontentloaded") -> bool:
    """Generic navigation function for Buyee pages."""
    try:
        logger.info(f"Navigating to {page_name}: {url}")
        await page.goto(url, wait_until=wait_until, timeout=timeout)
        return True
    except Exception as e:
        logger.error(f"Error navigating to {page_name}: {e}")
        return False

async def wait_for_first_selector(page: Page, selectors: Sequence[str], timeout: int) -> Tuple[Optional[str], List[Any]]:
    """Wait for each selector in turn and return the first one that yields elements."""
    for selector in selectors:
        try:
            await page.wait_for_selector(selector, timeout=timeout)
            elements = await page.query_selector_all(selector)
            if elements:
                return selector, elements
        except Exception:
            logger.debug(f"Selector {selector} not found")
    return None, []

async def query_first(page: Page, selectors: Sequence[str]) -> Tuple[Optional[str], Any]:
    """Return the first selector with a matching element, and that element."""
    for selector in selectors:
        try:
            element = await page.query_selector(selector)
            if element:
                return selector, element
        except Exception:
            continue
    return None, None

# ------------------------------ RETRY HELPERS ------------------------------

async def retry_async(
    func: Callable[[], Awaitable[T]],
    attempts: Optional[int] = None,
    delay: Optional[float] = None,
    label: str = "operation"
) -> T:
    """Run func up to attempts times with a fixed delay; re-raise the last error.

    Only for idempotent steps such as loading a page. Never wrap bid submission.
    """
    attempts = attempts or settings.scraping.retry_attempts
    delay = settings.scraping.retry_delay_seconds if delay is None else delay

    for attempt in range(1, attempts + 1):
        try:
            return await func()
        except Exception as e:
            if attempt == attempts:
                raise
            logger.warning(f"{label} failed (attempt {attempt}/{attempts}): {e}")
            await asyncio.sleep(delay)

# ------------------------------ END OF FILE ------------------------------
