# ------------------------------ IMPORTS ------------------------------
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from playwright.async_api import async_playwright, Browser, BrowserContext, Page, Playwright

from core.config.settings import settings

logger = logging.getLogger(__name__)

# ------------------------------ DEFAULTS ------------------------------
DEFAULT_VIEWPORT = {"width": 1280, "height": 720}
DEFAULT_TIMEOUT = 30000

BROWSER_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
]

ANTI_DETECTION_SCRIPT = (
    "Object.defineProperty(navigator, 'webdriver', { get: () => undefined });"
)

# ------------------------------ BROWSER MANAGER ------------------------------

class BrowserManager:
    """Owns one Chromium process and hands out isolated, short-lived contexts."""

    def __init__(self, headless: Optional[bool] = None, user_agent: Optional[str] = None):
        self.headless = settings.scraping.headless if headless is None else headless
        self.user_agent = user_agent or settings.scraping.user_agent
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._launch_lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def _ensure_browser(self) -> Browser:
        """Launch the browser, or relaunch it if the process went away."""
        async with self._launch_lock:
            if self.is_running:
                return self._browser

            if self._browser is not None:
                logger.warning("Browser disconnected, relaunching...")
                self._browser = None

            if self._playwright is None:
                self._playwright = await async_playwright().start()

            self._browser = await self._playwright.chromium.launch(
                headless=self.headless,
                args=BROWSER_LAUNCH_ARGS,
            )
            logger.info(f"Chromium launched (headless={self.headless})")
            return self._browser

    async def acquire_context(self, storage_state: Optional[Dict[str, Any]] = None) -> BrowserContext:
        """Open a fresh context, optionally seeded with a saved storage state."""
        browser = await self._ensure_browser()
        context = await browser.new_context(
            viewport=DEFAULT_VIEWPORT,
            user_agent=self.user_agent,
            locale=settings.scraping.locale,
            timezone_id=settings.scraping.timezone_id,
            storage_state=storage_state,
            accept_downloads=True,
        )
        await context.add_init_script(ANTI_DETECTION_SCRIPT)
        return context

    async def release(self, context: Optional[BrowserContext]) -> None:
        """Close a context handed out by acquire_context."""
        if context is None:
            return
        try:
            await context.close()
        except Exception as e:
            logger.warning(f"Error closing browser context: {e}")

    @asynccontextmanager
    async def page(self, storage_state: Optional[Dict[str, Any]] = None, timeout: int = DEFAULT_TIMEOUT) -> AsyncIterator[Page]:
        """Yield a page on its own context; both are closed on exit."""
        context = None
        page = None
        try:
            context = await self.acquire_context(storage_state)
            page = await context.new_page()
            page.set_default_timeout(timeout)
            page.set_default_navigation_timeout(timeout)
            yield page
        finally:
            if page is not None:
                try:
                    await page.close()
                except Exception as e:
                    logger.warning(f"Error closing page: {e}")
            await self.release(context)

    async def close(self) -> None:
        """Close the browser process and stop the Playwright driver."""
        async with self._launch_lock:
            if self._browser is not None:
                try:
                    await self._browser.close()
                    logger.info("Browser closed successfully")
                except Exception as e:
                    logger.warning(f"Error closing browser: {e}")
                self._browser = None

            if self._playwright is not None:
                try:
                    await self._playwright.stop()
                except Exception as e:
                    logger.warning(f"Error stopping Playwright: {e}")
                self._playwright = None

# ------------------------------ END OF FILE ------------------------------
