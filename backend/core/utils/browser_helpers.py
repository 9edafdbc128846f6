# ------------------------------ IMPORTS ------------------------------
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional
import logging

from playwright.async_api import Page

logger = logging.getLogger(__name__)

PAGE_CONTENT_LIMIT = 20000

# ------------------------------ TEXT EXTRACTION HELPERS ------------------------------

async def safe_text(element, default: Optional[str] = None) -> Optional[str]:
    """Safely extract and strip text content from an element."""
    if not element:
        return default
    text = await element.text_content()
    return text.strip() if text and text.strip() else default

async def safe_attribute(element, *names: str) -> Optional[str]:
    """Return the first non-empty attribute value among names."""
    if not element:
        return None
    for name in names:
        value = await element.get_attribute(name)
        if value and value.strip():
            return value.strip()
    return None

# ------------------------------ DIAGNOSTICS ------------------------------

async def capture_diagnostics(page: Optional[Page], label: str, error: Any = None, diagnostics_dir: Optional[str] = None) -> Dict[str, Any]:
    """Collect URL, page content and an optional screenshot for a failed flow."""
    debug_info: Dict[str, Any] = {
        "currentUrl": None,
        "error": str(error) if error is not None else None,
        "pageContent": None,
        "screenshot": None,
    }
    if page is None:
        return debug_info

    try:
        debug_info["currentUrl"] = page.url
    except Exception:
        logger.debug("Could not read page URL for diagnostics")

    try:
        content = await page.content()
        debug_info["pageContent"] = content[:PAGE_CONTENT_LIMIT]
    except Exception:
        debug_info["pageContent"] = "Could not get content"

    if diagnostics_dir:
        try:
            directory = Path(diagnostics_dir)
            directory.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
            path = directory / f"{label}_{timestamp}.png"
            await page.screenshot(path=str(path))
            debug_info["screenshot"] = str(path)
        except Exception as e:
            logger.warning(f"Could not capture {label} screenshot: {e}")

    return debug_info

# ------------------------------ END OF FILE ------------------------------
