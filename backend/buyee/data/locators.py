# ------------------------------ IMPORTS ------------------------------
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Sequence, Tuple, Union
import logging

from core.utils.browser_helpers import safe_text, safe_attribute

logger = logging.getLogger(__name__)

# ------------------------------ LOCATOR STRATEGIES ------------------------------

class FieldLocator(Protocol):
    """One way of reading a single logical field from a page or element."""

    async def locate(self, target) -> Optional[str]: ...

@dataclass(frozen=True)
class TextLocator:
    """Text content of the first element matching selector."""
    selector: str

    async def locate(self, target) -> Optional[str]:
        element = await target.query_selector(self.selector)
        return await safe_text(element)

@dataclass(frozen=True)
class AttributeLocator:
    """First non-empty attribute, in order, of the first element matching selector."""
    selector: str
    attributes: Tuple[str, ...] = ("href",)

    async def locate(self, target) -> Optional[str]:
        element = await target.query_selector(self.selector)
        return await safe_attribute(element, *self.attributes)

LocatorLike = Union[FieldLocator, str]

# ------------------------------ FIRST-MATCH EXTRACTION ------------------------------

async def try_selectors(
    target,
    locators: Sequence[LocatorLike],
    validator: Optional[Callable[[str], bool]] = None,
    default: Optional[str] = None
) -> Optional[str]:
    """Try locators in priority order and return the first valid value, else default."""
    for locator in locators:
        if isinstance(locator, str):
            locator = TextLocator(locator)
        try:
            value = await locator.locate(target)
            if value and (not validator or validator(value)):
                return value.strip()
        except Exception as e:
            logger.debug(f"Locator {locator} failed: {e}")
            continue
    return default

# ------------------------------ END OF FILE ------------------------------
