# ------------------------------ IMPORTS ------------------------------
import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging

from core.config.browser_settings import BrowserManager
from core.config.settings import settings
from buyee.data.search import scrape_search_results
from buyee.exceptions import SearchContextNotFound

logger = logging.getLogger(__name__)

# ------------------------------ SEARCH CONTEXT ------------------------------

@dataclass
class SearchTerm:
    term: str
    min_price: Optional[Any] = None
    max_price: Optional[Any] = None

@dataclass
class SearchContext:
    """Cursor over a multi-term search, kept between /search and /load-more calls."""
    id: str
    terms: List[SearchTerm]
    expires_at: datetime
    current_term_index: int = 0
    current_page: int = 0
    results: List[Dict[str, Any]] = field(default_factory=list)
    total_results: int = 0
    term_fetched_count: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def current_term(self) -> SearchTerm:
        return self.terms[self.current_term_index]

    @property
    def has_next_term(self) -> bool:
        return self.current_term_index < len(self.terms) - 1

    def add_results(self, products: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Append products whose URL is not already held; return the ones added."""
        seen = {product.get("url") for product in self.results}
        added = []
        for product in products:
            url = product.get("url")
            if url in seen:
                continue
            seen.add(url)
            added.append(product)
        self.results.extend(added)
        return added

# ------------------------------ CONTEXT STORE ------------------------------

class SearchContextStore:
    """In-memory search contexts with a fixed time-to-live."""

    def __init__(self, ttl_minutes: Optional[float] = None, clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self.ttl = timedelta(minutes=settings.search.context_ttl_minutes if ttl_minutes is None else ttl_minutes)
        self._clock = clock
        self._contexts: Dict[str, SearchContext] = {}

    def __len__(self) -> int:
        return len(self._contexts)

    def create(self, terms: List[SearchTerm]) -> SearchContext:
        now = self._clock()
        context = SearchContext(
            id=uuid.uuid4().hex,
            terms=list(terms),
            created_at=now,
            updated_at=now,
            expires_at=now + self.ttl,
        )
        self._contexts[context.id] = context
        return context

    def get(self, context_id: str) -> SearchContext:
        context = self._contexts.get(context_id)
        if context is None or context.expires_at <= self._clock():
            raise SearchContextNotFound(f"Search context not found: {context_id}")
        return context

    def touch(self, context: SearchContext) -> None:
        """Mark a context as updated and push its expiry out by one TTL."""
        now = self._clock()
        context.updated_at = now
        context.expires_at = now + self.ttl

    def sweep(self, now: Optional[datetime] = None) -> int:
        """Drop expired contexts and return how many were removed."""
        now = now or self._clock()
        expired = [context_id for context_id, context in self._contexts.items() if context.expires_at <= now]
        for context_id in expired:
            del self._contexts[context_id]

        if expired:
            logger.info(f"Removed {len(expired)} expired search contexts")
        return len(expired)

# ------------------------------ SEARCH SERVICE ------------------------------

class SearchService:
    """Fetches blocks of result pages and keeps the SearchContext cursor in step."""

    def __init__(self, browser_manager: BrowserManager, store: SearchContextStore, scraper=scrape_search_results):
        self.browser_manager = browser_manager
        self.store = store
        self._scrape = scraper
        self.pages_per_request = settings.search.pages_per_request
        self.page_delay_seconds = settings.search.page_delay_seconds

    async def _fetch_pages(
        self,
        term: SearchTerm,
        start_page: int,
        fetched_before: int,
        total: Optional[int] = None
    ) -> Tuple[List[Dict[str, Any]], int, int]:
        """Fetch up to pages_per_request pages starting at start_page.

        Stops on an empty page or once fetched_before plus the new products reaches the total.
        Returns (products, last successful page, total).
        """
        products: List[Dict[str, Any]] = []
        last_page = start_page - 1
        end_page = start_page + self.pages_per_request

        for page in range(start_page, end_page):
            result = await self._scrape(self.browser_manager, term.term, term.min_price, term.max_price, page)

            if total is None:
                total = result["totalProducts"]

            page_products = result["products"]
            if page_products:
                products.extend(page_products)
                last_page = page

            if not page_products or fetched_before + len(products) >= total:
                break

            if page < end_page - 1 and self.page_delay_seconds > 0:
                await asyncio.sleep(self.page_delay_seconds)

        return products, last_page, total or 0

    async def start(self, terms: List[SearchTerm]) -> Tuple[SearchContext, List[Dict[str, Any]]]:
        """Run the first block of pages for the first term and store a new context."""
        if not terms:
            raise ValueError("No search terms provided")

        context = self.store.create(terms)
        products, last_page, total = await self._fetch_pages(context.current_term, 1, 0)

        context.add_results(products)
        context.current_page = last_page
        context.total_results = total
        context.term_fetched_count = len(products)
        self.store.touch(context)

        logger.info(f"Search {context.id}: {len(products)} products for '{context.current_term.term}' (total {total})")
        return context, products

    async def load_more(self, context_id: str) -> Tuple[SearchContext, List[Dict[str, Any]]]:
        """Fetch the next block for the current term, moving on to the next term when it runs dry."""
        context = self.store.get(context_id)
        new_products: List[Dict[str, Any]] = []

        if context.term_fetched_count < context.total_results:
            products, last_page, _ = await self._fetch_pages(
                context.current_term,
                context.current_page + 1,
                context.term_fetched_count,
                total=context.total_results
            )
            if products:
                context.current_page = last_page
                context.term_fetched_count += len(products)
            new_products = context.add_results(products)

        if not new_products and context.has_next_term:
            next_index = context.current_term_index + 1
            next_term = context.terms[next_index]
            logger.info(f"Search {context.id}: '{context.current_term.term}' exhausted, moving to '{next_term.term}'")

            result = await self._scrape(self.browser_manager, next_term.term, next_term.min_price, next_term.max_price, 1)
            products = result["products"]
            if products:
                context.current_term_index = next_index
                context.current_page = 1
                context.total_results = result["totalProducts"]
                context.term_fetched_count = len(products)
            new_products = context.add_results(products)

        self.store.touch(context)

        logger.info(f"Search {context.id}: loaded {len(new_products)} more products")
        return context, new_products

# ------------------------------ END OF FILE ------------------------------
