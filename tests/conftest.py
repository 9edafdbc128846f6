import os
import tempfile
from contextlib import asynccontextmanager

# Settings are read at import time, so the environment must be in place first.
_DB_DIR = tempfile.mkdtemp(prefix="buyee-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["SCRAPING_RETRY_DELAY"] = "0"
os.environ["SEARCH_PAGE_DELAY"] = "0"
os.environ["DETAIL_REFRESH_DELAY"] = "0"
os.environ["INACTIVITY_TIMEOUT_MINUTES"] = "0"
os.environ["BUYEE_USERNAME"] = ""
os.environ["BUYEE_PASSWORD"] = ""
os.environ["BID_STRATEGY"] = "direct"
os.environ.pop("DIAGNOSTICS_DIR", None)
os.environ.pop("BID_PAYMENT_METHOD", None)

import pytest

from core.database import Base, engine


# ------------------------------ DATABASE ------------------------------

@pytest.fixture(autouse=True)
def clean_db():
    from core.database.models import SessionStorage, BidRecord  # noqa: F401 - registers tables
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


# ------------------------------ FAKE PLAYWRIGHT OBJECTS ------------------------------

class FakeElement:
    """Stand-in for an ElementHandle: text, attributes and nested elements by selector."""

    def __init__(self, text=None, attrs=None, children=None, visible=True, on_click=None, on_type=None):
        self.text = text
        self.attrs = attrs or {}
        self.children = children or {}
        self.visible = visible
        self.on_click = on_click
        self.on_type = on_type
        self.filled = []
        self.typed = []
        self.clicks = 0

    async def text_content(self):
        return self.text

    async def get_attribute(self, name):
        return self.attrs.get(name)

    async def query_selector(self, selector):
        found = self.children.get(selector)
        if isinstance(found, list):
            return found[0] if found else None
        return found

    async def query_selector_all(self, selector):
        found = self.children.get(selector)
        if found is None:
            return []
        return found if isinstance(found, list) else [found]

    async def fill(self, value):
        self.filled.append(value)

    async def type(self, value, delay=None):
        self.typed.append(value)
        if self.on_type:
            self.on_type()

    async def click(self):
        self.clicks += 1
        if self.on_click:
            self.on_click()

    async def is_visible(self):
        return self.visible


class FakeContext:
    def __init__(self, state=None):
        self.state = state or {"cookies": [], "origins": []}

    async def storage_state(self):
        return self.state


class FakePage(FakeElement):
    """Stand-in for a Page. `redirects` maps a requested URL to where the browser lands."""

    def __init__(self, elements=None, redirects=None, goto_error=None, navigation_error=None,
                 evaluate_result=True, context_state=None):
        super().__init__(children=elements or {})
        self.url = "about:blank"
        self.redirects = redirects or {}
        self.goto_error = goto_error
        self.navigation_error = navigation_error
        self.evaluate_result = evaluate_result
        self.context = FakeContext(context_state)
        self.visits = []
        self.evaluated = []
        self.filled_selectors = {}
        self.clicked_selectors = []

    async def goto(self, url, wait_until=None, timeout=None):
        self.visits.append(url)
        if self.goto_error:
            raise self.goto_error
        self.url = self.redirects.get(url, url)

    async def wait_for_timeout(self, ms):
        return None

    async def wait_for_selector(self, selector, timeout=None):
        element = await self.query_selector(selector)
        if element is None:
            raise TimeoutError(f"Timeout waiting for {selector}")
        return element

    async def wait_for_url(self, predicate, wait_until=None, timeout=None):
        matched = predicate(self.url) if callable(predicate) else self.url == predicate
        if not matched:
            raise TimeoutError(f"URL did not match: {self.url}")

    async def fill(self, selector, value):
        self.filled_selectors[selector] = value

    async def click(self, selector=None):
        self.clicked_selectors.append(selector)
        if self.on_click:
            self.on_click()

    async def evaluate(self, script, arg=None):
        self.evaluated.append(arg)
        return self.evaluate_result

    @asynccontextmanager
    async def expect_navigation(self, wait_until=None, timeout=None):
        yield
        if self.navigation_error:
            raise self.navigation_error

    async def content(self):
        return f"<html><body>{self.url}</body></html>"

    async def screenshot(self, path=None):
        return b""


class FakeBrowserManager:
    """Hands out pre-built pages in order and records the storage state each was opened with."""

    user_agent = "test-agent"
    is_running = False

    def __init__(self, pages=None):
        self.pages = list(pages or [])
        self.opened = []
        self.closed = False

    @asynccontextmanager
    async def page(self, storage_state=None, timeout=None):
        self.opened.append(storage_state)
        if not self.pages:
            raise RuntimeError("No fake page available")
        yield self.pages.pop(0)

    async def close(self):
        self.closed = True


# ------------------------------ HELPERS ------------------------------

LIVE_COOKIES = {
    "cookies": [
        {"name": "otherbuyee", "value": "a", "expires": -1},
        {"name": "userProfile", "value": "b", "expires": -1},
        {"name": "userId", "value": "c", "expires": -1},
    ],
    "origins": [],
}


def make_card(title="Vintage Camera", href="/item/yahoo/auction/x123", price="1,000 YEN",
              time_left="2 days", image="https://cdn.buyee.jp/img.jpg?w=200"):
    children = {}
    if href is not None:
        children[".itemCard__itemName a"] = FakeElement(text=title, attrs={"href": href})
    if price is not None:
        children[".g-price"] = FakeElement(text=price)
    if time_left is not None:
        children[".itemCard__time"] = FakeElement(text=time_left)
    if image is not None:
        children[".g-thumbnail__image"] = FakeElement(attrs={"data-src": image})
    return FakeElement(children=children)


@pytest.fixture
def login_state():
    from core.database import SessionLocal
    from core.database.db_service import DatabaseService
    from core.database.models import SessionKind
    import json

    db = SessionLocal()
    try:
        DatabaseService.save_session_storage(db, SessionKind.LOGIN, json.dumps(LIVE_COOKIES), "test-agent", 24)
    finally:
        db.close()
    return LIVE_COOKIES
