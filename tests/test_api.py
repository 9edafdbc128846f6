from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from core.database import SessionLocal
from core.database.db_service import DatabaseService
from buyee.data.bidding import BidResult, BidState
from buyee.data.login import LoginResult
from buyee.exceptions import InvalidProductUrlError, SearchContextNotFound, TwoFactorError
from buyee.routes import get_buyee_service
from buyee.search_context import SearchContext, SearchTerm
from main import app

PRODUCT_URL = "https://buyee.jp/item/yahoo/auction/x123456789"


def product(url):
    return {"title": "Camera", "price": "1,000 YEN", "url": url, "time_remaining": "2 days", "images": []}


class FakeBuyeeService:
    def __init__(self):
        self.requires_two_factor = False
        self.bid_result = BidResult(
            success=True,
            message="Bid of 1500 placed on auction x123456789",
            state=BidState.CONFIRMED,
            details={"productUrl": PRODUCT_URL, "bidAmount": 1500.0, "auctionId": "x123456789"},
        )
        self.contexts = {}

    async def login(self, username, password):
        if self.requires_two_factor:
            return LoginResult(success=False, requires_two_factor=True, message="Two-factor authentication required")
        return LoginResult(success=True, message="Login successful")

    async def submit_two_factor_code(self, code):
        if code != "123456":
            raise TwoFactorError("Two-factor code must be exactly 6 digits")
        return LoginResult(success=True, message="Two-factor authentication successful")

    def check_login_state(self):
        return True

    async def search(self, terms):
        context = SearchContext(
            id="ctx-1",
            terms=terms,
            expires_at=datetime.now(timezone.utc) + timedelta(minutes=30),
            current_page=4,
            total_results=120,
        )
        self.contexts[context.id] = context
        return context, [product("https://buyee.jp/item/yahoo/auction/a1")]

    async def load_more(self, context_id):
        if context_id not in self.contexts:
            raise SearchContextNotFound(f"Search context not found: {context_id}")
        context = self.contexts[context_id]
        context.current_page = 8
        return context, [product("https://buyee.jp/item/yahoo/auction/a2")]

    async def get_details(self, urls):
        return [
            {"productUrl": urls[0], "price": "2,000 YEN", "timeRemaining": "3 hours"},
            *({"productUrl": url, "error": "Timeout"} for url in urls[1:]),
        ]

    async def update_bid_prices(self, urls):
        return await self.get_details(urls)

    async def place_bid(self, product_url, amount):
        if "auction/" not in product_url:
            raise InvalidProductUrlError(f"Invalid product URL format: {product_url}")
        return self.bid_result


@pytest.fixture
def service():
    fake = FakeBuyeeService()
    app.dependency_overrides[get_buyee_service] = lambda: fake
    yield fake
    app.dependency_overrides.clear()


@pytest.fixture
def client(service):
    return TestClient(app)


# ------------------------------ HEALTH ------------------------------

def test_health_endpoints(client):
    assert client.get("/").json()["status"] == "running"
    assert client.get("/health").json()["status"] == "healthy"


def test_unknown_route_uses_error_shape(client):
    response = client.get("/nope")
    assert response.status_code == 404
    assert response.json()["success"] is False


# ------------------------------ AUTHENTICATION ------------------------------

def test_login_requires_credentials(client):
    response = client.post("/login", json={"username": "user@example.com"})
    assert response.status_code == 400
    assert response.json()["message"] == "Username and password required"


def test_login_success(client):
    body = client.post("/login", json={"username": "u", "password": "p"}).json()
    assert body == {"success": True, "message": "Login successful"}


def test_login_reports_two_factor_challenge(client, service):
    service.requires_two_factor = True
    body = client.post("/login", json={"username": "u", "password": "p"}).json()
    assert body["success"] is True
    assert body["requiresTwoFactor"] is True


def test_two_factor_code_rejected(client):
    response = client.post("/login-two-factor", json={"twoFactorCode": "12345"})
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_two_factor_code_missing(client):
    response = client.post("/login-two-factor", json={})
    assert response.status_code == 400
    assert response.json()["message"] == "Two-factor code is required"


def test_two_factor_code_accepted(client):
    body = client.post("/login-two-factor", json={"twoFactorCode": "123456"}).json()
    assert body == {"success": True, "message": "Two-factor authentication successful"}


def test_login_status(client):
    assert client.get("/login-status").json() == {"success": True, "loggedIn": True}


# ------------------------------ SEARCH ------------------------------

def test_search_without_terms_is_rejected(client):
    response = client.post("/search", json={"terms": []})
    assert response.status_code == 400
    assert response.json()["message"] == "No search terms provided"


def test_search_with_malformed_term_is_rejected(client):
    response = client.post("/search", json={"terms": [{"minPrice": 100}]})
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_search_returns_context(client):
    body = client.post("/search", json={"terms": [{"term": "camera", "minPrice": 1000}], "pageSize": 50}).json()

    assert body["success"] is True
    assert body["count"] == 1
    assert body["totalResults"] == 120
    assert body["currentPage"] == 4
    assert body["searchContextId"] == "ctx-1"
    assert body["results"][0]["time_remaining"] == "2 days"
    assert "duration" in body


def test_load_more_unknown_context(client):
    response = client.post("/load-more", json={"searchContextId": "missing"})
    assert response.status_code == 404
    assert response.json()["success"] is False


def test_load_more_returns_current_term(client):
    context_id = client.post("/search", json={"terms": [{"term": "camera"}]}).json()["searchContextId"]

    body = client.post("/load-more", json={"searchContextId": context_id}).json()

    assert body["currentTerm"] == "camera"
    assert body["currentPage"] == 8
    assert body["results"][0]["url"].endswith("/a2")


# ------------------------------ DETAILS ------------------------------

def test_details_requires_urls(client):
    assert client.post("/details", json={"urls": []}).status_code == 400


def test_details_keeps_error_entries(client):
    body = client.post("/details", json={"urls": ["https://buyee.jp/item/yahoo/auction/a1", "https://buyee.jp/item/yahoo/auction/b2"]}).json()

    assert body["updatedDetails"][0] == {
        "productUrl": "https://buyee.jp/item/yahoo/auction/a1", "price": "2,000 YEN", "timeRemaining": "3 hours"
    }
    assert body["updatedDetails"][1] == {"productUrl": "https://buyee.jp/item/yahoo/auction/b2", "error": "Timeout"}


# ------------------------------ BIDS ------------------------------

def test_place_bid_success(client):
    body = client.post("/place-bid", json={"productId": PRODUCT_URL, "amount": 1500}).json()
    assert body["success"] is True
    assert body["details"]["auctionId"] == "x123456789"


@pytest.mark.parametrize("amount", [0, -5, "lots"])
def test_place_bid_rejects_bad_amount(client, amount):
    response = client.post("/place-bid", json={"productId": PRODUCT_URL, "amount": amount})
    assert response.status_code == 400


def test_place_bid_rejects_bad_url(client):
    response = client.post("/place-bid", json={"productId": "https://buyee.jp/item/search/query/x", "amount": 100})
    assert response.status_code == 400
    assert "Invalid product URL" in response.json()["message"]


def test_place_bid_failure_is_reported(client, service):
    service.bid_result = BidResult(success=False, message="Failed to place bid: Bid input field not found", state=BidState.FAILED)

    response = client.post("/place-bid", json={"productId": PRODUCT_URL, "amount": 100})

    assert response.status_code == 400
    assert response.json()["message"] == "Failed to place bid: Bid input field not found"


def test_update_bid_prices(client):
    body = client.post("/update-bid-prices", json={"productUrls": [PRODUCT_URL]}).json()
    assert body["success"] is True
    assert body["count"] == 1
    assert body["updatedBids"][0]["price"] == "2,000 YEN"


def test_update_bid_prices_requires_urls(client):
    assert client.post("/update-bid-prices", json={"productUrls": []}).status_code == 400


def test_get_bids_lists_ledger(client):
    db = SessionLocal()
    try:
        DatabaseService.upsert_bid(db, PRODUCT_URL, 1500, auction_id="x123456789", title="Nikon F3")
    finally:
        db.close()

    bids = client.get("/bids").json()

    assert len(bids) == 1
    assert bids[0]["productUrl"] == PRODUCT_URL
    assert bids[0]["bidAmount"] == 1500
    assert bids[0]["auctionId"] == "x123456789"
