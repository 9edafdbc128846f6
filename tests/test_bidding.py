import pytest

from core.config.settings import settings
from core.database import SessionLocal
from core.database.db_service import DatabaseService
from core.database.models import BidRecord
from buyee.data.bidding import (
    BidState, BidButtonStrategy, DirectUrlStrategy, extract_auction_id, get_bid_strategy, run_bid_flow
)
from buyee.exceptions import InvalidProductUrlError
from buyee.service import BuyeeService

from conftest import FakeBrowserManager, FakeElement, FakePage, LIVE_COOKIES

PRODUCT_URL = "https://buyee.jp/item/yahoo/auction/x123456789"
BID_PAGE_URL = "https://buyee.jp/bid/x123456789"
COMPLETE_URL = "https://buyee.jp/bid/complete/x123456789"


def bid_page(landing_url=None, after_submit=COMPLETE_URL, navigation_error=None, with_input=True):
    """Product page plus bid form; `landing_url` is where the direct bid URL actually lands."""
    elements = {
        "h1": FakeElement(text="Nikon F3 body"),
        ".itemPhoto img": FakeElement(attrs={"src": "https://cdn.buyee.jp/f3.jpg?size=l"}),
    }
    if with_input:
        elements['input[name="bidYahoo[price]"]'] = FakeElement()
    page = FakePage(elements=elements, navigation_error=navigation_error)
    elements["#bid_submit"] = FakeElement(on_click=lambda: setattr(page, "url", after_submit))
    if landing_url:
        page.redirects = {BID_PAGE_URL: landing_url}
    return page


# ------------------------------ AUCTION IDS ------------------------------

def test_extract_auction_id():
    assert extract_auction_id(PRODUCT_URL) == "x123456789"
    assert extract_auction_id("https://buyee.jp/item/yahoo/Auction/AB12?conversionType=x") == "AB12"


@pytest.mark.parametrize("url", ["", "https://buyee.jp/item/search/query/camera", "not a url"])
def test_extract_auction_id_rejects_other_urls(url):
    with pytest.raises(InvalidProductUrlError):
        extract_auction_id(url)


def test_get_bid_strategy():
    assert isinstance(get_bid_strategy(), DirectUrlStrategy)
    assert isinstance(get_bid_strategy("BUTTON"), BidButtonStrategy)
    with pytest.raises(ValueError):
        get_bid_strategy("stealth")


# ------------------------------ BID FLOW ------------------------------

async def test_direct_bid_flow_confirms():
    page = bid_page()

    result = await run_bid_flow(page, PRODUCT_URL, 1500.0, strategy=DirectUrlStrategy(), service_plan="1")

    assert result.success is True
    assert result.state is BidState.CONFIRMED
    assert page.visits == [PRODUCT_URL, BID_PAGE_URL]
    assert page.children['input[name="bidYahoo[price]"]'].filled == ["1500"]
    assert page.evaluated[0] == {"selector": 'select[name="bidYahoo[plan]"]', "value": "1"}
    assert result.details["auctionId"] == "x123456789"
    assert result.details["title"] == "Nikon F3 body"
    assert result.details["thumbnail"] == "https://cdn.buyee.jp/f3.jpg"
    assert result.details["confirmationUrl"] == COMPLETE_URL


async def test_button_bid_flow_follows_bid_button():
    page = bid_page()
    page.children["#bidNow"] = FakeElement(on_click=lambda: setattr(page, "url", BID_PAGE_URL))

    result = await run_bid_flow(page, PRODUCT_URL, 800, strategy=BidButtonStrategy())

    assert result.success is True
    assert page.visits == [PRODUCT_URL]
    assert page.children["#bidNow"].clicks == 1


async def test_login_redirect_is_flagged_as_expired_session():
    page = bid_page(landing_url="https://buyee.jp/signup/login?redirect=%2Fbid%2Fx123456789")

    result = await run_bid_flow(page, PRODUCT_URL, 1000, strategy=DirectUrlStrategy())

    assert result.success is False
    assert result.session_expired is True
    assert result.submitted is False
    assert result.state is BidState.FAILED
    assert result.debug["currentUrl"].startswith("https://buyee.jp/signup/login")
    assert page.children["#bid_submit"].clicks == 0


async def test_missing_bid_page_fails_without_submitting():
    page = bid_page(landing_url="https://buyee.jp/item/yahoo/auction/x123456789")

    result = await run_bid_flow(page, PRODUCT_URL, 1000, strategy=DirectUrlStrategy())

    assert result.success is False
    assert result.session_expired is False
    assert "bid page" in result.message


async def test_missing_bid_input_fails():
    result = await run_bid_flow(bid_page(with_input=False), PRODUCT_URL, 1000, strategy=DirectUrlStrategy())

    assert result.success is False
    assert "input" in result.message


async def test_navigation_failure_after_submit_is_reported_not_retried():
    page = bid_page(navigation_error=TimeoutError("Timeout 15000ms exceeded"))

    result = await run_bid_flow(page, PRODUCT_URL, 1000, strategy=DirectUrlStrategy())

    assert result.success is False
    assert result.submitted is True
    assert "verify the bid manually" in result.message
    assert page.children["#bid_submit"].clicks == 1


async def test_unconfirmed_landing_page_is_a_failure():
    page = bid_page(after_submit=BID_PAGE_URL + "?error=1")

    result = await run_bid_flow(page, PRODUCT_URL, 1000, strategy=DirectUrlStrategy())

    assert result.success is False
    assert result.submitted is True


# ------------------------------ SERVICE ------------------------------

def bids_in_ledger():
    db = SessionLocal()
    try:
        return db.query(BidRecord).all()
    finally:
        db.close()


async def test_invalid_url_fails_before_any_browser_work(login_state):
    manager = FakeBrowserManager()
    service = BuyeeService(browser_manager=manager)

    with pytest.raises(InvalidProductUrlError):
        await service.place_bid("https://buyee.jp/item/search/query/camera", 1000)

    assert manager.opened == []


async def test_successful_bid_is_recorded_once_per_product(login_state):
    manager = FakeBrowserManager([bid_page(), bid_page()])
    service = BuyeeService(browser_manager=manager)

    first = await service.place_bid(PRODUCT_URL, 1000)
    second = await service.place_bid(PRODUCT_URL, 1200)

    assert first.success and second.success
    assert manager.opened == [login_state, login_state]
    bids = bids_in_ledger()
    assert len(bids) == 1
    assert bids[0].bid_amount == 1200
    assert bids[0].auction_id == "x123456789"
    assert bids[0].title == "Nikon F3 body"


async def test_failed_bid_is_not_recorded(login_state):
    service = BuyeeService(browser_manager=FakeBrowserManager([bid_page(with_input=False)]))

    result = await service.place_bid(PRODUCT_URL, 1000)

    assert result.success is False
    assert bids_in_ledger() == []


async def test_expired_session_is_refreshed_and_bid_retried_once(login_state, monkeypatch):
    monkeypatch.setattr(settings.buyee, "username", "user@example.com")
    monkeypatch.setattr(settings.buyee, "password", "secret")

    expired = bid_page(landing_url="https://buyee.jp/signup/login")
    relogin = FakePage(context_state=LIVE_COOKIES)
    relogin.on_click = lambda: setattr(relogin, "url", "https://buyee.jp/mybaggages")
    retry = bid_page()
    service = BuyeeService(browser_manager=FakeBrowserManager([expired, relogin, retry]))

    result = await service.place_bid(PRODUCT_URL, 1000)

    assert result.success is True
    assert relogin.filled_selectors["#login_mailAddress"] == "user@example.com"
    assert len(bids_in_ledger()) == 1


async def test_ambiguous_submit_is_not_retried(login_state):
    manager = FakeBrowserManager([bid_page(navigation_error=TimeoutError("no navigation"))])
    service = BuyeeService(browser_manager=manager)

    result = await service.place_bid(PRODUCT_URL, 1000)

    assert result.success is False
    assert manager.pages == []
    assert len(manager.opened) == 1


def test_upsert_bid_updates_existing_record():
    db = SessionLocal()
    try:
        DatabaseService.upsert_bid(db, PRODUCT_URL, 500, auction_id="x123456789", title="first")
        DatabaseService.upsert_bid(db, PRODUCT_URL, 900)
        bids = DatabaseService.get_bids(db)
        assert len(bids) == 1
        assert bids[0].bid_amount == 900
        assert bids[0].title == "first"
    finally:
        db.close()
