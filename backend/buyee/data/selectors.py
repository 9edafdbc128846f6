# ------------------------------ IMPORTS ------------------------------
from core.config.settings import settings
from .locators import TextLocator, AttributeLocator

# ------------------------------ URLS ------------------------------
BASE_URL = settings.buyee.base_url.rstrip("/")

LOGIN_URL = f"{BASE_URL}/signup/login"
TWO_FACTOR_URL = f"{BASE_URL}/signup/twoFactor"
SEARCH_URL = f"{BASE_URL}/item/search/query"
BID_URL = f"{BASE_URL}/bid"

LOGIN_REDIRECT_MARKER = "signup/login"
TWO_FACTOR_MARKER = "/signup/twoFactor"
BID_PAGE_MARKER = "/bid/"
BID_COMPLETION_MARKERS = ["/bid/complete/", "/confirm"]

AUCTION_ID_PATTERN = r"auction/([a-z0-9]+)"

SEARCH_TRANSLATION_TYPE = "98"

# ------------------------------ SENTINELS ------------------------------
NO_TITLE = "No Title"
PRICE_NOT_AVAILABLE = "Price Not Available"
TIME_NOT_AVAILABLE = "Time Not Available"

# ------------------------------ LOGIN SELECTORS ------------------------------

LOGIN_EMAIL_SELECTOR = "#login_mailAddress"
LOGIN_PASSWORD_SELECTOR = "#login_password"
LOGIN_SUBMIT_SELECTOR = "#login_submit"

TWO_FACTOR_CODE_LENGTH = 6
TWO_FACTOR_INPUT_SELECTOR = "#input{index}"
TWO_FACTOR_ERROR_SELECTOR = "#error-frame"

# ------------------------------ SEARCH SELECTORS ------------------------------

RESULT_COUNT_SELECTOR = ".result-num"
NO_RESULTS_SELECTOR = ".search-no-hits"

ITEM_CARD_SELECTOR = ".itemCard"
ITEM_CARD_FALLBACK_SELECTORS = [
    ".g-thumbnail",           # Thumbnail wrapper
    ".itemCard__itemName",    # Name block only
]

CARD_TITLE_LOCATORS = [
    TextLocator(".itemCard__itemName a"),
    TextLocator("a[data-testid='item-name']"),
]

CARD_URL_LOCATORS = [
    AttributeLocator(".itemCard__itemName a", ("href",)),
    AttributeLocator("a[data-testid='item-name']", ("href",)),
    AttributeLocator("a[href*='/auction/']", ("href",)),
]

CARD_IMAGE_LOCATORS = [
    AttributeLocator(".g-thumbnail__image", ("data-src", "src")),
    AttributeLocator("img[data-testid='item-image']", ("data-src", "src")),
]

CARD_PRICE_LOCATORS = [
    TextLocator(".g-price"),
    TextLocator("[data-testid='item-price']"),
]

CARD_TIME_LOCATORS = [
    TextLocator(".itemCard__time"),
    TextLocator(".g-text--attention"),
    TextLocator(".timeLeft"),
    TextLocator("[data-testid='time-remaining']"),
]

# ------------------------------ PRODUCT PAGE SELECTORS ------------------------------

PRODUCT_PRICE_LOCATORS = [
    TextLocator(".current_price .price"),
    TextLocator(".price"),
    TextLocator(".itemPrice"),
]

PRODUCT_TIME_LOCATORS = [
    TextLocator(".itemInformation__infoItem .g-text--attention"),
    TextLocator(".itemInfo__time span"),
    TextLocator(".timeLeft"),
    TextLocator(".g-text--attention"),
]

PRODUCT_TITLE_LOCATORS = [
    TextLocator("h1"),
    TextLocator(".itemName"),
]

PRODUCT_THUMBNAIL_LOCATORS = [
    AttributeLocator(".js-smartPhoto img", ("data-src", "src")),
    AttributeLocator(".itemPhoto img", ("data-src", "src")),
    AttributeLocator("meta[property='og:image']", ("content",)),
]

# ------------------------------ BID FORM SELECTORS ------------------------------

BID_BUTTON_SELECTORS = [
    "#bidNow",
    ".bidNow",
    "a[href*='/bid/']",
]

BID_PRICE_INPUT_SELECTORS = [
    'input[name="bidYahoo[price]"]',
    "#bidYahoo_price",
]

BID_PLAN_SELECTORS = [
    'select[name="bidYahoo[plan]"]',
    "#bidYahoo_plan",
]

BID_PAYMENT_SELECTORS = [
    'select[name="bidYahoo[payment]"]',
    "#bidYahoo_payment",
]

BID_SUBMIT_SELECTORS = [
    "#bid_submit",
    'button[type="submit"]',
    'input[type="submit"]',
]

# Sets a <select> value and notifies the page's change listeners.
SELECT_OPTION_SCRIPT = """
(args) => {
    const el = document.querySelector(args.selector);
    if (!el) return false;
    el.value = args.value;
    el.dispatchEvent(new Event('change', { bubbles: true }));
    return el.value === args.value;
}
"""

# ------------------------------ END OF FILE ------------------------------
