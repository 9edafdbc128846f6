# ------------------------------ IMPORTS ------------------------------
import os
import logging
from typing import List, Optional
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

# ------------------------------ TIMEOUTS (ms) ------------------------------
TIMEOUT_NAVIGATION = 25000
TIMEOUT_LOGIN_NAVIGATION = 60000
TIMEOUT_PRODUCT_NAVIGATION = 30000
TIMEOUT_BID_NAVIGATION = 15000
TIMEOUT_SELECTOR_WAIT = 15000
TIMEOUT_FALLBACK_SELECTOR = 5000
TIMEOUT_SHORT_CHECK = 10000
TIMEOUT_TWO_FACTOR_REDIRECT = 30000

# ------------------------------ DELAYS (ms) ------------------------------
DELAY_SHORT = 500
DELAY_MEDIUM = 1000
DELAY_LONG = 2000
DELAY_KEYSTROKE = 100

# ------------------------------ CONFIGURATION CLASSES ------------------------------
@dataclass
class ScrapingConfig:
    """Browser and scraping configuration."""
    headless: bool = os.getenv("SCRAPING_HEADLESS", "true").lower() == "true"
    user_agent: str = os.getenv("SCRAPING_USER_AGENT", "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36")
    locale: str = os.getenv("SCRAPING_LOCALE", "en-US")
    timezone_id: str = os.getenv("SCRAPING_TIMEZONE", "Europe/Berlin")
    retry_attempts: int = int(os.getenv("SCRAPING_RETRY_ATTEMPTS", "3"))
    retry_delay_seconds: float = float(os.getenv("SCRAPING_RETRY_DELAY", "2"))
    session_expiry_hours: int = int(os.getenv("SESSION_EXPIRY_HOURS", "24"))

@dataclass
class BuyeeConfig:
    """Target site and bidding configuration."""
    base_url: str = os.getenv("BUYEE_BASE_URL", "https://buyee.jp")
    username: str = os.getenv("BUYEE_USERNAME", "")
    password: str = os.getenv("BUYEE_PASSWORD", "")
    bid_strategy: str = os.getenv("BID_STRATEGY", "direct")
    service_plan: str = os.getenv("BID_SERVICE_PLAN", "1")
    payment_method: Optional[str] = os.getenv("BID_PAYMENT_METHOD") or None
    diagnostics_dir: Optional[str] = os.getenv("DIAGNOSTICS_DIR") or None

    def has_credentials(self) -> bool:
        """Return True if refresh credentials are configured."""
        return bool(self.username and self.password)

@dataclass
class SearchConfig:
    """Search pagination configuration."""
    context_ttl_minutes: int = int(os.getenv("SEARCH_CONTEXT_TTL_MINUTES", "30"))
    sweep_interval_seconds: int = int(os.getenv("SEARCH_SWEEP_INTERVAL_SECONDS", "60"))
    pages_per_request: int = int(os.getenv("SEARCH_PAGES_PER_REQUEST", "4"))
    page_delay_seconds: float = float(os.getenv("SEARCH_PAGE_DELAY", "1"))
    detail_refresh_delay_seconds: float = float(os.getenv("DETAIL_REFRESH_DELAY", "2"))

@dataclass
class ServerConfig:
    """API server configuration."""
    host: str = os.getenv("API_HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "10000"))
    debug: bool = os.getenv("API_DEBUG", "false").lower() == "true"
    inactivity_timeout_minutes: int = int(os.getenv("INACTIVITY_TIMEOUT_MINUTES", "45"))
    inactivity_check_seconds: int = int(os.getenv("INACTIVITY_CHECK_SECONDS", "60"))

@dataclass
class CORSConfig:
    """CORS configuration."""
    origins: str = os.getenv("CORS_ORIGINS", "http://localhost:5173")
    credentials: bool = os.getenv("CORS_CREDENTIALS", "true").lower() == "true"

    def get_origins_list(self) -> List[str]:
        """Get CORS origins as a list."""
        if self.origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]

@dataclass
class DatabaseConfig:
    """Database configuration."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///./buyee.db")
    pool_size: int = int(os.getenv("DB_POOL_SIZE", "5"))
    max_overflow: int = int(os.getenv("DB_MAX_OVERFLOW", "10"))

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

# ------------------------------ MAIN SETTINGS CLASS ------------------------------

class Settings:
    """Main application settings."""

    APP_NAME: str = "Buyee Bidder API"
    APP_VERSION: str = "1.0.0"

    def __init__(self):
        self.scraping = ScrapingConfig()
        self.buyee = BuyeeConfig()
        self.search = SearchConfig()
        self.server = ServerConfig()
        self.cors = CORSConfig()
        self.database = DatabaseConfig()

        self._setup_logging()

    def _setup_logging(self):
        """Configure application logging."""
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        logging.basicConfig(
            level=getattr(logging, log_level, logging.INFO),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

# ------------------------------ GLOBAL SETTINGS INSTANCE ------------------------------
settings = Settings()

# ------------------------------ END OF FILE ------------------------------
