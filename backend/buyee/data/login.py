# ------------------------------ IMPORTS ------------------------------
import re
from dataclasses import dataclass
from typing import Optional, Tuple
import logging

from core.config.browser_settings import BrowserManager
from core.config.settings import (
    settings, TIMEOUT_LOGIN_NAVIGATION, TIMEOUT_FALLBACK_SELECTOR, TIMEOUT_TWO_FACTOR_REDIRECT,
    DELAY_SHORT, DELAY_MEDIUM, DELAY_KEYSTROKE
)
from core.database.models import SessionKind
from core.security.session import (
    save_storage_state, get_storage_state, delete_storage_state, missing_required_cookies
)
from core.utils.browser_helpers import capture_diagnostics
from buyee.exceptions import LoginError, TwoFactorError, SessionError
from .selectors import (
    LOGIN_URL, TWO_FACTOR_URL, TWO_FACTOR_MARKER,
    LOGIN_EMAIL_SELECTOR, LOGIN_PASSWORD_SELECTOR, LOGIN_SUBMIT_SELECTOR,
    TWO_FACTOR_CODE_LENGTH, TWO_FACTOR_INPUT_SELECTOR, TWO_FACTOR_ERROR_SELECTOR
)

logger = logging.getLogger(__name__)

TWO_FACTOR_CODE_PATTERN = re.compile(rf"\d{{{TWO_FACTOR_CODE_LENGTH}}}")

# ------------------------------ RESULTS ------------------------------

@dataclass
class LoginResult:
    success: bool
    requires_two_factor: bool = False
    message: str = ""

# ------------------------------ HELPER FUNCTIONS ------------------------------

def validate_two_factor_code(code) -> str:
    """Normalize a 2FA code and reject anything but exactly six digits."""
    normalized = str(code).strip() if code is not None else ""
    if not TWO_FACTOR_CODE_PATTERN.fullmatch(normalized):
        raise TwoFactorError(f"Two-factor code must be exactly {TWO_FACTOR_CODE_LENGTH} digits")
    return normalized

# ------------------------------ SESSION MANAGER ------------------------------

class SessionManager:
    """Obtains, validates and refreshes the Buyee login session."""

    def __init__(self, browser_manager: BrowserManager):
        self.browser_manager = browser_manager
        self._credentials: Optional[Tuple[str, str]] = None

    # ------------------------------ LOGIN ------------------------------

    async def login(self, username: str, password: str) -> LoginResult:
        """Log in with a cookie-less context; stops at the 2FA challenge if one is shown."""
        logger.info("Starting login process...")
        delete_storage_state(SessionKind.LOGIN)

        try:
            async with self.browser_manager.page(storage_state=None, timeout=TIMEOUT_LOGIN_NAVIGATION) as page:
                try:
                    return await self._submit_credentials(page, username, password)
                except Exception as e:
                    await capture_diagnostics(page, "login-error", e, settings.buyee.diagnostics_dir)
                    raise

        except LoginError:
            raise
        except Exception as e:
            logger.exception(f"Login error: {e}")
            raise LoginError(f"Login failed: {e}") from e

    async def _submit_credentials(self, page, username: str, password: str) -> LoginResult:
        await page.goto(LOGIN_URL, wait_until="networkidle", timeout=TIMEOUT_LOGIN_NAVIGATION)

        logger.info("Filling login form...")
        await page.fill(LOGIN_EMAIL_SELECTOR, username)
        await page.wait_for_timeout(DELAY_SHORT)
        await page.fill(LOGIN_PASSWORD_SELECTOR, password)
        await page.wait_for_timeout(DELAY_SHORT)

        async with page.expect_navigation(wait_until="networkidle", timeout=TIMEOUT_LOGIN_NAVIGATION):
            await page.click(LOGIN_SUBMIT_SELECTOR)

        logger.info(f"Post-login URL: {page.url}")
        self._credentials = (username, password)

        if TWO_FACTOR_MARKER in page.url:
            logger.info("Two-factor authentication required")
            if not await save_storage_state(page.context, SessionKind.TEMPORARY, self.browser_manager.user_agent):
                raise LoginError("Could not save temporary login state")
            return LoginResult(
                success=False,
                requires_two_factor=True,
                message="Two-factor authentication required"
            )

        if not await save_storage_state(page.context, SessionKind.LOGIN, self.browser_manager.user_agent):
            raise LoginError("Could not save login state")

        logger.info("Login successful")
        return LoginResult(success=True, message="Login successful")

    # ------------------------------ TWO-FACTOR ------------------------------

    async def submit_two_factor_code(self, code) -> LoginResult:
        """Complete a pending login with the six-digit code sent by the site."""
        temporary_state = get_storage_state(SessionKind.TEMPORARY)
        if not temporary_state:
            raise TwoFactorError("No temporary login state found. Please log in again.")

        digits = validate_two_factor_code(code)

        try:
            async with self.browser_manager.page(storage_state=temporary_state, timeout=TIMEOUT_LOGIN_NAVIGATION) as page:
                try:
                    result = await self._enter_two_factor_code(page, digits)
                except Exception as e:
                    await capture_diagnostics(page, "two-factor-error", e, settings.buyee.diagnostics_dir)
                    raise

        except TwoFactorError:
            raise
        except Exception as e:
            logger.exception(f"Two-factor authentication error: {e}")
            raise TwoFactorError(f"Two-factor authentication failed: {e}") from e

        delete_storage_state(SessionKind.TEMPORARY)
        logger.info("Two-factor authentication successful")
        return result

    async def _enter_two_factor_code(self, page, digits: str) -> LoginResult:
        logger.info("Navigating to 2FA page...")
        await page.goto(TWO_FACTOR_URL, wait_until="networkidle", timeout=TIMEOUT_LOGIN_NAVIGATION)

        for index, digit in enumerate(digits, start=1):
            selector = TWO_FACTOR_INPUT_SELECTOR.format(index=index)
            code_input = await page.wait_for_selector(selector, timeout=TIMEOUT_FALLBACK_SELECTOR)
            await code_input.fill("")
            await code_input.type(digit, delay=DELAY_KEYSTROKE)

        await page.wait_for_timeout(DELAY_MEDIUM)

        error_frame = await page.query_selector(TWO_FACTOR_ERROR_SELECTOR)
        if error_frame and await error_frame.is_visible():
            raise TwoFactorError("Invalid two-factor code")

        try:
            await page.wait_for_url(
                lambda url: TWO_FACTOR_MARKER not in url,
                wait_until="networkidle",
                timeout=TIMEOUT_TWO_FACTOR_REDIRECT
            )
        except Exception as e:
            logger.warning(f"No redirect after 2FA entry: {e}")

        if TWO_FACTOR_MARKER in page.url:
            raise TwoFactorError("Still on 2FA page after code entry")

        if not await save_storage_state(page.context, SessionKind.LOGIN, self.browser_manager.user_agent):
            raise TwoFactorError("Could not save login state")

        return LoginResult(success=True, message="Two-factor authentication successful")

    # ------------------------------ VALIDATION ------------------------------

    def check_login_state(self) -> bool:
        """Return True if the durable session holds every required, unexpired cookie."""
        try:
            storage_state = get_storage_state(SessionKind.LOGIN)
            if not storage_state:
                logger.info("No stored login session")
                return False

            missing = missing_required_cookies(storage_state)
            if missing:
                logger.info(f"Missing or expired cookies: {missing}")
                return False

            return True

        except Exception as e:
            logger.error(f"Error checking login state: {e}")
            return False

    def _refresh_credentials(self) -> Optional[Tuple[str, str]]:
        if settings.buyee.has_credentials():
            return settings.buyee.username, settings.buyee.password
        return self._credentials

    async def refresh_login_session(self) -> None:
        """Log in again with stored credentials; raise SessionError if that does not yield a valid session."""
        logger.info("Refreshing login session...")
        credentials = self._refresh_credentials()
        if not credentials:
            raise SessionError("No stored credentials to refresh the login session. Please log in again.")

        try:
            result = await self.login(*credentials)
        except LoginError as e:
            raise SessionError(f"Failed to refresh login session: {e}") from e

        if result.requires_two_factor:
            raise SessionError("Session refresh requires two-factor authentication. Please log in again.")

        if not result.success or not self.check_login_state():
            raise SessionError("Failed to refresh login session")

        logger.info("Login session refreshed successfully")

    async def ensure_session(self) -> None:
        """Make sure a valid durable session exists, refreshing it once if needed."""
        if self.check_login_state():
            return
        await self.refresh_login_session()

# ------------------------------ END OF FILE ------------------------------
