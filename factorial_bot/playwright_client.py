"""
Playwright client for Factorial automation.

This module handles the browser session: launching Chromium, loading the
login page with retries, signing in, and reaching the attendance section.
"""

from typing import Callable, Dict, List, Optional, TypeVar
from urllib.parse import urlparse

from playwright.sync_api import (
    sync_playwright,
    Browser,
    BrowserContext,
    Page,
    Playwright,
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
)

from .config import Config
from .selectors import FactorialSelectors, ElementNotFoundError, resolve_first
from .network_utils import is_network_error, format_connectivity_error
from .time_tracker import TimeTracker
from .logging_utils import get_logger, log_step, log_error, log_warning, log_success


USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/141.0.0.0 Safari/537.36 Edg/141.0.0.0'
)

VIEWPORT = {'width': 1920, 'height': 1080}

T = TypeVar('T')


class LoginError(Exception):
    """Raised when authentication against Factorial fails."""
    pass


class NavigationError(Exception):
    """Raised when a required page cannot be reached."""
    pass


class FactorialClient:
    """
    Playwright client owning one browser, context and page.
    """

    def __init__(self, config: Config):
        """
        Initialize the client.

        Args:
            config: Application configuration
        """
        self.config = config
        self.logger = get_logger()
        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None

    def __enter__(self):
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

    def start(self):
        """
        Start Playwright and launch browser.
        """
        log_step("Initializing Playwright browser...", self.logger)

        self.playwright = sync_playwright().start()
        try:
            self.browser = self.playwright.chromium.launch(
                headless=self.config.headless,
                timeout=self.config.browser_timeout
            )

            self.context = self.browser.new_context(
                viewport=VIEWPORT,
                user_agent=USER_AGENT
            )

            self.page = self.context.new_page()
            self.page.set_default_timeout(self.config.element_timeout)
            self.page.set_default_navigation_timeout(self.config.navigation_timeout)
        except Exception:
            self.close()
            raise

        self.logger.debug(f"Browser launched (headless={self.config.headless})")

    def close(self):
        """
        Close page, context, browser and Playwright.
        """
        log_step("Cleaning up browser resources...", self.logger)
        try:
            if self.page:
                self.page.close()
            if self.context:
                self.context.close()
            if self.browser:
                self.browser.close()
        except PlaywrightError as e:
            log_warning(f"Error during cleanup: {e}", self.logger)
        finally:
            if self.playwright:
                self.playwright.stop()
            self.page = None
            self.context = None
            self.browser = None
            self.playwright = None

        self.logger.debug("Browser closed")

    def _require_page(self) -> Page:
        if self.page is None:
            raise RuntimeError("Browser not initialized. Call start() first.")
        return self.page

    def open_login_page(self):
        """
        Navigate to the Factorial base URL, retrying a fixed number of times.

        Raises:
            NavigationError: If every attempt fails
        """
        page = self._require_page()
        attempts = self.config.navigation_attempts

        log_step(f"Navigating to {self.config.base_url}...", self.logger)

        for attempt in range(1, attempts + 1):
            try:
                self.logger.info(f"Navigation attempt {attempt}/{attempts}...")
                page.goto(
                    self.config.base_url,
                    timeout=self.config.navigation_timeout,
                    wait_until='domcontentloaded'
                )
                page.wait_for_load_state('networkidle', timeout=self.config.page_timeout)
                log_success("Navigated to Factorial login page", self.logger)
                return
            except PlaywrightError as e:
                if attempt == attempts:
                    if 'net::' in str(e) or is_network_error(str(e)):
                        for line in format_connectivity_error(
                            self.config.base_url, str(e), True
                        ).splitlines():
                            self.logger.error(f"  {line}")
                    raise NavigationError(
                        f"Failed to navigate to Factorial after {attempts} attempts. "
                        f"Network issue or site unavailable. Error: {e}"
                    ) from e

                delay = self.config.navigation_retry_delay
                log_warning(
                    f"Navigation attempt {attempt} failed, retrying in {delay / 1000:g}s: {e}",
                    self.logger
                )
                page.wait_for_timeout(delay)

    def login(self) -> bool:
        """
        Open the login page and sign in with the configured credentials.

        Returns:
            True when the session is authenticated

        Raises:
            NavigationError: If the login page cannot be loaded
            LoginError: If the form cannot be found or the credentials are rejected
        """
        self.open_login_page()
        return self.submit_credentials()

    def submit_credentials(self) -> bool:
        """
        Fill and submit the login form on the current page.

        Returns:
            True when the session is authenticated

        Raises:
            LoginError: If the form cannot be found or login does not succeed
        """
        page = self._require_page()
        lookup_timeout = self.config.lookup_timeout

        log_step("Looking for login form...", self.logger)

        try:
            email_input, _ = resolve_first(
                page, FactorialSelectors.EMAIL_INPUTS, "email input", timeout=lookup_timeout
            )
        except ElementNotFoundError:
            if self.is_logged_in():
                log_success("Already logged in to Factorial", self.logger)
                return True
            raise LoginError(
                "Could not find email input field. The page structure might have changed."
            )

        self.logger.info("Filling email field...")
        email_input.fill(self.config.email)

        try:
            password_input, _ = resolve_first(
                page, FactorialSelectors.PASSWORD_INPUTS, "password input", timeout=lookup_timeout
            )
        except ElementNotFoundError:
            raise LoginError("Could not find password input field")

        self.logger.info("Filling password field...")
        password_input.fill(self.config.password)

        try:
            button, _ = resolve_first(page, FactorialSelectors.LOGIN_BUTTONS, "login button")
            self.logger.info("Clicking login button...")
            button.click()
        except ElementNotFoundError:
            self.logger.info("No login button found, trying Enter key...")
            password_input.press('Enter')

        try:
            page.wait_for_load_state('networkidle', timeout=self.config.page_timeout)
        except PlaywrightTimeoutError:
            self.logger.debug("Page did not settle after login, checking state anyway")

        if self.is_logged_in():
            log_success("Login successful!", self.logger)
            return True

        error_text = self._read_login_error()
        if error_text:
            log_error(f"Login failed with error: {error_text}", self.logger)
            raise LoginError(f"Login failed: {error_text}")

        log_error("Login failed - no specific error message found", self.logger)
        raise LoginError("Login failed - please check credentials")

    def _read_login_error(self) -> Optional[str]:
        page = self._require_page()
        for selector in FactorialSelectors.LOGIN_ERRORS:
            element = page.locator(selector).first
            try:
                if element.count() == 0:
                    continue
                text = (element.text_content() or '').strip()
            except PlaywrightError:
                continue
            if text:
                return text
        return None

    def is_logged_in(self) -> bool:
        """
        Check whether the current page belongs to an authenticated session.

        Returns:
            True if a logged-in marker is present or the URL is an app page
        """
        if self.page is None:
            return False

        try:
            for selector in FactorialSelectors.LOGGED_IN_INDICATORS:
                if self.page.locator(selector).count() > 0:
                    self.logger.debug(f"Found logged-in indicator: {selector}")
                    return True

            current_url = self.page.url
            if any(marker in current_url for marker in FactorialSelectors.LOGIN_URL_MARKERS):
                return False

            host = urlparse(current_url).netloc
            return bool(host) and host.endswith(self.config.site_domain)
        except PlaywrightError as e:
            self.logger.debug(f"Error checking login status: {e}")
            return False

    def navigate_to_time_tracking(self):
        """
        Reach the attendance section, first through links then by URL.

        Raises:
            NavigationError: If no link or URL leads to the section
        """
        page = self._require_page()
        log_step("Navigating to time tracking section...", self.logger)

        for selector in FactorialSelectors.TIME_TRACKING_LINKS:
            link = page.locator(selector).first
            try:
                if link.count() == 0 or not link.is_visible():
                    continue
                self.logger.info(f"Found time tracking link with selector: {selector}")
                link.click()
                page.wait_for_load_state('networkidle', timeout=self.config.page_timeout)
                log_success(f"Navigated to: {page.url}", self.logger)
                return
            except PlaywrightError as e:
                self.logger.debug(f"Time tracking link {selector} failed: {e}")

        if self.open_first_reachable(FactorialSelectors.TIME_TRACKING_PATHS):
            return

        raise NavigationError(
            "Could not navigate to time tracking section. Please check the Factorial interface."
        )

    def open_first_reachable(self, paths: List[str]) -> bool:
        """
        Try direct URLs in order and stop at the first usable page.

        A page is usable when its title does not look like an error page
        and the session was not redirected to the login form.

        Args:
            paths: Site paths to try

        Returns:
            True if one of the paths loaded
        """
        page = self._require_page()

        for path in paths:
            url = self.config.url_for(path)
            try:
                self.logger.info(f"Trying direct navigation to: {url}")
                page.goto(url, timeout=self.config.page_timeout, wait_until='load')
                page.wait_for_timeout(self.config.settle_delay)

                title = page.title().lower()
                current_url = page.url
                if 'error' in title or '404' in title:
                    continue
                if any(marker in current_url for marker in FactorialSelectors.LOGIN_URL_MARKERS):
                    continue

                log_success(f"Navigated to: {current_url}", self.logger)
                return True
            except PlaywrightError as e:
                self.logger.debug(f"Failed to navigate to {url}: {e}")

        return False

    def inspect_page(self, max_buttons: int = 20, max_inputs: int = 10) -> Dict[str, object]:
        """
        Collect a description of the interactive elements on the page.

        Args:
            max_buttons: Maximum number of buttons to describe
            max_inputs: Maximum number of inputs to describe

        Returns:
            Dictionary with url, title, buttons, inputs and form count
        """
        page = self._require_page()

        buttons = []
        for button in page.locator('button').all()[:max_buttons]:
            try:
                buttons.append({
                    'text': (button.text_content() or '').strip(),
                    'class': button.get_attribute('class'),
                    'id': button.get_attribute('id'),
                    'aria_label': button.get_attribute('aria-label'),
                })
            except PlaywrightError:
                buttons.append({'text': '[Error reading button]'})

        inputs = []
        for field in page.locator('input').all()[:max_inputs]:
            try:
                inputs.append({
                    'type': field.get_attribute('type'),
                    'name': field.get_attribute('name'),
                    'placeholder': field.get_attribute('placeholder'),
                })
            except PlaywrightError:
                inputs.append({'type': '[Error reading input]'})

        return {
            'url': page.url,
            'title': page.title(),
            'buttons': buttons,
            'button_count': page.locator('button').count(),
            'inputs': inputs,
            'input_count': page.locator('input').count(),
            'form_count': page.locator('form').count(),
        }

    def time_tracker(self) -> TimeTracker:
        """Get a tracker bound to this session's page."""
        return TimeTracker(self._require_page(), self.config)

    def take_screenshot(self, name: str) -> Optional[str]:
        """
        Take a screenshot of the current page.

        Args:
            name: File name inside the screenshot directory

        Returns:
            Path of the saved screenshot, or None on failure
        """
        return self.time_tracker().take_screenshot(name)


def run_session(
    config: Config,
    action: Callable[[FactorialClient], T],
    navigate: bool = True
) -> T:
    """
    Open a browser, log in, optionally reach the attendance page, run an action.

    Args:
        config: Application configuration
        action: Callable receiving the authenticated client
        navigate: Whether to open the time tracking section first

    Returns:
        Whatever the action returns

    Raises:
        LoginError: If authentication fails
        NavigationError: If a required page cannot be reached
    """
    with FactorialClient(config) as client:
        client.login()

        if navigate:
            client.navigate_to_time_tracking()

        return action(client)
