"""
Configuration for the Factorial time tracking tool.

This module centralizes configuration values including credentials, URLs,
timeouts and default working hours. Values are read from the environment,
optionally populated from a ``.env`` file.
"""

import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

from .date_utils import parse_time, parse_break_minutes


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {value!r}")


@dataclass
class Config:
    """
    Application configuration.

    Attributes:
        email: Factorial account email
        password: Factorial account password
        base_url: Root URL of the Factorial web application
        headless: Whether to run browser in headless mode
        browser_timeout: Timeout for launching the browser (milliseconds)
        page_timeout: Timeout for page load states (milliseconds)
        navigation_timeout: Timeout for navigation (milliseconds)
        element_timeout: Default timeout for element operations (milliseconds)
        lookup_timeout: Wait per selector while trying a fallback list (milliseconds)
        verify_timeout: How long to wait for the missing-hours marker to disappear
        settle_delay: Fixed pause after clicks that open UI (milliseconds)
        input_delay: Fixed pause after filling an input (milliseconds)
        entry_delay: Pause between entries when logging a week (milliseconds)
        navigation_attempts: Number of attempts to load the login page
        navigation_retry_delay: Pause between navigation attempts (milliseconds)
        default_start_time: Default start time (HH:MM)
        default_end_time: Default end time (HH:MM)
        default_break_minutes: Default break length in minutes
        work_type: Work type typed into the entry popup (empty to skip)
        log_level: Logging level name
        log_file: Path of the rotating log file
        screenshot_dir: Directory for debug screenshots
        check_connectivity: Whether to probe the site before launching a browser
    """
    email: str = ""
    password: str = ""
    base_url: str = "https://app.factorialhr.com"
    headless: bool = True

    browser_timeout: int = 60000
    page_timeout: int = 30000
    navigation_timeout: int = 60000
    element_timeout: int = 20000
    lookup_timeout: int = 5000
    verify_timeout: int = 10000

    settle_delay: int = 2000
    input_delay: int = 500
    entry_delay: int = 2000
    navigation_attempts: int = 3
    navigation_retry_delay: int = 5000

    default_start_time: str = "09:00"
    default_end_time: str = "17:00"
    default_break_minutes: int = 60
    work_type: str = "Trabajo"

    log_level: str = "info"
    log_file: Optional[str] = "logs/factorial-automation.log"
    screenshot_dir: str = "logs"

    check_connectivity: bool = True

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> 'Config':
        """
        Build a configuration from environment variables.

        A ``.env`` file is loaded first (without overriding variables that
        are already set).

        Args:
            env_file: Path to the .env file (defaults to ./.env)

        Returns:
            Populated configuration

        Raises:
            ValueError: If a numeric or time variable is malformed
        """
        load_dotenv(dotenv_path=env_file or ".env", override=False)

        defaults = cls()
        return cls(
            email=_env_str("FACTORIAL_EMAIL", ""),
            password=os.getenv("FACTORIAL_PASSWORD", ""),
            base_url=_env_str("FACTORIAL_BASE_URL", defaults.base_url).rstrip("/"),
            headless=_env_str("HEADLESS", "true").lower() != "false",
            browser_timeout=_env_int("BROWSER_TIMEOUT", defaults.browser_timeout),
            page_timeout=_env_int("PAGE_TIMEOUT", defaults.page_timeout),
            navigation_timeout=_env_int("NAVIGATION_TIMEOUT", defaults.navigation_timeout),
            element_timeout=_env_int("ELEMENT_TIMEOUT", defaults.element_timeout),
            lookup_timeout=_env_int("LOOKUP_TIMEOUT", defaults.lookup_timeout),
            verify_timeout=_env_int("VERIFY_TIMEOUT", defaults.verify_timeout),
            default_start_time=parse_time(
                _env_str("DEFAULT_START_TIME", defaults.default_start_time)
            ),
            default_end_time=parse_time(
                _env_str("DEFAULT_END_TIME", defaults.default_end_time)
            ),
            default_break_minutes=parse_break_minutes(
                _env_str("DEFAULT_BREAK_MINUTES", str(defaults.default_break_minutes))
            ),
            work_type=os.getenv("WORK_TYPE", defaults.work_type).strip(),
            log_level=_env_str("LOG_LEVEL", defaults.log_level).lower(),
            log_file=_env_str("LOG_FILE", defaults.log_file),
            screenshot_dir=_env_str("SCREENSHOT_DIR", defaults.screenshot_dir),
        )

    def validate(self):
        """
        Validate configuration needed to drive the browser.

        Raises:
            ValueError: If configuration is invalid
        """
        errors = []

        if not self.email:
            errors.append("FACTORIAL_EMAIL is required")

        if not self.password:
            errors.append("FACTORIAL_PASSWORD is required")

        parsed = urlparse(self.base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            errors.append(f"FACTORIAL_BASE_URL is not a valid URL: {self.base_url}")

        if self.navigation_attempts < 1:
            errors.append("navigation_attempts must be at least 1")

        if errors:
            raise ValueError("Configuration errors:\n" + "\n".join(errors))

    @property
    def site_domain(self) -> str:
        """Registered domain of the site, e.g. ``factorialhr.com``."""
        host = urlparse(self.base_url).netloc.split(":")[0]
        labels = host.split(".")
        return ".".join(labels[-2:]) if len(labels) >= 2 else host

    def url_for(self, path: str) -> str:
        """Join a site path onto the base URL."""
        return f"{self.base_url}{path}"
