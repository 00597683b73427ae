"""
Shared fixtures for the test suite.

Browser tests run against synthetic HTML loaded into a real Chromium page.
"""

import pytest
from playwright.sync_api import sync_playwright

from factorial_bot.config import Config


CONFIG_VARIABLES = [
    'FACTORIAL_EMAIL',
    'FACTORIAL_PASSWORD',
    'FACTORIAL_BASE_URL',
    'HEADLESS',
    'BROWSER_TIMEOUT',
    'PAGE_TIMEOUT',
    'NAVIGATION_TIMEOUT',
    'ELEMENT_TIMEOUT',
    'LOOKUP_TIMEOUT',
    'VERIFY_TIMEOUT',
    'DEFAULT_START_TIME',
    'DEFAULT_END_TIME',
    'DEFAULT_BREAK_MINUTES',
    'WORK_TYPE',
    'LOG_LEVEL',
    'LOG_FILE',
    'SCREENSHOT_DIR',
]


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Run every test in an empty directory with no configuration set."""
    for name in CONFIG_VARIABLES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv('LOG_FILE', str(tmp_path / 'logs' / 'test.log'))
    monkeypatch.setenv('SCREENSHOT_DIR', str(tmp_path / 'screenshots'))
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def fast_config(tmp_path):
    """Configuration with fixed delays disabled and short lookups."""
    return Config(
        email='user@example.com',
        password='secret',
        base_url='https://factorial.test',
        settle_delay=0,
        input_delay=0,
        entry_delay=0,
        navigation_retry_delay=0,
        lookup_timeout=300,
        verify_timeout=500,
        page_timeout=5000,
        navigation_timeout=5000,
        element_timeout=2000,
        log_file=None,
        screenshot_dir=str(tmp_path / 'screenshots'),
    )


@pytest.fixture(scope="module")
def browser():
    """Create a browser instance for tests."""
    with sync_playwright() as p:
        browser = p.chromium.launch()
        yield browser
        browser.close()


@pytest.fixture
def page(browser):
    """Create a new page for each test."""
    context = browser.new_context()
    page = context.new_page()
    page.set_default_timeout(5000)
    yield page
    context.close()
