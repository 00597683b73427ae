"""
DOM selectors for the Factorial HR web application.

This module defines the selectors needed to interact with the Factorial
login page and the attendance table, grouped per target. Each target maps
to an ordered list: lookups try the entries in order and the first match
wins.

IMPORTANT: Factorial does not publish a stable DOM contract. When the
vendor UI changes, this module is the one place that needs updating.
"""

import re
from typing import List, Sequence, Tuple, Union

from playwright.sync_api import (
    Page,
    Locator,
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
)

from .logging_utils import get_logger


# "-8h", "-7.5h", "-4,5h"
MISSING_HOURS_PATTERN = re.compile(r'-\d+(?:[.,]\d+)?\s?h')


class ElementNotFoundError(Exception):
    """Raised when every selector for a target has been tried without a match."""

    def __init__(self, description: str, selectors: Sequence[str]):
        self.description = description
        self.selectors = list(selectors)
        super().__init__(
            f"Could not find {description} "
            f"(tried {len(self.selectors)} selector(s): {', '.join(self.selectors)})"
        )


def _button_text_selectors(labels: Sequence[str]) -> List[str]:
    selectors = []
    for label in labels:
        selectors.append(f'button:has-text("{label}")')
        selectors.append(f'[role="button"]:has-text("{label}")')
    return selectors


class FactorialSelectors:
    """
    Centralized selectors for Factorial DOM elements.

    All selectors use Playwright locator syntax.
    """

    # Login form
    EMAIL_INPUTS = [
        'input[type="email"]',
        'input[name="email"]',
        'input[placeholder*="email" i]',
        '#email',
        '.email-input',
    ]

    PASSWORD_INPUTS = [
        'input[type="password"]',
        'input[name="password"]',
        '#password',
        '.password-input',
    ]

    LOGIN_BUTTONS = [
        'button[type="submit"]',
        'input[type="submit"]',
        'button:has-text("Sign in")',
        'button:has-text("Login")',
        'button:has-text("Log in")',
        '.login-button',
        '.submit-button',
    ]

    LOGIN_ERRORS = [
        '.error-message',
        '.alert-error',
        '[data-testid="error"]',
        '.login-error',
    ]

    # Any of these present means the session is authenticated
    LOGGED_IN_INDICATORS = [
        '.dashboard',
        '.user-menu',
        '[data-testid="user-avatar"]',
        '.navigation-menu',
        'nav[role="navigation"]',
    ]

    LOGIN_URL_MARKERS = ['/login', '/signin']

    # Navigation to the attendance section
    TIME_TRACKING_LINKS = [
        'a[href*="attendance"]',
        'a[href*="time"]',
        'nav a:has-text("Attendance")',
        'nav a:has-text("Time")',
        '[data-testid="time-tracking"]',
        '.menu-time',
        '.sidebar a:has-text("Time")',
    ]

    TIME_TRACKING_PATHS = [
        '/attendance/clock-in',
        '/attendance/',
        '/attendance',
        '/time',
        '/time-tracking',
    ]

    ATTENDANCE_URL_MARKERS = ['attendance', 'time']

    # Popups and modals
    POPUP_CLOSE = 'div[role="button"][aria-label="Close"]'

    MODAL = '[aria-modal="true"]'

    MODAL_CLOSE_BUTTONS = [
        'div[role="button"][aria-label="Close"]',
        'button[aria-label="Close"]',
        '[aria-label="Close"]',
        'button:has-text("×")',
        'button:has-text("✕")',
        '.close-button',
        '[data-testid="close"]',
    ]

    # Attendance table
    MISSING_HOURS_MARKERS = [
        'span[title="-8h"]',
        'span:has-text("-8h")',
        '[title="-8h"]',
        'span[title*="-"]',
        'span:has-text("-")',
    ]

    # Only data rows carry the expand toggle; header rows do not
    ROW_TOGGLE = '[data-intercom-target="attendance-row-toggle"]'

    # Entry popover
    ADD_BUTTON_LABELS = ['Añadir', 'Add']
    ADD_BUTTONS = _button_text_selectors(ADD_BUTTON_LABELS)

    WORK_TYPE_INPUTS = [
        'select',
        '[role="combobox"]',
        'input[placeholder*="tipo" i]',
        'input[placeholder*="work" i]',
        'input[placeholder*="category" i]',
    ]

    TIME_INPUTS = 'input[type="time"]'
    GENERIC_INPUTS = 'input'

    START_TIME_INPUTS = [
        'input[placeholder*="inicio" i]',
        'input[placeholder*="start" i]',
        'input[name*="start" i]',
        'input[id*="start" i]',
    ]

    END_TIME_INPUTS = [
        'input[placeholder*="fin" i]',
        'input[placeholder*="end" i]',
        'input[name*="end" i]',
        'input[id*="end" i]',
    ]

    BREAK_INPUTS = [
        'input[name*="break" i]',
        'input[placeholder*="break" i]',
        'input[aria-label*="break" i]',
        '[data-testid="break-time"]',
        '.break-time input',
    ]

    DESCRIPTION_INPUTS = [
        'textarea[name*="description" i]',
        'textarea[placeholder*="description" i]',
        'input[name*="description" i]',
        'input[placeholder*="note" i]',
        '[data-testid="description"]',
        '.description textarea',
        '.notes textarea',
    ]

    APPLY_BUTTON_LABELS = ['Aplicar', 'Apply']
    APPLY_BUTTONS = _button_text_selectors(APPLY_BUTTON_LABELS) + ['button[type="submit"]']

    FORM_ERRORS = [
        '.error-message',
        '.alert-error',
        '[data-testid="error"]',
        '.field-error',
        '.validation-error',
    ]

    SUCCESS_INDICATORS = '.success, [data-testid="success"], .notification-success'


def resolve_first(
    scope: Union[Page, Locator],
    selectors: Sequence[str],
    description: str,
    timeout: int = 0,
    visible: bool = True
) -> Tuple[Locator, str]:
    """
    Try selectors in order and return the first one that matches.

    Args:
        scope: Page or locator to search within
        selectors: Ordered candidate selectors
        description: Human readable name of the target (for errors and logs)
        timeout: Milliseconds to wait per selector (0 checks once without waiting)
        visible: Require the match to be visible

    Returns:
        Tuple of (locator of the first match, selector that matched)

    Raises:
        ElementNotFoundError: If no selector matches
    """
    logger = get_logger()

    for selector in selectors:
        candidate = scope.locator(selector).first
        try:
            if timeout > 0:
                candidate.wait_for(
                    state='visible' if visible else 'attached',
                    timeout=timeout
                )
            elif candidate.count() == 0 or (visible and not candidate.is_visible()):
                logger.debug(f"  {description}: no match for {selector}")
                continue
        except PlaywrightTimeoutError:
            logger.debug(f"  {description}: timed out waiting for {selector}")
            continue
        except PlaywrightError as e:
            logger.debug(f"  {description}: selector {selector} failed: {e}")
            continue

        logger.debug(f"Found {description} with selector: {selector}")
        return candidate, selector

    raise ElementNotFoundError(description, selectors)


def find_button_by_text(page: Page, labels: Sequence[str]) -> Locator:
    """
    Scan every button on the page for one whose text contains a label.

    This is the last resort when none of the selector strategies matched.

    Args:
        page: Page to scan
        labels: Case-insensitive label fragments

    Returns:
        Locator of the first matching button

    Raises:
        ElementNotFoundError: If no button text matches
    """
    wanted = [label.lower() for label in labels]

    for button in page.locator('button').all():
        try:
            text = (button.text_content() or '').strip().lower()
        except PlaywrightError:
            continue
        if any(label in text for label in wanted):
            return button

    raise ElementNotFoundError(
        f"button labelled {' / '.join(labels)}",
        [f'button text contains "{label}"' for label in labels]
    )
