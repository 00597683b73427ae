"""
Attendance table automation for Factorial.

This module finds a table row with missing hours, opens the entry popover
attached to it, fills the start/end times, submits, and checks that the
missing-hours marker is gone.

The final check is a heuristic: Factorial does not confirm the save, so a
row that no longer shows a "-Nh" marker is taken as success.
"""

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional, List, Tuple

from playwright.sync_api import (
    Page,
    Locator,
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
)

from .config import Config
from .date_utils import extract_day_number, format_break_time
from .models import WorkEntry, LogResult
from .selectors import (
    FactorialSelectors,
    MISSING_HOURS_PATTERN,
    ElementNotFoundError,
    resolve_first,
    find_button_by_text,
)
from .logging_utils import get_logger, log_step, log_error, log_warning, log_success


class FormValidationError(Exception):
    """Raised when the entry popover shows a validation error after submit."""
    pass


# Index of the enclosing <tr> in document order, or -1
_ROW_INDEX_JS = """
el => {
    const row = el.closest('tr');
    return row ? Array.prototype.indexOf.call(document.querySelectorAll('tr'), row) : -1;
}
"""

# True once the row no longer contains a missing-hours marker
_ROW_COMPLETED_JS = """
([index, pattern]) => {
    const row = document.querySelectorAll('tr')[index];
    if (!row) return true;
    return !new RegExp(pattern).test(row.textContent || '');
}
"""


@dataclass
class MissingHoursRow:
    """
    A data row of the attendance table that still has hours to log.

    Attributes:
        locator: Locator addressing the <tr> by document position
        index: Position of the row among all <tr> elements
        marker: Text of the missing-hours marker (e.g. "-8h")
        date_text: Approximate date text of the row, for logging
        selector: Marker selector that found the row
    """
    locator: Locator
    index: int
    marker: str
    date_text: str = "unknown"
    selector: str = ""

    @property
    def day(self) -> Optional[int]:
        return extract_day_number(self.date_text) if self.date_text != "unknown" else None


class TimeTracker:
    """
    Drives the attendance page of an authenticated session.
    """

    def __init__(self, page: Page, config: Config):
        """
        Initialize the tracker.

        Args:
            page: Page already logged in to Factorial
            config: Application configuration
        """
        self.page = page
        self.config = config
        self.logger = get_logger()

    def _pause(self, milliseconds: Optional[int] = None):
        delay = self.config.settle_delay if milliseconds is None else milliseconds
        if delay > 0:
            self.page.wait_for_timeout(delay)

    # ------------------------------------------------------------------
    # Page preparation
    # ------------------------------------------------------------------

    def ensure_attendance_page(self):
        """Navigate to the clock-in page unless already on an attendance URL."""
        current_url = self.page.url
        if any(marker in current_url for marker in FactorialSelectors.ATTENDANCE_URL_MARKERS):
            return

        log_warning("Not on attendance page, navigating...", self.logger)
        self.page.goto(
            self.config.url_for(FactorialSelectors.TIME_TRACKING_PATHS[0]),
            timeout=self.config.page_timeout,
            wait_until='load'
        )
        self._pause()

    def dismiss_popups(self):
        """Close a welcome/announcement popup, or click the page body."""
        log_step("Looking for close button to dismiss any popups...", self.logger)
        try:
            close_button = self.page.locator(FactorialSelectors.POPUP_CLOSE).first
            if close_button.count() > 0:
                self.logger.info("Found close button, clicking to dismiss popup...")
                close_button.click()
            else:
                self.logger.debug("No close button found, clicking body as fallback...")
                self.page.click('body', timeout=2000)
            self._pause(1000)
        except PlaywrightError as e:
            self.logger.debug(f"Could not dismiss popups, continuing: {e}")

    def dismiss_blocking_modal(self) -> bool:
        """
        Dismiss an open modal dialog that would intercept clicks.

        Tries close buttons first, then Escape, then a click in the page corner.

        Returns:
            True if no modal remains open
        """
        modal = self.page.locator(FactorialSelectors.MODAL)
        if modal.count() == 0:
            return True

        self.logger.info("Blocking modal found, trying to dismiss it...")

        try:
            close_button, selector = resolve_first(
                self.page, FactorialSelectors.MODAL_CLOSE_BUTTONS, "modal close button"
            )
            self.logger.info(f"Closing modal with selector: {selector}")
            close_button.click()
        except ElementNotFoundError:
            self.logger.info("No close button found, pressing Escape...")
            self.page.keyboard.press('Escape')
        self._pause(1000)

        if modal.count() > 0:
            self.logger.info("Modal still present, clicking outside it...")
            self.page.mouse.click(10, 10)
            self._pause(1000)

        return modal.count() == 0

    # ------------------------------------------------------------------
    # Row location
    # ------------------------------------------------------------------

    def _row_for_marker(self, marker: Locator) -> Optional[Tuple[Locator, int]]:
        index = marker.evaluate(_ROW_INDEX_JS)
        if index is None or index < 0:
            return None
        return self.page.locator('tr').nth(index), index

    def _row_date_text(self, row: Locator) -> str:
        """First cell text that looks like it carries a day of month."""
        try:
            cells: List[str] = row.locator('td').all_text_contents()
        except PlaywrightError as e:
            self.logger.debug(f"Could not read row cells: {e}")
            return "unknown"

        for text in cells:
            text = text.strip()
            if MISSING_HOURS_PATTERN.search(text):
                continue
            if extract_day_number(text) is not None:
                return text
        return "unknown"

    def wait_for_attendance_rows(self) -> bool:
        """
        Wait for the attendance table to render its data rows.

        Returns:
            True once a row toggle is attached, False if none appeared
        """
        try:
            self.page.locator(FactorialSelectors.ROW_TOGGLE).first.wait_for(
                state='attached', timeout=self.config.lookup_timeout
            )
        except PlaywrightTimeoutError:
            log_warning(
                f"No attendance rows rendered within {self.config.lookup_timeout}ms",
                self.logger
            )
            return False
        return True

    def find_missing_hours_row(self, target_day: Optional[int] = None) -> Optional[MissingHoursRow]:
        """
        Find a data row that shows a missing-hours marker.

        Marker selectors are tried in order. Candidate rows without the row
        toggle (header and summary rows) are rejected. When ``target_day``
        is given, a row whose date text mentions that day is preferred;
        otherwise the first valid row wins.

        Args:
            target_day: Day of month to prefer (None for any row)

        Returns:
            The row to fill, or None if nothing is missing
        """
        log_step("Looking for a table row with missing hours...", self.logger)

        if not self.wait_for_attendance_rows():
            return None

        first_valid: Optional[MissingHoursRow] = None
        seen_rows = set()

        for selector in FactorialSelectors.MISSING_HOURS_MARKERS:
            try:
                markers = self.page.locator(selector).all()
            except PlaywrightError as e:
                self.logger.debug(f"Selector {selector} failed: {e}")
                continue

            for marker in markers:
                try:
                    text = (marker.text_content() or '').strip()
                    match = MISSING_HOURS_PATTERN.search(text)
                    if not match:
                        continue

                    found = self._row_for_marker(marker)
                    if found is None:
                        continue
                    row, index = found
                    if index in seen_rows:
                        continue
                    seen_rows.add(index)

                    if row.locator(FactorialSelectors.ROW_TOGGLE).count() == 0:
                        self.logger.debug(
                            f"Row with {match.group(0)} has no toggle (header row), skipping..."
                        )
                        continue

                    candidate = MissingHoursRow(
                        locator=row,
                        index=index,
                        marker=match.group(0),
                        date_text=self._row_date_text(row),
                        selector=selector,
                    )
                except PlaywrightError as e:
                    self.logger.debug(f"Row validation failed for {selector}: {e}")
                    continue

                self.logger.info(
                    f"Found missing hours row for date {candidate.date_text} "
                    f"({candidate.marker}) with selector: {selector}"
                )

                if target_day is None or candidate.day == target_day:
                    return candidate
                if first_valid is None:
                    first_valid = candidate

        if first_valid is not None:
            log_warning(
                f"No missing hours row matches day {target_day}, "
                f"using row for date {first_valid.date_text}",
                self.logger
            )
            return first_valid

        self.logger.info("No missing hours found - all days appear to be properly logged")
        return None

    # ------------------------------------------------------------------
    # Entry popover
    # ------------------------------------------------------------------

    def open_row_editor(self, row: MissingHoursRow):
        """
        Expand the row and open its entry popover.

        Raises:
            ElementNotFoundError: If the row toggle is gone
        """
        toggle = row.locator.locator(FactorialSelectors.ROW_TOGGLE).first
        if toggle.count() == 0:
            raise ElementNotFoundError("row toggle", [FactorialSelectors.ROW_TOGGLE])

        if not self.dismiss_blocking_modal():
            log_warning("Modal still present right before clicking the row toggle", self.logger)
            self.take_screenshot("modal-blocking-click.png")

        log_step(f"Opening row for date {row.date_text}...", self.logger)
        toggle.click()
        self._pause()

    def click_add_button(self):
        """
        Click the "add entry" button that appears after expanding a row.

        Raises:
            ElementNotFoundError: If no add button can be found
        """
        log_step("Looking for add entry button...", self.logger)

        try:
            button, _ = resolve_first(
                self.page,
                FactorialSelectors.ADD_BUTTONS,
                "add entry button",
                timeout=self.config.lookup_timeout
            )
        except ElementNotFoundError:
            self.logger.debug("Add button selectors exhausted, scanning button text...")
            button = find_button_by_text(self.page, FactorialSelectors.ADD_BUTTON_LABELS)
            self.logger.info("Found add entry button by text content")

        button.click()
        self._pause()

    def set_work_type(self):
        """Type the configured work type into the popover, if a field exists."""
        if not self.config.work_type:
            return

        try:
            field, selector = resolve_first(
                self.page, FactorialSelectors.WORK_TYPE_INPUTS, "work type field"
            )
        except ElementNotFoundError:
            self.logger.debug("No work type field found, skipping")
            return

        self.logger.info(f"Setting work type to \"{self.config.work_type}\" ({selector})")
        try:
            if selector == 'select':
                field.select_option(
                    label=self.config.work_type, timeout=self.config.lookup_timeout
                )
            else:
                field.click()
                field.fill(self.config.work_type)
                self.page.keyboard.press('Tab')
            self._pause(self.config.input_delay)
        except PlaywrightError as e:
            log_warning(f"Could not set work type: {e}", self.logger)

    def _fill_input(self, field: Locator, value: str, label: str):
        field.click()
        field.fill(value)
        self._pause(self.config.input_delay)

        actual = field.input_value()
        if actual != value:
            log_warning(f"{label} reads back as '{actual}' instead of '{value}'", self.logger)
        else:
            self.logger.info(f"Set {label} to {value}")

    def fill_time_fields(self, entry: WorkEntry) -> str:
        """
        Fill the start and end time inputs of the popover.

        Strategies, in order: the first two time inputs, the first two
        inputs of any type, then dedicated start/end selectors.

        Args:
            entry: Entry providing the times

        Returns:
            Name of the strategy that was used

        Raises:
            ElementNotFoundError: If no strategy finds both fields
        """
        log_step(
            f"Setting start time to {entry.start_time} and end time to {entry.end_time}...",
            self.logger
        )

        time_inputs = self.page.locator(FactorialSelectors.TIME_INPUTS)
        all_inputs = self.page.locator(FactorialSelectors.GENERIC_INPUTS)
        time_count = time_inputs.count()
        input_count = all_inputs.count()
        self.logger.info(f"Found {time_count} time inputs and {input_count} total inputs")

        if time_count >= 2:
            start, end, strategy = time_inputs.nth(0), time_inputs.nth(1), "time inputs"
        elif input_count >= 2:
            start, end, strategy = all_inputs.nth(0), all_inputs.nth(1), "first two inputs"
        else:
            start, _ = resolve_first(
                self.page, FactorialSelectors.START_TIME_INPUTS, "start time input"
            )
            end, _ = resolve_first(
                self.page, FactorialSelectors.END_TIME_INPUTS, "end time input"
            )
            strategy = "named inputs"

        self.logger.debug(f"Filling times using {strategy}")
        self._fill_input(start, entry.start_time, "start time")
        self._fill_input(end, entry.end_time, "end time")
        return strategy

    def fill_optional_fields(self, entry: WorkEntry):
        """Fill break and description when the popover offers them."""
        if entry.break_minutes:
            try:
                field, _ = resolve_first(
                    self.page, FactorialSelectors.BREAK_INPUTS, "break input"
                )
                field.fill(format_break_time(entry.break_minutes))
                self.logger.debug(f"Set break to {entry.break_minutes} minutes")
            except ElementNotFoundError:
                self.logger.debug("Could not find break time input field, skipping break entry")

        if entry.description:
            try:
                field, _ = resolve_first(
                    self.page, FactorialSelectors.DESCRIPTION_INPUTS, "description field"
                )
                field.fill(entry.description)
                self.logger.debug("Set description")
            except ElementNotFoundError:
                self.logger.debug("Could not find description field, skipping description")

    def click_apply_button(self):
        """
        Submit the popover form.

        Raises:
            ElementNotFoundError: If no apply/submit button can be found
            FormValidationError: If the form reports an error after submitting
        """
        log_step("Looking for apply button...", self.logger)

        try:
            button, _ = resolve_first(
                self.page,
                FactorialSelectors.APPLY_BUTTONS,
                "apply button",
                timeout=self.config.lookup_timeout
            )
        except ElementNotFoundError:
            self.logger.debug("Apply button selectors exhausted, scanning button text...")
            button = find_button_by_text(self.page, FactorialSelectors.APPLY_BUTTON_LABELS)
            self.logger.info("Found apply button by text content")

        log_step("Clicking apply button to submit...", self.logger)
        button.click()
        self._pause()

        self.check_for_errors()

        if self.page.locator(FactorialSelectors.SUCCESS_INDICATORS).count() > 0:
            self.logger.info("Found success indicators - form submission appears successful")

    def check_for_errors(self):
        """
        Raises:
            FormValidationError: If a visible validation message is shown
        """
        for selector in FactorialSelectors.FORM_ERRORS:
            element = self.page.locator(selector).first
            try:
                if element.count() == 0 or not element.is_visible():
                    continue
                text = (element.text_content() or '').strip()
            except PlaywrightError:
                continue
            if text:
                raise FormValidationError(f"Validation error: {text}")

    def verify_row_completed(self, row: MissingHoursRow) -> bool:
        """
        Wait for the missing-hours marker to disappear from the row.

        Args:
            row: Row that was filled

        Returns:
            True if the marker disappeared within the verify timeout
        """
        log_step("Verifying the missing hours indicator has disappeared...", self.logger)
        try:
            self.page.wait_for_function(
                _ROW_COMPLETED_JS,
                arg=[row.index, MISSING_HOURS_PATTERN.pattern],
                timeout=self.config.verify_timeout
            )
        except PlaywrightTimeoutError:
            log_warning(
                "Missing hours indicator still present after submission - "
                "entry may not have been saved",
                self.logger
            )
            return False

        log_success("Missing hours indicator has disappeared from the row", self.logger)
        return True

    # ------------------------------------------------------------------
    # Workflows
    # ------------------------------------------------------------------

    def fill_missing_row(self, entry: WorkEntry, target_day: Optional[int] = None) -> LogResult:
        """
        Run locate, open, fill, submit and verify on the current page.

        Errors from individual steps propagate to the caller.

        Args:
            entry: Times to enter
            target_day: Day of month to prefer when choosing a row

        Returns:
            Result of the attempt
        """
        row = self.find_missing_hours_row(target_day)
        if row is None:
            return LogResult(entry_date=entry.date, success=True, nothing_to_do=True)

        self.open_row_editor(row)
        self.click_add_button()
        self.set_work_type()
        self.fill_time_fields(entry)
        self.fill_optional_fields(entry)
        self.click_apply_button()

        self._pause()
        if not self.verify_row_completed(row):
            return LogResult(
                entry_date=entry.date,
                success=False,
                row_date=row.date_text,
                error="Missing hours indicator still present after submission"
            )

        return LogResult(entry_date=entry.date, success=True, row_date=row.date_text)

    def _run(self, entry: WorkEntry, target_day: Optional[int]) -> LogResult:
        try:
            self.ensure_attendance_page()
            self.dismiss_popups()
            return self.fill_missing_row(entry, target_day)
        except (ElementNotFoundError, FormValidationError, PlaywrightError) as e:
            log_error(f"Failed to log work hours: {e}", self.logger)
            self.take_screenshot("debug-page.png")
            return LogResult(entry_date=entry.date, success=False, error=str(e))

    def log_work_hours(self, entry: WorkEntry) -> LogResult:
        """
        Log hours for a specific entry.

        Args:
            entry: Entry to log

        Returns:
            Result of the attempt
        """
        self.logger.info(
            f"Logging work hours for {entry.date}: {entry.start_time} - {entry.end_time}"
        )
        return self._run(entry, entry.day)

    def log_any_missing_hours(self) -> LogResult:
        """
        Log default hours into the first row that has missing hours.

        Returns:
            Result of the attempt (success with nothing_to_do if all days are logged)
        """
        self.logger.info("Scanning for any days with missing hours to log...")
        entry = WorkEntry.from_defaults(
            date.today(), self.config, description="Automated work hours entry"
        )
        return self._run(entry, None)

    def take_screenshot(self, name: str) -> Optional[str]:
        """
        Save a full-page screenshot into the screenshot directory.

        Returns:
            Path of the screenshot, or None if it could not be taken
        """
        path = Path(self.config.screenshot_dir) / name
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self.page.screenshot(path=str(path), full_page=True)
            self.logger.debug(f"Screenshot saved to {path}")
            return str(path)
        except (PlaywrightError, OSError) as e:
            log_warning(f"Failed to take screenshot: {e}", self.logger)
            return None
