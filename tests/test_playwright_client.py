"""
Tests for the Factorial browser session driver.

The client is attached to a test page instead of launching its own
browser; remote URLs are served through Playwright request routing.
"""

from unittest.mock import patch

import pytest
from playwright.sync_api import Page, Error as PlaywrightError

from factorial_bot.playwright_client import FactorialClient, LoginError, NavigationError
from factorial_bot.selectors import FactorialSelectors


LOGIN_FORM_HTML = """
<!DOCTYPE html>
<html>
<body>
    <form onsubmit="event.preventDefault(); submitLogin();">
        <input type="email" name="email">
        <input type="password" name="password">
        <button type="submit">Sign in</button>
    </form>
    <div id="result"></div>
    <script>
        window.loginResult = 'ok';
        function submitLogin() {
            window.credentials = {
                email: document.querySelector('input[name="email"]').value,
                password: document.querySelector('input[name="password"]').value
            };
            if (window.loginResult === 'ok') {
                document.body.innerHTML = '<div class="dashboard">Welcome</div>';
            } else {
                document.getElementById('result').innerHTML =
                    '<p class="error-message">Invalid email or password</p>';
            }
        }
    </script>
</body>
</html>
"""

NO_BUTTON_LOGIN_HTML = """
<!DOCTYPE html>
<html>
<body>
    <input type="email" name="email">
    <input type="password" name="password"
           onkeydown="if (event.key === 'Enter') document.body.innerHTML = '<nav role=navigation></nav>';">
</body>
</html>
"""

SIMPLE_PAGE_HTML = """
<!DOCTYPE html>
<html>
<head><title>{title}</title></head>
<body>{body}</body>
</html>
"""


def html_page(title: str = "Factorial", body: str = "") -> str:
    return SIMPLE_PAGE_HTML.format(title=title, body=body)


@pytest.fixture
def client(page: Page, fast_config) -> FactorialClient:
    """Client bound to the test page."""
    client = FactorialClient(fast_config)
    client.page = page
    return client


class TestSubmitCredentials:
    """Tests for the login form handling."""

    def test_successful_login(self, page: Page, client: FactorialClient):
        page.set_content(LOGIN_FORM_HTML)

        assert client.submit_credentials() is True

        credentials = page.evaluate("() => window.credentials")
        assert credentials == {'email': 'user@example.com', 'password': 'secret'}

    def test_rejected_credentials_raise_with_message(self, page: Page, client: FactorialClient):
        page.set_content(LOGIN_FORM_HTML)
        page.evaluate("() => { window.loginResult = 'fail'; }")

        with pytest.raises(LoginError) as exc_info:
            client.submit_credentials()

        assert str(exc_info.value) == "Login failed: Invalid email or password"

    def test_enter_used_without_login_button(self, page: Page, client: FactorialClient):
        page.set_content(NO_BUTTON_LOGIN_HTML)

        assert client.submit_credentials() is True

    def test_missing_email_input_raises(self, page: Page, client: FactorialClient):
        page.set_content(html_page(body="<p>Maintenance</p>"))

        with pytest.raises(LoginError) as exc_info:
            client.submit_credentials()

        assert "Could not find email input field" in str(exc_info.value)

    def test_already_logged_in(self, page: Page, client: FactorialClient):
        page.set_content(html_page(body='<div class="user-menu">Me</div>'))

        assert client.submit_credentials() is True

    def test_missing_password_input_raises(self, page: Page, client: FactorialClient):
        page.set_content(html_page(body='<input type="email">'))

        with pytest.raises(LoginError) as exc_info:
            client.submit_credentials()

        assert "password" in str(exc_info.value)


class TestIsLoggedIn:
    """Tests for the logged-in check."""

    def test_indicator_present(self, page: Page, client: FactorialClient):
        page.set_content(html_page(body='<nav role="navigation"></nav>'))

        assert client.is_logged_in() is True

    def test_login_url_is_not_logged_in(self, page: Page, client: FactorialClient):
        page.route("https://factorial.test/**", lambda route: route.fulfill(
            status=200, content_type="text/html", body=html_page()
        ))
        page.goto("https://factorial.test/users/sign_in/login")

        assert client.is_logged_in() is False

    def test_app_url_is_logged_in(self, page: Page, client: FactorialClient):
        page.route("https://factorial.test/**", lambda route: route.fulfill(
            status=200, content_type="text/html", body=html_page()
        ))
        page.goto("https://factorial.test/dashboard")

        assert client.is_logged_in() is True

    def test_blank_page_is_not_logged_in(self, page: Page, client: FactorialClient):
        assert client.is_logged_in() is False

    def test_no_page(self, fast_config):
        assert FactorialClient(fast_config).is_logged_in() is False


class TestStart:
    """Tests for browser start-up."""

    def test_failed_launch_stops_playwright(self, fast_config):
        """Test that the driver is stopped when Chromium cannot be launched."""
        with patch('factorial_bot.playwright_client.sync_playwright') as mock_sync:
            driver = mock_sync.return_value.start.return_value
            driver.chromium.launch.side_effect = PlaywrightError("Executable doesn't exist")

            client = FactorialClient(fast_config)
            with pytest.raises(PlaywrightError):
                client.start()

        driver.stop.assert_called_once()
        assert client.playwright is None
        assert client.browser is None


class TestOpenLoginPage:
    """Tests for navigation retries."""

    def test_retries_until_success(self, page: Page, client: FactorialClient):
        calls = []

        def handler(route):
            if route.request.resource_type != "document":
                route.fulfill(status=204)
                return
            calls.append(route.request.url)
            if len(calls) == 1:
                route.abort()
            else:
                route.fulfill(status=200, content_type="text/html", body=html_page("Login"))

        page.route("https://factorial.test/**", handler)

        client.open_login_page()

        assert len(calls) == 2
        assert page.title() == "Login"

    def test_gives_up_after_configured_attempts(self, page: Page, client: FactorialClient):
        calls = []

        def handler(route):
            if route.request.resource_type == "document":
                calls.append(route.request.url)
            route.abort('internetdisconnected')

        page.route("https://factorial.test/**", handler)

        with pytest.raises(NavigationError) as exc_info:
            client.open_login_page()

        assert len(calls) == client.config.navigation_attempts
        assert "after 3 attempts" in str(exc_info.value)

    def test_requires_started_browser(self, fast_config):
        with pytest.raises(RuntimeError):
            FactorialClient(fast_config).open_login_page()


class TestNavigation:
    """Tests for reaching the time tracking section."""

    def test_follows_attendance_link(self, page: Page, client: FactorialClient):
        page.route("https://factorial.test/**", lambda route: route.fulfill(
            status=200, content_type="text/html", body=html_page("Attendance")
        ))
        page.set_content(html_page(
            body='<a href="https://factorial.test/attendance/clock-in">Attendance</a>'
        ))

        client.navigate_to_time_tracking()

        page.wait_for_url("https://factorial.test/attendance/clock-in")

    def test_direct_paths_skip_error_pages(self, page: Page, client: FactorialClient):
        def handler(route):
            if route.request.url.endswith("/attendance/clock-in"):
                route.fulfill(status=404, content_type="text/html", body=html_page("404 Not Found"))
            else:
                route.fulfill(status=200, content_type="text/html", body=html_page("Attendance"))

        page.route("https://factorial.test/**", handler)
        page.set_content(html_page(body="<p>No links</p>"))

        client.navigate_to_time_tracking()

        assert page.url == "https://factorial.test/attendance/"

    def test_all_paths_failing_raises(self, page: Page, client: FactorialClient):
        page.route("https://factorial.test/**", lambda route: route.fulfill(
            status=200, content_type="text/html", body=html_page("Error")
        ))
        page.set_content(html_page(body="<p>No links</p>"))

        with pytest.raises(NavigationError):
            client.navigate_to_time_tracking()

    def test_open_first_reachable_skips_login_page(self, page: Page, client: FactorialClient):
        page.route("https://factorial.test/**", lambda route: route.fulfill(
            status=200, content_type="text/html", body=html_page("Factorial")
        ))

        assert client.open_first_reachable(['/login', '/time']) is True
        assert page.url == "https://factorial.test/time"

    def test_open_first_reachable_reports_failure(self, page: Page, client: FactorialClient):
        page.route("https://factorial.test/**", lambda route: route.abort())

        assert client.open_first_reachable(FactorialSelectors.TIME_TRACKING_PATHS) is False


class TestInspectPage:
    """Tests for the debug page description."""

    def test_describes_buttons_inputs_and_forms(self, page: Page, client: FactorialClient):
        buttons = "".join(f'<button id="b{i}" aria-label="Button {i}">B{i}</button>' for i in range(25))
        inputs = "".join(f'<input type="text" name="i{i}">' for i in range(12))
        page.set_content(html_page("Inspect", f"<form>{inputs}</form>{buttons}"))

        info = client.inspect_page()

        assert info['title'] == "Inspect"
        assert info['button_count'] == 25
        assert len(info['buttons']) == 20
        assert info['buttons'][0] == {
            'text': 'B0', 'class': None, 'id': 'b0', 'aria_label': 'Button 0'
        }
        assert info['input_count'] == 12
        assert len(info['inputs']) == 10
        assert info['inputs'][3]['name'] == 'i3'
        assert info['form_count'] == 1

    def test_screenshot_saved(self, page: Page, client: FactorialClient, fast_config):
        page.set_content(html_page(body="<p>Snapshot</p>"))

        path = client.take_screenshot("inspect.png")

        assert path is not None
        assert path.endswith("inspect.png")
