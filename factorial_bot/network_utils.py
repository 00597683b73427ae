"""
Network connectivity utilities for Factorial automation.

This module provides a lightweight connectivity check so that DNS, proxy
or outage problems are reported before a browser is launched.
"""

import urllib.request
import urllib.error
import socket
import ssl
from typing import Tuple


class ConnectivityError(Exception):
    """Raised when network connectivity check fails."""
    pass


def check_connectivity(url: str, timeout: int = 10) -> Tuple[bool, str]:
    """
    Probe the Factorial site with a single HEAD request.

    The probe exercises name resolution, the TLS handshake and the HTTP
    front door before a browser is launched, so problems surface with a
    clear message instead of a Playwright navigation timeout.

    Args:
        url: Site root, e.g. "https://app.factorialhr.com"
        timeout: Socket timeout in seconds

    Returns:
        ``(True, "")`` when the site answered, otherwise ``(False, reason)``
    """
    try:
        request = urllib.request.Request(url, method='HEAD')
        request.add_header('User-Agent', 'Factorial-Time-Tracker/1.0')

        with urllib.request.urlopen(request, timeout=timeout) as response:
            # 2xx or 3xx = success (redirects to the login page are OK)
            if 200 <= response.status < 400:
                return (True, "")
            return (False, f"HTTP {response.status}: {response.reason}")

    except urllib.error.HTTPError as e:
        # Some front doors reject HEAD but the site is up
        if e.code in (403, 405):
            return (True, "")
        return (False, f"HTTP {e.code}: {e.reason}")

    except urllib.error.URLError as e:
        if isinstance(e.reason, socket.timeout):
            return (False, f"Connection timeout after {timeout}s")
        elif isinstance(e.reason, socket.gaierror):
            return (False, f"DNS resolution failed: {e.reason}")
        elif isinstance(e.reason, ssl.SSLError):
            return (False, f"SSL certificate error: {e.reason}")
        elif isinstance(e.reason, ConnectionRefusedError):
            return (False, f"Connection refused: {e.reason}")
        elif isinstance(e.reason, OSError):
            return (False, f"Network error: {e.reason}")
        else:
            return (False, str(e.reason))

    except socket.timeout:
        return (False, f"Connection timeout after {timeout}s")

    except ssl.SSLError as e:
        return (False, f"SSL certificate error: {e}")

    except ValueError as e:
        return (False, f"Invalid URL: {e}")

    except OSError as e:
        return (False, f"Network error: {e}")


def ensure_connectivity(url: str, timeout: int = 10):
    """
    Raise if the site cannot be reached.

    Raises:
        ConnectivityError: With a formatted, user-facing explanation
    """
    success, error = check_connectivity(url, timeout=timeout)
    if not success:
        raise ConnectivityError(
            format_connectivity_error(url, error, is_network_error(error))
        )


def is_network_error(error_message: str) -> bool:
    """
    Determine if an error message points at the network rather than the site.

    Args:
        error_message: Error message from a connectivity check or Playwright

    Returns:
        True if the error looks like a DNS, proxy or connection problem

    Examples:
        >>> is_network_error("DNS resolution failed")
        True
        >>> is_network_error("HTTP 500: Internal Server Error")
        False
    """
    indicators = [
        'dns',
        'name resolution failed',
        'getaddrinfo failed',
        'gaierror',
        'err_name_not_resolved',
        'connection refused',
        'err_connection',
        'connection timed out',
        'timeout',
        'timed out',
        'network unreachable',
        'no route to host',
        'err_internet_disconnected',
        'tunnel',
        'proxy',
    ]

    error_lower = error_message.lower()
    return any(indicator in error_lower for indicator in indicators)


def format_connectivity_error(url: str, error_message: str, is_network_issue: bool) -> str:
    """
    Build the multi-line hint printed when Factorial cannot be reached.

    Network-level failures get hints about the local connection; anything
    else points at the site itself.
    """
    if is_network_issue:
        hints = [
            "This error is often caused by:",
            "  - No internet connection",
            "  - DNS or proxy misconfiguration",
            "  - A firewall blocking outbound HTTPS",
            "",
            "Please ensure:",
            "  1. This machine can reach the internet",
            "  2. You can open Factorial in a regular browser",
            f"  3. The URL is correct: {url}",
        ]
    else:
        hints = [
            "Please check:",
            "  1. Factorial is not down for maintenance",
            f"  2. The URL is correct: {url}",
        ]

    header = [
        "NETWORK CONNECTIVITY CHECK FAILED",
        "",
        f"Could not reach Factorial: {url}",
        f"Error: {error_message}",
        "",
    ]
    return "\n".join(header + hints)
