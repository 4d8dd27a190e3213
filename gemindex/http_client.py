"""HTTP client utilities with consistent user agent."""

from typing import Optional

import requests

from . import __version__

USER_AGENT = f"gemindex/{__version__}"

# Timeout in seconds for registry requests
DEFAULT_TIMEOUT = 30


def get_default_headers(accept: Optional[str] = None) -> dict:
    """
    Get default HTTP headers with user agent.

    Args:
        accept: Optional Accept header value (e.g., "application/json")

    Returns:
        Dictionary of HTTP headers
    """
    headers = {"User-Agent": USER_AGENT}
    if accept:
        headers["Accept"] = accept
    return headers


def create_session(accept: Optional[str] = None) -> requests.Session:
    """Create a requests session carrying the gemindex user agent and an optional Accept header."""
    session = requests.Session()
    session.headers.update(get_default_headers(accept))
    return session
