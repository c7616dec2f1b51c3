"""
Connectivity check for i18n sync.
"""

import requests

PROBE_URL = "https://api.phrase.com"


def check_network(url: str = PROBE_URL, timeout: float = 3.0) -> tuple[bool, str | None]:
    """Check if we can reach the translation service. Returns (is_online, error_message)."""
    try:
        requests.head(url, timeout=timeout)
        return True, None
    except requests.ConnectionError:
        return False, "No internet connection"
    except requests.Timeout:
        return False, "Connection timed out"
    except requests.RequestException as e:
        return False, f"Network error: {e}"
