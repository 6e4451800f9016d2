# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""HTTP client utilities for consistent requests session setup."""

from __future__ import annotations

import requests
import requests.adapters
import urllib3

_RETRY_STATUS_CODES = (429, 500, 502, 503, 504)


def configure_session(adapter: requests.adapters.HTTPAdapter) -> requests.Session:
    """Return a requests session with the provided adapter mounted and proxies disabled.

    Args:
        adapter: A configured `HTTPAdapter` with retry policy.

    Returns:
        A configured `requests.Session` instance.
    """
    session = requests.Session()
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.trust_env = False
    return session


def create_retry_adapter(
    total: int = 3, backoff_factor: float = 0.3
) -> requests.adapters.HTTPAdapter:
    """Create an adapter retrying throttled and server side failures.

    Args:
        total: Total number of retries.
        backoff_factor: Backoff factor between retries.

    Returns:
        The adapter to mount on a session.
    """
    return requests.adapters.HTTPAdapter(
        max_retries=urllib3.Retry(
            total=total,
            backoff_factor=backoff_factor,
            status_forcelist=_RETRY_STATUS_CODES,
            allowed_methods=None,
            raise_on_status=False,
        )
    )
