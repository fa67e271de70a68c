"""Shared HTTP helpers used by the remote source strategy.

Encapsulates request/timeout error handling so callers only ever see a
``NetworkError`` (with the HTTP status when one was received). Deciding
whether a failure is fatal is left to the caller.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from ..constants import Constants
from ..exceptions import NetworkError
from .logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)

HEADERS_ATOM = {"Accept": "application/atom+xml,application/xml"}


def safe_get(
    url: str,
    *,
    context: str,
    username: Optional[str] = None,
    password: Optional[str] = None,
    timeout: Optional[float] = None,
    **kwargs: Any,
) -> requests.Response:
    """Perform a GET request with consistent error handling and DEBUG traces.

    Args:
        url: Target URL.
        context: Human-readable source tag for logs (e.g. the source name).
        username: Optional user name for HTTP basic authentication.
        password: Optional password; an empty password is sent when only a user is set.
        timeout: Seconds before giving up, defaults to ``Constants.REQUEST_TIMEOUT``.
        **kwargs: Passed through to requests.get.

    Returns:
        requests.Response: The HTTP response object, whatever its status.

    Raises:
        NetworkError: On timeout or connection failure.
    """
    safe_target = safe_url(url)
    effective_timeout = Constants.REQUEST_TIMEOUT if timeout is None else timeout
    auth = (username, password or "") if username else None
    with Timer() as t:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action="GET",
                    target=safe_target,
                    context=context,
                ),
            )
        try:
            res = requests.get(url, timeout=effective_timeout, auth=auth, **kwargs)
        except requests.Timeout as exc:
            raise NetworkError(
                f"{context} request timed out after {effective_timeout} seconds"
            ) from exc
        except requests.RequestException as exc:  # includes ConnectionError
            raise NetworkError(f"{context} connection error: {exc}") from exc
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    status_code=res.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                    context=context,
                ),
            )
        return res


def fetch_text(
    url: str,
    *,
    context: str,
    username: Optional[str] = None,
    password: Optional[str] = None,
    timeout: Optional[float] = None,
) -> str:
    """GET ``url`` and return the body, raising ``NetworkError`` on any non-2xx status."""
    res = safe_get(
        url,
        context=context,
        username=username,
        password=password,
        timeout=timeout,
        headers=HEADERS_ATOM,
    )
    if not 200 <= res.status_code < 300:
        raise NetworkError(
            f"{context} request to {safe_url(url)} failed: {res.reason or 'error'}",
            status=res.status_code,
        )
    return res.text
