"""Shared HTTP helpers used by the repository clients.

Encapsulates timeout, retry and error handling so callers only deal with a
``(status_code, headers, text)`` tuple. A status code of 0 means no response
was received at all; the text then carries the last failure reason.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional, Tuple

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


def _backoff(attempt: int) -> None:
    """Sleep before the next attempt; no delay after the final one."""
    if attempt + 1 < Constants.HTTP_RETRY_MAX:
        time.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * (2 ** attempt))


def robust_get(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], str]:
    """Perform GET request with timeout and retries, with DEBUG traces.

    Server errors (5xx), timeouts and connection errors are retried up to
    ``Constants.HTTP_RETRY_MAX`` attempts. Any other response is returned as is.
    """
    safe_target = safe_url(url)
    last_failure = None

    for attempt in range(Constants.HTTP_RETRY_MAX):
        with Timer() as t:
            try:
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request",
                        extra=extra_context(
                            event="http_request",
                            component="http_client",
                            action="GET",
                            target=safe_target,
                            attempt=attempt + 1
                        )
                    )

                response = requests.get(
                    url,
                    timeout=Constants.REQUEST_TIMEOUT,
                    headers=headers,
                    **kwargs
                )
            except requests.Timeout:
                last_failure = f"timeout after {Constants.REQUEST_TIMEOUT} seconds"
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP timeout",
                        extra=extra_context(
                            event="http_exception",
                            component="http_client",
                            action="GET",
                            outcome="timeout",
                            attempt=attempt + 1,
                            target=safe_target
                        )
                    )
                _backoff(attempt)
                continue
            except requests.RequestException as exc:  # includes ConnectionError
                last_failure = str(exc)
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request exception",
                        extra=extra_context(
                            event="http_exception",
                            component="http_client",
                            action="GET",
                            outcome="request_exception",
                            attempt=attempt + 1,
                            target=safe_target
                        )
                    )
                _backoff(attempt)
                continue

        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    status_code=response.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_target
                )
            )
        if response.status_code >= 500:
            last_failure = f"HTTP {response.status_code}"
            if attempt + 1 < Constants.HTTP_RETRY_MAX:
                _backoff(attempt)
                continue
        return response.status_code, dict(response.headers), response.text

    logger.warning(
        "HTTP request failed after %s attempts",
        Constants.HTTP_RETRY_MAX,
        extra=extra_context(
            event="http_exception",
            component="http_client",
            action="GET",
            outcome="exhausted",
            target=safe_target
        )
    )
    return 0, {}, f"Request failed after {Constants.HTTP_RETRY_MAX} attempts: {last_failure}"
