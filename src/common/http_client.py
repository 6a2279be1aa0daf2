"""Shared synchronous HTTP helpers for JSON APIs.

Wraps ``requests`` with a timeout, bounded retries with backoff on network
errors and 5xx responses, and DEBUG traces. Callers decide what a non-200
status means for them.
"""
from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, Optional, Tuple

import requests

from constants import Constants
from common.logging_utils import Timer, extra_context, is_debug_enabled, safe_url

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {"Accept": "application/json", "User-Agent": Constants.USER_AGENT}


def robust_get(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], str]:
    """Perform a GET request with timeout and retries.

    Returns:
        Tuple of (status_code, headers_dict, body_text). ``status_code`` is 0
        when every attempt failed at the transport level; ``body_text`` then
        carries the last error.
    """
    safe_target = safe_url(url)
    request_headers = {**DEFAULT_HEADERS, **(headers or {})}
    last_exception = None
    last_response: Optional[requests.Response] = None

    for attempt in range(Constants.HTTP_RETRY_MAX):
        if attempt:
            time.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * (2 ** (attempt - 1)))
        with Timer() as t:
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
            try:
                response = requests.get(
                    url,
                    timeout=Constants.REQUEST_TIMEOUT,
                    headers=request_headers,
                    **kwargs
                )
            except requests.Timeout:
                last_exception = "timeout"
                logger.debug("HTTP timeout for %s (attempt %d)", safe_target, attempt + 1)
                continue
            except requests.RequestException as exc:  # includes ConnectionError
                last_exception = str(exc)
                logger.debug("HTTP error for %s (attempt %d): %s", safe_target, attempt + 1, exc)
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
                last_response = response
                continue
            return response.status_code, dict(response.headers), response.text

    if last_response is not None:
        return last_response.status_code, dict(last_response.headers), last_response.text
    return 0, {}, f"Request failed after {Constants.HTTP_RETRY_MAX} attempts: {last_exception}"


def get_json(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], Optional[Any]]:
    """Perform a GET request and parse its JSON body.

    Args:
        url: Target URL
        headers: Optional request headers
        **kwargs: Additional requests.get parameters

    Returns:
        Tuple of (status_code, headers_dict, parsed_json_or_none)
    """
    status_code, response_headers, text = robust_get(url, headers=headers, **kwargs)
    if status_code != 200 or not text:
        return status_code, response_headers, None
    try:
        return status_code, response_headers, json.loads(text)
    except json.JSONDecodeError:
        logger.debug("JSON decode error for %s", safe_url(url))
        return status_code, response_headers, None
