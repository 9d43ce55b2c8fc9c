"""Shared HTTP helpers used by the registry client.

Encapsulates request timeouts, retry with exponential backoff, and the
translation of transport failures into ``RegistryError`` so callers only
deal with responses or installer errors.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Optional

import requests

from constants import Constants
from common.errors import RegistryError
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


def _backoff_delay(attempt: int, base_delay: float) -> float:
    return base_delay * (2 ** attempt)


def safe_get(
    url: str,
    *,
    context: str,
    timeout: Optional[float] = None,
    retry_max: Optional[int] = None,
    retry_base_delay: Optional[float] = None,
    **kwargs: Any,
) -> requests.Response:
    """Perform a GET request with a bounded timeout and retries.

    Transport errors and 5xx responses are retried up to ``retry_max``
    attempts; any other response is returned to the caller as-is.

    Args:
        url: Target URL.
        context: Human-readable source tag for logs (e.g., package name).
        timeout: Seconds before a connect/read attempt is abandoned.
        retry_max: Total number of attempts.
        retry_base_delay: Base of the exponential backoff in seconds.
        **kwargs: Passed through to requests.get.

    Returns:
        requests.Response: The HTTP response object.

    Raises:
        RegistryError: When every attempt failed.
    """
    timeout = Constants.REQUEST_TIMEOUT if timeout is None else timeout
    retry_max = Constants.HTTP_RETRY_MAX if retry_max is None else max(1, retry_max)
    base_delay = Constants.HTTP_RETRY_BASE_DELAY_SEC if retry_base_delay is None else retry_base_delay
    headers = {"User-Agent": Constants.USER_AGENT}
    headers.update(kwargs.pop("headers", None) or {})
    safe_target = safe_url(url)

    last_error = None
    for attempt in range(retry_max):
        if attempt:
            time.sleep(_backoff_delay(attempt - 1, base_delay))
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
                        attempt=attempt + 1,
                    ),
                )
            try:
                res = requests.get(url, timeout=timeout, headers=headers, **kwargs)
            except requests.Timeout:
                last_error = f"timed out after {timeout} seconds"
                logger.warning("%s request timed out after %s seconds (attempt %d/%d)",
                               context, timeout, attempt + 1, retry_max)
                continue
            except requests.RequestException as exc:  # includes ConnectionError
                last_error = str(exc)
                logger.warning("%s connection error: %s (attempt %d/%d)",
                               context, exc, attempt + 1, retry_max)
                continue

        if res.status_code >= 500:
            last_error = f"{res.status_code} {res.reason}"
            logger.warning("%s server error %s %s (attempt %d/%d)",
                           context, res.status_code, res.reason, attempt + 1, retry_max)
            res.close()
            continue

        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    outcome="success" if res.ok else "client_error",
                    status_code=res.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                    context=context,
                ),
            )
        return res

    raise RegistryError(
        f"{context}: request to {safe_target} failed after {retry_max} attempts: {last_error}",
        package_name=context,
    )
