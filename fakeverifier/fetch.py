# fakeverifier/fetch.py
import logging
import random
import time
from typing import Any, Callable, Iterable, Optional, TypeVar
from urllib.parse import urlsplit

import requests

from .config import settings
from .errors import FetchTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Client errors that will not change on a second attempt.
NON_RETRYABLE_STATUSES = (400, 401, 403)


def _strip_query(url: str) -> str:
    # keeps API keys passed as query params out of error messages and logs
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}{parts.path}" if parts.netloc else url


def fetch_with_timeout(method: str, url: str, timeout: Optional[float] = None, **kwargs: Any) -> requests.Response:
    """Issue an HTTP request with a hard timeout.

    A timeout is raised as FetchTimeoutError so callers can tell it apart from
    connection failures, which surface as the usual requests exceptions.
    """
    timeout = settings.FETCH_TIMEOUT_SECONDS if timeout is None else timeout
    try:
        return requests.request(method, url, timeout=timeout, **kwargs)
    except requests.exceptions.Timeout as e:
        raise FetchTimeoutError(_strip_query(url), timeout) from e


def error_status(exc: BaseException) -> Optional[int]:
    """Best-effort HTTP status carried by an exception, if any."""
    for attr in ("status", "status_code"):
        val = getattr(exc, attr, None)
        if isinstance(val, int):
            return val
    resp = getattr(exc, "response", None)
    if resp is not None:
        code = getattr(resp, "status_code", None)
        if isinstance(code, int):
            return code
    return None


def retry_with_backoff(
    operation: Callable[[], T],
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 10.0,
    non_retryable: Iterable[int] = NON_RETRYABLE_STATUSES,
    sleep: Callable[[float], None] = time.sleep,
    label: str = "operation",
) -> T:
    """
    Call `operation` until it succeeds, at most max_retries + 1 times.

    Delay before retry n (0-based) is min(base_delay * 2**n, max_delay) plus a
    random jitter in [0, base_delay]. Errors carrying a status listed in
    `non_retryable` are re-raised immediately; otherwise the last error is
    re-raised once the retries are spent.
    """
    blocked = set(non_retryable)
    for attempt in range(max_retries + 1):
        try:
            return operation()
        except Exception as e:
            status = error_status(e)
            if status in blocked:
                raise
            if attempt >= max_retries:
                raise
            delay = min(base_delay * (2 ** attempt), max_delay) + random.uniform(0, base_delay)
            logger.info(
                "%s failed (%s), retry %d/%d in %.2fs",
                label, status or e.__class__.__name__, attempt + 1, max_retries, delay,
            )
            sleep(delay)
    # unreachable: the loop either returns or raises
    raise RuntimeError("retry_with_backoff exhausted without result")
