from __future__ import annotations

import json
import logging
import socket
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from http.client import HTTPException
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from marketproxy.config.settings import settings
from marketproxy.schemas.provider import UpstreamResult

logger = logging.getLogger(__name__)

_DEFAULT_HEADERS = {"Accept": "application/json"}

# Calls that miss their deadline keep a worker until the socket timeout frees it.
_pool = ThreadPoolExecutor(
    max_workers=settings.providers.max_workers, thread_name_prefix="upstream"
)


def build_url(base_url: str, path: str, params: dict[str, str] | None = None) -> str:
    url = f"{base_url.rstrip('/')}{path}"
    if params:
        url = f"{url}?{urlencode(params)}"
    return url


def _read_error_body(exc: HTTPError) -> str | None:
    try:
        return exc.read().decode("utf-8")
    except (OSError, UnicodeDecodeError):
        return None


def _fetch(request: Request, timeout: float) -> tuple[int, str]:
    with urlopen(request, timeout=timeout) as response:
        return response.status, response.read().decode("utf-8")


def get(
    url: str,
    headers: dict[str, str] | None = None,
    timeout: float | None = None,
    label: str = "upstream",
) -> UpstreamResult:
    """Issue a single GET that is abandoned once ``timeout`` seconds have passed.

    The deadline covers the whole exchange, not each socket read. Never
    raises. ``label`` is what gets logged; the URL may carry a token.
    """
    request = Request(url, headers={**_DEFAULT_HEADERS, **(headers or {})})
    timeout = timeout if timeout is not None else settings.providers.timeout_seconds
    future = _pool.submit(_fetch, request, timeout)
    try:
        status_code, body = future.result(timeout=timeout)
    except FutureTimeoutError:
        future.cancel()
        logger.warning("%s missed its %ss deadline", label, timeout)
        return UpstreamResult(failure="timeout")
    except HTTPError as exc:
        failure = "rate_limited" if exc.code == 429 else "http_error"
        logger.warning("%s answered HTTP %s", label, exc.code)
        return UpstreamResult(
            status_code=exc.code, body=_read_error_body(exc), failure=failure
        )
    except URLError as exc:
        if isinstance(exc.reason, (TimeoutError, socket.timeout)):
            logger.warning("%s timed out after %ss", label, timeout)
            return UpstreamResult(failure="timeout")
        logger.warning("%s unreachable: %s", label, exc.reason)
        return UpstreamResult(failure="network_error")
    except (TimeoutError, socket.timeout):
        logger.warning("%s timed out after %ss", label, timeout)
        return UpstreamResult(failure="timeout")
    except (OSError, HTTPException, UnicodeDecodeError) as exc:
        logger.warning("%s failed: %s", label, exc)
        return UpstreamResult(failure="network_error")

    if not 200 <= status_code < 300:
        return UpstreamResult(status_code=status_code, body=body, failure="http_error")
    return UpstreamResult(status_code=status_code, body=body)


def get_json(
    url: str,
    headers: dict[str, str] | None = None,
    timeout: float | None = None,
    label: str = "upstream",
) -> tuple[UpstreamResult, Any]:
    result = get(url, headers=headers, timeout=timeout, label=label)
    if not result.ok:
        return result, None
    try:
        return result, json.loads(result.body)
    except json.JSONDecodeError:
        logger.warning("%s returned a body that is not JSON", label)
        return result.model_copy(update={"failure": "malformed_body"}), None
