"""
Module-level request helpers.

Convenience functions that share one process-wide ConfigAwareHttpClient, so
one-off calls need no client instance:

    >>> import simplerest
    >>> response = simplerest.get("https://api.example.com/items")
    >>> response.read_response()

When `SIMPLEREST.config.rate_limit.enabled` is True, all helpers share the
same gate, so calls from any thread are serialized and spaced apart. The
shared client is rebuilt after SIMPLEREST.configure() or SIMPLEREST.reset().
"""

import logging
import threading
from collections.abc import Mapping

from simplerest._config import SIMPLEREST, SimpleRestConfig
from simplerest._http import ConfigAwareHttpClient, HttpClient, MultipartValue, RequestBody
from simplerest._response import HttpResponse

logger = logging.getLogger(__name__)

_default_client: HttpClient | None = None
_default_client_lock = threading.Lock()


def default_client() -> HttpClient:
    """Return the shared client used by the module-level helpers."""
    global _default_client
    if _default_client is None:
        with _default_client_lock:
            if _default_client is None:
                _default_client = ConfigAwareHttpClient()
    return _default_client


def _discard_default_client(_config: SimpleRestConfig) -> None:
    global _default_client
    with _default_client_lock:
        if _default_client is not None:
            logger.debug("Configuration changed; discarding the shared HTTP client.")
        _default_client = None


SIMPLEREST.on_change(_discard_default_client)


def get(
    url: str,
    headers: dict[str, str] | None = None,
    timeout: float | None = None,
) -> HttpResponse | None:
    """Execute a GET request with the shared client."""
    return default_client().get(url, headers, timeout)


def post(
    url: str,
    data: RequestBody | None = None,
    headers: dict[str, str] | None = None,
    timeout: float | None = None,
) -> HttpResponse | None:
    """Execute a POST request with the shared client."""
    return default_client().post(url, data, headers, timeout)


def post_multipart(
    url: str,
    fields: Mapping[str, MultipartValue],
    headers: dict[str, str] | None = None,
    timeout: float | None = None,
) -> HttpResponse | None:
    """Execute a multipart/form-data POST request with the shared client."""
    return default_client().post_multipart(url, fields, headers, timeout)


def put(
    url: str,
    data: RequestBody | None = None,
    headers: dict[str, str] | None = None,
    timeout: float | None = None,
) -> HttpResponse | None:
    """Execute a PUT request with the shared client."""
    return default_client().put(url, data, headers, timeout)


def delete(
    url: str,
    headers: dict[str, str] | None = None,
    timeout: float | None = None,
) -> HttpResponse | None:
    """Execute a DELETE request with the shared client."""
    return default_client().delete(url, headers, timeout)


def head(
    url: str,
    headers: dict[str, str] | None = None,
    timeout: float | None = None,
) -> HttpResponse | None:
    """Execute a HEAD request with the shared client."""
    return default_client().head(url, headers, timeout)
