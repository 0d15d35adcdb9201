"""
HTTP client abstraction for simplerest.

This module provides the verb-oriented HTTP client interface and its direct,
unthrottled implementation. Every implementation returns an HttpResponse so
call sites can swap one client for another without code changes.

Available implementations:
    - HttpRequest: Performs each call directly with `requests`. Stateless.
    - ConfigAwareHttpClient: Builds its delegate from SIMPLEREST.config. Default.
    - RateLimitedHttpClient: Decorator that serializes calls behind a fair gate
      with a fixed delay (see `simplerest._rate_limit`).

Example:
    >>> from simplerest._http import HttpRequest
    >>> client = HttpRequest()
    >>> response = client.post("https://api.example.com/v1/resource", data="payload")
    >>> response.read_response()

Example (rate limited):
    >>> from simplerest._rate_limit import RateLimitedHttpClient
    >>> client = RateLimitedHttpClient(delay=2.0, delegate=HttpRequest())
    >>> response = client.get("https://api.example.com/v1/resource")
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import IO, Any, override

import requests

from simplerest._response import HttpResponse

logger = logging.getLogger(__name__)


# Body accepted by POST and PUT: text, raw bytes, a binary stream, or form
# properties (form-urlencoded).
RequestBody = str | bytes | IO[bytes] | Mapping[str, Any]

# Value of a multipart field: plain text, raw bytes, or a binary stream
# (the last two are sent as file parts).
MultipartValue = str | bytes | IO[bytes]


# =============================================================================
# Abstract Base Class
# =============================================================================


class HttpClient(ABC):
    """
    Abstract base class for HTTP clients.

    This is the capability interface shared by the direct and the rate-limited
    clients. Code written against it works with either.

    Every verb accepts an optional `timeout`; None means "use the configured
    default" (`SIMPLEREST.config.http.request_timeout`).

    Example:
        >>> class MyHttpClient(HttpClient):
        ...     def get(self, url, headers=None, timeout=None):
        ...         return HttpResponse(requests.get(url, headers=headers, timeout=timeout))
        ...     # ... and the remaining verbs
    """

    @abstractmethod
    def get(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse | None:
        """
        Execute a GET request.

        Args:
            url: The full URL to request.
            headers: Additional headers to include.
            timeout: Request timeout in seconds.

        Returns:
            The HTTP response, or None if a rate-limited client was
            cancelled before sending the request.

        Raises:
            requests.RequestException: If the HTTP request fails.
        """
        pass

    @abstractmethod
    def post(
        self,
        url: str,
        data: RequestBody | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse | None:
        """
        Execute a POST request.

        Args:
            url: The full URL to request.
            data: Body as text, bytes, a binary stream, or a mapping of
                form properties (sent form-urlencoded).
            headers: Additional headers to include.
            timeout: Request timeout in seconds.

        Returns:
            The HTTP response, or None if a rate-limited client was
            cancelled before sending the request.

        Raises:
            requests.RequestException: If the HTTP request fails.
        """
        pass

    @abstractmethod
    def post_multipart(
        self,
        url: str,
        fields: Mapping[str, MultipartValue],
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse | None:
        """
        Execute a multipart/form-data POST request.

        Args:
            url: The full URL to request.
            fields: Field name to value. Strings become form fields;
                bytes and binary streams become file parts.
            headers: Additional headers to include.
            timeout: Request timeout in seconds.

        Returns:
            The HTTP response, or None if a rate-limited client was
            cancelled before sending the request.

        Raises:
            requests.RequestException: If the HTTP request fails.
        """
        pass

    @abstractmethod
    def put(
        self,
        url: str,
        data: RequestBody | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse | None:
        """
        Execute a PUT request.

        Args:
            url: The full URL to request.
            data: Body as text, bytes, a binary stream, or a mapping of
                form properties (sent form-urlencoded).
            headers: Additional headers to include.
            timeout: Request timeout in seconds.

        Returns:
            The HTTP response, or None if a rate-limited client was
            cancelled before sending the request.

        Raises:
            requests.RequestException: If the HTTP request fails.
        """
        pass

    @abstractmethod
    def delete(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse | None:
        """
        Execute a DELETE request.

        Returns:
            The HTTP response, or None if cancelled before sending.

        Raises:
            requests.RequestException: If the HTTP request fails.
        """
        pass

    @abstractmethod
    def head(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse | None:
        """
        Execute a HEAD request.

        Returns:
            The HTTP response, or None if cancelled before sending.

        Raises:
            requests.RequestException: If the HTTP request fails.
        """
        pass


# =============================================================================
# Direct Implementation
# =============================================================================


class HttpRequest(HttpClient):
    """
    HTTP client that performs each call directly with `requests`.

    Stateless per call: no session, no connection reuse. Error statuses are
    not raised here; they are reported through the returned HttpResponse.
    Transport failures (connection errors, invalid URLs, timeouts) propagate
    as `requests.RequestException`.

    Not coordinated in any way; wrap it in a RateLimitedHttpClient to
    serialize and throttle calls.

    Example:
        >>> client = HttpRequest()
        >>> response = client.put("https://api.example.com/items/1", data=b"...")
        >>> response.check_status()
    """

    @override
    def get(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse:
        return self._send("GET", url, headers, timeout)

    @override
    def post(
        self,
        url: str,
        data: RequestBody | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse:
        return self._send("POST", url, headers, timeout, data=self._encode_body(data))

    @override
    def post_multipart(
        self,
        url: str,
        fields: Mapping[str, MultipartValue],
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse:
        assert fields is not None, "Multipart fields cannot be None."
        return self._send("POST", url, headers, timeout, files=self._encode_multipart(fields))

    @override
    def put(
        self,
        url: str,
        data: RequestBody | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse:
        return self._send("PUT", url, headers, timeout, data=self._encode_body(data))

    @override
    def delete(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse:
        return self._send("DELETE", url, headers, timeout)

    @override
    def head(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse:
        return self._send("HEAD", url, headers, timeout)

    def _send(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None,
        timeout: float | None,
        **kwargs: Any,
    ) -> HttpResponse:
        """
        Perform a single HTTP call.

        Raises:
            AssertionError: If url is empty or timeout is invalid.
            requests.RequestException: If the HTTP request fails.
        """
        from simplerest._config import SIMPLEREST

        http_config = SIMPLEREST.config.http
        if timeout is None:
            timeout = http_config.request_timeout

        assert url, "URL cannot be empty."
        assert timeout > 0, "Timeout must be greater than 0."

        merged_headers = {"User-Agent": http_config.user_agent, **(headers or {})}

        logger.debug(f"{method} {url}")
        response = requests.request(
            method,
            url,
            headers=merged_headers,
            timeout=timeout,
            **kwargs,
        )
        logger.debug(f"{method} {url} -> {response.status_code}")
        return HttpResponse(response)

    @staticmethod
    def _encode_body(data: RequestBody | None) -> Any:
        """Convert a request body into something `requests` sends as-is."""
        if isinstance(data, str):
            return data.encode("utf-8")
        if isinstance(data, Mapping):
            return dict(data)
        return data

    @staticmethod
    def _encode_multipart(fields: Mapping[str, MultipartValue]) -> dict[str, Any]:
        """
        Convert multipart fields into the `files` argument of `requests`.

        Text values become plain form fields (no filename). Bytes and streams
        become file parts named after the field.
        """
        files: dict[str, Any] = {}
        for name, value in fields.items():
            if isinstance(value, str):
                files[name] = (None, value)
            else:
                files[name] = (name, value)
        return files


# =============================================================================
# Config-Aware Implementation
# =============================================================================


class ConfigAwareHttpClient(HttpClient):
    """
    HTTP client that builds its delegate from the global configuration.

    On the first request, creates an HttpRequest and, when
    `SIMPLEREST.config.rate_limit.enabled` is True, wraps it in a
    RateLimitedHttpClient using the configured delay.

    The detection happens lazily, allowing configuration via
    `SIMPLEREST.configure()` after import. Thread-safe using the
    double-checked locking pattern.

    Example:
        >>> from simplerest import SIMPLEREST, ConfigAwareHttpClient
        >>> SIMPLEREST.configure(rate_limit={"enabled": True, "delay": 0.5})
        >>> client = ConfigAwareHttpClient()
        >>> response = client.get("https://api.example.com/items")
    """

    def __init__(self) -> None:
        self._delegate: HttpClient | None = None
        self._lock = threading.Lock()

    def _get_delegate(self) -> HttpClient:
        """Get or create the delegate HTTP client."""
        if self._delegate is None:
            with self._lock:
                if self._delegate is None:
                    self._delegate = self._create_delegate()
        return self._delegate

    def _create_delegate(self) -> HttpClient:
        from simplerest._config import SIMPLEREST
        from simplerest._rate_limit import RateLimitedHttpClient

        base_client = HttpRequest()

        rl_config = SIMPLEREST.config.rate_limit
        if not rl_config.enabled:
            logger.debug("ConfigAwareHttpClient: Rate limiting disabled. Using HttpRequest.")
            return base_client

        logger.debug(
            "ConfigAwareHttpClient: Applying rate limiting "
            f"(delay={rl_config.delay}s)."
        )
        return RateLimitedHttpClient(delay=rl_config.delay, delegate=base_client)

    @override
    def get(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse | None:
        return self._get_delegate().get(url, headers, timeout)

    @override
    def post(
        self,
        url: str,
        data: RequestBody | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse | None:
        return self._get_delegate().post(url, data, headers, timeout)

    @override
    def post_multipart(
        self,
        url: str,
        fields: Mapping[str, MultipartValue],
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse | None:
        return self._get_delegate().post_multipart(url, fields, headers, timeout)

    @override
    def put(
        self,
        url: str,
        data: RequestBody | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse | None:
        return self._get_delegate().put(url, data, headers, timeout)

    @override
    def delete(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse | None:
        return self._get_delegate().delete(url, headers, timeout)

    @override
    def head(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse | None:
        return self._get_delegate().head(url, headers, timeout)
