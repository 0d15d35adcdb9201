"""
Response wrapper for the simplerest client.

Every verb on an HttpClient returns an HttpResponse. Use it to check the
status code, read headers, and get the body as text or as a stream.

The body is read lazily and cached, so calling `read_response()` more than
once is safe. Error statuses (>= 400) are never raised when the request is
made; they surface when the body is accessed or when `check_status()` is
called explicitly.

Example:
    >>> from simplerest import HttpRequest
    >>> response = HttpRequest().get("https://api.example.com/items")
    >>> if response.response_code == HttpResponse.HTTP_CODE_OK:
    ...     print(response.read_response())
"""

import io
import logging
from collections.abc import Mapping
from typing import BinaryIO

import requests

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================


class HttpError(requests.HTTPError):
    """
    Raised when the server answers with an error status (>= 400).

    Extends requests.HTTPError so code that already handles the requests
    exception hierarchy keeps working unchanged.

    Attributes:
        status_code: The HTTP status code returned by the server.
        message: The error body sent by the server, or a default message
            when the body is empty or unreadable.

    Example:
        >>> try:
        ...     body = response.read_response()
        ... except HttpError as e:
        ...     print(f"Server said {e.status_code}: {e.message}")
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        response: requests.Response | None = None,
    ):
        self.status_code = status_code
        self.message = message
        super().__init__(f"HTTP {status_code}: {message}", response=response)


# =============================================================================
# Response Wrapper
# =============================================================================


class HttpResponse:
    """
    Wraps a `requests.Response` returned by an HttpClient verb.

    Args:
        response: The underlying response object.
    """

    HTTP_CODE_OK = 200
    HTTP_CODE_CREATED = 201
    HTTP_CODE_BAD_REQUEST = 400
    HTTP_CODE_NOT_AUTHORIZED = 401
    HTTP_CODE_NOT_FOUND = 404
    HTTP_CODE_UNSUPPORTED_TYPE = 415
    HTTP_CODE_INTERNAL_ERROR = 500

    DEFAULT_ERROR_MESSAGE = "There was a connection error.  The server responded with status code "

    def __init__(self, response: requests.Response):
        assert response is not None, "response cannot be None."

        self._response = response
        self._response_data: str | None = None

    @property
    def raw(self) -> requests.Response:
        """The underlying `requests.Response`."""
        return self._response

    @property
    def response_code(self) -> int:
        """The HTTP status code of the response."""
        return self._response.status_code

    @property
    def headers(self) -> Mapping[str, str]:
        """All response headers (case-insensitive mapping)."""
        return self._response.headers

    def header(self, key: str) -> str | None:
        """
        Get a single header value.

        Args:
            key: Header name, matched case-insensitively.

        Returns:
            The header value, or None if the server did not send it.
        """
        return self._response.headers.get(key)

    def is_error(self) -> bool:
        """Return True if the status code is 400 or above."""
        return self.response_code >= 400

    def check_status(self) -> None:
        """
        Raise HttpError if the server returned an error status.

        The error message is taken from the response body. When the body
        is empty or cannot be decoded, a default message naming the status
        code is used instead.

        Raises:
            HttpError: If the status code is 400 or above.
        """
        if not self.is_error():
            return

        try:
            message = self.error_message()
        except (requests.RequestException, UnicodeDecodeError) as e:
            logger.debug(f"Could not read error body for HTTP {self.response_code}: {e}")
            message = ""

        if not message:
            message = f"{self.DEFAULT_ERROR_MESSAGE}{self.response_code}."

        raise HttpError(self.response_code, message, response=self._response)

    def read_response(self) -> str:
        """
        Read the whole body as text.

        The body is read once and cached, so it is safe to call this
        method multiple times.

        Returns:
            The response body decoded as text.

        Raises:
            HttpError: If the status code is 400 or above.
        """
        if self._response_data is None:
            self.check_status()
            self._response_data = self._response.text
        return self._response_data

    def get_input_stream(self) -> BinaryIO:
        """
        Get the body as a binary stream.

        Returns:
            A readable binary stream positioned at the start of the body.

        Raises:
            HttpError: If the status code is 400 or above.
        """
        self.check_status()
        return io.BytesIO(self._response.content)

    def error_message(self) -> str:
        """
        Get the error body sent by the server.

        Returns:
            The body text for error statuses, or an empty string when
            the request succeeded.
        """
        if not self.is_error():
            return ""
        return self._response.text or ""

    def __repr__(self) -> str:
        return f"HttpResponse(status={self.response_code}, url={self._response.url!r})"
