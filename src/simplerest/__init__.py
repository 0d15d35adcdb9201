"""
simplerest: a minimal HTTP REST client for Python.

Verb-oriented request helpers (GET/POST/PUT/DELETE/HEAD) with a response
wrapper exposing status codes, headers and body content, plus a rate-limited
client that serializes calls and spaces them at a fixed interval.

Quick Start:
    >>> import simplerest
    >>> response = simplerest.get("https://api.example.com/items")
    >>> print(response.response_code, response.read_response())

Rate limiting:
    >>> from simplerest import RateLimitedHttpClient
    >>> client = RateLimitedHttpClient(delay=2.0)  # one request every 2s, FIFO
    >>> response = client.post("https://api.example.com/items", data="payload")

Global Configuration:
    >>> from simplerest import SIMPLEREST
    >>> SIMPLEREST.configure(
    ...     http={"request_timeout": 10},
    ...     rate_limit={"enabled": True, "delay": 1.0},
    ... )

Main Classes:
    - HttpClient: Abstract base class shared by all clients.
    - HttpRequest: Direct client, one `requests` call per verb.
    - RateLimitedHttpClient: Serializes calls behind a fair gate with a fixed delay.
    - ConfigAwareHttpClient: Builds its client from SIMPLEREST.config. Default.
    - HttpResponse: Response wrapper (status, headers, cached body).
    - HttpError: Raised by HttpResponse accessors for status >= 400.

Cancellation:
    - CancellationToken: Cooperative cancellation flag.
    - UseCancellation: Context manager installing a token for the current context.
    - CancellationScope: Access and propagation of the active token.

Configuration:
    - SIMPLEREST: Global singleton for configuration.
    - SimpleRestConfig, HttpConfig, RateLimitConfig: Configuration dataclasses.
    - ConfigEntry: A resolved config field and its source.
    - ConfigEnvVarError, ConfigValidationError: Configuration errors.
"""

from importlib.metadata import version as _get_version

__version__ = _get_version("simplerest")

from simplerest._api import (
    default_client,
    delete,
    get,
    head,
    post,
    post_multipart,
    put,
)
from simplerest._cancellation import (
    CancellationScope,
    CancellationToken,
    UseCancellation,
)
from simplerest._config import (
    SIMPLEREST,
    ConfigEntry,
    ConfigEnvVarError,
    ConfigValidationError,
    HttpConfig,
    RateLimitConfig,
    SdkConfig,
    SimpleRestConfig,
)
from simplerest._http import (
    ConfigAwareHttpClient,
    HttpClient,
    HttpRequest,
)
from simplerest._rate_limit import (
    FairLock,
    RateLimitedHttpClient,
)
from simplerest._response import (
    HttpError,
    HttpResponse,
)

__all__ = [
    "__version__",
    # Module-level helpers
    "get",
    "post",
    "post_multipart",
    "put",
    "delete",
    "head",
    "default_client",
    # Configuration
    "SIMPLEREST",
    "SimpleRestConfig",
    "SdkConfig",
    "HttpConfig",
    "RateLimitConfig",
    "ConfigEntry",
    "ConfigEnvVarError",
    "ConfigValidationError",
    # HTTP Client
    "HttpClient",
    "HttpRequest",
    "ConfigAwareHttpClient",
    "RateLimitedHttpClient",
    "FairLock",
    # Response
    "HttpResponse",
    "HttpError",
    # Cancellation
    "CancellationToken",
    "CancellationScope",
    "UseCancellation",
]
